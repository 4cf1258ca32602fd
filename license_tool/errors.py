from __future__ import annotations


class LicenseError(RuntimeError):
    pass


class InvalidInput(LicenseError):
    """Rejected generation request. ``str(exc)`` is safe to show to a user."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class MalformedPayload(LicenseError):
    pass


class KeyFormatError(LicenseError):
    FORMAT = "format"
    CHECKSUM = "checksum"

    def __init__(self, message: str, reason: str = FORMAT) -> None:
        super().__init__(message)
        self.reason = reason


class SigningError(LicenseError):
    pass


class LicenseConfigError(LicenseError):
    pass
