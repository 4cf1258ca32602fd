"""Offline license verification. The first failing stage decides the rejection."""
from __future__ import annotations

import enum
import functools
import hmac
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, Mapping

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from . import signing, trust_anchor
from .config import KEY_VERSION, MACHINE_ID_ALPHABET
from .encoding import LicensePayload, decode, encode
from .errors import KeyFormatError, LicenseConfigError, MalformedPayload
from .keyformat import decode_body, redact_key, signed_message, split_key, verify_checksum
from .machine import normalize_machine_id, redact_machine_id
from .records import LicenseDetails

logger = logging.getLogger(__name__)


class Rejection(enum.Enum):
    INVALID_FORMAT = ("INVALID_FORMAT", "MalformedKey", "Invalid license key format.")
    INVALID_CHECKSUM = ("INVALID_CHECKSUM", "MalformedKey", "Invalid license key format.")
    INVALID_SIGNATURE = ("INVALID_SIGNATURE", "SignatureMismatch", "This license key is not valid.")
    MACHINE_MISMATCH = ("MACHINE_MISMATCH", "MachineMismatch", "License not valid for this device.")
    NOT_YET_ACTIVE = (
        "NOT_YET_ACTIVE",
        "NotYetActive",
        "This license is not active yet. It can be used from its activation date.",
    )
    EXPIRED = ("EXPIRED", "Expired", "This license has expired. Please renew it.")

    def __init__(self, error_code: str, category: str, message: str) -> None:
        self.error_code = error_code
        self.category = category
        self.message = message


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    rejection: Rejection | None = None
    details: LicenseDetails | None = None
    days_remaining: int | None = None

    @property
    def error_code(self) -> str | None:
        return self.rejection.error_code if self.rejection else None

    @property
    def error_message(self) -> str | None:
        return self.rejection.message if self.rejection else None

    def to_dict(self) -> Dict[str, object]:
        info = None
        if self.details is not None:
            info = self.details.to_dict()
            info["days_remaining"] = self.days_remaining
        return {
            "valid": self.valid,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "license_info": info,
        }


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _same_machine(local: str, licensed: str) -> bool:
    return hmac.compare_digest(local.encode("utf-8"), licensed.encode("utf-8"))


class LicenseVerifier:
    """Checks license keys against a fixed set of public keys, one per key version."""

    def __init__(self, public_keys: Mapping[int, Ed25519PublicKey] | Ed25519PublicKey) -> None:
        if isinstance(public_keys, Ed25519PublicKey):
            public_keys = {KEY_VERSION: public_keys}
        if not public_keys:
            raise LicenseConfigError("no public key configured for license verification")
        self._public_keys: Dict[int, Ed25519PublicKey] = dict(public_keys)

    def _public_key(self, version: int) -> Ed25519PublicKey | None:
        return self._public_keys.get(version)

    def _reject(self, key: object, rejection: Rejection, details: LicenseDetails | None = None) -> VerificationResult:
        logger.warning("License %s rejected: %s", redact_key(key), rejection.error_code)
        return VerificationResult(valid=False, rejection=rejection, details=details)

    def verify(self, key: object, machine_id: object, today: date | None = None) -> VerificationResult:
        try:
            raw = split_key(key)
        except KeyFormatError:
            return self._reject(key, Rejection.INVALID_FORMAT)
        try:
            verify_checksum(raw)
        except KeyFormatError:
            return self._reject(key, Rejection.INVALID_CHECKSUM)
        try:
            parsed = decode_body(raw)
            payload = decode(parsed.payload)
            message = signed_message(parsed.tag, encode(payload))
        except (KeyFormatError, MalformedPayload):
            return self._reject(key, Rejection.INVALID_FORMAT)

        public_key = self._public_key(parsed.version)
        if public_key is None:
            # A version this build has no key for cannot be authenticated.
            return self._reject(key, Rejection.INVALID_SIGNATURE)
        if not signing.verify(public_key, message, parsed.signature):
            return self._reject(key, Rejection.INVALID_SIGNATURE)

        return self._check_policy(key, payload, machine_id, today)

    def _check_policy(
        self,
        key: object,
        payload: LicensePayload,
        machine_id: object,
        today: date | None,
    ) -> VerificationResult:
        local = normalize_machine_id(machine_id) if isinstance(machine_id, str) else ""
        if any(ch not in MACHINE_ID_ALPHABET for ch in local):
            local = ""
        if not _same_machine(local, payload.machine_id):
            logger.info("License bound to %s, local machine is %s",
                        redact_machine_id(payload.machine_id), redact_machine_id(local))
            return self._reject(key, Rejection.MACHINE_MISMATCH)

        if today is None:
            today = utc_today()
        elif isinstance(today, datetime):
            today = today.date()

        details = LicenseDetails.from_payload(payload)
        if today < details.activation_date:
            return self._reject(key, Rejection.NOT_YET_ACTIVE, details)
        if today > details.expiration_date:
            return self._reject(key, Rejection.EXPIRED, details)

        days_remaining = (details.expiration_date - today).days
        logger.info("License %s valid: tier=%s, %d days remaining",
                    redact_key(key), details.tier, days_remaining)
        return VerificationResult(valid=True, details=details, days_remaining=days_remaining)


@functools.lru_cache(maxsize=1)
def embedded_verifier() -> LicenseVerifier:
    """Verifier built from the public keys embedded in :mod:`trust_anchor`."""
    if not trust_anchor.EMBEDDED_PUBLIC_KEYS:
        raise LicenseConfigError(
            "no public key embedded in this build; run license_tool.embed_public_key first"
        )
    keys = {
        int(version): signing.public_key_from_b64(text)
        for version, text in trust_anchor.EMBEDDED_PUBLIC_KEYS.items()
    }
    return LicenseVerifier(keys)


def verify_license(
    key: object,
    machine_id: object,
    today: date | None = None,
    public_key: Ed25519PublicKey | None = None,
) -> VerificationResult:
    verifier = LicenseVerifier(public_key) if public_key is not None else embedded_verifier()
    return verifier.verify(key, machine_id, today=today)
