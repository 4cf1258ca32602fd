"""Offline, machine-bound license keys: issuance and verification."""
from .errors import (
    InvalidInput,
    KeyFormatError,
    LicenseConfigError,
    LicenseError,
    MalformedPayload,
    SigningError,
)
from .generator import generate, generate_from_request, generate_with_key_file
from .machine import get_machine_id
from .records import LicenseDetails, LicenseRecord
from .tiers import Tier, list_tiers
from .verifier import LicenseVerifier, Rejection, VerificationResult, verify_license

__all__ = [
    "InvalidInput",
    "KeyFormatError",
    "LicenseConfigError",
    "LicenseDetails",
    "LicenseError",
    "LicenseRecord",
    "LicenseVerifier",
    "MalformedPayload",
    "Rejection",
    "SigningError",
    "Tier",
    "VerificationResult",
    "generate",
    "generate_from_request",
    "generate_with_key_file",
    "get_machine_id",
    "list_tiers",
    "verify_license",
]
