from __future__ import annotations

import hashlib
import platform
import uuid

from .config import MACHINE_ID_ALPHABET, MACHINE_ID_MIN_LENGTH, MACHINE_ID_WIDTH
from .errors import InvalidInput


def get_machine_id() -> str:
    raw = f"{platform.system()}|{platform.node()}|{uuid.getnode()}"
    digest = hashlib.sha256(raw.encode("utf-8")).hexdigest().upper()
    return digest[:MACHINE_ID_WIDTH]


def normalize_machine_id(machine_id: str) -> str:
    return machine_id.strip().upper()


def check_machine_id(machine_id: object) -> str:
    """Normalise *machine_id* and raise :class:`InvalidInput` if it cannot be licensed."""
    if not isinstance(machine_id, str):
        raise InvalidInput("machine_id", "Machine ID is required")
    value = normalize_machine_id(machine_id)
    if len(value) < MACHINE_ID_MIN_LENGTH:
        raise InvalidInput(
            "machine_id", f"Machine ID must be at least {MACHINE_ID_MIN_LENGTH} characters"
        )
    if len(value) > MACHINE_ID_WIDTH:
        raise InvalidInput(
            "machine_id", f"Machine ID must be at most {MACHINE_ID_WIDTH} characters"
        )
    if any(ch not in MACHINE_ID_ALPHABET for ch in value):
        raise InvalidInput(
            "machine_id", "Machine ID may only contain letters, digits and '-'"
        )
    return value


def redact_machine_id(machine_id: object) -> str:
    if not isinstance(machine_id, str):
        return "<invalid>"
    value = normalize_machine_id(machine_id)
    return value[:4] + "..." if len(value) > 4 else "***"
