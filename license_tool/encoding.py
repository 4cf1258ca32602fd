"""Canonical 31-byte form of the signed license content: tier, machine id, activation day, nonce."""
from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .config import (
    LICENSE_EPOCH,
    LICENSE_HORIZON,
    MACHINE_ID_ALPHABET,
    MACHINE_ID_MIN_LENGTH,
    MACHINE_ID_WIDTH,
)
from .errors import MalformedPayload
from .tiers import Tier

_LAYOUT = struct.Struct(f">B{MACHINE_ID_WIDTH}sHI")
PAYLOAD_SIZE = _LAYOUT.size
MAX_NONCE = 0xFFFFFFFF
_PAD = b"\x00"


@dataclass(frozen=True)
class LicensePayload:
    tier: Tier
    machine_id: str
    activation_date: date
    nonce: int

    @property
    def days_valid(self) -> int:
        return self.tier.days_valid

    @property
    def expiration_date(self) -> date:
        return self.activation_date + timedelta(days=self.tier.days_valid)


def check_activation_date(value: date) -> int:
    """Return the day offset of *value* from the epoch, or raise MalformedPayload."""
    if isinstance(value, datetime) or not isinstance(value, date):
        raise MalformedPayload(f"activation date must be a date, got {type(value).__name__}")
    if value < LICENSE_EPOCH:
        raise MalformedPayload(f"activation date {value.isoformat()} is before {LICENSE_EPOCH.isoformat()}")
    if value > LICENSE_HORIZON:
        raise MalformedPayload(f"activation date {value.isoformat()} is after {LICENSE_HORIZON.isoformat()}")
    return (value - LICENSE_EPOCH).days


def _check_machine_id(machine_id: str) -> bytes:
    if not isinstance(machine_id, str):
        raise MalformedPayload("machine id must be a string")
    if not MACHINE_ID_MIN_LENGTH <= len(machine_id) <= MACHINE_ID_WIDTH:
        raise MalformedPayload(
            f"machine id length must be {MACHINE_ID_MIN_LENGTH}..{MACHINE_ID_WIDTH}, got {len(machine_id)}"
        )
    bad = sorted({ch for ch in machine_id if ch not in MACHINE_ID_ALPHABET})
    if bad:
        raise MalformedPayload(f"machine id contains unsupported characters: {''.join(bad)!r}")
    return machine_id.encode("ascii").ljust(MACHINE_ID_WIDTH, _PAD)


def encode(payload: LicensePayload) -> bytes:
    if not isinstance(payload.tier, Tier):
        raise MalformedPayload(f"unknown tier: {payload.tier!r}")
    machine = _check_machine_id(payload.machine_id)
    offset = check_activation_date(payload.activation_date)
    nonce = payload.nonce
    if isinstance(nonce, bool) or not isinstance(nonce, int) or not 0 <= nonce <= MAX_NONCE:
        raise MalformedPayload(f"nonce out of range: {nonce!r}")
    return _LAYOUT.pack(payload.tier.code, machine, offset, nonce)


def decode(data: bytes) -> LicensePayload:
    if len(data) != PAYLOAD_SIZE:
        raise MalformedPayload(f"payload must be {PAYLOAD_SIZE} bytes, got {len(data)}")
    tier_code, machine_raw, offset, nonce = _LAYOUT.unpack(data)

    try:
        tier = Tier.from_code(tier_code)
    except ValueError as exc:
        raise MalformedPayload(str(exc)) from exc

    machine_bytes = machine_raw.rstrip(_PAD)
    if _PAD in machine_bytes:
        raise MalformedPayload("machine id has embedded padding")
    try:
        machine_id = machine_bytes.decode("ascii")
    except UnicodeDecodeError as exc:
        raise MalformedPayload("machine id is not ASCII") from exc
    _check_machine_id(machine_id)

    activation = LICENSE_EPOCH + timedelta(days=offset)
    check_activation_date(activation)
    return LicensePayload(tier=tier, machine_id=machine_id, activation_date=activation, nonce=nonce)
