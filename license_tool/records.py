from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict

from .encoding import LicensePayload


@dataclass(frozen=True)
class LicenseDetails:
    tier: str
    machine_id: str
    activation_date: date
    expiration_date: date
    days_valid: int

    @classmethod
    def from_payload(cls, payload: LicensePayload) -> "LicenseDetails":
        return cls(
            tier=payload.tier.value,
            machine_id=payload.machine_id,
            activation_date=payload.activation_date,
            expiration_date=payload.expiration_date,
            days_valid=payload.days_valid,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "tier": self.tier,
            "machine_id": self.machine_id,
            "activation_date": self.activation_date.isoformat(),
            "expiration_date": self.expiration_date.isoformat(),
            "days_valid": self.days_valid,
        }


@dataclass(frozen=True)
class LicenseRecord:
    license_key: str
    details: LicenseDetails

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"license_key": self.license_key}
        out.update(self.details.to_dict())
        return out
