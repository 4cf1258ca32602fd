from __future__ import annotations

import enum
from typing import Dict, List

from .errors import InvalidInput


class Tier(enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def code(self) -> int:
        return _CODES[self]

    @property
    def days_valid(self) -> int:
        return _DAYS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_code(cls, code: int) -> "Tier":
        for tier, value in _CODES.items():
            if value == code:
                return tier
        raise ValueError(f"unknown tier code: {code}")

    @classmethod
    def parse(cls, value: "Tier | str") -> "Tier":
        if isinstance(value, Tier):
            return value
        if not isinstance(value, str):
            raise InvalidInput("tier", "Invalid tier. Use: monthly, quarterly, yearly")
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidInput("tier", "Invalid tier. Use: monthly, quarterly, yearly") from None


_CODES = {Tier.MONTHLY: 0, Tier.QUARTERLY: 1, Tier.YEARLY: 2}
_DAYS = {Tier.MONTHLY: 30, Tier.QUARTERLY: 90, Tier.YEARLY: 365}


def list_tiers() -> List[Dict[str, object]]:
    return [
        {
            "value": tier.value,
            "label": tier.label,
            "days": tier.days_valid,
            "description": f"{tier.days_valid} days validity",
        }
        for tier in Tier
    ]
