from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .config import EXPIRING_SOON_DAYS, FEATURES, FREE_FEATURES, resolve_license_path
from .machine import get_machine_id, normalize_machine_id
from .verifier import VerificationResult, verify_license

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LicenseStatus:
    activated: bool
    machine_id: str
    tier: str | None = None
    activation_date: date | None = None
    expiration_date: date | None = None
    days_remaining: int | None = None
    error_code: str | None = None

    @property
    def is_pro(self) -> bool:
        return self.activated and self.tier is not None

    @property
    def expiring_soon(self) -> bool:
        if self.days_remaining is None:
            return False
        return 0 < self.days_remaining <= EXPIRING_SOON_DAYS

    def to_dict(self) -> Dict[str, object]:
        return {
            "activated": self.activated,
            "is_pro": self.is_pro,
            "tier": self.tier,
            "machine_id": self.machine_id,
            "activation_date": self.activation_date.isoformat() if self.activation_date else None,
            "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
            "days_remaining": self.days_remaining,
            "expiring_soon": self.expiring_soon,
            "error_code": self.error_code,
        }


def feature_access(status: LicenseStatus) -> Dict[str, bool]:
    """Feature switches for *status*: everything when a pro license is active, else the free set."""
    allowed = FEATURES if status.activated and status.is_pro else FREE_FEATURES
    return {name: name in allowed for name in FEATURES}


def can_access_feature(name: str, status: LicenseStatus) -> bool:
    return feature_access(status).get(name, False)


def _load_raw_state(path: Path) -> Dict[str, object]:
    if not path.is_file():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable activation file %s: %s", path, exc)
        return {}
    return raw if isinstance(raw, dict) else {}


def save_state(path: Path, state: Dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(state, f, ensure_ascii=False, indent=2)


def activate(
    license_key: str,
    machine_id: str | None = None,
    path: Path | None = None,
    today: date | None = None,
    public_key: Ed25519PublicKey | None = None,
) -> VerificationResult:
    """Verify *license_key* and, if it is valid, remember it for this machine."""
    machine = normalize_machine_id(machine_id or get_machine_id())
    result = verify_license(license_key, machine, today=today, public_key=public_key)
    if not result.valid:
        return result
    target = path or resolve_license_path()
    save_state(
        target,
        {
            "license_key": license_key.strip().upper(),
            "activated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        },
    )
    logger.info("License activated and stored in %s", target)
    return result


def load_status(
    machine_id: str | None = None,
    path: Path | None = None,
    today: date | None = None,
    public_key: Ed25519PublicKey | None = None,
) -> LicenseStatus:
    """Report the stored license, verifying it again from scratch."""
    machine = normalize_machine_id(machine_id or get_machine_id())
    raw = _load_raw_state(path or resolve_license_path())
    key = raw.get("license_key")
    if not isinstance(key, str) or not key:
        return LicenseStatus(activated=False, machine_id=machine)

    result = verify_license(key, machine, today=today, public_key=public_key)
    details = result.details
    return LicenseStatus(
        activated=result.valid,
        machine_id=machine,
        tier=details.tier if result.valid and details else None,
        activation_date=details.activation_date if details else None,
        expiration_date=details.expiration_date if details else None,
        days_remaining=result.days_remaining,
        error_code=result.error_code,
    )


def deactivate(path: Path | None = None) -> bool:
    target = path or resolve_license_path()
    if not target.is_file():
        return False
    target.unlink()
    logger.info("License removed from %s", target)
    return True
