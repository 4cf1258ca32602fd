from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Mapping

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .config import KEY_VERSION, max_batch_count
from .encoding import MAX_NONCE, LicensePayload, check_activation_date, encode
from .errors import InvalidInput, MalformedPayload
from .keyformat import format_key, signed_message, version_tag
from .machine import check_machine_id, redact_machine_id
from .records import LicenseDetails, LicenseRecord
from .signing import sign, signing_key
from .tiers import Tier
from .verifier import utc_today

logger = logging.getLogger(__name__)

_nonce_source = random.SystemRandom()


def parse_activation_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidInput(
                "activation_date", f"Invalid date format: {value!r}. Use YYYY-MM-DD"
            ) from None
    raise InvalidInput("activation_date", "Activation date must be an ISO date (YYYY-MM-DD)")


def check_count(count: object, max_count: int | None = None) -> int:
    limit = max_count if max_count is not None else max_batch_count()
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidInput("count", "Count must be a whole number")
    if not 1 <= count <= limit:
        raise InvalidInput("count", f"Count must be between 1 and {limit}")
    return count


def _issue_one(private_key: Ed25519PrivateKey, payload: LicensePayload) -> LicenseRecord:
    tag = version_tag(KEY_VERSION)
    payload_bytes = encode(payload)
    signature = sign(private_key, signed_message(tag, payload_bytes))
    key = format_key(payload_bytes, signature, version=KEY_VERSION)
    logger.debug("Issued key with nonce %08x", payload.nonce)
    return LicenseRecord(license_key=key, details=LicenseDetails.from_payload(payload))


def generate(
    tier: Tier | str,
    machine_id: str,
    activation_date: date | str | None = None,
    count: int = 1,
    *,
    private_key: Ed25519PrivateKey,
    max_count: int | None = None,
    workers: int | None = None,
) -> List[LicenseRecord]:
    """Issue *count* independent license keys for one machine.

    Every argument is validated before any signing happens; a bad request
    raises :class:`InvalidInput`. Records come back in request order.
    """
    license_tier = Tier.parse(tier)
    machine = check_machine_id(machine_id)
    count = check_count(count, max_count)
    if activation_date is None:
        activation = utc_today()
    else:
        activation = parse_activation_date(activation_date)
    try:
        check_activation_date(activation)
    except MalformedPayload as exc:
        raise InvalidInput("activation_date", str(exc)) from exc

    nonces = _nonce_source.sample(range(MAX_NONCE + 1), count)
    payloads = [
        LicensePayload(tier=license_tier, machine_id=machine, activation_date=activation, nonce=nonce)
        for nonce in nonces
    ]
    logger.info(
        "Generating %d %s license(s) for %s from %s",
        count, license_tier.value, redact_machine_id(machine), activation.isoformat(),
    )
    if count == 1 or workers == 1:
        return [_issue_one(private_key, p) for p in payloads]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda p: _issue_one(private_key, p), payloads))


def generate_with_key_file(
    private_key_path: Path,
    tier: Tier | str,
    machine_id: str,
    activation_date: date | str | None = None,
    count: int = 1,
    *,
    password: bytes | None = None,
    max_count: int | None = None,
) -> List[LicenseRecord]:
    # Validate first so a bad request never touches the key file.
    Tier.parse(tier)
    check_machine_id(machine_id)
    check_count(count, max_count)
    with signing_key(private_key_path, password=password) as key:
        return generate(
            tier, machine_id, activation_date, count, private_key=key, max_count=max_count
        )


def generate_from_request(
    request: Mapping[str, object],
    private_key: Ed25519PrivateKey,
    max_count: int | None = None,
) -> List[Dict[str, object]]:
    """Handle a generation request shaped ``{tier, machineId, activationDate, count}``."""
    records = generate(
        request.get("tier"),  # type: ignore[arg-type]
        request.get("machineId"),  # type: ignore[arg-type]
        request.get("activationDate") or None,  # type: ignore[arg-type]
        request.get("count", 1),  # type: ignore[arg-type]
        private_key=private_key,
        max_count=max_count,
    )
    return [record.to_dict() for record in records]
