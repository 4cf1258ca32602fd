from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path


PRODUCT_NAME = "License Tool"
KEY_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
KEY_GROUP_SIZE = 5
KEY_TAG_PREFIX = "LK"
KEY_VERSION = 1
CHECKSUM_LENGTH = 5

LICENSE_EPOCH = date(2020, 1, 1)
MAX_HORIZON_YEARS = 50
LICENSE_HORIZON = date(LICENSE_EPOCH.year + MAX_HORIZON_YEARS, 1, 1)

MACHINE_ID_MIN_LENGTH = 8
MACHINE_ID_WIDTH = 24
MACHINE_ID_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-")

DEFAULT_MAX_BATCH_COUNT = 100
EXPIRING_SOON_DAYS = 7

FEATURES = (
    "scan",
    "file_shredder",
    "system_logs",
    "memory_cleanup",
    "network_cleanup",
    "registry_cleanup",
    "timestamp_modifier",
    "anti_analysis",
    "disk_encryption",
    "scheduled_tasks",
)
FREE_FEATURES = frozenset({"scan", "file_shredder"})

STATE_DIR = Path.home() / ".license_tool"
LICENSE_FILE = STATE_DIR / "license.json"

MAX_BATCH_ENV = "LICENSE_TOOL_MAX_BATCH_COUNT"
PRIVATE_KEY_PATH_ENV = "LICENSE_TOOL_PRIVATE_KEY_PATH"
PRIVATE_KEY_PASSWORD_ENV = "LICENSE_TOOL_PRIVATE_KEY_PASSWORD"
LICENSE_PATH_ENV = "LICENSE_TOOL_LICENSE_PATH"
LOG_LEVEL_ENV = "LICENSE_TOOL_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def max_batch_count() -> int:
    raw = os.getenv(MAX_BATCH_ENV, "").strip()
    if not raw:
        return DEFAULT_MAX_BATCH_COUNT
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning("Ignoring invalid %s=%r, using %d", MAX_BATCH_ENV, raw, DEFAULT_MAX_BATCH_COUNT)
        return DEFAULT_MAX_BATCH_COUNT
    return value


def resolve_private_key_path(explicit: str | None = None) -> Path | None:
    raw = (explicit or os.getenv(PRIVATE_KEY_PATH_ENV, "")).strip()
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def private_key_password() -> bytes | None:
    raw = os.getenv(PRIVATE_KEY_PASSWORD_ENV, "")
    return raw.encode("utf-8") if raw else None


def resolve_license_path(explicit: str | None = None) -> Path:
    raw = (explicit or os.getenv(LICENSE_PATH_ENV, "")).strip()
    if raw:
        return Path(raw).expanduser().resolve()
    return LICENSE_FILE


def configure_logging(verbose: bool = False) -> None:
    """Set up root logging for the command-line tools."""
    if verbose:
        level = logging.DEBUG
    else:
        name = os.getenv(LOG_LEVEL_ENV, "WARNING").strip().upper()
        level = getattr(logging, name, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
