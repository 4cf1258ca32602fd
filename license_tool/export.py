from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from .records import LicenseRecord

RECORD_COLUMNS = [
    "license_key",
    "tier",
    "machine_id",
    "activation_date",
    "expiration_date",
    "days_valid",
]


def default_export_name(suffix: str = "json", today: date | None = None) -> str:
    return f"licenses_{(today or date.today()).isoformat()}.{suffix}"


def records_frame(records: Iterable[LicenseRecord]) -> pd.DataFrame:
    rows = [record.to_dict() for record in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def write_records_json(records: Iterable[LicenseRecord], path: Path) -> Path:
    rows: List[dict] = [record.to_dict() for record in records]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def write_records_csv(records: Iterable[LicenseRecord], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    records_frame(records).to_csv(path, index=False, encoding="utf-8")
    return path
