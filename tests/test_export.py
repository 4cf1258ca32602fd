import json
from datetime import date

import pandas as pd

from license_tool.export import RECORD_COLUMNS, default_export_name, write_records_csv, write_records_json


def test_json_export(tmp_path, issue):
    records = issue(count=3)
    path = write_records_json(records, tmp_path / "out" / "licenses.json")
    assert json.loads(path.read_text(encoding="utf-8")) == [r.to_dict() for r in records]


def test_csv_export(tmp_path, issue):
    records = issue(tier="yearly", count=4)
    path = write_records_csv(records, tmp_path / "licenses.csv")
    df = pd.read_csv(path, dtype=str)
    assert list(df.columns) == RECORD_COLUMNS
    assert len(df) == 4
    assert list(df["license_key"]) == [r.license_key for r in records]
    assert set(df["days_valid"]) == {"365"}


def test_default_export_name():
    assert default_export_name(today=date(2026, 3, 1)) == "licenses_2026-03-01.json"
    assert default_export_name("csv", today=date(2026, 3, 1)) == "licenses_2026-03-01.csv"
