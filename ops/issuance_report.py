#!/usr/bin/env python3
import csv
import sys
from collections import Counter


def pct(num, den):
    if den == 0:
        return "0.00%"
    return f"{(num / den) * 100:.2f}%"


def has_value(v):
    return str(v or "").strip() != ""


def summarize(rows):
    tiers = Counter(r.get("tier", "UNKNOWN") or "UNKNOWN" for r in rows)
    machines = {r.get("machine_id", "").strip().upper() for r in rows if has_value(r.get("machine_id"))}
    keys = [r.get("license_key", "") for r in rows if has_value(r.get("license_key"))]
    activations = sorted(r["activation_date"] for r in rows if has_value(r.get("activation_date")))
    expirations = sorted(r["expiration_date"] for r in rows if has_value(r.get("expiration_date")))
    return {
        "total": len(rows),
        "tiers": dict(tiers),
        "machines": len(machines),
        "duplicate_keys": len(keys) - len(set(keys)),
        "first_activation": activations[0] if activations else "",
        "last_expiration": expirations[-1] if expirations else "",
    }


def main(path):
    rows = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            rows.append(row)

    total = len(rows)
    if total == 0:
        print("No license records found.")
        return

    summary = summarize(rows)
    print("=== Issuance Report ===")
    print(f"Total licenses: {total}")
    print(f"Distinct machines: {summary['machines']}")
    print(f"Duplicate keys: {summary['duplicate_keys']}")
    print(f"First activation: {summary['first_activation']}")
    print(f"Last expiration: {summary['last_expiration']}")
    print()
    print("=== Tier Distribution ===")
    for k, v in sorted(summary["tiers"].items()):
        print(f"{k}: {v} ({pct(v, total)})")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python3 issuance_report.py <licenses_csv_path>")
        sys.exit(1)
    main(sys.argv[1])
