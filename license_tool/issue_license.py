from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List

from .config import configure_logging, private_key_password, resolve_private_key_path
from .errors import LicenseError
from .export import write_records_csv, write_records_json
from .generator import generate_with_key_file
from .tiers import Tier


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Issue machine-bound license keys.")
    p.add_argument(
        "--private-key",
        default="",
        help="Path to private_key.pem (default: $LICENSE_TOOL_PRIVATE_KEY_PATH)",
    )
    p.add_argument("--tier", required=True, choices=[t.value for t in Tier], help="Subscription tier")
    p.add_argument("--machine-id", required=True, help="Machine id reported by the application")
    p.add_argument(
        "--activation-date",
        default=None,
        help="First valid day, YYYY-MM-DD (default: today, UTC)",
    )
    p.add_argument("--count", type=int, default=1, help="Number of keys to issue")
    p.add_argument("--out", default="", help="Write records to this .json or .csv file")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return p.parse_args(argv)


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)

    key_path = resolve_private_key_path(args.private_key)
    if key_path is None:
        raise SystemExit("No private key given. Use --private-key or set LICENSE_TOOL_PRIVATE_KEY_PATH.")

    try:
        records = generate_with_key_file(
            key_path,
            args.tier,
            args.machine_id,
            args.activation_date,
            args.count,
            password=private_key_password(),
        )
    except LicenseError as exc:
        raise SystemExit(f"Error: {exc}")

    if not args.out:
        print(json.dumps([r.to_dict() for r in records], ensure_ascii=False, indent=2))
        return

    out_path = Path(args.out).expanduser().resolve()
    if out_path.suffix.lower() == ".csv":
        write_records_csv(records, out_path)
    else:
        write_records_json(records, out_path)
    print(f"{len(records)} license(s) written to {out_path}")
    print(f"Expires at: {records[0].details.expiration_date.isoformat()}")


if __name__ == "__main__":
    main()
