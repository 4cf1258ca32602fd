from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .activation import activate, can_access_feature, deactivate, feature_access, load_status
from .config import configure_logging, resolve_license_path
from .errors import LicenseConfigError
from .machine import get_machine_id
from .signing import load_public_key
from .tiers import list_tiers
from .verifier import verify_license


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Check, activate and inspect license keys on this machine.")
    p.add_argument(
        "--public-key",
        default="",
        help="Verify with this public_key.pem instead of the embedded key",
    )
    p.add_argument("--machine-id", default="", help="Override the local machine id")
    p.add_argument("--license-file", default="", help="Activation file (default: ~/.license_tool/license.json)")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    sub = p.add_subparsers(dest="command", required=True)
    verify_p = sub.add_parser("verify", help="Verify a key without activating it")
    verify_p.add_argument("key")
    activate_p = sub.add_parser("activate", help="Verify a key and store it for this machine")
    activate_p.add_argument("key")
    sub.add_parser("status", help="Show the stored license")
    features_p = sub.add_parser("features", help="Show which features the stored license unlocks")
    features_p.add_argument("feature", nargs="?", default="", help="Check a single feature")
    sub.add_parser("deactivate", help="Remove the stored license")
    sub.add_parser("machine-id", help="Print this machine's id")
    sub.add_parser("tiers", help="List the license tiers")
    return p.parse_args(argv)


def _public_key(args: argparse.Namespace) -> Ed25519PublicKey | None:
    if not args.public_key:
        return None
    try:
        return load_public_key(Path(args.public_key).expanduser().resolve())
    except (OSError, LicenseConfigError) as exc:
        raise SystemExit(f"Unable to load public key: {exc}")


def _print(data: object) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    machine_id = args.machine_id or get_machine_id()

    if args.command == "machine-id":
        print(machine_id)
        return
    if args.command == "tiers":
        _print(list_tiers())
        return

    license_path = resolve_license_path(args.license_file or None)
    if args.command == "deactivate":
        removed = deactivate(license_path)
        print("License removed." if removed else "No license stored.")
        return

    public_key = _public_key(args)
    try:
        if args.command == "status":
            _print(load_status(machine_id, path=license_path, public_key=public_key).to_dict())
            return
        if args.command == "features":
            status = load_status(machine_id, path=license_path, public_key=public_key)
            if not args.feature:
                _print(feature_access(status))
                return
            allowed = can_access_feature(args.feature, status)
            _print({"feature": args.feature, "allowed": allowed})
            if not allowed:
                raise SystemExit(1)
            return
        if args.command == "activate":
            result = activate(args.key, machine_id, path=license_path, public_key=public_key)
        else:
            result = verify_license(args.key, machine_id, public_key=public_key)
    except LicenseConfigError as exc:
        raise SystemExit(f"Build error: {exc}")

    _print(result.to_dict())
    if not result.valid:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
