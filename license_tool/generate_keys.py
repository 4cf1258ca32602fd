from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import List

from .config import configure_logging, private_key_password
from .signing import generate_keypair, private_key_to_pem, public_key_to_b64, public_key_to_pem


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate the Ed25519 issuer keypair for license signing.")
    p.add_argument(
        "--out-dir",
        default=str(Path.home() / ".license_tool_keys"),
        help="Output directory for private/public keys.",
    )
    p.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing keypair in --out-dir.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return p.parse_args(argv)


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    out_dir = Path(args.out_dir).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    private_path = out_dir / "private_key.pem"
    public_path = out_dir / "public_key.pem"
    if private_path.exists() and not args.force:
        raise SystemExit(f"{private_path} already exists; pass --force to replace it.")

    private_key, public_key = generate_keypair()
    private_path.write_bytes(private_key_to_pem(private_key, password=private_key_password()))
    os.chmod(private_path, 0o600)
    public_path.write_bytes(public_key_to_pem(public_key))

    print(f"Private key: {private_path}")
    print(f"Public key:  {public_path}")
    print(f"Embeddable public key: {public_key_to_b64(public_key)}")
    print("Keep private_key.pem with the issuing tool only. Never ship it with the application.")


if __name__ == "__main__":
    main()
