from __future__ import annotations

import argparse
import importlib
from pathlib import Path
from typing import Dict, List

from . import trust_anchor
from .config import KEY_VERSION, configure_logging
from .errors import LicenseConfigError
from .signing import load_public_key, public_key_from_b64, public_key_to_b64

PACKAGE_DIR = Path(__file__).resolve().parent
ANCHOR_PATH = PACKAGE_DIR / "trust_anchor.py"

ANCHOR_TEMPLATE = '''# Generated by license_tool.embed_public_key. Do not edit by hand.
# Raw Ed25519 public keys (urlsafe base64) trusted by the verifier, by key version.
from typing import Dict

EMBEDDED_PUBLIC_KEYS: Dict[int, str] = {entries}
'''


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Embed the issuer public key into the verifying build.")
    p.add_argument("--public-key", default="", help="Path to public_key.pem to embed")
    p.add_argument("--version", type=int, default=KEY_VERSION, help="Key version the public key signs")
    p.add_argument(
        "--check",
        action="store_true",
        help="Only check that a usable public key is embedded; exit non-zero otherwise.",
    )
    p.add_argument("--anchor", default=str(ANCHOR_PATH), help="Trust anchor module to write")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return p.parse_args(argv)


def render_anchor(keys: Dict[int, str]) -> str:
    if keys:
        body = "{\n" + "".join(f"    {v}: {keys[v]!r},\n" for v in sorted(keys)) + "}"
    else:
        body = "{}"
    return ANCHOR_TEMPLATE.format(entries=body)


def check_embedded(version: int = KEY_VERSION) -> str:
    """Return the embedded key for *version*, or raise LicenseConfigError."""
    importlib.reload(trust_anchor)
    text = trust_anchor.EMBEDDED_PUBLIC_KEYS.get(version)
    if not text:
        raise LicenseConfigError(f"no public key embedded for key version {version}")
    public_key_from_b64(text)
    return text


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)

    if args.check:
        try:
            text = check_embedded(args.version)
        except LicenseConfigError as exc:
            raise SystemExit(f"Build check failed: {exc}")
        print(f"Embedded public key for version {args.version}: {text}")
        return

    if not args.public_key:
        raise SystemExit("--public-key is required unless --check is given.")
    key_path = Path(args.public_key).expanduser().resolve()
    if not key_path.exists():
        raise SystemExit(
            f"Missing public key file: {key_path}\n"
            "Run license_tool.generate_keys first and pass the generated public_key.pem."
        )
    try:
        encoded = public_key_to_b64(load_public_key(key_path))
    except LicenseConfigError as exc:
        raise SystemExit(str(exc))

    anchor_path = Path(args.anchor).expanduser().resolve()
    keys = dict(trust_anchor.EMBEDDED_PUBLIC_KEYS) if anchor_path == ANCHOR_PATH else {}
    keys[args.version] = encoded
    anchor_path.write_text(render_anchor(keys), encoding="utf-8")
    print(f"Embedded public key for version {args.version} into {anchor_path}")


if __name__ == "__main__":
    main()
