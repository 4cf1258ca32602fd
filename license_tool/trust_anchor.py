# Generated by license_tool.embed_public_key. Do not edit by hand.
# Raw Ed25519 public keys (urlsafe base64) trusted by the verifier, by key version.
from typing import Dict

EMBEDDED_PUBLIC_KEYS: Dict[int, str] = {}
