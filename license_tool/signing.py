from __future__ import annotations

import base64
import binascii
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Tuple

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .errors import LicenseConfigError, SigningError

SIGNATURE_SIZE = 64
PUBLIC_KEY_SIZE = 32

logger = logging.getLogger(__name__)


def generate_keypair() -> Tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    private_key = Ed25519PrivateKey.generate()
    return private_key, private_key.public_key()


def private_key_to_pem(key: Ed25519PrivateKey, password: bytes | None = None) -> bytes:
    if password:
        encryption = serialization.BestAvailableEncryption(password)
    else:
        encryption = serialization.NoEncryption()
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )


def public_key_to_pem(key: Ed25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def public_key_to_b64(key: Ed25519PublicKey) -> str:
    raw = key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return base64.urlsafe_b64encode(raw).decode("ascii")


def public_key_from_b64(text: str) -> Ed25519PublicKey:
    try:
        raw = base64.urlsafe_b64decode(text.strip().encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
        raise LicenseConfigError(f"public key is not valid base64: {exc}") from exc
    if len(raw) != PUBLIC_KEY_SIZE:
        raise LicenseConfigError(f"public key must be {PUBLIC_KEY_SIZE} bytes, got {len(raw)}")
    return Ed25519PublicKey.from_public_bytes(raw)


def load_public_key(path: Path) -> Ed25519PublicKey:
    pem = path.read_bytes()
    try:
        pub = serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise LicenseConfigError(f"{path.name} is not a PEM public key: {exc}") from exc
    if not isinstance(pub, Ed25519PublicKey):
        raise LicenseConfigError(f"{path.name} is not an Ed25519 public key.")
    return pub


def load_private_key(pem: bytes | bytearray, password: bytes | None = None) -> Ed25519PrivateKey:
    try:
        key = serialization.load_pem_private_key(pem, password=password)
    except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
        raise SigningError(f"unable to load private key: {exc}") from exc
    if not isinstance(key, Ed25519PrivateKey):
        raise SigningError("private key is not Ed25519.")
    return key


@contextmanager
def signing_key(path: Path, password: bytes | None = None) -> Iterator[Ed25519PrivateKey]:
    """Load the issuer key from *path* for the duration of a ``with`` block.

    The PEM buffer is overwritten and the key object released when the block
    exits, whether it finished normally or raised.
    """
    try:
        buf = bytearray(path.read_bytes())
    except OSError as exc:
        raise SigningError(f"unable to read private key: {exc}") from exc
    key = None
    try:
        key = load_private_key(buf, password=password)
        logger.debug("Loaded signing key from %s", path)
        yield key
    finally:
        buf[:] = bytes(len(buf))
        del key
        logger.debug("Released signing key")


def sign(private_key: Ed25519PrivateKey, data: bytes) -> bytes:
    if not isinstance(private_key, Ed25519PrivateKey):
        raise SigningError("an Ed25519 private key is required for signing.")
    return private_key.sign(bytes(data))


def verify(public_key: Ed25519PublicKey, data: bytes, signature: bytes) -> bool:
    if not isinstance(public_key, Ed25519PublicKey):
        return False
    if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_SIZE:
        return False
    if not isinstance(data, (bytes, bytearray)):
        return False
    try:
        public_key.verify(bytes(signature), bytes(data))
    except (InvalidSignature, ValueError):
        return False
    return True
