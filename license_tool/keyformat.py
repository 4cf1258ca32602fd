"""Human-typable license keys: version tag, base32 body and checksum in dashed groups of five."""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .config import CHECKSUM_LENGTH, KEY_ALPHABET, KEY_GROUP_SIZE, KEY_TAG_PREFIX, KEY_VERSION
from .encoding import PAYLOAD_SIZE
from .errors import KeyFormatError
from .signing import SIGNATURE_SIZE

_STD_B32 = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_TO_KEY = str.maketrans(_STD_B32, KEY_ALPHABET)
_FROM_KEY = str.maketrans(KEY_ALPHABET, _STD_B32)
_ALPHABET_SET = frozenset(KEY_ALPHABET)
TAG_LENGTH = len(KEY_TAG_PREFIX) + 1

# version -> (payload bytes, signature bytes)
LAYOUTS: Dict[int, Tuple[int, int]] = {
    1: (PAYLOAD_SIZE, SIGNATURE_SIZE),
}


@dataclass(frozen=True)
class RawKey:
    version: int
    tag: str
    body: str
    checksum: str


@dataclass(frozen=True)
class ParsedKey:
    version: int
    tag: str
    payload: bytes
    signature: bytes

    @property
    def signed_message(self) -> bytes:
        return signed_message(self.tag, self.payload)


def version_tag(version: int) -> str:
    if not 0 <= version < len(KEY_ALPHABET):
        raise ValueError(f"version out of range: {version}")
    return KEY_TAG_PREFIX + KEY_ALPHABET[version]


def signed_message(tag: str, payload: bytes) -> bytes:
    return tag.encode("ascii") + payload


def _body_length(version: int) -> int:
    payload_size, signature_size = LAYOUTS[version]
    bits = (payload_size + signature_size) * 8
    return -(-bits // 5)


def key_length(version: int = KEY_VERSION) -> int:
    """Number of key characters, dashes excluded."""
    return TAG_LENGTH + _body_length(version) + CHECKSUM_LENGTH


def compute_checksum(text: str) -> str:
    digest = hashlib.sha256(text.encode("ascii")).digest()
    value = int.from_bytes(digest[:4], "big") >> (32 - 5 * CHECKSUM_LENGTH)
    chars: List[str] = []
    for shift in range(5 * (CHECKSUM_LENGTH - 1), -1, -5):
        chars.append(KEY_ALPHABET[(value >> shift) & 0x1F])
    return "".join(chars)


def _b32_encode(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").rstrip("=").translate(_TO_KEY)


def _b32_decode(text: str) -> bytes:
    std = text.translate(_FROM_KEY)
    std += "=" * (-len(std) % 8)
    return base64.b32decode(std)


def group(chars: str) -> str:
    return "-".join(chars[i:i + KEY_GROUP_SIZE] for i in range(0, len(chars), KEY_GROUP_SIZE))


def format_key(payload: bytes, signature: bytes, version: int = KEY_VERSION) -> str:
    if version not in LAYOUTS:
        raise ValueError(f"unsupported key version: {version}")
    payload_size, signature_size = LAYOUTS[version]
    if len(payload) != payload_size:
        raise ValueError(f"payload must be {payload_size} bytes, got {len(payload)}")
    if len(signature) != signature_size:
        raise ValueError(f"signature must be {signature_size} bytes, got {len(signature)}")
    tag = version_tag(version)
    text = tag + _b32_encode(bytes(payload) + bytes(signature))
    return group(text + compute_checksum(text))


def split_key(text: object) -> RawKey:
    """Check the structure of *text* and cut it into tag, body and checksum."""
    if not isinstance(text, str):
        raise KeyFormatError("license key must be a string")
    cleaned = text.strip().upper()
    if not cleaned:
        raise KeyFormatError("license key is empty")

    groups = cleaned.split("-")
    for index, chunk in enumerate(groups):
        if any(ch not in _ALPHABET_SET for ch in chunk):
            raise KeyFormatError(f"group {index + 1} contains characters outside the key alphabet")
        if len(chunk) != KEY_GROUP_SIZE and index != len(groups) - 1:
            raise KeyFormatError(f"group {index + 1} must have {KEY_GROUP_SIZE} characters")

    chars = "".join(groups)
    if len(chars) < TAG_LENGTH or not chars.startswith(KEY_TAG_PREFIX):
        raise KeyFormatError("license key has no version tag")
    version = KEY_ALPHABET.index(chars[len(KEY_TAG_PREFIX)])
    if version not in LAYOUTS:
        raise KeyFormatError(f"unsupported license key version: {version}")

    expected = key_length(version)
    if len(chars) != expected:
        raise KeyFormatError(f"license key must have {expected} characters, got {len(chars)}")
    if len(groups[-1]) != KEY_GROUP_SIZE or len(groups) != -(-expected // KEY_GROUP_SIZE):
        raise KeyFormatError("license key groups are malformed")

    tag = chars[:TAG_LENGTH]
    return RawKey(
        version=version,
        tag=tag,
        body=chars[TAG_LENGTH:-CHECKSUM_LENGTH],
        checksum=chars[-CHECKSUM_LENGTH:],
    )


def verify_checksum(raw: RawKey) -> None:
    expected = compute_checksum(raw.tag + raw.body)
    if not hmac.compare_digest(expected, raw.checksum):
        raise KeyFormatError("license key checksum does not match", reason=KeyFormatError.CHECKSUM)


def decode_body(raw: RawKey) -> ParsedKey:
    payload_size, signature_size = LAYOUTS[raw.version]
    try:
        data = _b32_decode(raw.body)
    except (binascii.Error, ValueError) as exc:
        raise KeyFormatError(f"license key body is not decodable: {exc}") from exc
    if len(data) != payload_size + signature_size:
        raise KeyFormatError("license key body has the wrong length")
    if _b32_encode(data) != raw.body:
        raise KeyFormatError("license key body is not canonical")
    return ParsedKey(
        version=raw.version,
        tag=raw.tag,
        payload=data[:payload_size],
        signature=data[payload_size:],
    )


def parse_key(text: object) -> ParsedKey:
    raw = split_key(text)
    verify_checksum(raw)
    return decode_body(raw)


def redact_key(text: object) -> str:
    if not isinstance(text, str):
        return "<invalid>"
    cleaned = text.strip()
    return cleaned[:7] + "..." if len(cleaned) > 7 else "***"
