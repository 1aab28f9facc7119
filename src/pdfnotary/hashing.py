"""Hash families used for identifiers and fingerprints.

Two families, deliberately not interchangeable:

* content hash (Keccak-256): raw file bytes and canonical metadata bytes.
  These digests are the identifiers stored by the registry contract.
* fingerprint hash (SHA-256): extracted text, model name and prompt template.

Both render as ``0x`` followed by 64 lowercase hex characters.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Callable

from Crypto.Hash import keccak

HashFunction = Callable[[bytes], str]


def utf8_bytes(text: str) -> bytes:
    """UTF-8 encode ``text``, replacing unpaired surrogates with U+FFFD.

    Surrogate pairs held as two code points are joined into one character
    first, so the bytes match what a JavaScript ``TextEncoder`` produces.
    """

    try:
        return text.encode("utf-8")
    except UnicodeEncodeError:
        repaired = text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")
        return repaired.encode("utf-8")


def keccak256_digest(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def keccak256_hex(data: bytes) -> str:
    """Keccak-256 (pre-standard SHA-3 padding) as used by EVM contracts."""

    return "0x" + keccak256_digest(data).hex()


def sha256_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = utf8_bytes(data)
    return "0x" + hashlib.sha256(data).hexdigest()


def function_selector(signature: str) -> str:
    """Four-byte ABI selector for a canonical function signature, without prefix."""

    return keccak256_digest(signature.encode("ascii"))[:4].hex()


@dataclass(frozen=True)
class HashingService:
    """Binds the two hash families behind named, swappable callables."""

    content_hash: HashFunction = keccak256_hex
    fingerprint_hash: HashFunction = sha256_hex

    def content_identifier(self, content: bytes) -> str:
        return self.content_hash(content)

    def metadata_identifier(self, canonical: str) -> str:
        return self.content_hash(utf8_bytes(canonical))

    def fingerprint(self, text: str) -> str:
        return self.fingerprint_hash(utf8_bytes(text))


def default_hashing() -> HashingService:
    return HashingService()


__all__ = [
    "HashFunction",
    "HashingService",
    "default_hashing",
    "function_selector",
    "keccak256_digest",
    "keccak256_hex",
    "sha256_hex",
    "utf8_bytes",
]
