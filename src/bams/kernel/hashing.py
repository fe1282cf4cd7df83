from __future__ import annotations

import hashlib
import json
from typing import Any


ROOT_SENTINEL = "0"


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


def sha256_hex(value: str | bytes) -> str:
    data = value if isinstance(value, (bytes, bytearray)) else value.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def canonical_encode(timestamp: int, payload: Any, prev_hash: str, nonce: int) -> bytes:
    """Byte encoding hashed by the sealer and the validator.

    Fields are always emitted as the JSON array ``[timestamp, payload, prev_hash, nonce]``
    with sorted object keys and no insignificant whitespace, so the digest of a stored
    block is reproducible after any reload.
    """
    return canonical_json([int(timestamp), payload, prev_hash, int(nonce)]).encode("utf-8")


def block_digest(timestamp: int, payload: Any, prev_hash: str, nonce: int) -> str:
    return hashlib.sha256(canonical_encode(timestamp, payload, prev_hash, nonce)).hexdigest()


def meets_difficulty(digest: str, difficulty: int) -> bool:
    return digest.startswith("0" * difficulty)


__all__ = [
    "ROOT_SENTINEL",
    "block_digest",
    "canonical_encode",
    "canonical_json",
    "meets_difficulty",
    "sha256_hex",
]
