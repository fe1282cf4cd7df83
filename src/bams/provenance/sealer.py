"""Proof-of-work sealing of individual blocks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from bams.kernel.failures import SealingExhausted
from bams.kernel.hashing import block_digest, meets_difficulty

DEFAULT_DIFFICULTY = 4


@dataclass(frozen=True)
class Block:
    index: int
    timestamp: int
    payload: Any
    prev_hash: str
    nonce: int
    hash: str

    @property
    def kind(self) -> str | None:
        if isinstance(self.payload, Mapping):
            value = self.payload.get("type")
            return value if isinstance(value, str) else None
        return None

    def compute_hash(self) -> str:
        return block_digest(self.timestamp, self.payload, self.prev_hash, self.nonce)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "transactions": self.payload,
            "prev_hash": self.prev_hash,
            "nonce": self.nonce,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Block":
        # Stored hash and nonce are taken verbatim; re-sealing here would hide tampering.
        return cls(
            index=int(data["index"]),
            timestamp=int(data["timestamp"]),
            payload=data["transactions"],
            prev_hash=str(data["prev_hash"]),
            nonce=int(data["nonce"]),
            hash=str(data["hash"]),
        )


def seal(
    index: int,
    timestamp: int,
    payload: Any,
    prev_hash: str,
    difficulty: int = DEFAULT_DIFFICULTY,
    *,
    start_nonce: int = 0,
    max_attempts: int | None = None,
) -> Block:
    """Search nonces from ``start_nonce`` until the digest carries ``difficulty`` leading zeros.

    Expected work is about ``16 ** difficulty`` digests. With ``max_attempts`` unset the
    search is unbounded; otherwise ``SealingExhausted`` is raised once the budget is spent.
    """
    if difficulty < 0:
        raise ValueError("difficulty must be >= 0")
    if start_nonce < 0:
        raise ValueError("start_nonce must be >= 0")

    nonce = start_nonce
    attempts = 0
    while True:
        if max_attempts is not None and attempts >= max_attempts:
            raise SealingExhausted(
                f"no nonce in [{start_nonce}, {nonce}) meets difficulty {difficulty} for block {index}"
            )
        digest = block_digest(timestamp, payload, prev_hash, nonce)
        attempts += 1
        if meets_difficulty(digest, difficulty):
            return Block(
                index=index,
                timestamp=timestamp,
                payload=payload,
                prev_hash=prev_hash,
                nonce=nonce,
                hash=digest,
            )
        nonce += 1


__all__ = ["DEFAULT_DIFFICULTY", "Block", "seal"]
