from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from bams.provenance.sealer import DEFAULT_DIFFICULTY, Block, seal


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Chain:
    """Append-only sequence of sealed blocks owned by a single entity."""

    label: str
    blocks: list[Block] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def genesis(self) -> Block:
        return self.blocks[0]

    def blocks_of_type(self, kind: str) -> list[Block]:
        return [block for block in self.blocks if block.kind == kind]

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.label, "chain": [block.to_dict() for block in self.blocks]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Chain":
        raw_blocks = data.get("chain")
        if not isinstance(raw_blocks, list) or not raw_blocks:
            raise ValueError("chain must contain at least the genesis block")
        return cls(label=str(data.get("name", "")), blocks=[Block.from_dict(item) for item in raw_blocks])


def tip(chain: Chain) -> Block:
    return chain.blocks[-1]


def create_genesis(
    label: str,
    parent_hash: str,
    *,
    difficulty: int = DEFAULT_DIFFICULTY,
    now_fn: Callable[[], int] | None = None,
    max_attempts: int | None = None,
) -> Chain:
    timestamp = (now_fn or now_ms)()
    genesis = seal(
        0,
        timestamp,
        {"type": "genesis", "name": label},
        parent_hash,
        difficulty,
        max_attempts=max_attempts,
    )
    return Chain(label=label, blocks=[genesis])


def append_block(
    chain: Chain,
    payload: Any,
    *,
    difficulty: int = DEFAULT_DIFFICULTY,
    now_fn: Callable[[], int] | None = None,
    max_attempts: int | None = None,
) -> Block:
    timestamp = (now_fn or now_ms)()
    block = seal(
        len(chain.blocks),
        timestamp,
        payload,
        tip(chain).hash,
        difficulty,
        max_attempts=max_attempts,
    )
    chain.blocks.append(block)
    return block


__all__ = ["Chain", "append_block", "create_genesis", "now_ms", "tip"]
