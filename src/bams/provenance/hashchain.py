from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bams.config import AnchorMode
from bams.kernel.hashing import meets_difficulty
from bams.provenance.chain import Chain, tip
from bams.provenance.entities import Anchor, Entity, EntityKind, Forest
from bams.provenance.sealer import DEFAULT_DIFFICULTY


@dataclass(frozen=True)
class ChainCheck:
    ok: bool
    index: int | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "index": self.index, "reason": self.reason}


def inspect_chain(chain: Chain, difficulty: int = DEFAULT_DIFFICULTY) -> ChainCheck:
    """Walk ``chain`` and report the first block that breaks integrity, if any."""
    if not chain.blocks:
        return ChainCheck(ok=False, reason="empty_chain")

    previous_hash: str | None = None
    for position, block in enumerate(chain.blocks):
        if block.index != position:
            return ChainCheck(ok=False, index=position, reason="index_mismatch")
        if block.compute_hash() != block.hash:
            return ChainCheck(ok=False, index=position, reason="hash_mismatch")
        if position == 0 and block.kind != "genesis":
            return ChainCheck(ok=False, index=position, reason="not_genesis")
        if position > 0 and block.prev_hash != previous_hash:
            return ChainCheck(ok=False, index=position, reason="prev_hash_mismatch")
        if not meets_difficulty(block.hash, difficulty):
            return ChainCheck(ok=False, index=position, reason="difficulty_not_met")
        previous_hash = block.hash

    return ChainCheck(ok=True)


def validate_chain(chain: Chain, difficulty: int = DEFAULT_DIFFICULTY) -> bool:
    return inspect_chain(chain, difficulty).ok


def validate_anchor(
    child_chain: Chain,
    parent_chain: Chain,
    *,
    mode: AnchorMode = AnchorMode.SNAPSHOT,
    anchor: Anchor | None = None,
) -> bool:
    """Check that ``child_chain``'s genesis still points into ``parent_chain``.

    ``LIVE`` compares against the parent's current tip, so every later parent
    mutation reports ``False``. ``SNAPSHOT`` compares against the parent block
    recorded when the child was created; without a recorded anchor, any parent
    block carrying the genesis ``prev_hash`` is accepted.
    """
    if not child_chain.blocks or not parent_chain.blocks:
        return False

    linked_hash = child_chain.genesis.prev_hash
    if mode is AnchorMode.LIVE:
        return linked_hash == tip(parent_chain).hash

    if anchor is None:
        return any(block.hash == linked_hash for block in parent_chain.blocks)
    if anchor.hash != linked_hash:
        return False
    if not 0 <= anchor.index < len(parent_chain.blocks):
        return False
    return parent_chain.blocks[anchor.index].hash == anchor.hash


@dataclass(frozen=True)
class EntityResult:
    id: str
    name: str
    valid: bool
    chain_valid: bool
    anchor_valid: bool | None = None
    reason: str | None = None
    failed_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "valid": self.valid,
            "chain_valid": self.chain_valid,
            "anchor_valid": self.anchor_valid,
            "reason": self.reason,
            "failed_index": self.failed_index,
        }


@dataclass(frozen=True)
class ValidationReport:
    departments: tuple[EntityResult, ...]
    classes: tuple[EntityResult, ...]
    students: tuple[EntityResult, ...]
    overall: bool
    anchor_mode: AnchorMode

    @property
    def failures(self) -> list[EntityResult]:
        return [result for result in (*self.departments, *self.classes, *self.students) if not result.valid]

    def to_dict(self) -> dict[str, Any]:
        return {
            "departments": [result.to_dict() for result in self.departments],
            "classes": [result.to_dict() for result in self.classes],
            "students": [result.to_dict() for result in self.students],
            "overall": self.overall,
            "anchor_mode": self.anchor_mode.value,
        }


def _check_entity(
    entity: Entity,
    forest: Forest,
    *,
    mode: AnchorMode,
    difficulty: int,
) -> EntityResult:
    chain_check = inspect_chain(entity.chain, difficulty)
    reason = chain_check.reason

    anchor_valid: bool | None = None
    parent_kind = entity.kind.parent
    if parent_kind is not None:
        parent = forest.find(parent_kind, entity.parent_id)
        if parent is None:
            anchor_valid = False
            reason = reason or "parent_missing"
        else:
            anchor_valid = validate_anchor(entity.chain, parent.chain, mode=mode, anchor=entity.anchor)
            if not anchor_valid:
                reason = reason or "anchor_mismatch"

    valid = chain_check.ok and anchor_valid is not False
    return EntityResult(
        id=entity.id,
        name=entity.name,
        valid=valid,
        chain_valid=chain_check.ok,
        anchor_valid=anchor_valid,
        reason=reason,
        failed_index=chain_check.index,
    )


def validate_all(
    forest: Forest,
    *,
    mode: AnchorMode = AnchorMode.SNAPSHOT,
    difficulty: int = DEFAULT_DIFFICULTY,
) -> ValidationReport:
    grouped: dict[EntityKind, tuple[EntityResult, ...]] = {}
    for kind in EntityKind:
        grouped[kind] = tuple(
            _check_entity(entity, forest, mode=mode, difficulty=difficulty) for entity in forest.of(kind)
        )

    overall = all(result.valid for results in grouped.values() for result in results)
    return ValidationReport(
        departments=grouped[EntityKind.DEPARTMENT],
        classes=grouped[EntityKind.CLASS],
        students=grouped[EntityKind.STUDENT],
        overall=overall,
        anchor_mode=mode,
    )


__all__ = [
    "ChainCheck",
    "EntityResult",
    "ValidationReport",
    "inspect_chain",
    "validate_all",
    "validate_anchor",
    "validate_chain",
]
