"""Entity operations that thread parent tips into child genesis blocks.

Every operation loads the collection it needs, touches exactly one entity's
chain and saves that collection back. Ancestor and descendant chains are only
ever read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

from bams.config import AnchorMode, BamsConfig
from bams.kernel.failures import NotFoundError, ValidationInputError
from bams.kernel.hashing import ROOT_SENTINEL
from bams.provenance.chain import Chain, append_block, create_genesis, now_ms, tip
from bams.provenance.entities import Anchor, Entity, EntityKind
from bams.provenance.hashchain import ChainCheck, ValidationReport, inspect_chain, validate_all
from bams.provenance.sealer import DEFAULT_DIFFICULTY, Block
from bams.provenance.store import EntityStore, load_forest

ATTENDANCE_STATUSES = ("Present", "Absent")

DEFAULT_DEPARTMENTS = ("School of Computing", "School of Software Engineering")

_ID_PREFIXES = {
    EntityKind.DEPARTMENT: "dept",
    EntityKind.CLASS: "class",
    EntityKind.STUDENT: "student",
}


def create_root_chain(
    label: str,
    *,
    difficulty: int = DEFAULT_DIFFICULTY,
    now_fn: Callable[[], int] | None = None,
    max_attempts: int | None = None,
) -> Chain:
    return create_genesis(label, ROOT_SENTINEL, difficulty=difficulty, now_fn=now_fn, max_attempts=max_attempts)


def create_child_chain(
    label: str,
    parent_chain: Chain,
    *,
    difficulty: int = DEFAULT_DIFFICULTY,
    now_fn: Callable[[], int] | None = None,
    max_attempts: int | None = None,
) -> Chain:
    # The parent tip is copied once; later parent blocks never rewrite this link.
    return create_genesis(
        label,
        tip(parent_chain).hash,
        difficulty=difficulty,
        now_fn=now_fn,
        max_attempts=max_attempts,
    )


def anchor_of(parent_chain: Chain) -> Anchor:
    last = tip(parent_chain)
    return Anchor(index=last.index, hash=last.hash)


def append_to(
    chain: Chain,
    payload: Any,
    *,
    difficulty: int = DEFAULT_DIFFICULTY,
    now_fn: Callable[[], int] | None = None,
    max_attempts: int | None = None,
) -> Block:
    return append_block(chain, payload, difficulty=difficulty, now_fn=now_fn, max_attempts=max_attempts)


def _require_text(value: Any, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationInputError(f"{field} is required")
    text = str(value).strip()
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationInputError(f"{field} is not valid UTF-8 text") from exc
    return text


def _normalize_status(status: Any) -> str:
    raw = _require_text(status, "status")
    for candidate in ATTENDANCE_STATUSES:
        if raw.lower() == candidate.lower():
            return candidate
    raise ValidationInputError(f"status must be one of {', '.join(ATTENDANCE_STATUSES)}")


def _normalize_date(value: str) -> str:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()
    except ValueError as exc:
        raise ValidationInputError(f"date must be YYYY-MM-DD: {value}") from exc


class LedgerRegistry:
    def __init__(
        self,
        store: EntityStore,
        cfg: BamsConfig | None = None,
        *,
        now_fn: Callable[[], int] | None = None,
        id_fn: Callable[[EntityKind], str] | None = None,
    ):
        self.store = store
        self.cfg = cfg or BamsConfig()
        self._now = now_fn or now_ms
        self._new_id = id_fn or (lambda kind: f"{_ID_PREFIXES[kind]}-{uuid4().hex[:12]}")

    def _seal_options(self) -> dict[str, Any]:
        return {
            "difficulty": self.cfg.difficulty,
            "now_fn": self._now,
            "max_attempts": self.cfg.seal_budget,
        }

    @staticmethod
    def _index_of(entities: list[Entity], kind: EntityKind, entity_id: str) -> int:
        for position, entity in enumerate(entities):
            if entity.id == entity_id:
                return position
        raise NotFoundError(f"{kind.value} {entity_id} not found")

    def get(self, kind: EntityKind, entity_id: str) -> Entity:
        entities = self.store.load(kind)
        return entities[self._index_of(entities, kind, entity_id)]

    def _live_parent(self, kind: EntityKind, parent_id: str) -> Entity:
        parent = self.get(kind, parent_id)
        if parent.deleted:
            raise ValidationInputError(f"{kind.value} {parent_id} is deleted")
        return parent

    def _insert(self, entity: Entity) -> Entity:
        entities = self.store.load(entity.kind)
        if any(existing.id == entity.id for existing in entities):
            raise ValidationInputError(f"{entity.kind.value} {entity.id} already exists")
        entities.append(entity)
        self.store.save(entity.kind, entities)
        return entity

    def _create_child(
        self,
        kind: EntityKind,
        parent: Entity,
        *,
        entity_id: str,
        name: str,
        label: str,
        **attributes: Any,
    ) -> Entity:
        anchor = anchor_of(parent.chain)
        chain = create_child_chain(label, parent.chain, **self._seal_options())
        return self._insert(
            Entity(
                kind=kind,
                id=entity_id,
                name=name,
                chain=chain,
                anchor=anchor,
                created_at=self._now(),
                **attributes,
            )
        )

    def create_department(self, name: str, *, entity_id: str | None = None) -> Entity:
        clean_name = _require_text(name, "name")
        chain = create_root_chain(clean_name, **self._seal_options())
        return self._insert(
            Entity(
                kind=EntityKind.DEPARTMENT,
                id=entity_id or self._new_id(EntityKind.DEPARTMENT),
                name=clean_name,
                chain=chain,
                created_at=self._now(),
            )
        )

    def create_class(self, name: str, dept_id: str, *, entity_id: str | None = None) -> Entity:
        clean_name = _require_text(name, "name")
        dept = self._live_parent(EntityKind.DEPARTMENT, _require_text(dept_id, "deptId"))
        return self._create_child(
            EntityKind.CLASS,
            dept,
            entity_id=entity_id or self._new_id(EntityKind.CLASS),
            name=clean_name,
            label=f"{dept.name} - {clean_name}",
            dept_id=dept.id,
        )

    def create_student(
        self,
        name: str,
        roll_no: str,
        class_id: str,
        dept_id: str | None = None,
        *,
        entity_id: str | None = None,
    ) -> Entity:
        clean_name = _require_text(name, "name")
        clean_roll = _require_text(roll_no, "rollNo")
        cls = self._live_parent(EntityKind.CLASS, _require_text(class_id, "classId"))
        if dept_id is not None and dept_id != cls.dept_id:
            raise ValidationInputError(f"class {cls.id} does not belong to department {dept_id}")
        return self._create_child(
            EntityKind.STUDENT,
            cls,
            entity_id=entity_id or self._new_id(EntityKind.STUDENT),
            name=clean_name,
            label=f"Student {clean_roll}",
            dept_id=cls.dept_id,
            class_id=cls.id,
            roll_no=clean_roll,
        )

    def _mutate(
        self,
        kind: EntityKind,
        entity_id: str,
        build: Callable[[Entity, int], tuple[dict[str, Any], Callable[[Entity], None]]],
    ) -> tuple[Block, Entity]:
        entities = self.store.load(kind)
        entity = entities[self._index_of(entities, kind, entity_id)]
        if entity.deleted:
            raise ValidationInputError(f"{kind.value} {entity_id} is deleted")

        ts = self._now()
        payload, apply = build(entity, ts)
        block = append_to(entity.chain, payload, **self._seal_options())
        apply(entity)
        self.store.save(kind, entities)
        return block, entity

    def rename(self, kind: EntityKind, entity_id: str, name: str) -> Entity:
        if kind is EntityKind.STUDENT:
            return self.update_student(entity_id, name=name)
        clean_name = _require_text(name, "name")

        def build(entity: Entity, ts: int):
            payload = {
                "type": "update",
                "action": "name_updated",
                "oldName": entity.name,
                "newName": clean_name,
                "timestamp": ts,
            }

            def apply(target: Entity) -> None:
                target.name = clean_name
                target.updated_at = ts

            return payload, apply

        return self._mutate(kind, entity_id, build)[1]

    def update_student(self, student_id: str, name: str | None = None, roll_no: str | None = None) -> Entity:
        if not (name or "").strip() and not (roll_no or "").strip():
            raise ValidationInputError("name or rollNo is required")

        def build(entity: Entity, ts: int):
            new_name = (name or "").strip() or entity.name
            new_roll = (roll_no or "").strip() or entity.roll_no
            payload = {
                "type": "update",
                "action": "student_updated",
                "oldData": {"name": entity.name, "rollNo": entity.roll_no},
                "newData": {"name": new_name, "rollNo": new_roll},
                "timestamp": ts,
            }

            def apply(target: Entity) -> None:
                target.name = new_name
                target.roll_no = new_roll
                target.updated_at = ts

            return payload, apply

        return self._mutate(EntityKind.STUDENT, student_id, build)[1]

    def delete(self, kind: EntityKind, entity_id: str) -> Entity:
        def build(entity: Entity, ts: int):
            payload: dict[str, Any] = {"type": "delete", "status": "deleted", "name": entity.name}
            if kind is EntityKind.STUDENT:
                payload["rollNo"] = entity.roll_no
            payload["timestamp"] = ts

            def apply(target: Entity) -> None:
                target.deleted = True
                target.deleted_at = ts

            return payload, apply

        return self._mutate(kind, entity_id, build)[1]

    def mark_attendance(self, student_id: str, status: str, date: str | None = None) -> tuple[Block, Entity]:
        clean_status = _normalize_status(status)
        clean_date = _normalize_date(date) if date is not None else None

        def build(entity: Entity, ts: int):
            day = clean_date or datetime.fromtimestamp(ts / 1000, tz=timezone.utc).date().isoformat()
            payload = {
                "type": "attendance",
                "studentId": entity.id,
                "studentName": entity.name,
                "rollNo": entity.roll_no,
                "deptId": entity.dept_id,
                "classId": entity.class_id,
                "status": clean_status,
                "date": day,
                "timestamp": ts,
            }
            return payload, lambda target: None

        return self._mutate(EntityKind.STUDENT, _require_text(student_id, "studentId"), build)

    def attendance_history(self, student_id: str) -> list[Block]:
        return self.get(EntityKind.STUDENT, student_id).chain.blocks_of_type("attendance")

    def check_chain(self, kind: EntityKind, entity_id: str) -> ChainCheck:
        return inspect_chain(self.get(kind, entity_id).chain, self.cfg.difficulty)

    def validate(self, mode: AnchorMode | None = None) -> ValidationReport:
        return validate_all(
            load_forest(self.store),
            mode=mode or self.cfg.anchor_mode,
            difficulty=self.cfg.difficulty,
        )

    def seed_defaults(
        self,
        *,
        departments: tuple[str, ...] = DEFAULT_DEPARTMENTS,
        classes_per_department: int = 5,
        students_per_class: int = 35,
    ) -> dict[str, int]:
        """Populate an empty store with the stock departments, classes and students."""
        if any(self.store.load(kind) for kind in EntityKind):
            raise ValidationInputError("seeding requires an empty store")

        counts = {kind.collection: 0 for kind in EntityKind}
        for dept_idx, dept_name in enumerate(departments):
            dept = self.create_department(dept_name, entity_id=f"dept{dept_idx + 1}")
            counts["departments"] += 1
            for i in range(1, classes_per_department + 1):
                cls = self.create_class(f"Class {i}", dept.id, entity_id=f"{dept.id}_class{i}")
                counts["classes"] += 1
                for j in range(1, students_per_class + 1):
                    roll_no = f"{dept_idx + 1}{i}{j:03d}"
                    self.create_student(
                        f"Student {roll_no}",
                        roll_no,
                        cls.id,
                        dept.id,
                        entity_id=f"{cls.id}_student{j}",
                    )
                    counts["students"] += 1
        return counts


__all__ = [
    "ATTENDANCE_STATUSES",
    "LedgerRegistry",
    "anchor_of",
    "append_to",
    "create_child_chain",
    "create_root_chain",
]
