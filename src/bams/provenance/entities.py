"""Department, class and student records as plain data around a chain."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from bams.provenance.chain import Chain


class EntityKind(str, Enum):
    DEPARTMENT = "department"
    CLASS = "class"
    STUDENT = "student"

    @property
    def parent(self) -> "EntityKind | None":
        return _PARENTS[self]

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]


_PARENTS = {
    EntityKind.DEPARTMENT: None,
    EntityKind.CLASS: EntityKind.DEPARTMENT,
    EntityKind.STUDENT: EntityKind.CLASS,
}

_COLLECTIONS = {
    EntityKind.DEPARTMENT: "departments",
    EntityKind.CLASS: "classes",
    EntityKind.STUDENT: "students",
}


@dataclass(frozen=True)
class Anchor:
    """Parent block a child chain was anchored to when it was created."""

    index: int
    hash: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "hash": self.hash}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Anchor":
        return cls(index=int(data["index"]), hash=str(data["hash"]))


@dataclass
class Entity:
    kind: EntityKind
    id: str
    name: str
    chain: Chain
    dept_id: str | None = None
    class_id: str | None = None
    roll_no: str | None = None
    anchor: Anchor | None = None
    deleted: bool = False
    created_at: int = 0
    updated_at: int | None = None
    deleted_at: int | None = None

    @property
    def parent_id(self) -> str | None:
        if self.kind is EntityKind.CLASS:
            return self.dept_id
        if self.kind is EntityKind.STUDENT:
            return self.class_id
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.roll_no is not None:
            data["rollNo"] = self.roll_no
        if self.dept_id is not None:
            data["deptId"] = self.dept_id
        if self.class_id is not None:
            data["classId"] = self.class_id
        data["blockchain"] = self.chain.to_dict()
        if self.anchor is not None:
            data["anchor"] = self.anchor.to_dict()
        data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        if self.deleted:
            data["deleted"] = True
            data["deletedAt"] = self.deleted_at
        return data

    @classmethod
    def from_dict(cls, kind: EntityKind, data: Mapping[str, Any]) -> "Entity":
        raw_anchor = data.get("anchor")
        return cls(
            kind=kind,
            id=str(data["id"]),
            name=str(data["name"]),
            chain=Chain.from_dict(data["blockchain"]),
            dept_id=data.get("deptId"),
            class_id=data.get("classId"),
            roll_no=data.get("rollNo"),
            anchor=Anchor.from_dict(raw_anchor) if isinstance(raw_anchor, Mapping) else None,
            deleted=bool(data.get("deleted", False)),
            created_at=int(data.get("createdAt", 0)),
            updated_at=data.get("updatedAt"),
            deleted_at=data.get("deletedAt"),
        )


@dataclass
class Forest:
    departments: list[Entity] = field(default_factory=list)
    classes: list[Entity] = field(default_factory=list)
    students: list[Entity] = field(default_factory=list)

    def of(self, kind: EntityKind) -> list[Entity]:
        return getattr(self, kind.collection)

    def find(self, kind: EntityKind, entity_id: str | None) -> Entity | None:
        if entity_id is None:
            return None
        for entity in self.of(kind):
            if entity.id == entity_id:
                return entity
        return None


__all__ = ["Anchor", "Entity", "EntityKind", "Forest"]
