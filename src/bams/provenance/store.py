from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Protocol

from bams.config import BamsConfig
from bams.kernel.failures import StorageFailure
from bams.provenance.entities import Entity, EntityKind, Forest


def data_dir(cfg: BamsConfig) -> Path:
    return Path(cfg.data_dir)


def collection_path(cfg: BamsConfig, kind: EntityKind) -> Path:
    return data_dir(cfg) / f"{kind.collection}.json"


def ensure_data_dir(cfg: BamsConfig) -> Path:
    path = data_dir(cfg)
    if path.exists() and not path.is_dir():
        raise StorageFailure(f"Data path {path} exists and is not a directory")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageFailure(f"Cannot create data directory {path}: {exc}") from exc
    return path


def _read_collection(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as handle:
            parsed = json.load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StorageFailure(f"Cannot read {path}: {exc}") from exc
    if not isinstance(parsed, list):
        raise StorageFailure(f"{path} must contain a JSON array")
    return parsed


def _write_collection(path: Path, records: list[dict[str, Any]]) -> None:
    # Whole-collection overwrite goes through a sibling temp file and os.replace.
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(records, handle, indent=2)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise StorageFailure(f"Cannot write {path}: {exc}") from exc


class EntityStore(Protocol):
    def load(self, kind: EntityKind) -> list[Entity]: ...

    def save(self, kind: EntityKind, entities: Iterable[Entity]) -> None: ...


def load_forest(store: EntityStore) -> Forest:
    return Forest(
        departments=store.load(EntityKind.DEPARTMENT),
        classes=store.load(EntityKind.CLASS),
        students=store.load(EntityKind.STUDENT),
    )


class JsonStore:
    """One JSON array per entity kind under ``cfg.data_dir``.

    Callers own serialization of writers: every save replaces the full
    collection, so two interleaved load/mutate/save cycles lose an update.
    """

    def __init__(self, cfg: BamsConfig):
        self.cfg = cfg

    def load(self, kind: EntityKind) -> list[Entity]:
        records = _read_collection(collection_path(self.cfg, kind))
        if not all(isinstance(record, dict) for record in records):
            raise StorageFailure(f"{kind.collection} records must be JSON objects")
        try:
            return [Entity.from_dict(kind, record) for record in records]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise StorageFailure(f"Malformed {kind.collection} record: {exc}") from exc

    def save(self, kind: EntityKind, entities: Iterable[Entity]) -> None:
        ensure_data_dir(self.cfg)
        _write_collection(collection_path(self.cfg, kind), [entity.to_dict() for entity in entities])

    def load_forest(self) -> Forest:
        return load_forest(self)


class MemoryStore:
    """Keeps serialized records in memory; loads always decode fresh copies."""

    def __init__(self) -> None:
        self.records: dict[EntityKind, list[dict[str, Any]]] = {kind: [] for kind in EntityKind}

    def load(self, kind: EntityKind) -> list[Entity]:
        return [Entity.from_dict(kind, json.loads(json.dumps(record))) for record in self.records[kind]]

    def save(self, kind: EntityKind, entities: Iterable[Entity]) -> None:
        self.records[kind] = [entity.to_dict() for entity in entities]

    def load_forest(self) -> Forest:
        return load_forest(self)


__all__ = [
    "EntityStore",
    "JsonStore",
    "MemoryStore",
    "collection_path",
    "data_dir",
    "ensure_data_dir",
    "load_forest",
]
