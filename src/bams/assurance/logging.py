from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from bams.config import BamsConfig
from bams.kernel.hashing import canonical_json


def compute_checksum(payload: dict[str, Any]) -> str:
    encoded = canonical_json(payload).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _utc_now_iso_z() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogEvent:
    schema_version: str
    ts: str
    actor: str
    action: str
    outcome: str
    details: dict[str, Any]
    checksum: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "ts": self.ts,
            "actor": self.actor,
            "action": self.action,
            "outcome": self.outcome,
            "details": self.details,
            "checksum": self.checksum,
        }


def build_log_event(
    schema_version: str,
    ts: str,
    actor: str,
    action: str,
    outcome: str,
    details: dict[str, Any],
    checksum_fn: Callable[[dict[str, Any]], str] | None = None,
) -> LogEvent:
    payload = {
        "schema_version": schema_version,
        "ts": ts,
        "actor": actor,
        "action": action,
        "outcome": outcome,
        "details": details,
    }
    checksum_function = checksum_fn or compute_checksum
    checksum = checksum_function(payload)
    return LogEvent(
        schema_version=schema_version,
        ts=ts,
        actor=actor,
        action=action,
        outcome=outcome,
        details=details,
        checksum=checksum,
    )


def log_path(cfg: BamsConfig) -> Path:
    return Path(cfg.log_dir) / cfg.log_filename


def append_jsonl_log_event(
    cfg: BamsConfig,
    *,
    action: str,
    outcome: str,
    details: dict[str, Any],
    actor: str = "cli",
    ts: str | None = None,
) -> LogEvent | None:
    """Append one checksummed line to the structured log; no-op when logging is off."""
    if not cfg.log_enabled:
        return None

    event = build_log_event(
        schema_version=cfg.log_schema_version,
        ts=ts or _utc_now_iso_z(),
        actor=actor,
        action=action,
        outcome=outcome,
        details=details,
    )
    path = log_path(cfg)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as log_file:
        log_file.write(canonical_json(event.to_dict()) + "\n")
    return event


__all__ = [
    "LogEvent",
    "append_jsonl_log_event",
    "build_log_event",
    "canonical_json",
    "compute_checksum",
    "log_path",
]
