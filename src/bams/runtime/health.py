from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from bams.config import BamsConfig


def _can_write_to_dir(directory: Path) -> tuple[bool, str | None]:
    try:
        fd, path_str = tempfile.mkstemp(dir=directory, prefix=".__bams_health__")
        os.close(fd)
        Path(path_str).unlink(missing_ok=True)
        return True, None
    except Exception as exc:
        return False, str(exc)


def _can_create_under(parent: Path) -> tuple[bool, str | None]:
    try:
        with tempfile.TemporaryDirectory(dir=parent):
            pass
        return True, None
    except Exception as exc:
        return False, str(exc)


def _dir_status(directory: Path, label: str) -> tuple[bool, str | None]:
    if directory.exists():
        if not directory.is_dir():
            return False, f"{label} path exists and is not a directory"
        writable, error = _can_write_to_dir(directory)
        if not writable:
            return False, f"{label} is not writable: {error}"
        return True, None

    ancestor = directory
    while not ancestor.exists() and ancestor != ancestor.parent:
        ancestor = ancestor.parent

    if ancestor.exists() and not ancestor.is_dir():
        return False, f"{label} ancestry contains a non-directory"

    base_parent = ancestor if ancestor != Path() else Path(".")
    creatable, error = _can_create_under(base_parent)
    if not creatable:
        return False, f"{label} cannot be created: {error}"
    return True, None


def check_storage(cfg: BamsConfig | None = None) -> dict[str, Any]:
    config = cfg or BamsConfig()

    data_ok, data_error = _dir_status(Path(config.data_dir), "Data directory")
    if config.log_enabled:
        log_ok, log_error = _dir_status(Path(config.log_dir), "Log directory")
    else:
        log_ok, log_error = True, None

    return {
        "ok": data_ok and log_ok,
        "data_dir": data_ok,
        "data_dir_error": data_error,
        "log_dir": log_ok,
        "log_dir_error": log_error,
    }


__all__ = ["check_storage"]
