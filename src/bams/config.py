from dataclasses import dataclass
from enum import Enum
from os import environ
from pathlib import PurePosixPath, PureWindowsPath
from typing import Mapping, MutableMapping


ENV_PREFIX = "BAMS_"
MAX_DIFFICULTY = 64
MIN_DIFFICULTY = 4


class AnchorMode(str, Enum):
    """How a child chain's genesis link to its parent is judged."""

    SNAPSHOT = "snapshot"
    LIVE = "live"


@dataclass(frozen=True)
class BamsConfig:
    version: str = "0.1.0"
    difficulty: int = 4
    allow_weak_difficulty: bool = False
    anchor_mode: AnchorMode = AnchorMode.SNAPSHOT
    data_dir: str = ".bams/data"
    max_seal_attempts: int = 0
    log_schema_version: str = "1"
    log_enabled: bool = False
    log_dir: str = ".bams/logs"
    log_filename: str = "cli.jsonl"

    def __post_init__(self) -> None:
        if not isinstance(self.anchor_mode, AnchorMode):
            object.__setattr__(self, "anchor_mode", _coerce_anchor_mode(str(self.anchor_mode)))
        object.__setattr__(self, "log_filename", (self.log_filename or "").strip())

    @property
    def seal_budget(self) -> int | None:
        return self.max_seal_attempts or None

    def validate(self) -> None:
        if not 0 <= self.difficulty <= MAX_DIFFICULTY:
            raise ValueError(f"difficulty must be between 0 and {MAX_DIFFICULTY}")
        if self.difficulty < MIN_DIFFICULTY and not self.allow_weak_difficulty:
            raise ValueError(
                f"difficulty below {MIN_DIFFICULTY} requires {ENV_PREFIX}ALLOW_WEAK_DIFFICULTY=1"
            )
        if self.max_seal_attempts < 0:
            raise ValueError("max_seal_attempts must be >= 0")
        if not (self.data_dir or "").strip():
            raise ValueError("data_dir must be set")
        if self.log_enabled and not (self.log_dir or "").strip():
            raise ValueError("log_dir must be set when logging is enabled")
        if self.log_enabled:
            log_file_raw = (self.log_filename or "").strip()
            if not log_file_raw:
                raise ValueError("log_filename must be set when logging is enabled")
            log_file_posix = PurePosixPath(log_file_raw)
            log_file_windows = PureWindowsPath(log_file_raw)

            if log_file_posix.is_absolute() or log_file_windows.is_absolute() or log_file_windows.drive:
                raise ValueError("log_filename must be a relative path")
            if log_file_raw.startswith("~"):
                raise ValueError("log_filename must not start with ~")
            if ".." in log_file_posix.parts or ".." in log_file_windows.parts:
                raise ValueError("log_filename must not contain parent directory traversal")
            if not (self.log_schema_version or "").strip():
                raise ValueError("log_schema_version must be set when logging is enabled")


def _coerce_anchor_mode(value: str) -> AnchorMode:
    try:
        return AnchorMode(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in AnchorMode)
        raise ValueError(f"Invalid anchor mode: {value} (expected one of {choices})") from exc


def _coerce_bool(value: str) -> bool:
    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off"}
    lowered = value.strip().lower()
    if lowered in truthy:
        return True
    if lowered in falsy:
        return False
    raise ValueError(f"Invalid boolean value: {value}")


def _coerce_int(value: str, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid integer for {field}: {value}") from exc


def _get_env(env: Mapping[str, str], key: str) -> str | None:
    return env.get(f"{ENV_PREFIX}{key}")


def load_config(env: Mapping[str, str] | None = None) -> BamsConfig:
    source: Mapping[str, str] | MutableMapping[str, str] = env if env is not None else environ

    version = _get_env(source, "VERSION") or BamsConfig.version

    difficulty_raw = _get_env(source, "DIFFICULTY")
    difficulty = (
        _coerce_int(difficulty_raw, "difficulty") if difficulty_raw is not None else BamsConfig.difficulty
    )

    weak_raw = _get_env(source, "ALLOW_WEAK_DIFFICULTY")
    allow_weak_difficulty = (
        _coerce_bool(weak_raw) if weak_raw is not None else BamsConfig.allow_weak_difficulty
    )

    anchor_raw = _get_env(source, "ANCHOR_MODE")
    anchor_mode = _coerce_anchor_mode(anchor_raw) if anchor_raw is not None else BamsConfig.anchor_mode

    data_dir = _get_env(source, "DATA_DIR") or BamsConfig.data_dir

    attempts_raw = _get_env(source, "MAX_SEAL_ATTEMPTS")
    max_seal_attempts = (
        _coerce_int(attempts_raw, "max_seal_attempts")
        if attempts_raw is not None
        else BamsConfig.max_seal_attempts
    )

    log_schema_version = _get_env(source, "LOG_SCHEMA_VERSION") or BamsConfig.log_schema_version

    log_enabled_raw = _get_env(source, "LOG_ENABLED")
    log_enabled = _coerce_bool(log_enabled_raw) if log_enabled_raw is not None else BamsConfig.log_enabled

    log_dir = _get_env(source, "LOG_DIR") or BamsConfig.log_dir
    log_filename = _get_env(source, "LOG_FILENAME") or BamsConfig.log_filename

    cfg = BamsConfig(
        version=version,
        difficulty=difficulty,
        allow_weak_difficulty=allow_weak_difficulty,
        anchor_mode=anchor_mode,
        data_dir=data_dir,
        max_seal_attempts=max_seal_attempts,
        log_schema_version=log_schema_version,
        log_enabled=log_enabled,
        log_dir=log_dir,
        log_filename=log_filename,
    )
    cfg.validate()
    return cfg


__all__ = ["AnchorMode", "BamsConfig", "MIN_DIFFICULTY", "load_config"]
