"""Environment-driven runtime settings for the API process."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = Path("work/local/story_desk.db")
DEFAULT_UPLOAD_DIR = Path("work/uploads")
DEFAULT_LOG_PATH = Path("work/logs/story_desk.log")
DEFAULT_CORS_ORIGINS = (
    "http://127.0.0.1:5173",
    "http://localhost:5173",
)


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _path_env(name: str, default: Path) -> Path:
    raw = os.environ.get(name, "").strip()
    return Path(raw) if raw else default


def _csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class LogSettings:
    level_name: str
    path: Path
    max_bytes: int
    backup_count: int
    access_level_name: str


@dataclass(frozen=True)
class Settings:
    db_path: Path
    upload_dir: Path
    upload_max_bytes: int
    cors_origins: tuple[str, ...]
    log: LogSettings


def load_log_settings() -> LogSettings:
    return LogSettings(
        level_name=os.environ.get("STORY_DESK_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        path=_path_env("STORY_DESK_LOG_PATH", DEFAULT_LOG_PATH),
        max_bytes=_int_env(
            "STORY_DESK_LOG_MAX_BYTES",
            5 * 1024 * 1024,
            minimum=64 * 1024,
            maximum=100 * 1024 * 1024,
        ),
        backup_count=_int_env("STORY_DESK_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120),
        access_level_name=os.environ.get("STORY_DESK_ACCESS_LOG_LEVEL", "WARNING").strip().upper()
        or "WARNING",
    )


def load_settings(*, db_path: Path | None = None, upload_dir: Path | None = None) -> Settings:
    """Resolve settings from explicit args first, then env vars, then defaults."""
    return Settings(
        db_path=(
            db_path if db_path is not None else _path_env("STORY_DESK_DB_PATH", DEFAULT_DB_PATH)
        ),
        upload_dir=(
            upload_dir
            if upload_dir is not None
            else _path_env("STORY_DESK_UPLOAD_DIR", DEFAULT_UPLOAD_DIR)
        ),
        upload_max_bytes=_int_env(
            "STORY_DESK_UPLOAD_MAX_BYTES",
            5 * 1024 * 1024,
            minimum=1024,
            maximum=50 * 1024 * 1024,
        ),
        cors_origins=_csv_env("STORY_DESK_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        log=load_log_settings(),
    )
