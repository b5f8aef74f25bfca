"""Process-wide logging setup: console plus a size-bounded rotating file."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from story_desk.settings import LogSettings, load_log_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_CONFIGURED = False


def configure_runtime_logging(settings: LogSettings | None = None, *, force: bool = False) -> None:
    """Install root handlers once per process; ``force`` reinstalls them."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    effective = settings if settings is not None else load_log_settings()
    level = getattr(logging, effective.level_name, logging.INFO)
    effective.path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    file_handler = RotatingFileHandler(
        filename=effective.path,
        maxBytes=effective.max_bytes,
        backupCount=effective.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)
    root.addHandler(stream_handler)
    root.addHandler(file_handler)

    access_level = getattr(logging, effective.access_level_name, logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(access_level)

    _CONFIGURED = True
