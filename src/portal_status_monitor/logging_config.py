from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from .config import DEFAULT_QUIET_LOGGERS, LoggingConfig


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def _level(name: Optional[str], default: int) -> int:
    value = getattr(logging, (name or "").upper(), None)
    return value if isinstance(value, int) else default


def configure_logging(
    level: str = "INFO",
    file_path: Optional[str] = None,
    *,
    quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS,
    quiet_level: str = "WARNING",
) -> None:
    """
    Route every record to stderr and, when `file_path` is set, to an appended UTF-8 log file.

    Safe to call again: the CLI configures from the environment first, then from the loaded config.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=_level(level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(_level(quiet_level, logging.WARNING))


def configure_from_config(cfg: LoggingConfig) -> None:
    configure_logging(
        level=cfg.level,
        file_path=cfg.file_path,
        quiet_loggers=cfg.quiet_loggers,
        quiet_level=cfg.quiet_level,
    )
