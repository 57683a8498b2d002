from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from tempfile import gettempdir
from typing import Any

from pythonjsonlogger import jsonlogger

from .settings import settings

LOGGER_NAME = "star_router"
LOG_FILE_NAME = "routing.log.jsonl"


def _log_dir_candidates(out_dir: str) -> tuple[Path, ...]:
    return (
        Path(out_dir) / "logs",
        Path.cwd() / "out" / "logs",
        Path(gettempdir()) / "star-route-planner" / "logs",
    )


def _writable_log_dir(out_dir: str) -> Path | None:
    for log_dir in _log_dir_candidates(out_dir):
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            probe = log_dir / ".writetest"
            probe.touch(exist_ok=True)
            probe.unlink(missing_ok=True)
        except OSError:
            continue
        return log_dir
    return None


@lru_cache(maxsize=1)
def get_logger() -> logging.Logger:
    """JSON-lines logger for the router: stderr always, plus a file when a log dir is writable."""
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.getLevelName(settings.log_level)
    logger.setLevel(level if isinstance(level, int) else logging.INFO)
    logger.propagate = False

    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(message)s")
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_dir = _writable_log_dir(settings.out_dir)
    if log_dir is not None:
        try:
            handlers.append(logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"))
        except OSError:
            pass
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def _emit(level: int, event: str, fields: dict[str, Any], *, exc_info: bool = False) -> None:
    # The event name doubles as the message so plain-text tails stay readable.
    get_logger().log(level, event, extra={"event": event, **fields}, exc_info=exc_info)


def log_event(event: str, **fields: Any) -> None:
    _emit(logging.INFO, event, fields)


def log_warning(event: str, **fields: Any) -> None:
    _emit(logging.WARNING, event, fields)


def log_exception(event: str, **fields: Any) -> None:
    _emit(logging.ERROR, event, fields, exc_info=True)
