from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime
from pathlib import Path

_LOGGER = logging.getLogger("ftfilter.logging")
LOG_DIR_ENV = "FTFILTER_LOG_DIR"
LOG_LEVEL_ENV = "FTFILTER_LOG_LEVEL"
_LOG_FILE = "ftfilter.log"
_ROOT_LOGGER = "ftfilter"


def get_log_dir() -> Path:
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "ftfilter" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / _LOG_FILE


def configure_logging(*, console: bool = False) -> None:
    """Attach handlers to the package logger.

    Library imports only get a NullHandler; the CLI asks for a rich console
    handler whose level comes from ``FTFILTER_LOG_LEVEL`` (default WARNING).
    """

    logger = logging.getLogger(_ROOT_LOGGER)
    if not any(isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        logger.addHandler(logging.NullHandler())
    if not console:
        return

    from rich.logging import RichHandler

    if any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        _LOGGER.warning("Unknown log level %r; falling back to WARNING", level_name)
        level = logging.WARNING
    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)


def setup_file_logger(
    name: str,
    filename: str,
    *,
    level: int = logging.INFO,
) -> Path:
    logger = logging.getLogger(name)
    path = get_log_dir() / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    if any(isinstance(handler, logging.FileHandler) for handler in logger.handlers):
        return path
    logger.setLevel(level)
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return path


def log_exception(context: str, exc: BaseException) -> Path | None:
    try:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        path = get_log_path()
        timestamp = datetime.now().isoformat()
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{timestamp}] {context} failed: {type(exc).__name__}: {exc}\n")
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=handle)
            handle.write("\n")
        return path
    except Exception as log_exc:
        _LOGGER.warning("Failed to write log file: %s", log_exc, exc_info=True)
        return None
