# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-07
# Updated: 2026-02-24
# Description: logging_utils.py
# -----------------------------------------------------------------------------

# logging_utils.py
import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

BASE_LOGGER_NAME = "kb_semantic"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = (
    "%(log_color)s%(asctime)s [%(levelname)s] %(threadName)s "
    "%(name)s:%(lineno)d:%(reset)s %(message_log_color)s%(message)s"
)
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s:%(lineno)d: %(message)s"

_configure_lock = threading.Lock()
_configured = False


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(
            fmt=CONSOLE_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
            secondary_log_colors={
                "message": {
                    "INFO": "white",
                    "WARNING": "yellow",
                    "ERROR": "light_red",
                    "CRITICAL": "red",
                }
            },
            style="%",
        )
    )
    return handler


def _file_handler(log_path: Path) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=int(os.getenv("KB_LOG_MAX_BYTES", str(5 * 1024 * 1024))),
        backupCount=int(os.getenv("KB_LOG_BACKUP_COUNT", "5")),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def configure_logging() -> logging.Logger:
    """
    Attach handlers to the `kb_semantic` base logger, once per process.

    Every module/class logger is a child of it and propagates here, so the
    worker thread, the cache housekeeping thread and request handlers share
    one console handler and (with KB_LOG_TO_FILE=1) one rotating file.
    """
    global _configured
    base = logging.getLogger(BASE_LOGGER_NAME)

    with _configure_lock:
        if _configured:
            return base

        base.addHandler(_console_handler())
        if _env_flag("KB_LOG_TO_FILE"):
            base.addHandler(_file_handler(Path(os.getenv("KB_LOG_FILE", "./logs/kb_semantic.log"))))

        level_name = os.getenv("KB_LOG_LEVEL", "INFO").upper()
        base.setLevel(getattr(logging, level_name, logging.INFO))
        base.propagate = False
        _configured = True

    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Module-level logger under the base name, for code outside a class.
    """
    configure_logging()
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}" if name else BASE_LOGGER_NAME)


def get_class_logger(cls: type) -> logging.Logger:
    """
    Returns a logger whose name includes module + class, e.g.:

      kb_semantic.worker.ModelWorkerChannel.ModelWorkerChannel
      kb_semantic.services.KBSimilarityService.KBSimilarityService
    """
    module = getattr(cls, "__module__", "unknown_module")
    classname = getattr(cls, "__name__", "UnknownClass")
    return get_logger(f"{module}.{classname}")
