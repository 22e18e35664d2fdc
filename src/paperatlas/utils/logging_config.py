# src/paperatlas/utils/logging_config.py
"""
File logging for pipeline runs.

Module loggers (``logging.getLogger(__name__)``) go wherever the CLI's
``basicConfig`` sends them. ``Logger`` additionally writes run records to
named, rotated files so each run leaves an audit trail per concern:

    from paperatlas.utils.logging_config import Logger, LogFiles

    Logger.info("Harvest started", file=LogFiles.HARVEST)

Every line carries the current run id (see ``set_run_id``).

Configuration via environment variables:
    PAPERATLAS_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
    PAPERATLAS_LOG_DIR: Base directory for log files (default: logs/)
    PAPERATLAS_LOG_MAX_BYTES: Max size per log file in bytes (default: 10MB)
    PAPERATLAS_LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
"""

from __future__ import annotations

import inspect
import logging
import os
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

import yaml

_run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "paperatlas.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(run_id)s] %(source)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_CONFIG_FILE = Path(__file__).parent / "log_config.yaml"

_DEFAULT_FILES = {
    "harvest": "harvest/harvest.log",
    "snapshots": "snapshots/snapshots.log",
    "pipeline": "pipeline/pipeline.log",
    "error": "errors/error.log",
}

logger = logging.getLogger(__name__)


class _LogFilesMeta(type):
    """Allows attribute access like LogFiles.HARVEST."""

    def __getattr__(cls, name: str) -> str:
        files = cls._load()
        key = name if name in files else name.lower()
        if key in files:
            return files[key]
        raise AttributeError(f"Log file '{name}' not found in config")


class LogFiles(metaclass=_LogFilesMeta):
    """
    Named log file paths from ``log_config.yaml`` (``files`` section).

    Names are looked up case-insensitively, so ``files: {oai: oai/oai.log}``
    is available as ``LogFiles.OAI``.
    """

    _files: Optional[Dict[str, str]] = None

    @classmethod
    def _load(cls) -> Dict[str, str]:
        if cls._files is not None:
            return cls._files

        files = dict(_DEFAULT_FILES)
        if LOG_CONFIG_FILE.exists():
            try:
                with open(LOG_CONFIG_FILE, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Ignoring unreadable {LOG_CONFIG_FILE}: {e}")
                config = {}
            files.update({str(k).lower(): str(v) for k, v in (config.get("files") or {}).items()})

        cls._files = files
        return files


_config: Dict[str, object] = {}
_handlers: Dict[str, RotatingFileHandler] = {}


def _get_config() -> Dict[str, object]:
    return {
        "level": os.environ.get("PAPERATLAS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        "base_dir": os.environ.get("PAPERATLAS_LOG_DIR", DEFAULT_LOG_DIR),
        "max_bytes": int(os.environ.get("PAPERATLAS_LOG_MAX_BYTES", DEFAULT_MAX_BYTES)),
        "backup_count": int(os.environ.get("PAPERATLAS_LOG_BACKUP_COUNT", DEFAULT_BACKUP_COUNT)),
    }


def _get_handler(file: Optional[str]) -> RotatingFileHandler:
    path = Path(str(_config["base_dir"])) / (file or DEFAULT_LOG_FILE)
    key = str(path)
    if key not in _handlers:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=key,
            maxBytes=int(_config["max_bytes"]),
            backupCount=int(_config["backup_count"]),
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, DEFAULT_DATE_FORMAT))
        _handlers[key] = handler
    return _handlers[key]


def _write(level: int, message: str, file: Optional[str]) -> None:
    Logger._ensure_init()
    threshold = logging.getLevelName(str(_config["level"]))
    if level < (threshold if isinstance(threshold, int) else logging.INFO):
        return

    # Skip _write and the public Logger method.
    frame = inspect.currentframe()
    caller = frame.f_back.f_back if frame and frame.f_back else None
    source = f"{os.path.basename(caller.f_code.co_filename)}:{caller.f_lineno}" if caller else "unknown:0"

    record = logging.makeLogRecord(
        {
            "levelno": level,
            "levelname": logging.getLevelName(level),
            "msg": message,
            "run_id": get_run_id() or "-",
            "source": source,
        }
    )
    _get_handler(file).handle(record)


class Logger:
    """Static file logger. Auto-initializes from the environment on first use."""

    _initialized = False

    @staticmethod
    def init(
        level: Optional[str] = None,
        base_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        """Read the environment once; explicit arguments override it."""
        if Logger._initialized:
            return
        _config.update(_get_config())
        if level:
            _config["level"] = level.upper()
        if base_dir:
            _config["base_dir"] = base_dir
        if max_bytes:
            _config["max_bytes"] = max_bytes
        if backup_count:
            _config["backup_count"] = backup_count
        Logger._initialized = True

    @staticmethod
    def _ensure_init() -> None:
        if not Logger._initialized:
            Logger.init()

    @staticmethod
    def debug(message: str, file: Optional[str] = None) -> None:
        _write(logging.DEBUG, message, file)

    @staticmethod
    def info(message: str, file: Optional[str] = None) -> None:
        _write(logging.INFO, message, file)

    @staticmethod
    def warning(message: str, file: Optional[str] = None) -> None:
        _write(logging.WARNING, message, file)

    @staticmethod
    def error(message: str, file: Optional[str] = None) -> None:
        _write(logging.ERROR, message, file)

    @staticmethod
    def close() -> None:
        """Close all file handlers and forget the configuration."""
        for handler in _handlers.values():
            handler.close()
        _handlers.clear()
        _config.clear()
        Logger._initialized = False


def set_run_id(run_id: str) -> None:
    _run_id_var.set(run_id)


def get_run_id() -> Optional[str]:
    return _run_id_var.get()


def clear_run_id() -> None:
    _run_id_var.set(None)
