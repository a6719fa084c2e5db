"""structlog setup: JSON lines on stderr and in files under ``logs/``."""

from __future__ import annotations

import logging
import logging.config
import os
from collections import deque
from pathlib import Path
from typing import Any

import structlog

APP_LOGGER = "newsflash"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False
_source_handlers: dict[str, logging.FileHandler] = {}


def log_dir() -> Path:
    """Directory holding ``newsflash.log``, ``error.log`` and ``sources/``."""

    home = os.environ.get("NEWSFLASH_HOME")
    if home:
        return Path(home).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    path.touch(exist_ok=True)
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install handlers once per process and return the application logger.

    The console handler stays at WARNING unless ``verbose`` so rendered
    tables own stdout; the files always receive INFO and above.
    """

    global _configured
    directory = log_dir()
    (directory / "sources").mkdir(parents=True, exist_ok=True)
    if _configured:
        return structlog.get_logger(APP_LOGGER)

    file_level = "DEBUG" if verbose else "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": "pythonjsonlogger.json.JsonFormatter", "fmt": JSON_FORMAT},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "level": "DEBUG" if verbose else "WARNING",
                    "formatter": "json",
                },
                "app_file": _file_handler(directory / "newsflash.log", file_level),
                "error_file": _file_handler(directory / "error.log", "ERROR"),
            },
            "loggers": {
                APP_LOGGER: {
                    "handlers": ["stderr", "app_file", "error_file"],
                    "level": file_level,
                    "propagate": False,
                },
            },
        }
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
    return structlog.get_logger(APP_LOGGER)


def source_logger(source_id: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger for one source; its events also land in ``logs/sources/<id>.log``."""

    configure_logging(verbose)
    path = log_dir() / "sources" / f"{source_id}.log"
    handler = _source_handlers.get(source_id)
    if handler is None or handler.baseFilename != str(path):
        std_logger = logging.getLogger(f"{APP_LOGGER}.source.{source_id}")
        if handler is not None:
            std_logger.removeHandler(handler)
            handler.close()
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(logging.INFO)
        app_handlers = logging.getLogger(APP_LOGGER).handlers
        if app_handlers:
            handler.setFormatter(app_handlers[0].formatter)
        std_logger.addHandler(handler)
        _source_handlers[source_id] = handler
    return structlog.get_logger(f"{APP_LOGGER}.source.{source_id}").bind(source=source_id)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.is_file():
        return []
    with path.open(encoding="utf-8", errors="replace") as stream:
        return list(deque(stream, maxlen=line_count))


def available_source_logs() -> list[Path]:
    return sorted((log_dir() / "sources").glob("*.log"))


__all__ = ["available_source_logs", "configure_logging", "log_dir", "source_logger", "tail_log"]
