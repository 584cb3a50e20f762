"""Logging setup: structlog events rendered as JSON lines.

Three sinks receive the ``monero_blocks`` logger: the console, the
application log and an error-only log. Every pool additionally gets its own
file under ``logs/pools`` so a misbehaving API can be followed in isolation.
"""

from __future__ import annotations

import logging
import logging.config
import os
from collections import deque
from pathlib import Path

import structlog
from pythonjsonlogger import jsonlogger

APP_LOG = "monero_blocks.log"
ERROR_LOG = "error.log"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def log_dir() -> Path:
    """Directory holding every log file, under ``MONERO_BLOCKS_HOME`` when set."""

    home = os.environ.get("MONERO_BLOCKS_HOME")
    if home:
        return Path(home).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def pool_log_path(pool_name: str) -> Path:
    return log_dir() / "pools" / f"{pool_name}.log"


def _file_handler(path: Path, level: str) -> dict:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
    }


def _logging_dict(root: Path, level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": _JSON_FORMAT},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
            "app_file": _file_handler(root / APP_LOG, "INFO"),
            "error_file": _file_handler(root / ERROR_LOG, "ERROR"),
        },
        "loggers": {
            "monero_blocks": {
                "handlers": ["console", "app_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install the handlers once and return the application logger.

    Later calls only return the logger; ``verbose`` is honoured by the first.
    """

    global _configured
    root = log_dir()
    (root / "pools").mkdir(parents=True, exist_ok=True)
    if not _configured:
        logging.config.dictConfig(_logging_dict(root, "DEBUG" if verbose else "INFO"))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured = True
    return structlog.get_logger("monero_blocks")


def pool_logger(pool_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``pool_name`` whose events also land in the pool's file."""

    configure_logging(verbose)
    path = pool_log_path(pool_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    name = f"monero_blocks.pool.{pool_name}"
    stdlib_logger = logging.getLogger(name)
    attached = {getattr(handler, "baseFilename", None) for handler in stdlib_logger.handlers}
    if str(path) not in attached:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(logging.INFO)
        handler.setFormatter(jsonlogger.JsonFormatter(_JSON_FORMAT))
        stdlib_logger.addHandler(handler)
    return structlog.get_logger(name).bind(pool=pool_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="replace") as stream:
        return list(deque(stream, maxlen=line_count))


def available_pool_logs() -> list[Path]:
    return sorted((log_dir() / "pools").glob("*.log"))


__all__ = [
    "APP_LOG",
    "ERROR_LOG",
    "available_pool_logs",
    "configure_logging",
    "log_dir",
    "pool_log_path",
    "pool_logger",
    "tail_log",
]
