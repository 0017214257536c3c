"""Logging configuration for the shelfscan server and pipeline."""

from __future__ import annotations

import logging.config
import os
from pathlib import Path
from typing import Any, Dict, List

_logging_configured = False

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5


def _rotating_file(path: Path, formatter: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": formatter,
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf-8",
        "delay": True,
    }


def _logger(handlers: List[str], level: str) -> Dict[str, Any]:
    return {"handlers": handlers, "level": level, "propagate": False}


def build_logging_config() -> Dict[str, Any]:
    """Return a ``dictConfig`` mapping driven by ``SHELFSCAN_LOG_*`` variables."""
    log_dir = Path(os.getenv("SHELFSCAN_LOG_DIR", "logs"))
    log_level = os.getenv("SHELFSCAN_LOG_LEVEL", "INFO").upper()
    log_path = log_dir / os.getenv("SHELFSCAN_LOG_FILE", "shelfscan.log")
    access_log_path = log_dir / os.getenv("SHELFSCAN_ACCESS_LOG_FILE", "shelfscan-access.log")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(name)s: %(message)s",
                "use_colors": None,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": "%(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s",
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
            "file": _rotating_file(log_path, "default"),
            "access_stream": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
            },
            "access_file": _rotating_file(access_log_path, "access"),
        },
        "loggers": {
            "shelfscan": _logger(["default", "file"], log_level),
            "uvicorn": _logger(["default", "file"], log_level),
            "uvicorn.error": _logger(["default", "file"], log_level),
            "uvicorn.access": _logger(["access_stream", "access_file"], log_level),
        },
        "root": {"handlers": ["default", "file"], "level": log_level},
    }


def configure_logging() -> None:
    """Route uvicorn and shelfscan logs to stderr and rotating files. Runs once."""
    global _logging_configured
    if _logging_configured:
        return

    config = build_logging_config()
    Path(config["handlers"]["file"]["filename"]).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)
    _logging_configured = True


__all__ = ["build_logging_config", "configure_logging"]
