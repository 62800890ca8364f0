"""Logging setup for applications using the client.

The library itself only creates module loggers under ``ipa_client``;
nothing is configured on import. Scripts call :func:`setup_logging` once.

- Console handler always.
- Optional file handler with size based rotation (RotatingFileHandler).
- Repeated calls replace the handlers installed earlier.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Наши handlers, чтобы при реконфигурации удалить старые.
_file_handler: logging.Handler | None = None
_console_handler: logging.Handler | None = None


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    max_size_mb: int = 50,
    backup_count: int = 5,
) -> None:
    global _file_handler, _console_handler

    level_str = (level or "INFO").strip().upper()
    if level_str not in _LEVELS:
        level_str = "INFO"
    log_level = getattr(logging, level_str, logging.INFO)

    max_size_mb = max(1, min(500, int(max_size_mb or 50)))
    backup_count = max(0, int(backup_count or 0))

    root = logging.getLogger()

    if _file_handler and _file_handler in root.handlers:
        root.removeHandler(_file_handler)
        _file_handler.close()
    _file_handler = None
    if _console_handler and _console_handler in root.handlers:
        root.removeHandler(_console_handler)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    _console_handler = ch
    root.addHandler(ch)

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        fh = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        _file_handler = fh
        root.addHandler(fh)

    root.setLevel(log_level)

    # urllib3 пишет каждый запрос на DEBUG, kerberos - каждый обмен токенами.
    logging.getLogger("urllib3").setLevel(max(log_level, logging.WARNING))
    logging.getLogger("requests_kerberos").setLevel(max(log_level, logging.WARNING))

    logging.getLogger("ipa_client").info(
        "Logging configured: level=%s, file=%s", level_str, log_file or "-",
    )


def reconfigure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    setup_logging(level=level, log_file=log_file)
