# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Logging configuration for the data API.

Applies the configured level to the application's loggers and quiets
third-party HTTP and SQLite clients that would otherwise log every call.
"""
import logging

from config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_SUPPRESSED_LOGGERS = [
    'httpx',
    'httpcore',
    'aiosqlite',
]


def configure_logging(config: LoggingConfig) -> None:
    """Configure root logging once at startup"""
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
