"""Logging setup for applications and example scripts."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LIBRARY_LOGGER = "foreachkit"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    engine_level: Optional[str] = None,
) -> None:
    """
    Configure basic logging for applications built on foreachkit.

    Parameters
    ----------
    level:
        Logging level name (e.g., "INFO", "DEBUG"). Falls back to the
        FOREACHKIT_LOG_LEVEL environment variable, then INFO.
    log_file:
        Optional path to log output. When not provided, logs go to stderr.
    engine_level:
        Level for the ``foreachkit`` logger only. Engine metrics and
        absorbed element failures are logged at DEBUG, so
        ``engine_level="DEBUG"`` shows them without turning on DEBUG for
        the whole application. Falls back to FOREACHKIT_ENGINE_LOG_LEVEL.
    """

    level = level or os.getenv("FOREACHKIT_LOG_LEVEL", "INFO")
    log_kwargs = {
        "level": _level(level),
        "format": "[%(levelname)s] %(name)s - %(message)s",
    }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        log_kwargs["filename"] = log_file

    logging.basicConfig(**log_kwargs)

    engine_level = engine_level or os.getenv("FOREACHKIT_ENGINE_LOG_LEVEL")
    if engine_level:
        logging.getLogger(LIBRARY_LOGGER).setLevel(_level(engine_level))
