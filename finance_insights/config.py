"""Configuration management for the finance insights layer.

This module centralizes the environment variable overrides used by the
derivation code: where the JSON settings files live, how chatty logging
should be, and how large the snapshot's recent-transaction window is.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

# Packaged settings directory - assumes this file is in finance_insights/
_PACKAGE_ROOT = Path(__file__).parent.resolve()

SETTINGS_DIR = Path(
    os.getenv("FININSIGHTS_SETTINGS_DIR", _PACKAGE_ROOT / "settings")
).resolve()

LOG_LEVEL = os.getenv("FININSIGHTS_LOG_LEVEL", "WARNING")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

DEFAULT_RECENT_LIMIT = 20


def get_settings_dir() -> Path:
    """Return the settings directory, re-reading the environment each call."""
    override = os.getenv("FININSIGHTS_SETTINGS_DIR")
    if override:
        return Path(override).resolve()
    return SETTINGS_DIR


def get_recent_limit() -> int:
    """Number of transactions carried in a snapshot's recent window."""
    raw = os.getenv("FININSIGHTS_RECENT_LIMIT")
    if not raw:
        return DEFAULT_RECENT_LIMIT
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_RECENT_LIMIT
    return value if value > 0 else DEFAULT_RECENT_LIMIT


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Install a basic log handler for scripts and notebooks.

    The library itself never calls this; applications embedding the
    derivation layer configure logging the way they see fit.
    """
    resolved = level if level is not None else os.getenv("FININSIGHTS_LOG_LEVEL", LOG_LEVEL)
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
