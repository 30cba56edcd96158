"""Configuration loader for derivation settings."""

from __future__ import annotations

import json
from typing import Any, Dict

from ..config import get_settings_dir


def load_config(config_name: str) -> Dict[str, Any]:
    """Load a configuration file by name.

    Args:
        config_name: Name of the config file (without .json extension)

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON

    Example:
        >>> config = load_config('recurring')
        >>> config['detection']['amount_tolerance']
        50
    """
    config_path = get_settings_dir() / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def get_recurring_config() -> Dict[str, Any]:
    """Get the recurring-detection configuration (tolerances, breakpoints, keywords)."""
    return load_config('recurring')


def get_budget_config() -> Dict[str, Any]:
    """Get the budget configuration (alert thresholds, starter budgets)."""
    return load_config('budgets')


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Get a nested configuration value by key path.

    Args:
        config_name: Name of the config file
        *keys: Path to the nested value (e.g., 'alerts', 'warning')
        default: Default value if key path doesn't exist

    Returns:
        The configuration value at the specified path, or default if not found

    Example:
        >>> get_config_value('budgets', 'alerts', 'warning')
        80
    """
    try:
        config = load_config(config_name)
        value = config
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError, FileNotFoundError):
        return default
