"""Derivation settings files and loaders.

Tolerances, thresholds and keyword lists are stored in JSON files so the
heuristics can be tuned without code changes.
"""

from .defaults import get_budget_config, get_config_value, get_recurring_config, load_config

__all__ = ['load_config', 'get_budget_config', 'get_recurring_config', 'get_config_value']
