"""Date helpers shared by every derivation.

Parsing is deliberately lenient: transaction dates arrive as free text
from imports and manual entry, and an unreadable value must never stop a
dashboard from rendering. Anything that cannot be parsed is replaced by
the injected "now".
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

ONE_DAY = pd.Timedelta(days=1)

# dd-mm-yyyy and dd/mm/yyyy, as typed by users in India/Europe
_DAY_FIRST_PATTERN = re.compile(r'^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$')


def _naive(ts: pd.Timestamp) -> pd.Timestamp:
    if ts.tzinfo is not None:
        return ts.tz_convert('UTC').tz_localize(None)
    return ts


def resolve_now(now: Any = None) -> pd.Timestamp:
    """Return the injected clock value as a naive timestamp.

    ``None`` reads the wall clock, which is what interactive callers want;
    tests and batch jobs pass a fixed value.
    """
    if now is None:
        return pd.Timestamp.now()
    return _naive(pd.Timestamp(now))


def parse_date(value: Any, now: Any = None) -> pd.Timestamp:
    """Parse a transaction date, falling back to ``now`` when unreadable."""
    if isinstance(value, (datetime, date)) and not pd.isna(value):
        return _naive(pd.Timestamp(value))

    if not isinstance(value, str) or not value.strip():
        logger.debug("Missing or non-text date %r, using now", value)
        return resolve_now(now)

    text = value.strip()
    match = _DAY_FIRST_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return pd.Timestamp(year=year, month=month, day=day)
        except ValueError:
            pass  # e.g. US style 10/24/2024, retried below

    try:
        parsed = pd.to_datetime(text, errors='coerce')
    except (ValueError, TypeError, OverflowError):
        parsed = pd.NaT
    if pd.isna(parsed):
        logger.debug("Unparseable date %r, using now", value)
        return resolve_now(now)
    return _naive(pd.Timestamp(parsed))


def add_days(value: Any, days: float) -> pd.Timestamp:
    """Return a new timestamp ``days`` after ``value`` (negative allowed)."""
    return parse_date(value) + pd.Timedelta(days=days)


def days_between(start: Any, end: Any) -> float:
    """Return ``end - start`` in days, keeping fractional days."""
    return float((parse_date(end) - parse_date(start)) / ONE_DAY)


def is_within_next_days(value: Any, days: float, now: Any = None) -> bool:
    current = resolve_now(now)
    target = parse_date(value, now=current)
    return current <= target <= current + pd.Timedelta(days=days)


def month_key(value: Any) -> str:
    ts = parse_date(value)
    return f"{ts.year:04d}-{ts.month:02d}"


def round_half_up(value: float) -> int:
    """Round halves away from negative infinity (2.5 -> 3, -2.5 -> -2)."""
    number = float(value)
    if not math.isfinite(number):
        return 0
    return int(math.floor(number + 0.5))
