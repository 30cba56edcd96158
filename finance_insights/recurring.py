"""Helpers for detecting recurring payments like subscriptions or bills."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .dates import ONE_DAY, is_within_next_days, resolve_now, round_half_up
from .frames import TransactionsInput, transactions_frame
from .models import MONTHS_PER_CYCLE, RecurringPattern
from .settings import get_recurring_config

logger = logging.getLogger(__name__)

# Upper bound (inclusive) of the mean gap for each band; anything longer is yearly
DEFAULT_FREQUENCY_BREAKPOINTS: Tuple[Tuple[str, float], ...] = (
    ('weekly', 10.0),
    ('monthly', 40.0),
    ('quarterly', 100.0),
)
LONGEST_FREQUENCY = 'yearly'

DEFAULT_MONTHS_PER_CYCLE: Dict[str, float] = dict(MONTHS_PER_CYCLE)


@dataclass(frozen=True)
class RecurringSettings:
    """Tunable detection parameters.

    The amount tolerance and the accepted gap band trade recall against
    precision; the defaults mirror ``settings/recurring.json``. Keyword
    lists are empty unless loaded from configuration or passed in.
    """

    amount_tolerance: float = 50.0
    min_occurrences: int = 2
    min_avg_days: float = 5.0
    max_avg_days: float = 400.0
    upcoming_days: float = 7.0
    frequency_breakpoints: Tuple[Tuple[str, float], ...] = DEFAULT_FREQUENCY_BREAKPOINTS
    months_per_cycle: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_MONTHS_PER_CYCLE))
    subscription_keywords: Tuple[str, ...] = ()
    bill_keywords: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.amount_tolerance <= 0:
            raise ValueError("amount_tolerance must be positive")
        if self.min_occurrences < 2:
            raise ValueError("min_occurrences must be at least 2")
        if self.min_avg_days > self.max_avg_days:
            raise ValueError("min_avg_days must not exceed max_avg_days")
        if any(months <= 0 for months in self.months_per_cycle.values()):
            raise ValueError("months_per_cycle values must be positive")

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> 'RecurringSettings':
        config = config if config is not None else get_recurring_config()
        detection = config.get('detection', {})
        breakpoints = config.get('frequency_breakpoints') or dict(DEFAULT_FREQUENCY_BREAKPOINTS)
        keywords = config.get('keywords', {})
        return cls(
            amount_tolerance=float(detection.get('amount_tolerance', 50)),
            min_occurrences=int(detection.get('min_occurrences', 2)),
            min_avg_days=float(detection.get('min_avg_days', 5)),
            max_avg_days=float(detection.get('max_avg_days', 400)),
            upcoming_days=float(detection.get('upcoming_days', 7)),
            frequency_breakpoints=tuple(
                sorted(((label, float(limit)) for label, limit in breakpoints.items()), key=lambda item: item[1])
            ),
            months_per_cycle={
                **DEFAULT_MONTHS_PER_CYCLE,
                **{label: float(months) for label, months in config.get('months_per_cycle', {}).items()},
            },
            subscription_keywords=tuple(keywords.get('subscriptions', ())),
            bill_keywords=tuple(keywords.get('bills', ())),
        )


def load_recurring_settings() -> RecurringSettings:
    return RecurringSettings.from_config()


@dataclass(frozen=True)
class RecurringSummary:
    patterns: List[RecurringPattern] = field(default_factory=list)
    monthly_recurring_total: int = 0
    upcoming_this_week: List[RecurringPattern] = field(default_factory=list)
    subscriptions: List[RecurringPattern] = field(default_factory=list)
    bills: List[RecurringPattern] = field(default_factory=list)


def normalize_name(value: Any) -> str:
    """Normalize a transaction label so repeat charges group together."""
    if not isinstance(value, str):
        return ''
    return value.strip().lower()


def amount_bucket(amount: Any, tolerance: float = 50.0) -> Any:
    """Round ``|amount|`` half-up to the nearest multiple of ``tolerance``.

    Works on scalars and Series alike.
    """
    return np.floor(np.abs(amount) / tolerance + 0.5) * tolerance


def classify_frequency(avg_days: float, settings: Optional[RecurringSettings] = None) -> str:
    breakpoints = settings.frequency_breakpoints if settings else DEFAULT_FREQUENCY_BREAKPOINTS
    for label, limit in breakpoints:
        if avg_days <= limit:
            return label
    return LONGEST_FREQUENCY


def find_patterns(
    transactions: TransactionsInput,
    *,
    settings: Optional[RecurringSettings] = None,
    now: Any = None,
) -> List[RecurringPattern]:
    """Group repeated expenses and keep the groups with a plausible cadence.

    Groups are keyed by the tuple (normalized name, amount bucket). A
    group becomes a pattern when it has at least ``min_occurrences``
    members and its mean gap falls inside the accepted band. Patterns are
    ordered by amount, largest first.
    """
    settings = settings or load_recurring_settings()
    frame = transactions_frame(transactions, now=now)
    expenses = frame[frame['amount'] < 0].copy()
    if expenses.empty:
        return []

    expenses['payee'] = expenses['name'].map(normalize_name)
    expenses['amount_bucket'] = amount_bucket(expenses['amount'], settings.amount_tolerance)
    grouped = expenses.groupby(['payee', 'amount_bucket'], sort=False)

    patterns = []
    for _, group in grouped:
        pattern = _summarize_group(group, settings)
        if pattern is not None:
            patterns.append(pattern)

    logger.debug("Detected %d recurring patterns across %d expenses", len(patterns), len(expenses))
    return sorted(patterns, key=lambda pattern: pattern.amount, reverse=True)


def monthly_recurring_total(
    patterns: Iterable[RecurringPattern],
    settings: Optional[RecurringSettings] = None,
) -> int:
    months_per_cycle = settings.months_per_cycle if settings else DEFAULT_MONTHS_PER_CYCLE
    total = 0.0
    for pattern in patterns:
        months = months_per_cycle.get(pattern.frequency)
        if months:
            total += pattern.amount / months
    return round_half_up(total)


def upcoming_payments(
    patterns: Iterable[RecurringPattern],
    *,
    days: float = 7,
    now: Any = None,
) -> List[RecurringPattern]:
    current = resolve_now(now)
    return [pattern for pattern in patterns if is_within_next_days(pattern.next_expected_date, days, now=current)]


def match_keywords(patterns: Iterable[RecurringPattern], keywords: Sequence[str]) -> List[RecurringPattern]:
    """Patterns whose name or category contains any keyword (case-insensitive)."""
    lowered = [keyword.lower() for keyword in keywords if keyword]
    matches = []
    for pattern in patterns:
        name = pattern.name.lower()
        category = pattern.category.lower()
        if any(keyword in name or keyword in category for keyword in lowered):
            matches.append(pattern)
    return matches


def detect_recurring(
    transactions: TransactionsInput,
    *,
    now: Any = None,
    settings: Optional[RecurringSettings] = None,
) -> RecurringSummary:
    """Identify recurring outgoing payments and summarize them."""
    settings = settings or load_recurring_settings()
    current = resolve_now(now)
    patterns = find_patterns(transactions, settings=settings, now=current)
    if not patterns:
        return RecurringSummary()

    return RecurringSummary(
        patterns=patterns,
        monthly_recurring_total=monthly_recurring_total(patterns, settings),
        upcoming_this_week=upcoming_payments(patterns, days=settings.upcoming_days, now=current),
        subscriptions=match_keywords(patterns, settings.subscription_keywords),
        bills=match_keywords(patterns, settings.bill_keywords),
    )


def _summarize_group(group: pd.DataFrame, settings: RecurringSettings) -> Optional[RecurringPattern]:
    if len(group) < settings.min_occurrences:
        return None

    ordered = group.sort_values('timestamp', kind='mergesort')
    gaps = ordered['timestamp'].diff().dropna() / ONE_DAY
    avg_days = float(gaps.mean())
    if not settings.min_avg_days <= avg_days <= settings.max_avg_days:
        return None

    latest = ordered.iloc[-1]
    last_seen = latest['timestamp']
    next_expected = last_seen + pd.Timedelta(days=avg_days)

    return RecurringPattern(
        name=str(latest['name']),
        category=str(latest['category']),
        amount=round_half_up(ordered['amount'].abs().mean()),
        frequency=classify_frequency(avg_days, settings),
        occurrences=len(ordered),
        last_date=last_seen.strftime('%Y-%m-%d'),
        next_expected_date=next_expected.strftime('%Y-%m-%d'),
        avg_days_between=round_half_up(avg_days),
    )
