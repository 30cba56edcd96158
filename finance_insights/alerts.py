"""Budget threshold alerts with per-period deduplication.

The evaluation itself is a pure function of the budgets; what makes the
engine stateful is the :class:`AlertState` the caller owns for the length
of a user session. It remembers which (category, level) pairs have
already been surfaced so a notification is shown once per period.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Set, Tuple

from .dates import month_key, resolve_now
from .frames import as_budgets
from .models import Budget, BudgetAlert
from .settings import get_config_value

logger = logging.getLogger(__name__)

WARNING = 'warning'
CRITICAL = 'critical'
EXCEEDED = 'exceeded'


@dataclass(frozen=True)
class AlertThresholds:
    """Percent-of-limit levels at which each alert type fires."""

    warning: float = 80
    critical: float = 90
    exceeded: float = 100

    def __post_init__(self) -> None:
        if self.warning <= 0:
            raise ValueError("warning threshold must be positive")
        if self.warning >= self.critical:
            raise ValueError("warning threshold must be below the critical threshold")
        if self.critical > self.exceeded:
            raise ValueError("critical threshold must not exceed the exceeded threshold")

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> 'AlertThresholds':
        config = config if config is not None else get_config_value('budgets', 'alerts', default={})
        return cls(
            warning=float(config.get('warning', 80)),
            critical=float(config.get('critical', 90)),
            exceeded=float(config.get('exceeded', 100)),
        )

    def level_for(self, percent_used: float) -> Optional[str]:
        """Return the single highest level reached, or None."""
        if percent_used >= self.exceeded:
            return EXCEEDED
        if percent_used >= self.critical:
            return CRITICAL
        if percent_used >= self.warning:
            return WARNING
        return None

    def crossed(self, percent_used: float) -> List[str]:
        levels = []
        if percent_used >= self.warning:
            levels.append(WARNING)
        if percent_used >= self.critical:
            levels.append(CRITICAL)
        if percent_used >= self.exceeded:
            levels.append(EXCEEDED)
        return levels


def load_alert_thresholds() -> AlertThresholds:
    return AlertThresholds.from_config()


@dataclass
class AlertState:
    """Alerts already surfaced in the current period.

    Construct one per user session and pass it to every
    :func:`evaluate_alerts` call.
    """

    shown: Set[Tuple[str, str]] = field(default_factory=set)
    first_evaluation: bool = True
    period: Optional[str] = None

    def has_shown(self, category: str, level: str) -> bool:
        return (category, level) in self.shown

    def mark_shown(self, category: str, level: str) -> None:
        self.shown.add((category, level))

    def reset_for_new_period(self, period: Optional[str] = None) -> None:
        """Forget every shown alert so categories may alert again."""
        logger.info("Resetting %d shown budget alerts for period %s", len(self.shown), period)
        self.shown.clear()
        self.period = period

    def roll_period(self, now: Any = None) -> bool:
        """Reset when the calendar month of ``now`` differs from the stored one."""
        period = month_key(resolve_now(now))
        if self.period is None:
            self.period = period
            return False
        if period != self.period:
            self.reset_for_new_period(period)
            return True
        return False


def _make_alert(budget: Budget, level: str) -> BudgetAlert:
    return BudgetAlert(
        category=budget.category,
        limit=budget.limit,
        spent=budget.spent,
        percent_used=budget.percent_used,
        type=level,
    )


def evaluate_alerts(
    budgets: Any,
    state: AlertState,
    *,
    now: Any = None,
    thresholds: Optional[AlertThresholds] = None,
    enabled: bool = True,
) -> List[BudgetAlert]:
    """Return the alerts that should be surfaced in this evaluation.

    The first evaluation after ``state`` is created only records the
    thresholds already crossed, so budgets that were over before the
    session started do not produce a burst of notifications. Later
    evaluations emit each (category, level) pair at most once per
    calendar month, the highest level taking precedence.
    """
    thresholds = thresholds or load_alert_thresholds()
    state.roll_period(now)
    records = as_budgets(budgets)
    if not enabled or not records:
        return []

    if state.first_evaluation:
        state.first_evaluation = False
        for budget in records:
            if budget.limit <= 0:
                continue
            for level in thresholds.crossed(budget.percent_used):
                state.mark_shown(budget.category, level)
        return []

    emitted = []
    for budget in records:
        if budget.limit <= 0:
            continue
        level = thresholds.level_for(budget.percent_used)
        if level is None or state.has_shown(budget.category, level):
            continue
        state.mark_shown(budget.category, level)
        logger.info("Budget alert %s for %s at %d%%", level, budget.category, budget.percent_used)
        emitted.append(_make_alert(budget, level))
    return emitted


def current_alerts(budgets: Any, thresholds: Optional[AlertThresholds] = None) -> List[BudgetAlert]:
    """Every budget currently past a threshold, regardless of what was shown."""
    thresholds = thresholds or load_alert_thresholds()
    alerts = []
    for budget in as_budgets(budgets):
        if budget.limit <= 0:
            continue
        level = thresholds.level_for(budget.percent_used)
        if level is not None:
            alerts.append(_make_alert(budget, level))
    return alerts


def exceeded_alerts(budgets: Any, thresholds: Optional[AlertThresholds] = None) -> List[BudgetAlert]:
    return [alert for alert in current_alerts(budgets, thresholds) if alert.type == EXCEEDED]


def warning_alerts(budgets: Any, thresholds: Optional[AlertThresholds] = None) -> List[BudgetAlert]:
    return [alert for alert in current_alerts(budgets, thresholds) if alert.type in (WARNING, CRITICAL)]
