"""Dashboard aggregates and the financial snapshot.

All functions here are total: empty or malformed input yields zeroed
totals and empty collections rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .budgets import budget_status_list, budgets_with_spent
from .config import get_recent_limit
from .dates import resolve_now, round_half_up
from .frames import TransactionsInput, as_goals, as_transactions, transactions_frame
from .models import (
    TRANSACTION_TYPES,
    CategoryAmount,
    DaySpending,
    FinancialSnapshot,
    Goal,
    GoalProgress,
    Totals,
)

WEEKDAY_LABELS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
WEEKLY_WINDOW_DAYS = 30
PROJECTION_WINDOW = 3  # trailing months averaged for the projection
PROJECTION_MONTHS = 2


@dataclass(frozen=True)
class MonthlyNet:
    """One point of the net cash-flow series; exactly one value is set."""

    month: str
    actual: Optional[float] = None
    projected: Optional[float] = None


@dataclass(frozen=True)
class DailyFlow:
    date: str
    income: float
    expense: float


@dataclass(frozen=True)
class GoalTotals:
    total_saved: float = 0.0
    total_target: float = 0.0
    overall_progress: int = 0
    monthly_required: float = 0.0
    completed: List[Goal] = field(default_factory=list)
    active: List[Goal] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Frame level helpers
# ---------------------------------------------------------------------------


def _category_totals(frame: pd.DataFrame) -> Dict[str, float]:
    expenses = frame[frame['amount'] < 0]
    if expenses.empty:
        return {}
    totals = expenses['amount'].abs().groupby(expenses['category'], sort=False).sum()
    return {str(category): float(amount) for category, amount in totals.items()}


def _totals(frame: pd.DataFrame) -> Totals:
    income = float(frame.loc[frame['amount'] > 0, 'amount'].sum())
    # Derived from the category buckets so the breakdown always adds up
    expenses = float(sum(_category_totals(frame).values()))
    balance = income - expenses
    savings_rate = max(0, round_half_up(balance / income * 100)) if income > 0 else 0
    return Totals(income=income, expenses=expenses, balance=balance, savings_rate=savings_rate)


def _highest(buckets: Dict[str, float]) -> Optional[CategoryAmount]:
    if not buckets:
        return None
    category, amount = max(buckets.items(), key=lambda item: item[1])
    return CategoryAmount(category=category, amount=amount)


def _weekly(frame: pd.DataFrame, current: pd.Timestamp) -> List[DaySpending]:
    window_start = current - pd.Timedelta(days=WEEKLY_WINDOW_DAYS)
    mask = (
        (frame['timestamp'] >= window_start)
        & (frame['timestamp'] <= current)
        & (frame['amount'] < 0)
    )
    recent = frame[mask]
    day_labels = recent['timestamp'].dt.day_name().str[:3]
    buckets = recent['amount'].abs().groupby(day_labels).sum().reindex(WEEKDAY_LABELS).fillna(0.0)
    return [DaySpending(day=day, amount=float(buckets[day])) for day in WEEKDAY_LABELS]


def _recent(frame: pd.DataFrame, limit: int) -> List[Dict[str, Any]]:
    ordered = frame.sort_values('timestamp', ascending=False, kind='mergesort').head(max(limit, 0))
    return [
        {
            'name': row['name'],
            'category': row['category'],
            'amount': float(row['amount']),
            'date': row['timestamp'].strftime('%Y-%m-%d'),
        }
        for _, row in ordered.iterrows()
    ]


# ---------------------------------------------------------------------------
# Public aggregates
# ---------------------------------------------------------------------------


def calculate_totals(transactions: TransactionsInput) -> Totals:
    """Income, expenses, balance and savings rate over all transactions.

    The savings rate is floored at 0 even when the balance is negative,
    and is 0 whenever there is no income.
    """
    return _totals(transactions_frame(transactions))


def category_breakdown(transactions: TransactionsInput) -> Dict[str, float]:
    """Absolute expense totals per category, in order of first appearance."""
    return _category_totals(transactions_frame(transactions))


def highest_category(transactions: TransactionsInput) -> Optional[CategoryAmount]:
    return _highest(category_breakdown(transactions))


def type_breakdown(transactions: TransactionsInput) -> Dict[str, float]:
    """Absolute amounts per classification tag; all four tags always present."""
    frame = transactions_frame(transactions)
    breakdown = {tag: 0.0 for tag in TRANSACTION_TYPES}
    known = frame[frame['type'].isin(TRANSACTION_TYPES)]
    if known.empty:
        return breakdown
    sums = known['amount'].abs().groupby(known['type']).sum()
    for tag, amount in sums.items():
        breakdown[str(tag)] = float(amount)
    return breakdown


def weekly_spending(transactions: TransactionsInput, *, now: Any = None) -> List[DaySpending]:
    """Expenses of the trailing 30 days bucketed Mon..Sun (zero-filled)."""
    current = resolve_now(now)
    return _weekly(transactions_frame(transactions, now=current), current)


def top_day(weekly: List[DaySpending]) -> Optional[DaySpending]:
    if not weekly:
        return None
    best = max(weekly, key=lambda entry: entry.amount)
    return best if best.amount > 0 else None


def monthly_net_series(transactions: TransactionsInput, *, now: Any = None) -> List[MonthlyNet]:
    """Signed net per calendar month plus a flat projection.

    The projection repeats the mean of the last three months for the
    two months following ``now``; it is omitted when that mean is 0.
    """
    current = resolve_now(now)
    frame = transactions_frame(transactions, now=current)
    if frame.empty:
        return []

    months = frame['timestamp'].dt.to_period('M')
    net = frame['amount'].groupby(months).sum().sort_index()
    series = [MonthlyNet(month=str(period), actual=float(amount)) for period, amount in net.items()]

    trailing = net.tail(PROJECTION_WINDOW)
    average = float(trailing.sum()) / len(trailing)
    if average == 0:
        return series

    base = pd.Period(current, freq='M')
    for step in range(1, PROJECTION_MONTHS + 1):
        series.append(MonthlyNet(month=str(base + step), projected=average))
    return series


def daily_cash_flow(transactions: TransactionsInput, *, limit: int = 8, now: Any = None) -> List[DailyFlow]:
    """Income and expense per calendar day for the latest ``limit`` active days."""
    frame = transactions_frame(transactions, now=now)
    if frame.empty:
        return []

    days = frame['timestamp'].dt.normalize()
    amounts = frame['amount'].to_numpy()
    flows = pd.DataFrame(
        {
            'income': np.where(amounts > 0, amounts, 0.0),
            'expense': np.where(amounts < 0, np.abs(amounts), 0.0),
        },
        index=frame.index,
    ).groupby(days).sum().sort_index()

    latest = flows.tail(max(limit, 0))
    return [
        DailyFlow(date=day.strftime('%Y-%m-%d'), income=float(row['income']), expense=float(row['expense']))
        for day, row in latest.iterrows()
    ]


def recent_transactions(
    transactions: TransactionsInput,
    limit: Optional[int] = None,
    *,
    now: Any = None,
) -> List[Dict[str, Any]]:
    """Most recent ``limit`` transactions by date, newest first."""
    limit = limit if limit is not None else get_recent_limit()
    return _recent(transactions_frame(transactions, now=now), limit)


def goal_progress(goals: Any) -> List[GoalProgress]:
    return [
        GoalProgress(name=goal.name, current=goal.current, target=goal.target, progress=goal.progress)
        for goal in as_goals(goals)
    ]


def goal_totals(goals: Any) -> GoalTotals:
    records = as_goals(goals)
    total_saved = sum(goal.current for goal in records)
    total_target = sum(goal.target for goal in records)
    overall = round_half_up(total_saved / total_target * 100) if total_target > 0 else 0
    return GoalTotals(
        total_saved=total_saved,
        total_target=total_target,
        overall_progress=overall,
        monthly_required=sum(goal.monthly_target for goal in records),
        completed=[goal for goal in records if goal.is_complete],
        active=[goal for goal in records if not goal.is_complete],
    )


def build_snapshot(
    transactions: TransactionsInput,
    *,
    goals: Any = None,
    budgets: Any = None,
    now: Any = None,
    recent_limit: Optional[int] = None,
) -> FinancialSnapshot:
    """Assemble the read-only snapshot passed to the AI collaborator.

    Budgets, when given, are annotated with this month's spending before
    their status is reported.
    """
    current = resolve_now(now)
    records = as_transactions(transactions)
    frame = transactions_frame(records, now=current)
    limit = recent_limit if recent_limit is not None else get_recent_limit()

    budget_rows = None
    if budgets is not None:
        budget_rows = budget_status_list(budgets_with_spent(records, budgets, now=current))

    return FinancialSnapshot(
        totals=_totals(frame),
        highest_category=_highest(_category_totals(frame)),
        top_day=top_day(_weekly(frame, current)),
        recent=_recent(frame, limit),
        goals=goal_progress(goals) if goals is not None else None,
        budgets=budget_rows,
    )
