"""Budget consumption for the current period.

Budgets are persisted elsewhere with only a category and a limit; the
amount spent is always recomputed here from the transaction list and
overlaid onto the budget records.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List

from .dates import resolve_now, round_half_up
from .frames import TransactionsInput, as_budgets, transactions_frame
from .models import Budget, BudgetStatus
from .settings import get_config_value


@dataclass(frozen=True)
class BudgetSummary:
    budgets: List[Budget] = field(default_factory=list)
    total_limit: float = 0.0
    total_spent: float = 0.0
    remaining: float = 0.0
    percent_used: int = 0
    over_budget: List[Budget] = field(default_factory=list)
    near_limit: List[Budget] = field(default_factory=list)


def default_budgets() -> List[Budget]:
    """Starter budgets offered to a user who has not set any yet."""
    return as_budgets(get_config_value('budgets', 'defaults', default=[]))


def spent_by_category(transactions: TransactionsInput, *, now: Any = None) -> Dict[str, float]:
    """Sum this month's expenses per category.

    Args:
        transactions: Transaction records (dataclasses, mappings or a DataFrame)
        now: Reference time; its calendar month and year define the period

    Returns:
        Dictionary mapping category names to the absolute amount spent,
        with uncategorized spending under ``Other``
    """
    current = resolve_now(now)
    frame = transactions_frame(transactions, now=current)
    if frame.empty:
        return {}

    in_month = (
        (frame['timestamp'].dt.year == current.year)
        & (frame['timestamp'].dt.month == current.month)
        & (frame['amount'] < 0)
    )
    expenses = frame[in_month]
    if expenses.empty:
        return {}
    totals = expenses['amount'].abs().groupby(expenses['category'], sort=False).sum()
    return {str(category): float(amount) for category, amount in totals.items()}


def budgets_with_spent(transactions: TransactionsInput, budgets: Any, *, now: Any = None) -> List[Budget]:
    """Return copies of ``budgets`` with ``spent`` set for the current month."""
    spending = spent_by_category(transactions, now=now)
    return [replace(budget, spent=spending.get(budget.category, 0.0)) for budget in as_budgets(budgets)]


def summarize_budgets(transactions: TransactionsInput, budgets: Any, *, now: Any = None) -> BudgetSummary:
    """Annotate budgets with spend and compute the overall consumption."""
    annotated = budgets_with_spent(transactions, budgets, now=now)
    total_limit = sum(budget.limit for budget in annotated)
    total_spent = sum(budget.spent for budget in annotated)
    percent_used = round_half_up(total_spent / total_limit * 100) if total_limit else 0

    return BudgetSummary(
        budgets=annotated,
        total_limit=total_limit,
        total_spent=total_spent,
        remaining=total_limit - total_spent,
        percent_used=percent_used,
        over_budget=[budget for budget in annotated if budget.is_over],
        near_limit=[budget for budget in annotated if budget.is_near_limit],
    )


def budget_status_list(budgets: Any) -> List[BudgetStatus]:
    return [
        BudgetStatus(
            category=budget.category,
            limit=budget.limit,
            spent=budget.spent,
            percent_used=budget.percent_used,
        )
        for budget in as_budgets(budgets)
    ]
