"""Record types consumed and produced by the derivation layer.

Input records (transactions, budgets, goals) are supplied by whatever
persistence or import code sits in front of this package. The derived
records are plain, read-only view models: they own nothing and are
rebuilt from the inputs on every call.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .dates import round_half_up

TRANSACTION_TYPES = ('Essentials', 'Needs', 'Wants', 'Income')
BUDGET_PERIODS = ('monthly', 'weekly')

OTHER_CATEGORY = 'Other'
NEAR_LIMIT_RATIO = 0.8

# Calendar months covered by one cycle of each frequency
MONTHS_PER_CYCLE = {'weekly': 0.25, 'monthly': 1.0, 'quarterly': 3.0, 'yearly': 12.0}


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and not _is_missing(data[key]):
            return data[key]
    return default


@dataclass(frozen=True)
class Transaction:
    id: int
    name: str
    category: str
    amount: float
    date: str
    type: str = ''

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Transaction':
        return cls(
            id=_to_int(_pick(data, 'id')),
            name=str(_pick(data, 'name', 'description', default='')),
            category=str(_pick(data, 'category', default='')),
            amount=_to_float(_pick(data, 'amount')),
            date=_pick(data, 'date', default=''),
            type=str(_pick(data, 'type', default='')),
        )


@dataclass(frozen=True)
class Budget:
    """A category spending limit; ``spent`` is overlaid from transactions."""

    id: int
    category: str
    limit: float
    spent: float = 0.0
    period: str = 'monthly'

    @property
    def percent_used(self) -> int:
        if self.limit <= 0:
            return 0
        return round_half_up(self.spent / self.limit * 100)

    @property
    def remaining(self) -> float:
        return self.limit - self.spent

    @property
    def is_over(self) -> bool:
        return self.spent > self.limit

    @property
    def is_near_limit(self) -> bool:
        return self.limit * NEAR_LIMIT_RATIO <= self.spent <= self.limit

    @property
    def status(self) -> str:
        if self.is_over:
            return 'over'
        if self.is_near_limit:
            return 'near_limit'
        return 'on_track'

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Budget':
        period = str(_pick(data, 'period', default='monthly')).lower()
        return cls(
            id=_to_int(_pick(data, 'id')),
            category=str(_pick(data, 'category', default='')),
            limit=_to_float(_pick(data, 'limit')),
            spent=_to_float(_pick(data, 'spent')),
            period=period if period in BUDGET_PERIODS else 'monthly',
        )


@dataclass(frozen=True)
class Goal:
    id: int
    name: str
    current: float
    target: float
    type: str = 'Other'
    deadline: str = ''
    monthly_target: float = 0.0

    @property
    def progress(self) -> int:
        """Percent of the target saved so far (0 for a non-positive target)."""
        if self.target <= 0:
            return 0
        return round_half_up(self.current / self.target * 100)

    @property
    def is_complete(self) -> bool:
        return self.current >= self.target

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Goal':
        return cls(
            id=_to_int(_pick(data, 'id')),
            name=str(_pick(data, 'name', default='Unnamed Goal')),
            current=_to_float(_pick(data, 'current', 'current_amount')),
            target=_to_float(_pick(data, 'target', 'target_amount')),
            type=str(_pick(data, 'type', default='Other')),
            deadline=str(_pick(data, 'deadline', default='')),
            monthly_target=_to_float(_pick(data, 'monthly_target', 'monthlyTarget')),
        )


@dataclass(frozen=True)
class RecurringPattern:
    name: str
    category: str
    amount: int
    frequency: str
    occurrences: int
    last_date: str
    next_expected_date: str
    avg_days_between: int

    @property
    def monthly_equivalent(self) -> float:
        months = MONTHS_PER_CYCLE.get(self.frequency)
        return self.amount / months if months else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BudgetAlert:
    category: str
    limit: float
    spent: float
    percent_used: int
    type: str

    @property
    def remaining(self) -> float:
        return self.limit - self.spent

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Totals:
    income: float = 0.0
    expenses: float = 0.0
    balance: float = 0.0
    savings_rate: int = 0

    @property
    def net(self) -> float:
        return self.balance


@dataclass(frozen=True)
class CategoryAmount:
    category: str
    amount: float


@dataclass(frozen=True)
class DaySpending:
    day: str
    amount: float


@dataclass(frozen=True)
class GoalProgress:
    name: str
    current: float
    target: float
    progress: int


@dataclass(frozen=True)
class BudgetStatus:
    category: str
    limit: float
    spent: float
    percent_used: int


@dataclass(frozen=True)
class FinancialSnapshot:
    """Point-in-time summary handed to the AI summarization collaborator."""

    totals: Totals
    highest_category: Optional[CategoryAmount] = None
    top_day: Optional[DaySpending] = None
    recent: List[Dict[str, Any]] = field(default_factory=list)
    goals: Optional[List[GoalProgress]] = None
    budgets: Optional[List[BudgetStatus]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'totals': {
                'income': self.totals.income,
                'expenses': self.totals.expenses,
                'net': self.totals.net,
                'savings_rate': self.totals.savings_rate,
            },
            'highest_category': asdict(self.highest_category) if self.highest_category else None,
            'top_day': asdict(self.top_day) if self.top_day else None,
            'recent': [dict(item) for item in self.recent],
        }
        if self.goals is not None:
            payload['goals'] = [asdict(goal) for goal in self.goals]
        if self.budgets is not None:
            payload['budgets'] = [asdict(budget) for budget in self.budgets]
        return payload
