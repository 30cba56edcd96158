"""Top-level package for the finance insights derivation layer.

This package turns a plain list of transactions (plus budgets and
goals) into the derived structures a personal-finance dashboard shows.
The primary modules are:

* ``recurring`` – recurring payment detection (subscriptions, bills)
* ``budgets`` – budget consumption for the current month
* ``alerts`` – budget threshold alerts with per-month deduplication
* ``summary`` – totals, breakdowns, weekly and monthly series, snapshot
* ``insights`` – rule-based advice computed from a snapshot

Everything is synchronous and pure apart from the caller-owned
``alerts.AlertState``. Time-relative functions accept an explicit
``now`` so results can be reproduced.
"""

from . import alerts  # noqa: F401  # re-exported for convenience
from . import budgets  # noqa: F401  # re-exported for convenience
from . import insights  # noqa: F401  # re-exported for convenience
from . import recurring  # noqa: F401  # re-exported for convenience
from . import summary  # noqa: F401  # re-exported for convenience
from .models import Budget, BudgetAlert, FinancialSnapshot, Goal, RecurringPattern, Transaction

__all__ = [
    "alerts",
    "budgets",
    "insights",
    "recurring",
    "summary",
    "Budget",
    "BudgetAlert",
    "FinancialSnapshot",
    "Goal",
    "RecurringPattern",
    "Transaction",
]
