"""Normalization of caller-supplied collections into working snapshots.

Every derivation starts by copying its input into a fresh DataFrame (or
list of records) so that group-bys and sorts never observe a collection
that the caller mutates mid-computation. Normalization applies the
lenience policy in one place: bad amounts become 0, blank categories
become ``Other`` and unreadable dates become ``now``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd

from .dates import parse_date, resolve_now
from .models import OTHER_CATEGORY, Budget, Goal, Transaction

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = ['id', 'name', 'category', 'amount', 'date', 'type']

TransactionsInput = Optional[Union[pd.DataFrame, Iterable[Union[Transaction, Mapping[str, Any]]]]]


def _records(items: Any) -> List[Any]:
    if items is None:
        return []
    if isinstance(items, pd.DataFrame):
        return items.to_dict('records')
    return list(items)


def as_transactions(transactions: TransactionsInput) -> List[Transaction]:
    result = []
    for item in _records(transactions):
        if isinstance(item, Transaction):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(Transaction.from_dict(item))
        else:
            raise TypeError(f"Unsupported transaction record: {type(item).__name__}")
    return result


def as_budgets(budgets: Any) -> List[Budget]:
    result = []
    for item in _records(budgets):
        if isinstance(item, Budget):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(Budget.from_dict(item))
        else:
            raise TypeError(f"Unsupported budget record: {type(item).__name__}")
    return result


def as_goals(goals: Any) -> List[Goal]:
    result = []
    for item in _records(goals):
        if isinstance(item, Goal):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(Goal.from_dict(item))
        else:
            raise TypeError(f"Unsupported goal record: {type(item).__name__}")
    return result


def transactions_frame(transactions: TransactionsInput, now: Any = None) -> pd.DataFrame:
    """Build the working DataFrame for a derivation.

    Columns: ``id``, ``name``, ``category``, ``amount``, ``date`` (as
    supplied), ``type`` and ``timestamp`` (parsed, naive). Row order
    follows the input order.
    """
    current = resolve_now(now)
    records = as_transactions(transactions)
    frame = pd.DataFrame([asdict(record) for record in records], columns=TRANSACTION_COLUMNS)

    frame['amount'] = pd.to_numeric(frame['amount'], errors='coerce').fillna(0.0).astype(float)
    frame['name'] = frame['name'].fillna('').astype(str)
    frame['type'] = frame['type'].fillna('').astype(str)

    category = frame['category'].fillna('').astype(str).str.strip()
    blank = category == ''
    if blank.any():
        logger.debug("Folding %d uncategorized transactions into %s", int(blank.sum()), OTHER_CATEGORY)
    frame['category'] = category.mask(blank, OTHER_CATEGORY)

    parsed = pd.Series(
        [parse_date(value, now=current) for value in frame['date']],
        index=frame.index,
        dtype=object,
    )
    frame['timestamp'] = pd.to_datetime(parsed)
    return frame
