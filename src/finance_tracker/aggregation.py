"""Pure reducers over transaction snapshots.

Dashboard totals, the category breakdown, the monthly trend series and
budget progress are all computed here, along with the filters and sort
orders of the transaction list.  Every function takes a sequence
of already-parsed :class:`~finance_tracker.models.Transaction` objects;
date and amount parsing happens once, in ``loader.py``, so nothing in this
module can fail on malformed input.

A zero amount is neither income nor expense and contributes to neither
total.  The loader rejects such records, but the reducers tolerate them.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from finance_tracker.categories import OTHER_EXPENSE
from finance_tracker.models import (
    CENTS,
    Budget,
    BudgetStatus,
    CategoryTotal,
    Totals,
    Transaction,
    TrendPoint,
)

TIMEFRAME_DAYS: dict[str, int | None] = {
    "all": None,
    "month": 30,
    "week": 7,
}

TRANSACTION_KINDS = ("all", "income", "expense")
SORT_ORDERS = ("date-desc", "date-asc", "amount-desc", "amount-asc")


def totals(transactions: Iterable[Transaction]) -> Totals:
    """Sum income (positive amounts) and expenses (absolute negatives)."""
    result = Totals()
    for txn in transactions:
        if txn.amount > 0:
            result.income += txn.amount
        elif txn.amount < 0:
            result.expenses += -txn.amount
    return result


def category_totals(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Group absolute amounts by category.

    The grouping does not look at the sign: income and expense categories
    appear side by side, which is what an "all activity by category" view
    wants.  Callers that need an expense-only breakdown should use
    :func:`expense_totals_by_category` or pre-filter.

    Returns:
        One :class:`CategoryTotal` per category, in order of first
        occurrence, with amounts rounded to cents.
    """
    grouped: dict[str, Decimal] = {}
    for txn in transactions:
        grouped[txn.category] = grouped.get(txn.category, Decimal("0")) + abs(txn.amount)
    return [
        CategoryTotal(category=category, amount=amount.quantize(CENTS))
        for category, amount in grouped.items()
    ]


def expense_totals_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum absolute expense amounts per category, ignoring income.

    Transactions with an empty category are grouped as ``other_expense``.
    """
    grouped: defaultdict[str, Decimal] = defaultdict(Decimal)
    for txn in transactions:
        if txn.amount < 0:
            grouped[txn.category or OTHER_EXPENSE] += -txn.amount
    return dict(grouped)


def monthly_trend(transactions: Iterable[Transaction]) -> list[TrendPoint]:
    """Bucket income and expenses by calendar month.

    Returns:
        One :class:`TrendPoint` per month that has at least one
        transaction, sorted ascending by the month's first day (never by
        the display label).
    """
    buckets: dict[date, TrendPoint] = {}
    for txn in transactions:
        month_start = txn.date.replace(day=1)
        point = buckets.get(month_start)
        if point is None:
            point = buckets[month_start] = TrendPoint(month=month_start)
        if txn.amount > 0:
            point.income += txn.amount
        elif txn.amount < 0:
            point.expenses += -txn.amount
    return [buckets[month] for month in sorted(buckets)]


def filter_by_timeframe(
    transactions: Sequence[Transaction],
    timeframe: str = "all",
    today: date | None = None,
) -> list[Transaction]:
    """Keep transactions no older than the timeframe window.

    Args:
        transactions: Transactions to filter.
        timeframe: ``"all"``, ``"month"`` (30 days) or ``"week"`` (7 days).
        today: Reference date.  Defaults to ``date.today()``.

    Raises:
        ValueError: If *timeframe* is not recognised.
    """
    if timeframe not in TIMEFRAME_DAYS:
        available = ", ".join(TIMEFRAME_DAYS)
        raise ValueError(f"Unknown timeframe {timeframe!r}. Available: {available}")

    window = TIMEFRAME_DAYS[timeframe]
    if window is None:
        return list(transactions)

    today = today or date.today()
    return [txn for txn in transactions if (today - txn.date).days <= window]


def filter_transactions(
    transactions: Iterable[Transaction],
    kind: str = "all",
    search: str = "",
    start: date | None = None,
    end: date | None = None,
    category: str | None = None,
) -> list[Transaction]:
    """Select the transactions matching every given filter.

    Args:
        transactions: Transactions to filter.
        kind: ``"all"``, ``"income"`` (positive amounts) or ``"expense"``
            (negative amounts).
        search: Case-insensitive substring matched against the title,
            category and notes.  Empty matches everything.
        start: Earliest date to keep, inclusive.
        end: Latest date to keep, inclusive.
        category: Exact category identifier to keep.

    Raises:
        ValueError: If *kind* is not recognised.
    """
    if kind not in TRANSACTION_KINDS:
        available = ", ".join(TRANSACTION_KINDS)
        raise ValueError(f"Unknown transaction type {kind!r}. Available: {available}")

    needle = search.strip().lower()
    selected: list[Transaction] = []
    for txn in transactions:
        if kind == "income" and txn.amount <= 0:
            continue
        if kind == "expense" and txn.amount >= 0:
            continue
        if needle and not any(needle in field.lower() for field in (txn.title, txn.category, txn.notes)):
            continue
        if start is not None and txn.date < start:
            continue
        if end is not None and txn.date > end:
            continue
        if category and txn.category != category:
            continue
        selected.append(txn)
    return selected


def sort_transactions(
    transactions: Iterable[Transaction],
    order: str = "date-desc",
) -> list[Transaction]:
    """Sort transactions by date or by absolute amount.

    Equal keys keep their input order.

    Raises:
        ValueError: If *order* is not one of :data:`SORT_ORDERS`.
    """
    if order not in SORT_ORDERS:
        available = ", ".join(SORT_ORDERS)
        raise ValueError(f"Unknown sort order {order!r}. Available: {available}")

    field, direction = order.split("-")
    if field == "date":
        return sorted(transactions, key=lambda t: t.date, reverse=direction == "desc")
    return sorted(transactions, key=lambda t: abs(t.amount), reverse=direction == "desc")


def budget_status(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
) -> list[BudgetStatus]:
    """Compare expense spending per category against each budget.

    Returns:
        One :class:`BudgetStatus` per budget, in budget order.
        ``percentage`` is spent/limit*100 rounded to one decimal place.
    """
    spending = expense_totals_by_category(transactions)
    statuses: list[BudgetStatus] = []
    for budget in budgets:
        spent = spending.get(budget.category, Decimal("0"))
        if budget.amount > 0:
            percentage = (spent / budget.amount * 100).quantize(Decimal("0.1"))
        else:
            percentage = Decimal("0")
        statuses.append(
            BudgetStatus(
                category=budget.category,
                limit=budget.amount,
                spent=spent.quantize(CENTS),
                remaining=(budget.amount - spent).quantize(CENTS),
                percentage=percentage,
            )
        )
    return statuses
