"""Next-month expense forecast.

The heuristic forecast for a category is its mean expense transaction
grown by 5%.  It is deliberately simple: the AI delegate is expected to
do better when it is available.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from decimal import Decimal

from finance_tracker.categories import OTHER_EXPENSE, category_icon
from finance_tracker.models import CENTS, PredictedCategory, PredictionBundle, Transaction

GROWTH_FACTOR = Decimal("1.05")


def predict_future_expenses(transactions: Sequence[Transaction]) -> PredictionBundle:
    """Predict next month's expenses per category.

    Returns:
        A :class:`PredictionBundle` whose categories are sorted by
        predicted amount descending (ties by name) and whose total is the
        sum of the rounded category predictions.  An empty bundle when
        there are no expenses.
    """
    sums: defaultdict[str, Decimal] = defaultdict(Decimal)
    counts: defaultdict[str, int] = defaultdict(int)
    for txn in transactions:
        if txn.amount >= 0:
            continue
        category = txn.category or OTHER_EXPENSE
        sums[category] += -txn.amount
        counts[category] += 1

    predictions: list[PredictedCategory] = []
    for category, total in sums.items():
        predicted = (total / counts[category] * GROWTH_FACTOR).quantize(CENTS)
        if predicted > 0:
            predictions.append(
                PredictedCategory(name=category, amount=predicted, icon=category_icon(category))
            )

    predictions.sort(key=lambda p: (-p.amount, p.name))
    total_predicted = sum((p.amount for p in predictions), Decimal("0"))
    return PredictionBundle(total_predicted=total_predicted, categories=predictions)
