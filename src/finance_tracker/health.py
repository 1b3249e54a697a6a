"""Financial health scoring.

The score is built from four components:

- savings rate, up to 40 points;
- budget adherence, up to 30 points;
- income stability, 20 points;
- expense stability, 10 points.

Both stability checks look at the trailing three months of the monthly
trend, with months that have no transactions counted as empty months.
Income is stable when every trailing month has income and each month is
within 25% of the window's mean.  Expenses are stable when the
latest month did not grow more than 10% over the month before.  A single
month of history is not enough evidence for either bonus.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from finance_tracker.aggregation import expense_totals_by_category, monthly_trend, totals
from finance_tracker.models import Budget, HealthMetrics, HealthScore, Transaction, TrendPoint

INCOME_STABILITY_POINTS = 20
EXPENSE_STABILITY_POINTS = 10

STABILITY_WINDOW = 3
INCOME_VARIANCE_THRESHOLD = Decimal("0.25")
EXPENSE_GROWTH_THRESHOLD = Decimal("0.10")

# (minimum percentage, points), checked top to bottom.
_SAVINGS_STEPS: list[tuple[Decimal, int]] = [
    (Decimal("20"), 40),
    (Decimal("10"), 30),
    (Decimal("5"), 20),
]
_ADHERENCE_STEPS: list[tuple[Decimal, int]] = [
    (Decimal("80"), 30),
    (Decimal("60"), 20),
    (Decimal("40"), 10),
]

_LABELS: list[tuple[int, str]] = [
    (80, "excellent"),
    (60, "good"),
    (40, "fair"),
]


def savings_points(savings_rate: Decimal) -> int:
    """Points for a savings rate percentage (max 40)."""
    for threshold, points in _SAVINGS_STEPS:
        if savings_rate >= threshold:
            return points
    return 10 if savings_rate > 0 else 0


def adherence_points(budget_adherence: Decimal) -> int:
    """Points for a budget adherence percentage (max 30)."""
    for threshold, points in _ADHERENCE_STEPS:
        if budget_adherence >= threshold:
            return points
    return 0


def health_label(score: int) -> str:
    for threshold, label in _LABELS:
        if score >= threshold:
            return label
    return "poor"


def budget_adherence(transactions: Sequence[Transaction], budgets: Sequence[Budget]) -> Decimal:
    """Percentage of budgets whose expense spending stayed within the limit.

    Returns ``Decimal("0")`` when there are no budgets.
    """
    if not budgets:
        return Decimal("0")
    spending = expense_totals_by_category(transactions)
    met = sum(1 for b in budgets if spending.get(b.category, Decimal("0")) <= b.amount)
    return Decimal(met) / Decimal(len(budgets)) * 100


def fill_month_gaps(trend: Sequence[TrendPoint]) -> list[TrendPoint]:
    """Insert empty points for calendar months missing from *trend*.

    ``monthly_trend`` only emits months that have transactions, so a month
    with no activity would otherwise be skipped by the trailing window.
    """
    filled: list[TrendPoint] = []
    for point in trend:
        if filled:
            month = _next_month(filled[-1].month)
            while month < point.month:
                filled.append(TrendPoint(month=month))
                month = _next_month(month)
        filled.append(point)
    return filled


def _next_month(month: date) -> date:
    if month.month == 12:
        return date(month.year + 1, 1, 1)
    return date(month.year, month.month + 1, 1)


def has_stable_income(trend: Sequence[TrendPoint], window: int = STABILITY_WINDOW) -> bool:
    """Check that trailing monthly income is present and consistent.

    Every month in the window must have income within 25% of the window's
    mean.  Calendar months missing from *trend* count as months without
    income.
    """
    trend = fill_month_gaps(trend)
    if len(trend) < 2:
        return False
    incomes = [point.income for point in trend[-window:]]
    if any(income <= 0 for income in incomes):
        return False

    mean = sum(incomes, Decimal("0")) / len(incomes)
    return all(abs(income - mean) / mean <= INCOME_VARIANCE_THRESHOLD for income in incomes)


def has_stable_expenses(trend: Sequence[TrendPoint]) -> bool:
    """Check that the latest month's expenses did not jump over the previous month.

    The previous month is the previous calendar month, which has no
    expenses if it is missing from *trend*.
    """
    trend = fill_month_gaps(trend)
    if len(trend) < 2:
        return False
    previous, latest = trend[-2].expenses, trend[-1].expenses
    return latest <= previous * (1 + EXPENSE_GROWTH_THRESHOLD)


def score_health(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget] = (),
) -> HealthScore | None:
    """Compute the composite financial health score.

    Args:
        transactions: Transaction snapshot.
        budgets: Budgets to check adherence against.

    Returns:
        A :class:`HealthScore`, or None when there are no transactions.
        An empty history has no score at all rather than a score of zero.
    """
    if not transactions:
        return None

    summary = totals(transactions)
    income, expenses = summary.income, summary.expenses

    if income > 0:
        savings_rate = (income - expenses) / income * 100
        expense_ratio: Decimal | None = expenses / income * 100
    else:
        savings_rate = Decimal("0")
        expense_ratio = None

    adherence = budget_adherence(transactions, budgets)
    trend = monthly_trend(transactions)
    income_stable = has_stable_income(trend)
    expenses_stable = has_stable_expenses(trend)

    s_points = savings_points(savings_rate)
    a_points = adherence_points(adherence)
    score = s_points + a_points
    if income_stable:
        score += INCOME_STABILITY_POINTS
    if expenses_stable:
        score += EXPENSE_STABILITY_POINTS
    score = max(0, min(100, score))

    return HealthScore(
        score=score,
        category=health_label(score),
        metrics=HealthMetrics(
            savings_rate=savings_rate,
            budget_adherence=adherence,
            expense_to_income_ratio=expense_ratio,
        ),
        savings_points=s_points,
        adherence_points=a_points,
        income_stable=income_stable,
        expenses_stable=expenses_stable,
    )
