"""Rule-based monthly budget recommendations.

For the five categories with the highest expense totals, a monthly
average is derived by dividing the category total by the observation
window (``months_of_history``, three months unless configured otherwise).

- With an existing budget, overspending tightens the budget to 90% of the
  average, heavy underspending (below 70% of the budget) trims it to 110%
  of the average, and anything in between keeps it.
- Without a budget, the recommendation is the category's actual share of
  income capped by a guideline percentage (housing 30%, food and grocery
  15%, transport 10%, everything else 5%).

All recommendations are rounded up to whole currency units.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import Decimal

from finance_tracker.aggregation import expense_totals_by_category, totals
from finance_tracker.categories import category_icon
from finance_tracker.models import Budget, BudgetRecommendation, Transaction

DEFAULT_MONTHS_OF_HISTORY = 3
TOP_CATEGORIES = 5

OVERSPEND_FACTOR = Decimal("0.9")
UNDERSPEND_THRESHOLD = Decimal("0.7")
UNDERSPEND_FACTOR = Decimal("1.1")

# Guideline ceilings as a percentage of income.
INCOME_SHARE_CAPS: dict[str, Decimal] = {
    "housing": Decimal("30"),
    "food": Decimal("15"),
    "grocery": Decimal("15"),
    "transport": Decimal("10"),
}
DEFAULT_INCOME_SHARE_CAP = Decimal("5")


def _ceil(value: Decimal) -> Decimal:
    return Decimal(math.ceil(value))


def top_expense_categories(
    expenses: dict[str, Decimal],
    limit: int = TOP_CATEGORIES,
) -> list[tuple[str, Decimal]]:
    """Return the *limit* largest categories, ties broken by identifier."""
    ranked = sorted(expenses.items(), key=lambda pair: (-pair[1], pair[0]))
    return ranked[:limit]


def recommend_budgets(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget] = (),
    months_of_history: int = DEFAULT_MONTHS_OF_HISTORY,
) -> list[BudgetRecommendation]:
    """Recommend monthly budgets for the top spending categories.

    Args:
        transactions: Transaction snapshot covering the observation window.
        budgets: Existing budgets.  If a category appears twice the last
            definition wins.
        months_of_history: Number of months the snapshot is assumed to
            cover.

    Returns:
        Up to five :class:`BudgetRecommendation` objects, largest spending
        category first.  An empty list when there is nothing to analyse.

    Raises:
        ValueError: If *months_of_history* is less than 1.
    """
    if months_of_history < 1:
        raise ValueError(f"months_of_history must be at least 1, got {months_of_history}")
    if not transactions:
        return []

    existing = {budget.category: budget.amount for budget in budgets}
    income = totals(transactions).income
    expenses = expense_totals_by_category(transactions)

    recommendations: list[BudgetRecommendation] = []
    for category, amount in top_expense_categories(expenses):
        monthly_average = amount / months_of_history
        current = existing.get(category)

        if current:
            recommended, reasoning = _adjust_existing(monthly_average, current)
        else:
            current = None
            recommended, reasoning = _from_income(category, monthly_average, income)

        recommendations.append(
            BudgetRecommendation(
                category=category,
                current_budget=current,
                recommended_budget=max(recommended, Decimal("0")),
                reasoning=reasoning,
                icon=category_icon(category),
            )
        )

    return recommendations


def _adjust_existing(monthly_average: Decimal, current: Decimal) -> tuple[Decimal, str]:
    if monthly_average > current:
        return (
            _ceil(monthly_average * OVERSPEND_FACTOR),
            "Your average spending is higher than your current budget. Consider adjusting "
            "it to be more realistic while aiming for some reduction.",
        )
    if monthly_average < current * UNDERSPEND_THRESHOLD:
        return (
            _ceil(monthly_average * UNDERSPEND_FACTOR),
            "Your spending is well below budget. You could reduce this budget and "
            "allocate funds elsewhere.",
        )
    return current, "Your current budget aligns well with your spending patterns."


def _from_income(category: str, monthly_average: Decimal, income: Decimal) -> tuple[Decimal, str]:
    if income <= 0:
        return (
            Decimal("0"),
            "Not enough income data to size this budget. Record your income to get "
            "a recommendation.",
        )

    actual_percent = monthly_average / income * 100
    cap = INCOME_SHARE_CAPS.get(category, DEFAULT_INCOME_SHARE_CAP)
    percent = min(actual_percent, cap)
    return (
        _ceil(percent / 100 * income),
        f"Based on your income and typical financial guidelines, consider allocating "
        f"about {percent:.1f}% of your income to this category.",
    )
