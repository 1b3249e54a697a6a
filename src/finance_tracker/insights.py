"""Deterministic spending insights and action recommendations.

These are the heuristic counterparts of the AI delegate's
``generate_insights`` and ``recommend_actions`` operations and produce the
same record types.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from finance_tracker.aggregation import expense_totals_by_category, monthly_trend, totals
from finance_tracker.budgets import top_expense_categories
from finance_tracker.categories import category_name
from finance_tracker.models import ActionRecommendation, Insight, Transaction

TARGET_SAVINGS_RATE = Decimal("20")
INCOME_TREND_MIN_TRANSACTIONS = 10
INCOME_TREND_SAMPLE = 5
EXPENSE_TREND_THRESHOLD = Decimal("10")
TOP_CATEGORY_SHARE_THRESHOLD = Decimal("30")
DEBT_KEYWORDS = ("loan", "debt", "mortgage", "credit")

STARTER_ACTIONS: list[ActionRecommendation] = [
    ActionRecommendation(
        title="Start Tracking Your Expenses",
        description="Begin by recording all your expenses to get a clear picture of "
        "your spending habits.",
        impact="High",
        timeframe="Short-term",
    ),
    ActionRecommendation(
        title="Create a Basic Budget",
        description="Set up a simple budget for essential categories like housing, "
        "food, and transportation.",
        impact="High",
        timeframe="Short-term",
    ),
    ActionRecommendation(
        title="Build an Emergency Fund",
        description="Start saving for an emergency fund to cover 3-6 months of expenses.",
        impact="High",
        timeframe="Medium-term",
    ),
]


def savings_rate(income: Decimal, expenses: Decimal) -> Decimal:
    if income <= 0:
        return Decimal("0")
    return (income - expenses) / income * 100


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


def generate_insights(transactions: Sequence[Transaction]) -> list[Insight]:
    """Summarise savings, top spending, and income/expense trends.

    Returns:
        An empty list for an empty snapshot, otherwise a savings-rate
        insight followed by whichever of the top-category, income-trend
        and expense-trend insights have enough data behind them.
    """
    if not transactions:
        return []

    summary = totals(transactions)
    income, expenses = summary.income, summary.expenses
    rate = savings_rate(income, expenses)

    insights = [
        Insight(
            title="Monthly Savings Rate",
            description=f"Your savings rate is {rate:.1f}% of your income.",
            action=(
                "Try to increase your savings rate to at least 20% for financial security."
                if rate < TARGET_SAVINGS_RATE
                else "Great job! Keep maintaining this savings rate."
            ),
            amount=f"{income - expenses:.2f}",
        )
    ]

    top = top_expense_categories(expense_totals_by_category(transactions), limit=1)
    if top and expenses > 0:
        category, amount = top[0]
        share = amount / expenses * 100
        insights.append(
            Insight(
                title="Top Spending Category",
                description=f"Your highest spending is in {category_name(category)} at "
                f"{share:.1f}% of total expenses.",
                action="Review if you can optimize spending in this category.",
                amount=f"{amount:.2f}",
            )
        )

    income_insight = _income_trend_insight(transactions)
    if income_insight is not None:
        insights.append(income_insight)

    expense_insight = _expense_trend_insight(transactions)
    if expense_insight is not None:
        insights.append(expense_insight)

    return insights


def _income_trend_insight(transactions: Sequence[Transaction]) -> Insight | None:
    """Compare the five most recent income records against the five before."""
    if len(transactions) <= INCOME_TREND_MIN_TRANSACTIONS:
        return None

    incomes = sorted((t for t in transactions if t.amount > 0), key=lambda t: t.date, reverse=True)
    n = INCOME_TREND_SAMPLE
    recent = sum((t.amount for t in incomes[:n]), Decimal("0"))
    older = sum((t.amount for t in incomes[n : 2 * n]), Decimal("0"))
    if recent <= 0 or older <= 0:
        return None

    change = (recent - older) / older * 100
    return Insight(
        title="Income Trend",
        description=f"Your recent income has {'increased' if change > 0 else 'decreased'} "
        f"by {abs(change):.1f}%.",
        action=(
            "Look for additional income sources to stabilize your finances."
            if change < 0
            else "Consider investing the extra income for future growth."
        ),
        amount=f"{abs(recent - older):.2f}",
    )


def _expense_trend_insight(transactions: Sequence[Transaction]) -> Insight | None:
    """Flag a month-over-month expense change larger than 10%."""
    trend = monthly_trend(transactions)
    if len(trend) < 2:
        return None

    previous, latest = trend[-2], trend[-1]
    if previous.expenses == 0:
        return None
    diff = latest.expenses - previous.expenses
    change = diff / previous.expenses * 100
    if abs(change) <= EXPENSE_TREND_THRESHOLD:
        return None

    direction = "increased" if change > 0 else "decreased"
    return Insight(
        title="Expense Trend",
        description=f"Your expenses {direction} by {abs(change):.1f}% in {latest.label} "
        f"compared to {previous.label}.",
        action=(
            "Check which categories drove the increase."
            if change > 0
            else "Keep it up and consider moving the difference into savings."
        ),
        amount=f"{abs(diff):.2f}",
    )


# ---------------------------------------------------------------------------
# Action recommendations
# ---------------------------------------------------------------------------


def recommend_actions(transactions: Sequence[Transaction]) -> list[ActionRecommendation]:
    """Recommend concrete next steps based on savings and spending.

    An empty snapshot gets the three starter actions.
    """
    if not transactions:
        return list(STARTER_ACTIONS)

    summary = totals(transactions)
    rate = savings_rate(summary.income, summary.expenses)
    actions: list[ActionRecommendation] = []

    if rate < TARGET_SAVINGS_RATE:
        actions.append(
            ActionRecommendation(
                title="Increase Your Savings Rate",
                description=f"Your current savings rate is {rate:.1f}%. Aim to save at "
                "least 20% of your income.",
                impact="High",
                timeframe="Medium-term",
            )
        )
    else:
        actions.append(
            ActionRecommendation(
                title="Maintain Your Savings Rate",
                description=f"Great job! Your savings rate is {rate:.1f}%. Consider "
                "investing your savings for long-term growth.",
                impact="Medium",
                timeframe="Long-term",
            )
        )

    top = top_expense_categories(expense_totals_by_category(transactions), limit=1)
    if top and summary.expenses > 0:
        category, amount = top[0]
        share = amount / summary.expenses * 100
        if share > TOP_CATEGORY_SHARE_THRESHOLD:
            actions.append(
                ActionRecommendation(
                    title=f"Optimize {category_name(category)} Spending",
                    description=f"This category accounts for {share:.1f}% of your "
                    "expenses. Look for ways to reduce costs here.",
                    impact="High",
                    timeframe="Short-term",
                )
            )

    actions.append(
        ActionRecommendation(
            title="Build or Strengthen Emergency Fund",
            description="Ensure you have 3-6 months of essential expenses saved in an "
            "easily accessible account.",
            impact="High",
            timeframe="Medium-term",
        )
    )

    if _has_debt(transactions):
        actions.append(
            ActionRecommendation(
                title="Create a Debt Repayment Plan",
                description="Focus on paying off high-interest debt first, then work on "
                "other debts.",
                impact="High",
                timeframe="Medium-term",
            )
        )

    return actions


def _has_debt(transactions: Sequence[Transaction]) -> bool:
    for txn in transactions:
        if txn.amount >= 0:
            continue
        category = txn.category.lower()
        title = txn.title.lower()
        if any(k in category or k in title for k in DEBT_KEYWORDS):
            return True
    return False
