"""Human-readable report printers for the CLI.

Each printer takes already-computed records and writes plain text to
stdout.  No analytics happen here.
"""

from __future__ import annotations

from collections.abc import Sequence

from finance_tracker.categories import category_icon, category_name
from finance_tracker.models import (
    ActionRecommendation,
    BudgetRecommendation,
    BudgetStatus,
    CategoryTotal,
    HealthScore,
    Insight,
    PredictionBundle,
    StageResult,
    Totals,
    Transaction,
    TrendPoint,
)


def _money(amount) -> str:
    return f"${amount:,.2f}"


def print_summary(
    summary: Totals,
    categories: Sequence[CategoryTotal],
    trend: Sequence[TrendPoint],
    statuses: Sequence[BudgetStatus] = (),
    timeframe: str = "all",
) -> None:
    """Print dashboard totals, the category breakdown and the monthly trend."""
    print()
    print(f"== Summary ({timeframe}) ==")
    print(f"Income:   {_money(summary.income)}")
    print(f"Expenses: {_money(summary.expenses)}")
    print(f"Balance:  {_money(summary.balance)}")

    if categories:
        print()
        print("By category:")
        for item in sorted(categories, key=lambda c: (-c.amount, c.category)):
            label = f"{category_icon(item.category)} {category_name(item.category)}:"
            print(f"  {label:<25} {_money(item.amount)}")

    if trend:
        print()
        print("Monthly trend:")
        for point in trend:
            print(
                f"  {point.label:<9} income {_money(point.income):>12}"
                f"   expenses {_money(point.expenses):>12}"
            )

    if statuses:
        print()
        print("Budgets:")
        for status in statuses:
            name = category_name(status.category)
            line = f"  {name + ':':<25} {_money(status.spent)} / {_money(status.limit)}"
            if status.is_over:
                line += f"  (over by {_money(-status.remaining)})"
            else:
                line += f"  ({_money(status.remaining)} remaining)"
            print(line)
    print()


def print_transactions(transactions: Sequence[Transaction], summary: Totals) -> None:
    """Print one line per transaction followed by the totals of the list."""
    print()
    print(f"== Transactions ({len(transactions)}) ==")
    for txn in transactions:
        label = f"{category_icon(txn.category)} {category_name(txn.category)}"
        print(f"  {txn.date.isoformat()}  {txn.title[:30]:<30}  {label:<25} {_money(txn.amount):>12}")
    print()
    print(f"Income:   {_money(summary.income)}")
    print(f"Expenses: {_money(summary.expenses)}")
    print(f"Balance:  {_money(summary.balance)}")
    print()


def print_stage_messages(result: StageResult) -> None:
    """Print loader warnings and errors, if any."""
    if result.warnings:
        print(f"Warnings: {len(result.warnings)}")
        for w in result.warnings:
            print(f"  - {w}")
    if result.errors:
        print(f"Errors: {len(result.errors)}")
        for e in result.errors:
            print(f"  - {e}")


def print_insights(insights: Sequence[Insight]) -> None:
    print()
    print("== Insights ==")
    if not insights:
        print("  (no data)")
    for insight in insights:
        print(f"* {insight.title}" + (f" [{insight.amount}]" if insight.amount else ""))
        print(f"  {insight.description}")
        if insight.action:
            print(f"  -> {insight.action}")
    print()


def print_recommendations(recommendations: Sequence[BudgetRecommendation]) -> None:
    print()
    print("== Budget Recommendations ==")
    if not recommendations:
        print("  (no spending data)")
    for rec in recommendations:
        current = _money(rec.current_budget) if rec.current_budget is not None else "none"
        print(
            f"{rec.icon} {category_name(rec.category)}: {_money(rec.recommended_budget)}"
            f" (current: {current})"
        )
        print(f"  {rec.reasoning}")
    print()


def print_health(score: HealthScore | None) -> None:
    print()
    print("== Financial Health ==")
    if score is None:
        print("  Add some transactions to get a health score.")
        print()
        return

    metrics = score.metrics
    ratio = f"{metrics.expense_to_income_ratio:.1f}%" if metrics.expense_to_income_ratio is not None else "N/A"
    print(f"Score:    {score.score}/100 ({score.category.capitalize()})")
    print(f"Savings rate:            {metrics.savings_rate:.1f}%")
    print(f"Budget adherence:        {metrics.budget_adherence:.1f}%")
    print(f"Expense to income ratio: {ratio}")
    print(f"Income stable:   {'yes' if score.income_stable else 'no'}")
    print(f"Expenses stable: {'yes' if score.expenses_stable else 'no'}")
    if score.insights:
        print()
        print_actions(score.insights, header=False)
    print()


def print_forecast(bundle: PredictionBundle) -> None:
    print()
    print("== Next Month Forecast ==")
    for item in bundle.categories:
        label = f"{item.icon} {category_name(item.name)}:"
        print(f"  {label:<25} {_money(item.amount)}")
    print(f"Total predicted: {_money(bundle.total_predicted)}")
    print()


def print_actions(actions: Sequence[ActionRecommendation], header: bool = True) -> None:
    if header:
        print()
        print("== Recommended Actions ==")
    for action in actions:
        print(f"* {action.title} ({action.impact} impact, {action.timeframe})")
        print(f"  {action.description}")
    if header:
        print()
