"""Core data models for Finance Tracker.

This module defines the dataclasses shared by every analytics module.  It
depends only on ``errors.py`` -- everything depends on it, but it depends
on nothing else within the package.

Transactions and budgets are read-only snapshots of the stored documents;
every other record here is derived on demand and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from finance_tracker.errors import ParseError

CENTS = Decimal("0.01")


def parse_date(value: object) -> date:
    """Parse an ISO 8601 date or timestamp into a calendar date.

    Accepts ``date`` and ``datetime`` instances as-is, plain dates
    (``"2024-01-05"``) and full timestamps (``"2024-01-05T10:30:00Z"``).
    Timestamps keep their own calendar day; no timezone conversion is
    applied.

    Raises:
        ParseError: If *value* is empty or not a valid ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ParseError("date", value)

    text = value.strip()
    try:
        if "T" in text or " " in text:
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    except ValueError:
        raise ParseError("date", value) from None


def parse_amount(value: object, field_name: str = "amount") -> Decimal:
    """Parse a numeric value into a finite ``Decimal``.

    Raises:
        ParseError: If *value* is missing, boolean, non-numeric, NaN or
            infinite.
    """
    if value is None or isinstance(value, bool):
        raise ParseError(field_name, value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ParseError(field_name, value) from None
    if not amount.is_finite():
        raise ParseError(field_name, value)
    return amount


@dataclass(frozen=True)
class Transaction:
    """A single income or expense record.

    Attributes:
        title: Free-text description entered by the user.
        amount: Signed amount.  Positive is income, negative is expense.
        category: Category identifier, normally one of
            :data:`finance_tracker.categories.CATEGORY_IDS`.
        date: Calendar date of the transaction.
        id: Storage identifier, empty before the record is created.
        notes: Optional free text with no analytic meaning.
        merchant: Optional merchant label set by enrichment.
    """

    title: str
    amount: Decimal
    category: str
    date: date
    id: str = ""
    notes: str = ""
    merchant: str = ""

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @classmethod
    def from_record(cls, record: dict) -> Transaction:
        """Build a Transaction from a stored document (a plain dict).

        Raises:
            ParseError: If the date or amount cannot be parsed.
        """
        return cls(
            title=str(record.get("title") or "").strip(),
            amount=parse_amount(record.get("amount")),
            category=str(record.get("category") or "").strip(),
            date=parse_date(record.get("date")),
            id=str(record.get("id") or ""),
            notes=str(record.get("notes") or ""),
            merchant=str(record.get("merchant") or ""),
        )

    def to_record(self) -> dict:
        """Return the JSON-friendly document shape of this transaction."""
        return {
            "id": self.id,
            "title": self.title,
            "amount": float(self.amount),
            "category": self.category,
            "date": self.date.isoformat(),
            "notes": self.notes,
            "merchant": self.merchant,
        }


@dataclass(frozen=True)
class Budget:
    """A monthly spending ceiling for one category."""

    category: str
    amount: Decimal
    created_at: datetime | None = None

    def to_record(self) -> dict:
        return {
            "category": self.category,
            "amount": float(self.amount),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass
class Totals:
    """Income and expense totals.  Both values are non-negative."""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


@dataclass
class CategoryTotal:
    category: str
    amount: Decimal


@dataclass
class TrendPoint:
    """Income and expenses for one calendar month.

    Attributes:
        month: First day of the month.  This is the sort key; ``label`` is
            for display only.
        income: Sum of positive amounts in the month.
        expenses: Sum of absolute negative amounts in the month.
    """

    month: date
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def label(self) -> str:
        return self.month.strftime("%b %Y")


@dataclass
class BudgetStatus:
    """Spending progress against one budget."""

    category: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: Decimal

    @property
    def is_over(self) -> bool:
        return self.spent > self.limit


@dataclass
class MerchantInfo:
    """Merchant label, category and icon derived from a description."""

    merchant: str
    category: str
    icon: str


@dataclass
class Insight:
    """A short observation about spending behaviour."""

    title: str
    description: str
    action: str = ""
    amount: str = ""


@dataclass
class ActionRecommendation:
    title: str
    description: str
    impact: str
    timeframe: str


@dataclass
class BudgetRecommendation:
    """Recommended monthly budget for one category.

    Attributes:
        category: Category identifier.
        current_budget: The existing budget, or None when the category has
            no budget yet.
        recommended_budget: Whole-unit recommendation, never negative.
        reasoning: Human-readable explanation.
        icon: Display emoji for the category.
    """

    category: str
    current_budget: Decimal | None
    recommended_budget: Decimal
    reasoning: str
    icon: str


@dataclass
class PredictedCategory:
    name: str
    amount: Decimal
    icon: str


@dataclass
class PredictionBundle:
    """Predicted expenses for the next month."""

    total_predicted: Decimal = Decimal("0")
    categories: list[PredictedCategory] = field(default_factory=list)


@dataclass
class HealthMetrics:
    """Percentages feeding the health score.

    ``expense_to_income_ratio`` is None when there is no income to compare
    against.
    """

    savings_rate: Decimal
    budget_adherence: Decimal
    expense_to_income_ratio: Decimal | None


@dataclass
class HealthScore:
    """Composite 0-100 financial health score.

    Attributes:
        score: Sum of all component points, clamped to 0..100.
        category: ``"excellent"``, ``"good"``, ``"fair"`` or ``"poor"``.
        metrics: The underlying percentages.
        savings_points: Points earned from the savings rate (max 40).
        adherence_points: Points earned from budget adherence (max 30).
        income_stable: True if trailing monthly income is consistent
            (worth 20 points).
        expenses_stable: True if expenses did not jump in the latest month
            (worth 10 points).
        insights: Action recommendations attached by the advisor.
    """

    score: int
    category: str
    metrics: HealthMetrics
    savings_points: int = 0
    adherence_points: int = 0
    income_stable: bool = False
    expenses_stable: bool = False
    insights: list[ActionRecommendation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Loading and configuration
# ---------------------------------------------------------------------------


@dataclass
class StageResult:
    """Return type for the snapshot loaders.

    Each loader processes what it can and reports what it could not.

    Attributes:
        transactions: Successfully parsed transactions.
        budgets: Successfully parsed budgets.
        warnings: Non-fatal issues such as skipped records.
        errors: Fatal issues for a whole input (unreadable file, too many
            malformed records).  Whatever could be parsed is still returned
            unless the input was rejected outright.
    """

    transactions: list[Transaction] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    """Top-level application configuration loaded from config.toml.

    Attributes:
        ai_provider: ``"gemini"`` or ``"none"``.
        ai_model: Gemini model name used in the endpoint path.
        ai_api_key_env: Name of the environment variable holding the
            API key.
        ai_temperature: Sampling temperature sent with every request.
        ai_max_output_tokens: Response token ceiling.
        ai_timeout: HTTP request timeout in seconds.
        months_of_history: Observation window, in months, that budget
            recommendations divide category totals by.
    """

    ai_provider: str = "gemini"
    ai_model: str = "gemini-pro"
    ai_api_key_env: str = "GEMINI_API_KEY"
    ai_temperature: float = 0.7
    ai_max_output_tokens: int = 1024
    ai_timeout: float = 30.0
    months_of_history: int = 3
