"""Category catalogue: the closed set of category identifiers.

The taxonomy is a list of plain dicts (``id``, ``name``, ``icon``,
``kind``) in display order: expense categories first, then income
categories.  Lookups never raise for unknown identifiers; transactions
imported from older data may carry categories outside the catalogue, and
those resolve to a generic label and icon.
"""

from __future__ import annotations

EXPENSE = "expense"
INCOME = "income"

OTHER_EXPENSE = "other_expense"
OTHER_INCOME = "other_income"

DEFAULT_ICON = "📋"
INCOME_ICON = "💵"

CATEGORIES: list[dict] = [
    {"id": "food", "name": "Food & Dining", "icon": "🍔", "kind": EXPENSE},
    {"id": "grocery", "name": "Groceries", "icon": "🛒", "kind": EXPENSE},
    {"id": "transport", "name": "Transport", "icon": "🚗", "kind": EXPENSE},
    {"id": "entertainment", "name": "Entertainment", "icon": "🎬", "kind": EXPENSE},
    {"id": "shopping", "name": "Shopping", "icon": "🛍️", "kind": EXPENSE},
    {"id": "housing", "name": "Housing", "icon": "🏠", "kind": EXPENSE},
    {"id": "utilities", "name": "Utilities", "icon": "💡", "kind": EXPENSE},
    {"id": "healthcare", "name": "Healthcare", "icon": "🏥", "kind": EXPENSE},
    {"id": "education", "name": "Education", "icon": "📚", "kind": EXPENSE},
    {"id": "personal", "name": "Personal Care", "icon": "💇", "kind": EXPENSE},
    {"id": "travel", "name": "Travel", "icon": "✈️", "kind": EXPENSE},
    {"id": "subscription", "name": "Subscriptions", "icon": "📱", "kind": EXPENSE},
    {"id": OTHER_EXPENSE, "name": "Other Expenses", "icon": DEFAULT_ICON, "kind": EXPENSE},
    {"id": "salary", "name": "Salary", "icon": "💰", "kind": INCOME},
    {"id": "freelance", "name": "Freelance", "icon": "💻", "kind": INCOME},
    {"id": "gift", "name": "Gifts", "icon": "🎁", "kind": INCOME},
    {"id": "investment", "name": "Investments", "icon": "📈", "kind": INCOME},
    {"id": "refund", "name": "Refunds", "icon": "↩️", "kind": INCOME},
    {"id": OTHER_INCOME, "name": "Other Income", "icon": INCOME_ICON, "kind": INCOME},
]

_BY_ID: dict[str, dict] = {c["id"]: c for c in CATEGORIES}

CATEGORY_IDS: tuple[str, ...] = tuple(c["id"] for c in CATEGORIES)
EXPENSE_CATEGORY_IDS: tuple[str, ...] = tuple(
    c["id"] for c in CATEGORIES if c["kind"] == EXPENSE
)
INCOME_CATEGORY_IDS: tuple[str, ...] = tuple(
    c["id"] for c in CATEGORIES if c["kind"] == INCOME
)

# Descriptions containing any of these are treated as income when no
# category keyword scores high enough.
INCOME_HINTS: tuple[str, ...] = ("income", "deposit", "salary", "payment received")


def is_known(category_id: str) -> bool:
    return category_id in _BY_ID


def category_name(category_id: str) -> str:
    """Return the display name, or the raw identifier if unknown."""
    entry = _BY_ID.get(category_id)
    return entry["name"] if entry else category_id


def category_icon(category_id: str) -> str:
    """Return the display icon, or the generic icon if unknown."""
    entry = _BY_ID.get(category_id)
    return entry["icon"] if entry else DEFAULT_ICON


def category_kind(category_id: str) -> str | None:
    """Return ``"expense"``, ``"income"``, or None for unknown identifiers."""
    entry = _BY_ID.get(category_id)
    return entry["kind"] if entry else None


def looks_like_income(description_lower: str, hints: tuple[str, ...] = INCOME_HINTS) -> bool:
    """Check a lowercased description for any income hint keyword."""
    return any(hint in description_lower for hint in hints)
