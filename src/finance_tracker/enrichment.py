"""Merchant enrichment: description to merchant label, category and icon.

Unlike the scoring classifier, enrichment is first-match: rules are tried
in list order and the first rule with any keyword found in the lowercased
description wins, even if a later rule would match more of the text.
Order the list from most specific to least specific.
"""

from __future__ import annotations

from dataclasses import dataclass

from finance_tracker.categories import (
    DEFAULT_ICON,
    INCOME_ICON,
    OTHER_EXPENSE,
    OTHER_INCOME,
    looks_like_income,
)
from finance_tracker.models import MerchantInfo


@dataclass(frozen=True)
class MerchantMapping:
    """A keyword rule mapping descriptions to a canonical merchant.

    Attributes:
        keywords: Lowercase substrings; any one of them matching is enough.
        merchant: Canonical merchant label.
        category: Category identifier assigned on match.
        icon: Display emoji.
    """

    keywords: tuple[str, ...]
    merchant: str
    category: str
    icon: str


MERCHANT_MAPPINGS: list[MerchantMapping] = [
    MerchantMapping(("amazon", "amzn"), "Amazon", "shopping", "🛍️"),
    MerchantMapping(("walmart", "target", "costco", "sams club"), "Retail Store", "shopping", "🛍️"),
    MerchantMapping(("uber", "lyft", "taxi", "cab"), "Ride Share", "transport", "🚗"),
    MerchantMapping(("netflix", "hulu", "disney+", "hbo"), "Streaming Service", "subscription", "📱"),
    MerchantMapping(
        ("restaurant", "cafe", "coffee", "starbucks", "mcdonald", "burger", "pizza"),
        "Restaurant",
        "food",
        "🍔",
    ),
    MerchantMapping(
        ("grocery", "supermarket", "food store", "trader joe", "whole foods"),
        "Grocery Store",
        "grocery",
        "🛒",
    ),
    MerchantMapping(("gas", "shell", "exxon", "chevron", "bp"), "Gas Station", "transport", "⛽"),
    MerchantMapping(
        ("doctor", "medical", "hospital", "clinic", "pharmacy", "dental"),
        "Healthcare Provider",
        "healthcare",
        "🏥",
    ),
    MerchantMapping(("spotify", "apple music", "pandora"), "Music Service", "subscription", "🎵"),
    MerchantMapping(("rent", "mortgage", "apartment", "house payment"), "Housing", "housing", "🏠"),
    MerchantMapping(
        ("electric", "water", "gas", "utility", "internet", "phone bill"),
        "Utility Company",
        "utilities",
        "💡",
    ),
    MerchantMapping(("gym", "fitness", "workout"), "Fitness", "personal", "💪"),
    MerchantMapping(
        ("school", "tuition", "college", "university", "course"), "Education", "education", "📚"
    ),
    MerchantMapping(
        ("hotel", "airbnb", "booking", "flight", "airline", "travel"), "Travel", "travel", "✈️"
    ),
    MerchantMapping(("salary", "payroll", "direct deposit", "income"), "Income", "salary", "💰"),
]


def match_merchant(
    description: str | None,
    mappings: list[MerchantMapping] = MERCHANT_MAPPINGS,
) -> MerchantMapping | None:
    """Return the first mapping with a keyword in *description*, or None."""
    text = (description or "").lower()
    for mapping in mappings:
        if any(keyword in text for keyword in mapping.keywords):
            return mapping
    return None


def enrich(description: str | None) -> MerchantInfo:
    """Derive merchant, category and icon from a description.

    Never raises.  When no rule matches, the merchant is empty and the
    category falls back to ``other_income`` or ``other_expense`` using the
    same income hints as the classifier.
    """
    mapping = match_merchant(description)
    if mapping is not None:
        return MerchantInfo(merchant=mapping.merchant, category=mapping.category, icon=mapping.icon)

    if looks_like_income((description or "").lower()):
        return MerchantInfo(merchant="", category=OTHER_INCOME, icon=INCOME_ICON)
    return MerchantInfo(merchant="", category=OTHER_EXPENSE, icon=DEFAULT_ICON)
