"""Keyword classifier: free-text description to category identifier.

Each category owns a tuple of lowercase keywords.  A description is scored
against every category:

    score = sum(len(keyword) * (2 if description starts with keyword else 1))

summed over the keywords found anywhere in the lowercased description.
The strictly highest score wins, so on a tie the category listed first in
``CATEGORY_KEYWORDS`` keeps the lead.  Scores at or below
``SIGNIFICANCE_THRESHOLD`` are treated as noise and the description falls
back to ``other_income`` or ``other_expense`` depending on income hints.

Depends on ``categories.py`` only.
"""

from __future__ import annotations

from finance_tracker.categories import OTHER_EXPENSE, OTHER_INCOME, looks_like_income

SIGNIFICANCE_THRESHOLD = 3

# Iteration order is the tie-break order.  Keep it stable.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "food": (
        "restaurant", "cafe", "burger", "pizza", "taco", "sushi", "dinner",
        "lunch", "breakfast", "food", "dining", "takeout", "delivery", "mcdonalds",
        "starbucks", "doordash", "grubhub", "ubereats", "chipotle", "bakery",
    ),
    "grocery": (
        "supermarket", "grocery", "market", "food store", "walmart", "target",
        "kroger", "costco", "safeway", "whole foods", "aldi", "trader joes",
        "publix", "food shopping", "groceries", "organic",
    ),
    "transport": (
        "gas", "fuel", "uber", "lyft", "taxi", "bus", "train", "subway", "metro",
        "transportation", "commute", "toll", "parking", "car service", "shuttle",
        "rideshare", "transit", "carpool", "fare", "gasoline", "petrol",
    ),
    "entertainment": (
        "movie", "cinema", "theater", "concert", "netflix", "spotify", "hulu",
        "disney+", "show", "game", "ticket", "amusement", "streaming", "music",
        "festival", "performance", "subscription", "amazon prime", "apple tv", "hbo",
    ),
    "shopping": (
        "amazon", "mall", "store", "shop", "ebay", "etsy", "clothing", "shoes",
        "retail", "purchase", "buy", "online shopping", "department store", "outlet",
        "boutique", "apparel", "fashion", "electronics", "gadget", "accessory",
    ),
    "housing": (
        "rent", "mortgage", "apartment", "home", "house", "property", "lease",
        "deposit", "real estate", "down payment", "housing", "landlord", "tenant",
        "maintenance", "repair", "hoa", "community", "condo", "townhouse",
    ),
    "utilities": (
        "electric", "water", "gas", "internet", "wifi", "phone", "bill", "utility",
        "cable", "electricity", "power", "service", "sewage", "garbage", "trash",
        "collection", "broadband", "landline", "mobile", "provider", "connection",
    ),
    "healthcare": (
        "doctor", "hospital", "clinic", "pharmacy", "prescription", "medicine",
        "dental", "medical", "health", "checkup", "appointment", "insurance",
        "dentist", "therapy", "physician", "specialist", "copay", "treatment",
        "emergency", "urgent care", "medication", "drug", "vitamin", "supplement",
    ),
    "education": (
        "tuition", "school", "college", "university", "course", "book", "class",
        "student", "loan", "education", "textbook", "degree", "program", "study",
        "training", "workshop", "certification", "seminar", "campus", "learning",
    ),
    "personal": (
        "haircut", "salon", "spa", "gym", "fitness", "wellness", "beauty", "cosmetics",
        "personal care", "grooming", "self-care", "massage", "barber", "stylist",
        "skincare", "makeup", "manicure", "pedicure", "hygiene", "product",
    ),
    "travel": (
        "hotel", "flight", "airplane", "booking", "vacation", "trip", "airbnb",
        "motel", "travel", "tourism", "tour", "cruise", "resort", "lodge", "camping",
        "destination", "accommodation", "airline", "rental", "luggage", "passport",
    ),
    "subscription": (
        "subscription", "membership", "monthly", "annual", "renewal", "recurring",
        "service", "access", "plan", "premium", "account", "fee", "bill", "dues",
        "auto-pay", "regular payment", "auto-renewal", "club",
    ),
    "salary": (
        "salary", "paycheck", "direct deposit", "wage", "income", "payment",
        "compensation", "earnings", "pay", "net pay", "gross pay", "employer",
        "company", "job", "employment", "payroll", "deposit", "hr", "human resources",
    ),
    "freelance": (
        "freelance", "client", "project", "gig", "contract", "consulting", "invoice",
        "self-employed", "commission", "job", "side hustle", "independent", "contractor",
        "service", "work", "business", "entrepreneur", "billable", "professional",
    ),
    "gift": (
        "gift", "present", "donation", "charity", "contribute", "contribution",
        "birthday", "holiday", "christmas", "wedding", "support", "anniversary",
        "celebration", "occasion", "giving", "generosity", "fundraiser",
    ),
    "investment": (
        "investment", "stock", "bond", "dividend", "interest", "fund", "portfolio",
        "retirement", "ira", "401k", "etf", "mutual fund", "share", "security",
        "capital", "broker", "brokerage", "asset", "wealth", "finance",
    ),
    "refund": (
        "refund", "return", "cashback", "reimbursement", "credit", "chargeback",
        "money back", "exchange", "compensation", "rebate", "adjustment", "correction",
        "reversal", "repayment", "dispute",
    ),
}


def score_categories(description: str | None) -> dict[str, int]:
    """Score *description* against every category.

    Args:
        description: Free-text transaction description.  ``None`` is
            treated as empty.

    Returns:
        A dict mapping each category in ``CATEGORY_KEYWORDS`` order to its
        score.  Categories with no matching keyword score 0.
    """
    text = (description or "").lower()
    scores: dict[str, int] = {}
    for category, keywords in CATEGORY_KEYWORDS.items():
        score = 0
        for keyword in keywords:
            position = text.find(keyword)
            if position == -1:
                continue
            score += len(keyword) * (2 if position == 0 else 1)
        scores[category] = score
    return scores


def classify(description: str | None) -> str:
    """Map a transaction description to a category identifier.

    Never raises.  Always returns a member of the category catalogue.

    Args:
        description: Free-text transaction description, may be empty.

    Returns:
        The best-scoring category, or ``other_income`` / ``other_expense``
        when no category scores above ``SIGNIFICANCE_THRESHOLD``.
    """
    best: str | None = None
    highest = 0
    for category, score in score_categories(description).items():
        if score > highest:
            highest = score
            best = category

    if best is not None and highest > SIGNIFICANCE_THRESHOLD:
        return best

    if looks_like_income((description or "").lower()):
        return OTHER_INCOME
    return OTHER_EXPENSE
