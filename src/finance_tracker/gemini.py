"""AI delegate interface and Gemini implementation.

Defines the ``AIDelegate`` protocol for AI-backed analytics, plus the
``GeminiDelegate`` implementation that calls the Gemini ``generateContent``
endpoint via httpx.

Every delegate operation formats a prompt, sends one HTTP POST, and parses
the model's text as JSON (or, for ``classify``, a bare category name).  The
parsed payload is validated and converted into the same dataclasses the
heuristic engines return.  On any failure the delegate raises
:class:`~finance_tracker.errors.ExternalServiceError`; it never substitutes
heuristic results itself.  Falling back is the advisor's job.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

import httpx

from finance_tracker.categories import CATEGORIES, category_icon, is_known
from finance_tracker.errors import ConfigurationError, ExternalServiceError, ParseError
from finance_tracker.models import (
    ActionRecommendation,
    Budget,
    BudgetRecommendation,
    Insight,
    MerchantInfo,
    PredictedCategory,
    PredictionBundle,
    Transaction,
    parse_amount,
)

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

# Only the first records of a snapshot are sent, to keep prompts bounded.
MAX_PROMPT_TRANSACTIONS = 50


class AIDelegate(Protocol):
    """Protocol for AI-backed analytics.

    Implementations mirror the heuristic engines operation for operation
    and return the same record types.  On any failure they must raise
    ``ExternalServiceError`` rather than return partial or made-up data.
    """

    def classify(self, description: str) -> str: ...

    def enrich(self, description: str) -> MerchantInfo: ...

    def generate_insights(self, transactions: Sequence[Transaction]) -> list[Insight]: ...

    def recommend_budgets(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget],
    ) -> list[BudgetRecommendation]: ...

    def predict_future_expenses(self, transactions: Sequence[Transaction]) -> PredictionBundle: ...

    def recommend_actions(
        self, transactions: Sequence[Transaction]
    ) -> list[ActionRecommendation]: ...


# ---------------------------------------------------------------------------
# Prompt construction
# ---------------------------------------------------------------------------

_CATEGORY_HINTS: dict[str, str] = {
    "food": "restaurants, cafes, dining out",
    "grocery": "supermarkets, food stores",
    "transport": "gas, fuel, uber, public transit",
    "entertainment": "movies, concerts, streaming services",
    "shopping": "retail, clothing, online purchases",
    "housing": "rent, mortgage, home expenses",
    "utilities": "electric, water, internet, phone bills",
    "healthcare": "medical, dental, pharmacy",
    "education": "tuition, books, courses",
    "personal": "haircuts, spa, fitness",
    "travel": "hotels, flights, vacations",
    "subscription": "regular memberships, subscriptions",
    "other_expense": "miscellaneous expenses",
    "salary": "regular employment income",
    "freelance": "contract work, gigs",
    "gift": "presents, donations received",
    "investment": "returns from investments",
    "refund": "returned purchases, reimbursements",
    "other_income": "miscellaneous income",
}


def _category_list() -> str:
    lines = []
    for cat in CATEGORIES:
        hint = _CATEGORY_HINTS.get(cat["id"], "")
        lines.append(f"{cat['id']} ({hint})" if hint else cat["id"])
    return "\n".join(lines)


def _transactions_json(transactions: Sequence[Transaction]) -> str:
    records = [txn.to_record() for txn in list(transactions)[:MAX_PROMPT_TRANSACTIONS]]
    return json.dumps(records, ensure_ascii=False)


def _build_classify_prompt(description: str) -> str:
    return (
        "Based on this transaction description, categorize it into EXACTLY ONE of these "
        "specific categories (don't make up new ones):\n"
        f"{_category_list()}\n"
        "\n"
        f'Transaction: "{description}"\n'
        "\n"
        "Return only the category name (a single word from the list above) with no "
        "additional text."
    )


def _build_enrich_prompt(description: str) -> str:
    return (
        "Based on this transaction description, provide merchant information and determine "
        "its category. Use EXACTLY one of these specific categories (don't make up new ones):\n"
        f"{_category_list()}\n"
        "\n"
        f'Transaction: "{description}"\n'
        "\n"
        "Format your response as a JSON object with the following structure:\n"
        "{\n"
        '  "merchantName": "Detected merchant name",\n'
        '  "category": "Exactly one of the categories from the list above",\n'
        '  "icon": "An emoji that represents this category"\n'
        "}"
    )


def _build_insights_prompt(transactions: Sequence[Transaction]) -> str:
    return (
        "Based on these financial transactions, generate 3-5 meaningful insights about "
        "spending patterns, income trends, or financial behaviors. For each insight, provide "
        "a title, brief description, and optional actionable suggestion.\n"
        "\n"
        f"Transactions: {_transactions_json(transactions)}\n"
        "\n"
        "Format your response as a JSON array of insights with the following structure:\n"
        "[\n"
        "  {\n"
        '    "title": "Insight title",\n'
        '    "description": "Brief description of the insight",\n'
        '    "action": "Suggested action the user could take"\n'
        "  }\n"
        "]"
    )


def _build_budgets_prompt(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
) -> str:
    budget_data = json.dumps([b.to_record() for b in budgets], ensure_ascii=False)
    return (
        "Based on these financial transactions and existing budgets, recommend 3-5 budget "
        "adjustments or new budget categories.\n"
        "\n"
        f"Transactions: {_transactions_json(transactions)}\n"
        f"Existing Budgets: {budget_data}\n"
        "\n"
        "Format your response as a JSON array with the following structure:\n"
        "[\n"
        "  {\n"
        '    "category": "Category name",\n'
        '    "currentBudget": number or null if no existing budget,\n'
        '    "recommendedBudget": number,\n'
        '    "reasoning": "Brief explanation for this recommendation",\n'
        '    "icon": "An emoji that represents this category"\n'
        "  }\n"
        "]"
    )


def _build_forecast_prompt(transactions: Sequence[Transaction]) -> str:
    return (
        "Based on these financial transactions, predict future expenses for the next month "
        "by category.\n"
        "\n"
        f"Transactions: {_transactions_json(transactions)}\n"
        "\n"
        "Format your response as a JSON object with the following structure:\n"
        "{\n"
        '  "totalPredicted": number,\n'
        '  "categories": [\n'
        "    {\n"
        '      "name": "Category name",\n'
        '      "amount": number,\n'
        '      "icon": "An emoji that represents this category"\n'
        "    }\n"
        "  ]\n"
        "}"
    )


def _build_actions_prompt(transactions: Sequence[Transaction]) -> str:
    return (
        "Based on these financial transactions, provide 3-5 financial action "
        "recommendations.\n"
        "\n"
        f"Transactions: {_transactions_json(transactions)}\n"
        "\n"
        "Format your response as a JSON array with the following structure:\n"
        "[\n"
        "  {\n"
        '    "title": "Recommendation title",\n'
        '    "description": "Description of the recommendation",\n'
        '    "impact": "High/Medium/Low",\n'
        '    "timeframe": "Short-term/Medium-term/Long-term"\n'
        "  }\n"
        "]"
    )


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _extract_json(text: str, opening: str, closing: str) -> object:
    """Extract and parse the JSON document delimited by *opening*/*closing*.

    The model may wrap the JSON in markdown code fences or include
    explanatory text, so this finds the first *opening* and the last
    *closing* character.

    Raises:
        ExternalServiceError: If no such document exists or it is not
            valid JSON.
    """
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end == -1 or end <= start:
        raise ExternalServiceError(f"Gemini response does not contain a JSON {opening}...{closing}")
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ExternalServiceError(f"Failed to parse JSON from Gemini response: {exc}") from exc


def _extract_list(text: str) -> list:
    result = _extract_json(text, "[", "]")
    if not isinstance(result, list):
        raise ExternalServiceError("Gemini response JSON is not a list")
    return result


def _extract_object(text: str) -> dict:
    result = _extract_json(text, "{", "}")
    if not isinstance(result, dict):
        raise ExternalServiceError("Gemini response JSON is not an object")
    return result


def _require_category(value: object) -> str:
    category = str(value or "").strip().strip("\"'`.").lower()
    if not is_known(category):
        raise ExternalServiceError(f"Gemini returned an unknown category: {value!r}")
    return category


def _number(value: object, field_name: str) -> Decimal:
    try:
        return parse_amount(value, field_name)
    except ParseError as exc:
        raise ExternalServiceError(f"Gemini returned a non-numeric {field_name}: {value!r}") from exc


def _dict_items(items: list, required: tuple[str, ...]) -> list[dict]:
    """Keep the dict items that carry every required key.

    Raises:
        ExternalServiceError: If nothing usable is left.
    """
    valid: list[dict] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping non-dict item in Gemini response: %s", item)
            continue
        if any(key not in item for key in required):
            logger.warning("Skipping item missing required keys: %s", item)
            continue
        valid.append(item)
    if not valid:
        raise ExternalServiceError("Gemini response contained no usable items")
    return valid


def _parse_classification(text: str) -> str:
    words = text.strip().split()
    if not words:
        raise ExternalServiceError("Gemini returned an empty classification")
    return _require_category(words[0])


def _parse_merchant(text: str) -> MerchantInfo:
    data = _extract_object(text)
    if "category" not in data:
        raise ExternalServiceError("Gemini merchant response is missing 'category'")
    category = _require_category(data["category"])
    return MerchantInfo(
        merchant=str(data.get("merchantName") or ""),
        category=category,
        icon=str(data.get("icon") or category_icon(category)),
    )


def _parse_insights(text: str) -> list[Insight]:
    return [
        Insight(
            title=str(item["title"]),
            description=str(item["description"]),
            action=str(item.get("action") or ""),
            amount=str(item.get("amount") or ""),
        )
        for item in _dict_items(_extract_list(text), ("title", "description"))
    ]


def _parse_budget_recommendations(text: str) -> list[BudgetRecommendation]:
    recommendations: list[BudgetRecommendation] = []
    for item in _dict_items(_extract_list(text), ("category", "recommendedBudget")):
        recommended = _number(item["recommendedBudget"], "recommendedBudget")
        if recommended < 0:
            raise ExternalServiceError(f"Gemini recommended a negative budget: {recommended}")
        current_raw = item.get("currentBudget")
        current = None if current_raw is None else _number(current_raw, "currentBudget")
        category = str(item["category"])
        recommendations.append(
            BudgetRecommendation(
                category=category,
                current_budget=current,
                recommended_budget=recommended,
                reasoning=str(item.get("reasoning") or ""),
                icon=str(item.get("icon") or category_icon(category)),
            )
        )
    return recommendations


def _parse_prediction(text: str) -> PredictionBundle:
    data = _extract_object(text)
    if "totalPredicted" not in data or not isinstance(data.get("categories"), list):
        raise ExternalServiceError("Gemini prediction is missing 'totalPredicted' or 'categories'")

    categories: list[PredictedCategory] = []
    for item in data["categories"]:
        if not isinstance(item, dict) or "name" not in item or "amount" not in item:
            logger.warning("Skipping malformed prediction item: %s", item)
            continue
        name = str(item["name"])
        categories.append(
            PredictedCategory(
                name=name,
                amount=_number(item["amount"], "amount"),
                icon=str(item.get("icon") or category_icon(name)),
            )
        )
    return PredictionBundle(
        total_predicted=_number(data["totalPredicted"], "totalPredicted"),
        categories=categories,
    )


def _parse_actions(text: str) -> list[ActionRecommendation]:
    return [
        ActionRecommendation(
            title=str(item["title"]),
            description=str(item["description"]),
            impact=str(item.get("impact") or "Medium"),
            timeframe=str(item.get("timeframe") or "Medium-term"),
        )
        for item in _dict_items(_extract_list(text), ("title", "description"))
    ]


# ---------------------------------------------------------------------------
# Gemini delegate
# ---------------------------------------------------------------------------


class GeminiDelegate:
    """AI delegate that calls the Gemini ``generateContent`` API via httpx.

    Args:
        api_key: Gemini API key.  Sent as the ``key`` query parameter.
        model: Model name used in the endpoint path.  Default: "gemini-pro".
        temperature: Sampling temperature.  Default: 0.7.
        max_output_tokens: Response token ceiling.  Default: 1024.
        timeout: HTTP request timeout in seconds.  Default: 30.

    Raises:
        ConfigurationError: If *api_key* is empty or blank.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-pro",
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        timeout: float = 30.0,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigurationError("Gemini API key must not be empty")
        self.api_key = api_key.strip()
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout

    @property
    def url(self) -> str:
        return GEMINI_API_URL.format(model=self.model)

    def generate_content(self, prompt: str) -> str:
        """Send *prompt* to Gemini and return the first candidate's text.

        Raises:
            ExternalServiceError: On timeout, transport error, non-2xx
                status, or a response without candidate text.
        """
        request_body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

        try:
            response = httpx.post(
                self.url,
                params={"key": self.api_key},
                json=request_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Gemini request timed out")
            raise ExternalServiceError("Gemini request timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Gemini API returned HTTP %d: %s",
                exc.response.status_code,
                exc.response.text[:200],
            )
            raise ExternalServiceError(
                f"Gemini API returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Gemini request failed: %s", exc)
            raise ExternalServiceError(f"Gemini request failed: {exc}") from exc

        try:
            body = response.json()
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Failed to extract text from Gemini response: %s", exc)
            raise ExternalServiceError("Gemini response has no candidate text") from exc

        if not isinstance(text, str) or not text.strip():
            raise ExternalServiceError("Gemini response contained no text content")
        return text

    def classify(self, description: str) -> str:
        return _parse_classification(self.generate_content(_build_classify_prompt(description)))

    def enrich(self, description: str) -> MerchantInfo:
        return _parse_merchant(self.generate_content(_build_enrich_prompt(description)))

    def generate_insights(self, transactions: Sequence[Transaction]) -> list[Insight]:
        return _parse_insights(self.generate_content(_build_insights_prompt(transactions)))

    def recommend_budgets(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget],
    ) -> list[BudgetRecommendation]:
        prompt = _build_budgets_prompt(transactions, budgets)
        return _parse_budget_recommendations(self.generate_content(prompt))

    def predict_future_expenses(self, transactions: Sequence[Transaction]) -> PredictionBundle:
        return _parse_prediction(self.generate_content(_build_forecast_prompt(transactions)))

    def recommend_actions(self, transactions: Sequence[Transaction]) -> list[ActionRecommendation]:
        return _parse_actions(self.generate_content(_build_actions_prompt(transactions)))
