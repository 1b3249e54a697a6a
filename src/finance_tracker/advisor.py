"""Orchestration between the AI delegate and the heuristic engines.

Every operation takes the delegate explicitly.  The decision has two arms:

1. **Delegate** -- if a delegate is given, call it.
2. **Fallback** -- if no delegate is given, or the delegate raises
   :class:`~finance_tracker.errors.ExternalServiceError`, run the
   deterministic engine for the same operation.

Callers therefore only ever see a valid AI result or a valid heuristic
result, never a raw service failure.  Any other exception is a bug and
propagates.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from typing import TypeVar

from finance_tracker import budgets, classifier, enrichment, forecast, health, insights
from finance_tracker.errors import ConfigurationError, ExternalServiceError
from finance_tracker.gemini import AIDelegate, GeminiDelegate
from finance_tracker.models import (
    ActionRecommendation,
    AppConfig,
    Budget,
    BudgetRecommendation,
    HealthScore,
    Insight,
    MerchantInfo,
    PredictionBundle,
    Transaction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_delegate(config: AppConfig) -> AIDelegate | None:
    """Create the configured AI delegate, or None for heuristic-only mode.

    Returns None when the provider is ``"none"`` or the API key
    environment variable is unset or empty.  Running without a key is a
    supported mode, not an error.
    """
    if config.ai_provider == "none":
        return None

    api_key = os.environ.get(config.ai_api_key_env, "")
    try:
        return GeminiDelegate(
            api_key=api_key,
            model=config.ai_model,
            temperature=config.ai_temperature,
            max_output_tokens=config.ai_max_output_tokens,
            timeout=config.ai_timeout,
        )
    except ConfigurationError:
        logger.info(
            "No API key in environment variable '%s'; using heuristic analysis",
            config.ai_api_key_env,
        )
        return None


def _with_fallback(
    operation: str,
    delegate_call: Callable[[], T] | None,
    fallback_call: Callable[[], T],
) -> T:
    if delegate_call is None:
        return fallback_call()
    try:
        return delegate_call()
    except ExternalServiceError as exc:
        logger.warning("AI %s failed, using fallback: %s", operation, exc)
        return fallback_call()


def predict_category(description: str, delegate: AIDelegate | None = None) -> str:
    """Predict the category identifier for a transaction description."""
    return _with_fallback(
        "classification",
        (lambda: delegate.classify(description)) if delegate else None,
        lambda: classifier.classify(description),
    )


def enrich_transaction(description: str, delegate: AIDelegate | None = None) -> MerchantInfo:
    """Derive merchant, category and icon for a transaction description."""
    return _with_fallback(
        "enrichment",
        (lambda: delegate.enrich(description)) if delegate else None,
        lambda: enrichment.enrich(description),
    )


def generate_insights(
    transactions: Sequence[Transaction],
    delegate: AIDelegate | None = None,
) -> list[Insight]:
    return _with_fallback(
        "insights",
        (lambda: delegate.generate_insights(transactions)) if delegate else None,
        lambda: insights.generate_insights(transactions),
    )


def generate_budget_recommendations(
    transactions: Sequence[Transaction],
    existing_budgets: Sequence[Budget] = (),
    delegate: AIDelegate | None = None,
    months_of_history: int = budgets.DEFAULT_MONTHS_OF_HISTORY,
) -> list[BudgetRecommendation]:
    """Recommend budgets.

    ``months_of_history`` only affects the heuristic arm; the AI sees the
    raw snapshot.
    """
    return _with_fallback(
        "budget recommendations",
        (lambda: delegate.recommend_budgets(transactions, existing_budgets)) if delegate else None,
        lambda: budgets.recommend_budgets(transactions, existing_budgets, months_of_history),
    )


def predict_future_expenses(
    transactions: Sequence[Transaction],
    delegate: AIDelegate | None = None,
) -> PredictionBundle:
    return _with_fallback(
        "expense prediction",
        (lambda: delegate.predict_future_expenses(transactions)) if delegate else None,
        lambda: forecast.predict_future_expenses(transactions),
    )


def recommend_actions(
    transactions: Sequence[Transaction],
    delegate: AIDelegate | None = None,
) -> list[ActionRecommendation]:
    return _with_fallback(
        "action recommendations",
        (lambda: delegate.recommend_actions(transactions)) if delegate else None,
        lambda: insights.recommend_actions(transactions),
    )


def analyze_health(
    transactions: Sequence[Transaction],
    existing_budgets: Sequence[Budget] = (),
    delegate: AIDelegate | None = None,
) -> HealthScore | None:
    """Score financial health and attach action recommendations.

    The score itself is always computed deterministically; only the
    attached recommendations may come from the delegate.  Returns None
    when there are no transactions.
    """
    result = health.score_health(transactions, existing_budgets)
    if result is None:
        return None
    result.insights = recommend_actions(transactions, delegate)
    return result
