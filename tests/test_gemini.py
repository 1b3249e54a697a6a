"""Tests for finance_tracker.gemini -- Gemini delegate, prompts and response parsing.

All tests use mocked HTTP responses. No real API calls are made.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest

from finance_tracker.categories import CATEGORY_IDS
from finance_tracker.errors import ConfigurationError, ExternalServiceError
from finance_tracker.gemini import (
    MAX_PROMPT_TRANSACTIONS,
    GeminiDelegate,
    _build_classify_prompt,
    _build_insights_prompt,
    _parse_budget_recommendations,
    _parse_classification,
    _parse_insights,
    _parse_merchant,
    _parse_prediction,
)
from finance_tracker.models import Transaction

API_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"


def _gemini_body(text: str) -> dict:
    """Build a mock generateContent response body."""
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": text}], "role": "model"},
                "finishReason": "STOP",
            }
        ]
    }


def _response(status_code: int = 200, text: str = "", body: dict | None = None) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json=body if body is not None else _gemini_body(text),
        request=httpx.Request("POST", API_URL),
    )


@pytest.fixture
def delegate() -> GeminiDelegate:
    return GeminiDelegate(api_key="test-key")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestGeminiDelegateInit:
    @pytest.mark.parametrize("key", ["", "   "])
    def test_blank_key_rejected(self, key):
        with pytest.raises(ConfigurationError):
            GeminiDelegate(api_key=key)

    def test_url_uses_model(self):
        assert GeminiDelegate(api_key="k", model="gemini-1.5-flash").url.endswith(
            "/models/gemini-1.5-flash:generateContent"
        )


# ---------------------------------------------------------------------------
# generate_content
# ---------------------------------------------------------------------------


class TestGenerateContent:
    def test_request_shape(self, delegate):
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(text="ok")) as mock_post:
            assert delegate.generate_content("hello") == "ok"

        args, kwargs = mock_post.call_args
        assert args[0] == API_URL
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["json"] == {
            "contents": [{"parts": [{"text": "hello"}]}],
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": 1024},
        }
        assert kwargs["timeout"] == 30.0

    def test_http_error_status(self, delegate):
        resp = httpx.Response(
            status_code=500, text="server error", request=httpx.Request("POST", API_URL)
        )
        with patch("finance_tracker.gemini.httpx.post", return_value=resp):
            with pytest.raises(ExternalServiceError, match="HTTP 500"):
                delegate.generate_content("hello")

    def test_timeout(self, delegate):
        with patch("finance_tracker.gemini.httpx.post", side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(ExternalServiceError, match="timed out"):
                delegate.generate_content("hello")

    def test_connection_error(self, delegate):
        with patch("finance_tracker.gemini.httpx.post", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(ExternalServiceError, match="request failed"):
                delegate.generate_content("hello")

    def test_no_candidates(self, delegate):
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(body={"candidates": []})):
            with pytest.raises(ExternalServiceError):
                delegate.generate_content("hello")

    def test_non_json_body(self, delegate):
        resp = httpx.Response(status_code=200, text="<html>", request=httpx.Request("POST", API_URL))
        with patch("finance_tracker.gemini.httpx.post", return_value=resp):
            with pytest.raises(ExternalServiceError):
                delegate.generate_content("hello")

    def test_blank_text(self, delegate):
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(text="  \n")):
            with pytest.raises(ExternalServiceError, match="no text"):
                delegate.generate_content("hello")


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class TestPrompts:
    def test_classify_prompt_lists_every_category(self):
        prompt = _build_classify_prompt("Starbucks coffee")
        assert '"Starbucks coffee"' in prompt
        for category_id in CATEGORY_IDS:
            assert category_id in prompt

    def test_transactions_are_capped(self):
        txns = [
            Transaction(f"item-{i}", Decimal("-1"), "food", date(2024, 1, 1))
            for i in range(MAX_PROMPT_TRANSACTIONS + 5)
        ]
        prompt = _build_insights_prompt(txns)
        assert f"item-{MAX_PROMPT_TRANSACTIONS - 1}" in prompt
        assert f"item-{MAX_PROMPT_TRANSACTIONS}\"" not in prompt


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestParseClassification:
    @pytest.mark.parametrize("text", ["food", "Food.", "  food\n", '"food"', "food because coffee"])
    def test_accepts_known_category(self, text):
        assert _parse_classification(text) == "food"

    @pytest.mark.parametrize("text", ["groceries", "Dining out", ""])
    def test_rejects_unknown(self, text):
        with pytest.raises(ExternalServiceError):
            _parse_classification(text)


class TestParseMerchant:
    def test_fenced_json(self):
        text = '```json\n{"merchantName": "Starbucks", "category": "food", "icon": "☕"}\n```'
        info = _parse_merchant(text)
        assert (info.merchant, info.category, info.icon) == ("Starbucks", "food", "☕")

    def test_missing_icon_uses_catalogue(self):
        info = _parse_merchant('{"merchantName": "Shell", "category": "transport"}')
        assert info.icon == "🚗"

    def test_unknown_category(self):
        with pytest.raises(ExternalServiceError, match="unknown category"):
            _parse_merchant('{"merchantName": "X", "category": "fuel"}')

    def test_no_json(self):
        with pytest.raises(ExternalServiceError):
            _parse_merchant("I could not determine the merchant.")


class TestParseInsights:
    def test_skips_invalid_items(self):
        text = json.dumps(
            [
                {"title": "Coffee", "description": "You buy a lot of coffee.", "action": "Brew at home"},
                {"title": "No description"},
                "not an object",
            ]
        )
        (insight,) = _parse_insights(text)
        assert insight.title == "Coffee"
        assert insight.action == "Brew at home"

    def test_nothing_usable(self):
        with pytest.raises(ExternalServiceError, match="no usable items"):
            _parse_insights('[{"title": "only a title"}]')

    def test_object_instead_of_list(self):
        with pytest.raises(ExternalServiceError):
            _parse_insights('{"title": "x", "description": "y"}')


class TestParseBudgetRecommendations:
    def test_valid(self):
        text = json.dumps(
            [
                {
                    "category": "food",
                    "currentBudget": None,
                    "recommendedBudget": 250,
                    "reasoning": "Typical share.",
                    "icon": "🍔",
                },
                {"category": "housing", "currentBudget": 1500, "recommendedBudget": 1400.5},
            ]
        )
        food, housing = _parse_budget_recommendations(text)
        assert food.current_budget is None
        assert food.recommended_budget == Decimal("250")
        assert housing.current_budget == Decimal("1500")
        assert housing.recommended_budget == Decimal("1400.5")
        assert housing.icon == "🏠"

    def test_negative_budget_rejected(self):
        with pytest.raises(ExternalServiceError, match="negative"):
            _parse_budget_recommendations('[{"category": "food", "recommendedBudget": -5}]')

    def test_non_numeric_budget_rejected(self):
        with pytest.raises(ExternalServiceError, match="non-numeric"):
            _parse_budget_recommendations('[{"category": "food", "recommendedBudget": "lots"}]')


class TestParsePrediction:
    def test_valid(self):
        text = json.dumps(
            {
                "totalPredicted": 300,
                "categories": [
                    {"name": "housing", "amount": 250, "icon": "🏠"},
                    {"name": "food", "amount": 50},
                    {"amount": 10},
                ],
            }
        )
        bundle = _parse_prediction(text)
        assert bundle.total_predicted == Decimal("300")
        assert [c.name for c in bundle.categories] == ["housing", "food"]
        assert bundle.categories[1].icon == "🍔"

    def test_missing_total(self):
        with pytest.raises(ExternalServiceError):
            _parse_prediction('{"categories": []}')


# ---------------------------------------------------------------------------
# Delegate operations end to end
# ---------------------------------------------------------------------------


class TestDelegateOperations:
    def test_classify(self, delegate):
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(text="grocery")):
            assert delegate.classify("Whole Foods") == "grocery"

    def test_enrich(self, delegate):
        body = '{"merchantName": "Amazon", "category": "shopping", "icon": "📦"}'
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(text=body)):
            info = delegate.enrich("AMZN Mktp")
        assert info.merchant == "Amazon"
        assert info.icon == "📦"

    def test_recommend_actions_defaults(self, delegate, sample_transactions):
        body = json.dumps([{"title": "Save more", "description": "Automate transfers."}])
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(text=body)):
            (action,) = delegate.recommend_actions(sample_transactions)
        assert action.impact == "Medium"
        assert action.timeframe == "Medium-term"

    def test_recommend_budgets_sends_existing_budgets(self, delegate, sample_transactions, sample_budgets):
        body = json.dumps([{"category": "food", "recommendedBudget": 90}])
        with patch(
            "finance_tracker.gemini.httpx.post", return_value=_response(text=body)
        ) as mock_post:
            delegate.recommend_budgets(sample_transactions, sample_budgets)
        prompt = mock_post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"]
        assert '"category": "housing"' in prompt

    def test_predict_future_expenses_bad_payload(self, delegate, sample_transactions):
        with patch("finance_tracker.gemini.httpx.post", return_value=_response(text="no idea")):
            with pytest.raises(ExternalServiceError):
                delegate.predict_future_expenses(sample_transactions)
