"""Tests for finance_tracker.forecast -- next-month expense prediction."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from finance_tracker.forecast import predict_future_expenses
from finance_tracker.models import Transaction


class TestPredictFutureExpenses:
    def test_sample(self, sample_transactions):
        bundle = predict_future_expenses(sample_transactions)
        assert [(c.name, c.amount, c.icon) for c in bundle.categories] == [
            ("housing", Decimal("1260.00"), "🏠"),
            ("grocery", Decimal("157.50"), "🛒"),
            ("food", Decimal("26.25"), "🍔"),
            ("transport", Decimal("26.25"), "🚗"),
        ]
        assert bundle.total_predicted == Decimal("1470.00")

    def test_total_is_sum_of_categories(self, sample_transactions):
        bundle = predict_future_expenses(sample_transactions)
        assert bundle.total_predicted == sum(c.amount for c in bundle.categories)

    def test_empty(self):
        bundle = predict_future_expenses([])
        assert bundle.total_predicted == 0
        assert bundle.categories == []

    def test_income_is_ignored(self):
        txns = [Transaction("Pay", Decimal("3000"), "salary", date(2024, 1, 5))]
        assert predict_future_expenses(txns).categories == []

    def test_unknown_category_gets_default_icon(self):
        txns = [Transaction("Mystery", Decimal("-10"), "crypto", date(2024, 1, 5))]
        (prediction,) = predict_future_expenses(txns).categories
        assert prediction.name == "crypto"
        assert prediction.amount == Decimal("10.50")
        assert prediction.icon == "📋"
