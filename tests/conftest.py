"""Shared pytest fixtures for Finance Tracker tests.

Provides reusable fixtures for:
- sample_transactions: Ten realistic Transaction objects spanning January to
  March 2024, with a steady salary and a mix of expense categories.
- sample_budgets: Two budgets, one blown and one respected.
- tmp_project_dir: A temporary directory with config.toml, budgets.toml and
  a JSON transaction export, for CLI and config testing.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from finance_tracker.models import Budget, Transaction


def make_txn(
    title: str,
    amount: str,
    category: str,
    txn_date: date,
    txn_id: str = "",
) -> Transaction:
    """Helper to build a Transaction with a Decimal amount."""
    return Transaction(
        title=title,
        amount=Decimal(amount),
        category=category,
        date=txn_date,
        id=txn_id,
    )


# ---------------------------------------------------------------------------
# sample_transactions
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Three months of activity.

    Totals: income 9000.00, expenses 3825.00.
    Monthly expenses: Jan 1354.50, Feb 1225.00, Mar 1245.50.
    Expense categories: housing 3600.00, grocery 150.00, food 50.00,
    transport 25.00.
    """
    return [
        make_txn("Salary January", "3000", "salary", date(2024, 1, 5), "t1"),
        make_txn("Starbucks coffee", "-4.50", "food", date(2024, 1, 10), "t2"),
        make_txn("Rent", "-1200", "housing", date(2024, 1, 15), "t3"),
        make_txn("Whole Foods", "-150", "grocery", date(2024, 1, 20), "t4"),
        make_txn("Salary February", "3000", "salary", date(2024, 2, 5), "t5"),
        make_txn("Rent", "-1200", "housing", date(2024, 2, 15), "t6"),
        make_txn("Uber ride", "-25", "transport", date(2024, 2, 18), "t7"),
        make_txn("Salary March", "3000", "salary", date(2024, 3, 5), "t8"),
        make_txn("Rent", "-1200", "housing", date(2024, 3, 15), "t9"),
        make_txn("Pizza night", "-45.50", "food", date(2024, 3, 22), "t10"),
    ]


@pytest.fixture
def sample_budgets() -> list[Budget]:
    """Housing is over budget (3600 spent), food is within it (50 spent)."""
    return [
        Budget(category="housing", amount=Decimal("1500")),
        Budget(category="food", amount=Decimal("100")),
    ]


# ---------------------------------------------------------------------------
# tmp_project_dir
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path, sample_transactions) -> Path:
    """Create a temporary Finance Tracker project.

    The directory contains:
    - config.toml with the AI provider switched off
    - budgets.toml with the sample budgets
    - transactions.json with the sample transactions

    Returns the Path to the project root.
    """
    project = tmp_path / "finance-project"
    project.mkdir()

    (project / "config.toml").write_text(
        '[ai]\nprovider = "none"\n\n[analysis]\nmonths_of_history = 3\n',
        encoding="utf-8",
    )
    (project / "budgets.toml").write_text(
        "[budgets]\nhousing = 1500\nfood = 100\n",
        encoding="utf-8",
    )
    (project / "transactions.json").write_text(
        json.dumps([t.to_record() for t in sample_transactions]),
        encoding="utf-8",
    )
    return project
