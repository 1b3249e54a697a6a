"""Tests for the Click CLI layer.

Uses Click's CliRunner to invoke commands without spawning subprocesses.
Commands run inside a temporary project directory; HTTP calls to the AI
service are mocked.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from finance_tracker import __version__
from finance_tracker.cli import cli
from finance_tracker.config import load_budgets_file

API_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project(tmp_project_dir: Path, monkeypatch) -> Path:
    """Run commands from inside the temporary project."""
    monkeypatch.chdir(tmp_project_dir)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    return tmp_project_dir


def _gemini_response(text: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json={"candidates": [{"content": {"parts": [{"text": text}]}}]},
        request=httpx.Request("POST", API_URL),
    )


# ---------------------------------------------------------------------------
# Group-level behaviour
# ---------------------------------------------------------------------------


class TestCliGroup:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("summary", "list", "classify", "enrich", "insights", "recommend", "health", "forecast", "actions", "budget"):
            assert name in result.output


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


class TestInit:
    def test_creates_files(self, runner, tmp_path: Path):
        target = tmp_path / "fresh"
        result = runner.invoke(cli, ["init", "--dir", str(target)])
        assert result.exit_code == 0
        assert (target / "config.toml").exists()
        assert (target / "budgets.toml").exists()
        assert "Initialized finance tracker project" in result.output


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------


class TestSummary:
    def test_full_summary(self, runner, project):
        result = runner.invoke(cli, ["summary", "transactions.json"])
        assert result.exit_code == 0, result.output
        assert "Income:   $9,000.00" in result.output
        assert "Expenses: $3,825.00" in result.output
        assert "Balance:  $5,175.00" in result.output
        assert "Jan 2024" in result.output
        assert "Mar 2024" in result.output
        assert "over by $2,100.00" in result.output
        assert "$50.00 remaining" in result.output

    def test_timeframe_filters_old_records(self, runner, project):
        result = runner.invoke(cli, ["summary", "transactions.json", "--timeframe", "week"])
        assert result.exit_code == 0
        assert "== Summary (week) ==" in result.output
        assert "Income:   $0.00" in result.output

    def test_invalid_timeframe(self, runner, project):
        result = runner.invoke(cli, ["summary", "transactions.json", "--timeframe", "year"])
        assert result.exit_code == 2

    def test_missing_file(self, runner, project):
        result = runner.invoke(cli, ["summary", "nope.json"])
        assert result.exit_code == 2

    def test_bad_record_does_not_discard_file(self, runner, project):
        records = [{"title": f"Rent {i}", "amount": -100, "date": "2024-01-15"} for i in range(4)]
        records.append({"title": "Broken", "amount": -100, "date": "not-a-date"})
        (project / "small.json").write_text(json.dumps(records), encoding="utf-8")
        result = runner.invoke(cli, ["summary", "small.json"])
        assert result.exit_code == 0
        assert "Expenses: $400.00" in result.output
        assert "skipped 1 record(s)" in result.output

    def test_unreadable_file(self, runner, project):
        (project / "bad.json").write_text("{not json", encoding="utf-8")
        result = runner.invoke(cli, ["summary", "bad.json"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_invalid_config(self, runner, project):
        (project / "config.toml").write_text('[ai]\nprovider = "openai"\n', encoding="utf-8")
        result = runner.invoke(cli, ["classify", "coffee"])
        assert result.exit_code == 1
        assert "Unknown AI provider" in result.output

    def test_verbose_reports_skipped_records(self, runner, project):
        records = [{"title": f"Rent {i}", "amount": -10, "date": "2024-01-01"} for i in range(19)]
        records.append({"title": "Broken", "amount": -10, "date": "never"})
        (project / "mostly_ok.json").write_text(json.dumps(records), encoding="utf-8")
        result = runner.invoke(cli, ["summary", "mostly_ok.json", "--verbose"])
        assert result.exit_code == 0
        assert "Loaded 19 transactions" in result.output
        assert "skipped malformed record 19" in result.output


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


class TestList:
    def test_all_records(self, runner, project):
        result = runner.invoke(cli, ["list", "transactions.json"])
        assert result.exit_code == 0, result.output
        assert "== Transactions (10) ==" in result.output
        assert "Balance:  $5,175.00" in result.output
        # newest first by default
        assert result.output.index("Pizza night") < result.output.index("Starbucks coffee")

    def test_type_and_category(self, runner, project):
        result = runner.invoke(
            cli, ["list", "transactions.json", "--type", "expense", "--category", "housing"]
        )
        assert result.exit_code == 0
        assert "== Transactions (3) ==" in result.output
        assert "Income:   $0.00" in result.output
        assert "Expenses: $3,600.00" in result.output

    def test_search(self, runner, project):
        result = runner.invoke(cli, ["list", "transactions.json", "--search", "COFFEE"])
        assert result.exit_code == 0
        assert "Starbucks coffee" in result.output
        assert "Pizza night" not in result.output
        assert "Expenses: $4.50" in result.output

    def test_date_range(self, runner, project):
        result = runner.invoke(
            cli, ["list", "transactions.json", "--start", "2024-03-01", "--end", "2024-03-15"]
        )
        assert result.exit_code == 0
        assert "== Transactions (2) ==" in result.output
        assert "Income:   $3,000.00" in result.output
        assert "Expenses: $1,200.00" in result.output

    def test_sort_by_amount(self, runner, project):
        result = runner.invoke(cli, ["list", "transactions.json", "--sort", "amount-asc"])
        assert result.exit_code == 0
        assert result.output.index("Starbucks coffee") < result.output.index("Salary January")

    def test_invalid_type(self, runner, project):
        result = runner.invoke(cli, ["list", "transactions.json", "--type", "transfer"])
        assert result.exit_code == 2

    def test_invalid_date(self, runner, project):
        result = runner.invoke(cli, ["list", "transactions.json", "--start", "03/01/2024"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# classify / enrich
# ---------------------------------------------------------------------------


class TestClassify:
    def test_heuristic(self, runner, project):
        result = runner.invoke(cli, ["classify", "Starbucks coffee", "--no-ai"])
        assert result.exit_code == 0
        assert "food (Food & Dining)" in result.output

    def test_ai(self, runner, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        with patch("finance_tracker.gemini.httpx.post", return_value=_gemini_response("grocery")) as mock_post:
            result = runner.invoke(cli, ["classify", "Starbucks coffee"])
        assert result.exit_code == 0
        assert "grocery (Groceries)" in result.output
        mock_post.assert_called_once()

    def test_ai_failure_falls_back(self, runner, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        with patch("finance_tracker.gemini.httpx.post", return_value=_gemini_response("", status_code=503)):
            result = runner.invoke(cli, ["classify", "Starbucks coffee"])
        assert result.exit_code == 0
        assert "food (Food & Dining)" in result.output

    def test_no_ai_skips_http(self, runner, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        with patch("finance_tracker.gemini.httpx.post") as mock_post:
            result = runner.invoke(cli, ["classify", "Uber ride", "--no-ai"])
        assert result.exit_code == 0
        mock_post.assert_not_called()


class TestEnrich:
    def test_known_merchant(self, runner, project):
        result = runner.invoke(cli, ["enrich", "AMZN Mktp US"])
        assert result.exit_code == 0
        assert "Merchant: Amazon" in result.output
        assert "Category: 🛍️ shopping" in result.output

    def test_unknown_merchant(self, runner, project):
        result = runner.invoke(cli, ["enrich", "random thing"])
        assert "Merchant: (unknown)" in result.output


# ---------------------------------------------------------------------------
# Analytics commands
# ---------------------------------------------------------------------------


class TestAnalytics:
    def test_insights(self, runner, project):
        result = runner.invoke(cli, ["insights", "transactions.json"])
        assert result.exit_code == 0
        assert "== Insights ==" in result.output
        assert "Monthly Savings Rate" in result.output
        assert "Top Spending Category" in result.output

    def test_recommend(self, runner, project):
        result = runner.invoke(cli, ["recommend", "transactions.json"])
        assert result.exit_code == 0
        assert "Housing: $1,500.00 (current: $1,500.00)" in result.output
        assert "Groceries: $50.00 (current: none)" in result.output

    def test_health(self, runner, project):
        result = runner.invoke(cli, ["health", "transactions.json"])
        assert result.exit_code == 0
        assert "Score:    80/100 (Excellent)" in result.output
        assert "Maintain Your Savings Rate" in result.output

    def test_health_empty_snapshot(self, runner, project):
        (project / "empty.json").write_text("[]", encoding="utf-8")
        result = runner.invoke(cli, ["health", "empty.json"])
        assert result.exit_code == 0
        assert "Add some transactions" in result.output

    def test_forecast(self, runner, project):
        result = runner.invoke(cli, ["forecast", "transactions.json"])
        assert result.exit_code == 0
        assert "Total predicted: $1,470.00" in result.output

    def test_actions(self, runner, project):
        result = runner.invoke(cli, ["actions", "transactions.json"])
        assert result.exit_code == 0
        assert "== Recommended Actions ==" in result.output
        assert "Optimize Housing Spending" in result.output


# ---------------------------------------------------------------------------
# budget
# ---------------------------------------------------------------------------


class TestBudget:
    def test_set(self, runner, project):
        result = runner.invoke(cli, ["budget", "set", "travel", "300"])
        assert result.exit_code == 0, result.output
        assert "Budget for travel set to $300.00" in result.output
        budgets = {b.category: b.amount for b in load_budgets_file(project).budgets}
        assert budgets["travel"] == 300

    def test_set_unknown_category(self, runner, project):
        result = runner.invoke(cli, ["budget", "set", "crypto", "300"])
        assert result.exit_code == 1
        assert "unknown expense category" in result.output

    def test_set_income_category_rejected(self, runner, project):
        result = runner.invoke(cli, ["budget", "set", "salary", "300"])
        assert result.exit_code == 1

    def test_set_non_positive_amount(self, runner, project):
        result = runner.invoke(cli, ["budget", "set", "food", "0"])
        assert result.exit_code == 2

    def test_list(self, runner, project):
        result = runner.invoke(cli, ["budget", "list"])
        assert result.exit_code == 0
        assert "Housing:" in result.output
        assert "$1,500.00" in result.output

    def test_list_empty(self, runner, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["budget", "list"])
        assert "No budgets set." in result.output
