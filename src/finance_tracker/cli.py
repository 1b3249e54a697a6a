"""Click CLI entry point for the finance command.

Handles argument parsing, config and snapshot loading, and error display.
All analytics are delegated to ``aggregation`` and ``advisor``; output
formatting lives in ``report``.
"""

from __future__ import annotations

import logging
import sys
from decimal import Decimal
from pathlib import Path

import click

from finance_tracker import __version__
from finance_tracker.models import AppConfig


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_config(root: Path) -> AppConfig:
    """Load config.toml from *root*, or defaults if it does not exist."""
    from finance_tracker.config import load_config
    from finance_tracker.errors import ConfigurationError

    if not (root / "config.toml").exists():
        return AppConfig()
    try:
        return load_config(root)
    except ConfigurationError as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)


def _select_delegate(config: AppConfig, no_ai: bool, verbose: bool):
    from finance_tracker.advisor import build_delegate

    if no_ai:
        if verbose:
            click.echo("AI analysis disabled.")
        return None
    delegate = build_delegate(config)
    if verbose:
        if delegate is None:
            click.echo("AI unavailable, using heuristic analysis.")
        else:
            click.echo(f"Using AI: {config.ai_provider} ({config.ai_model})")
    return delegate


def _load_transactions(file: str, verbose: bool):
    from finance_tracker.loader import load_transactions_file
    from finance_tracker.report import print_stage_messages

    result = load_transactions_file(Path(file))
    if result.errors:
        for e in result.errors:
            click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if verbose:
        click.echo(f"Loaded {len(result.transactions)} transactions from {file}")
        print_stage_messages(result)
    elif result.warnings:
        click.echo(f"Warning: skipped {len(result.warnings)} record(s); use --verbose for details", err=True)
    return result.transactions


def _load_budgets(root: Path):
    from finance_tracker.config import load_budgets_file

    try:
        result = load_budgets_file(root)
    except Exception as exc:
        click.echo(f"Error loading budgets: {exc}", err=True)
        sys.exit(1)
    for w in result.warnings:
        click.echo(f"Warning: {w}", err=True)
    return result.budgets


_file_argument = click.argument("file", type=click.Path(exists=True, dir_okay=False))
_no_ai_option = click.option("--no-ai", is_flag=True, default=False, help="Skip AI analysis.")
_verbose_option = click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
_debug_option = click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")


@click.group()
@click.version_option(version=__version__, prog_name="finance-tracker")
def cli() -> None:
    """Personal finance analytics: totals, budgets, health score and insights."""


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
def init(target_dir: str) -> None:
    """Write default config.toml and budgets.toml files."""
    from finance_tracker.config import initialize

    target = Path(target_dir).resolve()
    try:
        initialize(target)
    except Exception as exc:
        click.echo(f"Error initializing project: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Initialized finance tracker project in {target}")


@cli.command()
@_file_argument
@click.option(
    "--timeframe",
    type=click.Choice(["all", "month", "week"]),
    default="all",
    show_default=True,
    help="Only include recent transactions.",
)
@_verbose_option
@_debug_option
def summary(file: str, timeframe: str, verbose: bool, debug: bool) -> None:
    """Show totals, spending by category, monthly trend and budget progress."""
    _configure_logging(verbose, debug)
    from finance_tracker import aggregation
    from finance_tracker.report import print_summary

    transactions = aggregation.filter_by_timeframe(_load_transactions(file, verbose), timeframe)
    budgets = _load_budgets(Path.cwd())
    print_summary(
        aggregation.totals(transactions),
        aggregation.category_totals(transactions),
        aggregation.monthly_trend(transactions),
        aggregation.budget_status(transactions, budgets),
        timeframe=timeframe,
    )


@cli.command("list")
@_file_argument
@click.option(
    "--type",
    "kind",
    type=click.Choice(["all", "income", "expense"]),
    default="all",
    show_default=True,
    help="Only income (positive) or expense (negative) records.",
)
@click.option("--search", default="", help="Case-insensitive text in title, category or notes.")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), help="Earliest date, inclusive.")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), help="Latest date, inclusive.")
@click.option("--category", default=None, help="Exact category identifier.")
@click.option(
    "--sort",
    "order",
    type=click.Choice(["date-desc", "date-asc", "amount-desc", "amount-asc"]),
    default="date-desc",
    show_default=True,
    help="Sort order; amounts sort by absolute value.",
)
@_verbose_option
@_debug_option
def list_transactions(
    file: str,
    kind: str,
    search: str,
    start,
    end,
    category: str | None,
    order: str,
    verbose: bool,
    debug: bool,
) -> None:
    """List the transactions in FILE that match the filters, with their totals."""
    _configure_logging(verbose, debug)
    from finance_tracker import aggregation
    from finance_tracker.report import print_transactions

    selected = aggregation.filter_transactions(
        _load_transactions(file, verbose),
        kind=kind,
        search=search,
        start=start.date() if start else None,
        end=end.date() if end else None,
        category=category,
    )
    print_transactions(aggregation.sort_transactions(selected, order), aggregation.totals(selected))


@cli.command()
@click.argument("description")
@_no_ai_option
@_verbose_option
@_debug_option
def classify(description: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Predict the category of a transaction DESCRIPTION."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import predict_category
    from finance_tracker.categories import category_icon, category_name

    delegate = _select_delegate(_load_config(Path.cwd()), no_ai, verbose)
    category = predict_category(description, delegate)
    click.echo(f"{category_icon(category)} {category} ({category_name(category)})")


@cli.command()
@click.argument("description")
@_no_ai_option
@_verbose_option
@_debug_option
def enrich(description: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Detect the merchant and category of a transaction DESCRIPTION."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import enrich_transaction

    delegate = _select_delegate(_load_config(Path.cwd()), no_ai, verbose)
    info = enrich_transaction(description, delegate)
    click.echo(f"Merchant: {info.merchant or '(unknown)'}")
    click.echo(f"Category: {info.icon} {info.category}")


@cli.command()
@_file_argument
@_no_ai_option
@_verbose_option
@_debug_option
def insights(file: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Generate spending insights for a transaction export FILE."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import generate_insights
    from finance_tracker.report import print_insights

    delegate = _select_delegate(_load_config(Path.cwd()), no_ai, verbose)
    print_insights(generate_insights(_load_transactions(file, verbose), delegate))


@cli.command()
@_file_argument
@_no_ai_option
@_verbose_option
@_debug_option
def recommend(file: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Recommend monthly budgets for the top spending categories."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import generate_budget_recommendations
    from finance_tracker.report import print_recommendations

    root = Path.cwd()
    config = _load_config(root)
    delegate = _select_delegate(config, no_ai, verbose)
    recommendations = generate_budget_recommendations(
        _load_transactions(file, verbose),
        _load_budgets(root),
        delegate=delegate,
        months_of_history=config.months_of_history,
    )
    print_recommendations(recommendations)


@cli.command()
@_file_argument
@_no_ai_option
@_verbose_option
@_debug_option
def health(file: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Score financial health from a transaction export FILE."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import analyze_health
    from finance_tracker.report import print_health

    root = Path.cwd()
    delegate = _select_delegate(_load_config(root), no_ai, verbose)
    print_health(analyze_health(_load_transactions(file, verbose), _load_budgets(root), delegate))


@cli.command()
@_file_argument
@_no_ai_option
@_verbose_option
@_debug_option
def forecast(file: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Predict next month's expenses by category."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import predict_future_expenses
    from finance_tracker.report import print_forecast

    delegate = _select_delegate(_load_config(Path.cwd()), no_ai, verbose)
    print_forecast(predict_future_expenses(_load_transactions(file, verbose), delegate))


@cli.command()
@_file_argument
@_no_ai_option
@_verbose_option
@_debug_option
def actions(file: str, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Recommend financial actions for a transaction export FILE."""
    _configure_logging(verbose, debug)
    from finance_tracker.advisor import recommend_actions
    from finance_tracker.report import print_actions

    delegate = _select_delegate(_load_config(Path.cwd()), no_ai, verbose)
    print_actions(recommend_actions(_load_transactions(file, verbose), delegate))


@cli.group()
def budget() -> None:
    """Manage monthly budgets in budgets.toml."""


@budget.command("set")
@click.argument("category")
@click.argument("amount", type=click.FloatRange(min=0, min_open=True))
def budget_set(category: str, amount: float) -> None:
    """Set the monthly budget for CATEGORY to AMOUNT."""
    from finance_tracker.categories import EXPENSE_CATEGORY_IDS
    from finance_tracker.config import set_budget

    if category not in EXPENSE_CATEGORY_IDS:
        click.echo(
            f"Error: unknown expense category {category!r}. "
            f"Choose from: {', '.join(EXPENSE_CATEGORY_IDS)}",
            err=True,
        )
        sys.exit(1)

    try:
        budgets = set_budget(Path.cwd(), category, Decimal(str(amount)))
    except Exception as exc:
        click.echo(f"Error saving budget: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Budget for {category} set to ${amount:,.2f} ({len(budgets)} budget(s) total)")


@budget.command("list")
def budget_list() -> None:
    """List the budgets in budgets.toml."""
    from finance_tracker.categories import category_name

    budgets = _load_budgets(Path.cwd())
    if not budgets:
        click.echo("No budgets set.")
        return
    for b in budgets:
        click.echo(f"  {category_name(b.category) + ':':<25} ${b.amount:,.2f}")
