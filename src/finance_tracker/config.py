"""Configuration loading, budget files, and project initialization.

Reads TOML files using stdlib ``tomllib`` and writes them using
``tomli_w``.  Depends on ``models.py`` and ``loader.py``.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

from finance_tracker.errors import ConfigurationError
from finance_tracker.loader import load_budgets
from finance_tracker.models import AppConfig, Budget, StageResult

PROVIDERS = ("gemini", "none")

# ---------------------------------------------------------------------------
# Default file content
# ---------------------------------------------------------------------------

_DEFAULT_CONFIG_TOML = """\
# Finance Tracker configuration

[ai]
provider = "gemini"             # "gemini" or "none"
model = "gemini-pro"
api_key_env = "GEMINI_API_KEY"  # Name of env var containing the API key
temperature = 0.7
max_output_tokens = 1024
timeout = 30.0

[analysis]
# Number of months a transaction export is assumed to cover when
# averaging category spending for budget recommendations.
months_of_history = 3
"""

_DEFAULT_BUDGETS_TOML = """\
# Monthly spending ceilings, one per category.
# Format: category = amount

[budgets]
"""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root* and return an :class:`AppConfig`.

    Missing keys fall back to the defaults.

    Raises:
        FileNotFoundError: If ``config.toml`` does not exist.
        ConfigurationError: If a value is out of range or the provider is
            unknown.
    """
    data = _read_toml(Path(root) / "config.toml")

    ai = data.get("ai", {})
    analysis = data.get("analysis", {})
    defaults = AppConfig()

    config = AppConfig(
        ai_provider=ai.get("provider", defaults.ai_provider),
        ai_model=ai.get("model", defaults.ai_model),
        ai_api_key_env=ai.get("api_key_env", defaults.ai_api_key_env),
        ai_temperature=float(ai.get("temperature", defaults.ai_temperature)),
        ai_max_output_tokens=int(ai.get("max_output_tokens", defaults.ai_max_output_tokens)),
        ai_timeout=float(ai.get("timeout", defaults.ai_timeout)),
        months_of_history=int(analysis.get("months_of_history", defaults.months_of_history)),
    )
    _validate(config)
    return config


def load_budgets_file(root: Path) -> StageResult:
    """Load ``budgets.toml`` from *root*.

    Returns:
        A StageResult with the parsed budgets.  A missing file is not an
        error; it simply yields no budgets.
    """
    path = Path(root) / "budgets.toml"
    if not path.exists():
        return StageResult()
    data = _read_toml(path)
    records = [
        {"category": category, "amount": amount}
        for category, amount in data.get("budgets", {}).items()
    ]
    return load_budgets(records, source=str(path))


def save_budgets(root: Path, budgets: Iterable[Budget]) -> None:
    """Write *budgets* to the ``[budgets]`` table of ``budgets.toml``.

    The file is rewritten in full; budgets are written in the given order.
    """
    table = {b.category: _toml_number(b.amount) for b in budgets}
    text = _DEFAULT_BUDGETS_TOML.split("[budgets]")[0]
    text += tomli_w.dumps({"budgets": table}) if table else "[budgets]\n"
    (Path(root) / "budgets.toml").write_text(text, encoding="utf-8")


def set_budget(root: Path, category: str, amount: Decimal) -> list[Budget]:
    """Create or replace the budget for *category* and save the file.

    Returns:
        The full, updated budget list.

    Raises:
        ConfigurationError: If *amount* is not positive.
    """
    if amount <= 0:
        raise ConfigurationError(f"Budget amount must be positive, got {amount}")
    budgets = [b for b in load_budgets_file(root).budgets if b.category != category]
    budgets.append(Budget(category=category, amount=amount))
    save_budgets(root, budgets)
    return budgets


def initialize(target_dir: Path) -> None:
    """Write the default ``config.toml`` and ``budgets.toml``.

    Idempotent: existing files are **not** overwritten.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    _write_if_missing(target_dir / "config.toml", _DEFAULT_CONFIG_TOML)
    _write_if_missing(target_dir / "budgets.toml", _DEFAULT_BUDGETS_TOML)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _validate(config: AppConfig) -> None:
    if config.ai_provider not in PROVIDERS:
        raise ConfigurationError(
            f"Unknown AI provider {config.ai_provider!r}. Expected one of: {', '.join(PROVIDERS)}"
        )
    if config.months_of_history < 1:
        raise ConfigurationError(
            f"months_of_history must be at least 1, got {config.months_of_history}"
        )
    if config.ai_timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {config.ai_timeout}")


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _toml_number(amount: Decimal) -> int | float:
    """Convert a Decimal to the TOML number type that preserves it."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def _write_if_missing(path: Path, content: str) -> None:
    """Write *content* to *path* only if the file does not already exist."""
    if not path.exists():
        path.write_text(content, encoding="utf-8")
