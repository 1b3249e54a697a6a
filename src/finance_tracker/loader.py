"""Snapshot loaders: raw documents to Transaction and Budget values.

Transaction documents look like the stored records::

    {"id": "...", "title": "Starbucks", "amount": -4.5,
     "category": "food", "date": "2024-01-10", "notes": ""}

Loaders never raise on a bad record.  A record whose date or amount cannot
be parsed, whose title is empty, or whose amount is zero is skipped with a
warning so one bad record cannot corrupt the aggregates or discard the
rest of the file.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from finance_tracker.classifier import classify
from finance_tracker.errors import ParseError
from finance_tracker.models import Budget, StageResult, Transaction, parse_amount

logger = logging.getLogger(__name__)


def load_transactions(records: Iterable[dict], source: str = "records") -> StageResult:
    """Parse transaction documents, skipping malformed ones.

    Records with no category get one from the keyword classifier.

    Args:
        records: Transaction documents as plain dicts.
        source: Label used in warning messages, e.g. a file path.

    Returns:
        A StageResult with the parsed transactions and a warning per
        skipped record.
    """
    transactions: list[Transaction] = []
    warnings: list[str] = []

    for ordinal, record in enumerate(records):
        if not isinstance(record, dict):
            warnings.append(f"{source}: skipped malformed record {ordinal} (not an object)")
            continue

        try:
            txn = Transaction.from_record(record)
        except ParseError as exc:
            warnings.append(f"{source}: skipped malformed record {ordinal} ({exc})")
            continue

        if not txn.title:
            warnings.append(f"{source}: skipped malformed record {ordinal} (missing title)")
            continue
        if txn.amount == 0:
            warnings.append(f"{source}: skipped record {ordinal} (zero amount)")
            continue

        if not txn.category:
            category = classify(txn.title)
            logger.debug("Record %d has no category, classified as %s", ordinal, category)
            txn = Transaction(
                title=txn.title,
                amount=txn.amount,
                category=category,
                date=txn.date,
                id=txn.id,
                notes=txn.notes,
                merchant=txn.merchant,
            )

        transactions.append(txn)

    return StageResult(transactions=transactions, warnings=warnings)


def load_transactions_file(path: Path) -> StageResult:
    """Load a transaction snapshot from a ``.csv`` or ``.json`` file.

    CSV files need a header row with at least ``title``, ``amount`` and
    ``date`` columns.  JSON files hold either a list of documents or an
    object with a ``"transactions"`` list.

    Returns:
        A StageResult.  Unreadable files and unknown formats produce an
        error and no transactions; malformed records only produce warnings.
    """
    path = Path(path)
    source = str(path)

    try:
        records = _read_records(path)
    except FileNotFoundError:
        return StageResult(errors=[f"{source}: file not found"])
    except (OSError, ValueError, csv.Error) as exc:
        return StageResult(errors=[f"{source}: {exc}"])

    return load_transactions(records, source=source)


def load_budgets(records: Iterable[dict], source: str = "budgets") -> StageResult:
    """Parse budget documents.

    Each category keeps its last definition; earlier duplicates are
    dropped with a warning.  Non-positive amounts are skipped.
    """
    by_category: dict[str, Budget] = {}
    warnings: list[str] = []

    for ordinal, record in enumerate(records):
        if not isinstance(record, dict):
            warnings.append(f"{source}: skipped budget {ordinal} (not an object)")
            continue
        category = str(record.get("category") or "").strip()
        if not category:
            warnings.append(f"{source}: skipped budget {ordinal} (missing category)")
            continue
        try:
            amount = parse_amount(record.get("amount"))
        except ParseError as exc:
            warnings.append(f"{source}: skipped budget {ordinal} ({exc})")
            continue
        if amount <= 0:
            warnings.append(f"{source}: skipped budget {ordinal} (amount must be positive)")
            continue

        if category in by_category:
            warnings.append(f"{source}: duplicate budget for {category!r}, keeping the last one")
        by_category[category] = Budget(
            category=category,
            amount=amount,
            created_at=_parse_timestamp(record.get("createdAt")),
        )

    return StageResult(budgets=list(by_category.values()), warnings=warnings)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_records(path: Path) -> list:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                raise ValueError("empty file or no header row")
            missing = {"title", "amount", "date"} - set(reader.fieldnames)
            if missing:
                raise ValueError(f"missing expected columns: {', '.join(sorted(missing))}")
            return list(reader)

    if suffix == ".json":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("transactions", [])
        if not isinstance(data, list):
            raise ValueError("expected a list of transactions")
        return data

    raise ValueError(f"unsupported file type {suffix or '(none)'!r}, expected .csv or .json")


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Ignoring unparseable createdAt %r", value)
        return None
