"""Exception hierarchy for Finance Tracker.

Record-level problems in input snapshots are reported as ``ParseError``
and turned into warnings by the loader.  ``ExternalServiceError`` is the
only failure the AI delegate is allowed to raise; the advisor catches it
and switches to the deterministic engines.
"""

from __future__ import annotations


class FinanceTrackerError(Exception):
    """Base exception for all Finance Tracker errors."""


class ParseError(FinanceTrackerError):
    """A single input record could not be parsed.

    Attributes:
        field: Name of the offending field, e.g. ``"date"``.
        value: The raw value that failed to parse.
    """

    def __init__(self, field: str, value: object, message: str = "") -> None:
        self.field = field
        self.value = value
        super().__init__(message or f"invalid {field}: {value!r}")


class ExternalServiceError(FinanceTrackerError):
    """The generative-language service failed or returned unusable data."""


class ConfigurationError(FinanceTrackerError):
    """Invalid configuration, e.g. an empty API credential."""
