"""Finance Tracker: transaction analytics, budgeting, and categorization."""

__version__ = "0.1.0"
