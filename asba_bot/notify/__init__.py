"""Operator notifications."""
from .messages import escape_markdown, format_no_accounts, format_run_summary
from .telegram import TelegramNotifier

__all__ = [
    "TelegramNotifier",
    "escape_markdown",
    "format_no_accounts",
    "format_run_summary",
]
