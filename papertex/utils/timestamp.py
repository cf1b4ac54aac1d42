"""Timestamp formatting utilities."""

from datetime import date
from typing import Optional


def long_date(day: Optional[date] = None) -> str:
    """
    Format a date in long form.

    Args:
        day: Date to format (default: today)

    Returns:
        Date string such as "October 18, 2026"
    """
    day = day or date.today()
    return f"{day:%B} {day.day}, {day.year}"
