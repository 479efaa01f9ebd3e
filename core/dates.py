"""Calendar helpers shared by the expander and the record loader."""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Any

import pandas as pd

__all__ = [
    "DAY_STEPS",
    "MONTH_STEPS",
    "add_months",
    "months_between",
    "month_key",
    "normalize_frequency",
    "parse_date",
]

DAY_STEPS: dict[str, int] = {"daily": 1, "weekly": 7, "biweekly": 14}
MONTH_STEPS: dict[str, int] = {"monthly": 1, "quarterly": 3, "annually": 12}

_FREQUENCY_ALIASES = {
    "bi-weekly": "biweekly",
    "fortnightly": "biweekly",
    "yearly": "annually",
    "annual": "annually",
}


def parse_date(value: Any) -> date:
    """Coerce a store value into a calendar date.

    Accepts ``date``/``datetime``/``pd.Timestamp`` objects and ``YYYY-MM-DD`` or
    ISO-8601 strings (the time part is dropped, never shifted by timezone).
    Raises ``ValueError`` or ``TypeError`` for anything else.
    """

    if value is None:
        raise ValueError("Missing date value")
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            raise ValueError("Missing date value")
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date string")
        return date.fromisoformat(text.split("T")[0].split(" ")[0])
    raise TypeError(f"Unsupported date value: {value!r}")


def normalize_frequency(value: Any) -> str:
    text = str(value or "").strip().lower()
    text = _FREQUENCY_ALIASES.get(text, text)
    if text not in DAY_STEPS and text not in MONTH_STEPS:
        raise ValueError(f"Unsupported frequency: {value!r}")
    return text


def add_months(anchor: date, months: int) -> date:
    """Shift ``anchor`` by whole months, clamping to the target month's last day."""

    month = anchor.month - 1 + months
    year = anchor.year + month // 12
    month = month % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_key(moment: date) -> str:
    """Billing period identifier (calendar month) such as ``2024-01``."""

    return f"{moment.year:04d}-{moment.month:02d}"