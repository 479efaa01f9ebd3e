"""Formatting helpers for Cushion notifications."""

from __future__ import annotations

from datetime import date

__all__ = ["category_label", "format_currency", "format_percentage", "format_weekday"]


def format_currency(amount: float, symbol: str = "$") -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_percentage(value: float) -> str:
    return f"{value:.0f}%"


def category_label(category: str | None) -> str:
    if not category:
        return "Uncategorized"
    return category.replace("_", " ").strip().title()


def format_weekday(moment: date) -> str:
    return moment.strftime("%A")
