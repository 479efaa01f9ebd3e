"""Suggest recurring series from a history of one-time transactions."""

from __future__ import annotations

import re
from datetime import date
from functools import lru_cache
from typing import Iterable, TypedDict

import numpy as np
import pandas as pd

from analytics.recurrence import occurrence_at
from core.models import Frequency, TransactionSeries

__all__ = ["RecurringSuggestion", "detect_recurring_series", "normalize_merchant"]


class RecurringSuggestion(TypedDict):
    """A candidate series plus the evidence it was inferred from."""

    series: TransactionSeries
    occurrences: int
    confidence: float


_MONTHLY_RANGE = range(28, 32)
_WEEKLY_RANGE = range(6, 9)
_BIWEEKLY_RANGE = range(13, 16)

_TRAILING_METADATA = re.compile(r"\b(online|ltd|limited|plc|inc|co|llc)\b", re.IGNORECASE)
_PUNCTUATION = re.compile(r"[^\w\s]")


@lru_cache(maxsize=512)
def normalize_merchant(raw_name: str) -> str:
    """Lowercase merchant slug with punctuation and company suffixes removed."""

    if not raw_name:
        return "unknown"

    name = raw_name.strip().lower()
    name = _PUNCTUATION.sub(" ", name)
    name = _TRAILING_METADATA.sub("", name)
    name = re.sub(r"\s+", " ", name)
    return name.strip() or "unknown"


def detect_recurring_series(
    history: pd.DataFrame,
    today: date,
    *,
    amount_tolerance: float = 0.08,
    absolute_tolerance: float = 1.0,
    min_occurrences: int = 2,
) -> list[RecurringSuggestion]:
    """Identify transactions that repeat on a weekly, bi-weekly or monthly cadence.

    Parameters
    ----------
    history:
        DataFrame with ``date``, ``description``, ``amount`` and ``account_id``
        columns (``category`` is optional).
    today:
        Reference day; the suggested anchor is the first expected occurrence
        on or after it.
    amount_tolerance:
        Relative tolerance when comparing amounts to the median.
    absolute_tolerance:
        Amounts within this many currency units of the median always match.
    min_occurrences:
        Minimum number of past transactions required.

    Returns
    -------
    list[RecurringSuggestion]
        Sorted by anchor date, then by absolute amount descending.
    """

    if history.empty:
        return []

    frame = history.copy()
    frame["date"] = pd.to_datetime(frame["date"], errors="coerce")
    frame = frame.dropna(subset=["date", "amount"])
    if frame.empty:
        return []

    frame["group_key"] = frame["description"].fillna("").map(normalize_merchant)
    frame["direction"] = np.sign(frame["amount"].astype(float))

    suggestions: list[RecurringSuggestion] = []
    for (account_id, group_key, direction), group_df in frame.groupby(["account_id", "group_key", "direction"]):
        if direction == 0 or len(group_df) < min_occurrences:
            continue

        group_df = group_df.sort_values(by="date")
        deltas = group_df["date"].diff().dt.days.dropna()
        frequency = _resolve_frequency(deltas)
        if frequency is None:
            continue

        amounts = group_df["amount"].astype(float)
        median_amount = float(amounts.median())
        deviation = np.abs(amounts - median_amount)
        within = (deviation <= absolute_tolerance) | (deviation / abs(median_amount) <= amount_tolerance)
        confidence = float(within.mean())
        if confidence < 0.6:
            continue

        last_row = group_df.iloc[-1]
        anchor = _roll_forward(last_row["date"].date(), frequency, today)
        category = last_row.get("category") if "category" in group_df.columns else None
        suggestions.append(
            {
                "series": TransactionSeries(
                    id=f"detected-{account_id}-{group_key.replace(' ', '-')}",
                    description=str(last_row["description"]),
                    amount=round(median_amount, 2),
                    type="income" if direction > 0 else "expense",
                    account_id=str(account_id),
                    anchor_date=anchor,
                    is_recurring=True,
                    frequency=frequency,
                    category=None if pd.isna(category) else str(category),
                ),
                "occurrences": int(len(group_df)),
                "confidence": confidence,
            }
        )

    suggestions.sort(key=lambda row: (row["series"].anchor_date, -abs(row["series"].amount)))
    return suggestions


def _resolve_frequency(days: Iterable[float]) -> Frequency | None:
    values = list(days)
    if not values:
        return None

    median_interval = float(np.median(values))
    if np.isnan(median_interval) or median_interval <= 0:
        return None

    rounded = int(round(median_interval))
    if rounded in _MONTHLY_RANGE:
        return "monthly"
    if rounded in _BIWEEKLY_RANGE:
        return "biweekly"
    if rounded in _WEEKLY_RANGE:
        return "weekly"
    return None


def _roll_forward(last_seen: date, frequency: Frequency, today: date) -> date:
    step = 1
    candidate = occurrence_at(last_seen, frequency, step)
    while candidate < today:
        step += 1
        candidate = occurrence_at(last_seen, frequency, step)
    return candidate
