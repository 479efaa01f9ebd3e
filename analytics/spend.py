"""Category spend aggregation for the current billing period."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable

import numpy as np
import pandas as pd

from core.models import Budget, TransactionInstance

__all__ = ["budgets_with_spend", "category_spend", "instances_frame"]

UNCATEGORIZED = "uncategorized"


def instances_frame(instances: Iterable[TransactionInstance]) -> pd.DataFrame:
    """Tabulate instances with a positive ``spend`` column for expenses."""

    records = [
        {
            "date": pd.Timestamp(instance.date),
            "amount": float(instance.amount),
            "category": instance.category or UNCATEGORIZED,
            "account_id": instance.account_id,
            "source_id": instance.source_id,
        }
        for instance in instances
    ]
    frame = pd.DataFrame.from_records(
        records, columns=["date", "amount", "category", "account_id", "source_id"]
    )
    frame["spend"] = np.where(frame["amount"] < 0, -frame["amount"], 0.0)
    return frame


def category_spend(
    instances: Iterable[TransactionInstance],
    period: date,
    *,
    through: date | None = None,
) -> dict[str, float]:
    """Sum expense magnitudes per category for the calendar month of ``period``.

    ``through`` limits the sum to instances dated on or before that day, so a
    fully expanded month does not count bills that have not happened yet.
    """

    frame = instances_frame(instances)
    if frame.empty:
        return {}

    target = pd.Timestamp(period).to_period("M")
    mask = frame["date"].dt.to_period("M") == target
    if through is not None:
        mask &= frame["date"] <= pd.Timestamp(through)

    totals = frame.loc[mask].groupby("category")["spend"].sum()
    return {str(category): float(value) for category, value in totals.items() if value > 0}


def budgets_with_spend(
    budgets: Iterable[Budget],
    instances: Iterable[TransactionInstance],
    period: date,
    *,
    through: date | None = None,
) -> list[Budget]:
    """Return copies of ``budgets`` with ``spent`` filled in for the period."""

    totals = category_spend(instances, period, through=through)
    return [replace(budget, spent=totals.get(budget.category, 0.0)) for budget in budgets]
