"""Consolidation of several account projections into one daily series."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Sequence

import pandas as pd

from analytics.projection import available_to_spend
from core.models import AGGREGATE_ACCOUNT_ID, Projection, ProjectionPoint, TransactionInstance

__all__ = ["aggregate", "build_balance_frame"]


def build_balance_frame(projections: Sequence[Projection]) -> pd.DataFrame:
    """Return one balance column per account over the union of their dates.

    Gaps after an account's last point carry its last known balance forward;
    days before its first point use its reconciled starting balance.
    """

    columns: dict[str, pd.Series] = {}
    for position, projection in enumerate(projections):
        label = f"{projection.account_id}#{position}"
        columns[label] = pd.Series(
            [float(point.balance) for point in projection.points],
            index=pd.DatetimeIndex([pd.Timestamp(point.date) for point in projection.points]),
            dtype=float,
        )

    frame = pd.concat(columns, axis=1).sort_index()
    frame.index.name = "Day"
    frame = frame.ffill()
    for label, projection in zip(columns, projections):
        frame[label] = frame[label].fillna(float(projection.starting_balance))
    return frame


def _merge_instances(projections: Sequence[Projection]) -> dict[date, tuple[TransactionInstance, ...]]:
    merged: dict[date, list[TransactionInstance]] = defaultdict(list)
    seen: dict[date, set[str]] = defaultdict(set)
    for projection in projections:
        for point in projection.points:
            for instance in point.instances:
                key = f"{instance.account_id}:{instance.instance_id}"
                if key in seen[point.date]:
                    continue
                seen[point.date].add(key)
                merged[point.date].append(instance)
    return {day: tuple(items) for day, items in merged.items()}


def aggregate(projections: Sequence[Projection]) -> Projection:
    """Merge account projections into a consolidated series.

    Balances are summed per date after carry-forward, and the aggregate
    low/high are recomputed over the merged series rather than summed from
    each account's own extremes. Inputs are left untouched.
    """

    projections = [projection for projection in projections if projection.points]
    if not projections:
        raise ValueError("aggregate() needs at least one non-empty projection")

    frame = build_balance_frame(projections)
    totals = frame.sum(axis=1)
    instances_by_day = _merge_instances(projections)

    points = tuple(
        ProjectionPoint(
            date=timestamp.date(),
            balance=float(balance),
            instances=instances_by_day.get(timestamp.date(), ()),
        )
        for timestamp, balance in totals.items()
    )

    lowest = float(totals.min())
    highest = float(totals.max())
    cushion = float(sum(projection.cushion for projection in projections))
    goal_allocations = float(sum(projection.goal_allocations for projection in projections))

    return Projection(
        account_id=AGGREGATE_ACCOUNT_ID,
        start_date=min(projection.start_date for projection in projections),
        starting_balance=float(sum(projection.starting_balance for projection in projections)),
        points=points,
        lowest_balance=lowest,
        highest_balance=highest,
        cushion=cushion,
        goal_allocations=goal_allocations,
        available_to_spend=available_to_spend(lowest, cushion, goal_allocations),
    )
