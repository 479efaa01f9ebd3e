"""Day-by-day balance simulation for a single account."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Sequence

import numpy as np

from core.models import Account, Projection, ProjectionPoint, ProtectionHorizon, TransactionInstance

__all__ = [
    "DEFAULT_HORIZON_DAYS",
    "available_to_spend",
    "project",
    "protection_horizon",
    "reconcile_balance",
]

DEFAULT_HORIZON_DAYS = 60


def available_to_spend(lowest_balance: float, cushion: float, goal_allocations: float) -> float:
    """Spendable funds derived from the simulated low; may be negative."""

    return float(lowest_balance) - float(cushion) - float(goal_allocations)


def reconcile_balance(account: Account, instances: Iterable[TransactionInstance], now: date) -> float:
    """Return ``current_balance`` plus every instance of the account dated before ``now``.

    Callers must pass instances expanded fresh from series. Feeding back deltas
    that were already folded into ``current_balance`` would count them twice.
    """

    past = sum(
        float(instance.amount)
        for instance in instances
        if instance.account_id == account.id and instance.date < now
    )
    return float(account.current_balance) + past


def _group_by_day(
    instances: Iterable[TransactionInstance],
    account_id: str,
    start: date,
    end: date,
) -> dict[date, list[TransactionInstance]]:
    grouped: dict[date, list[TransactionInstance]] = defaultdict(list)
    for instance in instances:
        if instance.account_id != account_id:
            continue
        if start <= instance.date <= end:
            grouped[instance.date].append(instance)
    return grouped


def project(
    account: Account,
    instances: Sequence[TransactionInstance],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    now: date | None = None,
) -> Projection:
    """Simulate the account balance for days ``0..horizon_days`` counted from ``now``.

    Parameters
    ----------
    account:
        Account whose ``current_balance`` is the last recorded figure.
    instances:
        Dated instances; those belonging to other accounts are ignored.
    horizon_days:
        Number of days after ``now`` to simulate (``now`` itself is day 0).
    now:
        Anchor day. Required; the engine never reads a wall clock.

    Returns
    -------
    Projection
        A dense series with one point per day, even on days without activity.
    """

    if now is None:
        raise ValueError("project() needs an explicit 'now' anchor")

    horizon_days = max(int(horizon_days), 0)
    instances = tuple(instances)
    end = now + timedelta(days=horizon_days)

    starting_balance = reconcile_balance(account, instances, now)
    by_day = _group_by_day(instances, account.id, now, end)

    days = [now + timedelta(days=offset) for offset in range(horizon_days + 1)]
    daily_net = np.array(
        [sum(float(instance.amount) for instance in by_day.get(day, ())) for day in days],
        dtype=float,
    )
    balances = starting_balance + np.cumsum(daily_net)

    points = tuple(
        ProjectionPoint(date=day, balance=float(balance), instances=tuple(by_day.get(day, ())))
        for day, balance in zip(days, balances)
    )
    lowest = float(balances.min())
    highest = float(balances.max())

    return Projection(
        account_id=account.id,
        start_date=now,
        starting_balance=starting_balance,
        points=points,
        lowest_balance=lowest,
        highest_balance=highest,
        cushion=float(account.cushion),
        goal_allocations=float(account.goal_allocations),
        available_to_spend=available_to_spend(lowest, account.cushion, account.goal_allocations),
    )


def protection_horizon(
    available: float,
    instances: Iterable[TransactionInstance],
    horizon_days: int,
    now: date,
    *,
    account_id: str | None = None,
) -> ProtectionHorizon:
    """Find the first day a balance starting at ``available`` would drop below zero.

    Instances are walked chronologically from ``now`` to the end of the
    horizon. When the balance never goes negative the result reports
    ``beyond_horizon`` instead of a day.
    """

    end = now + timedelta(days=max(int(horizon_days), 0))
    if available < 0:
        return ProtectionHorizon(shortfall_date=now, days_protected=0)

    daily_net: dict[date, float] = defaultdict(float)
    for instance in instances:
        if account_id is not None and instance.account_id != account_id:
            continue
        if now <= instance.date <= end:
            daily_net[instance.date] += float(instance.amount)

    # same-day instances net out before the balance is checked
    running = float(available)
    for day in sorted(daily_net):
        running += daily_net[day]
        if running < 0:
            return ProtectionHorizon(shortfall_date=day, days_protected=(day - now).days)
    return ProtectionHorizon(shortfall_date=None, days_protected=None)
