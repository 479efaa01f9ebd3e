"""Pipeline assembling Cushion's per-account and consolidated forecasts."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from analytics.aggregation import aggregate
from analytics.projection import project
from analytics.recurrence import expand_all
from analytics.reminders import low_balance_alerts, upcoming_bill_reminders
from analytics.spend import budgets_with_spend
from analytics.thresholds import evaluate_budget_alerts
from config.settings import Settings, get_settings
from core.models import (
    AGGREGATE_ACCOUNT_ID,
    Account,
    AlertEvaluation,
    AlertState,
    Budget,
    ForecastData,
    Goal,
    Projection,
    ProjectionPoint,
    TransactionInstance,
    TransactionSeries,
)

__all__ = [
    "allocations_by_account",
    "apply_goal_allocations",
    "prepare_budget_alerts",
    "prepare_forecast",
]

logger = logging.getLogger(__name__)


def allocations_by_account(goals: Iterable[Goal]) -> dict[str, float]:
    """Sum goal allocations per funding account."""

    totals: dict[str, float] = defaultdict(float)
    for goal in goals:
        totals[goal.funding_account_id] += float(goal.allocated_amount)
    return dict(totals)


def apply_goal_allocations(accounts: Sequence[Account], goals: Optional[Iterable[Goal]]) -> list[Account]:
    """Return accounts whose ``goal_allocations`` reflect the supplied goals.

    Without goals the recorded ``goal_allocations`` are kept as-is.
    """

    if goals is None:
        return list(accounts)
    totals = allocations_by_account(goals)
    return [replace(account, goal_allocations=totals.get(account.id, 0.0)) for account in accounts]


def _empty_projection(now: date) -> Projection:
    return Projection(
        account_id=AGGREGATE_ACCOUNT_ID,
        start_date=now,
        starting_balance=0.0,
        points=(ProjectionPoint(date=now, balance=0.0),),
        lowest_balance=0.0,
        highest_balance=0.0,
    )


def prepare_forecast(
    series: Sequence[TransactionSeries],
    accounts: Sequence[Account],
    *,
    now: date,
    goals: Optional[Iterable[Goal]] = None,
    horizon_days: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> ForecastData:
    """Expand every series, project each account and consolidate the result.

    ``now`` comes from the caller's clock so that the same records always
    produce the same forecast. Recurring series are expanded from their own
    anchor dates, which lets each projection reconcile occurrences that fell
    between the last recorded balance and ``now``.
    """

    settings = settings or get_settings()
    horizon = settings.default_horizon_days if horizon_days is None else int(horizon_days)
    window_end = now + timedelta(days=horizon)

    expansion = expand_all(series, None, window_end, iteration_cap=settings.iteration_cap)
    accounts = apply_goal_allocations(accounts, goals)

    projections = {
        account.id: project(account, expansion.instances, horizon, now) for account in accounts
    }
    consolidated = aggregate(list(projections.values())) if projections else _empty_projection(now)

    reminders = upcoming_bill_reminders(
        series,
        now,
        days_ahead=settings.bill_reminder_days,
        currency_symbol=settings.currency_symbol,
    )
    reminders.extend(
        low_balance_alerts(
            accounts,
            projections,
            default_threshold=settings.low_balance_threshold,
            currency_symbol=settings.currency_symbol,
        )
    )

    logger.info(
        {
            "event": "prepare_forecast",
            "now": now.isoformat(),
            "horizon_days": horizon,
            "accounts": len(projections),
            "series": len(series),
            "instances": len(expansion.instances),
            "truncated_series": len(expansion.truncated_ids),
            "reminders": len(reminders),
        }
    )

    return {
        "now": now,
        "horizon_days": horizon,
        "projections": projections,
        "aggregate": consolidated,
        "instances": expansion.instances,
        "truncated_series": expansion.truncated_ids,
        "total_available": consolidated.available_to_spend,
        "reminders": reminders,
    }


def prepare_budget_alerts(
    budgets: Iterable[Budget],
    instances: Iterable[TransactionInstance],
    state: AlertState,
    *,
    today: date,
    settings: Optional[Settings] = None,
) -> AlertEvaluation:
    """Fill in this month's spend per budget and evaluate threshold crossings.

    Only instances dated on or before ``today`` count as spent. The returned
    evaluation carries the updated state; dispatching its notification is a
    separate, explicit call.
    """

    settings = settings or get_settings()
    current = budgets_with_spend(budgets, instances, today, through=today)
    return evaluate_budget_alerts(
        current,
        state,
        today,
        thresholds=settings.alert_thresholds,
        currency_symbol=settings.currency_symbol,
    )
