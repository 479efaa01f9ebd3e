"""Daily reminder payloads: upcoming bills and low available balances."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Mapping

from analytics.recurrence import next_occurrence
from core.formatting import format_currency, format_weekday
from core.models import Account, AlertNotification, Projection, TransactionSeries

__all__ = ["low_balance_alerts", "upcoming_bill_reminders"]


def upcoming_bill_reminders(
    series_list: Iterable[TransactionSeries],
    now: date,
    *,
    days_ahead: int = 2,
    currency_symbol: str = "$",
) -> list[AlertNotification]:
    """Remind about recurring expenses with an occurrence exactly ``days_ahead`` days out."""

    due_day = now + timedelta(days=days_ahead)
    reminders: list[AlertNotification] = []
    for series in series_list:
        if not series.is_recurring or series.amount >= 0:
            continue
        if next_occurrence(series, due_day) != due_day:
            continue
        amount = format_currency(abs(series.amount), currency_symbol)
        reminders.append(
            AlertNotification(
                title="Upcoming Bill Reminder",
                body=f"Heads up! Your {series.description} payment of {amount} is due on {format_weekday(due_day)}.",
                severity="info",
            )
        )
    return reminders


def low_balance_alerts(
    accounts: Iterable[Account],
    projections: Mapping[str, Projection],
    *,
    default_threshold: float = 50.0,
    currency_symbol: str = "$",
) -> list[AlertNotification]:
    """Warn for every account whose available-to-spend sits below its threshold."""

    alerts: list[AlertNotification] = []
    for account in accounts:
        projection = projections.get(account.id)
        if projection is None:
            continue
        threshold = default_threshold if account.low_balance_threshold is None else account.low_balance_threshold
        if projection.available_to_spend >= threshold:
            continue
        available = format_currency(projection.available_to_spend, currency_symbol)
        alerts.append(
            AlertNotification(
                title="Low Available Balance Alert",
                body=(
                    f"Your {account.name} account's available balance is getting low ({available}). "
                    "Be mindful of extra spending."
                ),
                severity="critical" if projection.available_to_spend < 0 else "warning",
            )
        )
    return alerts
