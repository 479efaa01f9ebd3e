"""Projection, recurrence and alerting helpers for Cushion."""

from analytics.aggregation import aggregate, build_balance_frame
from analytics.detection import RecurringSuggestion, detect_recurring_series
from analytics.projection import available_to_spend, project, protection_horizon, reconcile_balance
from analytics.recurrence import expand, expand_all, next_occurrence
from analytics.reminders import low_balance_alerts, upcoming_bill_reminders
from analytics.spend import budgets_with_spend, category_spend
from analytics.thresholds import (
    build_alert_notification,
    compute_percentage,
    dispatch_alerts,
    evaluate_budget_alerts,
)
from analytics.what_if import classify_risk, simulate

__all__ = [
    "aggregate",
    "build_balance_frame",
    "RecurringSuggestion",
    "detect_recurring_series",
    "available_to_spend",
    "project",
    "protection_horizon",
    "reconcile_balance",
    "expand",
    "expand_all",
    "next_occurrence",
    "low_balance_alerts",
    "upcoming_bill_reminders",
    "budgets_with_spend",
    "category_spend",
    "build_alert_notification",
    "compute_percentage",
    "dispatch_alerts",
    "evaluate_budget_alerts",
    "classify_risk",
    "simulate",
]
