"""Budget threshold tracking with at-most-once alerts per billing period."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Sequence

from core.dates import month_key
from core.formatting import category_label, format_currency, format_percentage
from core.models import AlertEvaluation, AlertNotification, AlertState, Budget, BudgetAlert, Severity

__all__ = [
    "DEFAULT_THRESHOLDS",
    "build_alert_notification",
    "compute_percentage",
    "dispatch_alerts",
    "evaluate_budget_alerts",
    "threshold_band",
]

DEFAULT_THRESHOLDS: tuple[int, ...] = (80, 90, 100)

_SEVERITY_BY_RANK: tuple[Severity, ...] = ("info", "warning", "critical")

logger = logging.getLogger(__name__)


def compute_percentage(spent: float, limit: float) -> float:
    """Spend as a percentage of the limit; a zero (or negative) limit reads as 0%."""

    if not limit or limit <= 0:
        return 0.0
    return float(spent) / float(limit) * 100.0


def threshold_band(percentage: float, thresholds: Sequence[int] = DEFAULT_THRESHOLDS) -> int | None:
    """Return the threshold whose band contains ``percentage``.

    Each band spans ``[threshold, next_threshold)``; the top band only starts
    strictly above its threshold, so spending exactly the limit is not an
    overspend.
    """

    ordered = sorted(thresholds)
    if not ordered:
        return None
    top = ordered[-1]
    if percentage > top:
        return top
    for lower, upper in zip(ordered, ordered[1:]):
        if lower <= percentage < upper:
            return lower
    return None


def _severity(threshold: int, thresholds: Sequence[int]) -> Severity:
    # the highest threshold maps to the last severity
    ordered = sorted(thresholds)
    steps_below_top = len(ordered) - 1 - ordered.index(threshold)
    return _SEVERITY_BY_RANK[max(len(_SEVERITY_BY_RANK) - 1 - steps_below_top, 0)]


def _alert_line(alert: BudgetAlert, currency_symbol: str) -> str:
    label = category_label(alert.category)
    spent = format_currency(alert.spent, currency_symbol)
    limit = format_currency(alert.limit, currency_symbol)
    if alert.percentage > 100:
        return f"You've gone over your {label} budget: {spent} of {limit} ({format_percentage(alert.percentage)})."
    return f"{label} has reached {format_percentage(alert.percentage)} of its budget ({spent} of {limit})."


def build_alert_notification(
    alerts: Sequence[BudgetAlert],
    *,
    thresholds: Sequence[int] = DEFAULT_THRESHOLDS,
    currency_symbol: str = "$",
) -> AlertNotification | None:
    """Fold the alerts of one recomputation into a single notification payload.

    Alerts are listed highest threshold first. A lone alert gets a
    category-specific title, several share a generic one.
    """

    if not alerts:
        return None

    ordered = sorted(alerts, key=lambda alert: -alert.threshold)
    if len(ordered) == 1:
        title = f"{category_label(ordered[0].category)} budget alert"
    else:
        title = f"{len(ordered)} budget alerts"

    body = "\n".join(_alert_line(alert, currency_symbol) for alert in ordered)
    return AlertNotification(title=title, body=body, severity=_severity(ordered[0].threshold, thresholds))


def evaluate_budget_alerts(
    budgets: Iterable[Budget],
    state: AlertState,
    today: date,
    *,
    thresholds: Sequence[int] = DEFAULT_THRESHOLDS,
    currency_symbol: str = "$",
) -> AlertEvaluation:
    """Recompute threshold crossings and return the fired alerts plus the new state.

    ``state`` is owned by the caller and is not mutated. Flags reset when
    ``today`` falls in a different calendar month than ``state.period``;
    dropping back below a threshold within the same month leaves its flag set.
    Nothing is sent from here, see :func:`dispatch_alerts`.
    """

    period = month_key(today)
    if state.period != period:
        state = AlertState(period=period)

    alerted = set(state.alerted)
    fired: list[BudgetAlert] = []
    for budget in budgets:
        percentage = compute_percentage(budget.spent, budget.limit)
        threshold = threshold_band(percentage, thresholds)
        if threshold is None or (budget.category, threshold) in alerted:
            continue
        alerted.add((budget.category, threshold))
        fired.append(
            BudgetAlert(
                category=budget.category,
                threshold=threshold,
                percentage=percentage,
                spent=float(budget.spent),
                limit=float(budget.limit),
            )
        )

    fired.sort(key=lambda alert: -alert.threshold)
    notification = build_alert_notification(fired, thresholds=thresholds, currency_symbol=currency_symbol)
    return AlertEvaluation(
        alerts=tuple(fired),
        state=AlertState(period=period, alerted=frozenset(alerted)),
        notification=notification,
    )


def dispatch_alerts(
    evaluation: AlertEvaluation,
    dispatcher: Callable[[AlertNotification], object],
) -> bool:
    """Hand the consolidated notification to ``dispatcher``; ``False`` when there is none."""

    if evaluation.notification is None:
        return False

    dispatcher(evaluation.notification)
    logger.info(
        {
            "event": "dispatch_budget_alerts",
            "period": evaluation.state.period,
            "alerts": len(evaluation.alerts),
            "severity": evaluation.notification.severity,
        }
    )
    return True
