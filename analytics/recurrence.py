"""Expansion of recurring-transaction definitions into dated instances."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

from core.dates import DAY_STEPS, MONTH_STEPS, add_months, months_between, normalize_frequency
from core.models import ExpansionResult, TransactionInstance, TransactionSeries

__all__ = [
    "DEFAULT_ITERATION_CAP",
    "expand",
    "expand_all",
    "next_occurrence",
    "occurrence_at",
]

DEFAULT_ITERATION_CAP = 1000

logger = logging.getLogger(__name__)


def occurrence_at(anchor: date, frequency: str, index: int) -> date:
    """Return the ``index``-th occurrence counted from ``anchor`` (index 0).

    Month-based cadences are always measured from the anchor and clamped to
    the last day of shorter months, so a series anchored on the 31st lands on
    Feb 28/29 and returns to the 31st in March.
    """

    if frequency in DAY_STEPS:
        return anchor + timedelta(days=DAY_STEPS[frequency] * index)
    return add_months(anchor, MONTH_STEPS[frequency] * index)


def _first_index_on_or_after(anchor: date, frequency: str, start: date) -> int:
    if start <= anchor:
        return 0

    if frequency in DAY_STEPS:
        step = DAY_STEPS[frequency]
        return -(-(start - anchor).days // step)

    index = max(months_between(anchor, start) // MONTH_STEPS[frequency], 0)
    while occurrence_at(anchor, frequency, index) < start:
        index += 1
    return index


def _one_time_instance(series: TransactionSeries) -> TransactionInstance:
    return TransactionInstance(
        source_id=series.id,
        date=series.anchor_date,
        amount=float(series.amount),
        account_id=series.account_id,
        category=series.category,
        is_instance=False,
        description=series.description,
    )


def expand(
    series: TransactionSeries,
    window_start: date,
    window_end: date,
    *,
    iteration_cap: int = DEFAULT_ITERATION_CAP,
) -> ExpansionResult:
    """Expand one series into the occurrences dated within ``[window_start, window_end]``.

    Parameters
    ----------
    series:
        One-time record or recurring definition.
    window_start, window_end:
        Inclusive date window. An inverted window yields no instances.
    iteration_cap:
        Upper bound on generated occurrences. Hitting it stops the expansion
        and sets ``truncated`` on the result.

    Returns
    -------
    ExpansionResult
        Instances in ascending date order.
    """

    if window_end < window_start:
        return ExpansionResult()

    if not series.is_recurring:
        if window_start <= series.anchor_date <= window_end:
            return ExpansionResult(instances=(_one_time_instance(series),))
        return ExpansionResult()

    if series.end_date is not None and series.end_date < series.anchor_date:
        return ExpansionResult()

    try:
        frequency = normalize_frequency(series.frequency)
    except ValueError:
        logger.warning(
            {"event": "expand_series", "status": "skip", "reason": "bad_frequency", "series_id": series.id}
        )
        return ExpansionResult()

    last_day = window_end if series.end_date is None else min(window_end, series.end_date)
    index = _first_index_on_or_after(series.anchor_date, frequency, window_start)

    instances: list[TransactionInstance] = []
    generated = 0
    truncated = False
    while True:
        occurrence = occurrence_at(series.anchor_date, frequency, index)
        if occurrence > last_day:
            break
        if generated >= iteration_cap:
            truncated = True
            break
        generated += 1
        index += 1
        if occurrence in series.excluded_dates:
            continue
        instances.append(
            TransactionInstance(
                source_id=series.id,
                date=occurrence,
                amount=float(series.amount),
                account_id=series.account_id,
                category=series.category,
                is_instance=True,
                description=series.description,
            )
        )

    if truncated:
        logger.warning(
            {
                "event": "expand_series",
                "status": "truncated",
                "series_id": series.id,
                "iteration_cap": iteration_cap,
                "last_generated": instances[-1].date.isoformat() if instances else None,
            }
        )
        return ExpansionResult(instances=tuple(instances), truncated=True, truncated_ids=(series.id,))

    return ExpansionResult(instances=tuple(instances))


def expand_all(
    series_list: Iterable[TransactionSeries],
    window_start: date | None,
    window_end: date,
    *,
    iteration_cap: int = DEFAULT_ITERATION_CAP,
) -> ExpansionResult:
    """Expand many series into one date-ordered instance list.

    Ties on the same date keep the order the series were supplied in. With
    ``window_start=None`` every series is expanded from its own anchor date,
    which is what balance reconciliation needs.
    """

    collected: list[TransactionInstance] = []
    truncated_ids: list[str] = []
    for series in series_list:
        start = series.anchor_date if window_start is None else window_start
        result = expand(series, start, window_end, iteration_cap=iteration_cap)
        collected.extend(result.instances)
        truncated_ids.extend(result.truncated_ids)

    collected.sort(key=lambda instance: instance.date)
    return ExpansionResult(
        instances=tuple(collected),
        truncated=bool(truncated_ids),
        truncated_ids=tuple(truncated_ids),
    )


def next_occurrence(series: TransactionSeries, on_or_after: date) -> date | None:
    """Return the first non-excluded occurrence on or after ``on_or_after``."""

    if not series.is_recurring:
        return series.anchor_date if series.anchor_date >= on_or_after else None

    if series.end_date is not None and series.end_date < series.anchor_date:
        return None

    try:
        frequency = normalize_frequency(series.frequency)
    except ValueError:
        return None

    index = _first_index_on_or_after(series.anchor_date, frequency, on_or_after)
    for offset in range(DEFAULT_ITERATION_CAP):
        occurrence = occurrence_at(series.anchor_date, frequency, index + offset)
        if series.end_date is not None and occurrence > series.end_date:
            return None
        if occurrence not in series.excluded_dates:
            return occurrence
    return None
