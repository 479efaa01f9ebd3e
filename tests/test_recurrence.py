"""Unit tests for recurring-series expansion."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analytics.recurrence import expand, expand_all, next_occurrence
from core.dates import parse_date
from core.models import TransactionSeries


def make_series(**overrides) -> TransactionSeries:
    fields = {
        "id": "gym",
        "description": "Gym membership",
        "amount": -25.0,
        "type": "expense",
        "account_id": "checking",
        "anchor_date": date(2024, 1, 1),
        "is_recurring": True,
        "frequency": "weekly",
        "category": "fitness",
    }
    fields.update(overrides)
    return TransactionSeries(**fields)


def dates_of(result) -> list[date]:
    return [instance.date for instance in result.instances]


def test_weekly_series_produces_every_seventh_day():
    result = expand(make_series(), date(2024, 1, 1), date(2024, 1, 29))

    assert dates_of(result) == [
        date(2024, 1, 1),
        date(2024, 1, 8),
        date(2024, 1, 15),
        date(2024, 1, 22),
        date(2024, 1, 29),
    ]
    assert not result.truncated
    assert all(instance.is_instance for instance in result.instances)
    assert result.instances[0].instance_id == "gym-2024-01-01"


def test_excluded_date_skips_one_occurrence_without_shifting_cadence():
    series = make_series(excluded_dates=frozenset({date(2024, 1, 8)}))

    result = expand(series, date(2024, 1, 1), date(2024, 1, 29))

    assert dates_of(result) == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 22), date(2024, 1, 29)]


def test_monthly_series_clamps_to_month_end_without_drift():
    series = make_series(anchor_date=date(2024, 1, 31), frequency="monthly")

    result = expand(series, date(2024, 1, 1), date(2024, 5, 31))

    assert dates_of(result) == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
        date(2024, 5, 31),
    ]


def test_excluding_a_clamped_monthly_date_only_removes_that_month():
    series = make_series(
        anchor_date=date(2024, 1, 31),
        frequency="monthly",
        excluded_dates=frozenset({date(2024, 2, 29)}),
    )

    result = expand(series, date(2024, 1, 1), date(2024, 3, 31))

    assert dates_of(result) == [date(2024, 1, 31), date(2024, 3, 31)]


def test_old_anchor_is_fast_forwarded_instead_of_scanned():
    # four years of weekly steps would blow through a cap of 10 if scanned
    series = make_series(anchor_date=date(2020, 1, 6))

    result = expand(series, date(2024, 1, 1), date(2024, 1, 31), iteration_cap=10)

    assert not result.truncated
    assert dates_of(result) == [
        date(2024, 1, 1),
        date(2024, 1, 8),
        date(2024, 1, 15),
        date(2024, 1, 22),
        date(2024, 1, 29),
    ]


@pytest.mark.parametrize("frequency", ["weekly", "biweekly", "monthly", "quarterly", "annually", "daily"])
def test_fast_forward_matches_expansion_from_anchor(frequency):
    series = make_series(anchor_date=date(2021, 3, 15), frequency=frequency)
    window_start, window_end = date(2023, 11, 1), date(2024, 2, 1)

    from_anchor = expand(series, series.anchor_date, window_end, iteration_cap=5000)
    jumped = expand(series, window_start, window_end)

    assert dates_of(jumped) == [day for day in dates_of(from_anchor) if day >= window_start]


def test_end_date_stops_the_series():
    series = make_series(end_date=date(2024, 1, 15))

    result = expand(series, date(2024, 1, 1), date(2024, 2, 29))

    assert dates_of(result) == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]


def test_end_date_before_anchor_yields_nothing():
    series = make_series(end_date=date(2023, 12, 1))

    assert expand(series, date(2023, 1, 1), date(2024, 12, 31)).instances == ()


def test_inverted_window_yields_nothing():
    assert expand(make_series(), date(2024, 2, 1), date(2024, 1, 1)).instances == ()


def test_iteration_cap_is_signalled():
    series = make_series(frequency="daily")

    result = expand(series, date(2024, 1, 1), date(2024, 12, 31), iteration_cap=5)

    assert result.truncated
    assert result.truncated_ids == ("gym",)
    assert len(result.instances) == 5


def test_unknown_frequency_is_skipped():
    series = make_series(frequency="hourly")

    result = expand(series, date(2024, 1, 1), date(2024, 1, 31))

    assert result.instances == ()
    assert not result.truncated


def test_one_time_transaction_passes_through_only_inside_window():
    one_time = make_series(id="laptop", is_recurring=False, frequency=None, anchor_date=date(2024, 1, 10))

    inside = expand(one_time, date(2024, 1, 1), date(2024, 1, 31))
    outside = expand(one_time, date(2024, 2, 1), date(2024, 2, 28))

    assert len(inside.instances) == 1
    assert inside.instances[0].source_id == "laptop"
    assert inside.instances[0].is_instance is False
    assert outside.instances == ()


def test_expand_all_orders_by_date_and_keeps_input_order_on_ties():
    rent = make_series(id="rent", frequency="monthly", anchor_date=date(2024, 1, 8))
    gym = make_series(id="gym")
    coffee = make_series(id="coffee", is_recurring=False, frequency=None, anchor_date=date(2024, 1, 3))

    result = expand_all([rent, gym, coffee], date(2024, 1, 1), date(2024, 1, 10))

    assert [(instance.source_id, instance.date) for instance in result.instances] == [
        ("gym", date(2024, 1, 1)),
        ("coffee", date(2024, 1, 3)),
        ("rent", date(2024, 1, 8)),
        ("gym", date(2024, 1, 8)),
    ]


def test_expand_all_from_each_anchor_and_collects_truncations():
    daily = make_series(id="daily", frequency="daily", anchor_date=date(2024, 1, 1))
    weekly = make_series(id="weekly", anchor_date=date(2024, 1, 1))

    result = expand_all([daily, weekly], None, date(2024, 1, 31), iteration_cap=10)

    assert result.truncated
    assert result.truncated_ids == ("daily",)
    assert sum(1 for instance in result.instances if instance.source_id == "weekly") == 5


def test_next_occurrence_skips_excluded_dates():
    series = make_series(excluded_dates=frozenset({date(2024, 1, 15)}))

    assert next_occurrence(series, date(2024, 1, 10)) == date(2024, 1, 22)
    assert next_occurrence(series, date(2024, 1, 8)) == date(2024, 1, 8)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-02-29", date(2024, 2, 29)),
        ("2024-02-29T23:30:00.000Z", date(2024, 2, 29)),
        (date(2024, 5, 1), date(2024, 5, 1)),
    ],
)
def test_parse_date_accepts_store_formats(raw, expected):
    assert parse_date(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "31/01/2024", 20240131])
def test_parse_date_rejects_malformed_values(raw):
    with pytest.raises((TypeError, ValueError)):
        parse_date(raw)
