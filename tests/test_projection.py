"""Unit tests for the single-account balance projection."""

from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analytics.projection import project, protection_horizon, reconcile_balance
from core.models import Account, TransactionInstance

NOW = date(2024, 3, 10)


def instance(day_offset: int, amount: float, *, account_id: str = "checking", source_id: str = "txn") -> TransactionInstance:
    return TransactionInstance(
        source_id=source_id,
        date=NOW + timedelta(days=day_offset),
        amount=amount,
        account_id=account_id,
        is_instance=True,
    )


@pytest.fixture()
def checking() -> Account:
    return Account(id="checking", name="Everyday", type="checking", current_balance=500.0, cushion=50.0)


def test_past_instances_are_reconciled_into_starting_balance():
    account = Account(id="checking", name="Everyday", type="checking", current_balance=100.0)
    instances = (instance(-1, -20.0),)

    first = project(account, instances, 30, NOW)
    second = project(account, instances, 30, NOW)

    assert first.starting_balance == pytest.approx(80.0)
    assert second.starting_balance == pytest.approx(80.0)
    assert first == second


def test_available_to_spend_uses_simulated_low(checking):
    projection = project(checking, (instance(10, -600.0),), 30, NOW)

    assert projection.lowest_balance == pytest.approx(-100.0)
    assert projection.highest_balance == pytest.approx(500.0)
    assert projection.available_to_spend == pytest.approx(-150.0)


def test_goal_allocations_reduce_available_to_spend():
    account = Account(
        id="checking",
        name="Everyday",
        type="checking",
        current_balance=1000.0,
        cushion=100.0,
        goal_allocations=250.0,
    )

    projection = project(account, (instance(3, -200.0), instance(5, 400.0)), 14, NOW)

    assert projection.lowest_balance == pytest.approx(800.0)
    assert projection.available_to_spend == pytest.approx(450.0)


def test_projection_is_a_dense_daily_series(checking):
    projection = project(checking, (instance(2, -40.0), instance(2, 15.0)), 30, NOW)

    assert len(projection.points) == 31
    assert projection.points[0].date == NOW
    assert projection.points[-1].date == NOW + timedelta(days=30)
    assert projection.points[1].instances == ()
    assert len(projection.points[2].instances) == 2
    assert projection.points[2].balance == pytest.approx(475.0)
    assert projection.points[30].balance == pytest.approx(475.0)


def test_day_zero_activity_counts_towards_the_low(checking):
    projection = project(checking, (instance(0, -75.0),), 10, NOW)

    assert projection.starting_balance == pytest.approx(500.0)
    assert projection.points[0].balance == pytest.approx(425.0)
    assert projection.lowest_balance == pytest.approx(425.0)


def test_instances_of_other_accounts_and_beyond_horizon_are_ignored(checking):
    instances = (
        instance(3, -300.0, account_id="savings"),
        instance(-2, -300.0, account_id="savings"),
        instance(45, -300.0),
    )

    projection = project(checking, instances, 30, NOW)

    assert projection.starting_balance == pytest.approx(500.0)
    assert projection.lowest_balance == pytest.approx(500.0)


def test_project_requires_an_explicit_now(checking):
    with pytest.raises(ValueError):
        project(checking, (), 30)


def test_reconcile_balance_only_counts_strictly_past_days(checking):
    instances = (instance(-3, -10.0), instance(0, -99.0))

    assert reconcile_balance(checking, instances, NOW) == pytest.approx(490.0)


def test_to_frame_exposes_daily_balances(checking):
    frame = project(checking, (instance(1, -100.0),), 5, NOW).to_frame()

    assert list(frame.columns) == ["Balance", "Net", "Transactions"]
    assert len(frame) == 6
    assert frame["Balance"].iloc[-1] == pytest.approx(400.0)
    assert frame["Transactions"].sum() == 1


def test_protection_horizon_reports_first_shortfall():
    instances = (instance(3, -60.0), instance(5, -60.0), instance(8, 500.0))

    horizon = protection_horizon(100.0, instances, 30, NOW)

    assert horizon.shortfall_date == NOW + timedelta(days=5)
    assert horizon.days_protected == 5
    assert not horizon.beyond_horizon


def test_protection_horizon_beyond_horizon_when_never_negative():
    horizon = protection_horizon(100.0, (instance(3, -60.0), instance(40, -500.0)), 30, NOW)

    assert horizon.beyond_horizon
    assert horizon.shortfall_date is None
    assert horizon.days_protected is None


def test_protection_horizon_nets_same_day_activity():
    horizon = protection_horizon(100.0, (instance(2, -150.0), instance(2, 100.0)), 30, NOW)

    assert horizon.beyond_horizon


def test_protection_horizon_with_negative_start_is_immediate():
    horizon = protection_horizon(-5.0, (), 30, NOW)

    assert horizon.shortfall_date == NOW
    assert horizon.days_protected == 0
