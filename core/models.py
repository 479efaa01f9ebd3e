"""Shared data model definitions for the Cushion projection engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, TypedDict

import pandas as pd

Frequency = Literal["daily", "weekly", "biweekly", "monthly", "quarterly", "annually"]
TransactionType = Literal["income", "expense"]
RiskClassification = Literal["negative_balance", "zero_available_funds", "ok"]
Severity = Literal["info", "warning", "critical"]

AGGREGATE_ACCOUNT_ID = "all"


@dataclass(frozen=True)
class TransactionSeries:
    """A one-time transaction or a recurring definition owned by one account.

    For one-time records ``anchor_date`` is the transaction date; for recurring
    ones it is the next (or last) known occurrence the cadence is stepped from.
    """

    id: str
    description: str
    amount: float
    type: TransactionType
    account_id: str
    anchor_date: date
    is_recurring: bool = False
    frequency: Frequency | None = None
    category: str | None = None
    end_date: date | None = None
    excluded_dates: frozenset[date] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TransactionInstance:
    source_id: str
    date: date
    amount: float
    account_id: str
    category: str | None = None
    is_instance: bool = False
    description: str = ""

    @property
    def instance_id(self) -> str:
        return f"{self.source_id}-{self.date.isoformat()}"


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    type: str
    current_balance: float
    cushion: float = 0.0
    goal_allocations: float = 0.0
    low_balance_threshold: float | None = None


@dataclass(frozen=True)
class Goal:
    id: str
    target_amount: float
    allocated_amount: float
    funding_account_id: str


@dataclass(frozen=True)
class Budget:
    category: str
    limit: float
    spent: float = 0.0


@dataclass(frozen=True)
class ExpansionResult:
    """Instances produced by the expander plus a truncation signal."""

    instances: tuple[TransactionInstance, ...] = ()
    truncated: bool = False
    truncated_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectionPoint:
    date: date
    balance: float
    instances: tuple[TransactionInstance, ...] = ()

    @property
    def net(self) -> float:
        return float(sum(instance.amount for instance in self.instances))


@dataclass(frozen=True)
class Projection:
    """Dense daily balance series for one account or an aggregate."""

    account_id: str
    start_date: date
    starting_balance: float
    points: tuple[ProjectionPoint, ...]
    lowest_balance: float
    highest_balance: float
    cushion: float = 0.0
    goal_allocations: float = 0.0
    available_to_spend: float = 0.0

    @property
    def end_date(self) -> date:
        return self.points[-1].date if self.points else self.start_date

    def balance_on(self, day: date) -> float | None:
        for point in self.points:
            if point.date == day:
                return point.balance
        return None

    def to_frame(self) -> pd.DataFrame:
        """Return the projection as a DataFrame indexed by ``Day``."""

        frame = pd.DataFrame(
            {
                "Day": [pd.Timestamp(point.date) for point in self.points],
                "Balance": [float(point.balance) for point in self.points],
                "Net": [point.net for point in self.points],
                "Transactions": [len(point.instances) for point in self.points],
            }
        )
        return frame.set_index("Day")


@dataclass(frozen=True)
class ProtectionHorizon:
    """First day the spendable figure would be exhausted, if within the horizon."""

    shortfall_date: date | None
    days_protected: int | None

    @property
    def beyond_horizon(self) -> bool:
        return self.shortfall_date is None


@dataclass(frozen=True)
class WhatIfResult:
    projection: Projection
    classification: RiskClassification
    hypothetical: TransactionInstance


@dataclass(frozen=True)
class AlertNotification:
    """Payload handed to the external notification dispatcher."""

    title: str
    body: str
    severity: Severity


@dataclass(frozen=True)
class BudgetAlert:
    category: str
    threshold: int
    percentage: float
    spent: float
    limit: float


@dataclass(frozen=True)
class AlertState:
    """Already-alerted ``(category, threshold)`` pairs for one billing period."""

    period: str = ""
    alerted: frozenset[tuple[str, int]] = field(default_factory=frozenset)

    def is_alerted(self, category: str, threshold: int) -> bool:
        return (category, threshold) in self.alerted


@dataclass(frozen=True)
class AlertEvaluation:
    alerts: tuple[BudgetAlert, ...]
    state: AlertState
    notification: AlertNotification | None = None


class ForecastData(TypedDict):
    now: date
    horizon_days: int
    projections: dict[str, Projection]
    aggregate: Projection
    instances: tuple[TransactionInstance, ...]
    truncated_series: tuple[str, ...]
    total_available: float
    reminders: list[AlertNotification]


__all__ = [
    "AGGREGATE_ACCOUNT_ID",
    "Account",
    "AlertEvaluation",
    "AlertNotification",
    "AlertState",
    "Budget",
    "BudgetAlert",
    "ExpansionResult",
    "ForecastData",
    "Frequency",
    "Goal",
    "Projection",
    "ProjectionPoint",
    "ProtectionHorizon",
    "RiskClassification",
    "Severity",
    "TransactionInstance",
    "TransactionSeries",
    "TransactionType",
    "WhatIfResult",
]
