"""Core domain package for the Cushion projection engine."""

from .models import (
    Account,
    AlertEvaluation,
    AlertNotification,
    AlertState,
    Budget,
    BudgetAlert,
    ExpansionResult,
    ForecastData,
    Goal,
    Projection,
    ProjectionPoint,
    ProtectionHorizon,
    TransactionInstance,
    TransactionSeries,
    WhatIfResult,
)

__all__ = [
    "Account",
    "AlertEvaluation",
    "AlertNotification",
    "AlertState",
    "Budget",
    "BudgetAlert",
    "ExpansionResult",
    "ForecastData",
    "Goal",
    "Projection",
    "ProjectionPoint",
    "ProtectionHorizon",
    "TransactionInstance",
    "TransactionSeries",
    "WhatIfResult",
]
