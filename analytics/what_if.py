"""Preview of a hypothetical transaction against an account projection."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Sequence

from analytics.projection import DEFAULT_HORIZON_DAYS, project
from core.models import Account, Projection, RiskClassification, TransactionInstance, WhatIfResult

__all__ = ["WHAT_IF_SOURCE_ID", "classify_risk", "simulate"]

WHAT_IF_SOURCE_ID = "what-if"


def classify_risk(projection: Projection) -> RiskClassification:
    """Report only the most severe condition the projection triggers."""

    if projection.lowest_balance < 0:
        return "negative_balance"
    if projection.available_to_spend <= 0:
        return "zero_available_funds"
    return "ok"


def simulate(
    base_instances: Sequence[TransactionInstance],
    hypothetical: TransactionInstance,
    account: Account,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    now: date | None = None,
) -> WhatIfResult:
    """Run one projection with ``hypothetical`` appended to the base instances.

    The hypothetical is bound to ``account`` and only lives in the tuple built
    here; ``base_instances`` is never modified, so ``project(account,
    base_instances, ...)`` still yields the untouched base projection.
    """

    overlay = replace(
        hypothetical,
        account_id=account.id,
        source_id=hypothetical.source_id or WHAT_IF_SOURCE_ID,
        is_instance=False,
    )
    projection = project(account, (*base_instances, overlay), horizon_days, now)
    return WhatIfResult(projection=projection, classification=classify_risk(projection), hypothetical=overlay)
