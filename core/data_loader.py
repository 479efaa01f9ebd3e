"""Coercion of record-store documents into Cushion's engine models."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Final, Iterable, Mapping, TypeVar

import pandas as pd

from core.dates import normalize_frequency, parse_date
from core.models import Account, Budget, Goal, TransactionSeries

__all__ = [
    "accounts_from_records",
    "budgets_from_records",
    "goals_from_records",
    "load_transactions",
    "series_from_frame",
    "series_from_records",
]

T = TypeVar("T")

_CACHE_SIZE: Final[int] = 8

logger = logging.getLogger(__name__)


def _field(record: Mapping[str, Any], *names: str, default: Any = None, required: bool = False) -> Any:
    for name in names:
        if name in record and record[name] is not None:
            return record[name]
    if required:
        raise KeyError(names[0])
    return default


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return bool(value)


def _optional_date(value: Any):
    if value is None or (isinstance(value, float) and pd.isna(value)) or value == "":
        return None
    return parse_date(value)


def _series_from_record(record: Mapping[str, Any]) -> TransactionSeries:
    # recurring details may be nested (as the store keeps them) or flattened
    details = _field(record, "recurringDetails", "recurring_details", default={}) or {}
    merged = {**record, **details}

    amount = float(_field(merged, "amount", required=True))
    is_recurring = _flag(_field(merged, "isRecurring", "is_recurring", default=False))
    kind = str(_field(merged, "type", default="income" if amount > 0 else "expense")).lower()

    if is_recurring:
        anchor = parse_date(
            _field(
                merged,
                "anchorDate",
                "anchor_date",
                "nextDate",
                "next_date",
                # older records keep the next date at the top level
                "nextOccurrence",
                "next_occurrence",
                "date",
            )
        )
        frequency = normalize_frequency(_field(merged, "frequency"))
    else:
        anchor = parse_date(_field(merged, "date", "anchorDate", "anchor_date", "createdAt"))
        frequency = None

    excluded = _field(merged, "excludedDates", "excluded_dates", default=()) or ()
    return TransactionSeries(
        id=str(_field(merged, "id", required=True)),
        description=str(_field(merged, "description", default="")),
        amount=amount,
        type="income" if kind == "income" else "expense",
        account_id=str(_field(merged, "accountId", "account_id", required=True)),
        anchor_date=anchor,
        is_recurring=is_recurring,
        frequency=frequency,
        category=_field(merged, "category"),
        end_date=_optional_date(_field(merged, "endDate", "end_date")),
        excluded_dates=frozenset(parse_date(value) for value in excluded),
    )


def _account_from_record(record: Mapping[str, Any]) -> Account:
    threshold = _field(record, "lowBalanceThreshold", "low_balance_threshold")
    settings = _field(record, "notificationSettings", "notification_settings", default={}) or {}
    threshold = _field(settings, "lowAvailableBalanceThreshold", default=threshold)
    return Account(
        id=str(_field(record, "id", required=True)),
        name=str(_field(record, "name", default="")),
        type=str(_field(record, "type", default="checking")),
        current_balance=float(_field(record, "currentBalance", "current_balance", "startingBalance", default=0.0)),
        cushion=float(_field(record, "cushion", default=0.0)),
        goal_allocations=float(_field(record, "goalAllocations", "goal_allocations", default=0.0)),
        low_balance_threshold=None if threshold is None else float(threshold),
    )


def _goal_from_record(record: Mapping[str, Any]) -> Goal:
    return Goal(
        id=str(_field(record, "id", required=True)),
        target_amount=float(_field(record, "targetAmount", "target_amount", default=0.0)),
        allocated_amount=float(_field(record, "allocatedAmount", "allocated_amount", default=0.0)),
        funding_account_id=str(_field(record, "fundingAccountId", "funding_account_id", required=True)),
    )


def _budget_from_record(record: Mapping[str, Any]) -> Budget:
    return Budget(
        category=str(_field(record, "category", required=True)),
        limit=float(_field(record, "limit", default=0.0)),
        spent=float(_field(record, "spent", default=0.0)),
    )


def _coerce_all(
    records: Iterable[Mapping[str, Any]],
    build: Callable[[Mapping[str, Any]], T],
    kind: str,
) -> list[T]:
    items: list[T] = []
    for position, record in enumerate(records):
        try:
            items.append(build(record))
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning(
                {
                    "event": "load_record",
                    "status": "skip",
                    "kind": kind,
                    "record_id": record.get("id") if isinstance(record, Mapping) else None,
                    "position": position,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                }
            )
    return items


def series_from_records(records: Iterable[Mapping[str, Any]]) -> list[TransactionSeries]:
    """Build transaction series, skipping (and logging) records with bad dates or amounts."""

    return _coerce_all(records, _series_from_record, "transaction")


def accounts_from_records(records: Iterable[Mapping[str, Any]]) -> list[Account]:
    return _coerce_all(records, _account_from_record, "account")


def goals_from_records(records: Iterable[Mapping[str, Any]]) -> list[Goal]:
    return _coerce_all(records, _goal_from_record, "goal")


def budgets_from_records(records: Iterable[Mapping[str, Any]]) -> list[Budget]:
    return _coerce_all(records, _budget_from_record, "budget")


def series_from_frame(df: pd.DataFrame) -> list[TransactionSeries]:
    """Build series from a tabular export (one row per transaction or series)."""

    records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    for record in records:
        excluded = record.get("excluded_dates")
        if isinstance(excluded, str):
            record["excluded_dates"] = [part for part in excluded.split(";") if part.strip()]
    return series_from_records(records)


@lru_cache(maxsize=_CACHE_SIZE)
def load_transactions(csv_path: str | Path) -> tuple[TransactionSeries, ...]:
    """Return the series stored in a CSV export.

    Results are cached to avoid redundant disk reads when the same export is
    recomputed several times during a session.
    """

    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path, dtype={"id": str, "account_id": str})
    return tuple(series_from_frame(df))
