"""Centralised configuration handling for Cushion."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping

import streamlit as st
from pydantic_settings import BaseSettings, SettingsConfigDict

from analytics.projection import DEFAULT_HORIZON_DAYS
from analytics.recurrence import DEFAULT_ITERATION_CAP
from analytics.thresholds import DEFAULT_THRESHOLDS as DEFAULT_ALERT_THRESHOLDS


def _streamlit_section(name: str) -> Mapping[str, Any] | None:
    """Return a mapping from Streamlit secrets for the given section."""

    try:
        if hasattr(st, "secrets") and name in st.secrets:
            section = st.secrets[name]
            if isinstance(section, Mapping):
                return section
            return dict(section)
    except Exception:  # pragma: no cover - accessing secrets may fail in tests
        return None
    return None


class Settings(BaseSettings):
    """Engine settings sourced from env vars and Streamlit secrets."""

    default_horizon_days: int = DEFAULT_HORIZON_DAYS
    iteration_cap: int = DEFAULT_ITERATION_CAP
    alert_thresholds: tuple[int, ...] = DEFAULT_ALERT_THRESHOLDS
    low_balance_threshold: float = 50.0
    bill_reminder_days: int = 2
    currency_symbol: str = "$"
    log_level: str = "INFO"
    json_logs: bool = False

    model_config = SettingsConfigDict(env_prefix="CUSHION_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Load and cache engine settings."""

    overrides: dict[str, Any] = {}
    secrets_section = _streamlit_section("cushion")
    if secrets_section:
        overrides = {
            "default_horizon_days": secrets_section.get("horizon_days"),
            "iteration_cap": secrets_section.get("iteration_cap"),
            "low_balance_threshold": secrets_section.get("low_balance_threshold"),
            "bill_reminder_days": secrets_section.get("bill_reminder_days"),
            "currency_symbol": secrets_section.get("currency_symbol"),
            "log_level": secrets_section.get("log_level"),
        }

    return Settings(**{k: v for k, v in overrides.items() if v is not None})
