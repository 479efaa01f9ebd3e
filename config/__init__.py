"""Engine configuration utilities."""

from .logging import configure_logging
from .settings import (
    DEFAULT_ALERT_THRESHOLDS,
    DEFAULT_HORIZON_DAYS,
    DEFAULT_ITERATION_CAP,
    Settings,
    get_settings,
)

__all__ = [
    "DEFAULT_ALERT_THRESHOLDS",
    "DEFAULT_HORIZON_DAYS",
    "DEFAULT_ITERATION_CAP",
    "Settings",
    "configure_logging",
    "get_settings",
]
