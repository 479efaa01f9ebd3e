"""Logging bootstrap for processes embedding the Cushion engine."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from .settings import Settings, get_settings

__all__ = ["configure_logging"]

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_logging_configured = False


def configure_logging(settings: Settings | None = None, *, force: bool = False) -> None:
    """Install a single root handler, JSON-formatted when ``json_logs`` is set.

    Engine modules only ever call ``logging.getLogger(__name__)``; wiring the
    handler is left to whichever process hosts the engine.
    """

    global _logging_configured
    if _logging_configured and not force:
        return

    settings = settings or get_settings()
    handler = logging.StreamHandler()
    if settings.json_logs:
        handler.setFormatter(JsonFormatter(_PLAIN_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, handlers=[handler], force=True)
    _logging_configured = True
