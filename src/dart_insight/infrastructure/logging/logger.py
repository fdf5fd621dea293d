# src/dart_insight/infrastructure/logging/logger.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce one JSON object per log line.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * Enrichment with the analysis ``run_id`` via contextvars, a record
      attribute, or the ``RUN_ID`` environment variable.
    * Exception type and message fields when ``exc_info`` is set.
    * An ``extra`` dict merged into the payload.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.info("analysis.build_bundle.done", extra={"extra": {"run_id": rid}})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "set_run_context",
    "reset_run_context",
    "get_run_id",
]

_RUN_ID_ENV_KEY = "RUN_ID"

_RUN_ID_CTX: ContextVar[str | None] = ContextVar("dart_insight_run_id", default=None)


def set_run_context(run_id: str | None) -> Token[str | None]:
    """Bind ``run_id`` to the current context (``None`` clears it).

    Returns:
        Token to pass to :func:`reset_run_context` when the run ends.
    """
    return _RUN_ID_CTX.set(run_id)


def reset_run_context(token: Token[str | None]) -> None:
    """Restore the run id that was bound before ``token`` was issued."""
    _RUN_ID_CTX.reset(token)


def get_run_id() -> str | None:
    """Return the current run id from contextvars, if any."""
    return _RUN_ID_CTX.get(None)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: Logging record.

        Returns:
            JSON-encoded log line.
        """
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Prefer record attribute, then contextvar, then env.
        rid: str | None = (
            getattr(record, "run_id", None) or _RUN_ID_CTX.get(None) or os.getenv(_RUN_ID_ENV_KEY)
        )
        if rid:
            payload["run_id"] = rid

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    root.setLevel(resolved)

    if root.handlers:
        # Already configured.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* implicitly configure the root logger. Call
    :func:`configure_root_logging` once at startup.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
