# src/dart_insight/config/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""dart-insight Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for the analysis CLI and use cases. Only
    the CLI and infrastructure read the environment; the domain receives
    plain values.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch unknown keys
      in `.env`.
    - The step-1 evidence audit flag accepts the server-side name and the
      legacy frontend-prefixed name.
    - Singleton accessor `get_settings()` with LRU cache.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Typed configuration for dart-insight."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level for the JSON logger.",
        validation_alias="LOG_LEVEL",
    )

    step1_evidence_audit: bool = Field(
        default=False,
        description=(
            "Collect and log step-1 evidence selection audits "
            "(pool counters and the best candidate per trait)."
        ),
        validation_alias=AliasChoices(
            "FEATURE_STEP1_EVIDENCE_AUDIT",
            "NEXT_PUBLIC_FEATURE_STEP1_EVIDENCE_AUDIT",
        ),
    )

    parse_cache_ttl_s: int = Field(
        default=600,
        ge=0,
        le=24 * 60 * 60,
        description="TTL in seconds for decoded parse-result payloads.",
        validation_alias="PARSE_CACHE_TTL_S",
    )

    default_company_name: str = Field(
        default="Unknown Company",
        min_length=1,
        description="Company name used when none is supplied.",
        validation_alias="DEFAULT_COMPANY_NAME",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Returns:
        Settings: Validated settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
        logger.info(
            "Settings initialized",
            extra={
                "extra": {
                    "log_level": settings.log_level,
                    "step1_evidence_audit": settings.step1_evidence_audit,
                    "parse_cache_ttl_s": settings.parse_cache_ttl_s,
                }
            },
        )
        return settings
    except ValidationError as exc:
        logger.exception("Invalid configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "get_settings"]
