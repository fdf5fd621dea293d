# src/dart_insight/application/schemas/dto/base.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Base DTO (Application Layer).

Purpose:
    Canonical Pydantic base for all application-layer DTOs. Transport-agnostic.

Layer: application/schemas/dto
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseDTO(BaseModel):
    """Base class for application-layer DTOs.

    Notes:
        - Strict fields (``extra='forbid'``): unknown keys in ingested JSON
          are rejected instead of silently dropped.
        - ``populate_by_name`` lets callers use either the snake_case field
          name or the camelCase alias of the legacy payloads.
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )
