# src/dart_insight/domain/exceptions/base.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Canonical base class for domain/application exceptions so the CLI and
    use cases can map failures to safe, user-visible messages.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain/application exceptions.

    Attributes:
        code:
            Stable error code suitable for logs and exit-status mapping.
        details:
            Optional machine-readable diagnostic payload used by logging code.
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize a DomainError instance.

        Args:
            message:
                Human-readable error message, safe to surface to users.
            details:
                Optional structured diagnostic payload for logs.
        """
        super().__init__(message)
        self.details: dict[str, Any] = details or {}
