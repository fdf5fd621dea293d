# src/dart_insight/application/interfaces/cache_port.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Cache Port.

Synopsis:
    Minimal JSON cache behavior used by loaders and use cases. Enables
    swapping the in-memory adapter for another backend.

Layer:
    application/interfaces

Notes:
    The analysis core is synchronous, so the port is too.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class CachePort(Protocol):
    """JSON cache with TTL semantics.

    Implementations must store values as JSON-serializable mappings and apply
    TTL in seconds. A TTL <= 0 means "expire immediately".
    """

    def get_json(self, key: str) -> Mapping[str, Any] | None:
        """Get a JSON-serializable value by key.

        Args:
            key: Cache key (already namespaced if applicable).

        Returns:
            Deserialized JSON mapping if present, else ``None``.
        """

    def set_json(self, key: str, value: Mapping[str, Any], *, ttl: int) -> None:
        """Set a JSON-serializable value with TTL.

        Args:
            key: Cache key (already namespaced if applicable).
            value: JSON-serializable mapping.
            ttl: Time-to-live in seconds.
        """
