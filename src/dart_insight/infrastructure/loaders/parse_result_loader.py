# src/dart_insight/infrastructure/loaders/parse_result_loader.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Parse-result file loader.

Purpose:
    Read legacy parse-result JSON files (one uploaded file per JSON object),
    validate them through :class:`FileParseResultDTO` and hand back domain
    parse results with their uploaded-file identity.

Layer:
    infrastructure/loaders

Notes:
    - Decoded payloads are cached through the injected :class:`CachePort`,
      keyed by the SHA-256 of the file bytes.
    - Unreadable, non-JSON or invalid payloads raise
      :class:`InvalidParseResultError`.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dart_insight.application.interfaces.cache_port import CachePort
from dart_insight.application.schemas.dto.file_parse import FileParseResultDTO
from dart_insight.domain.entities.financial_statement import UploadedFileRef
from dart_insight.domain.entities.parse_result import FileParseResult
from dart_insight.domain.exceptions.analysis import InvalidParseResultError
from dart_insight.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

DEFAULT_PARSE_CACHE_TTL_S = 600


def _cache_key(content: bytes) -> str:
    digest = hashlib.sha256(content).hexdigest()
    return f"dart_insight:parse_result:v1:{digest}"


class ParseResultLoader:
    """Load parse-result JSON files into domain parse results.

    Args:
        cache: Optional cache for decoded payloads.
        ttl_s: Cache TTL in seconds.
    """

    def __init__(self, cache: CachePort | None = None, *, ttl_s: int = DEFAULT_PARSE_CACHE_TTL_S) -> None:
        self._cache = cache
        self._ttl_s = ttl_s

    def load(self, path: Path, *, index: int = 0) -> tuple[FileParseResult, UploadedFileRef]:
        """Load one file.

        Args:
            path: JSON file holding a single parse-result object.
            index: Position of the file in the upload batch.

        Returns:
            The parse result and its uploaded-file identity.

        Raises:
            InvalidParseResultError: If the file cannot be read or validated.
        """
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise InvalidParseResultError(
                f"파일을 읽을 수 없습니다: {path.name}",
                details={"path": str(path), "error": str(exc)},
            ) from exc

        payload = self._decode(path, content)

        try:
            dto = FileParseResultDTO.model_validate(payload)
        except ValidationError as exc:
            raise InvalidParseResultError(
                f"파싱 결과 형식이 올바르지 않습니다: {path.name}",
                details={"path": str(path), "errors": exc.errors(include_url=False)},
            ) from exc

        result = dto.to_domain()
        file_type = "pdf" if result.pdf is not None and result.financial_statement is None else "xbrl"
        file_ref = UploadedFileRef(
            file_name=result.file_name or path.name,
            index=index,
            file_type=file_type,
        )
        return result, file_ref

    def load_many(self, paths: Iterable[Path]) -> tuple[list[FileParseResult], list[UploadedFileRef]]:
        """Load every file in ``paths``, preserving order."""
        results: list[FileParseResult] = []
        refs: list[UploadedFileRef] = []
        for index, path in enumerate(paths):
            result, ref = self.load(path, index=index)
            results.append(result)
            refs.append(ref)
        return results, refs

    def _decode(self, path: Path, content: bytes) -> dict[str, Any]:
        key = _cache_key(content)
        if self._cache is not None:
            cached = self._cache.get_json(key)
            if cached is not None:
                logger.debug(
                    "parse_result.cache_hit",
                    extra={"extra": {"path": str(path), "key": key}},
                )
                return dict(cached)

        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InvalidParseResultError(
                f"JSON 형식이 아닙니다: {path.name}",
                details={"path": str(path), "error": str(exc)},
            ) from exc

        if not isinstance(payload, dict):
            raise InvalidParseResultError(
                f"파싱 결과는 JSON 객체여야 합니다: {path.name}",
                details={"path": str(path), "type": type(payload).__name__},
            )

        if self._cache is not None:
            self._cache.set_json(key, payload, ttl=self._ttl_s)
        return payload


__all__ = ["DEFAULT_PARSE_CACHE_TTL_S", "ParseResultLoader"]
