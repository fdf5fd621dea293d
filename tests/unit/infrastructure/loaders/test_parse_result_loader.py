# tests/unit/infrastructure/loaders/test_parse_result_loader.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from dart_insight.domain.exceptions.analysis import InvalidParseResultError
from dart_insight.infrastructure.caching.memory_cache import InMemoryJsonCache
from dart_insight.infrastructure.loaders.parse_result_loader import ParseResultLoader


class RecordingCache(InMemoryJsonCache):
    """In-memory cache that records TTLs and hits."""

    def __init__(self) -> None:
        super().__init__()
        self.ttls: dict[str, int] = {}
        self.hits = 0

    def get_json(self, key: str):
        value = super().get_json(key)
        if value is not None:
            self.hits += 1
        return value

    def set_json(self, key: str, value, *, ttl: int) -> None:
        self.ttls[key] = ttl
        super().set_json(key, value, ttl=ttl)


def _write(tmp_path: Path, name: str, payload: Any) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def test_loads_xbrl_and_pdf_files(tmp_path: Path, xbrl_payload, pdf_payload) -> None:
    paths = [_write(tmp_path, "a.json", xbrl_payload), _write(tmp_path, "b.json", pdf_payload)]

    results, refs = ParseResultLoader().load_many(paths)

    assert results[0].financial_statement is not None
    assert results[1].pdf is not None
    assert [(r.index, r.file_type) for r in refs] == [(0, "xbrl"), (1, "pdf")]
    assert refs[0].file_name == "report-2025-q3.xml"
    assert refs[0].file_id == "file-0-report-2025-q3-xml"


def test_file_name_falls_back_to_path(tmp_path: Path, xbrl_payload) -> None:
    del xbrl_payload["fileName"]

    _, ref = ParseResultLoader().load(_write(tmp_path, "upload.json", xbrl_payload))

    assert ref.file_name == "upload.json"


def test_decoded_payloads_are_cached(tmp_path: Path, xbrl_payload) -> None:
    cache = RecordingCache()
    loader = ParseResultLoader(cache, ttl_s=42)
    path = _write(tmp_path, "a.json", xbrl_payload)

    first, _ = loader.load(path)
    second, _ = loader.load(path)

    assert list(cache.ttls.values()) == [42]
    assert cache.hits == 1
    assert first == second


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{not json", "JSON 형식이 아닙니다"),
        ("[1, 2]", "JSON 객체여야 합니다"),
        ('{"success": "maybe"}', "형식이 올바르지 않습니다"),
    ],
)
def test_invalid_files_raise(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(InvalidParseResultError, match=message) as excinfo:
        ParseResultLoader().load(path)

    assert excinfo.value.code == "INVALID_PARSE_RESULT"
    assert excinfo.value.details["path"] == str(path)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(InvalidParseResultError, match="읽을 수 없습니다"):
        ParseResultLoader().load(tmp_path / "missing.json")
