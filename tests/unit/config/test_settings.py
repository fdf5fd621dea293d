# tests/unit/config/test_settings.py
from __future__ import annotations

import pytest

from dart_insight.config import Settings, get_settings


def test_defaults_when_unset_are_sane() -> None:
    s = get_settings()

    assert isinstance(s, Settings)
    assert s.log_level == "INFO"
    assert s.step1_evidence_audit is False
    assert s.parse_cache_ttl_s == 600
    assert s.default_company_name == "Unknown Company"
    assert get_settings() is s


def test_env_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    monkeypatch.setenv("PARSE_CACHE_TTL_S", "30")
    monkeypatch.setenv("DEFAULT_COMPANY_NAME", "삼성전자")

    s = get_settings()

    assert s.log_level == "DEBUG"
    assert s.parse_cache_ttl_s == 30
    assert s.default_company_name == "삼성전자"


@pytest.mark.parametrize(
    "key",
    ["FEATURE_STEP1_EVIDENCE_AUDIT", "NEXT_PUBLIC_FEATURE_STEP1_EVIDENCE_AUDIT"],
)
def test_evidence_audit_flag_accepts_both_names(monkeypatch: pytest.MonkeyPatch, key: str) -> None:
    monkeypatch.setenv(key, "true")
    assert get_settings().step1_evidence_audit is True


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("PARSE_CACHE_TTL_S", "-1"),
        ("PARSE_CACHE_TTL_S", "86401"),
        ("LOG_LEVEL", "verbose"),
    ],
)
def test_invalid_configuration_raises_runtime_error(
    monkeypatch: pytest.MonkeyPatch, key: str, value: str
) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        get_settings()
