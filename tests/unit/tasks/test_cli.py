# tests/unit/tasks/test_cli.py
from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dart_insight.tasks.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_level() -> Iterator[None]:
    root = logging.getLogger()
    saved = root.level
    yield
    root.setLevel(saved)


def _write(tmp_path: Path, name: str, payload: dict) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return str(path)


def test_analyze_prints_bundle_json(tmp_path: Path, xbrl_payload, pdf_payload) -> None:
    files = [_write(tmp_path, "a.json", xbrl_payload), _write(tmp_path, "b.json", pdf_payload)]

    result = runner.invoke(app, ["analyze", *files, "--company", "테스트전자", "--ticker", "000000"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["run_id"].startswith("run-")
    assert payload["company"]["name"] == "테스트전자"
    assert payload["company"]["ticker"] == "000000"
    assert payload["period_label"] == "9M(YTD)"
    assert [step["step"] for step in payload["step_outputs"]] == [1, 4, 5, 9]
    assert payload["statements"][0]["cashflow"]["freeCashFlow"]["value"] == "200000000000"
    assert payload["step1_report_text"].startswith("--- 산업 및 경쟁환경 ---")


def test_default_company_name_comes_from_settings(tmp_path: Path, xbrl_payload, monkeypatch) -> None:
    monkeypatch.setenv("DEFAULT_COMPANY_NAME", "환경설정회사")

    result = runner.invoke(app, ["analyze", _write(tmp_path, "a.json", xbrl_payload), "--indent", "0"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["company"]["name"] == "환경설정회사"


def test_step1_report_prints_text(tmp_path: Path, pdf_payload) -> None:
    result = runner.invoke(app, ["step1-report", _write(tmp_path, "b.json", pdf_payload)])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "--- 산업 및 경쟁환경 ---"
    assert "[핵심 관찰]" in lines
    assert "[근거 목록]" in lines


def test_invalid_parse_result_exits_with_code(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[]", encoding="utf-8")

    result = runner.invoke(app, ["analyze", str(path)])

    assert result.exit_code == 1
    assert "[INVALID_PARSE_RESULT]" in result.output


def test_missing_file_is_rejected_by_cli(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", str(tmp_path / "missing.json")])
    assert result.exit_code == 2


def test_log_level_from_dotenv_is_applied(tmp_path: Path, xbrl_payload, monkeypatch) -> None:
    (tmp_path / ".env").write_text("LOG_LEVEL=error\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["analyze", _write(tmp_path, "a.json", xbrl_payload)])

    assert result.exit_code == 0, result.output
    assert logging.getLogger().level == logging.ERROR


def test_invalid_settings_exit_before_running(tmp_path: Path, xbrl_payload, monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "verbose")

    result = runner.invoke(app, ["analyze", _write(tmp_path, "a.json", xbrl_payload)])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
