# src/dart_insight/tasks/cli.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""dart-insight CLI: run the analysis core over parse-result files.

Commands:
    analyze        Print the analysis bundle as JSON.
    step1-report   Print the step-1 (industry) report text.

Environment:
    LOG_LEVEL                        Root log level (JSON logs go to stderr).
    FEATURE_STEP1_EVIDENCE_AUDIT     Log step-1 evidence selection audits.
    PARSE_CACHE_TTL_S                TTL for decoded parse-result payloads.
    DEFAULT_COMPANY_NAME             Company name when --company is omitted.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import typer

from dart_insight.application.use_cases.analysis.build_analysis_bundle import (
    BuildAnalysisBundleRequest,
    BuildAnalysisBundleResult,
    BuildAnalysisBundleUseCase,
)
from dart_insight.config import get_settings
from dart_insight.domain.exceptions.base import DomainError
from dart_insight.infrastructure.caching.memory_cache import InMemoryJsonCache
from dart_insight.infrastructure.loaders.parse_result_loader import ParseResultLoader
from dart_insight.infrastructure.logging.logger import configure_root_logging, get_json_logger

log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main() -> None:
    """Configure JSON logging from settings before any command runs."""
    try:
        settings = get_settings()
    except RuntimeError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    configure_root_logging(settings.log_level)


def _run(
    files: Sequence[Path],
    *,
    company: str | None,
    ticker: str | None,
    audit: bool | None,
) -> BuildAnalysisBundleResult:
    """Load ``files`` and run the analysis use case.

    Raises:
        typer.Exit: With code 1 when the core reports a domain error.
    """
    settings = get_settings()
    loader = ParseResultLoader(InMemoryJsonCache(), ttl_s=settings.parse_cache_ttl_s)
    uc = BuildAnalysisBundleUseCase(
        default_company_name=settings.default_company_name,
        evidence_audit=settings.step1_evidence_audit,
    )
    try:
        results, refs = loader.load_many(files)
        return uc.execute(
            BuildAnalysisBundleRequest(
                parse_results=results,
                uploaded_files=refs,
                company_name=company,
                ticker=ticker,
                audit=audit,
            )
        )
    except DomainError as exc:
        log.error(
            "cli.analysis_failed",
            extra={"extra": {"code": exc.code, "files": [str(f) for f in files]}},
        )
        typer.echo(f"[{exc.code}] {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command("analyze")
def analyze(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, readable=True, help="Parse-result JSON files."
    ),
    company: str | None = typer.Option(None, help="Company display name."),  # noqa: B008
    ticker: str | None = typer.Option(None, help="Stock code (e.g., 005930)."),  # noqa: B008
    audit: bool | None = typer.Option(  # noqa: B008
        None, "--audit/--no-audit", help="Log step-1 evidence selection audits."
    ),
    indent: int = typer.Option(2, min=0, help="JSON indentation."),  # noqa: B008
) -> None:
    """Analyze parse-result files and print the bundle as JSON."""
    result = _run(files, company=company, ticker=ticker, audit=audit)
    typer.echo(result.dto.model_dump_json(indent=indent or None))
    log.info(
        "analyze.done",
        extra={
            "extra": {
                "run_id": result.bundle.run_id,
                "statements": len(result.bundle.statements),
                "warnings": len(result.bundle.warnings),
            }
        },
    )


@app.command("step1-report")
def step1_report(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, readable=True, help="Parse-result JSON files."
    ),
    company: str | None = typer.Option(None, help="Company display name."),  # noqa: B008
    ticker: str | None = typer.Option(None, help="Stock code (e.g., 005930)."),  # noqa: B008
    audit: bool | None = typer.Option(  # noqa: B008
        None, "--audit/--no-audit", help="Log step-1 evidence selection audits."
    ),
) -> None:
    """Analyze parse-result files and print the step-1 report text."""
    result = _run(files, company=company, ticker=ticker, audit=audit)
    typer.echo(result.step1_report_text or "")
    log.info(
        "step1_report.done",
        extra={"extra": {"run_id": result.bundle.run_id}},
    )


if __name__ == "__main__":
    app()
