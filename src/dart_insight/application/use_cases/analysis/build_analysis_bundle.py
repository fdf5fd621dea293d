# src/dart_insight/application/use_cases/analysis/build_analysis_bundle.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use Case: Build Analysis Bundle.

Purpose:
    Orchestrate one analysis run over already-parsed XBRL/PDF results:
    assemble the domain bundle, render the step-1 report text and project
    both into DTOs for presentation.

Layer:
    application/use_cases

Notes:
    - Expected degradations (missing values, unavailable comparisons,
      withheld evidence) come back inside the bundle, not as errors.
    - Unexpected failures are logged with the traceback and re-raised as
      :class:`AnalysisPipelineError`, whose message never carries internals.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field

from dart_insight.application.schemas.dto.analysis_bundle import AnalysisBundleDTO
from dart_insight.application.use_cases.analysis.bundle_mapping import bundle_to_dto
from dart_insight.domain.entities.analysis_bundle import AnalysisBundle
from dart_insight.domain.entities.financial_statement import UploadedFileRef
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.parse_result import FileParseResult
from dart_insight.domain.enums.evidence import Trait
from dart_insight.domain.exceptions.analysis import AnalysisPipelineError
from dart_insight.domain.exceptions.base import DomainError
from dart_insight.domain.services.bundle_assembler import (
    DEFAULT_COMPANY_NAME,
    assemble_bundle,
    new_run_id,
)
from dart_insight.domain.services.evidence_selector import SelectionAudit
from dart_insight.domain.services.step1_report_text import build_step1_report_text
from dart_insight.infrastructure.logging.logger import (
    get_json_logger,
    reset_run_context,
    set_run_context,
)

logger = get_json_logger(__name__)


@dataclass(frozen=True, slots=True)
class BuildAnalysisBundleRequest:
    """Input of one analysis run.

    Attributes:
        parse_results: Parse outcome per uploaded file.
        uploaded_files: File identities, index-aligned with ``parse_results``.
        company_name: Display name; falls back to the use case default.
        ticker: Stock code, if known.
        industry: Precomputed industry classification, if any.
        audit: Per-run override of the step-1 evidence audit flag.
    """

    parse_results: Sequence[FileParseResult]
    uploaded_files: Sequence[UploadedFileRef] = ()
    company_name: str | None = None
    ticker: str | None = None
    industry: IndustryClassification | None = None
    audit: bool | None = None


@dataclass(frozen=True, slots=True)
class BuildAnalysisBundleResult:
    """Domain bundle, its DTO projection and the step-1 report text."""

    bundle: AnalysisBundle
    dto: AnalysisBundleDTO
    step1_report_text: str | None
    trait_audits: Mapping[Trait, SelectionAudit] = field(default_factory=dict)


class BuildAnalysisBundleUseCase:
    """Assemble an :class:`AnalysisBundle` and its presentation DTO.

    Args:
        default_company_name: Name used when the request carries none.
        evidence_audit: Default for collecting step-1 selection audits.

    Raises:
        AnalysisPipelineError: If assembly fails unexpectedly.
    """

    def __init__(
        self,
        *,
        default_company_name: str = DEFAULT_COMPANY_NAME,
        evidence_audit: bool = False,
    ) -> None:
        self._default_company_name = default_company_name
        self._evidence_audit = evidence_audit

    def execute(self, req: BuildAnalysisBundleRequest) -> BuildAnalysisBundleResult:
        """Run the analysis for ``req``.

        Args:
            req: Parse results and company identity of the run.

        Returns:
            BuildAnalysisBundleResult for the run.

        Raises:
            DomainError: Re-raised unchanged when raised by the core.
            AnalysisPipelineError: For any other failure.
        """
        run_id = new_run_id()
        token = set_run_context(run_id)
        try:
            return self._run(req, run_id)
        finally:
            reset_run_context(token)

    def _run(self, req: BuildAnalysisBundleRequest, run_id: str) -> BuildAnalysisBundleResult:
        audit = self._evidence_audit if req.audit is None else req.audit
        company_name = req.company_name or self._default_company_name

        logger.info(
            "analysis.build_bundle.start",
            extra={
                "extra": {
                    "run_id": run_id,
                    "files": len(req.parse_results),
                    "company": company_name,
                    "audit": audit,
                }
            },
        )

        try:
            assembled = assemble_bundle(
                req.parse_results,
                req.uploaded_files,
                company_name=company_name,
                ticker=req.ticker,
                industry=req.industry,
                run_id=run_id,
                audit=audit,
            )
            bundle = assembled.bundle
            step1 = bundle.step(1)
            report_text = (
                build_step1_report_text(step1, bundle.company.industry)
                if step1 is not None
                else None
            )
            dto = bundle_to_dto(bundle, step1_report_text=report_text)
        except DomainError:
            logger.warning(
                "analysis.build_bundle.failed",
                extra={"extra": {"run_id": run_id}},
                exc_info=True,
            )
            raise
        except Exception as exc:
            logger.exception(
                "analysis.build_bundle.failed",
                extra={"extra": {"run_id": run_id, "error_type": type(exc).__name__}},
            )
            raise AnalysisPipelineError(
                details={"run_id": run_id, "error_type": type(exc).__name__}
            ) from exc

        if audit:
            self._log_audits(run_id, assembled.trait_audits)

        logger.info(
            "analysis.build_bundle.done",
            extra={
                "extra": {
                    "run_id": run_id,
                    "statements": len(bundle.statements),
                    "steps": len(bundle.step_outputs),
                    "evidence": len(bundle.all_evidence),
                    "warnings": len(bundle.warnings),
                    "self_check_passed": (
                        bundle.self_check.passed if bundle.self_check is not None else None
                    ),
                }
            },
        )
        return BuildAnalysisBundleResult(
            bundle=bundle,
            dto=dto,
            step1_report_text=report_text,
            trait_audits=assembled.trait_audits,
        )

    @staticmethod
    def _log_audits(run_id: str, audits: Mapping[Trait, SelectionAudit]) -> None:
        for trait, audit in audits.items():
            logger.info(
                "analysis.step1.evidence_audit",
                extra={"extra": {"run_id": run_id, "trait": trait.value, **asdict(audit)}},
            )


__all__ = [
    "BuildAnalysisBundleRequest",
    "BuildAnalysisBundleResult",
    "BuildAnalysisBundleUseCase",
]
