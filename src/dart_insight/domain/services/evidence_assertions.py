# src/dart_insight/domain/services/evidence_assertions.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Evidence-enforcing constructors for findings and checkpoints.

Purpose:
    Every finding or checkpoint must cite at least one ``EvidenceRef``.
    These helpers apply the evidence policy when the citation list is
    empty: ``skip`` drops the artifact, ``warn`` keeps it with a
    ``(근거 필요)`` marker.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.report import Checkpoint, Finding
from dart_insight.domain.enums.report import EvidencePolicy, FindingCategory, Severity

EVIDENCE_REQUIRED_MARKER = "(근거 필요)"


def create_finding(
    id: str,
    category: FindingCategory,
    severity: Severity,
    text: str,
    evidence: Sequence[EvidenceRef],
    policy: EvidencePolicy = EvidencePolicy.WARN,
    *,
    reason_code: str | None = None,
) -> Finding | None:
    """Build a finding, enforcing the evidence policy.

    Args:
        id: Finding identifier.
        category: Analytical category.
        severity: Severity used when evidence is present.
        text: Finding text.
        evidence: Citations.
        policy: What to do when ``evidence`` is empty.
        reason_code: Optional structured reason for a withheld judgment.

    Returns:
        The finding, or ``None`` under ``skip`` with no evidence.
    """
    if not evidence:
        if policy is EvidencePolicy.SKIP:
            return None
        return Finding(
            id=id,
            category=category,
            severity=Severity.WARN,
            text=f"{text} {EVIDENCE_REQUIRED_MARKER}",
            evidence=(),
            reason_code=reason_code,
        )

    return Finding(
        id=id,
        category=category,
        severity=severity,
        text=text,
        evidence=tuple(evidence),
        reason_code=reason_code,
    )


def create_checkpoint(
    id: str,
    title: str,
    what_to_watch: str,
    why_it_matters: str,
    next_quarter_action: str,
    evidence: Sequence[EvidenceRef],
    policy: EvidencePolicy = EvidencePolicy.WARN,
    *,
    confirm_question: str | None = None,
) -> Checkpoint | None:
    """Build a checkpoint, enforcing the evidence policy.

    Under ``warn`` with no evidence every text field gets the
    ``(근거 필요)`` marker.
    """
    if not evidence:
        if policy is EvidencePolicy.SKIP:
            return None
        return Checkpoint(
            id=id,
            title=f"{title} {EVIDENCE_REQUIRED_MARKER}",
            what_to_watch=f"{what_to_watch} {EVIDENCE_REQUIRED_MARKER}",
            why_it_matters=f"{why_it_matters} {EVIDENCE_REQUIRED_MARKER}",
            next_quarter_action=f"{next_quarter_action} {EVIDENCE_REQUIRED_MARKER}",
            evidence=(),
            confirm_question=confirm_question,
        )

    return Checkpoint(
        id=id,
        title=title,
        what_to_watch=what_to_watch,
        why_it_matters=why_it_matters,
        next_quarter_action=next_quarter_action,
        evidence=tuple(evidence),
        confirm_question=confirm_question,
    )


def findings_with_evidence(findings: Iterable[Finding | None]) -> list[Finding]:
    """Drop ``None`` entries and findings without citations."""
    return [f for f in findings if f is not None and f.evidence]


def checkpoints_with_evidence(checkpoints: Iterable[Checkpoint | None]) -> list[Checkpoint]:
    """Drop ``None`` entries and checkpoints without citations."""
    return [c for c in checkpoints if c is not None and c.evidence]


__all__ = [
    "EVIDENCE_REQUIRED_MARKER",
    "create_finding",
    "create_checkpoint",
    "findings_with_evidence",
    "checkpoints_with_evidence",
]
