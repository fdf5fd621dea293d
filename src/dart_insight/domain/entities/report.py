# src/dart_insight/domain/entities/report.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Report-surface entities: findings, checkpoints, cards and chart plans.

Purpose:
    Immutable artifacts emitted once per analysis run by the step engine and
    the EWS rules, owned by the ``StepOutput`` that contains them.

Layer:
    domain/entities

Notes:
    - Every finding and checkpoint cites at least one ``EvidenceRef`` or
      carries an explicit reason code / "근거 필요" marker.
"""

from __future__ import annotations

from dataclasses import dataclass

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.enums.report import ChartType, FindingCategory, Severity


@dataclass(frozen=True, slots=True)
class Finding:
    """An evidence-backed observation.

    Attributes:
        id: Stable identifier such as ``step01-finding-cyclical``.
        category: Analytical category.
        severity: info, warn or risk.
        text: Rendered observation text.
        evidence: Citations; may be empty only when ``reason_code`` is set
            or the text carries the "근거 필요" marker.
        reason_code: Why the judgment was withheld, if it was.
    """

    id: str
    category: FindingCategory
    severity: Severity
    text: str
    evidence: tuple[EvidenceRef, ...] = ()
    reason_code: str | None = None


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """A forward-looking "watch next quarter" item.

    Attributes:
        id: Stable identifier such as ``ews-capex-spike``.
        title: Short title.
        what_to_watch: What to monitor.
        why_it_matters: Why it is relevant.
        next_quarter_action: What to do next quarter.
        evidence: Citations backing the checkpoint.
        confirm_question: Question to answer with the next filing.
    """

    id: str
    title: str
    what_to_watch: str
    why_it_matters: str
    next_quarter_action: str
    evidence: tuple[EvidenceRef, ...] = ()
    confirm_question: str | None = None


@dataclass(frozen=True, slots=True)
class SummaryCard:
    """A label/value card shown at the top of a step."""

    label: str
    value: str | None = None
    note: str | None = None
    evidence: tuple[EvidenceRef, ...] = ()


@dataclass(frozen=True, slots=True)
class ChartPlanItem:
    """Availability decision for one chart.

    Attributes:
        chart_id: Identifier such as ``step03-revenue-trend``.
        chart_type: Requested chart kind.
        period_label: Label of the period being charted.
        data_keys: Line items or metrics plotted.
        available: Whether the chart can be drawn.
        reason: Why it cannot, when unavailable.
        required_reports: Reports that would make it available.
        badge: Short badge such as ``분기 분해 불가``.
    """

    chart_id: str
    chart_type: ChartType
    period_label: str
    data_keys: tuple[str, ...]
    available: bool
    reason: str | None = None
    required_reports: str | None = None
    badge: str | None = None


@dataclass(frozen=True, slots=True)
class ChartPlan:
    """Chart plan of one step."""

    step: int
    charts: tuple[ChartPlanItem, ...] = ()


@dataclass(frozen=True, slots=True)
class StepOutput:
    """Output of one analysis step."""

    step: int
    title: str
    summary_cards: tuple[SummaryCard, ...] = ()
    findings: tuple[Finding, ...] = ()
    checkpoints: tuple[Checkpoint, ...] = ()
    chart_plan: ChartPlan | None = None


__all__ = [
    "Finding",
    "Checkpoint",
    "SummaryCard",
    "ChartPlanItem",
    "ChartPlan",
    "StepOutput",
]
