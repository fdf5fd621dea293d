# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from dart_insight.config.settings import get_settings
from dart_insight.domain.entities.evidence import EvidenceCandidate
from dart_insight.domain.entities.financial_statement import (
    BundleFinancialStatement,
    RawFinancialItem,
    RawFinancialStatement,
    UploadedFileRef,
)
from dart_insight.domain.enums.evidence import Topic
from dart_insight.domain.enums.period import PeriodType, StatementScope
from dart_insight.domain.services.period_normalizer import normalize_statement

Number = int | str | Decimal | None

# ---------------------------------------------------------------------------
# Sample disclosure paragraphs (one per industry trait)
# ---------------------------------------------------------------------------

CYCLICAL_PARAGRAPH = (
    "가전 제품의 수요는 소비심리와 금리, 주택 경기 등 거시 경제 변수에 크게 영향을 받습니다. "
    "경기 둔화 국면에서는 교체 수요가 지연되어 판매가 감소하는 경향이 있으며, "
    "경기 회복 시에는 출하가 빠르게 증가합니다. "
    "당사는 지역별 수요 변화를 주기적으로 점검하고 있습니다."
)

COMPETITION_PARAGRAPH = (
    "글로벌 TV 시장에서는 중국 업체들의 추격으로 경쟁이 심화되고 있습니다. "
    "당사는 프리미엄 라인업 강화를 통해 시장점유율을 유지하고 있으며, "
    "주요 경쟁사 대비 브랜드 경쟁력을 높이기 위해 노력하고 있습니다. "
    "신규 업체의 진입도 늘어나는 추세입니다."
)

PRICING_PARAGRAPH = (
    "원자재 가격 상승에 대응하여 당사는 주요 제품의 판가를 단계적으로 인상하였습니다. "
    "프리미엄 제품 비중 확대로 평균 판매단가가 개선되었으며, "
    "원가 절감 활동을 병행하여 마진을 방어하고 있습니다. "
    "향후에도 가격 정책을 탄력적으로 운영할 계획입니다."
)

REGULATION_PARAGRAPH = (
    "각국의 환경 규제가 강화되면서 제품의 에너지 효율 인증 요건이 높아지고 있습니다. "
    "유럽의 신규 규제 시행에 따라 당사는 생산 공정과 부품 구성을 변경하고 있으며, "
    "관련 비용이 증가할 수 있습니다. "
    "당사는 법규 준수를 위한 전담 조직을 운영하고 있습니다."
)

ACCOUNTING_PARAGRAPH = (
    "당사는 기업회계기준서 제1115호에 따라 수익을 인식하고 있으며, "
    "제품 판매 가격과 할인 조건을 고려하여 거래가격을 산정합니다. "
    "이러한 회계정책은 전기와 동일하게 적용되었으며 변경 사항은 없습니다. "
    "자세한 내용은 연결재무제표 주석을 참고하시기 바랍니다."
)

TRAIT_PARAGRAPHS: Mapping[Topic, str] = {
    Topic.MARKET_DEMAND: CYCLICAL_PARAGRAPH,
    Topic.COMPETITION: COMPETITION_PARAGRAPH,
    Topic.PRICE_COST: PRICING_PARAGRAPH,
    Topic.REGULATION_RISK: REGULATION_PARAGRAPH,
}


def _items(values: Mapping[str, Number] | None, unit: str) -> dict[str, RawFinancialItem]:
    return {
        name: RawFinancialItem(
            name=name,
            value=None if value is None else Decimal(str(value)),
            unit=unit,
        )
        for name, value in (values or {}).items()
    }


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_raw_statement() -> Callable[..., RawFinancialStatement]:
    """Factory for upstream (legacy) parsed statements."""

    def _make(
        *,
        fiscal_year: int | None = 2025,
        quarter: int = 3,
        period_type: PeriodType | None = PeriodType.YTD,
        period_type_label: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        income: Mapping[str, Number] | None = None,
        cashflow: Mapping[str, Number] | None = None,
        balance: Mapping[str, Number] | None = None,
        unit: str = "KRW",
        scope: StatementScope = StatementScope.CONSOLIDATED,
    ) -> RawFinancialStatement:
        return RawFinancialStatement(
            company_name="테스트전자",
            ticker="000000",
            fiscal_year=fiscal_year,
            quarter=quarter,
            period_type=period_type,
            period_type_label=period_type_label,
            start_date=start_date,
            end_date=end_date,
            income_statement=_items(income, unit),
            cash_flow_statement=_items(cashflow, unit),
            balance_sheet=_items(balance, unit),
            scope=scope,
        )

    return _make


@pytest.fixture
def make_file_ref() -> Callable[..., UploadedFileRef]:
    """Factory for uploaded-file identities."""

    def _make(index: int = 0, file_name: str | None = None, file_type: str = "xbrl") -> UploadedFileRef:
        return UploadedFileRef(
            file_name=file_name or f"report-{index}.xml",
            index=index,
            file_type=file_type,
        )

    return _make


@pytest.fixture
def make_statement(
    make_raw_statement: Callable[..., RawFinancialStatement],
    make_file_ref: Callable[..., UploadedFileRef],
) -> Callable[..., BundleFinancialStatement]:
    """Factory for normalized statements (accepts the raw-statement keywords)."""

    def _make(*, index: int = 0, **kwargs: object) -> BundleFinancialStatement:
        statement = normalize_statement(make_raw_statement(**kwargs), make_file_ref(index))
        assert statement is not None
        return statement

    return _make


@pytest.fixture
def make_candidate() -> Callable[..., EvidenceCandidate]:
    """Factory for PDF paragraph candidates."""

    def _make(
        text: str,
        *,
        topic: Topic | None = None,
        page: int | None = 12,
        section: str | None = "II. 사업의 내용",
        heading: str | None = None,
        id: str | None = None,
    ) -> EvidenceCandidate:
        return EvidenceCandidate(
            id=id,
            topic=topic,
            title=f"[{topic.value}]" if topic is not None else None,
            text=text,
            excerpt=text[:150],
            page=page,
            section=section,
            heading=heading,
        )

    return _make


@pytest.fixture
def paragraphs() -> dict[str, str]:
    """Sample disclosure paragraphs keyed by trait (plus an accounting note)."""
    return {
        "cyclical": CYCLICAL_PARAGRAPH,
        "competition": COMPETITION_PARAGRAPH,
        "pricingPower": PRICING_PARAGRAPH,
        "regulation": REGULATION_PARAGRAPH,
        "accounting": ACCOUNTING_PARAGRAPH,
    }


@pytest.fixture
def trait_candidates(make_candidate: Callable[..., EvidenceCandidate]) -> list[EvidenceCandidate]:
    """One relevant candidate per trait, each on its own page."""
    return [
        make_candidate(text, topic=topic, page=page, id=f"pdf-evidence-{page}")
        for page, (topic, text) in enumerate(TRAIT_PARAGRAPHS.items(), start=10)
    ]


@pytest.fixture
def trait_page_map() -> dict[int, str]:
    """A PDF page map carrying one trait paragraph per page."""
    return {page: text for page, text in enumerate(TRAIT_PARAGRAPHS.values(), start=10)}


# ---------------------------------------------------------------------------
# Parse-result JSON payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def xbrl_payload() -> dict[str, Any]:
    """A camelCase XBRL parse result as produced by the upstream parser."""

    def _item(name: str, value: float | None) -> dict[str, Any]:
        return {"name": name, "value": value, "unit": "KRW", "originalName": name, "source": "DART"}

    return {
        "success": True,
        "fileName": "report-2025-q3.xml",
        "xmlContent": "<xbrl/>",
        "financialStatement": {
            "companyName": "테스트전자",
            "ticker": "000000",
            "fiscalYear": 2025,
            "quarter": 3,
            "periodType": "YTD",
            "startDate": "",
            "endDate": "2025-09-30",
            "incomeStatement": {
                "revenue": _item("매출액", 1_000_000_000_000),
                "operatingIncome": _item("영업이익", 100_000_000_000),
                "netIncome": _item("당기순이익", float("nan")),
            },
            "cashFlowStatement": {
                "operatingCashFlow": _item("영업활동현금흐름", 300_000_000_000),
                "capitalExpenditure": _item("유형자산의 취득", -100_000_000_000),
            },
            "balanceSheet": {
                "totalEquity": _item("자본총계", 500_000_000_000),
            },
        },
    }


@pytest.fixture
def pdf_payload(trait_page_map: dict[int, str]) -> dict[str, Any]:
    """A camelCase PDF parse result carrying one trait paragraph per page."""
    return {
        "success": True,
        "fileName": "report-2025-q3.pdf",
        "pdfResult": {
            "text": "\n\n".join(trait_page_map.values()),
            "pageMap": {str(page): text for page, text in trait_page_map.items()},
            "sectionMap": {},
            "keyManagementLanguage": ["수익성 중심 경영을 지속하겠습니다"],
        },
    }


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _settings_cache_isolated(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear cached settings and feature env vars around every test."""
    for key in (
        "LOG_LEVEL",
        "FEATURE_STEP1_EVIDENCE_AUDIT",
        "NEXT_PUBLIC_FEATURE_STEP1_EVIDENCE_AUDIT",
        "PARSE_CACHE_TTL_S",
        "DEFAULT_COMPANY_NAME",
        "RUN_ID",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
