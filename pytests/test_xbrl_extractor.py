from __future__ import annotations

import pytest

from utils.xbrl_extractor import (
    ExtractionError,
    FigureAccumulator,
    FinancialFigures,
    InsufficientDataError,
    extract_figures,
)
from pytests.common import xbrl_document, xbrl_fact

_SALES = "NetSalesSummaryOfBusinessResults"
_TOTAL_ASSETS = "TotalAssetsSummaryOfBusinessResults"
_NET_ASSETS = "NetAssetsSummaryOfBusinessResults"
_ORDINARY = "OrdinaryIncomeLossSummaryOfBusinessResults"


def _assets(value: int = 5000) -> str:
    return xbrl_fact(_TOTAL_ASSETS, value, "CurrentYearInstant")


def test_primary_pattern_value_is_used():
    doc = xbrl_document(xbrl_fact(_SALES, 1000), _assets())
    figures = extract_figures(doc)
    assert figures.net_sales == 1000
    assert figures.total_assets == 5000


def test_fallbacks_not_consulted_once_primary_resolved():
    doc = xbrl_document(
        # Line item and non-consolidated values disagree with the summary.
        xbrl_fact("NetSales", 2222, prefix="jppfs_cor"),
        xbrl_fact(_SALES, 999, "CurrentYearDuration_NonConsolidatedMember"),
        xbrl_fact(_SALES, 1000),
        _assets(),
    )
    acc = FigureAccumulator()
    acc.feed(doc)
    assert acc.value("net_sales") == 1000
    assert acc.source_of("net_sales") == "net_sales"


def test_fallback_used_when_primary_absent():
    doc = xbrl_document(
        xbrl_fact(_SALES, 777, "CurrentYearDuration_NonConsolidatedMember"),
        _assets(),
    )
    acc = FigureAccumulator()
    acc.feed(doc)
    assert acc.value("net_sales") == 777
    assert acc.source_of("net_sales") == "net_sales__nonconsolidated"


def test_operating_revenue_resolves_net_sales():
    doc = xbrl_document(
        xbrl_fact("OperatingRevenue1SummaryOfBusinessResults", 4321),
        _assets(),
    )
    assert extract_figures(doc).net_sales == 4321


@pytest.mark.parametrize("raw", ["0", "-", "abc", "", "-15"])
def test_zero_or_non_numeric_capture_never_populates(raw):
    doc = xbrl_document(xbrl_fact(_SALES, raw), _assets())
    figures = extract_figures(doc)
    assert figures.net_sales == 0


def test_zero_placeholder_lets_next_occurrence_win():
    doc = xbrl_document(
        xbrl_fact(_SALES, 0, "CurrentYearDuration"),
        xbrl_fact(_SALES, 321, "CurrentQuarterDuration"),
        _assets(),
    )
    assert extract_figures(doc).net_sales == 321


def test_quarterly_report_prefers_year_to_date_over_quarter():
    doc = xbrl_document(
        xbrl_fact(_SALES, 300, "CurrentQuarterDuration"),
        xbrl_fact(_SALES, 900, "CurrentYTDDuration"),
        _assets(),
    )
    assert extract_figures(doc).net_sales == 900


def test_ordinary_income_rescues_missing_operating_income():
    doc = xbrl_document(xbrl_fact(_ORDINARY, 450), _assets())
    assert extract_figures(doc).operating_income == 450


def test_ordinary_income_never_overrides_operating_income():
    doc = xbrl_document(
        xbrl_fact(_ORDINARY, 450),
        xbrl_fact("OperatingIncome", 400, prefix="jppfs_cor"),
        _assets(),
    )
    assert extract_figures(doc).operating_income == 400


def test_insufficient_even_when_operating_income_found():
    doc = xbrl_document(
        xbrl_fact("OperatingIncome", 400, prefix="jppfs_cor"),
        xbrl_fact("ProfitLossAttributableToOwnersOfParentSummaryOfBusinessResults", 300),
    )
    with pytest.raises(InsufficientDataError):
        extract_figures(doc)


def test_insufficient_data_is_an_extraction_error():
    with pytest.raises(ExtractionError):
        extract_figures("<xbrli:xbrl/>")


@pytest.mark.parametrize(
    "fact",
    [
        xbrl_fact(_SALES, 1),
        xbrl_fact(_TOTAL_ASSETS, 1, "CurrentYearInstant"),
        xbrl_fact(_NET_ASSETS, 1, "CurrentYearInstant"),
    ],
)
def test_any_single_gate_field_is_sufficient(fact):
    figures = extract_figures(xbrl_document(fact))
    assert figures.is_sufficient()


def test_thousands_separators_are_tolerated():
    doc = xbrl_document(xbrl_fact(_SALES, "1,234,567"))
    assert extract_figures(doc).net_sales == 1234567


def test_full_balance_sheet_fields():
    doc = xbrl_document(
        _assets(150),
        xbrl_fact(_NET_ASSETS, 90, "CurrentYearInstant"),
        xbrl_fact("CurrentAssets", 80, "CurrentYearInstant", prefix="jppfs_cor"),
        xbrl_fact("Liabilities", 60, "CurrentYearInstant", prefix="jppfs_cor"),
        xbrl_fact("CurrentLiabilities", 40, "CurrentYearInstant", prefix="jppfs_cor"),
        xbrl_fact("CashAndDeposits", 30, "CurrentYearInstant", prefix="jppfs_cor"),
        xbrl_fact(
            "TotalNumberOfIssuedSharesSummaryOfBusinessResults",
            5000,
            "CurrentYearInstant_NonConsolidatedMember",
            unit="shares",
        ),
    )
    assert extract_figures(doc) == FinancialFigures(
        total_assets=150,
        net_assets=90,
        current_assets=80,
        liabilities=60,
        current_liabilities=40,
        cash_and_deposits=30,
        shares_issued=5000,
    )
