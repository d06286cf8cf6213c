"""XBRL tag pattern table for EDINET filings.

Each `TagPattern` matches one numeric fact: an element whose local name is
one of `tags` (any namespace prefix) and whose `contextRef` belongs to a
context class. Patterns are declared in resolution order; the extractor
takes the first pattern that yields a positive value for a field and
ignores the rest for that field.

Naming: a primary pattern is named after its field ("total_assets"); a
fallback appends a variant after a double underscore
("total_assets__nonconsolidated"). `TagPattern.field` strips the variant.

Primary patterns read the "summary of business results" block
(`jpcrp_cor:*SummaryOfBusinessResults`) in a fully consolidated context.
Fallbacks read the statement line items (`jppfs_cor`, `jpigp_cor`), the
non-consolidated context, or any reporting context.
"""

from __future__ import annotations

import re
import dataclasses
from dataclasses import dataclass
from typing import Iterator

FALLBACK_SEPARATOR = "__"

# Reporting periods used by annual, semi-annual and quarterly reports.
_DURATION_PERIODS = (
    "CurrentYearDuration",
    "InterimDuration",
    "CurrentYTDDuration",
    "CurrentQuarterDuration",
)
_INSTANT_PERIODS = (
    "CurrentYearInstant",
    "InterimInstant",
    "CurrentYTDInstant",
    "CurrentQuarterInstant",
)

_NONCONSOLIDATED_MEMBER = "_NonConsolidatedMember"

# When one pattern matches several periods, full-year and year-to-date facts
# win over a single quarter, whatever their order in the document.
_PERIOD_PREFERENCE = ("CurrentYear", "Interim", "CurrentYTD", "CurrentQuarter")


def period_rank(context_ref: str) -> int:
    for rank, prefix in enumerate(_PERIOD_PREFERENCE):
        if context_ref.startswith(prefix):
            return rank
    return len(_PERIOD_PREFERENCE)


def _alternation(names: tuple[str, ...]) -> str:
    return "|".join(re.escape(n) for n in names)


def _with_member(periods: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(p + _NONCONSOLIDATED_MEMBER for p in periods)


# contextRef classes. Values are regex alternations matched against the
# whole attribute value.
CONSOLIDATED_DURATION = _alternation(_DURATION_PERIODS)
CONSOLIDATED_INSTANT = _alternation(_INSTANT_PERIODS)
NONCONSOLIDATED_DURATION = _alternation(_with_member(_DURATION_PERIODS))
NONCONSOLIDATED_INSTANT = _alternation(_with_member(_INSTANT_PERIODS))
ANY_DURATION = _alternation(_DURATION_PERIODS + _with_member(_DURATION_PERIODS))
ANY_INSTANT = _alternation(_INSTANT_PERIODS + _with_member(_INSTANT_PERIODS))
FILING_DATE_INSTANT = _alternation(("FilingDateInstant",))


@dataclass(frozen=True)
class TagPattern:
    name: str
    tags: tuple[str, ...]
    context: str
    regex: re.Pattern[str] = dataclasses.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # <prefix:Tag ... contextRef="ctx" ...>value</prefix:Tag>
        pattern = (
            r"<(?:[A-Za-z][\w.\-]*:)?(?:" + _alternation(self.tags) + r")\s"
            r"[^>]*?\bcontextRef=\"(?P<ctx>" + self.context + r")\"[^>]*>"
            r"(?P<value>[^<]*)</"
        )
        object.__setattr__(self, "regex", re.compile(pattern))

    @property
    def field(self) -> str:
        return self.name.split(FALLBACK_SEPARATOR, 1)[0]

    @property
    def is_fallback(self) -> bool:
        return FALLBACK_SEPARATOR in self.name

    def iter_values(self, text: str) -> Iterator[str]:
        """Yield the raw value of every matching fact.

        Ordered by period preference, then document order.
        """

        matches = sorted(self.regex.finditer(text), key=lambda m: period_rank(m.group("ctx")))
        for m in matches:
            yield m.group("value").strip()

    def find_value(self, text: str) -> str | None:
        return next(self.iter_values(text), None)


def _p(name: str, tags: str | tuple[str, ...], context: str) -> TagPattern:
    if isinstance(tags, str):
        tags = (tags,)
    return TagPattern(name=name, tags=tags, context=context)


# Declared order is resolution order.
TAG_PATTERNS: tuple[TagPattern, ...] = (
    # Revenue. Banks and insurers report operating revenue instead of net
    # sales; both resolve the same field.
    _p("net_sales", "NetSalesSummaryOfBusinessResults", CONSOLIDATED_DURATION),
    _p(
        "net_sales__operating_revenue",
        ("OperatingRevenue1SummaryOfBusinessResults", "OperatingRevenue2SummaryOfBusinessResults"),
        CONSOLIDATED_DURATION,
    ),
    _p(
        "net_sales__ifrs",
        ("RevenueIFRSSummaryOfBusinessResults", "RevenuesUSGAAPSummaryOfBusinessResults"),
        CONSOLIDATED_DURATION,
    ),
    _p("net_sales__nonconsolidated", "NetSalesSummaryOfBusinessResults", NONCONSOLIDATED_DURATION),
    _p(
        "net_sales__operating_revenue_nonconsolidated",
        ("OperatingRevenue1SummaryOfBusinessResults", "OperatingRevenue2SummaryOfBusinessResults"),
        NONCONSOLIDATED_DURATION,
    ),
    _p("net_sales__line_item", ("NetSales", "OperatingRevenue1", "OperatingRevenue2", "Revenue"), ANY_DURATION),
    # Operating income has no summary tag; read the income statement.
    _p("operating_income", "OperatingIncome", CONSOLIDATED_DURATION),
    _p("operating_income__ifrs", "OperatingProfitLossIFRS", CONSOLIDATED_DURATION),
    _p("operating_income__nonconsolidated", "OperatingIncome", NONCONSOLIDATED_DURATION),
    # Rescue value for operating income; never a stored field on its own.
    _p("ordinary_income", "OrdinaryIncomeLossSummaryOfBusinessResults", CONSOLIDATED_DURATION),
    _p("ordinary_income__nonconsolidated", "OrdinaryIncomeLossSummaryOfBusinessResults", NONCONSOLIDATED_DURATION),
    _p("ordinary_income__line_item", "OrdinaryIncome", ANY_DURATION),
    # Net income attributable to owners of the parent.
    _p("net_income", "ProfitLossAttributableToOwnersOfParentSummaryOfBusinessResults", CONSOLIDATED_DURATION),
    _p(
        "net_income__ifrs",
        "ProfitLossAttributableToOwnersOfParentIFRSSummaryOfBusinessResults",
        CONSOLIDATED_DURATION,
    ),
    _p("net_income__nonconsolidated", "NetIncomeLossSummaryOfBusinessResults", NONCONSOLIDATED_DURATION),
    _p("net_income__line_item", ("ProfitLossAttributableToOwnersOfParent", "ProfitLoss"), ANY_DURATION),
    _p("total_assets", "TotalAssetsSummaryOfBusinessResults", CONSOLIDATED_INSTANT),
    _p("total_assets__ifrs", "TotalAssetsIFRSSummaryOfBusinessResults", CONSOLIDATED_INSTANT),
    _p("total_assets__nonconsolidated", "TotalAssetsSummaryOfBusinessResults", NONCONSOLIDATED_INSTANT),
    _p("total_assets__line_item", "Assets", ANY_INSTANT),
    _p("net_assets", "NetAssetsSummaryOfBusinessResults", CONSOLIDATED_INSTANT),
    _p(
        "net_assets__ifrs",
        "EquityAttributableToOwnersOfParentIFRSSummaryOfBusinessResults",
        CONSOLIDATED_INSTANT,
    ),
    _p("net_assets__nonconsolidated", "NetAssetsSummaryOfBusinessResults", NONCONSOLIDATED_INSTANT),
    _p("net_assets__line_item", "NetAssets", ANY_INSTANT),
    _p("current_assets", "CurrentAssets", CONSOLIDATED_INSTANT),
    _p("current_assets__nonconsolidated", "CurrentAssets", NONCONSOLIDATED_INSTANT),
    _p("liabilities", "Liabilities", CONSOLIDATED_INSTANT),
    _p("liabilities__nonconsolidated", "Liabilities", NONCONSOLIDATED_INSTANT),
    _p("current_liabilities", "CurrentLiabilities", CONSOLIDATED_INSTANT),
    _p("current_liabilities__nonconsolidated", "CurrentLiabilities", NONCONSOLIDATED_INSTANT),
    _p("cash_and_deposits", "CashAndDeposits", CONSOLIDATED_INSTANT),
    _p("cash_and_deposits__nonconsolidated", "CashAndDeposits", NONCONSOLIDATED_INSTANT),
    _p(
        "cash_and_deposits__cash_equivalents",
        "CashAndCashEquivalentsSummaryOfBusinessResults",
        ANY_INSTANT,
    ),
    # Issued shares are reported for the filer itself (non-consolidated
    # member) in the summary, and as of the filing date on the cover.
    _p("shares_issued", "TotalNumberOfIssuedSharesSummaryOfBusinessResults", ANY_INSTANT),
    _p(
        "shares_issued__filing_date",
        (
            "NumberOfIssuedSharesAsOfFilingDateIssuedSharesTotalNumberOfSharesEtc",
            "NumberOfIssuedSharesAsOfFiscalYearEndIssuedSharesTotalNumberOfSharesEtc",
        ),
        FILING_DATE_INSTANT,
    ),
    _p(
        "shares_issued__fiscal_year_end",
        "NumberOfIssuedSharesAsOfFiscalYearEndIssuedSharesTotalNumberOfSharesEtc",
        ANY_INSTANT,
    ),
)


def patterns_for(field_name: str) -> list[TagPattern]:
    return [p for p in TAG_PATTERNS if p.field == field_name]


def pattern_fields() -> list[str]:
    """Distinct logical field names, in declaration order."""

    out: list[str] = []
    for p in TAG_PATTERNS:
        if p.field not in out:
            out.append(p.field)
    return out
