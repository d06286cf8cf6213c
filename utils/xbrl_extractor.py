"""Turn EDINET XBRL documents into a `FinancialFigures` record.

Resolution policy:
- patterns from `utils.xbrl_patterns.TAG_PATTERNS` are tried in declared order;
- a capture that is not a positive integer does not count as a match;
- the first pattern that resolves a field wins, across every file fed into
  the same accumulator;
- ordinary income only backfills operating income when operating income is
  still unresolved after all input has been fed;
- a result whose revenue, total assets and net assets are all missing is
  rejected with `InsufficientDataError`.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from dataclasses import asdict, dataclass
from pathlib import Path

from logging_utils import get_logger
from utils.value_parsing import parse_xbrl_integer
from utils.xbrl_patterns import TAG_PATTERNS, TagPattern

logger = get_logger(__name__)

FIGURE_FIELDS: tuple[str, ...] = (
    "net_sales",
    "operating_income",
    "net_income",
    "total_assets",
    "net_assets",
    "current_assets",
    "liabilities",
    "current_liabilities",
    "cash_and_deposits",
    "shares_issued",
)

# At least one of these must be found for a filing to be usable.
REQUIRED_ANY_OF: tuple[str, ...] = ("net_sales", "total_assets", "net_assets")

RESCUE_FIELDS: dict[str, str] = {"operating_income": "ordinary_income"}

AUDIT_REPORT_MARKER = "jpaud"
XBRL_SUFFIX = ".xbrl"

# Errors ZipFile.read raises for damaged or unsupported member data.
_MEMBER_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    OSError,
)


class ExtractionError(Exception):
    pass


class ArchiveError(ExtractionError):
    pass


class InsufficientDataError(ExtractionError):
    """Extraction ran but found none of revenue, total assets, net assets.

    Typical for cover-page-only filings and administrative amendments.
    Callers should skip the document without retrying.
    """


@dataclass(frozen=True)
class FinancialFigures:
    """Figures extracted from one filing. 0 means "not found"."""

    net_sales: int = 0
    operating_income: int = 0
    net_income: int = 0
    total_assets: int = 0
    net_assets: int = 0
    current_assets: int = 0
    liabilities: int = 0
    current_liabilities: int = 0
    cash_and_deposits: int = 0
    shares_issued: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    def is_sufficient(self) -> bool:
        return any(getattr(self, f) > 0 for f in REQUIRED_ANY_OF)


class FigureAccumulator:
    """Collects field values from one or more XBRL texts.

    Feed every document of a filing, then call `finish()`.
    """

    def __init__(self, patterns: tuple[TagPattern, ...] = TAG_PATTERNS) -> None:
        self._patterns = patterns
        self._values: dict[str, int] = {}
        self._sources: dict[str, str] = {}
        self.documents_fed = 0

    @property
    def resolved(self) -> frozenset[str]:
        return frozenset(self._values)

    def value(self, field: str) -> int:
        return self._values.get(field, 0)

    def source_of(self, field: str) -> str | None:
        """Name of the pattern that resolved `field` (for diagnostics)."""

        return self._sources.get(field)

    def feed(self, text: str) -> None:
        self.documents_fed += 1
        for pattern in self._patterns:
            field = pattern.field
            if field in self._values:
                continue

            for raw in pattern.iter_values(text):
                value = parse_xbrl_integer(raw)
                if value is None:
                    continue
                self._values[field] = value
                self._sources[field] = pattern.name
                break

    def finish(self) -> FinancialFigures:
        values = {f: self._values.get(f, 0) for f in FIGURE_FIELDS}

        for target, rescue in RESCUE_FIELDS.items():
            if values[target] == 0 and self._values.get(rescue, 0) > 0:
                values[target] = self._values[rescue]
                logger.debug(
                    "Rescued field | field=%s from=%s value=%s",
                    target,
                    rescue,
                    values[target],
                )

        figures = FinancialFigures(**values)
        if not figures.is_sufficient():
            raise InsufficientDataError(
                "none of net_sales/total_assets/net_assets found "
                f"(documents={self.documents_fed})"
            )
        return figures


def extract_figures(text: str) -> FinancialFigures:
    """Extract figures from a single XBRL document."""

    acc = FigureAccumulator()
    acc.feed(text)
    return acc.finish()


def is_candidate_member(name: str) -> bool:
    """True for XBRL instance files other than audit reports."""

    base = name.rsplit("/", 1)[-1]
    return base.lower().endswith(XBRL_SUFFIX) and AUDIT_REPORT_MARKER not in base


def extract_figures_from_archive(data: bytes) -> FinancialFigures:
    """Extract figures from a filing archive (EDINET `type=1` zip).

    Every non-audit `.xbrl` member is fed into one accumulator in name
    order, so a field found in the main report is not overridden by an
    amendment or a second document later in the archive.
    """

    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"not a zip archive: {e}") from e

    acc = FigureAccumulator()
    with zf:
        members = sorted(n for n in zf.namelist() if is_candidate_member(n))
        for name in members:
            try:
                raw = zf.read(name)
            except _MEMBER_READ_ERRORS as e:
                raise ArchiveError(f"cannot read archive member {name}: {e}") from e
            acc.feed(raw.decode("utf-8", errors="replace"))
            logger.debug("Parsed archive member | name=%s", name)

    return acc.finish()


def extract_figures_from_file(path: str | Path) -> FinancialFigures:
    """Extract figures from a local `.xbrl` document or a filing `.zip`."""

    p = Path(path)
    data = p.read_bytes()
    if zipfile.is_zipfile(io.BytesIO(data)):
        return extract_figures_from_archive(data)
    return extract_figures(data.decode("utf-8", errors="replace"))
