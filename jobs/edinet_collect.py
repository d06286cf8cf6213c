from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session as SASession

from logging_utils import get_logger
from support.source_ingest_base import IngestRunResult, SourceIngestBase
from utils.edinet_api import (
    EdinetApiError,
    FilingReference,
    fetch_document_archive,
    fetch_document_list,
)
from utils.mock_data import load_mock_archive, load_mock_document_list
from utils.security_codes import InvalidSecurityCodeError, to_short_code
from utils.stock_store import upsert_figures
from utils.time_utils import iter_business_days
from utils.xbrl_extractor import (
    ExtractionError,
    InsufficientDataError,
    extract_figures_from_archive,
)

logger = get_logger(__name__)

# docTypeCode values whose XBRL carries financial statements:
# 120/130 annual securities report (+ amendment), 140/150 quarterly report
# (+ amendment), 160/170 semi-annual report (+ amendment).
FINANCIAL_DOC_TYPE_CODES: frozenset[str] = frozenset(
    {"120", "130", "140", "150", "160", "170"}
)


@dataclass(frozen=True)
class CollectResult:
    doc_id: str
    code: str
    ok: bool
    error: str | None = None
    insufficient: bool = False


def _load_document_list(target_date: date, *, api_key: str) -> list[FilingReference]:
    if not api_key:
        return load_mock_document_list()
    return fetch_document_list(target_date, api_key=api_key)


def _load_archive(doc_id: str, *, api_key: str) -> bytes:
    if not api_key:
        return load_mock_archive(doc_id)
    return fetch_document_archive(doc_id, api_key=api_key)


def select_filings(
    filings: list[FilingReference],
) -> tuple[list[tuple[FilingReference, str]], int]:
    """Keep financial-statement filings that carry a usable securities code.

    Returns ([(filing, short_code), ...], skipped_count).
    """

    selected: list[tuple[FilingReference, str]] = []
    skipped = 0
    for f in filings:
        if f.doc_type_code not in FINANCIAL_DOC_TYPE_CODES:
            skipped += 1
            continue
        if not f.sec_code:
            skipped += 1
            continue
        if not f.doc_id:
            skipped += 1
            continue
        try:
            code = to_short_code(f.sec_code)
        except InvalidSecurityCodeError as e:
            logger.warning(
                "Skipping filing: invalid securities code | doc_id=%s filer=%s err=%s",
                f.doc_id,
                f.filer_name,
                e,
            )
            skipped += 1
            continue
        selected.append((f, code))
    return selected, skipped


def _collect_one(
    *, session: SASession, filing: FilingReference, code: str, api_key: str
) -> CollectResult:
    logger.info(
        "Analyzing | code=%s filer=%s doc_id=%s doc_type=%s desc=%s",
        code,
        filing.filer_name,
        filing.doc_id,
        filing.doc_type_code,
        filing.doc_description,
    )

    try:
        archive = _load_archive(filing.doc_id, api_key=api_key)
        figures = extract_figures_from_archive(archive)
    except InsufficientDataError as e:
        logger.info(
            "Skip (insufficient data) | code=%s doc_id=%s reason=%s",
            code,
            filing.doc_id,
            e,
        )
        return CollectResult(
            doc_id=filing.doc_id, code=code, ok=False, error=str(e), insufficient=True
        )
    except (EdinetApiError, ExtractionError) as e:
        logger.warning(
            "Skip (download/parse failed) | code=%s doc_id=%s err=%s",
            code,
            filing.doc_id,
            e,
        )
        return CollectResult(doc_id=filing.doc_id, code=code, ok=False, error=str(e))

    upsert_figures(
        session,
        code=code,
        name=filing.filer_name,
        figures=figures,
        updated_at=filing.submitted_at,
        doc_id=filing.doc_id,
        doc_type_code=filing.doc_type_code,
    )
    logger.info(
        "Stored figures | code=%s net_sales=%s total_assets=%s net_assets=%s shares=%s",
        code,
        figures.net_sales,
        figures.total_assets,
        figures.net_assets,
        figures.shares_issued,
    )
    return CollectResult(doc_id=filing.doc_id, code=code, ok=True)


def run_collect(
    *,
    session: SASession,
    target_date: date,
    api_key: str,
    archive_delay_seconds: float = 0.0,
) -> dict[str, int]:
    """Collect and store figures for every financial filing of one date.

    A document-list failure raises `EdinetApiError` (fatal for the pass).
    Per-document failures are logged and skipped; nothing is written for
    them.

    Returns summary counts.
    """

    if not api_key:
        logger.warning("EDINET_API_KEY not set; using mock data")

    filings = _load_document_list(target_date, api_key=api_key)
    selected, skipped = select_filings(filings)

    logger.info(
        "Starting collect | date=%s listed=%s selected=%s skipped=%s mock=%s",
        target_date,
        len(filings),
        len(selected),
        skipped,
        not api_key,
    )

    stored = 0
    failed = 0
    insufficient = 0
    for i, (filing, code) in enumerate(selected):
        if i > 0 and archive_delay_seconds > 0:
            time.sleep(archive_delay_seconds)
        res = _collect_one(session=session, filing=filing, code=code, api_key=api_key)
        if res.ok:
            stored += 1
        elif res.insufficient:
            insufficient += 1
        else:
            failed += 1

    session.commit()
    return {
        "listed": len(filings),
        "selected": len(selected),
        "stored": stored,
        "skipped": skipped,
        "failed": failed,
        "insufficient": insufficient,
    }


def run_collect_range(
    *,
    session_factory,
    start: date,
    end: date,
    api_key: str,
    day_delay_seconds: float,
) -> IngestRunResult:
    """Collect every weekday from `start` to `end` inclusive.

    One session per day. Sleeps `day_delay_seconds` between days to stay
    polite to the EDINET API. A fatal error on any day aborts the run.
    """

    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")

    result = IngestRunResult()
    days = list(iter_business_days(start, end))
    logger.info(
        "Starting batch collect | from=%s to=%s weekdays=%s delay=%ss",
        start,
        end,
        len(days),
        day_delay_seconds,
    )

    for i, day in enumerate(days):
        if i > 0 and day_delay_seconds > 0:
            time.sleep(day_delay_seconds)

        with session_factory() as s:
            summary = run_collect(session=s, target_date=day, api_key=api_key)

        result.processed += summary["selected"]
        result.stored += summary["stored"]
        result.failed += summary["failed"] + summary["insufficient"]
        result.details.append({"date": day.isoformat(), **summary})

    return result


class EdinetCollector(SourceIngestBase):
    """Collector over a date range (a single date is a one-day range)."""

    source_name = "edinet"

    def __init__(
        self,
        *,
        start: date,
        end: date | None = None,
        api_key: str = "",
        session_factory=None,
        day_delay_seconds: float = 0.0,
    ) -> None:
        super().__init__(api_key=api_key, session_factory=session_factory)
        self.start = start
        self.end = end or start
        self.day_delay_seconds = day_delay_seconds

    def run(self) -> IngestRunResult:
        return run_collect_range(
            session_factory=self.session_factory,
            start=self.start,
            end=self.end,
            api_key=self.api_key,
            day_delay_seconds=self.day_delay_seconds,
        )
