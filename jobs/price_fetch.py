from __future__ import annotations

import time
from datetime import date

from sqlalchemy.orm import Session as SASession

from logging_utils import get_logger
from support.source_ingest_base import IngestRunResult, SourceIngestBase
from utils.mock_data import load_mock_price_csv
from utils.price_api import PriceApiError, fetch_price_csv, history_start, parse_price_csv
from utils.security_codes import InvalidSecurityCodeError
from utils.stock_store import list_codes, upsert_price_bars
from utils.time_utils import today_utc

logger = get_logger(__name__)


def _load_price_csv(code: str, *, mock: bool) -> str:
    if mock:
        return load_mock_price_csv()
    return fetch_price_csv(code)


def run_price_fetch(
    *,
    session: SASession,
    mock: bool,
    delay_seconds: float = 0.0,
    today: date | None = None,
    codes: list[str] | None = None,
) -> IngestRunResult:
    """Fetch and upsert a trailing year of daily prices for every stored code.

    Mock mode reuses one bundled series for every code and keeps all of it
    (no trailing-year cutoff). A failed or malformed code is logged and skipped; the
    bars of successful codes are committed per code.
    """

    result = IngestRunResult()
    since = None if mock else history_start(today or today_utc())
    targets = codes if codes is not None else list_codes(session)

    logger.info(
        "Starting price fetch | codes=%s since=%s mock=%s", len(targets), since, mock
    )

    for i, code in enumerate(targets):
        if i > 0 and delay_seconds > 0:
            time.sleep(delay_seconds)

        result.processed += 1
        try:
            text = _load_price_csv(code, mock=mock)
            bars = parse_price_csv(text, code=code, since=since)
        except (PriceApiError, InvalidSecurityCodeError) as e:
            logger.warning("Price fetch failed | code=%s err=%s", code, e)
            result.failed += 1
            result.details.append({"code": code, "error": str(e)})
            continue

        written = upsert_price_bars(session, bars)
        session.commit()
        result.stored += written
        result.details.append({"code": code, "bars": written})
        logger.info("Stored prices | code=%s bars=%s", code, written)

    return result


class PriceFetcher(SourceIngestBase):
    source_name = "prices"

    def __init__(
        self,
        *,
        api_key: str = "",
        session_factory=None,
        delay_seconds: float = 0.0,
    ) -> None:
        super().__init__(api_key=api_key, session_factory=session_factory)
        self.delay_seconds = delay_seconds

    def run(self) -> IngestRunResult:
        with self.session_factory() as s:
            return run_price_fetch(
                session=s, mock=self.mock_mode, delay_seconds=self.delay_seconds
            )
