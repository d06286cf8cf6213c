"""Daily price history client (Stooq CSV).

  GET {PRICE_BASE_URL}?s=7203.jp&i=d

Returns CSV with a header row ``Date,Open,High,Low,Close,Volume``.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, timedelta

import requests

from logging_utils import get_logger
from settings import SETTINGS
from utils.security_codes import price_ticker
from utils.value_parsing import parse_csv_float, parse_csv_int

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("Date", "Open", "High", "Low", "Close", "Volume")


class PriceApiError(RuntimeError):
    pass


@dataclass(frozen=True)
class PriceBar:
    code: str
    date: date
    open: float | None
    high: float | None
    low: float | None
    close: float | None
    volume: int | None


def parse_price_csv(
    text: str,
    *,
    code: str,
    since: date | None = None,
) -> list[PriceBar]:
    """Parse a daily OHLCV CSV body.

    Rows dated before `since`, rows with an unparseable date and rows
    without a close price are skipped. Raises `PriceApiError` when the body
    is not a price CSV at all (Stooq answers unknown tickers with
    "No data").
    """

    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    header = reader.fieldnames or []
    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise PriceApiError(
            f"unexpected price CSV header for {code}: {header!r} (missing {missing})"
        )

    bars: list[PriceBar] = []
    skipped = 0
    for row in reader:
        try:
            day = date.fromisoformat((row.get("Date") or "").strip())
        except ValueError:
            skipped += 1
            continue
        if since is not None and day < since:
            continue

        close = parse_csv_float(row.get("Close"))
        if close is None:
            skipped += 1
            continue

        bars.append(
            PriceBar(
                code=code,
                date=day,
                open=parse_csv_float(row.get("Open")),
                high=parse_csv_float(row.get("High")),
                low=parse_csv_float(row.get("Low")),
                close=close,
                volume=parse_csv_int(row.get("Volume")),
            )
        )

    if skipped:
        logger.debug("Skipped malformed price rows | code=%s skipped=%s", code, skipped)
    return bars


def history_start(today: date) -> date:
    return today - timedelta(days=int(SETTINGS.get("PRICE_HISTORY_DAYS") or 365))


def fetch_price_csv(code: str, *, session: requests.Session | None = None) -> str:
    """Download the raw daily CSV for a 4-digit code."""

    ticker = price_ticker(code, str(SETTINGS.get("PRICE_MARKET_SUFFIX") or "jp"))
    url = str(SETTINGS.get("PRICE_BASE_URL"))
    s = session or requests.Session()
    timeout = float(SETTINGS.get("HTTP_TIMEOUT_SECONDS") or 60.0)

    try:
        resp = s.get(url, params={"s": ticker, "i": "d"}, timeout=timeout)
    except requests.RequestException as e:
        raise PriceApiError(f"network error for {ticker}: {e}") from e

    if resp.status_code != 200:
        raise PriceApiError(f"price request failed status={resp.status_code} ticker={ticker}")

    return resp.content.decode("utf-8", errors="replace")
