"""Read/write helpers for the stocks and stock_prices tables.

Callers own the session and the commit.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from models.stock_prices import StockPrice
from models.stocks import Stock
from utils.price_api import PriceBar
from utils.xbrl_extractor import FIGURE_FIELDS, FinancialFigures

# SQLite builds default to 999 bound parameters per statement; each price
# row binds 7 columns. Leave a small margin.
SQLITE_MAX_VARS_DEFAULT = 999
PRICE_PARAMS_PER_ROW = 7
PRICE_ROWS_PER_CHUNK = max(1, (SQLITE_MAX_VARS_DEFAULT // PRICE_PARAMS_PER_ROW) - 5)


def upsert_figures(
    session: Session,
    *,
    code: str,
    name: str | None,
    figures: FinancialFigures,
    updated_at: str | None = None,
    doc_id: str | None = None,
    doc_type_code: str | None = None,
) -> Stock:
    """Insert or overwrite the figures row for `code` (latest write wins)."""

    stock = session.get(Stock, code)
    if stock is None:
        stock = Stock(code=code)
        session.add(stock)

    stock.name = name
    stock.updated_at = updated_at
    stock.doc_id = doc_id
    stock.doc_type_code = doc_type_code
    for field in FIGURE_FIELDS:
        # 0 means "not found"; keep it NULL in storage.
        setattr(stock, field, getattr(figures, field) or None)

    session.flush()
    return stock


def to_figures(stock: Stock) -> FinancialFigures:
    return FinancialFigures(**{f: stock.figure(f) for f in FIGURE_FIELDS})


def get_figures(session: Session, code: str) -> FinancialFigures | None:
    stock = session.get(Stock, code)
    if stock is None:
        return None
    return to_figures(stock)


def list_codes(session: Session) -> list[str]:
    return [r[0] for r in session.query(Stock.code).order_by(Stock.code.asc()).all()]


def upsert_price_bars(session: Session, bars: Iterable[PriceBar]) -> int:
    """Insert bars, overwriting OHLCV of any existing (code, date) row.

    Returns the number of bars written.
    """

    rows = [
        {
            "code": b.code,
            "date": b.date,
            "open": b.open,
            "high": b.high,
            "low": b.low,
            "close": b.close,
            "volume": b.volume,
        }
        for b in bars
    ]
    for i in range(0, len(rows), PRICE_ROWS_PER_CHUNK):
        stmt = sqlite_insert(StockPrice).values(rows[i : i + PRICE_ROWS_PER_CHUNK])
        stmt = stmt.on_conflict_do_update(
            index_elements=[StockPrice.code, StockPrice.date],
            set_={
                "open": stmt.excluded.open,
                "high": stmt.excluded.high,
                "low": stmt.excluded.low,
                "close": stmt.excluded.close,
                "volume": stmt.excluded.volume,
            },
        )
        session.execute(stmt)
    return len(rows)
