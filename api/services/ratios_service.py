from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, inspect
from sqlalchemy.orm import Session

from models.stock_prices import StockPrice
from models.stock_scores import StockScore
from models.stocks import Stock
from utils.xbrl_extractor import FIGURE_FIELDS

RATIO_FIELDS = (
    "market_cap",
    "per",
    "pbr",
    "eps",
    "roe",
    "equity_ratio",
    "liquidation_ratio",
)

DEFAULT_SCREEN_LIMIT = 50
MAX_SCREEN_LIMIT = 500


def _num(obj: Any, name: str) -> int:
    return int(getattr(obj, name, 0) or 0)


def _r2(v: float) -> float:
    return round(v, 2)


def compute_ratios(figures: Any, close: Optional[float]) -> Dict[str, Any]:
    """Derive valuation ratios from stored figures and a closing price.

    `figures` is anything with the figure attributes (a `Stock` row or a
    `FinancialFigures`). Each ratio needs positive inputs; otherwise it is
    None. `market_cap` is an integer, everything else is rounded to 2
    decimals.
    """

    shares = _num(figures, "shares_issued")
    net_income = _num(figures, "net_income")
    net_assets = _num(figures, "net_assets")
    total_assets = _num(figures, "total_assets")
    net_current = _num(figures, "current_assets") - _num(figures, "liabilities")
    price = float(close or 0)

    out: Dict[str, Any] = {k: None for k in RATIO_FIELDS}

    mc = price * shares if price > 0 and shares > 0 else 0.0
    if mc > 0:
        out["market_cap"] = int(mc)
    if net_income > 0 and shares > 0:
        out["eps"] = _r2(net_income / shares)
    if mc > 0 and net_income > 0:
        out["per"] = _r2(mc / net_income)
    if mc > 0 and net_assets > 0:
        out["pbr"] = _r2(mc / net_assets)
    if net_income > 0 and net_assets > 0:
        out["roe"] = _r2(net_income / net_assets * 100)
    if net_assets > 0 and total_assets > 0:
        out["equity_ratio"] = _r2(net_assets / total_assets * 100)
    if mc > 0 and net_current > 0:
        out["liquidation_ratio"] = _r2(net_current / mc)

    return out


def _band_high(v: Optional[float], bands: tuple) -> int:
    if v is None:
        return 0
    for threshold, points in bands:
        if v >= threshold:
            return points
    return 0


def _band_low(v: Optional[float], bands: tuple) -> int:
    if v is None:
        return 0
    for threshold, points in bands:
        if v <= threshold:
            return points
    return 0


def score_stock(ratios: Dict[str, Any]) -> int:
    """Additive growth/value heuristic. Missing ratios score nothing."""

    score = 0
    score += _band_high(ratios.get("roe"), ((15, 3), (10, 2), (5, 1)))
    score += _band_low(ratios.get("per"), ((10, 3), (15, 2), (20, 1)))
    score += _band_low(ratios.get("pbr"), ((0.8, 3), (1.0, 2), (1.5, 1)))
    score += _band_high(ratios.get("equity_ratio"), ((60, 2), (40, 1)))
    return score


def rank_stocks(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Highest score first; equal scores keep their input order."""

    return sorted(rows, key=lambda r: r["score"], reverse=True)


def _has_table(session: Session, name: str) -> bool:
    return inspect(session.bind).has_table(name)


def _latest_scores(session: Session) -> Dict[str, float]:
    """Latest cached score per code, or {} when stock_scores is absent."""

    if not _has_table(session, StockScore.__tablename__):
        return {}

    latest = (
        session.query(
            StockScore.code.label("code"),
            func.max(StockScore.date).label("max_date"),
        )
        .group_by(StockScore.code)
        .subquery()
    )
    rows = (
        session.query(StockScore.code, StockScore.score)
        .join(
            latest,
            and_(
                StockScore.code == latest.c.code,
                StockScore.date == latest.c.max_date,
            ),
        )
        .all()
    )
    return {code: score for code, score in rows}


def _view(
    stock: Stock, price: Optional[StockPrice], cached_score: Optional[float]
) -> Dict[str, Any]:
    close = price.close if price is not None else None
    ratios = compute_ratios(stock, close)
    return {
        "code": stock.code,
        "name": stock.name,
        "updated_at": stock.updated_at,
        "doc_id": stock.doc_id,
        "doc_type_code": stock.doc_type_code,
        "figures": {f: stock.figure(f) for f in FIGURE_FIELDS},
        "latest_price": (
            {"date": price.date.isoformat(), "close": price.close}
            if price is not None
            else None
        ),
        "ratios": ratios,
        "score": score_stock(ratios),
        "cached_score": cached_score,
    }


def _stocks_with_latest_price(session: Session, code: Optional[str] = None):
    latest = (
        session.query(
            StockPrice.code.label("code"),
            func.max(StockPrice.date).label("max_date"),
        )
        .group_by(StockPrice.code)
        .subquery()
    )
    qry = (
        session.query(Stock, StockPrice)
        .outerjoin(latest, latest.c.code == Stock.code)
        .outerjoin(
            StockPrice,
            and_(
                StockPrice.code == latest.c.code,
                StockPrice.date == latest.c.max_date,
            ),
        )
    )
    if code is not None:
        qry = qry.filter(Stock.code == code)
    return qry.order_by(Stock.code.asc()).all()


def list_stock_views(session: Session) -> List[Dict[str, Any]]:
    """Every stored stock with its latest price, ratios and score, by code."""

    if not _has_table(session, Stock.__tablename__):
        return []

    scores = _latest_scores(session)
    return [
        _view(stock, price, scores.get(stock.code))
        for stock, price in _stocks_with_latest_price(session)
    ]


def get_stock_view(session: Session, code: str) -> Optional[Dict[str, Any]]:
    if not _has_table(session, Stock.__tablename__):
        return None

    rows = _stocks_with_latest_price(session, code=code)
    if not rows:
        return None
    stock, price = rows[0]
    return _view(stock, price, _latest_scores(session).get(stock.code))


def get_price_history(session: Session, code: str) -> List[Dict[str, Any]]:
    """Daily bars for `code`, oldest first."""

    rows = (
        session.query(StockPrice)
        .filter(StockPrice.code == code)
        .order_by(StockPrice.date.asc())
        .all()
    )
    return [
        {
            "date": r.date.isoformat(),
            "open": r.open,
            "high": r.high,
            "low": r.low,
            "close": r.close,
            "volume": r.volume,
        }
        for r in rows
    ]


def screen_stocks(
    session: Session, *, limit: int = DEFAULT_SCREEN_LIMIT, min_score: int = 0
) -> List[Dict[str, Any]]:
    """Ranked screen over all stocks scoring at least `min_score`."""

    # Safety bounds
    if limit < 1:
        limit = 1
    if limit > MAX_SCREEN_LIMIT:
        limit = MAX_SCREEN_LIMIT

    rows = [v for v in list_stock_views(session) if v["score"] >= min_score]
    return rank_stocks(rows)[:limit]
