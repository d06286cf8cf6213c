from __future__ import annotations

from flask import Blueprint, jsonify, request

import db
from api.schemas.api_responses import ApiMeta, not_found, ok, ok_list
from api.services import ratios_service as svc

stocks_v1_bp = Blueprint("stocks_v1", __name__)


def _int_param(name: str, default: int) -> int:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _not_found(code: str):
    return jsonify(not_found(f"unknown stock code: {code}", code=code)), 404


@stocks_v1_bp.route("/stocks", methods=["GET"])
def list_stocks():
    """All stored stocks with latest price, ratios and score (ordered by code)."""

    session = db.SessionLocal()
    try:
        views = svc.list_stock_views(session)
        return jsonify(ok(views, meta=ApiMeta(count=len(views)))), 200
    finally:
        session.close()


@stocks_v1_bp.route("/stocks/<code>", methods=["GET"])
def get_stock(code: str):
    session = db.SessionLocal()
    try:
        view = svc.get_stock_view(session, code.strip())
        if view is None:
            return _not_found(code)
        return jsonify(ok(view)), 200
    finally:
        session.close()


@stocks_v1_bp.route("/stocks/<code>/prices", methods=["GET"])
def get_stock_prices(code: str):
    """Price history for one code, oldest first.

    404 when the code has neither figures nor prices.
    """

    code = code.strip()
    session = db.SessionLocal()
    try:
        prices = svc.get_price_history(session, code)
        if not prices and svc.get_stock_view(session, code) is None:
            return _not_found(code)
        data = {"code": code, "count": len(prices), "prices": prices}
        return jsonify(ok(data, meta=ApiMeta(count=len(prices)))), 200
    finally:
        session.close()


@stocks_v1_bp.route("/screen", methods=["GET"])
def screen():
    """Ranked growth/value screen.

    Query params:
    - limit: optional (default 50, max 500)
    - min_score: optional (default 0)
    """

    limit = _int_param("limit", svc.DEFAULT_SCREEN_LIMIT)
    min_score = _int_param("min_score", 0)

    session = db.SessionLocal()
    try:
        rows = svc.screen_stocks(session, limit=limit, min_score=min_score)
        return jsonify(ok_list(rows)), 200
    finally:
        session.close()
