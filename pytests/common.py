"""Shared helpers for tests.

Intended usage:
- spin up a temporary SQLite database
- point the app/jobs at it (`patch_app_db`)
- build XBRL facts and filing archives in memory

These utilities keep tests small and consistent.
"""

from __future__ import annotations

import io
import struct
import zipfile
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

import db
from models import Base
from models.stock_prices import StockPrice
from models.stocks import Stock
from utils.mock_data import build_archive

__all__ = [
    "make_sqlite_engine",
    "create_empty_sqlite_db",
    "patch_app_db",
    "add_dicts",
    "xbrl_fact",
    "xbrl_document",
    "make_archive",
    "damage_member_data",
    "seed_two_stocks",
]


def make_sqlite_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine suitable for tests."""

    if isinstance(db_path, Path):
        db_path = str(db_path)
    return create_engine(f"sqlite:///{db_path}")


def create_empty_sqlite_db(db_path: Path) -> tuple[Session, Engine]:
    """Create an empty SQLite DB file and initialize all models.

    Returns (session, engine).
    """

    engine = make_sqlite_engine(db_path)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal(), engine


def patch_app_db(monkeypatch, engine: Engine) -> sessionmaker:
    """Point `db.engine` / `db.SessionLocal` at `engine` for this test.

    Everything in the app reads them as module attributes at call time.
    """

    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(db, "SessionLocal", factory)
    return factory


def add_dicts(session: Session, model, rows: Iterable[dict[str, Any]]) -> None:
    """Bulk insert a list of dicts into a SQLAlchemy model table."""

    objs = [model(**row) for row in rows]
    session.add_all(objs)
    session.commit()


def xbrl_fact(
    tag: str,
    value: Any,
    context: str = "CurrentYearDuration",
    *,
    prefix: str = "jpcrp_cor",
    unit: str = "JPY",
) -> str:
    """One XBRL fact element as EDINET writes it."""

    return (
        f'<{prefix}:{tag} contextRef="{context}" unitRef="{unit}" decimals="-6">'
        f"{value}</{prefix}:{tag}>"
    )


def xbrl_document(*facts: str) -> str:
    body = "\n  ".join(facts)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<xbrli:xbrl xmlns:xbrli="http://www.xbrl.org/2003/instance">\n  '
        f"{body}\n"
        "</xbrli:xbrl>\n"
    )


def make_archive(members: dict[str, str | bytes]) -> bytes:
    """Zip `members` (path -> content) like an EDINET `type=1` download."""

    return build_archive(members)


def damage_member_data(archive: bytes, member: str) -> bytes:
    """Overwrite the compressed bytes of `member` so reading it fails.

    0xFF starts a deflate block with the reserved block type, so zlib
    rejects the stream on the first byte.
    """

    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        info = zf.getinfo(member)

    buf = bytearray(archive)
    header = info.header_offset
    name_len, extra_len = struct.unpack("<HH", buf[header + 26 : header + 30])
    start = header + 30 + name_len + extra_len
    buf[start : start + info.compress_size] = b"\xff" * info.compress_size
    return bytes(buf)


def seed_two_stocks(session: Session) -> None:
    """1301 is cheap and solid; 9984 has figures but no price."""

    session.add_all(
        [
            Stock(
                code="1301",
                name="見本工業株式会社",
                updated_at="2025-12-25 09:15",
                net_sales=120_000_000_000,
                operating_income=9_000_000_000,
                net_income=6_000_000_000,
                total_assets=150_000_000_000,
                net_assets=90_000_000_000,
                current_assets=80_000_000_000,
                liabilities=60_000_000_000,
                shares_issued=50_000_000,
            ),
            Stock(
                code="9984",
                name="試験商事株式会社",
                updated_at="2025-12-25 10:00",
                net_sales=5_000_000_000,
                total_assets=20_000_000_000,
                net_assets=4_000_000_000,
            ),
        ]
    )
    session.add_all(
        [
            StockPrice(code="1301", date=date(2025, 12, 24), close=1480.0, volume=350600),
            StockPrice(code="1301", date=date(2025, 12, 25), close=1500.0, volume=731000),
        ]
    )
    session.commit()
