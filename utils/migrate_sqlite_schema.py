"""Versioned SQLite schema migrations.

The schema version lives in ``PRAGMA user_version``. Each step is also
idempotent on its own (create-if-missing / add-column-if-missing), so
databases written by older revisions of the collector, which created
tables and columns ad hoc, are brought up to date without errors.

Run once at startup (`app.create_app`, the job entrypoints) or by hand:

    python utils/migrate_sqlite_schema.py [path/to/stock_data.db]
"""

from __future__ import annotations

import os
import sqlite3
import sys
from collections.abc import Callable

# Allow running as: `python utils/migrate_sqlite_schema.py`
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from logging_utils import get_logger

logger = get_logger(__name__)

FIGURE_COLUMNS: tuple[str, ...] = (
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


def _existing_columns(cur: sqlite3.Cursor, table: str) -> set[str]:
    cur.execute(f"PRAGMA table_info({table})")
    return {row[1] for row in cur.fetchall()}


def add_column_if_missing(cur: sqlite3.Cursor, table: str, col: str, ddl: str) -> bool:
    cols = _existing_columns(cur, table)
    if col in cols:
        return False
    cur.execute(f"ALTER TABLE {table} ADD COLUMN {col} {ddl}")
    return True


def create_index_if_missing(cur: sqlite3.Cursor, *, name: str, ddl: str) -> bool:
    """Create an index if it does not already exist.

    Args:
        name: Index name to check in sqlite_master.
        ddl: Full CREATE INDEX statement.
    """

    cur.execute(
        "SELECT 1 FROM sqlite_master WHERE type='index' AND name=? LIMIT 1", (name,)
    )
    if cur.fetchone():
        return False
    cur.execute(ddl)
    return True


def table_exists(cur: sqlite3.Cursor, table: str) -> bool:
    cur.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1", (table,)
    )
    return cur.fetchone() is not None


def create_table_if_missing(cur: sqlite3.Cursor, *, table: str, ddl: str) -> bool:
    """Create a table if it does not already exist.

    Returns:
        True if created, False if already exists.
    """
    if table_exists(cur, table):
        return False
    cur.execute(ddl)
    return True


def _v1_create_stocks(cur: sqlite3.Cursor) -> bool:
    # Shape written by the first collector revision.
    ddl = """
    CREATE TABLE stocks (
        code TEXT PRIMARY KEY,
        name TEXT,
        updated_at DATETIME
    );
    """.strip()
    return create_table_if_missing(cur, table="stocks", ddl=ddl)


def _v2_add_figure_columns(cur: sqlite3.Cursor) -> bool:
    changed = add_column_if_missing(cur, "stocks", "doc_id", "TEXT NULL")
    changed |= add_column_if_missing(cur, "stocks", "doc_type_code", "TEXT NULL")
    for col in FIGURE_COLUMNS:
        changed |= add_column_if_missing(cur, "stocks", col, "BIGINT NULL")
    return changed


def _v3_create_stock_prices(cur: sqlite3.Cursor) -> bool:
    ddl = """
    CREATE TABLE stock_prices (
        code TEXT NOT NULL,
        date DATE NOT NULL,
        open FLOAT NULL,
        high FLOAT NULL,
        low FLOAT NULL,
        close FLOAT NULL,
        volume BIGINT NULL,
        PRIMARY KEY (code, date)
    );
    """.strip()

    changed = create_table_if_missing(cur, table="stock_prices", ddl=ddl)
    changed |= create_index_if_missing(
        cur,
        name="ix_stock_prices_date",
        ddl="CREATE INDEX ix_stock_prices_date ON stock_prices(date)",
    )
    return changed


def _v4_create_stock_scores(cur: sqlite3.Cursor) -> bool:
    ddl = """
    CREATE TABLE stock_scores (
        code TEXT NOT NULL,
        date DATE NOT NULL,
        score FLOAT NULL,
        PRIMARY KEY (code, date)
    );
    """.strip()
    return create_table_if_missing(cur, table="stock_scores", ddl=ddl)


# Append-only: never reorder or edit a released step.
MIGRATIONS: tuple[Callable[[sqlite3.Cursor], bool], ...] = (
    _v1_create_stocks,
    _v2_add_figure_columns,
    _v3_create_stock_prices,
    _v4_create_stock_scores,
)

SCHEMA_VERSION = len(MIGRATIONS)


def get_schema_version(cur: sqlite3.Cursor) -> int:
    cur.execute("PRAGMA user_version")
    row = cur.fetchone()
    return int(row[0]) if row else 0


def apply_migrations(cur: sqlite3.Cursor, *, target: int | None = None) -> int:
    """Apply pending steps up to `target` (default: latest).

    Returns the schema version after running.
    """

    target = SCHEMA_VERSION if target is None else int(target)
    current = get_schema_version(cur)

    for version in range(current + 1, target + 1):
        step = MIGRATIONS[version - 1]
        changed = step(cur)
        # PRAGMA does not accept bound parameters; version is an int.
        cur.execute(f"PRAGMA user_version = {int(version)}")
        logger.info(
            "Schema migration applied | version=%s step=%s changed=%s",
            version,
            step.__name__,
            changed,
        )

    return max(current, target)


def migrate_connection(con: sqlite3.Connection, *, target: int | None = None) -> int:
    cur = con.cursor()
    try:
        version = apply_migrations(cur, target=target)
        con.commit()
        return version
    finally:
        cur.close()


def migrate_engine(engine, *, target: int | None = None) -> int:
    """Run migrations on the SQLite database behind a SQLAlchemy engine."""

    raw = engine.raw_connection()
    try:
        return migrate_connection(raw.driver_connection, target=target)
    finally:
        raw.close()


def migrate_database(db_path: str, *, target: int | None = None) -> int:
    con = sqlite3.connect(db_path)
    try:
        return migrate_connection(con, target=target)
    finally:
        con.close()


def main(argv: list[str] | None = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    if args:
        db_path = args[0]
    else:
        import db

        db_path = db.DB_PATH

    version = migrate_database(db_path)
    print(f"Schema at version {version}: {db_path}")


if __name__ == "__main__":
    main()
