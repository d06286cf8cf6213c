"""SQLAlchemy models package.

Important: This project uses a single declarative Base defined in `db.py`.
Import `Base` from this package in all model modules.

Example:

    Base.metadata.create_all(...)

Production databases are created and upgraded by
`utils.migrate_sqlite_schema`; `create_all` is only used by tests.
"""

from db import Base  # re-export a single shared Base

# Import models so they are registered with SQLAlchemy metadata on startup.
from models.stocks import Stock  # noqa: F401
from models.stock_prices import StockPrice  # noqa: F401
from models.stock_scores import StockScore  # noqa: F401
