from __future__ import annotations

from sqlalchemy import BigInteger, Column, Date, Float, String

from db import Base


class StockPrice(Base):
    """One daily OHLCV bar, keyed by (code, date).

    Re-ingesting the same bar overwrites it (see `utils.stock_store`).
    """

    __tablename__ = "stock_prices"

    code = Column(String, primary_key=True)
    date = Column(Date, primary_key=True)

    open = Column(Float, nullable=True)
    high = Column(Float, nullable=True)
    low = Column(Float, nullable=True)
    close = Column(Float, nullable=True)
    volume = Column(BigInteger, nullable=True)
