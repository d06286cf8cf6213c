from __future__ import annotations

from sqlalchemy import Column, Date, Float, String

from db import Base


class StockScore(Base):
    """Cached screening score per (code, date).

    Nothing in this repo writes to it yet; readers must tolerate the table
    being absent from older databases.
    """

    __tablename__ = "stock_scores"

    code = Column(String, primary_key=True)
    date = Column(Date, primary_key=True)
    score = Column(Float, nullable=True)
