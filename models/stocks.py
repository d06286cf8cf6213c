from __future__ import annotations

from sqlalchemy import BigInteger, Column, String

from db import Base


class Stock(Base):
    """Latest extracted financial figures for one listed entity.

    One row per 4-digit securities code; a newer filing overwrites the row.

    Figure columns are nullable: a figure the extractor could not find
    (value 0) is stored as NULL and read back as 0 by `to_figures()`.
    """

    __tablename__ = "stocks"

    code = Column(String, primary_key=True)
    name = Column(String, nullable=True)

    # Submission timestamp as published by EDINET (e.g. "2025-11-13 15:30").
    updated_at = Column(String, nullable=True)

    doc_id = Column(String, nullable=True)
    doc_type_code = Column(String, nullable=True)

    net_sales = Column(BigInteger, nullable=True)
    operating_income = Column(BigInteger, nullable=True)
    net_income = Column(BigInteger, nullable=True)
    total_assets = Column(BigInteger, nullable=True)
    net_assets = Column(BigInteger, nullable=True)
    current_assets = Column(BigInteger, nullable=True)
    liabilities = Column(BigInteger, nullable=True)
    current_liabilities = Column(BigInteger, nullable=True)
    cash_and_deposits = Column(BigInteger, nullable=True)
    shares_issued = Column(BigInteger, nullable=True)

    def figure(self, field: str) -> int:
        return int(getattr(self, field) or 0)
