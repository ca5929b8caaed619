from sqlalchemy import Column, BigInteger, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from models.base import Base, JSONType


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Sheet(Base):
    """
    A spreadsheet-like destination table kept in SQL.

    Purpose:
    - Append-only destination for imported CSV rows
    - Row order is the physical order rows were appended in

    Design:
    - workbook groups sheets the way a spreadsheet groups tabs
    - Row 1 is the header row
    """
    __tablename__ = "sheets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    workbook = Column(String(100), nullable=False, default="default")
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utc_now)

    rows = relationship("SheetRow", back_populates="sheet", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("workbook", "title", name="uq_sheet_workbook_title"),
    )


class SheetRow(Base):
    """
    One physical row of a Sheet.

    cells holds the ordered cell values as a JSON list; width may vary
    from row to row.
    """
    __tablename__ = "sheet_rows"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    sheet_id = Column(Integer, ForeignKey("sheets.id", ondelete="CASCADE"), nullable=False)
    row_number = Column(Integer, nullable=False)  # 1-based, header is row 1
    cells = Column(JSONType, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utc_now)

    sheet = relationship("Sheet", back_populates="rows")

    __table_args__ = (
        Index("idx_sheet_row_number", "sheet_id", "row_number", unique=True),
    )
