"""
LedgerRow model.

SQL representation of one request-ledger entry. The autoincrement id gives
ledger order; review_status is the only column rewritten after insert.
"""

from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from hwid_auth.db.base import Base


class LedgerRow(Base):
    __tablename__ = "request_ledger"
    __table_args__ = (
        Index("ix_request_ledger_hwid_id", "hwid", "id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    hwid: Mapped[str] = mapped_column(String(255), nullable=False)
    hostname: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown")
    os: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown")

    # ISO-8601 UTC, stored as text to round-trip exactly
    submitted_at: Mapped[str] = mapped_column(String(64), nullable=False)

    # PENDING / APPROVED / DENIED
    review_status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")

    def __repr__(self) -> str:
        return f"<LedgerRow id={self.id!r} hwid={self.hwid!r} status={self.review_status!r}>"
