"""
SQLAlchemy-based request ledger.

Implements the RequestLedger protocol on the `request_ledger` table. Ledger
order is the autoincrement id. Like the JSONL ledger it is best effort:
database errors on read look like an empty ledger, errors on write are
logged and swallowed.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import ContextManager, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from hwid_auth.core.logging import get_logger
from hwid_auth.models.request_log import LedgerRow
from hwid_auth.schemas.ledger import LedgerEntry, ReviewStatus


__all__ = ["SqlAlchemyRequestLedger"]

log = get_logger(__name__)


def _to_entry(row: LedgerRow) -> LedgerEntry:
    return LedgerEntry(
        hwid=row.hwid,
        hostname=row.hostname,
        os=row.os,
        submitted_at=row.submitted_at,
        review_status=row.review_status,
    )


class SqlAlchemyRequestLedger:
    """
    Concrete RequestLedger using SQLAlchemy ORM.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        if not callable(session_factory):
            raise TypeError("session_factory must be a sqlalchemy.orm.sessionmaker")
        self.session_factory = session_factory

    def append(self, hwid: str, hostname: str, os_name: str, submitted_at: str) -> None:
        row = LedgerRow(
            hwid=hwid,
            hostname=hostname,
            os=os_name,
            submitted_at=submitted_at,
            review_status=ReviewStatus.PENDING.value,
        )
        try:
            with self.session_factory() as session, session.begin():
                session.add(row)
        except SQLAlchemyError as exc:
            log.error("ledger append failed", extra={"hwid": hwid, "error": str(exc)})

    def update_status(self, hwid: str, status: ReviewStatus) -> None:
        stmt = select(LedgerRow).where(LedgerRow.hwid == hwid).order_by(LedgerRow.id).limit(1)
        try:
            with self.session_factory() as session, session.begin():
                row = session.execute(stmt).scalars().first()
                if row is not None:
                    row.review_status = ReviewStatus(status).value
        except SQLAlchemyError as exc:
            log.error("ledger status update failed", extra={"hwid": hwid, "error": str(exc)})

    def list_all(self) -> List[LedgerEntry]:
        try:
            with self.session_factory() as session:
                rows = session.execute(select(LedgerRow).order_by(LedgerRow.id)).scalars().all()
        except SQLAlchemyError as exc:
            log.warning("ledger unreadable, treating as empty", extra={"error": str(exc)})
            return []
        return [_to_entry(row) for row in rows]

    def is_denied(self, hwid: str) -> bool:
        entry = self._first(hwid)
        return entry is not None and entry.review_status == ReviewStatus.DENIED

    def has_entry(self, hwid: str) -> bool:
        return self._first(hwid) is not None

    def lock(self) -> ContextManager[None]:
        return nullcontext()

    def _first(self, hwid: str) -> Optional[LedgerEntry]:
        stmt = select(LedgerRow).where(LedgerRow.hwid == hwid).order_by(LedgerRow.id).limit(1)
        try:
            with self.session_factory() as session:
                row = session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            log.warning("ledger lookup failed", extra={"hwid": hwid, "error": str(exc)})
            return None
        return _to_entry(row) if row is not None else None
