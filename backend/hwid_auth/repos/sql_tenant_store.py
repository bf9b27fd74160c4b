"""
SQLAlchemy-based tenant store.

Implements the TenantStore protocol on top of the `tenant` table:
- load(): all rows ordered by insertion position
- save(mapping): delete + reinsert inside one transaction (whole-table replace)
- find_by_hwid(hwid, status): first row by position

Database errors on read or write raise StorageUnavailableError; rows that no
longer validate are skipped with a warning. lock() is a no-op: each save is
one transaction, and writers in other processes are not serialized.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import ContextManager, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from hwid_auth.core.contracts import TenantMatch
from hwid_auth.core.errors import StorageUnavailableError
from hwid_auth.core.logging import get_logger
from hwid_auth.models.tenant import TenantRow
from hwid_auth.schemas.tenants import TenantRecord, TenantStatus


__all__ = ["SqlAlchemyTenantStore"]

log = get_logger(__name__)


def _to_record(row: TenantRow) -> TenantRecord:
    return TenantRecord(
        hwid=row.hwid,
        name=row.name,
        resource_url=row.resource_url,
        usage_count=row.usage_count,
        max_usage=row.max_usage,
        status=row.status,
        last_access_time=row.last_access_time,
        expiry_date=row.expiry_date,
    )


def _to_row(tenant_id: str, position: int, record: TenantRecord) -> TenantRow:
    return TenantRow(
        tenant_id=tenant_id,
        position=position,
        hwid=record.hwid,
        name=record.name,
        resource_url=record.resource_url,
        usage_count=record.usage_count,
        max_usage=record.max_usage,
        status=record.status.value,
        last_access_time=record.last_access_time,
        expiry_date=record.expiry_date,
    )


class SqlAlchemyTenantStore:
    """
    Concrete TenantStore using SQLAlchemy ORM.

    Holds a session factory rather than a session: the store is shared by
    every request, and each operation runs in its own short-lived session.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        if not callable(session_factory):
            raise TypeError("session_factory must be a sqlalchemy.orm.sessionmaker")
        self.session_factory = session_factory

    def load(self) -> Dict[str, TenantRecord]:
        try:
            with self.session_factory() as session:
                rows = session.execute(select(TenantRow).order_by(TenantRow.position)).scalars().all()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to read tenant table", details={"error": str(exc)}) from exc

        tenants: Dict[str, TenantRecord] = {}
        for row in rows:
            try:
                tenants[row.tenant_id] = _to_record(row)
            except PydanticValidationError:
                log.warning("skipping invalid tenant row", extra={"tenant_id": row.tenant_id})
        return tenants

    def save(self, tenants: Dict[str, TenantRecord]) -> None:
        try:
            with self.session_factory() as session, session.begin():
                session.execute(delete(TenantRow))
                session.add_all(
                    [_to_row(tenant_id, idx, record) for idx, (tenant_id, record) in enumerate(tenants.items())]
                )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to write tenant table", details={"error": str(exc)}) from exc

    def find_by_hwid(self, hwid: str, status: Optional[TenantStatus] = None) -> Optional[TenantMatch]:
        stmt = select(TenantRow).where(TenantRow.hwid == hwid)
        if status is not None:
            stmt = stmt.where(TenantRow.status == status.value)
        stmt = stmt.order_by(TenantRow.position)
        try:
            with self.session_factory() as session:
                row = session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(
                "Failed to read tenant table", details={"hwid": hwid, "error": str(exc)}
            ) from exc
        if row is None:
            return None
        return row.tenant_id, _to_record(row)

    def lock(self) -> ContextManager[None]:
        return nullcontext()
