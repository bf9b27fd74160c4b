"""
TenantRow model.

SQL representation of one tenant (approved device) record. `position`
preserves insertion order so the SQL store iterates like the JSON table.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hwid_auth.db.base import Base


class TenantRow(Base):
    __tablename__ = "tenant"

    # Tenant identifier (e.g. TENANT_1718000000000)
    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Insertion order within the table
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    hwid: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    resource_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_usage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # ENABLED / DISABLED
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ENABLED")

    # Epoch milliseconds; expiry_date == 0 means never
    last_access_time: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    expiry_date: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<TenantRow id={self.tenant_id!r} hwid={self.hwid!r} status={self.status!r}>"
