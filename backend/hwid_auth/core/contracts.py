"""
Storage contracts (Protocols) for the authorization core.

These Protocols define the minimal operations required by the services layer.
Concrete implementations live in hwid_auth.repos (JSON files, SQLAlchemy) and
tests/fakes.py (in-memory), as long as they satisfy these interfaces.

Protocols:
- TenantStore
- RequestLedger
"""

from __future__ import annotations

from typing import ContextManager, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from hwid_auth.schemas.ledger import LedgerEntry, ReviewStatus
from hwid_auth.schemas.tenants import TenantRecord, TenantStatus

__all__ = ["TenantStore", "RequestLedger", "TenantMatch"]


TenantMatch = Tuple[str, TenantRecord]


# -------------------------------
# Tenant Store
# -------------------------------

@runtime_checkable
class TenantStore(Protocol):
    """
    Whole-table store of tenant records keyed by tenant id.

    save() replaces the entire table, so callers must load, mutate and save
    while holding the service's store lock and the store's own lock().
    """

    def load(self) -> Dict[str, TenantRecord]:
        """Return the full table in insertion order; empty if missing or corrupt.

        Other read failures raise StorageUnavailableError.
        """
        raise NotImplementedError()

    def save(self, tenants: Dict[str, TenantRecord]) -> None:
        """Atomically replace the persisted table."""
        raise NotImplementedError()

    def find_by_hwid(self, hwid: str, status: Optional[TenantStatus] = None) -> Optional[TenantMatch]:
        """First (tenant_id, record) with this hwid, optionally filtered by status."""
        raise NotImplementedError()

    def lock(self) -> ContextManager[None]:
        """Lock shared with other processes using the same storage (may be a no-op)."""
        raise NotImplementedError()


# -------------------------------
# Request Ledger
# -------------------------------

@runtime_checkable
class RequestLedger(Protocol):
    """
    Audit trail of every HWID ever seen. Best effort: read failures look like
    an absent entry and write failures are swallowed.
    """

    def append(self, hwid: str, hostname: str, os_name: str, submitted_at: str) -> None:
        """Add one PENDING entry. Does not check for an existing entry."""
        raise NotImplementedError()

    def update_status(self, hwid: str, status: ReviewStatus) -> None:
        """Rewrite the status of the first entry for hwid; no-op when absent."""
        raise NotImplementedError()

    def list_all(self) -> List[LedgerEntry]:
        """All well-formed entries in ledger order."""
        raise NotImplementedError()

    def is_denied(self, hwid: str) -> bool:
        """True iff the entry for hwid is DENIED."""
        raise NotImplementedError()

    def has_entry(self, hwid: str) -> bool:
        """True iff any entry exists for hwid, whatever its status."""
        raise NotImplementedError()

    def lock(self) -> ContextManager[None]:
        """Lock shared with other processes using the same storage (may be a no-op)."""
        raise NotImplementedError()
