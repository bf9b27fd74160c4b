"""
In-memory fakes for testing the authorization service without files or a database.

Implements Protocol-compatible classes:
- FakeTenantStore
- FakeRequestLedger

plus FrozenClock, a controllable clock for expiry tests.
"""

from __future__ import annotations

import time
from contextlib import nullcontext
from datetime import datetime, timedelta, timezone
from typing import ContextManager, Dict, List, Optional

from hwid_auth.core.contracts import TenantMatch
from hwid_auth.repos.tenant_store import first_match
from hwid_auth.schemas.ledger import LedgerEntry, ReviewStatus
from hwid_auth.schemas.tenants import TenantRecord, TenantStatus


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)

    @property
    def now_ms(self) -> int:
        return int(self.now.timestamp() * 1000)


class FakeTenantStore:
    """
    In-memory TenantStore.

    load() hands out a copy, like a real store reading from disk.
    `write_delay` sleeps inside save() to widen race windows in concurrency tests.
    """

    def __init__(self, write_delay: float = 0.0) -> None:
        self._tenants: Dict[str, TenantRecord] = {}
        self.write_delay = write_delay
        self.save_calls = 0

    def load(self) -> Dict[str, TenantRecord]:
        return {tid: rec.model_copy() for tid, rec in self._tenants.items()}

    def save(self, tenants: Dict[str, TenantRecord]) -> None:
        snapshot = {tid: rec.model_copy() for tid, rec in tenants.items()}
        if self.write_delay:
            time.sleep(self.write_delay)
        self._tenants = snapshot
        self.save_calls += 1

    def find_by_hwid(self, hwid: str, status: Optional[TenantStatus] = None) -> Optional[TenantMatch]:
        return first_match(self.load(), hwid, status)

    def lock(self) -> ContextManager[None]:
        return nullcontext()

    # Helper for seeding
    def put(self, tenant_id: str, record: TenantRecord) -> None:
        self._tenants[tenant_id] = record


class FakeRequestLedger:
    """In-memory RequestLedger."""

    def __init__(self, read_delay: float = 0.0) -> None:
        self.entries: List[LedgerEntry] = []
        self.read_delay = read_delay

    def append(self, hwid: str, hostname: str, os_name: str, submitted_at: str) -> None:
        self.entries.append(
            LedgerEntry(
                hwid=hwid,
                hostname=hostname,
                os=os_name,
                submitted_at=submitted_at,
                review_status=ReviewStatus.PENDING,
            )
        )

    def update_status(self, hwid: str, status: ReviewStatus) -> None:
        for idx, entry in enumerate(self.entries):
            if entry.hwid == hwid:
                self.entries[idx] = entry.model_copy(update={"review_status": status})
                return

    def list_all(self) -> List[LedgerEntry]:
        return list(self.entries)

    def is_denied(self, hwid: str) -> bool:
        entry = self._find(hwid)
        return entry is not None and entry.review_status == ReviewStatus.DENIED

    def has_entry(self, hwid: str) -> bool:
        if self.read_delay:
            time.sleep(self.read_delay)
        return self._find(hwid) is not None

    def lock(self) -> ContextManager[None]:
        return nullcontext()

    def _find(self, hwid: str) -> Optional[LedgerEntry]:
        for entry in self.entries:
            if entry.hwid == hwid:
                return entry
        return None
