"""
Authorization state machine for device (HWID) access.

Depends only on:
- Protocol interfaces: TenantStore, RequestLedger
- Lifecycle policy: evaluate_release

Device-facing operations:
    request_access(hwid, hostname, os_name) -> AccessDecision
    check_access(hwid) -> bool
    fetch_resource(hwid) -> FetchResult

Admin-facing operations:
    approve(hwid, name, resource_url, expiry_date) -> tenant id
    deny(hwid)
    list_requests() / list_tenants() / sync_tenants(payload)

State per HWID:
    unknown --request--> PENDING --approve--> APPROVED (ENABLED tenant)
                                  --deny-----> DENIED   (no tenant)
    DENIED  --approve--> APPROVED, APPROVED --deny--> DENIED

Concurrency
-----------
The tenant store is whole-table load/mutate/save, so every writer (approve,
deny, sync) holds the store guard for the full cycle. The dedup check and
append in request_access hold the ledger guard. approve and deny hold both
guards for the whole transition, so the ledger status and the tenant table
change together. A guard is the in-process lock plus the storage's own
cross-process lock(). Guards are always taken store first, then ledger.
Reads run unlocked.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from hwid_auth.core.contracts import RequestLedger, TenantStore
from hwid_auth.core.errors import ValidationError
from hwid_auth.core.logging import get_logger
from hwid_auth.schemas.ledger import UNKNOWN_HOST, LedgerEntry, ReviewStatus
from hwid_auth.schemas.tenants import TenantRecord, TenantStatus
from hwid_auth.services.lifecycle_policy import ReleaseStatus, evaluate_release


__all__ = [
    "AccessDecision",
    "FetchResult",
    "AuthorizationService",
    "DEFAULT_TENANT_NAME",
    "TENANT_ID_PREFIX",
]

log = get_logger(__name__)

DEFAULT_TENANT_NAME = "Auto-added"
TENANT_ID_PREFIX = "TENANT_"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _require_hwid(hwid: Optional[str]) -> str:
    if not isinstance(hwid, str) or not hwid.strip():
        raise ValidationError("hwid is required")
    return hwid


@dataclass(frozen=True)
class AccessDecision:
    authorized: bool
    denied: bool = False


@dataclass(frozen=True)
class FetchResult:
    status: ReleaseStatus
    resource_url: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.status == ReleaseStatus.GRANTED


class AuthorizationService:
    """
    Decision core binding a TenantStore and a RequestLedger.

    One instance must be shared by every caller in the process; the locks
    live on the instance.
    """

    def __init__(
        self,
        tenant_store: TenantStore,
        request_ledger: RequestLedger,
        *,
        clock: Optional[Clock] = None,
        default_tenant_name: str = DEFAULT_TENANT_NAME,
    ) -> None:
        self.tenant_store = tenant_store
        self.request_ledger = request_ledger
        self.clock: Clock = clock or _utcnow
        self.default_tenant_name = default_tenant_name or DEFAULT_TENANT_NAME
        self._store_lock = threading.Lock()
        self._ledger_lock = threading.Lock()

    # -----------------------------
    # Device operations
    # -----------------------------

    def request_access(
        self,
        hwid: Optional[str],
        hostname: Optional[str] = None,
        os_name: Optional[str] = None,
    ) -> AccessDecision:
        """
        Register a device sighting and report its current standing.

        Already-approved devices return immediately without touching the
        ledger. A denied device stays denied until re-approved. Otherwise the
        first sighting appends one PENDING ledger entry; later polls add none.
        """
        hwid = _require_hwid(hwid)

        if self.tenant_store.find_by_hwid(hwid, TenantStatus.ENABLED) is not None:
            return AccessDecision(authorized=True)

        with self._ledger_guard():
            # approve may have finished while we waited for the guard
            if self.tenant_store.find_by_hwid(hwid, TenantStatus.ENABLED) is not None:
                return AccessDecision(authorized=True)

            if self.request_ledger.is_denied(hwid):
                return AccessDecision(authorized=False, denied=True)

            if not self.request_ledger.has_entry(hwid):
                self.request_ledger.append(
                    hwid,
                    hostname or UNKNOWN_HOST,
                    os_name or UNKNOWN_HOST,
                    self.clock().isoformat(),
                )
                log.info("access requested", extra={"hwid": hwid, "status": ReviewStatus.PENDING.value})

        return AccessDecision(authorized=False, denied=False)

    def check_access(self, hwid: Optional[str]) -> bool:
        hwid = _require_hwid(hwid)
        return self.tenant_store.find_by_hwid(hwid, TenantStatus.ENABLED) is not None

    def fetch_resource(self, hwid: Optional[str]) -> FetchResult:
        """
        Release the resource URL to an authorized device.

        INVALID when no ENABLED tenant exists, EXPIRED when its expiry passed.
        """
        hwid = _require_hwid(hwid)
        match = self.tenant_store.find_by_hwid(hwid, TenantStatus.ENABLED)
        record = match[1] if match is not None else None

        status = evaluate_release(record, _to_ms(self.clock()))
        if status != ReleaseStatus.GRANTED:
            log.info("resource withheld", extra={"hwid": hwid, "status": status.value})
            return FetchResult(status=status)
        return FetchResult(status=status, resource_url=record.resource_url)

    # -----------------------------
    # Admin operations
    # -----------------------------

    def approve(
        self,
        hwid: Optional[str],
        name: Optional[str] = None,
        resource_url: Optional[str] = None,
        expiry_date: Optional[int] = None,
    ) -> str:
        """
        Grant access to a device and return its tenant id.

        An existing record for the hwid (in any status) is overwritten in
        place and keeps its id; otherwise a new id is minted. The ledger
        entry, if any, is marked APPROVED.
        """
        hwid = _require_hwid(hwid)
        expiry = int(expiry_date or 0)
        if expiry < 0:
            raise ValidationError("expiryDate must be 0 (never) or a positive epoch-ms timestamp")

        with self._store_guard(), self._ledger_guard():
            now_ms = _to_ms(self.clock())
            tenants = self.tenant_store.load()
            record = TenantRecord(
                hwid=hwid,
                name=name or self.default_tenant_name,
                resource_url=resource_url or "",
                usage_count=0,
                max_usage=0,
                status=TenantStatus.ENABLED,
                last_access_time=now_ms,
                expiry_date=expiry,
            )

            existing_id = next((tid for tid, rec in tenants.items() if rec.hwid == hwid), None)
            tenant_id = existing_id or self._mint_tenant_id(tenants, now_ms)
            tenants[tenant_id] = record
            self.tenant_store.save(tenants)
            self.request_ledger.update_status(hwid, ReviewStatus.APPROVED)

        log.info(
            "tenant approved",
            extra={"hwid": hwid, "tenant_id": tenant_id, "reused": existing_id is not None},
        )
        return tenant_id

    def deny(self, hwid: Optional[str]) -> None:
        """
        Reject a device: mark its ledger entry DENIED and delete its tenant
        record outright. Idempotent.
        """
        hwid = _require_hwid(hwid)

        removed: Optional[str] = None
        with self._store_guard(), self._ledger_guard():
            tenants = self.tenant_store.load()
            removed = next((tid for tid, rec in tenants.items() if rec.hwid == hwid), None)
            if removed is not None:
                del tenants[removed]
                self.tenant_store.save(tenants)
            self.request_ledger.update_status(hwid, ReviewStatus.DENIED)

        log.info("device denied", extra={"hwid": hwid, "tenant_id": removed})

    def list_requests(self) -> List[LedgerEntry]:
        return self.request_ledger.list_all()

    def list_tenants(self) -> Dict[str, TenantRecord]:
        return self.tenant_store.load()

    def sync_tenants(self, payload: Any) -> int:
        """
        Replace the whole tenant table with an admin-supplied mapping.

        Returns the number of records written.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("tenants must be an object keyed by tenant id")

        tenants: Dict[str, TenantRecord] = {}
        invalid: List[str] = []
        for tenant_id, value in payload.items():
            if not isinstance(tenant_id, str) or not tenant_id.strip():
                invalid.append(str(tenant_id))
                continue
            try:
                tenants[tenant_id] = TenantRecord.model_validate(value)
            except PydanticValidationError:
                invalid.append(tenant_id)
        if invalid:
            raise ValidationError("invalid tenant records", details={"tenant_ids": invalid})

        with self._store_guard():
            self.tenant_store.save(tenants)

        log.info("tenant table synced", extra={"count": len(tenants)})
        return len(tenants)

    # -----------------------------
    # Internals
    # -----------------------------

    @contextmanager
    def _store_guard(self) -> Iterator[None]:
        with self._store_lock, self.tenant_store.lock():
            yield

    @contextmanager
    def _ledger_guard(self) -> Iterator[None]:
        with self._ledger_lock, self.request_ledger.lock():
            yield

    @staticmethod
    def _mint_tenant_id(tenants: Mapping[str, TenantRecord], now_ms: int) -> str:
        # Caller holds the store lock; bump until free
        candidate = now_ms
        while f"{TENANT_ID_PREFIX}{candidate}" in tenants:
            candidate += 1
        return f"{TENANT_ID_PREFIX}{candidate}"
