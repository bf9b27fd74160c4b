"""
Admin API routes.

Endpoints:
- GET  /api/requests       -> every ledger entry, in ledger order
- GET  /api/tenants        -> every tenant record with its id
- POST /api/approve        -> approve an HWID, returns tenantId
- POST /api/deny           -> deny an HWID and revoke its tenant
- POST /api/sync/tenants   -> replace the whole tenant table

The admin caller is not authenticated here; deploy behind whatever gate
fronts the admin console.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hwid_auth.core.deps import get_authorization_service
from hwid_auth.schemas.access import (
    AckOut,
    ApproveIn,
    ApproveOut,
    DenyIn,
    RequestListResponse,
    RequestOut,
    SyncTenantsIn,
    SyncTenantsOut,
    TenantListResponse,
    TenantOut,
)
from hwid_auth.services.authorization_service import AuthorizationService


router = APIRouter(prefix="/api", tags=["admin"])


@router.get("/requests", response_model=RequestListResponse)
def list_requests(
    service: AuthorizationService = Depends(get_authorization_service),
) -> RequestListResponse:
    rows = [
        RequestOut(
            hwid=e.hwid,
            hostname=e.hostname,
            os=e.os,
            submitted_at=e.submitted_at,
            review_status=e.review_status.value,
        )
        for e in service.list_requests()
    ]
    return RequestListResponse(requests=rows)


@router.get("/tenants", response_model=TenantListResponse)
def list_tenants(
    service: AuthorizationService = Depends(get_authorization_service),
) -> TenantListResponse:
    rows = [
        TenantOut(
            tenant_id=tenant_id,
            hwid=rec.hwid,
            name=rec.name,
            resource_url=rec.resource_url,
            usage_count=rec.usage_count,
            max_usage=rec.max_usage,
            status=rec.status.value,
            last_access_time=rec.last_access_time,
            expiry_date=rec.expiry_date,
        )
        for tenant_id, rec in service.list_tenants().items()
    ]
    return TenantListResponse(tenants=rows)


@router.post("/approve", response_model=ApproveOut)
def approve(
    payload: ApproveIn,
    service: AuthorizationService = Depends(get_authorization_service),
) -> ApproveOut:
    tenant_id = service.approve(
        payload.hwid,
        name=payload.name,
        resource_url=payload.resource_url,
        expiry_date=payload.expiry_date,
    )
    return ApproveOut(message="approved", tenant_id=tenant_id)


@router.post("/deny", response_model=AckOut)
def deny(
    payload: DenyIn,
    service: AuthorizationService = Depends(get_authorization_service),
) -> AckOut:
    service.deny(payload.hwid)
    return AckOut(message="denied and authorization revoked")


@router.post("/sync/tenants", response_model=SyncTenantsOut)
def sync_tenants(
    payload: SyncTenantsIn,
    service: AuthorizationService = Depends(get_authorization_service),
) -> SyncTenantsOut:
    count = service.sync_tenants(payload.tenants)
    return SyncTenantsOut(message="synced", count=count)
