"""
Device-facing API routes.

Endpoints:
- POST /api/request   -> register a sighting / report standing
- GET  /api/check     -> is this HWID authorized?
- GET  /api/getjar    -> release the resource URL (403 expired | invalid)

Routes are thin and delegate to AuthorizationService.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from hwid_auth.core.deps import get_authorization_service
from hwid_auth.schemas.access import (
    CheckAccessOut,
    FetchResourceOut,
    RequestAccessIn,
    RequestAccessOut,
)
from hwid_auth.services.authorization_service import AuthorizationService
from hwid_auth.services.lifecycle_policy import ReleaseStatus


router = APIRouter(prefix="/api", tags=["devices"])


@router.post("/request", response_model=RequestAccessOut)
def request_access(
    payload: RequestAccessIn,
    service: AuthorizationService = Depends(get_authorization_service),
) -> RequestAccessOut:
    decision = service.request_access(payload.hwid, payload.hostname, payload.os)
    if decision.authorized:
        message = "authorized"
    elif decision.denied:
        message = "this HWID has been denied"
    else:
        message = "request received, awaiting review"
    return RequestAccessOut(message=message, authorized=decision.authorized, denied=decision.denied)


@router.get("/check", response_model=CheckAccessOut)
def check_access(
    hwid: Optional[str] = Query(default=None, description="Hardware identifier"),
    service: AuthorizationService = Depends(get_authorization_service),
) -> CheckAccessOut:
    authorized = service.check_access(hwid)
    return CheckAccessOut(hwid=hwid or "", authorized=authorized)


@router.get("/getjar", response_model=FetchResourceOut, response_model_exclude_none=True)
def fetch_resource(
    hwid: Optional[str] = Query(default=None, description="Hardware identifier"),
    service: AuthorizationService = Depends(get_authorization_service),
):
    """
    Return the resource URL for an authorized device.

    Expired and never-approved devices both get 403 but with distinct
    `status` values.
    """
    result = service.fetch_resource(hwid)
    if result.granted:
        return FetchResourceOut(success=True, status="active", resource_url=result.resource_url or "")

    message = "authorization expired" if result.status == ReleaseStatus.EXPIRED else None
    body = FetchResourceOut(success=False, status=result.status.value, message=message)
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
