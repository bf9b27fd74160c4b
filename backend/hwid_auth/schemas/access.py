"""
Pydantic request/response models for the device and admin HTTP routes.

Wire keys follow the deployed client and admin console (camelCase, `jarUrl`
for the resource URL, `tenantName` for the display name). `hwid` is optional
at the schema level so that a missing value reaches the service and is
reported as a 400 validation_error like every other missing field.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


__all__ = [
    "RequestAccessIn",
    "RequestAccessOut",
    "CheckAccessOut",
    "FetchResourceOut",
    "ApproveIn",
    "ApproveOut",
    "DenyIn",
    "AckOut",
    "SyncTenantsIn",
    "SyncTenantsOut",
    "RequestOut",
    "RequestListResponse",
    "TenantOut",
    "TenantListResponse",
]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# -------------------------------
# Device routes
# -------------------------------

class RequestAccessIn(_WireModel):
    hwid: Optional[str] = Field(default=None, description="Hardware identifier")
    hostname: Optional[str] = Field(default=None)
    os: Optional[str] = Field(default=None)


class RequestAccessOut(_WireModel):
    success: bool = True
    message: str
    authorized: bool
    denied: bool = False


class CheckAccessOut(_WireModel):
    success: bool = True
    hwid: str
    authorized: bool


class FetchResourceOut(_WireModel):
    success: bool
    status: str = Field(..., description="active | expired | invalid")
    resource_url: Optional[str] = Field(default=None, alias="jarUrl")
    message: Optional[str] = None


# -------------------------------
# Admin routes
# -------------------------------

class ApproveIn(_WireModel):
    hwid: Optional[str] = None
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("tenantName", "name"))
    resource_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("jarUrl", "resourceUrl", "resource_url")
    )
    expiry_date: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("expiryDate", "expiry_date")
    )


class ApproveOut(_WireModel):
    success: bool = True
    message: str
    tenant_id: str = Field(..., alias="tenantId")


class DenyIn(_WireModel):
    hwid: Optional[str] = None


class AckOut(_WireModel):
    success: bool = True
    message: str


class SyncTenantsIn(_WireModel):
    # Validated by the service so that a non-object payload maps to validation_error
    tenants: Any = None


class SyncTenantsOut(AckOut):
    count: int = Field(..., ge=0)


class RequestOut(_WireModel):
    hwid: str
    hostname: str
    os: str
    submitted_at: str = Field(..., alias="submittedAt")
    review_status: str = Field(..., alias="reviewStatus")


class RequestListResponse(_WireModel):
    success: bool = True
    requests: list[RequestOut] = Field(default_factory=list)


class TenantOut(_WireModel):
    tenant_id: str = Field(..., alias="tenantId")
    hwid: str
    name: str = Field(..., alias="tenantName")
    resource_url: str = Field(..., alias="resourceUrl")
    usage_count: int = Field(..., alias="usageCount")
    max_usage: int = Field(..., alias="maxUsage")
    status: str
    last_access_time: int = Field(..., alias="lastAccessTime")
    expiry_date: int = Field(..., alias="expiryDate")


class TenantListResponse(_WireModel):
    success: bool = True
    tenants: list[TenantOut] = Field(default_factory=list)
