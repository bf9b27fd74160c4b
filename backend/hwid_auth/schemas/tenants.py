"""
Pydantic models for tenant (approved device) records.

- TenantStatus: ENABLED / DISABLED. Only ENABLED records can authorize.
- TenantRecord: one authorization record as stored in the tenant table.

Serialized keys match the on-disk tenant table:
    hwid, tenantName, resourceUrl, usageCount, maxUsage, status,
    lastAccessTime, expiryDate

Older tables written by the first admin console used `jarUrl` and Chinese
status labels; both are accepted on read and rewritten in the current form.
"""

from __future__ import annotations

import enum
from typing import Any, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


__all__ = ["TenantStatus", "TenantRecord", "LEGACY_STATUS_LABELS"]


class TenantStatus(str, enum.Enum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


LEGACY_STATUS_LABELS: Dict[str, TenantStatus] = {
    "啟用": TenantStatus.ENABLED,
    "停用": TenantStatus.DISABLED,
}


class TenantRecord(BaseModel):
    """
    Authorization record for one approved device.

    Timestamps are epoch milliseconds; expiry_date == 0 means the grant never
    expires. usage_count and max_usage are carried for schema compatibility
    and are not enforced by the service.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    hwid: str = Field(..., min_length=1, description="Hardware identifier of the device")
    name: str = Field(
        default="",
        validation_alias=AliasChoices("tenantName", "name"),
        serialization_alias="tenantName",
        description="Display label",
    )
    resource_url: str = Field(
        default="",
        validation_alias=AliasChoices("resourceUrl", "jarUrl", "resource_url"),
        serialization_alias="resourceUrl",
        description="Opaque pointer released to the authorized device",
    )
    usage_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("usageCount", "usage_count"),
        serialization_alias="usageCount",
    )
    max_usage: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("maxUsage", "max_usage"),
        serialization_alias="maxUsage",
        description="0 means unlimited",
    )
    status: TenantStatus = Field(default=TenantStatus.ENABLED)
    last_access_time: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("lastAccessTime", "last_access_time"),
        serialization_alias="lastAccessTime",
    )
    expiry_date: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("expiryDate", "expiry_date"),
        serialization_alias="expiryDate",
        description="Epoch ms; 0 means never expires",
    )

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            legacy = LEGACY_STATUS_LABELS.get(value.strip())
            if legacy is not None:
                return legacy
            return value.strip().upper()
        return value

    @field_validator("expiry_date", "last_access_time", mode="before")
    @classmethod
    def _null_timestamp(cls, value: Any) -> Any:
        # Older tables store null/"" where 0 is meant
        if value is None or value == "":
            return 0
        return value

    def to_json(self) -> Dict[str, Any]:
        """Return the on-disk/wire representation (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)
