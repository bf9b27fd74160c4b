"""
Pydantic models for the request ledger.

Every HWID the service has ever seen gets exactly one LedgerEntry. hwid,
hostname, os and submittedAt never change after the entry is written;
reviewStatus is rewritten by admin actions.
"""

from __future__ import annotations

import enum
from typing import Any, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


__all__ = ["ReviewStatus", "LedgerEntry", "LEGACY_REVIEW_LABELS", "UNKNOWN_HOST"]


UNKNOWN_HOST = "Unknown"


class ReviewStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


LEGACY_REVIEW_LABELS: Dict[str, ReviewStatus] = {
    "待審核": ReviewStatus.PENDING,
    "已允許": ReviewStatus.APPROVED,
    "已拒絕": ReviewStatus.DENIED,
}


class LedgerEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hwid: str = Field(..., min_length=1)
    hostname: str = Field(default=UNKNOWN_HOST)
    os: str = Field(default=UNKNOWN_HOST)
    submitted_at: str = Field(
        ...,
        validation_alias=AliasChoices("submittedAt", "submitted_at", "time"),
        serialization_alias="submittedAt",
        description="ISO-8601 UTC timestamp of first sighting",
    )
    review_status: ReviewStatus = Field(
        default=ReviewStatus.PENDING,
        validation_alias=AliasChoices("reviewStatus", "review_status", "status"),
        serialization_alias="reviewStatus",
    )

    @field_validator("review_status", mode="before")
    @classmethod
    def _legacy_status(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return ReviewStatus.PENDING
        if isinstance(value, str):
            legacy = LEGACY_REVIEW_LABELS.get(value.strip())
            return legacy if legacy is not None else value.strip().upper()
        return value

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
