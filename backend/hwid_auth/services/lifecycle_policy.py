"""
Lifecycle policy applied when a resource is about to be released.

Pure functions over a TenantRecord and the current time (epoch ms):
- is_expired(record, now_ms): expiry set and already passed
- evaluate_release(record, now_ms): GRANTED / EXPIRED / INVALID

Expiry is evaluated at read time only. An expired record stays ENABLED in
storage and keeps failing the release check until an admin acts on it.
usage_count/max_usage are not consulted.
"""

from __future__ import annotations

import enum
from typing import Optional

from hwid_auth.schemas.tenants import TenantRecord, TenantStatus

__all__ = ["ReleaseStatus", "is_expired", "evaluate_release"]


class ReleaseStatus(str, enum.Enum):
    GRANTED = "granted"
    EXPIRED = "expired"
    INVALID = "invalid"


def is_expired(record: TenantRecord, now_ms: int) -> bool:
    return record.expiry_date != 0 and now_ms > record.expiry_date


def evaluate_release(record: Optional[TenantRecord], now_ms: int) -> ReleaseStatus:
    """
    Decide whether a device's resource may be released.

    INVALID when there is no ENABLED record at all, EXPIRED when the record
    was valid but its expiry has passed, GRANTED otherwise. EXPIRED and INVALID
    are kept apart so a client can tell "lapsed" from "never approved".
    """
    if record is None or record.status != TenantStatus.ENABLED:
        return ReleaseStatus.INVALID
    if is_expired(record, now_ms):
        return ReleaseStatus.EXPIRED
    return ReleaseStatus.GRANTED
