"""
Shared API router.

Aggregates the sub-routers from hwid_auth.api.routes.*. No top-level prefix:
each sub-router already mounts itself under /api.

Sub-routers included:
- hwid_auth.api.routes.devices -> /api/request, /api/check, /api/getjar
- hwid_auth.api.routes.admin   -> /api/requests, /api/tenants, /api/approve, /api/deny, /api/sync/tenants
"""

from __future__ import annotations

from fastapi import APIRouter

from hwid_auth.api.routes import admin, devices

__all__ = ["router"]

router = APIRouter()
router.include_router(devices.router)
router.include_router(admin.router)
