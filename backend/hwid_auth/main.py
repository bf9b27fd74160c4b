"""
FastAPI application entrypoint.

- Configures CORS (the admin console and device clients call cross-origin).
- Registers standardized error handlers.
- Initializes structured logging.
- Includes the health route and the device/admin API routers.

Run locally:
  uvicorn hwid_auth.main:app --reload --port 10000
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hwid_auth.api.router import router as api_router
from hwid_auth.core.errors import register_exception_handlers
from hwid_auth.core.logging import init_logging


def _create_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Reads from ALLOW_ORIGINS (comma-separated). Defaults to "*" if unset.
    """
    raw = os.getenv("ALLOW_ORIGINS", "*").strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def _create_infra_router() -> APIRouter:
    router = APIRouter(tags=["infra"])

    @router.get("/health")
    def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return router


def get_application() -> FastAPI:
    """
    Construct the FastAPI app with CORS, logging, routers, and error handlers.
    """
    init_logging()

    app = FastAPI(title="HWID Authorization API", version=os.getenv("APP_VERSION", "0.1.0"))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_create_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(_create_infra_router())
    app.include_router(api_router)

    register_exception_handlers(app)

    return app


# ASGI application
app = get_application()
