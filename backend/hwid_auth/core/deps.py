"""
Dependency wiring for the storage backends and the authorization service.

This module exposes factory functions that construct concrete implementations
behind the Protocol interfaces. It must not contain business logic.

Provided factories:
- build_stores(settings): (TenantStore, RequestLedger) for the configured backend
- build_authorization_service(settings): a fresh service
- get_authorization_service(): process-wide singleton used by routes and the CLI
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Tuple

from hwid_auth.core.config import Settings, get_settings
from hwid_auth.core.contracts import RequestLedger, TenantStore
from hwid_auth.core.logging import get_logger
from hwid_auth.services.authorization_service import AuthorizationService

__all__ = [
    "build_stores",
    "build_authorization_service",
    "get_authorization_service",
]

log = get_logger(__name__)


# -------------------------------
# Store Providers
# -------------------------------

def build_stores(settings: Settings) -> Tuple[TenantStore, RequestLedger]:
    """Construct the tenant store and request ledger selected by settings.storage_backend."""
    if settings.storage_backend == "sql":
        from hwid_auth.db.session import init_schema, make_engine, make_session_factory
        from hwid_auth.repos.sql_request_ledger import SqlAlchemyRequestLedger
        from hwid_auth.repos.sql_tenant_store import SqlAlchemyTenantStore

        engine = make_engine(settings.db_url)
        init_schema(engine)
        factory = make_session_factory(engine)
        return SqlAlchemyTenantStore(factory), SqlAlchemyRequestLedger(factory)

    from hwid_auth.repos.request_ledger import JsonlRequestLedger
    from hwid_auth.repos.tenant_store import JsonFileTenantStore

    return JsonFileTenantStore(settings.tenants_path), JsonlRequestLedger(settings.requests_path)


# -------------------------------
# Authorization Service
# -------------------------------

def build_authorization_service(settings: Optional[Settings] = None) -> AuthorizationService:
    settings = settings or get_settings()
    tenant_store, request_ledger = build_stores(settings)
    log.info("storage initialised", extra={"backend": settings.storage_backend})
    return AuthorizationService(
        tenant_store,
        request_ledger,
        default_tenant_name=settings.default_tenant_name,
    )


@lru_cache(maxsize=1)
def get_authorization_service() -> AuthorizationService:
    """
    Provide the shared AuthorizationService.

    Cached so that every request in the process goes through the same
    store and ledger locks.
    """
    return build_authorization_service()
