"""
Pytest configuration for backend tests.

Fixtures:
- clock: FrozenClock shared by a test and its service
- fake_service: AuthorizationService over in-memory fakes
- file_service: AuthorizationService over the JSON/JSONL file stores in tmp_path
- sql_session_factory: sessionmaker bound to a temporary file-based SQLite database
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Generator

import pytest


# Ensure the 'backend' directory is on sys.path so we can import hwid_auth when running tests from repo root
CURRENT_DIR = Path(__file__).parent
BACKEND_ROOT = (CURRENT_DIR / "..").resolve()
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from hwid_auth.repos.request_ledger import JsonlRequestLedger  # noqa: E402
from hwid_auth.repos.tenant_store import JsonFileTenantStore  # noqa: E402
from hwid_auth.services.authorization_service import AuthorizationService  # noqa: E402
from tests.fakes import FakeRequestLedger, FakeTenantStore, FrozenClock  # noqa: E402


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def fake_service(clock: FrozenClock) -> AuthorizationService:
    return AuthorizationService(FakeTenantStore(), FakeRequestLedger(), clock=clock)


@pytest.fixture
def tenants_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "tenants.json"


@pytest.fixture
def requests_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "hwid_requests.jsonl"


@pytest.fixture
def file_service(tenants_path: Path, requests_path: Path, clock: FrozenClock) -> AuthorizationService:
    return AuthorizationService(
        JsonFileTenantStore(str(tenants_path)),
        JsonlRequestLedger(str(requests_path)),
        clock=clock,
    )


@pytest.fixture
def sql_session_factory(tmp_path: Path) -> Generator:
    """
    Temporary file-based SQLite database (not in-memory, so every session
    and thread sees the same data).
    """
    from hwid_auth.db.session import init_schema, make_engine, make_session_factory

    db_file = tmp_path / "test.db"
    engine = make_engine(f"sqlite:///{db_file.as_posix()}")
    init_schema(engine)
    try:
        yield make_session_factory(engine)
    finally:
        engine.dispose()
