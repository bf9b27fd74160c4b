from pathlib import Path

from fastapi.testclient import TestClient

from hwid_auth.core.config import Settings
from hwid_auth.core.deps import build_authorization_service, build_stores, get_authorization_service
from hwid_auth.main import app
from hwid_auth.repos.request_ledger import JsonlRequestLedger
from hwid_auth.repos.sql_request_ledger import SqlAlchemyRequestLedger
from hwid_auth.repos.sql_tenant_store import SqlAlchemyTenantStore
from hwid_auth.repos.tenant_store import JsonFileTenantStore


def test_build_stores_file_backend(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, storage_backend="file", data_dir=str(tmp_path))
    tenant_store, ledger = build_stores(settings)

    assert isinstance(tenant_store, JsonFileTenantStore)
    assert isinstance(ledger, JsonlRequestLedger)
    assert tenant_store.path == str(tmp_path / "tenants.json")


def test_build_stores_sql_backend(tmp_path: Path) -> None:
    settings = Settings(
        _env_file=None,
        storage_backend="sql",
        db_url=f"sqlite:///{(tmp_path / 'auth.db').as_posix()}",
    )
    tenant_store, ledger = build_stores(settings)

    assert isinstance(tenant_store, SqlAlchemyTenantStore)
    assert isinstance(ledger, SqlAlchemyRequestLedger)
    assert tenant_store.load() == {}


def test_service_default_tenant_name_comes_from_settings(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, data_dir=str(tmp_path), default_tenant_name="Walk-in")
    service = build_authorization_service(settings)

    tenant_id = service.approve("HW1")
    assert service.list_tenants()[tenant_id].name == "Walk-in"


def test_health_and_routes_mounted(fake_service) -> None:
    app.dependency_overrides[get_authorization_service] = lambda: fake_service
    try:
        client = TestClient(app)
        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["status"] == "ok"

        assert client.get("/api/check", params={"hwid": "HW1"}).json()["authorized"] is False
        assert client.get("/api/tenants").status_code == 200
    finally:
        app.dependency_overrides.clear()
