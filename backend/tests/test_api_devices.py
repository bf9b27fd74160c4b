from fastapi import FastAPI
from fastapi.testclient import TestClient

from hwid_auth.api.routes.devices import router as devices_router
from hwid_auth.core.deps import get_authorization_service
from hwid_auth.core.errors import register_exception_handlers
from hwid_auth.services.authorization_service import AuthorizationService


def _make_client(service: AuthorizationService) -> TestClient:
    app = FastAPI()
    app.include_router(devices_router)
    register_exception_handlers(app)

    # Override dependency to inject the in-test service
    app.dependency_overrides[get_authorization_service] = lambda: service
    return TestClient(app)


def test_request_then_check_pending(fake_service: AuthorizationService) -> None:
    client = _make_client(fake_service)

    resp = client.post("/api/request", json={"hwid": "HW1", "hostname": "host1", "os": "win"})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["authorized"] is False
    assert data["denied"] is False

    resp = client.get("/api/check", params={"hwid": "HW1"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "hwid": "HW1", "authorized": False}


def test_missing_hwid_is_400_validation_error(fake_service: AuthorizationService) -> None:
    client = _make_client(fake_service)

    resp = client.post("/api/request", json={"hostname": "host1"}, headers={"x-request-id": "req-7"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "validation_error"
    assert body["request_id"] == "req-7"

    assert client.get("/api/check").status_code == 400
    assert client.get("/api/getjar", params={"hwid": ""}).status_code == 400


def test_getjar_granted_for_approved_device(fake_service: AuthorizationService) -> None:
    fake_service.approve("HW1", "Acme", "http://x/jar", 0)
    client = _make_client(fake_service)

    resp = client.get("/api/getjar", params={"hwid": "HW1"})
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "status": "active", "jarUrl": "http://x/jar"}


def test_getjar_distinguishes_expired_from_invalid(fake_service: AuthorizationService, clock) -> None:
    fake_service.approve("HW-EXP", "Acme", "http://x/jar", clock.now_ms - 1)
    client = _make_client(fake_service)

    expired = client.get("/api/getjar", params={"hwid": "HW-EXP"})
    assert expired.status_code == 403
    assert expired.json()["status"] == "expired"
    assert expired.json()["success"] is False
    assert "jarUrl" not in expired.json()

    invalid = client.get("/api/getjar", params={"hwid": "HW-NONE"})
    assert invalid.status_code == 403
    assert invalid.json() == {"success": False, "status": "invalid"}


def test_denied_device_request_reports_denied(fake_service: AuthorizationService) -> None:
    fake_service.request_access("HW1")
    fake_service.deny("HW1")
    client = _make_client(fake_service)

    resp = client.post("/api/request", json={"hwid": "HW1"})
    assert resp.status_code == 200
    assert resp.json()["denied"] is True
    assert resp.json()["authorized"] is False
