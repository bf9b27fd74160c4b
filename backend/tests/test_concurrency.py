"""
Concurrency properties of AuthorizationService.

The fakes can be given artificial delays inside save()/has_entry() so that an
unserialized read-modify-write would reliably lose updates or duplicate
ledger rows.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from hwid_auth.repos.request_ledger import JsonlRequestLedger
from hwid_auth.repos.tenant_store import JsonFileTenantStore
from hwid_auth.schemas.ledger import ReviewStatus
from hwid_auth.services.authorization_service import AuthorizationService
from tests.fakes import FakeRequestLedger, FakeTenantStore


N = 25


def _run_parallel(fn, args):
    with ThreadPoolExecutor(max_workers=len(args)) as pool:
        return list(pool.map(fn, args))


def test_concurrent_approvals_lose_no_updates_with_slow_store(clock) -> None:
    store = FakeTenantStore(write_delay=0.005)
    service = AuthorizationService(store, FakeRequestLedger(), clock=clock)
    hwids = [f"HW-{i}" for i in range(N)]

    ids = _run_parallel(lambda h: service.approve(h, h, f"http://x/{h}"), hwids)

    tenants = service.list_tenants()
    assert len(set(ids)) == N
    assert len(tenants) == N
    assert {rec.hwid for rec in tenants.values()} == set(hwids)
    assert all(service.check_access(h) for h in hwids)


def test_concurrent_approvals_on_file_store(tmp_path: Path, clock) -> None:
    service = AuthorizationService(
        JsonFileTenantStore(str(tmp_path / "tenants.json")),
        JsonlRequestLedger(str(tmp_path / "requests.jsonl")),
        clock=clock,
    )
    hwids = [f"HW-{i}" for i in range(N)]

    _run_parallel(service.approve, hwids)

    # A fresh store instance reads what actually reached disk
    on_disk = JsonFileTenantStore(str(tmp_path / "tenants.json")).load()
    assert {rec.hwid for rec in on_disk.values()} == set(hwids)


def test_concurrent_first_sightings_produce_one_ledger_entry(clock) -> None:
    ledger = FakeRequestLedger(read_delay=0.005)
    service = AuthorizationService(FakeTenantStore(), ledger, clock=clock)

    decisions = _run_parallel(lambda _: service.request_access("HW1", "host1", "win"), range(N))

    assert all(not d.authorized and not d.denied for d in decisions)
    assert [e.hwid for e in ledger.entries] == ["HW1"]


def test_concurrent_approve_and_deny_of_different_devices(clock) -> None:
    store = FakeTenantStore(write_delay=0.002)
    service = AuthorizationService(store, FakeRequestLedger(), clock=clock)
    for i in range(N):
        service.approve(f"OLD-{i}")

    def work(i: int) -> None:
        service.deny(f"OLD-{i}")
        service.approve(f"NEW-{i}")

    _run_parallel(work, list(range(N)))

    hwids = {rec.hwid for rec in service.list_tenants().values()}
    assert hwids == {f"NEW-{i}" for i in range(N)}


class _PausingLedger(FakeRequestLedger):
    """Blocks inside update_status(pause_on) until released."""

    def __init__(self, pause_on: ReviewStatus) -> None:
        super().__init__()
        self.pause_on = pause_on
        self.entered = threading.Event()
        self.release = threading.Event()

    def update_status(self, hwid: str, status: ReviewStatus) -> None:
        super().update_status(hwid, status)
        if status == self.pause_on and not self.entered.is_set():
            self.entered.set()
            self.release.wait(timeout=5)


@pytest.mark.parametrize(
    "first, second, final_status, authorized",
    [
        ("deny", "approve", ReviewStatus.APPROVED, True),
        ("approve", "deny", ReviewStatus.DENIED, False),
    ],
)
def test_same_hwid_approve_and_deny_leave_ledger_and_table_in_step(
    clock, first: str, second: str, final_status: ReviewStatus, authorized: bool
) -> None:
    pause_on = ReviewStatus.DENIED if first == "deny" else ReviewStatus.APPROVED
    ledger = _PausingLedger(pause_on)
    service = AuthorizationService(FakeTenantStore(), ledger, clock=clock)
    service.request_access("HW1", "host1", "win")
    if first == "deny":
        service.approve("HW1", "Acme", "http://x/jar")

    first_thread = threading.Thread(target=getattr(service, first), args=("HW1",))
    first_thread.start()
    assert ledger.entered.wait(timeout=5)

    second_thread = threading.Thread(target=getattr(service, second), args=("HW1",))
    second_thread.start()
    # The second transition waits until the first has finished both writes
    second_thread.join(timeout=0.1)
    assert second_thread.is_alive()

    ledger.release.set()
    first_thread.join(timeout=5)
    second_thread.join(timeout=5)

    assert [e.review_status for e in ledger.entries] == [final_status]
    has_tenant = any(rec.hwid == "HW1" for rec in service.list_tenants().values())
    assert has_tenant is authorized
    assert service.request_access("HW1").authorized is authorized
    assert service.request_access("HW1").denied is (not authorized)


def test_two_services_sharing_data_files_lose_no_approvals(tmp_path: Path, clock) -> None:
    # Separate instances have separate in-process locks, like the server and the admin CLI
    def make_service() -> AuthorizationService:
        return AuthorizationService(
            JsonFileTenantStore(str(tmp_path / "tenants.json")),
            JsonlRequestLedger(str(tmp_path / "requests.jsonl")),
            clock=clock,
        )

    server, cli = make_service(), make_service()
    jobs = [(server if i % 2 else cli, f"HW-{i}") for i in range(N)]

    _run_parallel(lambda job: job[0].approve(job[1]), jobs)

    on_disk = JsonFileTenantStore(str(tmp_path / "tenants.json")).load()
    assert {rec.hwid for rec in on_disk.values()} == {hwid for _, hwid in jobs}
