import pytest

from hwid_auth.schemas.tenants import TenantRecord, TenantStatus
from hwid_auth.services.lifecycle_policy import (
    ReleaseStatus,
    evaluate_release,
    is_expired,
)

NOW = 1_717_243_200_000


def _rec(expiry_date: int = 0, status: TenantStatus = TenantStatus.ENABLED) -> TenantRecord:
    return TenantRecord(hwid="HW", name="n", resource_url="http://x/jar", status=status, expiry_date=expiry_date)


@pytest.mark.parametrize(
    "expiry, expected",
    [
        (0, ReleaseStatus.GRANTED),
        (NOW + 1, ReleaseStatus.GRANTED),
        (NOW, ReleaseStatus.GRANTED),
        (NOW - 1, ReleaseStatus.EXPIRED),
    ],
)
def test_evaluate_release_by_expiry(expiry: int, expected: ReleaseStatus) -> None:
    assert evaluate_release(_rec(expiry), NOW) is expected


def test_missing_or_disabled_record_is_invalid() -> None:
    assert evaluate_release(None, NOW) is ReleaseStatus.INVALID
    assert evaluate_release(_rec(status=TenantStatus.DISABLED), NOW) is ReleaseStatus.INVALID
    # Disabled wins over expired
    assert evaluate_release(_rec(NOW - 1, TenantStatus.DISABLED), NOW) is ReleaseStatus.INVALID


def test_is_expired_boundaries() -> None:
    assert is_expired(_rec(0), NOW + 10**12) is False
    assert is_expired(_rec(NOW - 1), NOW) is True
