"""
JSON-file tenant store.

The tenant table is a single JSON object mapping tenant id -> record:

    {
      "TENANT_1718000000000": {"hwid": "...", "tenantName": "...", ...},
      ...
    }

Design
------
 - load() treats a missing or corrupt file (not JSON, not UTF-8, not an
   object) as an empty table; the next save recreates it. Records that fail
   validation are skipped individually. Any other read error raises
   StorageUnavailableError.
 - lock() is a cross-process file lock next to the table. The service holds
   it around each load/mutate/save cycle.
 - save() writes to a temp file in the same directory, fsyncs, then
   os.replace()s it over the table, so concurrent readers see either the old
   or the new table and never a partial one.
 - I/O errors from save() also propagate as StorageUnavailableError because the
   table controls who is authorized.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, ContextManager, Dict, Iterator, Mapping, Optional, Union

from filelock import FileLock, Timeout
from pydantic import ValidationError as PydanticValidationError

from hwid_auth.core.contracts import TenantMatch
from hwid_auth.core.errors import StorageCorruptionError, StorageUnavailableError
from hwid_auth.core.logging import get_logger
from hwid_auth.schemas.tenants import TenantRecord, TenantStatus


__all__ = ["JsonFileTenantStore", "first_match", "decode_table", "hold_file_lock", "LOCK_TIMEOUT_SECONDS"]

log = get_logger(__name__)

# How long a writer waits for another process before giving up
LOCK_TIMEOUT_SECONDS = 10.0


@contextmanager
def hold_file_lock(lock: FileLock, path: str) -> Iterator[None]:
    """Acquire a cross-process lock; a timeout becomes StorageUnavailableError."""
    try:
        lock.acquire()
    except Timeout as exc:
        raise StorageUnavailableError(
            "Timed out waiting for storage lock", details={"path": path, "lock": lock.lock_file}
        ) from exc
    try:
        yield
    finally:
        lock.release()


def first_match(
    tenants: Mapping[str, TenantRecord],
    hwid: str,
    status: Optional[TenantStatus] = None,
) -> Optional[TenantMatch]:
    """
    Linear scan in insertion order; the first record with this hwid (and
    status, when given) wins.
    """
    for tenant_id, record in tenants.items():
        if record.hwid != hwid:
            continue
        if status is not None and record.status != status:
            continue
        return tenant_id, record
    return None


def decode_table(raw: Union[str, bytes]) -> Dict[str, TenantRecord]:
    """
    Parse a serialized tenant table.

    Raises StorageCorruptionError when the content is not UTF-8 or not a JSON
    object. Individual invalid records are dropped with a warning.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageCorruptionError("Tenant table is not valid UTF-8", details={"error": str(exc)}) from exc
    try:
        data = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as exc:
        raise StorageCorruptionError("Tenant table is not valid JSON", details={"error": str(exc)}) from exc
    if not isinstance(data, dict):
        raise StorageCorruptionError("Tenant table must be a JSON object")

    tenants: Dict[str, TenantRecord] = {}
    for tenant_id, value in data.items():
        try:
            tenants[str(tenant_id)] = TenantRecord.model_validate(value)
        except PydanticValidationError as exc:
            log.warning(
                "skipping invalid tenant record",
                extra={"tenant_id": tenant_id, "error_count": exc.error_count()},
            )
    return tenants


class JsonFileTenantStore:
    """Tenant table persisted as one JSON document on disk."""

    def __init__(self, path: str, lock_timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
        if not isinstance(path, str) or not path.strip():
            raise ValueError("path must be a non-empty string")
        self.path = path
        self._file_lock = FileLock(path + ".lock", timeout=lock_timeout)
        self._ensure_dir()

    # -----------------------------
    # TenantStore protocol
    # -----------------------------

    def load(self) -> Dict[str, TenantRecord]:
        try:
            with open(self.path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageUnavailableError(
                "Failed to read tenant table", details={"path": self.path, "error": str(exc)}
            ) from exc

        try:
            return decode_table(raw)
        except StorageCorruptionError as exc:
            log.warning("tenant table corrupt, treating as empty", extra={"path": self.path, "error": exc.message})
            return {}

    def save(self, tenants: Dict[str, TenantRecord]) -> None:
        payload: Dict[str, Any] = {tenant_id: record.to_json() for tenant_id, record in tenants.items()}
        text = json.dumps(payload, ensure_ascii=False, indent=2)

        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".tenants-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            raise StorageUnavailableError(
                "Failed to write tenant table", details={"path": self.path, "error": str(exc)}
            ) from exc
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def find_by_hwid(self, hwid: str, status: Optional[TenantStatus] = None) -> Optional[TenantMatch]:
        return first_match(self.load(), hwid, status)

    def lock(self) -> ContextManager[None]:
        return hold_file_lock(self._file_lock, self.path)

    # -----------------------------
    # Internals
    # -----------------------------

    def _ensure_dir(self) -> None:
        d = os.path.dirname(self.path)
        if d and not os.path.exists(d):
            os.makedirs(d, exist_ok=True)
