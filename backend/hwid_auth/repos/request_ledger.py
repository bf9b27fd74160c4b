"""
Request ledger stored as newline-delimited JSON (JSONL).

Each line is one self-describing, versioned record:

    {"v":1,"hwid":"HW1","hostname":"host1","os":"win","submittedAt":"...","reviewStatus":"PENDING"}

Lines written by the older pipe-delimited format
(`hwid|hostname|os|timestamp[|status]`) are still understood; lines that fit
neither format are skipped.

Design
------
 - Best effort: the ledger is an audit trail, not the authorization source.
   Read failures behave like an empty ledger (fail-open for the dedup and
   deny checks) and write failures are logged and swallowed.
 - update_status() rewrites only the first matching line; every other line
   is written back byte for byte (line endings included). The rewrite goes
   through a temp file and os.replace().
 - lock() is a cross-process file lock next to the ledger.
   AuthorizationService holds it, together with its own ledger lock, around
   the dedup check + append and around status rewrites.
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import ContextManager, List, Optional

from filelock import FileLock
from pydantic import ValidationError as PydanticValidationError

from hwid_auth.core.logging import get_logger
from hwid_auth.repos.tenant_store import LOCK_TIMEOUT_SECONDS, hold_file_lock
from hwid_auth.schemas.ledger import LedgerEntry, ReviewStatus


__all__ = ["JsonlRequestLedger", "parse_line", "format_entry", "RECORD_VERSION"]

log = get_logger(__name__)

RECORD_VERSION = 1
_LEGACY_DELIMITER = "|"


def format_entry(entry: LedgerEntry) -> str:
    record = {"v": RECORD_VERSION, **entry.to_json()}
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def _parse_legacy(line: str) -> Optional[LedgerEntry]:
    parts = line.split(_LEGACY_DELIMITER)
    if len(parts) < 4:
        return None
    return LedgerEntry(
        hwid=parts[0],
        hostname=parts[1],
        os=parts[2],
        submitted_at=parts[3],
        review_status=parts[4] if len(parts) > 4 else None,
    )


def parse_line(line: str) -> Optional[LedgerEntry]:
    """Parse one ledger line; None for blank or malformed lines."""
    text = line.strip()
    if not text:
        return None
    try:
        if text.startswith("{"):
            data = json.loads(text)
            if not isinstance(data, dict):
                return None
            data.pop("v", None)
            return LedgerEntry.model_validate(data)
        return _parse_legacy(text)
    except (json.JSONDecodeError, PydanticValidationError):
        return None


class JsonlRequestLedger:
    """Append/rewrite ledger of every HWID seen, one JSON record per line."""

    def __init__(self, path: str, lock_timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
        if not isinstance(path, str) or not path.strip():
            raise ValueError("path must be a non-empty string")
        self.path = path
        self._file_lock = FileLock(path + ".lock", timeout=lock_timeout)
        self._ensure_dir()

    # -----------------------------
    # RequestLedger protocol
    # -----------------------------

    def append(self, hwid: str, hostname: str, os_name: str, submitted_at: str) -> None:
        entry = LedgerEntry(
            hwid=hwid,
            hostname=hostname,
            os=os_name,
            submitted_at=submitted_at,
            review_status=ReviewStatus.PENDING,
        )
        line = format_entry(entry) + "\n"
        try:
            if self._missing_trailing_newline():
                line = "\n" + line
            with open(self.path, "a", encoding="utf-8", newline="") as f:
                f.write(line)
                f.flush()
        except OSError as exc:
            log.error("ledger append failed", extra={"hwid": hwid, "path": self.path, "error": str(exc)})

    def update_status(self, hwid: str, status: ReviewStatus) -> None:
        lines = self._read_lines()
        if lines is None:
            return

        updated = False
        out: List[str] = []
        for line in lines:
            if not updated:
                entry = parse_line(line)
                if entry is not None and entry.hwid == hwid:
                    entry = entry.model_copy(update={"review_status": ReviewStatus(status)})
                    out.append(format_entry(entry) + "\n")
                    updated = True
                    continue
            out.append(line)

        if not updated:
            return
        # A legacy file may not end with a newline; keep records on separate lines
        out = [ln if ln.endswith("\n") else ln + "\n" for ln in out]
        self._rewrite(out, hwid)

    def list_all(self) -> List[LedgerEntry]:
        lines = self._read_lines()
        if not lines:
            return []
        entries: List[LedgerEntry] = []
        for line in lines:
            entry = parse_line(line)
            if entry is not None:
                entries.append(entry)
        return entries

    def is_denied(self, hwid: str) -> bool:
        entry = self._find(hwid)
        return entry is not None and entry.review_status == ReviewStatus.DENIED

    def has_entry(self, hwid: str) -> bool:
        return self._find(hwid) is not None

    def lock(self) -> ContextManager[None]:
        return hold_file_lock(self._file_lock, self.path)

    # -----------------------------
    # Internals
    # -----------------------------

    def _find(self, hwid: str) -> Optional[LedgerEntry]:
        for entry in self.list_all():
            if entry.hwid == hwid:
                return entry
        return None

    def _missing_trailing_newline(self) -> bool:
        try:
            with open(self.path, "rb") as f:
                f.seek(0, os.SEEK_END)
                if f.tell() == 0:
                    return False
                f.seek(-1, os.SEEK_END)
                return f.read(1) != b"\n"
        except FileNotFoundError:
            return False

    def _read_lines(self) -> Optional[List[str]]:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                return f.readlines()
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("ledger unreadable, treating as empty", extra={"path": self.path, "error": str(exc)})
            return None

    def _rewrite(self, lines: List[str], hwid: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".ledger-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.writelines(lines)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            log.error("ledger rewrite failed", extra={"hwid": hwid, "path": self.path, "error": str(exc)})
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _ensure_dir(self) -> None:
        d = os.path.dirname(self.path)
        if d and not os.path.exists(d):
            os.makedirs(d, exist_ok=True)
