"""
Admin CLI for reviewing device requests without the HTTP API.

Works directly against the configured storage backend (STORAGE_BACKEND,
DATA_DIR, ... as for the server) and prints one JSON document to stdout.
On the file backend it takes the same lock files as the server, so both can
write to one data directory.

Usage examples:
  python -m hwid_auth.tools.admin requests
  python -m hwid_auth.tools.admin tenants
  python -m hwid_auth.tools.admin approve HW1 --name Acme --url http://x/jar
  python -m hwid_auth.tools.admin approve HW1 --expiry 1767225600000
  python -m hwid_auth.tools.admin deny HW1

Exit codes: 0 success, 2 validation error, 3 any other failure.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Optional

from hwid_auth.core.deps import build_authorization_service
from hwid_auth.core.errors import ValidationError
from hwid_auth.core.logging import init_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Review and manage HWID authorization requests")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("requests", help="List every ledger entry")
    sub.add_parser("tenants", help="List every tenant record")

    approve = sub.add_parser("approve", help="Approve an HWID")
    approve.add_argument("hwid")
    approve.add_argument("--name", default=None, help="Display name for the tenant")
    approve.add_argument("--url", dest="resource_url", default=None, help="Resource URL to release")
    approve.add_argument(
        "--expiry",
        dest="expiry_date",
        type=int,
        default=0,
        help="Expiry as epoch milliseconds (0 = never)",
    )

    deny = sub.add_parser("deny", help="Deny an HWID and revoke its tenant")
    deny.add_argument("hwid")

    return parser


def _run(args: argparse.Namespace) -> Any:
    service = build_authorization_service()

    if args.command == "requests":
        return [e.to_json() for e in service.list_requests()]
    if args.command == "tenants":
        return {tid: rec.to_json() for tid, rec in service.list_tenants().items()}
    if args.command == "approve":
        tenant_id = service.approve(
            args.hwid,
            name=args.name,
            resource_url=args.resource_url,
            expiry_date=args.expiry_date,
        )
        return {"tenantId": tenant_id}
    if args.command == "deny":
        service.deny(args.hwid)
        return {"denied": args.hwid}
    raise ValueError(f"unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    init_logging("WARNING")

    try:
        result = _run(args)
    except ValidationError as e:
        print(json.dumps({"ok": False, "error": e.code, "message": e.message}, ensure_ascii=False))
        return 2
    except Exception as e:
        msg = str(e) if str(e) else e.__class__.__name__
        print(json.dumps({"ok": False, "error": msg}, ensure_ascii=False))
        return 3

    print(json.dumps({"ok": True, "result": result}, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
