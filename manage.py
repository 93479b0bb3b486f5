#!/usr/bin/env python3
"""
Stock ledger management CLI.

Usage:
    python manage.py serve [--reload]     Run the API with uvicorn
    python manage.py migrate [--no-backup]
    python manage.py status               Schema version and health checks
    python manage.py audit [PRODUCT ...]  Verify movement chains
"""

import argparse
import asyncio
import sys
from pathlib import Path

from src.config import get_settings


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("src.api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    from src.core.exceptions import DatabaseError
    from src.infrastructure.storage.sqlite.migrations import initialize_database

    try:
        results = asyncio.run(
            initialize_database(args.db_path, create_backup_before=not args.no_backup)
        )
    except DatabaseError as e:
        print(f"Migration aborted: {e.message}")
        return 1

    if not results:
        print("Schema is current.")
    for result in results:
        mark = "ok" if result.success else "FAILED"
        print(f"v{result.version} {result.name}: {mark} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"    {result.error}")
    return 0 if all(r.success for r in results) else 1


async def _status(db_path: Path | None) -> int:
    from src.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        verify_schema_integrity,
    )

    status = await get_migration_status(db_path)
    if not status["exists"]:
        print("No database yet; run 'migrate'.")
        return 1

    print(f"Schema version: {status['current_version']}")
    if status["pending_migrations"]:
        print(f"Pending: {', '.join(status['pending_migrations'])}")

    failed = 0
    for check in await verify_schema_integrity(db_path):
        print(f"  [{check['status']}] {check['check']}")
        if check["status"] != "PASS":
            failed += 1
            detail = {k: v for k, v in check.items() if k not in ("check", "status")}
            print(f"         {detail}")
    return 1 if failed else 0


def cmd_status(args: argparse.Namespace) -> int:
    return asyncio.run(_status(args.db_path))


async def _audit(product_ids: list[str]) -> int:
    from src.application.services import get_stock_engine
    from src.infrastructure.storage import close_storage, get_product_store

    try:
        if not product_ids:
            products = await (await get_product_store()).list_products(limit=None)
            product_ids = [p.id for p in products]

        engine = await get_stock_engine()
        broken = 0
        for product_id in product_ids:
            report = await engine.verify_stock_movement_integrity(product_id)
            if report.valid:
                print(f"[PASS] {product_id} ({report.total_movements or 0} movements)")
                continue
            broken += 1
            print(f"[FAIL] {product_id}")
            for issue in report.errors:
                print(f"       {issue.issue.value}: {issue.message}")
    finally:
        await close_storage()

    if broken:
        print(f"{broken} product ledger(s) inconsistent.")
        return 1
    print("All audited ledgers are consistent.")
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    # Read-only: findings are reported, never repaired
    return asyncio.run(_audit(args.product_ids))


def build_parser() -> argparse.ArgumentParser:
    api = get_settings().api
    parser = argparse.ArgumentParser(
        description="Stock ledger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API")
    serve.add_argument("--host", default=api.host)
    serve.add_argument("--port", type=int, default=api.port)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    for name, func, help_text in (
        ("migrate", cmd_migrate, "Apply pending schema migrations"),
        ("status", cmd_status, "Show schema version and run health checks"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--db-path", type=Path, help="Database file (default from settings)")
        cmd.set_defaults(func=func)
        if name == "migrate":
            cmd.add_argument("--no-backup", action="store_true", help="Skip the backup copy")

    audit = sub.add_parser("audit", help="Verify product movement chains")
    audit.add_argument("product_ids", nargs="*", help="Products to audit (default: all)")
    audit.set_defaults(func=cmd_audit)

    return parser


def main() -> None:
    args = build_parser().parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
