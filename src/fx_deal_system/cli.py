"""Command-line interface for the FX Deal System."""

import argparse
import json
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from fx_deal_system import __version__
from fx_deal_system.api.schemas import TIMESTAMP_FORMAT, DealImportItem
from fx_deal_system.config import LogLevel, get_settings
from fx_deal_system.domain.deals import DealResponse
from fx_deal_system.exceptions import FXDealSystemError
from fx_deal_system.logging_config import configure_logging
from fx_deal_system.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteDealRepository,
    SQLiteTransactionManager,
)
from fx_deal_system.services.deals import DealServiceImpl


def get_default_db_path() -> Path:
    """Get the default database path in user's home directory."""
    return Path.home() / ".fx_deal_system" / "deals.db"


def create_app(db_path: Path | None = None) -> tuple[SQLiteDatabase, DealServiceImpl]:
    """Create and initialize the application with database and services."""
    if db_path is None:
        db_path = get_default_db_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    db = SQLiteDatabase(str(db_path))
    db.initialize()

    deal_service = DealServiceImpl(
        deal_repo=SQLiteDealRepository(db),
        transaction_manager=SQLiteTransactionManager(db),
    )

    return db, deal_service


def _resolve_db_path(args: argparse.Namespace) -> Path:
    return Path(args.database) if args.database else get_default_db_path()


def _require_database(db_path: Path) -> bool:
    if not db_path.exists():
        print(f"Error: Database not found at {db_path}")
        print("Run 'fxd init' to create a new database")
        return False
    return True


def _format_deal(response: DealResponse) -> str:
    timestamp = (
        response.deal_timestamp.strftime(TIMESTAMP_FORMAT)
        if response.deal_timestamp
        else "-"
    )
    return (
        f"{response.deal_unique_id}  {response.from_currency_iso_code}/"
        f"{response.to_currency_iso_code}  {response.deal_amount}  {timestamp}"
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = _resolve_db_path(args)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    db.close()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show database status."""
    db_path = _resolve_db_path(args)

    if not db_path.exists():
        print(f"No database found at {db_path}")
        print("Run 'fxd init' to create a new database")
        return 1

    db = SQLiteDatabase(str(db_path))
    try:
        count = SQLiteDealRepository(db).count()
    finally:
        db.close()

    print(f"Database: {db_path}")
    print(f"Deals: {count}")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"FX Deal System v{__version__}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import deals from a JSON file holding one deal object or an array of them."""
    file_path = Path(args.file)

    if not file_path.exists():
        print(f"Error: File not found: {file_path}")
        return 1

    db_path = _resolve_db_path(args)
    if not _require_database(db_path):
        return 1

    try:
        payload = json.loads(file_path.read_text())
    except json.JSONDecodeError as e:
        print(f"Error: {file_path} is not valid JSON: {e}")
        return 1

    items = payload if isinstance(payload, list) else [payload]
    try:
        requests = [DealImportItem.model_validate(item).to_domain() for item in items]
    except ValidationError as e:
        print(f"Error: could not read deals from {file_path}")
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            print(f"  - {location}: {err['msg']}")
        return 1

    db, deal_service = create_app(db_path)
    try:
        responses = deal_service.import_deals(requests)
    finally:
        db.close()

    failed = [r for r in responses if not r.succeeded]
    for response in responses:
        marker = "✓" if response.succeeded else "✗"
        print(f"{marker} {response.deal_unique_id}: {response.message}")

    print(f"\nImported {len(responses) - len(failed)} of {len(responses)} deal(s)")
    if failed:
        print(f"⚠ {len(failed)} deal(s) failed")
        return 1
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List all stored deals."""
    db_path = _resolve_db_path(args)
    if not _require_database(db_path):
        return 1

    db, deal_service = create_app(db_path)
    try:
        deals = deal_service.get_all_deals()
    finally:
        db.close()

    if not deals:
        print("No deals found")
        return 0

    print(f"Deals: {len(deals)}")
    for deal in deals:
        print(f"  - {_format_deal(deal)}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Show one deal by its unique id."""
    db_path = _resolve_db_path(args)
    if not _require_database(db_path):
        return 1

    db, deal_service = create_app(db_path)
    try:
        deal = deal_service.get_deal_by_unique_id(args.deal_unique_id)
    except FXDealSystemError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        db.close()

    print(f"Deal ID:   {deal.deal_unique_id}")
    print(f"Row ID:    {deal.id}")
    print(f"From:      {deal.from_currency_iso_code}")
    print(f"To:        {deal.to_currency_iso_code}")
    print(f"Amount:    {deal.deal_amount}")
    if deal.deal_timestamp:
        print(f"Timestamp: {deal.deal_timestamp.strftime(TIMESTAMP_FORMAT)}")
    if deal.created_at:
        print(f"Created:   {deal.created_at.strftime(TIMESTAMP_FORMAT)}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Server dependencies are not installed.")
        print("Install with: pip install fx-deal-system")
        return 1

    settings = get_settings()
    if args.database:
        os.environ["FXD_SQLITE_PATH"] = str(args.database)
        get_settings.cache_clear()

    uvicorn.run(
        "fx_deal_system.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload or settings.api_reload,
        workers=args.workers or settings.api_workers,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="fxd",
        description="FX Deal System - Validate, deduplicate and store FX deals",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show log output at the configured level instead of warnings only",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # status command
    status_parser = subparsers.add_parser("status", help="Show database status")
    status_parser.set_defaults(func=cmd_status)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    # import command
    import_parser = subparsers.add_parser("import", help="Import deals from a JSON file")
    import_parser.add_argument(
        "file",
        help="JSON file with a deal object or an array of deals",
    )
    import_parser.set_defaults(func=cmd_import)

    # list command
    list_parser = subparsers.add_parser("list", help="List all deals")
    list_parser.set_defaults(func=cmd_list)

    # show command
    show_parser = subparsers.add_parser("show", help="Show a deal by its unique id")
    show_parser.add_argument("deal_unique_id", help="Deal unique ID")
    show_parser.set_defaults(func=cmd_show)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--workers", type=int, default=None, help="Number of worker processes"
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload",
    )
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    if not args.verbose:
        settings = settings.model_copy(update={"log_level": LogLevel.WARNING})
    configure_logging(settings)

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
