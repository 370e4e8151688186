"""Main entry point for the EntityDesk CLI."""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from entitydesk.api.client import CollectionClient
from entitydesk.api.session import Session
from entitydesk.cli import __version__
from entitydesk.cli.auth import login, logout, register
from entitydesk.cli.config import Config
from entitydesk.config import settings
from entitydesk.dashboard import Dashboard, load_dashboard
from entitydesk.entities import SCHEMAS, get_schema, schema_names
from entitydesk.export.aggregate import money
from entitydesk.kernel.cells import LIST_TEXT_LIMIT, STATUS_LABELS, render_cell
from entitydesk.kernel.controller import RecordManager
from entitydesk.kernel.types import EntitySchema


def print_help():
    """Print help message."""
    print(f"""
EntityDesk CLI v{__version__}

Usage:
  entitydesk [options] <command> [entity]

Commands:
  login               Sign in with email and password
  register            Create an account and sign in with it
  logout              Forget the stored credential
  dashboard           Collection counts, this month's totals, appointment statuses
  list <entity>       Show records, newest first
  export <entity>     Write the filtered records to .xlsx and/or .html

Entities:
  {", ".join(schema_names())}

Options:
  --api-url URL       Override API endpoint (default: {settings.API_URL})
  --email EMAIL       Login email (prompted when omitted)
  --password PASS     Login password (prompted when omitted)
  --name NAME         register: display name (prompted when omitted)
  --phone PHONE       register: phone number
  --role ROLE         register: member, employee or admin (default: member)
  --search TEXT       Case-insensitive search over the entity's search keys
  --filter KEY=VALUE  Filter value, repeatable (date ranges: occurredAtFrom=2024-01-01)
  --sort KEY          Sort key (default: the entity's own)
  --order asc|desc    Sort direction
  --xlsx PATH         Workbook output path
  --html PATH         Printable document output path
  --all               list: show every row; logout: every environment
  -h, --help          Show this help
  -v, --version       Show version

Environment:
  ENTITYDESK_API_URL    Override API endpoint (same as --api-url)
  ENTITYDESK_LOG_LEVEL  Logging level (default: WARNING)

Examples:
  entitydesk login --api-url http://localhost:4000/api
  entitydesk list transection --filter type=income --search coffee
  entitydesk export appointments --filter startAtFrom=2024-05-01 --html may.html
""")


COMMANDS = ("login", "register", "logout", "dashboard", "list", "export")


def _require_value(args: list[str], i: int, flag: str) -> str:
    if i + 1 >= len(args):
        print(f"Error: {flag} requires a value")
        sys.exit(1)
    return args[i + 1]


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (login, register, logout, dashboard, list, export)
        entity: str | None
        api_url, email, password, name, phone, role: str | None
        search, sort, order, xlsx, html: str | None
        filters: list[tuple[str, str]]
        all: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "entity": None,
        "api_url": None,
        "email": None,
        "password": None,
        "name": None,
        "phone": None,
        "role": None,
        "search": None,
        "filters": [],
        "sort": None,
        "order": None,
        "xlsx": None,
        "html": None,
        "all": False,
        "show_help": False,
        "show_version": False,
    }
    value_flags = {
        "--api-url": "api_url",
        "--email": "email",
        "--password": "password",
        "--name": "name",
        "--phone": "phone",
        "--role": "role",
        "--search": "search",
        "--sort": "sort",
        "--order": "order",
        "--xlsx": "xlsx",
        "--html": "html",
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in COMMANDS and result["command"] is None:
            result["command"] = arg
        elif arg in value_flags:
            result[value_flags[arg]] = _require_value(args, i, arg)
            i += 1
        elif arg == "--filter":
            raw = _require_value(args, i, arg)
            key, sep, value = raw.partition("=")
            if not sep or not key:
                print(f"Error: --filter expects KEY=VALUE, got {raw!r}")
                sys.exit(1)
            result["filters"].append((key, value))
            i += 1
        elif arg == "--all":
            result["all"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'entitydesk --help' for usage.")
            sys.exit(1)
        elif result["command"] in ("list", "export") and result["entity"] is None:
            result["entity"] = arg
        else:
            print(f"Unknown command: {arg}")
            print("Run 'entitydesk --help' for usage.")
            sys.exit(1)

        i += 1

    if result["order"] not in (None, "asc", "desc"):
        print("Error: --order must be asc or desc")
        sys.exit(1)

    return result


# -- list / export --


def _resolve_schema(name: str | None) -> EntitySchema | None:
    if not name:
        print("Error: an entity is required, one of: " + ", ".join(schema_names()))
        return None
    try:
        return get_schema(name)
    except KeyError:
        print(f"Unknown entity: {name} (expected one of: {', '.join(schema_names())})")
        return None


def _apply_criteria(manager: RecordManager, args: dict) -> bool:
    if args["search"]:
        manager.set_search(args["search"])
    # A filter that waits on another (category on type) is retried once the
    # rest are in place.
    deferred = []
    for key, value in args["filters"]:
        try:
            if not manager.set_filter(key, value):
                deferred.append((key, value))
        except KeyError:
            print(f"Unknown filter for {manager.schema.endpoint}: {key}")
            return False
    for key, value in deferred:
        if not manager.set_filter(key, value):
            print(f"Filter {key} is not available until another filter is set")
            return False
    if args["sort"] or args["order"]:
        manager.set_sort(args["sort"] or manager.sort_key, args["order"])
    return True


def print_table(manager: RecordManager, show_all: bool = False):
    """Print the revealed rows as a plain-text table."""
    if show_all:
        manager.visible_records()
        while manager.has_more:
            manager.reveal_more()
    records = manager.visible_records()
    columns = manager.schema.columns

    rows = [[str(render_cell(c, r, limit=LIST_TEXT_LIMIT, tz=manager.tz)) for c in columns] for r in records]
    headers = [c.label for c in columns]
    widths = [max([len(h)] + [len(row[i]) for row in rows]) for i, h in enumerate(headers)]

    print("  ".join(h.ljust(w) for h, w in zip(headers, widths)))
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))

    matched = len(manager.sorted_records())
    print(f"\nShowing {len(records)} of {matched} matching ({manager.total_label()} fetched)")
    if manager.has_more:
        print("Use --all to show every row.")


def _session(config: Config) -> Session:
    def on_expired():
        config.clear_environment()
        print(f"Session for {config.api_url} is no longer valid. Run 'entitydesk login'.")

    return Session(config.token, on_expired=on_expired)


async def run_collection(config: Config, args: dict) -> bool:
    schema = _resolve_schema(args["entity"])
    if schema is None:
        return False

    session = _session(config)
    async with CollectionClient(config.api_url, session, timeout=settings.REQUEST_TIMEOUT) as client:
        manager = RecordManager(schema, client, session=session)
        if not await manager.fetch_all():
            if manager.state.last_error is not None:
                print(f"Error ({manager.state.last_error.kind}): {manager.state.last_error.message}")
            return False

    if not _apply_criteria(manager, args):
        return False

    if args["command"] == "list":
        print_table(manager, show_all=args["all"])
        return True

    xlsx_path, html_path = args["xlsx"], args["html"]
    if xlsx_path or not html_path:
        filename, data = await manager.export_workbook()
        target = Path(xlsx_path or filename)
        target.write_bytes(data)
        print(f"Wrote {target} ({len(manager.sorted_records())} records)")
    if html_path:
        Path(html_path).write_text(manager.export_document(), encoding="utf-8")
        print(f"Wrote {html_path}")
    return True



def print_dashboard(dashboard: Dashboard):
    print("Collections")
    for endpoint, count in dashboard.counts.items():
        print(f"  {SCHEMAS[endpoint].title:<20} {count:>6}")

    since = dashboard.month_start.strftime("%d/%m/%Y") if dashboard.month_start else "-"
    month = dashboard.month
    print(f"\nThis month (since {since})")
    print(f"  {'Income':<20} {money(month.income):>12}")
    print(f"  {'Expense':<20} {money(month.expense):>12}")
    print(f"  {'Net':<20} {money(month.net):>12}")
    print(f"  {'Transactions':<20} {dashboard.transaction_count:>12}")
    print(f"  {'Appointments':<20} {dashboard.appointment_count:>12}")

    if dashboard.net_by_day:
        print("\nNet by day")
        for day, net in dashboard.net_by_day:
            print(f"  {day}  {money(net):>12}")

    if dashboard.appointment_status:
        print("\nAppointments by status")
        for status, count in sorted(dashboard.appointment_status.items()):
            print(f"  {STATUS_LABELS.get(status, status):<20} {count:>6}")

    for error in dashboard.errors:
        print(f"Unavailable: {error}")


async def run_dashboard(config: Config) -> bool:
    session = _session(config)
    if session.is_expired():
        session.invalidate()
        return False
    async with CollectionClient(config.api_url, session, timeout=settings.REQUEST_TIMEOUT) as client:
        dashboard = await load_dashboard(client, role=session.role)
    if dashboard.auth_failed:
        session.invalidate()
        return False
    print_dashboard(dashboard)
    return not dashboard.errors


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"entitydesk {__version__}")
        return

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = Config(api_url_override=args["api_url"])

    if args["command"] == "login":
        success = asyncio.run(login(config, args["email"], args["password"]))
        sys.exit(0 if success else 1)

    elif args["command"] == "register":
        success = asyncio.run(
            register(config, args["email"], args["password"], args["name"], args["phone"], args["role"])
        )
        sys.exit(0 if success else 1)

    elif args["command"] == "logout":
        success = logout(config, logout_all=args["all"])
        sys.exit(0 if success else 1)

    elif args["command"] in ("dashboard", "list", "export"):
        if not config.is_authenticated:
            print(f"Not authenticated to {config.api_url}")
            print("Run 'entitydesk login' first.")
            sys.exit(1)
        if args["command"] == "dashboard":
            success = asyncio.run(run_dashboard(config))
        else:
            success = asyncio.run(run_collection(config, args))
        sys.exit(0 if success else 1)

    else:
        print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
