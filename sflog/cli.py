"""Command line entry point for sflog.

Subcommands:

- ``setup``: deploy the ``Log__c`` object and permission set if missing
- ``logs``: print stored logs, newest first
- ``send``: write a single log entry

The org comes from ``SF_INSTANCE_URL``/``SF_ACCESS_TOKEN`` (or the refresh
token settings), see ``sflog.config``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import httpx

from .logger import Logger
from .logging_utils import configure_logging
from .models.log import LOG_LEVELS, Log
from .provisioning import SetupError
from .services.metadata import PermissionSetNotFoundError
from .services.salesforce import SalesforceError, get_connection


def _format_log(log: Log) -> str:
    line = f"{log.timestamp} {log.level.upper():5} [{log.system}/{log.user}] {log.message}"
    if log.stack:
        line += "\n" + log.stack
    return line


async def _run(args: argparse.Namespace) -> int:
    conn = await get_connection(refresh=not args.no_refresh)
    logger = Logger(conn, echo=args.echo or None)

    if args.command == "setup":
        await logger.setup()
        print("Log object is ready")
    elif args.command == "logs":
        for log in await logger.get_logs(limit=args.limit):
            print(json.dumps(log.to_dict()) if args.json else _format_log(log))
    elif args.command == "send":
        await logger.log(
            {
                "level": args.level,
                "message": args.message,
                "stack": args.stack,
                "system": args.system,
                "user": args.user,
            }
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sflog",
        description="Store and read application logs in a Salesforce org",
    )
    parser.add_argument("--no-refresh", action="store_true", help="Use the access token as is")
    parser.add_argument("--echo", action="store_true", help="Echo written entries to stdout")
    parser.add_argument("--log-level", default=None, help="Level of sflog's own diagnostics")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    subparsers.add_parser("setup", help="Create the Log__c object if it does not exist")

    logs_parser = subparsers.add_parser("logs", help="Print stored logs, newest first")
    logs_parser.add_argument("--limit", type=int, default=20, help="Maximum entries (0 for no limit)")
    logs_parser.add_argument("--json", action="store_true", help="One JSON object per line")

    send_parser = subparsers.add_parser("send", help="Write one log entry")
    send_parser.add_argument("level", choices=LOG_LEVELS)
    send_parser.add_argument("message")
    send_parser.add_argument("--stack")
    send_parser.add_argument("--system")
    send_parser.add_argument("--user")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run the selected subcommand.

    Returns:
        Exit code 0 for success, 1 when the org reports an error or cannot
        be reached.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return asyncio.run(_run(args))
    except (SalesforceError, SetupError, PermissionSetNotFoundError, httpx.HTTPError) as exc:
        print(f"sflog: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
