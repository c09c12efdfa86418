"""Command-line interface for the user registration service."""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace
from typing import Sequence

from registration.config import Settings, load_settings
from registration.database import Database

logger = logging.getLogger("registration.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User registration service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the users database")
    subparsers.add_parser("list-users", help="Print every registered user, newest first")
    clear_parser = subparsers.add_parser("clear-users", help="Delete every registered user")
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP service (default: 3001)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "list-users", "clear-users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, settings: Settings, database: Database) -> None:
    from registration.application import create_application
    import uvicorn

    logger.info("Starting registration service on http://%s:%s", settings.host, settings.port)
    logger.info("API available at %s/users", settings.resolved_api_base_url)

    app = create_application(settings=settings, database=database)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


def _list_users(database: Database) -> None:
    users = database.list_users()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Username':<24}  {'Email':<32}  {'Age':>3}  Created")
    print("-" * 90)
    for user in users:
        created = user.created_at.strftime("%Y-%m-%d %H:%M:%S %Z")
        print(f"{user.id:>4}  {user.username:<24}  {user.email:<32}  {user.age:>3}  {created}")


def _clear_users(database: Database, *, assume_yes: bool) -> None:
    total = database.count_users()
    if total == 0:
        print("No users to delete.")
        return

    if not assume_yes:
        answer = input(f"Delete all {total} user(s)? [y/N]: ").strip().lower()
        if answer not in {"y", "yes"}:
            print("Aborted.")
            return

    removed = database.delete_all_users()
    print(f"Deleted {removed} user(s).")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = load_settings()
    if args.command == "serve":
        overrides = {}
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port
        if overrides:
            settings = replace(settings, **overrides)

    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(settings=settings, database=database)
    elif args.command == "list-users":
        _list_users(database)
    elif args.command == "clear-users":
        _clear_users(database, assume_yes=args.yes)
    elif args.command == "init-db":
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
