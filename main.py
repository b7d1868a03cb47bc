"""Command-line interface for the user directory service."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Run `pip install -e .` to install dependencies."
    ) from exc

from userhub.config import ServiceConfig, load_config
from userhub.database import Database, DatabaseError
from userhub.presentation import card_from_record, render_card_text

logger = logging.getLogger("userhub.main")

_DEFAULT_SERVICE_URL = "http://localhost:8000"
_USERS_ENDPOINT = "/api/go/users"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User directory service utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration file (defaults to USERHUB_CONFIG or config/service.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the user database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (overrides the configuration)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listening port (overrides the configuration)",
    )

    create_parser = subparsers.add_parser("create-user", help="Insert a user directly into the database")
    create_parser.add_argument("name", help="Display name for the user")
    create_parser.add_argument("email", help="Email address for the user")

    show_parser = subparsers.add_parser(
        "show-users", help="Print the users known to a running service as cards"
    )
    show_parser.add_argument(
        "--service-url",
        default=_DEFAULT_SERVICE_URL,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user", "show-users"}

    prefix: list[str] = []
    if args_list[:1] == ["--config"] and len(args_list) >= 2:
        prefix, args_list = args_list[:2], args_list[2:]
    elif args_list and args_list[0].startswith("--config="):
        prefix, args_list = args_list[:1], args_list[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args([*prefix, *args_list])
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args([*prefix, *args_list])
            args_list = ["serve", *args_list]

    return parser.parse_args([*prefix, *args_list])


def _open_database(config: ServiceConfig) -> Database:
    database = Database(config.database_path, busy_timeout=config.busy_timeout)
    database.initialize()
    logger.info("Database initialised at %s", config.database_path)
    return database


def _serve(*, config: ServiceConfig, database: Database, host: str | None, port: int | None) -> None:
    from userhub.application import create_application
    import uvicorn

    bind_host = host or config.host
    bind_port = port or config.port
    logger.info("Starting user service on http://%s:%s", bind_host, bind_port)

    app = create_application(config=config, database=database)
    uvicorn.run(
        app,
        host=bind_host,
        port=bind_port,
        log_level=config.log_level.lower(),
    )


def _create_user(database: Database, name: str, email: str) -> int:
    name = name.strip()
    email = email.strip()
    if not name or not email:
        print("Both a name and an email address are required.", file=sys.stderr)
        return 1

    try:
        user = database.create_user(name, email)
    except DatabaseError as exc:
        print(f"Failed to create user: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.name} <{user.email}>")
    return 0


def _show_users(service_url: str) -> int:
    endpoint = service_url.rstrip("/") + _USERS_ENDPOINT

    try:
        response = httpx.get(endpoint, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact user service: {exc}", file=sys.stderr)
        return 1

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}", file=sys.stderr)
        return 1

    try:
        records = response.json()
    except ValueError:
        print("Service returned an unexpected response format.", file=sys.stderr)
        return 1

    if not records:
        print("No users are currently registered.")
        return 0

    print(f"{len(records)} user(s) found:")
    for record in records:
        print("-" * 40)
        for line in render_card_text(card_from_record(record)):
            print(line)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    config = load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command == "show-users":
        return _show_users(args.service_url)

    database = _open_database(config)

    if args.command == "serve":
        _serve(config=config, database=database, host=args.host, port=args.port)
    elif args.command == "create-user":
        return _create_user(database, args.name, args.email)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
