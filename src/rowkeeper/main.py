#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from rowkeeper.adapters.sqlalchemy import SqlAlchemyIdGenerator, build_engine, create_id_store
from rowkeeper.config import (
    ConfigurationError,
    configure_logging,
    get_database_uri,
    get_id_store_config,
)
from rowkeeper.domain.errors import RowkeeperError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from sqlalchemy.engine import Engine


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the rowkeeper id store")
    parser.add_argument(
        "--database-uri",
        help="SQLAlchemy database URI (default: DATABASE_URI or the local data dir)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--echo-sql", action="store_true", help="Log every SQL statement")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-id-store", help="Create the id store table if missing")

    reserve = commands.add_parser("reserve", help="Reserve a block of keys")
    reserve.add_argument("key", help="Counter name, usually the entity table")
    reserve.add_argument("count", type=int, help="Number of keys to reserve")

    show = commands.add_parser("show", help="Print the last key handed out for a counter")
    show.add_argument("key", help="Counter name, usually the entity table")

    args = parser.parse_args(list(argv))
    if args.command == "reserve" and args.count < 0:
        parser.error("count must be non-negative")
    return args


def _run(args: argparse.Namespace, engine: Engine) -> None:
    table_name = get_id_store_config().table_name
    if args.command == "init-id-store":
        create_id_store(engine, table_name=table_name)
        print(f"Id store table {table_name} is ready")
        return

    generator = SqlAlchemyIdGenerator(engine, table_name=table_name)
    if args.command == "reserve":
        if args.count == 0:
            print("Nothing reserved")
            return
        start = generator.reserve(args.key, args.count)
        print(f"{start}..{start + args.count - 1}")
        return
    if args.command == "show":
        print(generator.current_value(args.key))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        echo_sql=parsed_args.echo_sql,
    )

    try:
        engine = build_engine(parsed_args.database_uri or get_database_uri())
    except (ArgumentError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        _run(parsed_args, engine)
    except (ConfigurationError, RowkeeperError, SQLAlchemyError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        engine.dispose()


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
