"""Command line runner: execute one query against a named connection."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import load_config
from .errors import DatabaseError
from .factory import ConnectionFactory

MODES = ("rows", "row", "col", "field", "execute")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="prefixdb", description=__doc__)
    parser.add_argument("query", help="SQL with {table} markers and ? placeholders")
    parser.add_argument("params", nargs="*", help="Positional parameters bound to ? placeholders")
    parser.add_argument("-c", "--connection", help="Connection name (defaults to default_connection)")
    parser.add_argument("--config", type=Path, help="Path to config.toml")
    parser.add_argument("--mode", choices=MODES, default="rows", help="Result shape to print")
    parser.add_argument(
        "--all-columns",
        action="store_true",
        help="With --mode col, keep reading past empty values",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def run_query(factory: ConnectionFactory, name: str, args: argparse.Namespace) -> Any:
    connection = factory.get_connection(name)
    if args.mode == "row":
        return connection.get_row(args.query, args.params)
    if args.mode == "col":
        return connection.get_col(args.query, args.params, stop_on_empty=not args.all_columns)
    if args.mode == "field":
        return connection.get_field(args.query, args.params)
    if args.mode == "execute":
        connection.execute(args.query, args.params)
        return {"last_id": connection.last_id()}
    return connection.get_rows(args.query, args.params)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file_config = load_config(args.config)
    name = args.connection or file_config.default_connection
    if not name:
        print("No connection given and no default_connection configured.", file=sys.stderr)
        return 2
    factory = ConnectionFactory(file_config.connection_map())
    try:
        result = run_query(factory, name, args)
    except DatabaseError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2, default=str))
    return 0


__all__ = ["main", "parse_args", "run_query"]
