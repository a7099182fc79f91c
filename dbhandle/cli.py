"""Run one SQL statement through the shared handle and print the result."""

import argparse
import json
import logging
import sys

from .log_config import setup_logging
from .registry import get_handle_from_env
from .statements import StatementKind

logger = logging.getLogger("dbhandle")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a SQL statement against the database configured in the environment"
    )
    parser.add_argument("query", help="SQL text, %%s placeholders for --arg values")
    parser.add_argument("--arg", action="append", default=[], dest="args",
                        help="Positional bind value (repeatable)")
    parser.add_argument("--kind", choices=[k.value for k in StatementKind],
                        help="Result shape; inferred from the first word of the query by default")
    parser.add_argument("--group-key", help="Key SELECT rows by this column")
    parser.add_argument("--one", action="store_true", help="Fetch a single row")
    parser.add_argument("--log-level", default="WARNING", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Console log level")
    return parser


def main(argv=None) -> int:
    """CLI entry point. Exit 2 if no handle, 1 if the statement failed."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level, log_dir=None)

    try:
        handle = get_handle_from_env()
    except ValueError as e:
        logger.error("%s", e)
        return 2
    if handle is None:
        return 2

    kind = StatementKind(args.kind) if args.kind else None
    result = handle.run(
        args.query,
        args.args,
        kind=kind,
        group_key=args.group_key,
        fetch_one=args.one,
    )
    if not result.ok:
        return 1

    value = result.value
    if isinstance(value, dict) and args.group_key:
        # JSON object keys must be strings
        value = {str(key): row for key, row in value.items()}
    print(json.dumps(value, default=str, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
