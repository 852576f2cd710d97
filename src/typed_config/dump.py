"""Tool for loading, updating and re-emitting config files from the console."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from typed_config.errors import ConfigError
from typed_config.optional import OptionalValue
from typed_config.record import Record
from typed_config.schema import Schema

logger = logging.getLogger(__name__)


def to_data(value: Any) -> Any:
    """Convert a field value to JSON-friendly data.

    Records become dicts without their absent optional fields; sets are
    sorted lists, pairs are two-element lists.
    """
    if isinstance(value, Record):
        data = {}
        for field in value.fields():
            if field.is_present(value):
                data[field.name] = to_data(getattr(value, field.name))
        return data
    if isinstance(value, OptionalValue):
        return to_data(value.get())
    if isinstance(value, dict):
        return {str(k): to_data(v) for k, v in sorted(value.items(), key=lambda kv: kv[0])}
    if isinstance(value, (set, frozenset)):
        return [to_data(v) for v in sorted(value)]
    if isinstance(value, (list, tuple)):
        return [to_data(v) for v in value]
    return value


def list_records(schema: Schema) -> None:
    """Print a summary of all record types in a schema."""
    print("Record types:")
    for name in schema.list_records():
        cls = schema.get_record_class(name)
        base = cls.__bases__[0].__name__
        extends = f" extends {base}" if base != "Record" else ""
        print(f"  {name:<20} {len(cls.fields()):>3} fields{extends}")


def apply_assignment(record: Record, assignment: str) -> None:
    """Apply one ``key=value`` command-line assignment."""
    key, sep, value = assignment.partition("=")
    if not sep or not key.strip():
        raise ConfigError(f"Expected key=value, got '{assignment}'")
    record.set(key.strip(), value)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Load config files into a record type and write the result"
    )
    parser.add_argument(
        "schema",
        type=Path,
        help="Path to the schema file declaring the record types",
    )
    parser.add_argument(
        "record_type",
        nargs="?",
        help="Name of the record type to load (omit to list record types)",
    )
    parser.add_argument(
        "configs",
        nargs="*",
        type=Path,
        help="Config files to read, in order",
    )
    parser.add_argument(
        "-s", "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Assign a field after reading the config files (dotted keys allowed)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Write the result to a file instead of stdout",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check that the config files load; print nothing on success",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log each file read and written",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.schema.exists():
        print(f"Error: Schema file not found: {args.schema}", file=sys.stderr)
        return 1

    try:
        schema = Schema.load(args.schema)
    except (SyntaxError, ValueError) as e:
        print(f"Error loading schema: {e}", file=sys.stderr)
        return 1

    if args.record_type is None:
        list_records(schema)
        return 0

    if args.record_type not in schema:
        print(f"Error: Unknown record type: {args.record_type}", file=sys.stderr)
        print()
        list_records(schema)
        return 1

    record = schema.create(args.record_type)
    try:
        for path in args.configs:
            record.read_file(path)
        for assignment in args.assignments:
            apply_assignment(record, assignment)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.check:
        return 0

    if args.json:
        text = json.dumps(to_data(record), indent=2) + "\n"
    else:
        text = record.to_string()

    try:
        if args.output is None:
            sys.stdout.write(text)
        elif args.json:
            args.output.write_text(text, encoding="utf-8")
        else:
            record.write_to_file(args.output)
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logger.debug("Wrote %s", args.output or "<stdout>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
