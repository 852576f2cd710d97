"""Document engine: full read and write passes over a record.

Reading walks the text as a small state machine driven by the next unread
character:

* whitespace: keep scanning for a key
* ``#``: skip the comment line, then keep scanning
* ``}``: end of a nested block, stop
* anything else: read the key up to ``=`` and hand the rest of the input to
  ``Record.set``, which decodes exactly one value and leaves the cursor after it

Reading stops at ``}`` or at the end of input. A failure leaves the record
with every field assigned before the failing key already updated.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from typed_config.codec import read_string
from typed_config.cursor import Cursor
from typed_config.errors import (
    ConfigFileNotFoundError,
    ConfigWriteError,
    DecodeError,
    DuplicateFieldError,
    ParseError,
    UnknownKeyError,
)

if TYPE_CHECKING:
    from typed_config.record import Record

logger = logging.getLogger(__name__)

INDENT = "  "

# Reserved key whose value names a file to read into the current record
INCLUDE_KEY = "include"


def indent_by(level: int) -> str:
    """Return the leading whitespace for a nesting level."""
    return INDENT * level


def read_document(record: Record, cursor: Cursor) -> None:
    """Read ``key=value`` entries into a record until ``}`` or end of input."""
    cursor.skip_whitespace_and_comments()
    if cursor.peek() == "{":
        cursor.advance()
    while not cursor.at_end():
        cursor.skip_whitespace_and_comments()
        if cursor.at_end():
            break
        if cursor.peek() == "}":
            cursor.advance()
            break

        key, delimiter = cursor.read_until("=")
        if delimiter is not None:
            cursor.advance()
        key = key.strip()
        if key:
            assign(record, key, cursor)
        cursor.skip_whitespace()


def assign(record: Record, var_name: str, cursor: Cursor) -> None:
    """Decode the value at the cursor into the field named by a (dotted) key."""
    if var_name == INCLUDE_KEY:
        filename = read_string(cursor)
        path = resolve_include(filename, cursor.source)
        logger.debug("Including %s into %s", path, record.struct_name())
        read_file(record, path)
        return

    base_var, _, sub_var = var_name.partition(".")
    base_var = base_var.strip()
    try:
        matched = record.set_by_name(base_var, cursor, sub_var)
    except DecodeError as exc:
        cursor.fail()
        record.raise_error(f"parse error after: {var_name}: {exc}", ParseError, cause=exc)

    if matched == 0:
        record.raise_error(f"key not recognized: {var_name}", UnknownKeyError)
    if matched > 1:
        record.raise_error(f"multiple keys with the same name not allowed: {var_name}", DuplicateFieldError)


def resolve_include(filename: str, source: Path | None) -> Path:
    """Resolve an include target.

    A relative path is taken from the working directory first. If nothing
    exists there and the including file is known, its directory is tried.
    """
    path = Path(filename)
    if path.is_absolute() or path.exists() or source is None:
        return path
    sibling = source.parent / path
    if sibling.exists():
        return sibling
    return path


def read_file(record: Record, path: Path | str) -> None:
    """Read a whole file into a record."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as exc:
        record.raise_error(f"file not found: {path}", ConfigFileNotFoundError, cause=exc)
    logger.debug("Reading %s into %s", path, record.struct_name())
    read_document(record, Cursor(text, source=path))


def write_document(record: Record, out: TextIO, indent: int = 0) -> None:
    """Write a record; nested records (indent > 0) are wrapped in braces."""
    try:
        if indent > 0:
            out.write("{\n")
        record.write_all(out, indent)
        if indent > 0:
            out.write(indent_by(indent - 1) + "}")
    except OSError as exc:
        record.raise_error(f"can't write to stream: {exc}", ConfigWriteError, cause=exc)


def write_file(record: Record, path: Path | str) -> None:
    """Write a record to a file, replacing its contents."""
    path = Path(path)
    try:
        f = open(path, "w", encoding="utf-8")
    except OSError as exc:
        record.raise_error(f"can't open file for writing: {path}", ConfigWriteError, cause=exc)
    with f:
        write_document(record, f)
    logger.debug("Wrote %s to %s", record.struct_name(), path)
