"""Character cursor over config text."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TextIO

# Characters that end a string value unless escaped with a backslash
STRING_DELIMITERS = ",#}]\t\r\n"

WHITESPACE = " \t\r\n\v\f"

COMMENT = "#"
ESCAPE = "\\"

_NUMBER_RE = re.compile(
    r"""[+-]?(?:
        0[xX][0-9a-fA-F]+
      | 0[oO][0-7]+
      | 0[bB][01]+
      | (?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?
      | inf(?:inity)? | nan
    )""",
    re.VERBOSE | re.IGNORECASE,
)


class Cursor:
    """Scans config text one character at a time.

    The cursor never consumes the delimiter that ends a token, so the caller
    can inspect it. ``failed`` is set once a value after a key could not be
    decoded.
    """

    def __init__(self, text: str, source: Path | None = None) -> None:
        self.text = text
        self.pos = 0
        self.source = source
        self.failed = False

    @classmethod
    def from_stream(cls, stream: TextIO) -> Cursor:
        """Read the remaining contents of a text stream into a cursor."""
        name = getattr(stream, "name", None)
        source = Path(name) if isinstance(name, str) else None
        return cls(stream.read(), source)

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        """Return the next unread character, or '' at end of input."""
        if self.pos >= len(self.text):
            return ""
        return self.text[self.pos]

    def advance(self) -> str:
        """Consume and return the next character, or '' at end of input."""
        ch = self.peek()
        if ch:
            self.pos += 1
        return ch

    def skip_chars(self, chars: str) -> None:
        """Advance past any run of the given characters."""
        while self.pos < len(self.text) and self.text[self.pos] in chars:
            self.pos += 1

    def skip_whitespace(self) -> None:
        self.skip_chars(WHITESPACE)

    def skip_line(self) -> None:
        """Consume through the end of the current line."""
        end = self.text.find("\n", self.pos)
        self.pos = len(self.text) if end == -1 else end + 1

    def skip_whitespace_and_comments(self) -> None:
        """Advance past whitespace and '#' comments."""
        self._skip(WHITESPACE)

    def skip_separators(self) -> None:
        """Advance past whitespace, commas and comments between list elements."""
        self._skip(WHITESPACE + ",")

    def _skip(self, chars: str) -> None:
        while not self.at_end():
            ch = self.text[self.pos]
            if ch == COMMENT:
                self.skip_line()
            elif ch in chars:
                self.pos += 1
            else:
                break

    def read_until(self, delimiters: str) -> tuple[str, str | None]:
        """Read a token up to the next unescaped delimiter.

        A backslash directly before a delimiter puts the delimiter into the
        token; a backslash before anything else is kept as-is.

        Returns:
            The token and the delimiter that ended it, or None if the input
            ran out. The delimiter is not consumed.
        """
        chars: list[str] = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch in delimiters:
                return "".join(chars), ch
            self.pos += 1
            if ch == ESCAPE and self.pos < len(text) and text[self.pos] in delimiters:
                ch = text[self.pos]
                self.pos += 1
            chars.append(ch)
        return "".join(chars), None

    def read_number(self) -> str | None:
        """Consume one numeric literal after optional whitespace.

        Returns None, consuming nothing but the whitespace, if no literal
        starts here.
        """
        self.skip_whitespace()
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return match.group()

    def fail(self) -> None:
        """Mark the cursor as failed."""
        self.failed = True

    @property
    def remaining(self) -> str:
        return self.text[self.pos:]

    @property
    def line(self) -> int:
        """1-based line number of the next unread character."""
        return self.text.count("\n", 0, self.pos) + 1

    def __repr__(self) -> str:
        return f"Cursor(pos={self.pos}, line={self.line}, failed={self.failed})"
