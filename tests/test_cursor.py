"""Tests for the character cursor."""

import io

from typed_config.cursor import STRING_DELIMITERS, Cursor


class TestSkipping:
    """Tests for whitespace and comment skipping."""

    def test_skip_whitespace_and_comments(self):
        """Test that comments run to the end of the line."""
        cursor = Cursor("  # a comment\n\t# another\n  key=1")
        cursor.skip_whitespace_and_comments()
        assert cursor.peek() == "k"

    def test_skip_to_end(self):
        """Test skipping when only comments remain."""
        cursor = Cursor("   # trailing comment")
        cursor.skip_whitespace_and_comments()
        assert cursor.at_end()
        assert cursor.peek() == ""

    def test_comment_does_not_eat_commas(self):
        """Test that whitespace skipping leaves commas alone."""
        cursor = Cursor("  ,1")
        cursor.skip_whitespace_and_comments()
        assert cursor.peek() == ","

    def test_skip_separators(self):
        """Test skipping commas, whitespace and comments between elements."""
        cursor = Cursor(" ,  , # note\n ,2]")
        cursor.skip_separators()
        assert cursor.peek() == "2"

    def test_skip_chars(self):
        """Test skipping an arbitrary character set."""
        cursor = Cursor(" { {x")
        cursor.skip_chars(" {")
        assert cursor.peek() == "x"


class TestReadUntil:
    """Tests for delimiter-terminated tokens."""

    def test_stops_at_delimiter(self):
        """Test that the delimiter ends the token and is not consumed."""
        cursor = Cursor("hello world,next")
        token, delimiter = cursor.read_until(STRING_DELIMITERS)
        assert token == "hello world"
        assert delimiter == ","
        assert cursor.peek() == ","

    def test_end_of_input(self):
        """Test that running out of input returns the token and no delimiter."""
        cursor = Cursor("last")
        token, delimiter = cursor.read_until(STRING_DELIMITERS)
        assert token == "last"
        assert delimiter is None
        assert cursor.at_end()

    def test_escaped_delimiter(self):
        """Test that a backslash puts a delimiter into the token."""
        cursor = Cursor(r"a\,b\#c\]d,rest")
        token, delimiter = cursor.read_until(STRING_DELIMITERS)
        assert token == "a,b#c]d"
        assert delimiter == ","

    def test_backslash_before_other_character_is_kept(self):
        """Test that a backslash not before a delimiter stays in the token."""
        cursor = Cursor(r"C:\temp\x")
        token, _ = cursor.read_until(STRING_DELIMITERS)
        assert token == r"C:\temp\x"

    def test_escaped_newline(self):
        """Test that an escaped newline does not end the token."""
        cursor = Cursor("one\\\ntwo\nthree")
        token, delimiter = cursor.read_until(STRING_DELIMITERS)
        assert token == "one\ntwo"
        assert delimiter == "\n"

    def test_custom_delimiters(self):
        """Test reading a key up to '='."""
        cursor = Cursor("  a.b.c = 1")
        token, delimiter = cursor.read_until("=")
        assert token == "  a.b.c "
        assert delimiter == "="


class TestReadNumber:
    """Tests for numeric literal scanning."""

    def test_decimal(self):
        cursor = Cursor("  42 rest")
        assert cursor.read_number() == "42"
        assert cursor.remaining == " rest"

    def test_hex(self):
        cursor = Cursor("0xBAD,")
        assert cursor.read_number() == "0xBAD"
        assert cursor.peek() == ","

    def test_float_with_exponent(self):
        cursor = Cursor("-1.5e-3]")
        assert cursor.read_number() == "-1.5e-3"
        assert cursor.peek() == "]"

    def test_infinity(self):
        cursor = Cursor("-inf\n")
        assert cursor.read_number() == "-inf"

    def test_no_number(self):
        """Test that a non-numeric token is left in place."""
        cursor = Cursor("  maybe")
        assert cursor.read_number() is None
        assert cursor.peek() == "m"


class TestCursorState:
    """Tests for cursor bookkeeping."""

    def test_fail(self):
        cursor = Cursor("x")
        assert cursor.failed is False
        cursor.fail()
        assert cursor.failed is True

    def test_line_number(self):
        cursor = Cursor("a\nb\nc")
        cursor.read_until("c")
        assert cursor.line == 3

    def test_from_stream(self):
        """Test building a cursor from a text stream."""
        cursor = Cursor.from_stream(io.StringIO("a=1"))
        assert cursor.text == "a=1"
        assert cursor.source is None

    def test_advance(self):
        cursor = Cursor("ab")
        assert cursor.advance() == "a"
        assert cursor.advance() == "b"
        assert cursor.advance() == ""
