"""Tests for value codecs."""

import io
import math

import pytest

from typed_config.codec import codec_for, escape_string, read_string
from typed_config.cursor import Cursor
from typed_config.errors import AddressingError, CapacityExceededError, DecodeError
from typed_config.optional import OptionalValue
from typed_config.record import Field, Record, array_of, map_of, optional_of, pair_of, set_of
from typed_config.types import (
    BOOL,
    FLOAT32,
    FLOAT64,
    INT8,
    INT32,
    INT64,
    STRING,
    UINT8,
    UINT64,
    AliasTypeDefinition,
)


class Point(Record):
    x = Field(INT32)
    y = Field(INT32)


def decode(type_def, text):
    return codec_for(type_def).decode(Cursor(text))


def encode(type_def, value):
    out = io.StringIO()
    codec_for(type_def).encode(out, value)
    return out.getvalue()


class TestScalarCodec:
    """Tests for numeric decoding and encoding."""

    def test_decimal(self):
        assert decode(INT32, "42") == 42
        assert decode(INT32, "  -17\n") == -17

    def test_hex(self):
        assert decode(INT32, "0xBAD") == 2989
        assert decode(UINT8, "0XfF") == 255

    def test_leading_zero_is_octal(self):
        assert decode(INT32, "010") == 8
        assert decode(INT32, "0") == 0

    def test_binary_and_octal_prefixes(self):
        assert decode(INT32, "0b101") == 5
        assert decode(INT32, "0o17") == 15

    def test_bad_octal_digit(self):
        with pytest.raises(DecodeError):
            decode(INT32, "09")

    def test_out_of_range(self):
        """Test that integer shapes reject values outside their width."""
        with pytest.raises(DecodeError, match="out of range"):
            decode(INT8, "200")
        with pytest.raises(DecodeError, match="out of range"):
            decode(UINT8, "-1")

    def test_large_unsigned(self):
        assert decode(UINT64, "18446744073709551615") == 2**64 - 1

    def test_integer_rejects_float_text(self):
        with pytest.raises(DecodeError):
            decode(INT32, "1.5")

    def test_not_a_number(self):
        with pytest.raises(DecodeError, match="expected a number"):
            decode(INT32, "abc")

    def test_float(self):
        assert decode(FLOAT64, "1.25") == 1.25
        assert decode(FLOAT64, "1e3") == 1000.0
        assert decode(FLOAT32, "7") == 7.0
        assert decode(FLOAT64, "0x10") == 16.0
        assert math.isinf(decode(FLOAT64, "-inf"))

    def test_encode(self):
        assert encode(INT64, -5) == "-5"
        assert encode(FLOAT64, 1.1) == "1.1"
        assert encode(FLOAT64, 2.0) == "2.0"

    def test_stops_before_next_token(self):
        cursor = Cursor("12,13")
        assert codec_for(INT32).decode(cursor) == 12
        assert cursor.peek() == ","

    def test_sub_var_rejected(self):
        """Test that a dotted path cannot address into a number."""
        with pytest.raises(AddressingError):
            codec_for(INT32).decode(Cursor("1"), "x")


class TestBoolCodec:
    """Tests for boolean words."""

    @pytest.mark.parametrize("word", ["true", "TrUE", "t", "T", "1"])
    def test_true_words(self, word):
        assert decode(BOOL, word) is True

    @pytest.mark.parametrize("word", ["false", "FALSE", "f", "0"])
    def test_false_words(self, word):
        assert decode(BOOL, word) is False

    def test_not_a_boolean(self):
        with pytest.raises(DecodeError, match="not a boolean"):
            decode(BOOL, "maybe")

    def test_encode(self):
        assert encode(BOOL, True) == "true"
        assert encode(BOOL, False) == "false"


class TestStringCodec:
    """Tests for strings, escaping and the empty-string markers."""

    def test_stripped(self):
        assert decode(STRING, "  hello world  \nnext") == "hello world"

    def test_empty_markers(self):
        assert decode(STRING, "''") == ""
        assert decode(STRING, '""') == ""

    def test_stops_at_delimiters(self):
        for text in ("a,b", "a#b", "a}b", "a]b", "a\tb"):
            assert decode(STRING, text) == "a"

    def test_escaped_delimiter(self):
        assert decode(STRING, r"a\,b") == "a,b"

    def test_encode_escapes(self):
        assert encode(STRING, "a,b#c") == r"a\,b\#c"
        assert encode(STRING, "") == "''"

    def test_encode_trailing_backslash(self):
        assert escape_string("a\\") == "a\\ "
        assert read_string(Cursor(escape_string("a\\") + "\nnext")) == "a\\"

    def test_escape_then_read(self):
        value = "x, y ] # } z"
        assert read_string(Cursor(escape_string(value))) == value

    def test_alias_of_string(self):
        alias = AliasTypeDefinition(name="hostname", base_type=STRING)
        assert decode(alias, "example.org") == "example.org"


class TestOptionalCodec:
    """Tests for optional<T> decoding."""

    def test_decode_into_new_box(self):
        value = decode(optional_of(INT32), "5")
        assert isinstance(value, OptionalValue)
        assert value.get() == 5

    def test_decode_reuses_box(self):
        box = OptionalValue()
        result = codec_for(optional_of(STRING)).decode(Cursor("abc"), "", box)
        assert result is box
        assert box.get() == "abc"

    def test_record_inner_decoded_in_place(self):
        """Test that a dotted path allocates the inner record and assigns into it."""
        codec = codec_for(optional_of(Point))
        box = codec.decode(Cursor("7"), "x", None)
        assert box.get().x == 7
        codec.decode(Cursor("8"), "y", box)
        assert box.get().x == 7
        assert box.get().y == 8

    def test_encode_absent_raises(self):
        from typed_config.errors import EmptyOptionalError

        with pytest.raises(EmptyOptionalError):
            encode(optional_of(INT32), OptionalValue())

    def test_compare(self):
        codec = codec_for(optional_of(INT32))
        assert codec.compare(OptionalValue(), OptionalValue()) == 0
        assert codec.compare(OptionalValue(1), OptionalValue()) == 1
        assert codec.compare(OptionalValue(1), OptionalValue(1)) == 0
        assert codec.compare(OptionalValue(1), OptionalValue(2)) == 1


class TestPairCodec:
    """Tests for pair<A, B>."""

    def test_comma_separated(self):
        assert decode(pair_of(INT32, STRING), "123,test test") == (123, "test test")

    def test_whitespace_separated(self):
        assert decode(pair_of(INT32, STRING), "123 test test") == (123, "test test")

    def test_string_first(self):
        assert decode(pair_of(STRING, FLOAT64), "test2 test,1.1") == ("test2 test", 1.1)

    def test_encode(self):
        assert encode(pair_of(STRING, FLOAT64), ("a b", 1.5)) == "a b,1.5"
        assert encode(pair_of(INT32, STRING), (0, "")) == "0,''"

    def test_compare_counts_sides(self):
        codec = codec_for(pair_of(INT32, INT32))
        assert codec.compare((1, 2), (1, 2)) == 0
        assert codec.compare((1, 2), (3, 4)) == 2


class TestSequenceCodec:
    """Tests for T[] and T[N]."""

    def test_decode(self):
        assert decode(array_of(INT32), "[1,2,3]") == [1, 2, 3]

    def test_whitespace_and_comments(self):
        assert decode(array_of(INT32), "[ 1 2\n  3, # three\n 4 ]") == [1, 2, 3, 4]

    def test_empty(self):
        assert decode(array_of(STRING), "[]") == []
        assert decode(array_of(STRING), "[ ]") == []

    def test_strings(self):
        assert decode(array_of(STRING), "[a b,c\\,d,'']") == ["a b", "c,d", ""]

    def test_missing_open_bracket(self):
        with pytest.raises(DecodeError, match="expected '\\['"):
            decode(array_of(INT32), "1,2,3")

    def test_missing_close_bracket(self):
        with pytest.raises(DecodeError, match="missing"):
            decode(array_of(INT32), "[1,2")

    def test_no_progress(self):
        """Test that a token no element can consume is an error."""
        with pytest.raises(DecodeError):
            decode(array_of(STRING), "[a,}")

    def test_nested(self):
        assert decode(array_of(array_of(INT32)), "[[1,2],[],[3]]") == [[1, 2], [], [3]]

    def test_fixed_capacity(self):
        """Test that a fixed array fills by position and keeps the rest at default."""
        assert decode(array_of(INT32, 4), "[1,2]") == [1, 2, 0, 0]
        assert decode(array_of(INT32, 2), "[1,2]") == [1, 2]

    def test_capacity_exceeded(self):
        with pytest.raises(CapacityExceededError):
            decode(array_of(INT32, 2), "[1,2,3]")

    def test_records(self):
        points = decode(array_of(Point), "[{\n x=1\n y=2\n},{ x=3 }]")
        assert [(p.x, p.y) for p in points] == [(1, 2), (3, 0)]

    def test_encode(self):
        assert encode(array_of(INT32), [1, 2, 3]) == "[1,2,3]"
        assert encode(array_of(INT32), []) == "[]"
        assert encode(array_of(STRING), ["a,b", ""]) == "[a\\,b,'']"

    def test_compare(self):
        codec = codec_for(array_of(INT32))
        assert codec.compare([1, 2], [1, 2]) == 0
        assert codec.compare([1, 2], [1]) == 1
        assert codec.compare([1, 2], [2, 1]) == 1


class TestSetCodec:
    """Tests for set<T>."""

    def test_decode(self):
        assert decode(set_of(INT32), "[3,1,3,2]") == {1, 2, 3}

    def test_encode_sorted(self):
        assert encode(set_of(INT32), {200, 100, 150}) == "[100,150,200]"

    def test_set_of_pairs(self):
        assert decode(set_of(pair_of(INT32, INT32)), "[1,2,3,4]") == {(1, 2), (3, 4)}


class TestMapCodec:
    """Tests for map<K, V>."""

    def test_decode(self):
        assert decode(map_of(STRING, INT32), "[hello,789,goodbye,987]") == {"hello": 789, "goodbye": 987}

    def test_repeated_key_keeps_first(self):
        assert decode(map_of(STRING, INT32), "[a,1,a,2]") == {"a": 1}

    def test_encode_sorted_by_key(self):
        value = {"hello": 789, "goodbye": 987}
        assert encode(map_of(STRING, INT32), value) == "[goodbye,987,hello,789]"

    def test_record_values(self):
        value = decode(map_of(INT32, Point), "[1,{ x=5 },2,{ y=6 }]")
        assert value[1].x == 5
        assert value[2].y == 6

    def test_compare(self):
        codec = codec_for(map_of(STRING, INT32))
        assert codec.compare({"a": 1}, {"a": 1}) == 0
        assert codec.compare({"a": 1}, {"a": 2}) == 1
        assert codec.compare({"a": 1}, {"b": 1}) == 1
        assert codec.compare({"a": 1}, {}) == 1


class TestCodecFor:
    """Tests for codec lookup."""

    def test_alias_dispatch(self):
        alias = AliasTypeDefinition(name="counts", base_type=array_of(INT32))
        assert decode(alias, "[1]") == [1]

    def test_unknown_shape(self):
        from typed_config.types import TypeDefinition

        with pytest.raises(TypeError):
            codec_for(TypeDefinition(name="mystery"))
