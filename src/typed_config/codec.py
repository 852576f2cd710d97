"""Value codecs: decode, encode and compare for every field shape."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, TextIO

from typed_config.cursor import STRING_DELIMITERS, Cursor
from typed_config.errors import AddressingError, CapacityExceededError, DecodeError
from typed_config.optional import OptionalValue
from typed_config.types import (
    ArrayTypeDefinition,
    BooleanTypeDefinition,
    DictTypeDefinition,
    OptionalTypeDefinition,
    PairTypeDefinition,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    SetTypeDefinition,
    StringTypeDefinition,
    TypeDefinition,
)

if TYPE_CHECKING:
    from typed_config.record import Record

TRUE_WORDS = frozenset({"true", "t", "1"})
FALSE_WORDS = frozenset({"false", "f", "0"})

# Written for the empty string; both spellings are accepted on read
EMPTY_STRING_MARKERS = ("''", '""')

_OCTAL_RE = re.compile(r"[+-]?0[0-7]+")
_PREFIXED_RE = re.compile(r"[+-]?0[xXoObB]")


class Codec:
    """Decode, encode and compare values of one field shape."""

    def __init__(self, type_def: TypeDefinition) -> None:
        self.type_def = type_def

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> Any:
        """Read one value from the cursor.

        Args:
            cursor: Cursor positioned at the start of the value.
            sub_var: Remainder of a dotted path; only records accept one.
            current: The field's current value, for shapes decoded in place.

        Raises:
            DecodeError: If the text does not fit this shape.
        """
        raise NotImplementedError

    def encode(self, out: TextIO, value: Any, indent: int = 0) -> None:
        """Write a value in the form decode() reads back."""
        out.write(str(value))

    def compare(self, a: Any, b: Any) -> int:
        """Return 0 if a and b are equal, else a positive difference count."""
        return 0 if a == b else 1

    def _reject_sub_var(self, sub_var: str) -> None:
        if sub_var:
            raise AddressingError(
                f"cannot address '{sub_var}' inside a value of type '{self.type_def.name}'"
            )


class ScalarCodec(Codec):
    """Numbers, with base detection for integer literals (0x.., 0o.., 0b.., 0..)."""

    type_def: PrimitiveTypeDefinition

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> int | float:
        self._reject_sub_var(sub_var)
        token = cursor.read_number()
        if token is None:
            raise DecodeError(f"expected a number for type '{self.type_def.name}'")
        primitive = self.type_def.primitive
        if not primitive.is_integer:
            if _PREFIXED_RE.match(token):
                return float(int(token, 0))
            return float(token)

        value = self._parse_integer(token)
        if not primitive.min_value <= value <= primitive.max_value:
            raise DecodeError(f"{token} is out of range for type '{self.type_def.name}'")
        return value

    def _parse_integer(self, token: str) -> int:
        try:
            if _OCTAL_RE.fullmatch(token):
                return int(token, 8)
            return int(token, 0)
        except ValueError:
            raise DecodeError(f"'{token}' is not a valid {self.type_def.name}") from None

    def encode(self, out: TextIO, value: Any, indent: int = 0) -> None:
        if self.type_def.primitive.is_integer:
            out.write(str(value))
        else:
            out.write(repr(float(value)))


class BoolCodec(Codec):
    """Booleans: reads true/t/1 and false/f/0 in any case, writes true/false."""

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> bool:
        self._reject_sub_var(sub_var)
        word = read_string(cursor).lower()
        if word in TRUE_WORDS:
            return True
        if word in FALSE_WORDS:
            return False
        raise DecodeError(f"'{word}' is not a boolean")

    def encode(self, out: TextIO, value: Any, indent: int = 0) -> None:
        out.write("true" if value else "false")


class StringCodec(Codec):
    """Strings run to the next unescaped delimiter and are stripped."""

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> str:
        self._reject_sub_var(sub_var)
        return read_string(cursor)

    def encode(self, out: TextIO, value: Any, indent: int = 0) -> None:
        out.write(escape_string(value))


class OptionalCodec(Codec):
    """optional<T>: values are OptionalValue boxes that allocate on first decode."""

    type_def: OptionalTypeDefinition

    def __init__(self, type_def: OptionalTypeDefinition) -> None:
        super().__init__(type_def)
        self.inner = codec_for(type_def.inner_type)

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> OptionalValue:
        box = current if isinstance(current, OptionalValue) else self.type_def.default_value()
        if self.inner.type_def.resolve_base_type().is_record:
            self.inner.decode(cursor, sub_var, box.get_or_insert_default())
        else:
            inner_current = box.get() if box.is_set else None
            box.set(self.inner.decode(cursor, sub_var, inner_current))
        return box

    def encode(self, out: TextIO, value: OptionalValue, indent: int = 0) -> None:
        # Raises EmptyOptionalError for an absent box; writers check presence first
        self.inner.encode(out, value.get(), indent)

    def compare(self, a: OptionalValue, b: OptionalValue) -> int:
        if not a.is_set and not b.is_set:
            return 0
        if not a.is_set or not b.is_set:
            return 1
        return self.inner.compare(a.get(), b.get())


class PairCodec(Codec):
    """pair<A, B>: the two values separated by a comma or whitespace."""

    type_def: PairTypeDefinition

    def __init__(self, type_def: PairTypeDefinition) -> None:
        super().__init__(type_def)
        self.first = codec_for(type_def.first_type)
        self.second = codec_for(type_def.second_type)

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> tuple[Any, Any]:
        self._reject_sub_var(sub_var)
        first = self.first.decode(cursor)
        cursor.skip_separators()
        second = self.second.decode(cursor)
        return (first, second)

    def encode(self, out: TextIO, value: tuple[Any, Any], indent: int = 0) -> None:
        first, second = value
        self.first.encode(out, first, indent)
        out.write(",")
        self.second.encode(out, second, indent)

    def compare(self, a: tuple[Any, Any], b: tuple[Any, Any]) -> int:
        return self.first.compare(a[0], b[0]) + self.second.compare(a[1], b[1])


class ContainerCodec(Codec):
    """Shared bracket handling for sequences, sets and maps: [a,b,c]."""

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> Any:
        self._reject_sub_var(sub_var)
        cursor.skip_whitespace()
        if cursor.peek() != "[":
            raise DecodeError(f"expected '[' to start a value of type '{self.type_def.name}'")
        cursor.advance()
        cursor.skip_whitespace()

        container = self.new_container()
        index = 0
        while True:
            if cursor.at_end():
                raise DecodeError(f"missing ']' at end of a value of type '{self.type_def.name}'")
            if cursor.peek() == "]":
                cursor.advance()
                return container
            start = cursor.pos
            self.decode_element(cursor, container, index)
            cursor.skip_separators()
            if cursor.pos == start:
                raise DecodeError(f"unexpected '{cursor.peek()}' in a value of type '{self.type_def.name}'")
            index += 1

    def new_container(self) -> Any:
        return self.type_def.default_value()

    def decode_element(self, cursor: Cursor, container: Any, index: int) -> None:
        raise NotImplementedError

    def iter_encoded(self, value: Any) -> list[tuple[Codec, Any]]:
        """Return (codec, item) pairs in write order."""
        raise NotImplementedError

    def encode(self, out: TextIO, value: Any, indent: int = 0) -> None:
        out.write("[")
        for i, (codec, item) in enumerate(self.iter_encoded(value)):
            if i:
                out.write(",")
            codec.encode(out, item, indent)
        out.write("]")


class SequenceCodec(ContainerCodec):
    """T[] appends in order; T[N] fills by position and rejects overflow."""

    type_def: ArrayTypeDefinition

    def __init__(self, type_def: ArrayTypeDefinition) -> None:
        super().__init__(type_def)
        self.element = codec_for(type_def.element_type)

    def decode_element(self, cursor: Cursor, container: list[Any], index: int) -> None:
        value = self.element.decode(cursor)
        capacity = self.type_def.capacity
        if capacity is None:
            container.append(value)
        elif index < capacity:
            container[index] = value
        else:
            raise CapacityExceededError(f"more than {capacity} elements for type '{self.type_def.name}'")

    def iter_encoded(self, value: list[Any]) -> list[tuple[Codec, Any]]:
        return [(self.element, item) for item in value]

    def compare(self, a: list[Any], b: list[Any]) -> int:
        if len(a) != len(b):
            return 1
        return 0 if all(self.element.compare(x, y) == 0 for x, y in zip(a, b)) else 1


class SetCodec(ContainerCodec):
    type_def: SetTypeDefinition

    def __init__(self, type_def: SetTypeDefinition) -> None:
        super().__init__(type_def)
        self.element = codec_for(type_def.element_type)

    def decode_element(self, cursor: Cursor, container: set[Any], index: int) -> None:
        container.add(self.element.decode(cursor))

    def iter_encoded(self, value: set[Any]) -> list[tuple[Codec, Any]]:
        return [(self.element, item) for item in sorted(value)]

    def compare(self, a: set[Any], b: set[Any]) -> int:
        return 0 if a == b else 1


class MapCodec(ContainerCodec):
    """map<K, V>: alternating keys and values, sorted by key on write.

    A repeated key keeps its first value.
    """

    type_def: DictTypeDefinition

    def __init__(self, type_def: DictTypeDefinition) -> None:
        super().__init__(type_def)
        self.key = codec_for(type_def.key_type)
        self.value = codec_for(type_def.value_type)

    def decode_element(self, cursor: Cursor, container: dict[Any, Any], index: int) -> None:
        key = self.key.decode(cursor)
        cursor.skip_separators()
        container.setdefault(key, self.value.decode(cursor))

    def iter_encoded(self, value: dict[Any, Any]) -> list[tuple[Codec, Any]]:
        items: list[tuple[Codec, Any]] = []
        for key in sorted(value):
            items.append((self.key, key))
            items.append((self.value, value[key]))
        return items

    def compare(self, a: dict[Any, Any], b: dict[Any, Any]) -> int:
        if len(a) != len(b):
            return 1
        for key, value in a.items():
            if key not in b or self.value.compare(value, b[key]) != 0:
                return 1
        return 0


class RecordCodec(Codec):
    """Nested records: a braced block, or a dotted path forwarded to the record's own set()."""

    type_def: RecordTypeDefinition

    def decode(self, cursor: Cursor, sub_var: str = "", current: Any = None) -> Record:
        record = current if current is not None else self.type_def.default_value()
        if sub_var:
            record.set(sub_var, cursor)
        else:
            record.read_cursor(cursor)
        return record

    def encode(self, out: TextIO, value: Record, indent: int = 0) -> None:
        value.write_to_stream(out, indent + 1)

    def compare(self, a: Record, b: Record) -> int:
        return a.compare_all(b)


_CODECS: dict[type[TypeDefinition], type[Codec]] = {
    PrimitiveTypeDefinition: ScalarCodec,
    BooleanTypeDefinition: BoolCodec,
    StringTypeDefinition: StringCodec,
    OptionalTypeDefinition: OptionalCodec,
    PairTypeDefinition: PairCodec,
    ArrayTypeDefinition: SequenceCodec,
    SetTypeDefinition: SetCodec,
    DictTypeDefinition: MapCodec,
    RecordTypeDefinition: RecordCodec,
}


def codec_for(type_def: TypeDefinition) -> Codec:
    """Return the codec for a type, looking through aliases."""
    base = type_def.resolve_base_type()
    codec_class = _CODECS.get(type(base))
    if codec_class is None:
        raise TypeError(f"No codec for type '{type_def.name}' ({type(base).__name__})")
    return codec_class(base)


def read_string(cursor: Cursor) -> str:
    """Read a string value up to the next delimiter, mapping '' and "" to empty."""
    token, _ = cursor.read_until(STRING_DELIMITERS)
    token = token.strip()
    if token in EMPTY_STRING_MARKERS:
        return ""
    return token


def escape_string(value: str) -> str:
    """Return a string as written: delimiters escaped, empty as ''.

    A trailing backslash gets a space after it, which the reader strips,
    so it cannot escape the delimiter that ends the value.
    """
    if not value:
        return EMPTY_STRING_MARKERS[0]
    escaped = "".join("\\" + ch if ch in STRING_DELIMITERS else ch for ch in value)
    if escaped.endswith("\\"):
        escaped += " "
    return escaped
