"""Record base class and field declarations.

A record type lists its fields as class attributes::

    class Server(Record):
        host = Field(STRING, default="localhost")
        port = Field(UINT16, default=8080)
        tags = Field(array_of(STRING))
        tls = Field(optional_of(TlsSettings))

Declaration order is the write order. A subclass inherits its base record's
fields, which come before its own.
"""

from __future__ import annotations

import copy
import io
from typing import Any, ClassVar, NoReturn, TextIO

from typed_config import document
from typed_config.codec import Codec, codec_for
from typed_config.cursor import Cursor
from typed_config.document import indent_by
from typed_config.errors import ConfigError, ConfigWriteError
from typed_config.optional import UNSET, OptionalValue
from typed_config.types import (
    BOOL,
    FLOAT64,
    INT64,
    STRING,
    ArrayTypeDefinition,
    DictTypeDefinition,
    FieldDefinition,
    OptionalTypeDefinition,
    PairTypeDefinition,
    RecordTypeDefinition,
    SetTypeDefinition,
    TypeDefinition,
)

_PYTHON_TYPES: dict[type, TypeDefinition] = {bool: BOOL, int: INT64, float: FLOAT64, str: STRING}


def as_type_def(spec: Any) -> TypeDefinition:
    """Convert a field type spec to a type definition.

    Accepts a TypeDefinition, a Record subclass, or one of bool, int, float
    and str (int64 and float64 for the numeric ones).
    """
    if isinstance(spec, TypeDefinition):
        return spec
    if isinstance(spec, type):
        if issubclass(spec, Record):
            return RecordTypeDefinition(name=spec.__name__, record_class=spec)
        if spec in _PYTHON_TYPES:
            return _PYTHON_TYPES[spec]
    raise TypeError(f"Cannot use {spec!r} as a field type")


def optional_of(spec: Any) -> OptionalTypeDefinition:
    inner = as_type_def(spec)
    return OptionalTypeDefinition(name=f"optional<{inner.name}>", inner_type=inner)


def pair_of(first: Any, second: Any) -> PairTypeDefinition:
    a, b = as_type_def(first), as_type_def(second)
    return PairTypeDefinition(name=f"pair<{a.name}, {b.name}>", first_type=a, second_type=b)


def array_of(spec: Any, capacity: int | None = None) -> ArrayTypeDefinition:
    """Sequence of values; with a capacity, a fixed-size array filled by position."""
    element = as_type_def(spec)
    if capacity is not None and capacity < 0:
        raise ValueError(f"Array capacity must not be negative, got {capacity}")
    suffix = "[]" if capacity is None else f"[{capacity}]"
    return ArrayTypeDefinition(name=f"{element.name}{suffix}", element_type=element, capacity=capacity)


def set_of(spec: Any) -> SetTypeDefinition:
    element = as_type_def(spec)
    if not element.is_hashable:
        raise TypeError(f"Type '{element.name}' cannot be a set element")
    return SetTypeDefinition(name=f"set<{element.name}>", element_type=element)


def map_of(key: Any, value: Any) -> DictTypeDefinition:
    k, v = as_type_def(key), as_type_def(value)
    if not k.is_hashable:
        raise TypeError(f"Type '{k.name}' cannot be a map key")
    return DictTypeDefinition(name=f"map<{k.name}, {v.name}>", key_type=k, value_type=v)


class Field:
    """A named, typed field declared on a Record subclass.

    Optional fields always hold an OptionalValue box. Assigning a plain
    value fills the box and assigning None empties it.
    """

    def __init__(self, type_spec: Any, default: Any = UNSET) -> None:
        self.type_def = as_type_def(type_spec)
        self.default = default
        self.codec: Codec = codec_for(self.type_def)
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Record | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        try:
            return instance.__dict__[self.name]
        except KeyError:
            raise AttributeError(self.name) from None

    def __set__(self, instance: Record, value: Any) -> None:
        if self.is_optional and not isinstance(value, OptionalValue):
            box = instance.__dict__.get(self.name)
            if box is None:
                box = instance.__dict__[self.name] = self.type_def.default_value()
            if value is None:
                box.unset()
            else:
                box.set(value)
            return
        instance.__dict__[self.name] = value

    @property
    def is_optional(self) -> bool:
        return self.type_def.is_optional

    def is_present(self, instance: Record) -> bool:
        """Return whether the field should be written (non-optional, or optional and set)."""
        return not self.is_optional or instance.__dict__[self.name].is_set

    def initialize(self, instance: Record) -> bool:
        """Assign the field's default; returns False for an optional left absent.

        An optional whose default is None starts absent, as assigning None does.
        """
        if self.is_optional:
            box = self.type_def.default_value()
            if self.default is not UNSET and self.default is not None:
                box.set(copy.deepcopy(self.default))
            instance.__dict__[self.name] = box
            return box.is_set
        if self.default is UNSET:
            instance.__dict__[self.name] = self.type_def.default_value()
        else:
            instance.__dict__[self.name] = copy.deepcopy(self.default)
        return True

    def definition(self) -> FieldDefinition:
        return FieldDefinition(name=self.name, type_def=self.type_def, default_value=self.default)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.type_def.name!r})"


class Record:
    """Base class for configuration records.

    Subclasses get default initialization, name-based assignment, text
    read/write and structural equality from their declared fields.
    """

    _own_fields: ClassVar[list[Field]] = []

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._own_fields = [value for value in vars(cls).values() if isinstance(value, Field)]
        for field in cls._own_fields:
            _check_field_name(field.name)

    def __init__(self, **values: Any) -> None:
        self.default_init()
        for name, value in values.items():
            if not isinstance(getattr(type(self), name, None), Field):
                raise TypeError(f"{self.struct_name()} has no field '{name}'")
            setattr(self, name, value)

    @classmethod
    def fields(cls) -> list[Field]:
        """Return all fields, base record fields first."""
        fields: list[Field] = []
        for klass in reversed(cls.__mro__):
            if issubclass(klass, Record):
                fields.extend(klass.__dict__.get("_own_fields", ()))
        return fields

    @classmethod
    def field_definitions(cls) -> list[FieldDefinition]:
        return [f.definition() for f in cls.fields()]

    @classmethod
    def add_field(cls, name: str, type_spec: Any, default: Any = UNSET) -> Field:
        """Append a field to this record type after class creation."""
        if cls is Record:
            raise TypeError("Fields can only be added to Record subclasses")
        _check_field_name(name)
        field = Field(type_spec, default)
        field.__set_name__(cls, name)
        setattr(cls, name, field)
        cls._own_fields.append(field)
        return field

    @classmethod
    def struct_name(cls) -> str:
        """Return the declared type name used in messages."""
        return cls.__name__

    # -- reflection contract ------------------------------------------------

    def default_init(self) -> int:
        """Give every field its default value; returns the number of fields assigned."""
        return sum(1 for field in self.fields() if field.initialize(self))

    def set_by_name(self, name: str, cursor: Cursor, sub_var: str = "") -> int:
        """Decode the value at the cursor into the field called ``name``.

        Returns:
            The number of fields with that name. Only the first is assigned;
            more than one means the record type is declared wrong.
        """
        matched = 0
        for field in self.fields():
            if field.name != name:
                continue
            if not matched:
                current = self.__dict__.get(field.name)
                self.__dict__[field.name] = field.codec.decode(cursor, sub_var, current)
            matched += 1
        return matched

    def write_all(self, out: TextIO, indent: int = 0) -> int:
        """Write one ``name=value`` line per present field; returns the line count."""
        written = 0
        for field in self.fields():
            if not field.is_present(self):
                continue
            try:
                out.write(f"{indent_by(indent)}{field.name}=")
                field.codec.encode(out, self.__dict__[field.name], indent)
                out.write("\n")
            except OSError as exc:
                self.raise_error(f"can't write variable: {field.name}", ConfigWriteError, cause=exc)
            written += 1
        return written

    def compare_all(self, other: Any) -> int:
        """Return the number of differing fields; 1 if other is a different record type."""
        if type(other) is not type(self):
            return 1
        return sum(
            field.codec.compare(self.__dict__[field.name], other.__dict__[field.name])
            for field in self.fields()
        )

    def raise_error(
        self, message: str, error_class: type[ConfigError] = ConfigError, cause: BaseException | None = None
    ) -> NoReturn:
        """Raise an error about this record. Override to customize reporting."""
        error = error_class(f"{self.struct_name()} error, {message}")
        if cause is not None:
            raise error from cause
        raise error

    # -- document engine ----------------------------------------------------

    def read_cursor(self, cursor: Cursor) -> None:
        document.read_document(self, cursor)

    def read_stream(self, stream: TextIO) -> None:
        """Read the rest of a text stream."""
        self.read_cursor(Cursor.from_stream(stream))

    def read_string(self, text: str) -> None:
        self.read_cursor(Cursor(text))

    def read_file(self, path: Any) -> None:
        document.read_file(self, path)

    def set(self, var_name: str, value: Any) -> None:
        """Assign a field from text, e.g. ``set("s.k", "9")`` or ``set("k", "[1,2,3]")``.

        ``value`` may also be a Cursor, which is left just past the value.
        """
        cursor = value if isinstance(value, Cursor) else Cursor(str(value))
        document.assign(self, var_name, cursor)

    def write_to_stream(self, out: TextIO, indent: int = 0) -> None:
        document.write_document(self, out, indent)

    def write_to_file(self, path: Any) -> None:
        document.write_file(self, path)

    def to_string(self) -> str:
        buffer = io.StringIO()
        self.write_to_stream(buffer)
        return buffer.getvalue()

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        values = ", ".join(f"{f.name}={self.__dict__.get(f.name)!r}" for f in self.fields())
        return f"{self.struct_name()}({values})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.compare_all(other) == 0

    __hash__ = None  # type: ignore[assignment]


def _check_field_name(name: str) -> None:
    if name.startswith("_") or name == document.INCLUDE_KEY or hasattr(Record, name):
        raise TypeError(f"'{name}' cannot be used as a field name")


def make_record_class(name: str, fields: list[FieldDefinition], base: type[Record] = Record) -> type[Record]:
    """Build a record type from field definitions."""
    cls = type(name, (base,), {"__doc__": f"Record type '{name}'.", "__module__": __name__})
    for f in fields:
        cls.add_field(f.name, f.type_def, f.default_value)
    return cls
