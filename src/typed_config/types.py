"""Type definitions for the typed_config library."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from typed_config.optional import UNSET, OptionalValue

if TYPE_CHECKING:
    from typed_config.record import Record


class PrimitiveType(Enum):
    """Built-in numeric types supported by the type system."""

    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def size_bytes(self) -> int:
        """Return the size in bytes for this primitive type."""
        sizes = {
            PrimitiveType.INT8: 1,
            PrimitiveType.UINT8: 1,
            PrimitiveType.INT16: 2,
            PrimitiveType.UINT16: 2,
            PrimitiveType.INT32: 4,
            PrimitiveType.UINT32: 4,
            PrimitiveType.INT64: 8,
            PrimitiveType.UINT64: 8,
            PrimitiveType.FLOAT32: 4,
            PrimitiveType.FLOAT64: 8,
        }
        return sizes[self]

    @property
    def is_integer(self) -> bool:
        return self not in (PrimitiveType.FLOAT32, PrimitiveType.FLOAT64)

    @property
    def is_signed(self) -> bool:
        return not self.value.startswith("uint")

    @property
    def min_value(self) -> int:
        """Smallest value an integer type accepts."""
        if not self.is_signed:
            return 0
        return -(1 << (self.size_bytes * 8 - 1))

    @property
    def max_value(self) -> int:
        """Largest value an integer type accepts."""
        bits = self.size_bytes * 8
        if self.is_signed:
            bits -= 1
        return (1 << bits) - 1


# Mapping from type name strings to PrimitiveType enum values
PRIMITIVE_TYPE_NAMES: dict[str, PrimitiveType] = {pt.value: pt for pt in PrimitiveType}


@dataclass
class TypeDefinition:
    """Base class for all field shapes."""

    name: str

    def default_value(self) -> Any:
        """Return a fresh zero value for this shape."""
        raise NotImplementedError

    @property
    def is_container(self) -> bool:
        """Return whether values of this type are bracketed lists in text."""
        return False

    @property
    def is_record(self) -> bool:
        """Return whether this type is a nested record (accepts dotted paths)."""
        return False

    @property
    def is_optional(self) -> bool:
        return False

    @property
    def is_hashable(self) -> bool:
        """Return whether values can be set elements or map keys."""
        return True

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self


@dataclass
class PrimitiveTypeDefinition(TypeDefinition):
    """Type definition wrapping a numeric primitive type."""

    primitive: PrimitiveType

    def default_value(self) -> int | float:
        return 0 if self.primitive.is_integer else 0.0


@dataclass
class BooleanTypeDefinition(TypeDefinition):
    """Built-in boolean type, written as true/false."""

    def default_value(self) -> bool:
        return False


@dataclass
class StringTypeDefinition(TypeDefinition):
    """Built-in string type."""

    def default_value(self) -> str:
        return ""


def is_string_type(type_def: TypeDefinition) -> bool:
    """Check if a type resolves to the built-in string type."""
    return isinstance(type_def.resolve_base_type(), StringTypeDefinition)


def is_boolean_type(type_def: TypeDefinition) -> bool:
    """Check if a type resolves to the built-in boolean type."""
    return isinstance(type_def.resolve_base_type(), BooleanTypeDefinition)


@dataclass
class AliasTypeDefinition(TypeDefinition):
    """Type definition for 'define X as Y' aliases."""

    base_type: TypeDefinition

    def default_value(self) -> Any:
        return self.base_type.default_value()

    @property
    def is_container(self) -> bool:
        return self.base_type.is_container

    @property
    def is_record(self) -> bool:
        return self.base_type.is_record

    @property
    def is_optional(self) -> bool:
        return self.base_type.is_optional

    @property
    def is_hashable(self) -> bool:
        return self.base_type.is_hashable

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self.base_type.resolve_base_type()


@dataclass
class OptionalTypeDefinition(TypeDefinition):
    """A value that may be absent (optional<T>)."""

    inner_type: TypeDefinition

    def default_value(self) -> OptionalValue:
        return OptionalValue(factory=self.inner_type.default_value)

    @property
    def is_optional(self) -> bool:
        return True

    @property
    def is_hashable(self) -> bool:
        return False


@dataclass
class PairTypeDefinition(TypeDefinition):
    """Two values written one after the other (pair<A, B>).

    Values are tuples.
    """

    first_type: TypeDefinition
    second_type: TypeDefinition

    def default_value(self) -> tuple[Any, Any]:
        return (self.first_type.default_value(), self.second_type.default_value())

    @property
    def is_hashable(self) -> bool:
        return self.first_type.is_hashable and self.second_type.is_hashable


@dataclass
class ArrayTypeDefinition(TypeDefinition):
    """Sequence type (e.g. int32[]), or fixed-capacity array when capacity is set (int32[4])."""

    element_type: TypeDefinition
    capacity: int | None = None

    def default_value(self) -> list[Any]:
        if self.capacity is None:
            return []
        return [self.element_type.default_value() for _ in range(self.capacity)]

    @property
    def is_container(self) -> bool:
        return True

    @property
    def is_hashable(self) -> bool:
        return False


@dataclass
class SetTypeDefinition(TypeDefinition):
    """Unordered collection of unique values (set<T>), written in sorted order."""

    element_type: TypeDefinition

    def default_value(self) -> set[Any]:
        return set()

    @property
    def is_container(self) -> bool:
        return True

    @property
    def is_hashable(self) -> bool:
        return False


@dataclass
class DictTypeDefinition(TypeDefinition):
    """Key/value mapping (map<K, V>), written as [key1,value1,key2,value2]."""

    key_type: TypeDefinition
    value_type: TypeDefinition

    def default_value(self) -> dict[Any, Any]:
        return {}

    @property
    def is_container(self) -> bool:
        return True

    @property
    def is_hashable(self) -> bool:
        return False


@dataclass
class RecordTypeDefinition(TypeDefinition):
    """A nested record field; values are instances of ``record_class``."""

    record_class: type[Record]

    def default_value(self) -> Record:
        return self.record_class()

    @property
    def is_record(self) -> bool:
        return True

    @property
    def is_hashable(self) -> bool:
        return False


@dataclass
class FieldDefinition:
    """Definition of a field within a record type."""

    name: str
    type_def: TypeDefinition
    default_value: Any = UNSET  # UNSET = use the shape's zero value


INT8 = PrimitiveTypeDefinition(name="int8", primitive=PrimitiveType.INT8)
UINT8 = PrimitiveTypeDefinition(name="uint8", primitive=PrimitiveType.UINT8)
INT16 = PrimitiveTypeDefinition(name="int16", primitive=PrimitiveType.INT16)
UINT16 = PrimitiveTypeDefinition(name="uint16", primitive=PrimitiveType.UINT16)
INT32 = PrimitiveTypeDefinition(name="int32", primitive=PrimitiveType.INT32)
UINT32 = PrimitiveTypeDefinition(name="uint32", primitive=PrimitiveType.UINT32)
INT64 = PrimitiveTypeDefinition(name="int64", primitive=PrimitiveType.INT64)
UINT64 = PrimitiveTypeDefinition(name="uint64", primitive=PrimitiveType.UINT64)
FLOAT32 = PrimitiveTypeDefinition(name="float32", primitive=PrimitiveType.FLOAT32)
FLOAT64 = PrimitiveTypeDefinition(name="float64", primitive=PrimitiveType.FLOAT64)
BOOL = BooleanTypeDefinition(name="bool")
STRING = StringTypeDefinition(name="string")

BUILTIN_TYPES: dict[str, TypeDefinition] = {
    t.name: t
    for t in (INT8, UINT8, INT16, UINT16, INT32, UINT32, INT64, UINT64, FLOAT32, FLOAT64, BOOL, STRING)
}


class TypeRegistry:
    """Registry of all defined types."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register all primitive types plus bool and string."""
        self._types.update(BUILTIN_TYPES)

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition."""
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def list_records(self) -> list[str]:
        """List the names of all registered record types."""
        return [name for name, td in self._types.items() if isinstance(td, RecordTypeDefinition)]

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._types
