"""Typed Config - typed, hierarchical configuration records in a compact text format."""

from typed_config.codec import Codec, codec_for
from typed_config.cursor import Cursor
from typed_config.errors import (
    AddressingError,
    CapacityExceededError,
    ConfigError,
    ConfigFileNotFoundError,
    ConfigWriteError,
    DecodeError,
    DuplicateFieldError,
    EmptyOptionalError,
    ParseError,
    UnknownKeyError,
)
from typed_config.optional import UNSET, OptionalValue
from typed_config.parsing import SchemaParser
from typed_config.record import (
    Field,
    Record,
    array_of,
    make_record_class,
    map_of,
    optional_of,
    pair_of,
    set_of,
)
from typed_config.schema import Schema
from typed_config.types import (
    BOOL,
    FLOAT32,
    FLOAT64,
    INT8,
    INT16,
    INT32,
    INT64,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    FieldDefinition,
    PrimitiveType,
    TypeDefinition,
    TypeRegistry,
)

__all__ = [
    # Main API
    "Record",
    "Field",
    "Schema",
    "SchemaParser",
    "OptionalValue",
    "UNSET",
    "make_record_class",
    # Field shapes
    "BOOL",
    "STRING",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "FLOAT32",
    "FLOAT64",
    "array_of",
    "map_of",
    "optional_of",
    "pair_of",
    "set_of",
    "PrimitiveType",
    "TypeDefinition",
    "FieldDefinition",
    "TypeRegistry",
    # Engine internals
    "Codec",
    "codec_for",
    "Cursor",
    # Errors
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigWriteError",
    "UnknownKeyError",
    "DuplicateFieldError",
    "ParseError",
    "DecodeError",
    "AddressingError",
    "CapacityExceededError",
    "EmptyOptionalError",
]

__version__ = "0.1.0"
