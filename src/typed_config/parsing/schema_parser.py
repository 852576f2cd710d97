"""Parser for the record schema DSL.

Example::

    define port as uint16

    Endpoint { host: string = "localhost", port = 8080 }

    Service extends Endpoint {
        name: string,
        retries: optional<uint8>,
        weights: map<string, float64>,
        backends: Endpoint[],
    }

A field written without a type (``port = 8080`` or just ``port``) takes
the type whose name matches the field name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from typed_config.optional import UNSET
from typed_config.parsing.schema_lexer import SchemaLexer
from typed_config.record import Record, array_of, make_record_class, map_of, optional_of, pair_of, set_of
from typed_config.types import (
    AliasTypeDefinition,
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
    TypeRegistry,
)


@dataclass
class TypeRef:
    """Reference to a named type, with type arguments for generics (map<K, V>)."""

    name: str
    args: list[TypeRef | ArrayRef] = field(default_factory=list)


@dataclass
class ArrayRef:
    """Reference to an array of another type, fixed-size when capacity is set."""

    element: TypeRef | ArrayRef
    capacity: int | None = None


@dataclass
class FieldSpec:
    """Specification for a field before resolution."""

    name: str
    type_ref: TypeRef | ArrayRef | None = None  # None means type name matches field name
    default: Any = UNSET


@dataclass
class RecordSpec:
    """Specification for a record type before resolution."""

    name: str
    base: str | None
    fields: list[FieldSpec]


@dataclass
class AliasSpec:
    """Specification for an alias before resolution."""

    name: str
    base_type_ref: TypeRef | ArrayRef


# Generic type constructors: name -> (argument count, builder)
GENERICS = {
    "optional": (1, optional_of),
    "set": (1, set_of),
    "pair": (2, pair_of),
    "map": (2, map_of),
}


class SchemaParser:
    """Parser for the record schema DSL."""

    tokens = SchemaLexer.tokens

    def __init__(self) -> None:
        self.lexer = SchemaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.registry: TypeRegistry = TypeRegistry()
        self._specs: list[AliasSpec | RecordSpec] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema :"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1]
        p[0].append(p[2])

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : alias_def
                     | record_def"""
        p[0] = p[1]

    def p_alias_def(self, p: yacc.YaccProduction) -> None:
        """alias_def : DEFINE IDENTIFIER AS type_ref"""
        p[0] = AliasSpec(name=p[2], base_type_ref=p[4])

    def p_record_def(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER record_base LBRACE field_list RBRACE
                      | IDENTIFIER record_base LBRACE field_list COMMA RBRACE"""
        p[0] = RecordSpec(name=p[1], base=p[2], fields=p[4])

    def p_record_def_empty(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER record_base LBRACE RBRACE"""
        p[0] = RecordSpec(name=p[1], base=p[2], fields=[])

    def p_record_base(self, p: yacc.YaccProduction) -> None:
        """record_base : EXTENDS IDENTIFIER"""
        p[0] = p[2]

    def p_record_base_none(self, p: yacc.YaccProduction) -> None:
        """record_base :"""
        p[0] = None

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list COMMA field"""
        p[0] = p[1] + [p[3]]

    def p_field_with_type(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3])

    def p_field_with_type_default(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref EQUALS literal"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3], default=p[5])

    def p_field_implicit_type(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER"""
        p[0] = FieldSpec(name=p[1], type_ref=None)

    def p_field_implicit_type_default(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER EQUALS literal"""
        p[0] = FieldSpec(name=p[1], type_ref=None, default=p[3])

    def p_type_ref_simple(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = TypeRef(name=p[1])

    def p_type_ref_generic(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER LANGLE type_ref_list RANGLE"""
        p[0] = TypeRef(name=p[1], args=p[3])

    def p_type_ref_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref LBRACKET RBRACKET"""
        p[0] = ArrayRef(element=p[1])

    def p_type_ref_fixed_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref LBRACKET INTEGER RBRACKET"""
        p[0] = ArrayRef(element=p[1], capacity=p[3])

    def p_type_ref_list_single(self, p: yacc.YaccProduction) -> None:
        """type_ref_list : type_ref"""
        p[0] = [p[1]]

    def p_type_ref_list_multiple(self, p: yacc.YaccProduction) -> None:
        """type_ref_list : type_ref_list COMMA type_ref"""
        p[0] = p[1] + [p[3]]

    def p_literal_scalar(self, p: yacc.YaccProduction) -> None:
        """literal : INTEGER
                   | FLOAT
                   | STRING"""
        p[0] = p[1]

    def p_literal_true(self, p: yacc.YaccProduction) -> None:
        """literal : TRUE"""
        p[0] = True

    def p_literal_false(self, p: yacc.YaccProduction) -> None:
        """literal : FALSE"""
        p[0] = False

    def p_literal_list(self, p: yacc.YaccProduction) -> None:
        """literal : LBRACKET literal_list RBRACKET
                   | LBRACKET literal_list COMMA RBRACKET"""
        p[0] = p[2]

    def p_literal_list_empty(self, p: yacc.YaccProduction) -> None:
        """literal : LBRACKET RBRACKET"""
        p[0] = []

    def p_literal_list_single(self, p: yacc.YaccProduction) -> None:
        """literal_list : literal"""
        p[0] = [p[1]]

    def p_literal_list_multiple(self, p: yacc.YaccProduction) -> None:
        """literal_list : literal_list COMMA literal"""
        p[0] = p[1] + [p[3]]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> TypeRegistry:
        """Parse record definitions and return a populated TypeRegistry."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.registry = TypeRegistry()
        self._specs = []

        # Parse into specs
        self.lexer.lexer.lineno = 1
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        if specs is None:
            specs = []
        self._specs = specs

        # Resolve specs into type definitions
        self._resolve_specs()

        return self.registry

    def _resolve_specs(self) -> None:
        """Resolve all specs into type definitions in three phases.

        Phase 1: Create a record class for every RecordSpec, base records
        first, so fields can refer to any record (including their own type).
        Phase 2: Iteratively resolve aliases.
        Phase 3: Add fields to the record classes.
        """
        records = [s for s in self._specs if isinstance(s, RecordSpec)]
        aliases = [s for s in self._specs if isinstance(s, AliasSpec)]

        # Phase 1: Create record classes
        pending = list(records)
        created: list[RecordSpec] = []
        while pending:
            still_pending: list[RecordSpec] = []
            for spec in pending:
                base = self._record_base(spec)
                if base is None:
                    still_pending.append(spec)
                    continue
                cls = make_record_class(spec.name, [], base)
                self.registry.register(RecordTypeDefinition(name=spec.name, record_class=cls))
                created.append(spec)

            if len(still_pending) == len(pending):
                remaining = [s.name for s in still_pending]
                raise ValueError(f"Cannot resolve base types: {remaining}")
            pending = still_pending

        # Phase 2: Iteratively resolve aliases
        unresolved = aliases
        max_iterations = len(unresolved) + 1
        for _ in range(max_iterations):
            if not unresolved:
                break

            still_unresolved: list[AliasSpec] = []
            for spec in unresolved:
                try:
                    base_type = self._resolve_type_ref(spec.base_type_ref)
                except KeyError:
                    # Dependency not yet resolved
                    still_unresolved.append(spec)
                    continue
                self.registry.register(AliasTypeDefinition(name=spec.name, base_type=base_type))

            if len(still_unresolved) == len(unresolved):
                remaining = [s.name for s in still_unresolved]
                raise ValueError(f"Cannot resolve types: {remaining}")
            unresolved = still_unresolved

        # Phase 3: Populate record fields, base records first
        for spec in created:
            self._populate_record(spec)

        for spec in records:
            self._check_not_self_embedding(spec.name)

    def _check_not_self_embedding(self, name: str) -> None:
        """Reject records that contain themselves without an optional or container in between.

        Default initialization of such a record would never terminate.
        """
        root = self.registry.get_or_raise(name)
        assert isinstance(root, RecordTypeDefinition)
        stack = [root.record_class]
        seen: set[type[Record]] = set()
        while stack:
            cls = stack.pop()
            for f in cls.fields():
                for embedded in _embedded_records(f.type_def):
                    if embedded is root.record_class:
                        raise ValueError(f"Type '{name}' contains itself through field '{f.name}'")
                    if embedded not in seen:
                        seen.add(embedded)
                        stack.append(embedded)

    def _record_base(self, spec: RecordSpec) -> type[Record] | None:
        """Return the base class for a record spec, or None if it is not created yet."""
        if spec.base is None:
            return Record
        base_def = self.registry.get(spec.base)
        if base_def is None:
            if any(isinstance(s, RecordSpec) and s.name == spec.base for s in self._specs):
                return None
            if any(isinstance(s, AliasSpec) and s.name == spec.base for s in self._specs):
                raise ValueError(f"Type '{spec.name}' cannot extend non-record type '{spec.base}'")
            raise ValueError(f"Type '{spec.name}' extends unknown type '{spec.base}'")
        if not isinstance(base_def, RecordTypeDefinition):
            raise ValueError(f"Type '{spec.name}' cannot extend non-record type '{spec.base}'")
        return base_def.record_class

    def _populate_record(self, spec: RecordSpec) -> None:
        record_def = self.registry.get_or_raise(spec.name)
        assert isinstance(record_def, RecordTypeDefinition)
        cls = record_def.record_class

        inherited = {f.name for f in cls.fields()}
        seen: set[str] = set()
        for field_spec in spec.fields:
            if field_spec.name in inherited:
                raise ValueError(f"Type '{spec.name}' redeclares inherited field '{field_spec.name}'")
            if field_spec.name in seen:
                raise ValueError(f"Type '{spec.name}' declares field '{field_spec.name}' more than once")
            seen.add(field_spec.name)

            try:
                if field_spec.type_ref is None:
                    field_type = self.registry.get_or_raise(field_spec.name)
                else:
                    field_type = self._resolve_type_ref(field_spec.type_ref)
            except KeyError as exc:
                raise ValueError(f"Field '{spec.name}.{field_spec.name}': {exc.args[0]}") from None

            default = UNSET
            if field_spec.default is not UNSET:
                default = coerce_default(field_spec.default, field_type)
            try:
                cls.add_field(field_spec.name, field_type, default)
            except TypeError as exc:
                raise ValueError(f"Type '{spec.name}': {exc}") from None

    def _resolve_type_ref(self, type_ref: TypeRef | ArrayRef) -> TypeDefinition:
        """Resolve a type reference to a type definition."""
        if isinstance(type_ref, ArrayRef):
            if type_ref.capacity is not None and type_ref.capacity < 0:
                raise ValueError(f"Array capacity must not be negative, got {type_ref.capacity}")
            return array_of(self._resolve_type_ref(type_ref.element), type_ref.capacity)

        if not type_ref.args:
            return self.registry.get_or_raise(type_ref.name)

        if type_ref.name not in GENERICS:
            raise ValueError(f"Type '{type_ref.name}' does not take type arguments")
        arity, build = GENERICS[type_ref.name]
        if len(type_ref.args) != arity:
            raise ValueError(f"{type_ref.name}<> takes {arity} type argument(s), got {len(type_ref.args)}")
        args = [self._resolve_type_ref(arg) for arg in type_ref.args]
        try:
            return build(*args)
        except TypeError as exc:
            raise ValueError(str(exc)) from None


def _embedded_records(type_def: TypeDefinition) -> list[type[Record]]:
    """Record classes whose instances a default value of this type creates."""
    base = type_def.resolve_base_type()
    if isinstance(base, RecordTypeDefinition):
        return [base.record_class]
    if isinstance(base, PairTypeDefinition):
        return _embedded_records(base.first_type) + _embedded_records(base.second_type)
    if isinstance(base, ArrayTypeDefinition) and base.capacity:
        return _embedded_records(base.element_type)
    return []


def coerce_default(value: Any, type_def: TypeDefinition) -> Any:
    """Convert a DSL literal to a default value of the given type."""
    base = type_def.resolve_base_type()

    if isinstance(base, OptionalTypeDefinition):
        return coerce_default(value, base.inner_type)
    if isinstance(base, PrimitiveTypeDefinition):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Default {value!r} is not a number for type '{type_def.name}'")
        if base.primitive.is_integer:
            if not isinstance(value, int):
                raise ValueError(f"Default {value!r} is not an integer for type '{type_def.name}'")
            if not base.primitive.min_value <= value <= base.primitive.max_value:
                raise ValueError(f"Default {value} is out of range for type '{type_def.name}'")
            return value
        return float(value)
    if isinstance(base, BooleanTypeDefinition):
        if not isinstance(value, bool):
            raise ValueError(f"Default {value!r} is not a boolean")
        return value
    if isinstance(base, StringTypeDefinition):
        if not isinstance(value, str):
            raise ValueError(f"Default {value!r} is not a string")
        return value

    if not isinstance(value, list):
        raise ValueError(f"Default for type '{type_def.name}' must be a list, got {value!r}")
    if isinstance(base, ArrayTypeDefinition):
        items = [coerce_default(v, base.element_type) for v in value]
        if base.capacity is not None:
            if len(items) > base.capacity:
                raise ValueError(f"Default has more than {base.capacity} elements for type '{type_def.name}'")
            items += [base.element_type.default_value() for _ in range(base.capacity - len(items))]
        return items
    if isinstance(base, SetTypeDefinition):
        return {coerce_default(v, base.element_type) for v in value}
    if isinstance(base, PairTypeDefinition):
        if len(value) != 2:
            raise ValueError(f"Default for type '{type_def.name}' needs exactly 2 values")
        return (coerce_default(value[0], base.first_type), coerce_default(value[1], base.second_type))
    if isinstance(base, DictTypeDefinition):
        if len(value) % 2:
            raise ValueError(f"Default for type '{type_def.name}' needs alternating keys and values")
        return {
            coerce_default(value[i], base.key_type): coerce_default(value[i + 1], base.value_type)
            for i in range(0, len(value), 2)
        }
    raise ValueError(f"Fields of type '{type_def.name}' cannot have a default")
