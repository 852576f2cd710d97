"""Schema class for record types declared in the schema DSL."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from typed_config.parsing import SchemaParser
from typed_config.record import Record
from typed_config.types import RecordTypeDefinition, TypeDefinition, TypeRegistry

logger = logging.getLogger(__name__)


class Schema:
    """Parsed record definitions."""

    def __init__(self, registry: TypeRegistry) -> None:
        """Initialize a schema.

        Args:
            registry: Type registry with all type definitions.
        """
        self.registry = registry

    @classmethod
    def parse(cls, type_definitions: str) -> Schema:
        """Parse type definitions and create a schema.

        Args:
            type_definitions: DSL string defining record types.

        Returns:
            A new Schema instance.
        """
        parser = SchemaParser()
        registry = parser.parse(type_definitions)
        logger.debug("Parsed schema with records: %s", registry.list_records())
        return cls(registry)

    @classmethod
    def load(cls, path: Path | str) -> Schema:
        """Parse a schema file."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            return cls.parse(f.read())

    def get_type(self, name: str) -> TypeDefinition:
        """Get a type definition by name.

        Raises:
            KeyError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def get_record_class(self, name: str) -> type[Record]:
        """Get the generated Record subclass for a record type.

        Raises:
            KeyError: If no record type has this name.
        """
        type_def = self.registry.get(name)
        if not isinstance(type_def, RecordTypeDefinition):
            raise KeyError(f"Record type '{name}' not found")
        return type_def.record_class

    def list_records(self) -> list[str]:
        """List all record type names."""
        return self.registry.list_records()

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def create(self, type_name: str, **values: Any) -> Record:
        """Create a default-initialized record, then apply keyword field values."""
        return self.get_record_class(type_name)(**values)

    def __getitem__(self, name: str) -> type[Record]:
        return self.get_record_class(name)

    def __contains__(self, name: str) -> bool:
        return isinstance(self.registry.get(name), RecordTypeDefinition)
