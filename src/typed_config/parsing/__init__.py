"""Parsing module for the record schema DSL."""

from typed_config.parsing.schema_parser import SchemaParser

__all__ = [
    "SchemaParser",
]
