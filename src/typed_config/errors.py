"""Exceptions raised by typed_config."""


class ConfigError(Exception):
    """Base class for typed_config errors."""


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """Raised when a file passed to read_file or an include directive is missing."""


class ConfigWriteError(ConfigError):
    """Raised when the output stream fails while a record is being written."""


class UnknownKeyError(ConfigError):
    """Raised when a key matches no declared field."""


class DuplicateFieldError(ConfigError):
    """Raised when a record type declares the same field name more than once."""


class ParseError(ConfigError):
    """Raised when the value after a key cannot be decoded."""


class EmptyOptionalError(ConfigError, ValueError):
    """Raised on read-only access of an absent optional value."""


class DecodeError(ConfigError):
    """Raised by a codec when a token does not fit the field's shape.

    The document engine reports it to callers as a ParseError naming the key.
    """


class AddressingError(DecodeError):
    """Raised when a dotted path addresses into a field that is not a record."""


class CapacityExceededError(DecodeError):
    """Raised when a fixed-capacity array receives too many elements."""
