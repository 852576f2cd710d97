"""Optional box: a value that may be absent."""

from __future__ import annotations

import copy
from typing import Any, Callable

from typed_config.errors import EmptyOptionalError


class _Unset:
    """Sentinel type for 'no value'."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Unset:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Unset:
        return self


UNSET: Any = _Unset()


class OptionalValue:
    """A box that is either absent or holds exactly one value.

    Optional record fields are stored as boxes. An absent box is skipped by
    default initialization, omitted when a record is written, and compares
    equal only to another absent box.

    The box owns its value: copying a present box deep-copies the value,
    and ``take()`` moves the value out and leaves the box absent.
    """

    def __init__(self, value: Any = UNSET, factory: Callable[[], Any] | None = None) -> None:
        self._value = value
        self._factory = factory

    @property
    def is_set(self) -> bool:
        """Return whether the box currently holds a value."""
        return self._value is not UNSET

    def get(self) -> Any:
        """Return the contained value.

        Raises:
            EmptyOptionalError: If the box is absent.
        """
        if self._value is UNSET:
            raise EmptyOptionalError("access of empty optional")
        return self._value

    def get_or_insert_default(self) -> Any:
        """Return the contained value, allocating a default one if absent."""
        if self._value is UNSET:
            if self._factory is None:
                raise EmptyOptionalError("access of empty optional with no default factory")
            self._value = self._factory()
        return self._value

    def set(self, value: Any) -> None:
        """Store a value, making the box present."""
        self._value = value

    def unset(self) -> None:
        """Release the value and return to absent."""
        self._value = UNSET

    def take(self) -> Any:
        """Move the value out of the box, leaving it absent."""
        value = self.get()
        self._value = UNSET
        return value

    def copy(self) -> OptionalValue:
        """Return an independent box; a present value is deep-copied."""
        return OptionalValue(copy.deepcopy(self._value), self._factory)

    def __deepcopy__(self, memo: dict[int, Any]) -> OptionalValue:
        return OptionalValue(copy.deepcopy(self._value, memo), self._factory)

    def __copy__(self) -> OptionalValue:
        return self.copy()

    def __bool__(self) -> bool:
        return self.is_set

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptionalValue):
            return NotImplemented
        if not self.is_set or not other.is_set:
            return self.is_set == other.is_set
        return bool(self._value == other._value)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._value is UNSET:
            return "OptionalValue()"
        return f"OptionalValue({self._value!r})"
