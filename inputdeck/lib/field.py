"""Leaf schema nodes describing one scalar value or one scalar array.

Value resolution order at read time:
    1. the deck provides a type-compatible value at the path
    2. a default was registered
    3. otherwise the value is absent (None)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Iterable, Optional, Tuple

from inputdeck.lib.errors import SchemaConflictError, TypeMismatchError
from inputdeck.lib.node import SchemaNode
from inputdeck.lib.types import (
    FIELD_TYPES,
    Path,
    PathSegment,
    ValueType,
    check_value,
    coerce_value,
)

if TYPE_CHECKING:
    from inputdeck.lib.deck import Deck
    from inputdeck.lib.readers.base import Reader
    from inputdeck.lib.table import Table

logger = logging.getLogger(__name__)

__all__ = ["Field"]

_NUMERIC = (ValueType.INT, ValueType.DOUBLE)


class Field(SchemaNode):
    """Schema for a single value (or, with ``is_array``, a scalar array).

    Example:
        >>> deck.add_int("solver/max_iter").required().add_range(1, 1000)
        >>> deck.add_string("mode").add_discrete_set(["fast", "exact"]).add_default("fast")
    """

    kind = "field"

    def __init__(
        self,
        name: PathSegment,
        parent: "Table",
        deck: "Deck",
        value_type: ValueType,
        description: Optional[str] = None,
        *,
        is_array: bool = False,
    ) -> None:
        if value_type not in FIELD_TYPES:
            raise TypeMismatchError(
                f"Fields cannot hold {value_type.value} values",
                expected="bool, int, double or string",
                actual=value_type.value,
            )
        super().__init__(name, parent, deck, description)
        self._value_type = value_type
        self._is_array = is_array
        self._default: Any = None
        self._range: Optional[Tuple[Any, Any]] = None
        self._discrete_set: Optional[Tuple[Any, ...]] = None

    @property
    def value_type(self) -> ValueType:
        return self._value_type

    @property
    def is_array(self) -> bool:
        return self._is_array

    @property
    def default(self) -> Any:
        return self._default

    @property
    def has_default(self) -> bool:
        return self._default is not None

    @property
    def range(self) -> Optional[Tuple[Any, Any]]:
        return self._range

    @property
    def discrete_set(self) -> Optional[Tuple[Any, ...]]:
        return self._discrete_set

    # ============================================
    # Schema definition
    # ============================================

    def _checked(self, value: Any, what: str) -> Any:
        problem = check_value(value, self._value_type)
        if problem:
            raise TypeMismatchError(
                f"{what} does not match the declared type: {problem}",
                path=self.path_str,
                expected=self._value_type.value,
                actual=type(value).__name__,
            )
        return coerce_value(value, self._value_type)

    def add_default(self, value: Any) -> "Field":
        """Register the value used when the deck does not provide one.

        For scalar arrays ``value`` is a mapping of index to element.

        Raises:
            TypeMismatchError: If the value does not match the declared type
        """
        if self._is_array:
            if not isinstance(value, Mapping):
                raise TypeMismatchError(
                    "Array default must be a mapping of index to value",
                    path=self.path_str,
                    expected="mapping",
                    actual=type(value).__name__,
                )
            self._default = {index: self._checked(item, "Default element") for index, item in value.items()}
        else:
            self._default = self._checked(value, "Default")
        return self

    def add_range(self, low: Any, high: Any) -> "Field":
        """Restrict numeric values to the inclusive range [low, high].

        Raises:
            TypeMismatchError: If the field is not numeric or the bounds do
                not match its type
            SchemaConflictError: If a discrete set was already registered
            ValueError: If low > high
        """
        if self._value_type not in _NUMERIC:
            raise TypeMismatchError(
                "Ranges apply only to int and double fields",
                path=self.path_str,
                expected="int or double",
                actual=self._value_type.value,
            )
        if self._discrete_set is not None:
            raise SchemaConflictError(
                "Field already has a discrete set; range and discrete set are exclusive",
                path=self.path_str,
                existing="discrete set",
                requested="range",
            )
        low = self._checked(low, "Range start")
        high = self._checked(high, "Range end")
        if low > high:
            raise ValueError(f"Range start {low} is greater than range end {high} for {self.path_str}")
        self._range = (low, high)
        return self

    def add_discrete_set(self, values: Iterable[Any]) -> "Field":
        """Restrict values to a fixed set.

        Raises:
            TypeMismatchError: If any value does not match the declared type
            SchemaConflictError: If a range was already registered
        """
        if self._range is not None:
            raise SchemaConflictError(
                "Field already has a range; range and discrete set are exclusive",
                path=self.path_str,
                existing="range",
                requested="discrete set",
            )
        allowed = tuple(self._checked(value, "Allowed value") for value in values)
        if not allowed:
            raise ValueError(f"Discrete set for {self.path_str} must not be empty")
        self._discrete_set = allowed
        return self

    # ============================================
    # Resolution
    # ============================================

    def constraint_problem(self, value: Any) -> Optional[str]:
        """Describe how a single value breaks the range or discrete set."""
        if self._range is not None:
            low, high = self._range
            if not low <= value <= high:
                return f"{value!r} is outside the range [{low}, {high}]"
        if self._discrete_set is not None and value not in self._discrete_set:
            return f"{value!r} is not one of {list(self._discrete_set)}"
        return None

    def resolve(self, reader: "Reader", path: Path) -> Any:
        """Resolved value at a concrete path, or None when absent."""
        if self._is_array:
            if reader.has_array(path):
                elements = reader.get_array(path, self._value_type)
                if elements or not reader.get_indices(path):
                    return elements
            return dict(self._default) if self._default is not None else None

        value = reader.get_scalar(path, self._value_type)
        if value is not None:
            return value
        return self._default

    # ============================================
    # Access
    # ============================================

    @property
    def value(self) -> Any:
        """Resolved value at this field's declared path."""
        return self.get()

    def get(self, target: Any = None) -> Any:
        """Resolved value, checked against ``target`` when given.

        Raises:
            MissingRequiredError: If required and absent
            TypeMismatchError: If ``target`` does not match the declared type
        """
        from inputdeck.lib.extraction import extract

        return extract(self, self._deck.reader, self._require_concrete(), target)

    def __repr__(self) -> str:
        suffix = "[]" if self._is_array else ""
        return f"Field({self.path_str!r}, {self._value_type.value}{suffix})"

