"""Value types exchanged across the reader boundary.

Defines the closed set of value kinds a schema can declare, the 3D vector
payload used by function signatures, path helpers and the strict
compatibility checks used by fields, readers and function bindings.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional, Sequence, Tuple, Union

__all__ = [
    "FIELD_TYPES",
    "PATH_SEPARATOR",
    "Path",
    "PathSegment",
    "ValueType",
    "Vector3D",
    "check_value",
    "coerce_value",
    "format_path",
    "is_compatible",
    "join_path",
    "parse_path",
    "python_type_for",
]

PATH_SEPARATOR = "/"

PathSegment = Union[str, int]
Path = Tuple[PathSegment, ...]


class ValueType(Enum):
    """Kinds of values a schema node can declare."""

    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    VEC3D = "vec3d"  # Function signatures only
    VOID = "void"  # Function return type only


# Types a Field may be declared with
FIELD_TYPES = frozenset({ValueType.BOOL, ValueType.INT, ValueType.DOUBLE, ValueType.STRING})


@dataclass(frozen=True)
class Vector3D:
    """Three-component vector of doubles.

    Schema logic treats it as an opaque payload tagged ``ValueType.VEC3D``;
    the arithmetic is here so deck scripts can build and combine vectors.

    Example:
        >>> Vector3D(1, 2, 3) + Vector3D(1, 1, 1)
        Vector3D(x=2.0, y=3.0, z=4.0)
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __post_init__(self) -> None:
        for name in ("x", "y", "z"):
            component = getattr(self, name)
            if isinstance(component, bool) or not isinstance(component, (int, float)):
                raise TypeError(f"Vector3D.{name} must be a number, got {component!r}")
            object.__setattr__(self, name, float(component))

    @classmethod
    def from_sequence(cls, values: Sequence[Any]) -> "Vector3D":
        """Build a vector from 2 or 3 numbers (a missing z is 0.0)."""
        if isinstance(values, Vector3D):
            return values
        if isinstance(values, (str, bytes)) or len(values) not in (2, 3):
            raise ValueError(f"Expected 2 or 3 components, got {values!r}")
        return cls(*values)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __len__(self) -> int:
        return 3

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[index]

    def __add__(self, other: "Vector3D") -> "Vector3D":
        if not isinstance(other, Vector3D):
            return NotImplemented
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        if not isinstance(other, Vector3D):
            return NotImplemented
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector3D":
        return Vector3D(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> "Vector3D":
        if isinstance(scalar, bool) or not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vector3D(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def dot(self, other: "Vector3D") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def squared_norm(self) -> float:
        return self.dot(self)

    def norm(self) -> float:
        return math.sqrt(self.squared_norm())

    def unit_vector(self) -> "Vector3D":
        """Return the normalized vector; the zero vector is returned unchanged."""
        length = self.norm()
        if length == 0.0:
            return self
        return self * (1.0 / length)


def parse_path(path: Union[str, Sequence[PathSegment]]) -> Path:
    """Split a textual path into segments.

    Numeric segments become integer indices. Empty segments are dropped so
    leading, trailing and doubled separators are harmless.

    Args:
        path: ``"a/b/3"`` style string, or an existing sequence of segments

    Returns:
        Tuple of segments

    Example:
        >>> parse_path("bcs/7/attrs")
        ('bcs', 7, 'attrs')
    """
    if isinstance(path, tuple):
        return path
    if not isinstance(path, str):
        return tuple(path)

    segments = []
    for raw in path.split(PATH_SEPARATOR):
        raw = raw.strip()
        if not raw:
            continue
        if raw.lstrip("-").isdigit():
            segments.append(int(raw))
        else:
            segments.append(raw)
    return tuple(segments)


def join_path(base: Path, extra: Union[str, Sequence[PathSegment]]) -> Path:
    return base + parse_path(extra)


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a path for diagnostics and documentation."""
    return PATH_SEPARATOR.join(str(segment) for segment in path)


def python_type_for(value_type: ValueType) -> Optional[type]:
    """Native Python type matching a declared value type (None for VOID)."""
    return {
        ValueType.BOOL: bool,
        ValueType.INT: int,
        ValueType.DOUBLE: float,
        ValueType.STRING: str,
        ValueType.VEC3D: Vector3D,
        ValueType.VOID: None,
    }[value_type]


def is_compatible(value: Any, value_type: ValueType) -> bool:
    """Check a raw value against a declared type without any coercion.

    ``bool`` is never accepted as a number; ``int`` is accepted where a
    double is declared.
    """
    if value_type is ValueType.BOOL:
        return isinstance(value, bool)
    if value_type is ValueType.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if value_type is ValueType.DOUBLE:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if value_type is ValueType.STRING:
        return isinstance(value, str)
    if value_type is ValueType.VEC3D:
        return isinstance(value, Vector3D)
    return value is None


def coerce_value(value: Any, value_type: ValueType) -> Any:
    """Normalize a compatible value to its native representation.

    Raises:
        TypeError: If the value is not compatible with ``value_type``
    """
    if not is_compatible(value, value_type):
        raise TypeError(f"{value!r} is not a valid {value_type.value} value")
    if value_type is ValueType.DOUBLE:
        return float(value)
    return value


def check_value(value: Any, value_type: ValueType) -> Optional[str]:
    """Return a description of why ``value`` does not fit, or None if it does."""
    if is_compatible(value, value_type):
        return None
    return f"expected {value_type.value}, got {type(value).__name__} ({value!r})"
