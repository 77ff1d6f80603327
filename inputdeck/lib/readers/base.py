"""Reader capability consumed by the schema engine.

A reader answers presence, value, container and callable queries for a path
in an already parsed document. The engine never sees the backend's native
objects: everything it gets back is a plain Python value matching a
``ValueType`` or a ``CallableHandle``.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from inputdeck.lib.types import Path, PathSegment, ValueType

logger = logging.getLogger(__name__)

__all__ = ["CallableHandle", "Reader", "Signature"]


class Signature(NamedTuple):
    """Declared call signature of a function binding."""

    return_type: ValueType
    arg_types: Tuple[ValueType, ...]

    @property
    def backend_arity(self) -> int:
        """Number of positional values the backend callable receives.

        A VEC3D argument is passed as three separate numbers.
        """
        return sum(3 if arg is ValueType.VEC3D else 1 for arg in self.arg_types)

    def describe(self) -> str:
        args = ", ".join(arg.value for arg in self.arg_types)
        return f"{self.return_type.value}({args})"


class CallableHandle:
    """Backend callable resolved at a path.

    Args:
        func: The backend callable
        name: Path of the callable, used in messages
    """

    def __init__(self, func: Callable[..., Any], name: str = "") -> None:
        self._func = func
        self.name = name
        self._arity = _arity_bounds(func)

    @property
    def arity(self) -> Optional[Tuple[int, Optional[int]]]:
        """(minimum, maximum) positional arguments, None when unknown."""
        return self._arity

    def accepts(self, count: int) -> bool:
        """Whether the callable can be invoked with ``count`` positional args."""
        if self._arity is None:
            return True
        low, high = self._arity
        return count >= low and (high is None or count <= high)

    def __call__(self, *args: Any) -> Any:
        return self._func(*args)

    def __repr__(self) -> str:
        return f"CallableHandle({self.name!r}, arity={self._arity})"


def _arity_bounds(func: Callable[..., Any]) -> Optional[Tuple[int, Optional[int]]]:
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        # Builtins and C callables without introspectable signatures
        return None

    low = 0
    high: Optional[int] = 0
    for param in params:
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            if param.default is param.empty:
                low += 1
            if high is not None:
                high += 1
        elif param.kind is param.VAR_POSITIONAL:
            high = None
        elif param.kind is param.KEYWORD_ONLY and param.default is param.empty:
            # A required keyword-only parameter can never be filled positionally
            return (1, 0)
    return (low, high)


class Reader(ABC):
    """Backend-agnostic access to a parsed deck document.

    Paths are tuples of name and integer index segments, already split.
    Getters return None when nothing is present at the path or when the
    value there is not compatible with the requested type.
    """

    @abstractmethod
    def has_value(self, path: Path) -> bool:
        """Whether any value (scalar, container or callable) exists at path."""

    @abstractmethod
    def get_bool(self, path: Path) -> Optional[bool]:
        ...

    @abstractmethod
    def get_int(self, path: Path) -> Optional[int]:
        ...

    @abstractmethod
    def get_double(self, path: Path) -> Optional[float]:
        ...

    @abstractmethod
    def get_string(self, path: Path) -> Optional[str]:
        ...

    @abstractmethod
    def has_array(self, path: Path) -> bool:
        """Whether a container (array or table) exists at path."""

    @abstractmethod
    def get_array(self, path: Path, value_type: ValueType) -> Dict[PathSegment, Any]:
        """Elements of the container at path that match ``value_type``.

        Keys are the backend's own indices, unchanged and in backend order.
        """

    @abstractmethod
    def get_indices(self, path: Path) -> List[PathSegment]:
        """Indices present in the container at path, in backend order."""

    @abstractmethod
    def get_function(self, path: Path, signature: Signature) -> Optional[CallableHandle]:
        """Callable at path, or None when the value there is not callable."""

    def get_scalar(self, path: Path, value_type: ValueType) -> Optional[Any]:
        """Dispatch to the typed getter for ``value_type``."""
        getters = {
            ValueType.BOOL: self.get_bool,
            ValueType.INT: self.get_int,
            ValueType.DOUBLE: self.get_double,
            ValueType.STRING: self.get_string,
        }
        try:
            getter = getters[value_type]
        except KeyError:
            raise ValueError(f"{value_type.value} is not a scalar type") from None
        return getter(path)
