"""Typed bindings to callables defined in a deck.

A binding fixes its signature when the schema is declared. Calls marshal
native arguments into the backend's positional convention (a vector becomes
three numbers), run the backend callable and marshal the result back. Every
failure on that path surfaces as ``CallError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from inputdeck.lib.errors import CallError, TypeMismatchError
from inputdeck.lib.node import SchemaNode
from inputdeck.lib.readers.base import CallableHandle, Signature
from inputdeck.lib.types import (
    Path,
    PathSegment,
    ValueType,
    Vector3D,
    coerce_value,
    format_path,
    is_compatible,
    python_type_for,
)

if TYPE_CHECKING:
    from inputdeck.lib.deck import Deck
    from inputdeck.lib.readers.base import Reader
    from inputdeck.lib.table import Table

logger = logging.getLogger(__name__)

__all__ = ["BoundFunction", "FunctionBinding", "make_signature"]


def make_signature(return_type: ValueType, arg_types: Sequence[ValueType]) -> Signature:
    """Validate and build a signature.

    Raises:
        TypeMismatchError: If VOID is used as an argument type
    """
    arg_types = tuple(arg_types)
    for arg in arg_types:
        if not isinstance(arg, ValueType) or arg is ValueType.VOID:
            raise TypeMismatchError(
                "Function arguments must be bool, int, double, string or vec3d",
                actual=str(arg),
            )
    if not isinstance(return_type, ValueType):
        raise TypeMismatchError("Function return type must be a ValueType", actual=str(return_type))
    return Signature(return_type, arg_types)


def check_returns(signature: Signature, returns: Any, path: str) -> None:
    """Reject a requested native return type that the signature cannot produce."""
    if returns is None:
        return
    expected = python_type_for(signature.return_type)
    if expected is None:
        ok = returns is type(None)
    else:
        ok = returns is expected
    if not ok:
        raise TypeMismatchError(
            f"Function returns {signature.return_type.value}, cannot be read as {getattr(returns, '__name__', returns)}",
            path=path,
            expected=signature.return_type.value,
            actual=str(getattr(returns, "__name__", returns)),
        )


def _marshal_args(signature: Signature, args: Sequence[Any], path: str) -> List[Any]:
    if len(args) != len(signature.arg_types):
        raise CallError(
            f"Expected {len(signature.arg_types)} argument(s) for {signature.describe()}, got {len(args)}",
            path=path,
        )

    marshaled: List[Any] = []
    for position, (arg, arg_type) in enumerate(zip(args, signature.arg_types)):
        if arg_type is ValueType.VEC3D:
            try:
                vector = Vector3D.from_sequence(arg)
            except (TypeError, ValueError) as e:
                raise CallError(f"Argument {position} is not a vector", path=path, cause=e) from e
            marshaled.extend(vector)
        elif is_compatible(arg, arg_type):
            marshaled.append(coerce_value(arg, arg_type))
        else:
            raise CallError(
                f"Argument {position} must be {arg_type.value}, got {type(arg).__name__}",
                path=path,
            )
    return marshaled


def _marshal_result(signature: Signature, result: Any, path: str) -> Any:
    return_type = signature.return_type
    if return_type is ValueType.VOID:
        return None

    if return_type is ValueType.VEC3D:
        if isinstance(result, Vector3D):
            return result
        if isinstance(result, (list, tuple)):
            try:
                return Vector3D.from_sequence(result)
            except (TypeError, ValueError) as e:
                raise CallError("Function did not return a vector", path=path, cause=e) from e
        raise CallError(f"Function returned {type(result).__name__}, expected vec3d", path=path)

    if not is_compatible(result, return_type):
        raise CallError(
            f"Function returned {type(result).__name__} ({result!r}), expected {return_type.value}",
            path=path,
        )
    return coerce_value(result, return_type)


class BoundFunction:
    """A backend callable bound to one concrete path, called with native values.

    Example:
        >>> scale = deck.get("scale")
        >>> scale(Vector3D(1, 2, 3))
        Vector3D(x=2.0, y=4.0, z=6.0)
    """

    def __init__(self, binding: "FunctionBinding", handle: CallableHandle, path: Path) -> None:
        self.binding = binding
        self._handle = handle
        self.path = path

    @property
    def signature(self) -> Signature:
        return self.binding.signature

    @property
    def handle(self) -> CallableHandle:
        return self._handle

    @property
    def path_str(self) -> str:
        return format_path(self.path)

    def call(self, *args: Any, returns: Any = None) -> Any:
        """Call the backend function.

        Args:
            *args: Native arguments matching the declared argument types
            returns: Optional native type the caller expects back

        Returns:
            Result converted to the declared return type

        Raises:
            CallError: On wrong arity, argument or result conversion failure,
                or any error raised by the backend function
            TypeMismatchError: If ``returns`` cannot match the declared type
        """
        signature = self.signature
        path = self.path_str
        check_returns(signature, returns, path)

        marshaled = _marshal_args(signature, args, path)
        if not self._handle.accepts(len(marshaled)):
            raise CallError(
                f"Backend function cannot take {len(marshaled)} positional value(s) "
                f"(declared {signature.describe()})",
                path=path,
            )

        try:
            result = self._handle(*marshaled)
        except Exception as e:
            logger.debug("Backend function at %s raised %s", path, type(e).__name__)
            raise CallError("Backend function raised an error", path=path, cause=e) from e

        return _marshal_result(signature, result, path)

    __call__ = call

    def __repr__(self) -> str:
        return f"BoundFunction({self.path_str!r}, {self.signature.describe()})"


class FunctionBinding(SchemaNode):
    """Schema node for a function with a fixed signature."""

    kind = "function"

    def __init__(
        self,
        name: PathSegment,
        parent: "Table",
        deck: "Deck",
        signature: Signature,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(name, parent, deck, description)
        self._signature = signature

    @property
    def signature(self) -> Signature:
        return self._signature

    @property
    def return_type(self) -> ValueType:
        return self._signature.return_type

    @property
    def arg_types(self) -> tuple:
        return self._signature.arg_types

    def bind(self, reader: "Reader", path: Path) -> Optional[BoundFunction]:
        """Resolve the backend callable at a concrete path."""
        handle = reader.get_function(path, self._signature)
        if handle is None:
            return None
        return BoundFunction(self, handle, path)

    def get(self, target: Any = None) -> Optional[BoundFunction]:
        from inputdeck.lib.extraction import extract

        return extract(self, self._deck.reader, self._require_concrete(), target)

    def call(self, *args: Any, returns: Any = None) -> Any:
        """Call the function at this binding's declared path.

        Raises:
            CallError: If the deck defines no callable here, or the call fails
        """
        bound = self.bind(self._deck.reader, self._require_concrete())
        if bound is None:
            raise CallError("Deck does not define a function here", path=self.path_str)
        return bound.call(*args, returns=returns)

    __call__ = call

    def __repr__(self) -> str:
        return f"FunctionBinding({self.path_str!r}, {self._signature.describe()})"
