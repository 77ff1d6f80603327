"""Type-directed extraction of native values from a verified deck.

Extraction is read-only. Optional values that are absent come back as
None; required values that are absent raise ``MissingRequiredError`` (after
a successful ``verify()`` they are always present). Asking for a type that
cannot match the declared schema is a programmer error and raises
``TypeMismatchError`` before anything is read.
"""

from __future__ import annotations

import collections.abc
import logging
import typing
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from inputdeck.lib.errors import MissingRequiredError, TypeMismatchError
from inputdeck.lib.field import Field
from inputdeck.lib.function import BoundFunction, FunctionBinding, check_returns
from inputdeck.lib.node import SchemaNode
from inputdeck.lib.table import Table, TableView
from inputdeck.lib.types import Path, format_path, python_type_for

if TYPE_CHECKING:
    from inputdeck.lib.readers.base import Reader

logger = logging.getLogger(__name__)

__all__ = ["extract", "find_factory", "has_resolved_value"]

_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or str(target)


def _unwrap_optional(target: Any) -> Any:
    """``Optional[T]`` reads as ``T``; ``Any`` reads as the natural form."""
    if target is typing.Any:
        return None
    if typing.get_origin(target) is typing.Union:
        members = [arg for arg in typing.get_args(target) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return target


def _mapping_parts(target: Any) -> Optional[Tuple[Any, ...]]:
    """Type arguments of a mapping target, or None if it is not a mapping."""
    if target in _MAPPING_ORIGINS:
        return ()
    if typing.get_origin(target) in _MAPPING_ORIGINS:
        return typing.get_args(target)
    return None


def _is_callable_target(target: Any) -> bool:
    if target is BoundFunction or target is collections.abc.Callable:
        return True
    return typing.get_origin(target) is collections.abc.Callable


def _missing(node: SchemaNode, path: Path) -> MissingRequiredError:
    return MissingRequiredError(f"Required {node.kind} is missing from the deck", path=format_path(path))


def _mismatch(node: SchemaNode, path: Path, target: Any, declared: str) -> TypeMismatchError:
    return TypeMismatchError(
        f"Cannot read {declared} as {_type_name(target)}",
        path=format_path(path),
        expected=declared,
        actual=_type_name(target),
    )


def extract(
    node: SchemaNode,
    reader: "Reader",
    path: Path,
    target: Any = None,
    *,
    instance: bool = False,
) -> Any:
    """Resolve ``node`` at a concrete path into the requested native form.

    Args:
        node: Schema node to read
        reader: Backend reader
        path: Concrete path (struct array indices included)
        target: Requested native type, None for the natural form
        instance: True when ``path`` addresses one struct array element

    Returns:
        The native value, or None for absent optional values
    """
    target = _unwrap_optional(target)
    if isinstance(node, Field):
        return _extract_field(node, reader, path, target)
    if isinstance(node, FunctionBinding):
        return _extract_function(node, reader, path, target)
    if isinstance(node, Table):
        if node.is_struct_array and not instance:
            return _extract_struct_array(node, reader, path, target)
        return _extract_table(node, reader, path, target, instance)
    raise TypeError(f"Unknown schema node {node!r}")


def _extract_field(field: Field, reader: "Reader", path: Path, target: Any) -> Any:
    native = python_type_for(field.value_type)
    if field.is_array:
        declared = f"{field.value_type.value} array"
        if target is not None:
            parts = _mapping_parts(target)
            if parts is None:
                raise _mismatch(field, path, target, declared)
            if len(parts) == 2 and parts[1] is not typing.Any and parts[1] is not native:
                raise _mismatch(field, path, target, declared)
    elif target is not None and target is not native:
        raise _mismatch(field, path, target, field.value_type.value)

    value = field.resolve(reader, path)
    if value is None:
        if field.is_required:
            raise _missing(field, path)
        return None
    return value


def _extract_function(binding: FunctionBinding, reader: "Reader", path: Path, target: Any) -> Any:
    if target is not None:
        if not _is_callable_target(target):
            raise _mismatch(binding, path, target, f"function {binding.signature.describe()}")
        args = typing.get_args(target)
        if len(args) == 2 and args[1] is not typing.Any:
            check_returns(binding.signature, args[1], format_path(path))

    bound = binding.bind(reader, path)
    if bound is None:
        if binding.is_required:
            raise _missing(binding, path)
        return None
    return bound


def _extract_struct_array(table: Table, reader: "Reader", path: Path, target: Any) -> Any:
    element_target: Any = None
    if target is not None:
        parts = _mapping_parts(target)
        if parts is None:
            raise _mismatch(table, path, target, "struct array (read it as a mapping of index to element)")
        element_target = parts[1] if len(parts) == 2 else dict
        element_target = _unwrap_optional(element_target)

    if not reader.has_array(path):
        if table.is_required:
            raise _missing(table, path)
        return None

    result: Dict[Any, Any] = {}
    # Indices are used exactly as the backend reports them
    for index in reader.get_indices(path):
        result[index] = _extract_table(table, reader, path + (index,), element_target, True)
    return result


def _extract_table(table: Table, reader: "Reader", path: Path, target: Any, instance: bool) -> Any:
    if path and not instance and not reader.has_value(path):
        if table.is_required:
            raise _missing(table, path)
        return None

    view = TableView(table, reader, path, instance)
    if target is None or target is TableView:
        return view
    if _mapping_parts(target) is not None:
        return _table_to_dict(view)

    factory = find_factory(table, target)
    if factory is None:
        raise TypeMismatchError(
            f"No factory registered to build {_type_name(target)}",
            path=format_path(path),
            suggestion=f"Call register_factory({_type_name(target)}, fn) or define {_type_name(target)}.from_deck",
        )
    logger.debug("Building %s from %s", _type_name(target), format_path(path) or "<root>")
    return factory(view)


def find_factory(table: Table, target: Any) -> Optional[Any]:
    """Registered factory for ``target`` nearest to ``table``, else ``target.from_deck``."""
    factory = table.find_factory(target)
    if factory is not None:
        return factory
    return getattr(target, "from_deck", None) if isinstance(target, type) else None


def _table_to_dict(view: TableView) -> Dict[Any, Any]:
    result: Dict[Any, Any] = {}
    for name, child in view.table.children.items():
        if isinstance(child, FunctionBinding):
            continue
        child_path = view.path + (name,)
        if not has_resolved_value(child, view.reader, child_path, False):
            continue
        target = dict if isinstance(child, Table) else None
        result[name] = extract(child, view.reader, child_path, target)
    return result


def has_resolved_value(node: SchemaNode, reader: "Reader", path: Path, instance: bool) -> bool:
    """Whether reading ``node`` at ``path`` would produce a value."""
    if isinstance(node, Field):
        return node.resolve(reader, path) is not None
    if isinstance(node, FunctionBinding):
        return node.bind(reader, path) is not None
    if isinstance(node, Table):
        if node.is_struct_array and not instance:
            return reader.has_array(path)
        return instance or not path or reader.has_value(path)
    return False
