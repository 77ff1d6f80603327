"""Reader over nested Python data.

The base for the YAML and Python-script backends: both produce a tree of
dicts, lists, scalars and callables that this reader walks by path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Optional

from inputdeck.lib.readers.base import CallableHandle, Reader, Signature
from inputdeck.lib.types import Path, PathSegment, ValueType, coerce_value, format_path, is_compatible

logger = logging.getLogger(__name__)

__all__ = ["MappingReader"]

_MISSING = object()


def _is_container(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _index_key(key: Any) -> Optional[int]:
    """Integer index for a mapping key, accepting digit-only text such as "7"."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isdecimal() and str(int(key)) == key:
        return int(key)
    return None


class MappingReader(Reader):
    """Reader for an in-memory document.

    Mappings are indexed by their own keys (integer keys are preserved as
    given); lists and tuples are indexed by position starting at 0.

    Args:
        data: Top-level mapping of the document

    Example:
        >>> reader = MappingReader({"solver": {"dt": 0.5}})
        >>> reader.get_double(("solver", "dt"))
        0.5
    """

    def __init__(self, data: Optional[Mapping] = None) -> None:
        self._data: Mapping = data if data is not None else {}

    @property
    def data(self) -> Mapping:
        return self._data

    def _lookup(self, path: Path) -> Any:
        node: Any = self._data
        for segment in path:
            if isinstance(node, Mapping):
                if segment in node:
                    node = node[segment]
                    continue
                # Integer index given as text, or text key that looks numeric
                alternate = str(segment) if isinstance(segment, int) else None
                if alternate is not None and alternate in node:
                    node = node[alternate]
                    continue
                return _MISSING
            if _is_container(node) and isinstance(segment, int):
                if 0 <= segment < len(node):
                    node = node[segment]
                    continue
            return _MISSING
        return node

    def has_value(self, path: Path) -> bool:
        value = self._lookup(path)
        return value is not _MISSING and value is not None

    def has_array(self, path: Path) -> bool:
        return _is_container(self._lookup(path))

    def _typed(self, path: Path, value_type: ValueType) -> Optional[Any]:
        value = self._lookup(path)
        if value is _MISSING or not is_compatible(value, value_type):
            return None
        return coerce_value(value, value_type)

    def get_bool(self, path: Path) -> Optional[bool]:
        return self._typed(path, ValueType.BOOL)

    def get_int(self, path: Path) -> Optional[int]:
        return self._typed(path, ValueType.INT)

    def get_double(self, path: Path) -> Optional[float]:
        return self._typed(path, ValueType.DOUBLE)

    def get_string(self, path: Path) -> Optional[str]:
        return self._typed(path, ValueType.STRING)

    def _items(self, path: Path) -> List[tuple]:
        container = self._lookup(path)
        if isinstance(container, Mapping):
            items = []
            seen = set()
            for key, value in container.items():
                index = _index_key(key)
                if index is None or index in seen:
                    continue
                seen.add(index)
                items.append((index, value))
            return items
        if _is_container(container):
            return list(enumerate(container))
        return []

    def get_array(self, path: Path, value_type: ValueType) -> Dict[PathSegment, Any]:
        result: Dict[PathSegment, Any] = {}
        for index, value in self._items(path):
            if is_compatible(value, value_type):
                result[index] = coerce_value(value, value_type)
        return result

    def get_indices(self, path: Path) -> List[PathSegment]:
        return [index for index, _ in self._items(path)]

    def get_function(self, path: Path, signature: Signature) -> Optional[CallableHandle]:
        value = self._lookup(path)
        if value is _MISSING or not callable(value):
            return None
        logger.debug("Resolved callable at %s for %s", format_path(path), signature.describe())
        return CallableHandle(value, name=format_path(path))
