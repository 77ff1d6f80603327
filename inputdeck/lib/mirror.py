"""Copy resolved deck values into a hierarchical store.

Any object with ``create_group(path)`` and ``create_view(path, value)``
can receive the mirror. ``TreeMirror`` is a nested-dict store that can be
dumped to YAML.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Protocol

import yaml

from inputdeck.lib.field import Field
from inputdeck.lib.table import Table
from inputdeck.lib.types import PATH_SEPARATOR, Path, Vector3D, format_path

if TYPE_CHECKING:
    from inputdeck.lib.deck import Deck
    from inputdeck.lib.readers.base import Reader

logger = logging.getLogger(__name__)

__all__ = ["MirrorStore", "TreeMirror", "mirror_deck"]


class MirrorStore(Protocol):
    """Destination for mirrored values, addressed by "/"-joined paths."""

    def create_group(self, path: str) -> Any: ...

    def create_view(self, path: str, value: Any) -> Any: ...


class TreeMirror:
    """In-memory mirror store built from nested dicts.

    Example:
        >>> store = deck.mirror(TreeMirror())
        >>> store.to_dict()["thermal_solver"]["mesh"]["serial"]
        1
    """

    def __init__(self) -> None:
        self._root: Dict[str, Any] = {}

    def _group(self, path: str) -> Dict[str, Any]:
        group = self._root
        for segment in (s for s in path.split(PATH_SEPARATOR) if s):
            child = group.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ValueError(f"Cannot create group below value at {path}")
            group = child
        return group

    def create_group(self, path: str) -> Dict[str, Any]:
        return self._group(path)

    def create_view(self, path: str, value: Any) -> None:
        parent, _, name = path.rpartition(PATH_SEPARATOR)
        self._group(parent)[name] = value

    def get(self, path: str) -> Any:
        node: Any = self._root
        for segment in (s for s in path.split(PATH_SEPARATOR) if s):
            node = node[segment]
        return node

    def to_dict(self) -> Dict[str, Any]:
        return self._root

    def to_yaml(self) -> str:
        return yaml.safe_dump(self._root, sort_keys=False, default_flow_style=False)


def _plain(value: Any) -> Any:
    if isinstance(value, Vector3D):
        return list(value)
    if isinstance(value, dict):
        return {str(index): item for index, item in value.items()}
    return value


def _mirror_table(table: Table, reader: "Reader", path: Path, store: Any) -> int:
    store.create_group(format_path(path))
    count = 0
    for name, child in table.children.items():
        child_path = path + (name,)
        if isinstance(child, Field):
            value = child.resolve(reader, child_path)
            if value is not None:
                store.create_view(format_path(child_path), _plain(value))
                count += 1
        elif isinstance(child, Table):
            if child.is_struct_array:
                if not reader.has_array(child_path):
                    continue
                store.create_group(format_path(child_path))
                for index in reader.get_indices(child_path):
                    count += _mirror_table(child, reader, child_path + (index,), store)
            elif reader.has_value(child_path):
                count += _mirror_table(child, reader, child_path, store)
    return count


def mirror_deck(deck: "Deck", store: Any) -> Any:
    """Write every resolved field value of ``deck`` into ``store``.

    Returns:
        The store
    """
    count = _mirror_table(deck.global_table, deck.reader, (), store)
    logger.info("Mirrored %d value(s) into %s", count, type(store).__name__)
    return store
