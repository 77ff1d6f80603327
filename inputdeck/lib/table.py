"""Tables: internal schema nodes grouping named or indexed children.

A plain table maps to a nested table in the deck. A struct array is a table
whose children form a template; the deck may hold any number of instances
of it under backend-defined indices (sparse, not necessarily starting at 0),
and each present index yields one instance at read time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from inputdeck.lib.errors import SchemaConflictError
from inputdeck.lib.field import Field
from inputdeck.lib.function import FunctionBinding, make_signature
from inputdeck.lib.node import SchemaNode
from inputdeck.lib.types import Path, PathSegment, ValueType, format_path, parse_path

if TYPE_CHECKING:
    from inputdeck.lib.deck import Deck
    from inputdeck.lib.readers.base import Reader

logger = logging.getLogger(__name__)

__all__ = ["Table", "TableView", "locate"]

PathLike = Union[str, Sequence[PathSegment]]
Factory = Callable[["TableView"], Any]


class Table(SchemaNode):
    """Schema node holding child tables, fields and function bindings.

    Example:
        >>> mesh = deck.add_table("thermal_solver/mesh", "Information about the mesh")
        >>> mesh.add_string("filename", "Path to mesh file").required()
        >>> mesh.add_int("serial", "Serial refinement iterations").add_default(0)
        >>> bcs = deck.add_struct_array("thermal_solver/bcs", "Boundary conditions")
        >>> bcs.add_int_array("attrs", "Boundary attributes")
        >>> bcs.add_double("constant").required()
    """

    kind = "table"

    def __init__(
        self,
        name: Optional[PathSegment],
        parent: Optional["Table"],
        deck: "Deck",
        description: Optional[str] = None,
        *,
        is_struct_array: bool = False,
    ) -> None:
        super().__init__(name, parent, deck, description)
        self._children: Dict[PathSegment, SchemaNode] = {}
        self._is_struct_array = is_struct_array
        self._factories: Dict[Any, Factory] = {}

    @property
    def is_struct_array(self) -> bool:
        return self._is_struct_array

    @property
    def children(self) -> Dict[PathSegment, SchemaNode]:
        return dict(self._children)

    def __iter__(self) -> Iterator[SchemaNode]:
        return iter(self._children.values())

    def __len__(self) -> int:
        return len(self._children)

    # ============================================
    # Schema definition
    # ============================================

    def _parent_for(self, path: PathLike) -> Tuple["Table", PathSegment]:
        """Walk to the table that will own the last segment, creating tables on the way."""
        segments = parse_path(path)
        if not segments:
            raise ValueError("A schema path needs at least one segment")

        table = self
        for segment in segments[:-1]:
            child = table._children.get(segment)
            if child is None:
                child = Table(segment, table, self._deck)
                table._children[segment] = child
            elif not isinstance(child, Table):
                raise SchemaConflictError(
                    f"Cannot declare below a {child.kind}",
                    path=child.path_str,
                    existing=child.kind,
                    requested="table",
                )
            table = child
        return table, segments[-1]

    def _conflict(self, existing: SchemaNode, requested: str) -> SchemaConflictError:
        return SchemaConflictError(
            "Path is already declared with a different kind or type",
            path=existing.path_str,
            existing=repr(existing),
            requested=requested,
        )

    def add_table(self, path: PathLike, description: str = "") -> "Table":
        """Create (or look up) a nested table, creating intermediate tables.

        Raises:
            SchemaConflictError: If a field, function or struct array is
                already declared at the path
        """
        return self._add_table(path, description, is_struct_array=False)

    def add_struct_array(self, path: PathLike, description: str = "") -> "Table":
        """Create (or look up) an array whose elements follow one sub-schema.

        Children declared on the returned table describe every element.

        Raises:
            SchemaConflictError: If something other than a struct array is
                already declared at the path
        """
        return self._add_table(path, description, is_struct_array=True)

    def _add_table(self, path: PathLike, description: str, *, is_struct_array: bool) -> "Table":
        parent, name = self._parent_for(path)
        existing = parent._children.get(name)
        kind = "struct array" if is_struct_array else "table"
        if existing is not None:
            if not isinstance(existing, Table) or existing.is_struct_array != is_struct_array:
                raise self._conflict(existing, kind)
            existing.description = description
            return existing

        table = Table(name, parent, self._deck, description or None, is_struct_array=is_struct_array)
        parent._children[name] = table
        logger.debug("Declared %s %s", kind, table.path_str)
        return table

    def add_scalar(self, path: PathLike, value_type: ValueType, description: str = "") -> Field:
        """Create (or look up) a field of the given type.

        Raises:
            SchemaConflictError: If the path already holds a different node
                or a field of a different type
            TypeMismatchError: If ``value_type`` is not a field type
        """
        return self._add_field(path, value_type, description, is_array=False)

    def add_array(self, path: PathLike, value_type: ValueType, description: str = "") -> Field:
        """Create (or look up) an array of scalars of the given type."""
        return self._add_field(path, value_type, description, is_array=True)

    def _add_field(self, path: PathLike, value_type: ValueType, description: str, *, is_array: bool) -> Field:
        parent, name = self._parent_for(path)
        existing = parent._children.get(name)
        if existing is not None:
            if (
                not isinstance(existing, Field)
                or existing.value_type is not value_type
                or existing.is_array != is_array
            ):
                raise self._conflict(existing, f"{value_type.value}{'[]' if is_array else ''} field")
            existing.description = description
            return existing

        field = Field(name, parent, self._deck, value_type, description or None, is_array=is_array)
        parent._children[name] = field
        return field

    def add_bool(self, path: PathLike, description: str = "") -> Field:
        return self.add_scalar(path, ValueType.BOOL, description)

    def add_int(self, path: PathLike, description: str = "") -> Field:
        return self.add_scalar(path, ValueType.INT, description)

    def add_double(self, path: PathLike, description: str = "") -> Field:
        return self.add_scalar(path, ValueType.DOUBLE, description)

    def add_string(self, path: PathLike, description: str = "") -> Field:
        return self.add_scalar(path, ValueType.STRING, description)

    def add_bool_array(self, path: PathLike, description: str = "") -> Field:
        return self.add_array(path, ValueType.BOOL, description)

    def add_int_array(self, path: PathLike, description: str = "") -> Field:
        return self.add_array(path, ValueType.INT, description)

    def add_double_array(self, path: PathLike, description: str = "") -> Field:
        return self.add_array(path, ValueType.DOUBLE, description)

    def add_string_array(self, path: PathLike, description: str = "") -> Field:
        return self.add_array(path, ValueType.STRING, description)

    def add_function(
        self,
        path: PathLike,
        return_type: ValueType,
        arg_types: Sequence[ValueType],
        description: str = "",
    ) -> FunctionBinding:
        """Declare a function binding with a fixed signature.

        Raises:
            SchemaConflictError: If the path holds anything other than a
                function with the same signature
            TypeMismatchError: If the signature uses VOID as an argument
        """
        signature = make_signature(return_type, arg_types)
        parent, name = self._parent_for(path)
        existing = parent._children.get(name)
        if existing is not None:
            if not isinstance(existing, FunctionBinding) or existing.signature != signature:
                raise self._conflict(existing, f"function {signature.describe()}")
            existing.description = description
            return existing

        binding = FunctionBinding(name, parent, self._deck, signature, description or None)
        parent._children[name] = binding
        return binding

    def register_factory(self, target: Any, factory: Factory) -> "Table":
        """Register how to build ``target`` from a table view in this subtree.

        Lookups start at the table being read and walk toward the root, so a
        registration here applies to this table and everything below it.
        """
        if not callable(factory):
            raise TypeError(f"Factory for {target!r} must be callable")
        self._factories[target] = factory
        return self

    def find_factory(self, target: Any) -> Optional[Factory]:
        table: Optional[Table] = self
        while table is not None:
            factory = table._factories.get(target)
            if factory is not None:
                return factory
            table = table.parent
        return None

    # ============================================
    # Access
    # ============================================

    def child(self, path: PathLike) -> SchemaNode:
        """Schema node at a path relative to this table.

        Struct array indices in the path are skipped, so ``"bcs/7/constant"``
        and ``"bcs/constant"`` name the same template field.

        Raises:
            KeyError: If nothing is declared at the path
        """
        node: SchemaNode = self
        for segment in parse_path(path):
            if not isinstance(node, Table):
                raise KeyError(f"{format_path(parse_path(path))}: {node.path_str} is a {node.kind}")
            if node.is_struct_array and isinstance(segment, int) and segment not in node._children:
                continue
            try:
                node = node._children[segment]
            except KeyError:
                raise KeyError(f"Nothing declared at {format_path(node.path + (segment,))}") from None
        return node

    def __contains__(self, path: PathLike) -> bool:
        return path in self.view()

    def view(self) -> "TableView":
        """Read-only view of this table bound to the deck."""
        return TableView(self, self._deck.reader, self._require_concrete())

    def get(self, path: Optional[PathLike] = None, target: Any = None) -> Any:
        """Type-directed read of the value at a relative path.

        See ``TableView.get``.
        """
        return self.view().get(path, target)

    def __getitem__(self, path: PathLike) -> Any:
        return self.view().get(path)

    def __repr__(self) -> str:
        kind = "StructArray" if self._is_struct_array else "Table"
        return f"{kind}({self.path_str or '<root>'!r}, children={list(self._children)})"


def locate(
    table: Table,
    path: Path,
    instance: bool,
    relative: Path,
) -> Tuple[SchemaNode, Path, bool]:
    """Find the schema node and concrete path for a relative path.

    ``instance`` tells whether ``path`` already addresses one element of a
    struct array (True) or the array as a whole (False). Integer segments
    following a struct array select an element.

    Returns:
        (node, concrete path, instance flag for the node)

    Raises:
        KeyError: If the path does not match the schema
    """
    node: SchemaNode = table
    concrete = path
    at_instance = instance
    for segment in relative:
        if not isinstance(node, Table):
            raise KeyError(f"{format_path(concrete)} is a {node.kind}, cannot read {segment!r} below it")
        if node.is_struct_array and not at_instance:
            if isinstance(segment, int):
                concrete = concrete + (segment,)
                at_instance = True
                continue
            raise KeyError(f"{format_path(concrete)} is a struct array; select an index before {segment!r}")
        child = node._children.get(segment)
        if child is None:
            raise KeyError(f"Nothing declared at {format_path(concrete + (segment,))}")
        node = child
        concrete = concrete + (segment,)
        at_instance = False
    return node, concrete, at_instance


class TableView:
    """A table bound to one concrete location in the deck.

    Views are what verifiers and factories receive. For a struct array
    element the path includes the element's index.
    """

    def __init__(self, table: Table, reader: "Reader", path: Path, instance: bool = False) -> None:
        self.table = table
        self.reader = reader
        self.path = path
        self.instance = instance

    @property
    def path_str(self) -> str:
        return format_path(self.path)

    @property
    def is_array(self) -> bool:
        """Whether this view addresses a struct array as a whole."""
        return self.table.is_struct_array and not self.instance

    def get(self, path: Optional[PathLike] = None, target: Any = None) -> Any:
        """Read the value at a path relative to this view.

        Args:
            path: Relative path; None reads this view itself
            target: Native type to produce: None for the natural form,
                bool/int/float/str for fields, ``Dict[int, T]`` for arrays,
                a Callable for functions, or any type with a registered
                factory

        Returns:
            The value, or None when an optional value is absent

        Raises:
            KeyError: If the path is not declared in the schema
            MissingRequiredError: If a required value is absent
            TypeMismatchError: If ``target`` does not fit the node
        """
        from inputdeck.lib.extraction import extract

        relative = parse_path(path) if path is not None else ()
        node, concrete, instance = locate(self.table, self.path, self.instance, relative)
        return extract(node, self.reader, concrete, target, instance=instance)

    def __getitem__(self, path: PathLike) -> Any:
        return self.get(path)

    def contains(self, path: PathLike) -> bool:
        """Whether the path is declared and resolves to a value."""
        try:
            node, concrete, instance = locate(self.table, self.path, self.instance, parse_path(path))
        except KeyError:
            return False
        from inputdeck.lib.extraction import has_resolved_value

        return has_resolved_value(node, self.reader, concrete, instance)

    __contains__ = contains

    def indices(self) -> List[PathSegment]:
        """Element indices present in the deck, for a struct array view."""
        if not self.is_array:
            raise TypeError(f"{self.path_str or '<root>'} is not a struct array")
        return list(self.reader.get_indices(self.path))

    def to_dict(self) -> Any:
        """Resolved values below this view as plain dicts (functions omitted)."""
        return self.get(None, dict)

    def __repr__(self) -> str:
        return f"TableView({self.path_str or '<root>'!r})"
