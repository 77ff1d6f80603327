"""Shared state of every schema node: identity, required flag, verifiers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, NamedTuple, Optional, Tuple

from inputdeck.lib.errors import InputDeckError
from inputdeck.lib.types import Path, PathSegment, format_path

if TYPE_CHECKING:
    from inputdeck.lib.deck import Deck
    from inputdeck.lib.table import Table

__all__ = ["SchemaNode", "Verifier"]


class Verifier(NamedTuple):
    """A registered predicate plus the text used when it fails."""

    predicate: Callable[[Any], bool]
    description: str


class SchemaNode:
    """Base class for tables, fields and function bindings.

    Nodes are owned by their parent table; the deck owns the root. Builder
    methods return the node itself so declarations can be chained, and the
    returned reference is only meaningful while the deck is alive.
    """

    kind = "node"

    def __init__(
        self,
        name: Optional[PathSegment],
        parent: Optional["Table"],
        deck: "Deck",
        description: Optional[str] = None,
    ) -> None:
        self.name = name
        self.parent = parent
        self._deck = deck
        self._description = description if deck.docs_enabled else None
        self._required = False
        self._verifiers: List[Verifier] = []

    @property
    def deck(self) -> "Deck":
        return self._deck

    @property
    def path(self) -> Path:
        """Declared path from the root (struct array indices not included)."""
        if self.parent is None:
            return ()
        return self.parent.path + (self.name,)

    @property
    def path_str(self) -> str:
        return format_path(self.path)

    @property
    def description(self) -> Optional[str]:
        return self._description

    @description.setter
    def description(self, value: Optional[str]) -> None:
        if self._deck.docs_enabled and value:
            self._description = value

    def required(self, is_required: bool = True) -> "SchemaNode":
        """Mark whether the deck must provide this node.

        Returns:
            This node, for chaining
        """
        self._required = bool(is_required)
        return self

    @property
    def is_required(self) -> bool:
        return self._required

    def register_verifier(
        self,
        predicate: Callable[[Any], bool],
        description: Optional[str] = None,
    ) -> "SchemaNode":
        """Add a predicate checked during verification.

        All registered predicates must pass.

        Args:
            predicate: Callable returning True when the node is acceptable
            description: Text reported when the predicate fails

        Returns:
            This node, for chaining
        """
        if not callable(predicate):
            raise TypeError(f"Verifier for {self.path_str or '<root>'} must be callable")
        text = description or getattr(predicate, "__name__", "verifier")
        self._verifiers.append(Verifier(predicate, text))
        return self

    @property
    def verifiers(self) -> Tuple[Verifier, ...]:
        return tuple(self._verifiers)

    def template_owner(self) -> Optional["Table"]:
        """Nearest struct array above this node, if any."""
        node = self.parent
        while node is not None:
            if node.is_struct_array:
                return node
            node = node.parent
        return None

    def _require_concrete(self) -> Path:
        owner = self.template_owner()
        if owner is not None:
            raise InputDeckError(
                "Node belongs to a struct array template and has no single value",
                path=self.path_str,
                suggestion=f"Read it through an index, e.g. get('{owner.path_str}/<index>/...')",
            )
        return self.path

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path_str!r})"
