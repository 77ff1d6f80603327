"""Deck: the root of a schema bound to one reader.

The deck owns the global table, the reader and the settings. Schema
declarations made through the deck go to the global table; reads go
through the reader the deck was built with.

Example:
    >>> reader = YamlReader().parse_file("thermal.yaml")
    >>> deck = Deck(reader)
    >>> deck.add_double("thermal_solver/dt", "Time step").required().add_range(0.0, 1.0)
    >>> deck.verify().raise_if_failed()
    >>> deck.get("thermal_solver/dt")
    0.25
"""

from __future__ import annotations

import logging
from pathlib import Path as FilePath
from typing import Any, Optional, Sequence, Union

from inputdeck.lib.field import Field
from inputdeck.lib.function import FunctionBinding
from inputdeck.lib.node import SchemaNode
from inputdeck.lib.readers.base import Reader
from inputdeck.lib.settings import DeckSettings
from inputdeck.lib.table import Factory, PathLike, Table, TableView
from inputdeck.lib.types import ValueType
from inputdeck.lib.verification import VerificationResult, verify_tree

logger = logging.getLogger(__name__)

__all__ = ["Deck"]


class Deck:
    """Schema root bound to a reader.

    Args:
        reader: Backend reader holding the parsed document
        settings: Deck settings; loaded from the environment when omitted
        docs_enabled: Overrides ``settings.docs_enabled``. Fixed for the
            life of the deck.
    """

    def __init__(
        self,
        reader: Reader,
        settings: Optional[DeckSettings] = None,
        *,
        docs_enabled: Optional[bool] = None,
    ) -> None:
        if not isinstance(reader, Reader):
            raise TypeError(f"Deck needs a Reader, got {type(reader).__name__}")
        self._reader = reader
        self._settings = settings if settings is not None else DeckSettings()
        self._docs_enabled = self._settings.docs_enabled if docs_enabled is None else bool(docs_enabled)
        self._global_table = Table(None, None, self)
        logger.debug(
            "Created deck over %s (docs %s)",
            type(reader).__name__,
            "enabled" if self._docs_enabled else "disabled",
        )

    @property
    def reader(self) -> Reader:
        return self._reader

    @property
    def settings(self) -> DeckSettings:
        return self._settings

    @property
    def docs_enabled(self) -> bool:
        return self._docs_enabled

    @property
    def global_table(self) -> Table:
        return self._global_table

    # ============================================
    # Schema definition
    # ============================================

    def add_table(self, path: PathLike, description: str = "") -> Table:
        return self._global_table.add_table(path, description)

    def add_struct_array(self, path: PathLike, description: str = "") -> Table:
        return self._global_table.add_struct_array(path, description)

    def add_scalar(self, path: PathLike, value_type: ValueType, description: str = "") -> Field:
        return self._global_table.add_scalar(path, value_type, description)

    def add_array(self, path: PathLike, value_type: ValueType, description: str = "") -> Field:
        return self._global_table.add_array(path, value_type, description)

    def add_bool(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_bool(path, description)

    def add_int(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_int(path, description)

    def add_double(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_double(path, description)

    def add_string(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_string(path, description)

    def add_bool_array(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_bool_array(path, description)

    def add_int_array(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_int_array(path, description)

    def add_double_array(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_double_array(path, description)

    def add_string_array(self, path: PathLike, description: str = "") -> Field:
        return self._global_table.add_string_array(path, description)

    def add_function(
        self,
        path: PathLike,
        return_type: ValueType,
        arg_types: Sequence[ValueType],
        description: str = "",
    ) -> FunctionBinding:
        return self._global_table.add_function(path, return_type, arg_types, description)

    def register_factory(self, target: Any, factory: Factory) -> "Deck":
        """Register how to build ``target`` from any table in the deck."""
        self._global_table.register_factory(target, factory)
        return self

    def register_verifier(self, predicate: Any, description: Optional[str] = None) -> "Deck":
        """Add a verifier that receives a view of the whole deck."""
        self._global_table.register_verifier(predicate, description)
        return self

    # ============================================
    # Verification and access
    # ============================================

    def verify(self) -> VerificationResult:
        """Check the whole document against the schema.

        Never raises for data problems; every problem found is returned as
        a diagnostic.
        """
        return verify_tree(self._global_table, self._reader)

    def child(self, path: PathLike) -> SchemaNode:
        return self._global_table.child(path)

    def view(self) -> TableView:
        return self._global_table.view()

    def get(self, path: Optional[PathLike] = None, target: Any = None) -> Any:
        """Type-directed read of the value at ``path``.

        See ``TableView.get``.
        """
        return self._global_table.get(path, target)

    def __getitem__(self, path: PathLike) -> Any:
        return self._global_table.get(path)

    def __contains__(self, path: PathLike) -> bool:
        return path in self._global_table

    def to_dict(self) -> Any:
        """All resolved values as plain dicts (functions omitted)."""
        return self.view().to_dict()

    # ============================================
    # Docs and mirror
    # ============================================

    def write_docs(self, path: Union[str, FilePath]) -> bool:
        """Write schema documentation as reStructuredText.

        Returns:
            True if a file was written, False when docs are disabled
        """
        from inputdeck.lib.docs import write_docs

        return write_docs(self, path)

    def mirror(self, store: Any) -> Any:
        """Copy every resolved field value into ``store``.

        Returns:
            The store, for chaining
        """
        from inputdeck.lib.mirror import mirror_deck

        return mirror_deck(self, store)

    def __repr__(self) -> str:
        return f"Deck({type(self._reader).__name__}, tables={list(self._global_table.children)})"
