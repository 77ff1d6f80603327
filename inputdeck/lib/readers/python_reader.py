"""Python-script backend for input decks.

A deck is Python source executed in a fresh namespace. Public top-level
names become the document, so tables are dicts, struct arrays are dicts
keyed by integer index and function bindings are plain functions:

    solver = {"dt": 0.25, "steps": 40}

    def source_term(x, y, z):
        return x + y + z

    bcs = {
        7: {"bar": True, "baz": lambda x, y, z: (2 * x, 2 * y, 2 * z)},
    }

``Vec3D`` is available to decks for building vector return values.
"""

from __future__ import annotations

import logging
import types
from pathlib import Path as FilePath
from typing import Any, Dict, Union

from inputdeck.lib.errors import BackendError
from inputdeck.lib.readers.mapping import MappingReader
from inputdeck.lib.types import Vector3D

logger = logging.getLogger(__name__)

__all__ = ["PythonReader"]

# Names injected into every deck namespace
DECK_GLOBALS: Dict[str, Any] = {"Vec3D": Vector3D}


class PythonReader(MappingReader):
    """Reader that executes a Python deck and exposes its top-level names."""

    def __init__(self) -> None:
        super().__init__({})

    def parse_string(self, source: str, filename: str = "<deck>") -> "PythonReader":
        """Compile and execute deck source.

        Raises:
            BackendError: On a syntax error or an exception raised while the
                deck's top-level code runs
        """
        try:
            code = compile(source, filename, "exec")
        except SyntaxError as e:
            raise BackendError(
                f"Syntax error in deck at line {e.lineno}",
                source=filename,
                cause=e,
            ) from e

        namespace: Dict[str, Any] = {"__name__": "__deck__", **DECK_GLOBALS}
        try:
            exec(code, namespace)
        except Exception as e:
            raise BackendError("Deck raised an error while executing", source=filename, cause=e) from e

        self._data = {
            name: value
            for name, value in namespace.items()
            if not name.startswith("_")
            and name not in DECK_GLOBALS
            and not isinstance(value, types.ModuleType)
        }
        logger.debug("Executed Python deck %s defining %s", filename, sorted(self._data))
        return self

    def parse_file(self, path: Union[str, FilePath]) -> "PythonReader":
        """Read and execute a Python deck file."""
        file_path = FilePath(path)
        try:
            source = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise BackendError("Failed to read deck file", source=str(file_path), cause=e) from e
        return self.parse_string(source, filename=str(file_path))
