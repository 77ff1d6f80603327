"""YAML backend for input decks.

Example deck:
    thermal_solver:
      mesh:
        filename: ./meshes/disk.mesh
        serial: 1
      bcs:
        7: {attrs: [1, 2], constant: 1.0}
        12: {attrs: [3], constant: 0.0}

Integer mapping keys (``7:`` above) are kept verbatim as struct array
indices. YAML has no callables, so function bindings never resolve against
a YAML deck.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path as FilePath
from typing import Any, Optional, Union

import yaml

from inputdeck.lib.env import expand_document, load_env_file
from inputdeck.lib.errors import BackendError
from inputdeck.lib.readers.mapping import MappingReader

logger = logging.getLogger(__name__)

__all__ = ["YamlReader"]


class YamlReader(MappingReader):
    """Reader for YAML documents.

    Args:
        expand_env: Expand ${VAR} references in string values after parsing
        env_file: Optional .env file loaded before expansion
    """

    def __init__(self, *, expand_env: bool = False, env_file: Optional[str] = None) -> None:
        super().__init__({})
        self.expand_env = expand_env
        self.env_file = env_file

    def parse_string(self, text: str, source: str = "<string>") -> "YamlReader":
        """Parse a YAML document held in memory.

        Raises:
            BackendError: If the text is not valid YAML or not a mapping
        """
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise BackendError(
                "Failed to parse YAML deck",
                source=source,
                cause=e,
                suggestion="Check indentation and quoting near the reported line",
            ) from e

        if document is None:
            document = {}
        if not isinstance(document, Mapping):
            raise BackendError(
                f"Top level of a deck must be a mapping, got {type(document).__name__}",
                source=source,
            )

        if self.expand_env:
            if self.env_file:
                load_env_file(self.env_file)
            document = expand_document(document)

        self._data = document
        logger.debug("Parsed YAML deck from %s with %d top-level keys", source, len(document))
        return self

    def parse_file(self, path: Union[str, FilePath]) -> "YamlReader":
        """Read and parse a YAML deck file.

        Raises:
            BackendError: If the file cannot be read or parsed
        """
        file_path = FilePath(path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise BackendError("Failed to read deck file", source=str(file_path), cause=e) from e
        return self.parse_string(text, source=str(file_path))

    @classmethod
    def from_settings(cls, settings: Any) -> "YamlReader":
        """Create a reader configured from ``DeckSettings``."""
        return cls(expand_env=settings.expand_env, env_file=settings.env_file)
