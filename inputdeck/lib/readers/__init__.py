"""Reader backends for parsed input decks."""

from inputdeck.lib.readers.base import CallableHandle, Reader, Signature
from inputdeck.lib.readers.mapping import MappingReader
from inputdeck.lib.readers.python_reader import PythonReader
from inputdeck.lib.readers.yaml_reader import YamlReader

__all__ = [
    "CallableHandle",
    "MappingReader",
    "PythonReader",
    "Reader",
    "Signature",
    "YamlReader",
]
