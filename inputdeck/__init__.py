"""Schema-driven input decks.

Declare the expected structure of a simulation input file, verify a parsed
document against it, then read typed values, arrays, user-defined objects
and callable functions from it.

Usage:
    from inputdeck import Deck, YamlReader

    deck = Deck(YamlReader().parse_file("thermal.yaml"))
    deck.add_string("thermal_solver/mesh/filename").required()
    deck.verify().raise_if_failed()
"""

from inputdeck.lib.deck import Deck
from inputdeck.lib.errors import DiagnosticKind, InputDeckError, VerificationError
from inputdeck.lib.readers import MappingReader, PythonReader, YamlReader
from inputdeck.lib.settings import DeckSettings
from inputdeck.lib.table import TableView
from inputdeck.lib.types import ValueType, Vector3D

__version__ = "1.0.0"

__all__ = [
    "Deck",
    "DeckSettings",
    "DiagnosticKind",
    "InputDeckError",
    "MappingReader",
    "PythonReader",
    "TableView",
    "ValueType",
    "Vector3D",
    "VerificationError",
    "YamlReader",
]
