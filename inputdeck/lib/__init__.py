"""Input deck library modules.

This package contains the schema tree, verification and extraction engines
and the reader backends.
"""

from inputdeck.lib.deck import Deck
from inputdeck.lib.docs import render_docs, write_docs
from inputdeck.lib.env import expand_document, expand_env_vars, load_env_file
from inputdeck.lib.errors import (
    BackendError,
    CallError,
    Diagnostic,
    DiagnosticKind,
    InputDeckError,
    MissingRequiredError,
    SchemaConflictError,
    TypeMismatchError,
    VerificationError,
)
from inputdeck.lib.field import Field
from inputdeck.lib.function import BoundFunction, FunctionBinding
from inputdeck.lib.logging import setup_logging, setup_logging_from_settings
from inputdeck.lib.mirror import MirrorStore, TreeMirror, mirror_deck
from inputdeck.lib.readers import CallableHandle, MappingReader, PythonReader, Reader, Signature, YamlReader
from inputdeck.lib.settings import DeckSettings
from inputdeck.lib.table import Table, TableView
from inputdeck.lib.types import ValueType, Vector3D
from inputdeck.lib.verification import VerificationResult, format_verification_report

__all__ = [
    # Deck
    "Deck",
    "DeckSettings",
    # Schema
    "Field",
    "FunctionBinding",
    "BoundFunction",
    "Table",
    "TableView",
    "ValueType",
    "Vector3D",
    # Readers
    "CallableHandle",
    "MappingReader",
    "PythonReader",
    "Reader",
    "Signature",
    "YamlReader",
    # Verification
    "Diagnostic",
    "DiagnosticKind",
    "VerificationResult",
    "format_verification_report",
    # Errors
    "BackendError",
    "CallError",
    "InputDeckError",
    "MissingRequiredError",
    "SchemaConflictError",
    "TypeMismatchError",
    "VerificationError",
    # Docs and mirror
    "MirrorStore",
    "TreeMirror",
    "mirror_deck",
    "render_docs",
    "write_docs",
    # Environment and logging
    "expand_document",
    "expand_env_vars",
    "load_env_file",
    "setup_logging",
    "setup_logging_from_settings",
]
