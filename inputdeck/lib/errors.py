"""Structured exception hierarchy and verification diagnostics.

Programmer errors (conflicting schema declarations, extraction with the
wrong type) raise immediately. Problems in the input data are collected as
``Diagnostic`` records during verification and never abort the pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

__all__ = [
    "BackendError",
    "CallError",
    "Diagnostic",
    "DiagnosticKind",
    "InputDeckError",
    "MissingRequiredError",
    "SchemaConflictError",
    "TypeMismatchError",
    "VerificationError",
]


class InputDeckError(Exception):
    """Base exception for all inputdeck errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.path = path
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if path:
            parts.insert(0, f"[{path}]")

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "path": self.path,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class SchemaConflictError(InputDeckError):
    """A path was redeclared with a different kind, type or signature."""

    def __init__(
        self,
        message: str,
        *,
        existing: Optional[str] = None,
        requested: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if existing:
            details["existing"] = existing
        if requested:
            details["requested"] = requested
        super().__init__(message, details=details, **kwargs)


class TypeMismatchError(InputDeckError):
    """A default, constraint or requested type does not match the declared type."""

    def __init__(
        self,
        message: str,
        *,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if expected:
            details["expected"] = expected
        if actual:
            details["actual"] = actual
        super().__init__(message, details=details, **kwargs)


class MissingRequiredError(InputDeckError):
    """A required value was read but the deck does not provide it."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("suggestion", "Run verify() before reading values and fix reported diagnostics")
        super().__init__(message, **kwargs)


class CallError(InputDeckError):
    """A bound function could not be called or failed while running."""

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.cause = cause
        details = kwargs.pop("details", {})
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__
        super().__init__(message, details=details, **kwargs)


class BackendError(InputDeckError):
    """The document could not be parsed or executed by the reader backend."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.cause = cause
        details = kwargs.pop("details", {})
        if source:
            details["source"] = source
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__
        super().__init__(message, details=details, **kwargs)


class DiagnosticKind(Enum):
    """Kinds of data problems reported by verification."""

    MISSING_REQUIRED = "missing_required"
    TYPE_MISMATCH = "type_mismatch"
    RANGE_VIOLATION = "range_violation"
    DISCRETE_SET_VIOLATION = "discrete_set_violation"
    SIGNATURE_MISMATCH = "signature_mismatch"
    VERIFIER_FAILED = "verifier_failed"
    CALL_ERROR = "call_error"


@dataclass
class Diagnostic:
    """A single verification failure, qualified by the full path."""

    kind: DiagnosticKind
    path: str
    message: str
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        result = f"[{self.kind.name}] {self.path}: {self.message}"
        if self.suggestion:
            result += f"\n  Fix: {self.suggestion}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "path": self.path,
            "message": self.message,
            "suggestion": self.suggestion,
        }


class VerificationError(InputDeckError):
    """Raised by ``VerificationResult.raise_if_failed`` when diagnostics exist."""

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics: List[Diagnostic] = list(diagnostics)
        body = "\n\n".join(str(d) for d in self.diagnostics)
        super().__init__(
            f"Input deck verification failed with {len(self.diagnostics)} problem(s):\n\n{body}"
        )
