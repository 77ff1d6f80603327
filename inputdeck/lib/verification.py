"""Whole-tree verification of a deck against its schema.

The walk is depth-first in declaration order and never stops at the first
problem: every violated rule adds one ``Diagnostic`` and traversal moves on.
A required node that is absent is reported once and its children are not
probed. An optional node that is absent has nothing below it to check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from inputdeck.lib.errors import (
    CallError,
    Diagnostic,
    DiagnosticKind,
    MissingRequiredError,
    VerificationError,
)
from inputdeck.lib.field import Field
from inputdeck.lib.function import FunctionBinding
from inputdeck.lib.node import SchemaNode
from inputdeck.lib.table import Table, TableView
from inputdeck.lib.types import Path, format_path

if TYPE_CHECKING:
    from inputdeck.lib.readers.base import Reader

logger = logging.getLogger(__name__)

__all__ = ["VerificationResult", "format_verification_report", "verify_tree"]


@dataclass
class VerificationResult:
    """Outcome of verifying a deck: pass/fail plus every diagnostic found.

    Truthy when verification passed.
    """

    ok: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.ok

    def by_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind is kind]

    def paths(self) -> List[str]:
        return [d.path for d in self.diagnostics]

    def raise_if_failed(self) -> None:
        """Raise ``VerificationError`` listing all diagnostics if verification failed."""
        if not self.ok:
            raise VerificationError(self.diagnostics)

    def format_report(self) -> str:
        return format_verification_report(self)


def format_verification_report(result: VerificationResult) -> str:
    """Format verification diagnostics as a readable report.

    Args:
        result: Verification result

    Returns:
        Formatted string report
    """
    if result.ok:
        return "Input deck is valid."

    lines = [f"Found {len(result.diagnostics)} problem(s):", "-" * 40]
    for diagnostic in result.diagnostics:
        lines.append(str(diagnostic))
        lines.append("")
    return "\n".join(lines)


class _Walk:
    """State of one verification pass."""

    def __init__(self, reader: "Reader") -> None:
        self.reader = reader
        self.diagnostics: List[Diagnostic] = []

    def report(
        self,
        kind: DiagnosticKind,
        path: Path,
        message: str,
        suggestion: Optional[str] = None,
    ) -> bool:
        diagnostic = Diagnostic(kind=kind, path=format_path(path) or "<root>", message=message, suggestion=suggestion)
        self.diagnostics.append(diagnostic)
        logger.warning(str(diagnostic))
        return False

    def missing(self, node: SchemaNode, path: Path) -> bool:
        return self.report(
            DiagnosticKind.MISSING_REQUIRED,
            path,
            f"Required {node.kind} is missing",
            suggestion=f"Add '{format_path(path)}' to the deck",
        )

    def run_verifiers(self, node: SchemaNode, path: Path, subject: Any) -> bool:
        ok = True
        for verifier in node.verifiers:
            ok = self._run_verifier(verifier.predicate, verifier.description, path, subject) and ok
        return ok

    def _run_verifier(self, predicate: Callable[[Any], bool], description: str, path: Path, subject: Any) -> bool:
        try:
            passed = bool(predicate(subject))
        except CallError as e:
            return self.report(DiagnosticKind.CALL_ERROR, path, f"Verifier '{description}' failed calling a function: {e.message}")
        except MissingRequiredError as e:
            return self.report(
                DiagnosticKind.VERIFIER_FAILED,
                path,
                f"Verifier '{description}' could not read {e.path}: required value is missing",
            )
        except Exception as e:
            return self.report(
                DiagnosticKind.VERIFIER_FAILED,
                path,
                f"Verifier '{description}' raised {type(e).__name__}: {e}",
            )
        if not passed:
            return self.report(DiagnosticKind.VERIFIER_FAILED, path, f"Verifier '{description}' returned false")
        return True

    # ============================================
    # Node checks
    # ============================================

    def node(self, node: SchemaNode, path: Path) -> bool:
        if isinstance(node, Field):
            return self.field(node, path)
        if isinstance(node, FunctionBinding):
            return self.function(node, path)
        if isinstance(node, Table):
            if node.is_struct_array:
                return self.struct_array(node, path)
            return self.table(node, path)
        raise TypeError(f"Unknown schema node {node!r}")

    def field(self, field: Field, path: Path) -> bool:
        reader = self.reader
        if not reader.has_value(path):
            if field.has_default:
                default = field.resolve(reader, path)
                ok = self._default_constraints(field, path, default)
                return self.run_verifiers(field, path, default) and ok
            if field.is_required:
                return self.missing(field, path)
            return True

        if field.is_array:
            ok = self._array_elements(field, path)
        else:
            ok = self._scalar(field, path)

        value = field.resolve(reader, path)
        if value is not None:
            ok = self.run_verifiers(field, path, value) and ok
        return ok

    def _scalar(self, field: Field, path: Path) -> bool:
        value = self.reader.get_scalar(path, field.value_type)
        if value is None:
            return self.report(
                DiagnosticKind.TYPE_MISMATCH,
                path,
                f"Value is not a valid {field.value_type.value}",
            )
        return self._constraint(field, path, value)

    def _array_elements(self, field: Field, path: Path) -> bool:
        reader = self.reader
        if not reader.has_array(path):
            return self.report(
                DiagnosticKind.TYPE_MISMATCH,
                path,
                f"Expected an array of {field.value_type.value}",
            )
        ok = True
        elements = reader.get_array(path, field.value_type)
        for index in reader.get_indices(path):
            if index not in elements:
                ok = self.report(
                    DiagnosticKind.TYPE_MISMATCH,
                    path + (index,),
                    f"Array element is not a valid {field.value_type.value}",
                )
                continue
            ok = self._constraint(field, path + (index,), elements[index]) and ok
        return ok

    def _constraint(self, field: Field, path: Path, value: Any, what: str = "Value") -> bool:
        problem = field.constraint_problem(value)
        if problem is None:
            return True
        kind = DiagnosticKind.RANGE_VIOLATION if field.range is not None else DiagnosticKind.DISCRETE_SET_VIOLATION
        return self.report(kind, path, f"{what} {problem}")

    def _default_constraints(self, field: Field, path: Path, default: Any) -> bool:
        """Hold a default used in place of a deck value to the same range or set."""
        if not field.is_array:
            return self._constraint(field, path, default, what="Default")
        ok = True
        for index, element in default.items():
            ok = self._constraint(field, path + (index,), element, what="Default element") and ok
        return ok

    def function(self, binding: FunctionBinding, path: Path) -> bool:
        reader = self.reader
        if not reader.has_value(path):
            if binding.is_required:
                return self.missing(binding, path)
            return True

        bound = binding.bind(reader, path)
        if bound is None:
            return self.report(
                DiagnosticKind.TYPE_MISMATCH,
                path,
                f"Expected a function {binding.signature.describe()}, found a non-callable value",
            )
        arity = binding.signature.backend_arity
        if not bound.handle.accepts(arity):
            return self.report(
                DiagnosticKind.SIGNATURE_MISMATCH,
                path,
                f"Function cannot take {arity} positional value(s) required by {binding.signature.describe()}",
                suggestion="Vector arguments are passed as three numbers (x, y, z)",
            )
        return self.run_verifiers(binding, path, bound)

    def table(self, table: Table, path: Path, instance: bool = False) -> bool:
        if path and not instance and not self.reader.has_value(path):
            if table.is_required:
                return self.missing(table, path)
            return True

        ok = self.run_verifiers(table, path, TableView(table, self.reader, path, instance))
        for name, child in table.children.items():
            ok = self.node(child, path + (name,)) and ok
        return ok

    def struct_array(self, table: Table, path: Path) -> bool:
        reader = self.reader
        if not reader.has_value(path):
            if table.is_required:
                return self.missing(table, path)
            return True
        if not reader.has_array(path):
            return self.report(DiagnosticKind.TYPE_MISMATCH, path, "Expected a collection of tables")

        ok = True
        for index in reader.get_indices(path):
            ok = self.table(table, path + (index,), instance=True) and ok
        return ok


def verify_tree(root: Table, reader: "Reader", path: Path = ()) -> VerificationResult:
    """Verify the schema below ``root`` against the reader's document.

    Args:
        root: Table to start from
        reader: Backend reader
        path: Concrete path of ``root``

    Returns:
        VerificationResult with every diagnostic found
    """
    walk = _Walk(reader)
    ok = walk.node(root, path)
    result = VerificationResult(ok=ok and not walk.diagnostics, diagnostics=walk.diagnostics)
    if result.ok:
        logger.info("Input deck verified")
    else:
        logger.info("Input deck failed verification with %d problem(s)", len(result.diagnostics))
    return result
