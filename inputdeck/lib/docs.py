"""reStructuredText documentation of a deck schema.

One section per table, each holding a list-table of the table's fields
and function bindings. Struct arrays are documented once as a template.
"""

from __future__ import annotations

import logging
from pathlib import Path as FilePath
from typing import TYPE_CHECKING, Any, Iterator, List, Union

from inputdeck.lib.field import Field
from inputdeck.lib.function import FunctionBinding
from inputdeck.lib.table import Table

if TYPE_CHECKING:
    from inputdeck.lib.deck import Deck

logger = logging.getLogger(__name__)

__all__ = ["describe_default", "describe_type", "render_docs", "write_docs"]

_COLUMNS = ["Name", "Description", "Type", "Default", "Range/Valid Values", "Required"]


def describe_default(field: Field) -> str:
    """Text for a field's default value, empty when it has none."""
    if not field.has_default:
        return ""
    if field.is_array:
        return ", ".join(f"{index}: {_scalar_text(value)}" for index, value in field.default.items())
    return _scalar_text(field.default)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def describe_type(node: Any) -> str:
    if isinstance(node, FunctionBinding):
        return f"function {node.signature.describe()}"
    if isinstance(node, Field):
        return f"array of {node.value_type.value}" if node.is_array else node.value_type.value
    return "struct array" if node.is_struct_array else "table"


def _describe_constraint(field: Field) -> str:
    if field.range is not None:
        low, high = field.range
        return f"{low} to {high}"
    if field.discrete_set is not None:
        return ", ".join(_scalar_text(value) for value in field.discrete_set)
    return ""


def _iter_tables(table: Table) -> Iterator[Table]:
    yield table
    for child in table:
        if isinstance(child, Table):
            yield from _iter_tables(child)


def _heading(text: str, underline: str) -> List[str]:
    return [text, underline * len(text), ""]


def _row(cells: List[str]) -> List[str]:
    lines = [f"   * - {cells[0]}"]
    lines.extend(f"     - {cell}" for cell in cells[1:])
    return lines


def _render_table(table: Table) -> List[str]:
    title = table.path_str or "Global"
    if table.is_struct_array:
        title = f"{title} (each element)"
    lines = _heading(title, "-")
    if table.description:
        lines.extend([table.description, ""])

    rows = []
    for name, child in table.children.items():
        if isinstance(child, Table):
            continue
        default = describe_default(child) if isinstance(child, Field) else ""
        constraint = _describe_constraint(child) if isinstance(child, Field) else ""
        rows.append(
            [
                str(name),
                child.description or "",
                describe_type(child),
                default,
                constraint,
                "|check|" if child.is_required else "|uncheck|",
            ]
        )
    if not rows:
        return lines

    lines.extend([".. list-table::", "   :widths: 25 50 25 25 25 10", "   :header-rows: 1", "   :stub-columns: 1", ""])
    lines.extend(_row(_COLUMNS))
    for row in rows:
        lines.extend(_row(row))
    lines.append("")
    return lines


def render_docs(deck: "Deck", title: str = "Input file options") -> str:
    """Render the deck's schema as a reStructuredText document."""
    lines = [".. |uncheck|    unicode:: U+2610 .. UNCHECKED BOX", ".. |check|      unicode:: U+2611 .. CHECKED BOX", ""]
    lines.extend(_heading(title, "="))
    for table in _iter_tables(deck.global_table):
        lines.extend(_render_table(table))
    return "\n".join(lines)


def write_docs(deck: "Deck", path: Union[str, FilePath]) -> bool:
    """Write schema documentation to ``path``.

    Returns:
        True if written, False if documentation is disabled for the deck
    """
    if not deck.docs_enabled:
        logger.warning("Documentation is disabled for this deck; nothing written to %s", path)
        return False

    file_path = FilePath(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(render_docs(deck), encoding="utf-8")
    logger.info("Wrote deck documentation to %s", file_path)
    return True
