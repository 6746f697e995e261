"""Resolve heterogeneous query-endpoint cells into display strings."""
from __future__ import annotations

from typing import Any, Optional

from sheetdash.core.models import Cell, EmptyCell, FormattedCell, RawCell

EMPTY = EmptyCell()


def cell_from_json(raw: Any) -> Cell:
    """Convert one ``{"v": ..., "f": ...}`` entry of a gviz row into a cell.

    A non-empty formatted string always wins over the raw value; anything
    that is not a mapping degrades to an empty cell.
    """

    if not isinstance(raw, dict):
        return EMPTY

    formatted = raw.get("f")
    if isinstance(formatted, str) and formatted:
        return FormattedCell(formatted)

    value = raw.get("v")
    if isinstance(value, (str, int, float, bool)):
        return RawCell(value)
    return EMPTY


def _raw_to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_cell(cell: Optional[Cell]) -> str:
    """Return the display string of a cell; never raises."""

    if isinstance(cell, FormattedCell):
        return cell.text
    if isinstance(cell, RawCell):
        return _raw_to_text(cell.value)
    return ""
