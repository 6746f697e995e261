"""Map raw sheet rows onto typed dashboard records."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from sheetdash.core.models import (
    DEFAULT_INCIDENT_STATUS,
    ROLE_BOT,
    ROLE_USER,
    Cell,
    IncidentRecord,
    MessageRecord,
    TransferRecord,
)
from sheetdash.ingestion.cells import EMPTY, cell_from_json, resolve_cell
from sheetdash.ingestion.dates import format_canonical

logger = logging.getLogger(__name__)

R = TypeVar("R")

BOT_ROLES = {"bot", "assistant", "ai", "model", "system"}


@dataclass(frozen=True)
class ColumnSchema:
    """Column-index-to-field mapping for one record type."""

    kind: str
    columns: Mapping[str, int]
    date_field: Optional[str] = None
    status_field: Optional[str] = None
    default_status: str = DEFAULT_INCIDENT_STATUS


TRANSFER_SCHEMA = ColumnSchema(
    kind="transfers",
    columns={
        "client_number": 0,
        "client_name": 1,
        "order_number": 2,
        "submission_date": 3,
        "receipt_url": 4,
        "source": 5,
    },
    date_field="submission_date",
)

INCIDENT_SCHEMA = ColumnSchema(
    kind="incidents",
    columns={
        "client_number": 0,
        "client_name": 1,
        "order_number": 2,
        "incident_type": 3,
        "incident_details": 4,
        "incident_date": 5,
        "status": 6,
        "source": 7,
    },
    date_field="incident_date",
    status_field="status",
)

# Message timestamps stay raw; conversations parse them for ordering.
MESSAGE_SCHEMA = ColumnSchema(
    kind="messages",
    columns={
        "timestamp": 0,
        "phone": 1,
        "role": 2,
        "text": 3,
    },
)


def normalize_role(value: str) -> str:
    return ROLE_BOT if value.strip().lower() in BOT_ROLES else ROLE_USER


def _cell_at(row: Sequence[Cell], index: int) -> Cell:
    try:
        return row[index]
    except (IndexError, TypeError):
        return EMPTY


def resolve_fields(row: Sequence[Cell], schema: ColumnSchema) -> Dict[str, str]:
    """Resolve every mapped column of a row into a display string."""

    values = {name: resolve_cell(_cell_at(row, index)) for name, index in schema.columns.items()}
    if schema.date_field:
        values[schema.date_field] = format_canonical(values[schema.date_field])
    if schema.status_field and not values[schema.status_field].strip():
        values[schema.status_field] = schema.default_status
    return values


def map_rows(
    rows: Optional[Iterable[Sequence[Cell]]],
    schema: ColumnSchema,
    factory: Callable[..., R],
) -> List[R]:
    """Build one record per row, tagging each with its zero-based position."""

    if rows is None:
        return []
    records: List[R] = []
    for row_index, row in enumerate(rows):
        values = resolve_fields(row or [], schema)
        records.append(factory(row_index=row_index, **values))
    return records


def _transfer(**values: Any) -> TransferRecord:
    return TransferRecord(**values)


def _incident(**values: Any) -> IncidentRecord:
    return IncidentRecord(**values)


def _message(**values: Any) -> MessageRecord:
    values["role"] = normalize_role(values["role"])
    return MessageRecord(**values)


def map_transfers(rows: Optional[Iterable[Sequence[Cell]]]) -> List[TransferRecord]:
    return map_rows(rows, TRANSFER_SCHEMA, _transfer)


def map_incidents(rows: Optional[Iterable[Sequence[Cell]]]) -> List[IncidentRecord]:
    return map_rows(rows, INCIDENT_SCHEMA, _incident)


def map_messages(rows: Optional[Iterable[Sequence[Cell]]]) -> List[MessageRecord]:
    return map_rows(rows, MESSAGE_SCHEMA, _message)


_FACTORIES: Dict[str, Callable[..., Any]] = {
    "transfers": _transfer,
    "incidents": _incident,
    "messages": _message,
}


def map_table(table: Optional[Mapping[str, Any]], schema: ColumnSchema) -> list:
    """Map a decoded gviz ``table`` object straight to records of ``schema``'s kind."""

    return map_rows(rows_from_table(table), schema, _FACTORIES[schema.kind])


def rows_from_table(table: Optional[Mapping[str, Any]]) -> List[List[Cell]]:
    """Extract cell rows from a decoded gviz ``table`` object.

    A missing table or row list yields no rows; a malformed row yields a row
    of empty cells so positions stay aligned with the sheet.
    """

    if not isinstance(table, Mapping):
        return []
    raw_rows = table.get("rows")
    if not isinstance(raw_rows, list):
        return []

    rows: List[List[Cell]] = []
    for position, raw_row in enumerate(raw_rows):
        cells = raw_row.get("c") if isinstance(raw_row, Mapping) else None
        if not isinstance(cells, list):
            logger.debug("Row %d has no cell list; mapping it as empty", position)
            cells = []
        rows.append([cell_from_json(cell) for cell in cells])
    return rows


def values_to_cells(rows: Iterable[Sequence[Any]]) -> List[List[Cell]]:
    """Wrap plain Python values (already display strings) as cells."""

    wrapped: List[List[Cell]] = []
    for row in rows:
        wrapped.append([cell_from_json({"v": value}) if value is not None else EMPTY for value in row])
    return wrapped
