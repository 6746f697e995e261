"""Ingestion package: cells, dates, row mapping and the sheet read transport."""
from sheetdash.ingestion.cells import cell_from_json, resolve_cell
from sheetdash.ingestion.common import drive_preview_url
from sheetdash.ingestion.dates import format_canonical, parse_to_date
from sheetdash.ingestion.mapper import (
    INCIDENT_SCHEMA,
    MESSAGE_SCHEMA,
    TRANSFER_SCHEMA,
    ColumnSchema,
    map_incidents,
    map_messages,
    map_rows,
    map_table,
    map_transfers,
    rows_from_table,
)
from sheetdash.ingestion.sheets import fetch_table

__all__ = [
    "cell_from_json",
    "resolve_cell",
    "drive_preview_url",
    "format_canonical",
    "parse_to_date",
    "INCIDENT_SCHEMA",
    "MESSAGE_SCHEMA",
    "TRANSFER_SCHEMA",
    "ColumnSchema",
    "map_incidents",
    "map_messages",
    "map_rows",
    "map_table",
    "map_transfers",
    "rows_from_table",
    "fetch_table",
]
