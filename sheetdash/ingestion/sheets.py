"""Read transport for public Google Sheets query (gviz) endpoints."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from sheetdash.core.errors import SheetFetchError
from sheetdash.core.models import Cell
from sheetdash.ingestion.mapper import rows_from_table

logger = logging.getLogger(__name__)

GVIZ_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/gviz/tq?tqx=out:json&gid={sheet_gid}"
RESPONSE_RE = re.compile(r"google\.visualization\.Query\.setResponse\(([\s\S]*)\);?\s*$")


def build_query_url(spreadsheet_id: str, sheet_gid: str = "0") -> str:
    return GVIZ_URL.format(spreadsheet_id=spreadsheet_id, sheet_gid=sheet_gid)


def decode_response(text: str) -> Dict[str, Any]:
    """Strip the JSONP-style wrapper and decode the JSON payload."""

    match = RESPONSE_RE.search(text)
    if not match:
        raise SheetFetchError("Formato de respuesta inválido")
    try:
        payload = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise SheetFetchError("Formato de respuesta inválido") from exc
    if not isinstance(payload, dict):
        raise SheetFetchError("Formato de respuesta inválido")
    return payload


def fetch_table(
    spreadsheet_id: str,
    sheet_gid: str = "0",
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> List[List[Cell]]:
    """Fetch one worksheet and return its rows as cells.

    Network failures and non-success statuses surface as ``SheetFetchError``
    with a human-readable message; a payload without a table yields no rows.
    """

    url = build_query_url(spreadsheet_id, sheet_gid)
    http = session or requests.Session()
    logger.debug("Fetching sheet %s (gid %s)", spreadsheet_id, sheet_gid)

    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise SheetFetchError(f"Error al cargar datos: {exc}") from exc

    if not response.ok:
        raise SheetFetchError(f"Error al cargar datos: {response.reason or response.status_code}")

    payload = decode_response(response.text)
    if payload.get("status") == "error":
        errors = payload.get("errors") or []
        detail = "; ".join(str(err.get("detailed_message") or err.get("message")) for err in errors if isinstance(err, dict))
        raise SheetFetchError(f"Error al cargar datos: {detail or 'consulta rechazada'}")

    rows = rows_from_table(payload.get("table"))
    logger.info("Fetched %d rows from sheet %s (gid %s)", len(rows), spreadsheet_id, sheet_gid)
    return rows
