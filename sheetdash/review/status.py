"""Optimistic incident status changes with a write-back to the sheet.

A status change is applied to the in-memory list first, then sent to the
remote write endpoint. The endpoint gives no structured acknowledgement, so
the only observable outcome is whether the request itself raised:

* ``UNKNOWN_SUCCESS``: the request went out; the patch is kept. A script that
  rejects the write is indistinguishable from one that accepts it.
* ``TRANSPORT_FAILURE``: the request raised; the patch is rolled back.

The next successful fetch replaces the list wholesale and is the only
reconciliation with the remote truth.
"""
from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

import requests

from sheetdash.core.errors import ConfigurationError
from sheetdash.core.models import CLOSED_INCIDENT_STATUS, DEFAULT_INCIDENT_STATUS, IncidentRecord
from sheetdash.ingestion.mapper import INCIDENT_SCHEMA

logger = logging.getLogger(__name__)


class WriteOutcome(enum.Enum):
    UNKNOWN_SUCCESS = "unknown_success"
    TRANSPORT_FAILURE = "transport_failure"


class StatusWriter(Protocol):
    def write(self, sheet_row: int, status: str) -> WriteOutcome: ...


def to_sheet_row(row_index: int, header_rows: int = 1) -> int:
    """Translate a zero-based record position into a 1-based sheet row.

    With one header row, record 0 lives on sheet row 2.
    """

    if header_rows < 0:
        raise ValueError(f"header_rows must be >= 0, got {header_rows}")
    if row_index < 0:
        raise ValueError(f"row_index must be >= 0, got {row_index}")
    return row_index + header_rows + 1


def next_status(current: str) -> str:
    """Open incidents close; anything else reopens."""

    if current.strip().lower() == DEFAULT_INCIDENT_STATUS.lower():
        return CLOSED_INCIDENT_STATUS
    return DEFAULT_INCIDENT_STATUS


def find_incident(records: Sequence[IncidentRecord], row_index: int) -> Optional[IncidentRecord]:
    return next((record for record in records if record.row_index == row_index), None)


def patch_status(records: Sequence[IncidentRecord], row_index: int, status: str) -> List[IncidentRecord]:
    """Rebuild the list with the record at ``row_index`` carrying ``status``."""

    return [replace(record, status=status) if record.row_index == row_index else record for record in records]


def settle_status(
    records: Sequence[IncidentRecord],
    row_index: int,
    previous_status: str,
    outcome: WriteOutcome,
) -> List[IncidentRecord]:
    """Keep the optimistic patch, or roll it back after a transport failure."""

    if outcome is WriteOutcome.TRANSPORT_FAILURE:
        logger.warning("Rolling back status of row %d to %r after a failed write", row_index, previous_status)
        return patch_status(records, row_index, previous_status)
    return list(records)


class WebhookStatusWriter:
    """Fire-and-forget POST to a script endpoint bound to the incident sheet."""

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 30) -> None:
        if not url:
            raise ConfigurationError("STATUS_WEBHOOK_URL is required to write incident status")
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def write(self, sheet_row: int, status: str) -> WriteOutcome:
        payload = {"row": sheet_row, "status": status}
        try:
            response = self.session.post(
                self.url,
                data=json.dumps(payload),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Status write for sheet row %d failed: %s", sheet_row, exc)
            return WriteOutcome.TRANSPORT_FAILURE
        # The script answers with a redirect page either way; the body says nothing reliable.
        logger.debug("Status write for sheet row %d sent (HTTP %s)", sheet_row, getattr(response, "status_code", "?"))
        return WriteOutcome.UNKNOWN_SUCCESS


class GspreadStatusWriter:
    """Write the status cell directly with a service account via gspread."""

    def __init__(
        self,
        spreadsheet_id: str,
        sheet_gid: str = "0",
        service_account_path: Path | None = None,
        status_column: int = INCIDENT_SCHEMA.columns["status"] + 1,
    ) -> None:
        if not spreadsheet_id:
            raise ConfigurationError("spreadsheet_id is required to write incident status")
        self.spreadsheet_id = spreadsheet_id
        self.sheet_gid = sheet_gid
        self.service_account_path = service_account_path
        self.status_column = status_column
        self._worksheet = None

    def _open_worksheet(self):
        if self._worksheet is None:
            try:
                import gspread
            except ImportError as exc:  # pragma: no cover - optional dependency
                raise ImportError("gspread is required for service-account status writes") from exc

            client = (
                gspread.service_account(filename=str(self.service_account_path))
                if self.service_account_path
                else gspread.service_account()
            )
            spreadsheet = client.open_by_key(self.spreadsheet_id)
            self._worksheet = spreadsheet.get_worksheet_by_id(int(self.sheet_gid))
        return self._worksheet

    def write(self, sheet_row: int, status: str) -> WriteOutcome:
        try:
            self._open_worksheet().update_cell(sheet_row, self.status_column, status)
        except Exception as exc:
            logger.warning("Status write for sheet row %d failed: %s", sheet_row, exc)
            return WriteOutcome.TRANSPORT_FAILURE
        return WriteOutcome.UNKNOWN_SUCCESS


@dataclass
class StatusChange:
    """Result of one optimistic toggle after both phases settled."""

    row_index: int
    previous_status: str
    new_status: str
    outcome: WriteOutcome
    records: List[IncidentRecord]

    @property
    def applied(self) -> bool:
        return self.outcome is WriteOutcome.UNKNOWN_SUCCESS


class StatusToggle:
    """Two-phase optimistic status change: patch locally, then write remotely."""

    def __init__(self, writer: Optional[StatusWriter], header_rows: int = 1) -> None:
        self.writer = writer
        self.header_rows = header_rows

    def update(
        self,
        records: Sequence[IncidentRecord],
        row_index: int,
        new_status: str,
        on_patched: Optional[Callable[[List[IncidentRecord]], None]] = None,
    ) -> StatusChange:
        """Apply the patch, publish it through ``on_patched``, then write and settle."""

        target = find_incident(records, row_index)
        if target is None:
            raise KeyError(f"No incident at row index {row_index}")
        previous = target.status
        sheet_row = to_sheet_row(row_index, self.header_rows)

        patched = patch_status(records, row_index, new_status)
        if on_patched is not None:
            on_patched(patched)
        if self.writer is None:
            logger.info("No status writer configured; row %d changed locally only", row_index)
            outcome = WriteOutcome.UNKNOWN_SUCCESS
        else:
            try:
                outcome = self.writer.write(sheet_row, new_status)
            except Exception:
                logger.exception("Status writer raised for sheet row %d", sheet_row)
                outcome = WriteOutcome.TRANSPORT_FAILURE

        settled = settle_status(patched, row_index, previous, outcome)
        return StatusChange(row_index, previous, new_status, outcome, settled)

    def toggle(
        self,
        records: Sequence[IncidentRecord],
        row_index: int,
        on_patched: Optional[Callable[[List[IncidentRecord]], None]] = None,
    ) -> StatusChange:
        target = find_incident(records, row_index)
        if target is None:
            raise KeyError(f"No incident at row index {row_index}")
        return self.update(records, row_index, next_status(target.status), on_patched)
