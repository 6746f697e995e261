"""Optimistic status toggles and their rollback policy."""
import json

import pytest
import requests

from sheetdash.core.errors import ConfigurationError
from sheetdash.ingestion.mapper import map_incidents
from sheetdash.review.status import (
    GspreadStatusWriter,
    StatusToggle,
    WebhookStatusWriter,
    WriteOutcome,
    next_status,
    patch_status,
    settle_status,
    to_sheet_row,
)


class RecordingWriter:
    def __init__(self, outcome: WriteOutcome) -> None:
        self.outcome = outcome
        self.calls = []

    def write(self, sheet_row: int, status: str) -> WriteOutcome:
        self.calls.append((sheet_row, status))
        return self.outcome


def test_sheet_row_accounts_for_the_header_row():
    assert to_sheet_row(0) == 2
    assert to_sheet_row(5) == 7
    assert to_sheet_row(5, header_rows=3) == 9


def test_sheet_row_rejects_impossible_positions():
    with pytest.raises(ValueError):
        to_sheet_row(-1)
    with pytest.raises(ValueError):
        to_sheet_row(0, header_rows=-1)


def test_next_status_toggles_open_and_closed():
    assert next_status("Abierta") == "Cerrada"
    assert next_status("abierta ") == "Cerrada"
    assert next_status("Cerrada") == "Abierta"
    assert next_status("En curso") == "Abierta"


def test_patch_status_rebuilds_only_the_target(incident_rows):
    incidents = map_incidents(incident_rows)

    patched = patch_status(incidents, 1, "Abierta")

    assert patched[1].status == "Abierta"
    assert incidents[1].status == "Cerrada"
    assert patched[0] is incidents[0]


def test_settle_rolls_back_only_on_transport_failure(incident_rows):
    patched = patch_status(map_incidents(incident_rows), 0, "Cerrada")

    kept = settle_status(patched, 0, "Abierta", WriteOutcome.UNKNOWN_SUCCESS)
    reverted = settle_status(patched, 0, "Abierta", WriteOutcome.TRANSPORT_FAILURE)

    assert kept[0].status == "Cerrada"
    assert reverted[0].status == "Abierta"


def test_toggle_keeps_new_status_when_write_does_not_raise(incident_rows):
    writer = RecordingWriter(WriteOutcome.UNKNOWN_SUCCESS)
    published = []

    change = StatusToggle(writer).toggle(map_incidents(incident_rows), 2, on_patched=published.append)

    assert change.applied
    assert change.records[2].status == "Cerrada"
    assert writer.calls == [(4, "Cerrada")]
    assert published[0][2].status == "Cerrada"


def test_toggle_reverts_when_the_write_fails(incident_rows):
    writer = RecordingWriter(WriteOutcome.TRANSPORT_FAILURE)

    change = StatusToggle(writer).toggle(map_incidents(incident_rows), 1)

    assert not change.applied
    assert change.previous_status == "Cerrada"
    assert change.records[1].status == "Cerrada"


def test_toggle_treats_a_raising_writer_as_a_transport_failure(incident_rows):
    class ExplodingWriter:
        def write(self, sheet_row, status):
            raise ValueError("unexpected payload")

    published = []

    change = StatusToggle(ExplodingWriter()).toggle(map_incidents(incident_rows), 2, on_patched=published.append)

    assert published[0][2].status == "Cerrada"
    assert change.outcome is WriteOutcome.TRANSPORT_FAILURE
    assert change.records[2].status == "Abierta"


def test_toggle_without_writer_changes_locally(incident_rows):
    change = StatusToggle(None).update(map_incidents(incident_rows), 0, "Cerrada")
    assert change.outcome is WriteOutcome.UNKNOWN_SUCCESS
    assert change.records[0].status == "Cerrada"


def test_toggle_unknown_row_raises(incident_rows):
    with pytest.raises(KeyError):
        StatusToggle(None).toggle(map_incidents(incident_rows), 99)


def test_webhook_writer_posts_row_and_status(make_session):
    session = make_session(status_code=302)
    writer = WebhookStatusWriter("https://script.example/exec", session=session, timeout=3)

    outcome = writer.write(4, "Cerrada")

    assert outcome is WriteOutcome.UNKNOWN_SUCCESS
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://script.example/exec")
    assert json.loads(kwargs["data"]) == {"row": 4, "status": "Cerrada"}
    assert kwargs["timeout"] == 3


def test_webhook_writer_reports_transport_failures(make_session, caplog):
    session = make_session(error=requests.Timeout("slow"))
    caplog.set_level("WARNING")

    outcome = WebhookStatusWriter("https://script.example/exec", session=session).write(2, "Abierta")

    assert outcome is WriteOutcome.TRANSPORT_FAILURE
    assert "sheet row 2" in caplog.text


def test_webhook_writer_requires_a_url():
    with pytest.raises(ConfigurationError):
        WebhookStatusWriter("")


class FakeWorksheet:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.updates = []

    def update_cell(self, row, col, value):
        if self.error:
            raise self.error
        self.updates.append((row, col, value))


class FakeGspreadClient:
    def __init__(self, worksheet: FakeWorksheet) -> None:
        self.worksheet = worksheet
        self.opened = []

    def open_by_key(self, key):
        self.opened.append(key)
        return self

    def get_worksheet_by_id(self, gid):
        assert gid == 42
        return self.worksheet


def test_gspread_writer_updates_the_status_column(monkeypatch, tmp_path):
    import gspread

    worksheet = FakeWorksheet()
    client = FakeGspreadClient(worksheet)
    seen = {}

    def fake_service_account(filename=None):
        seen["filename"] = filename
        return client

    monkeypatch.setattr(gspread, "service_account", fake_service_account)
    writer = GspreadStatusWriter("incidents-id", "42", service_account_path=tmp_path / "sa.json")

    assert writer.write(3, "Cerrada") is WriteOutcome.UNKNOWN_SUCCESS
    assert writer.write(5, "Abierta") is WriteOutcome.UNKNOWN_SUCCESS

    assert worksheet.updates == [(3, 7, "Cerrada"), (5, 7, "Abierta")]
    assert client.opened == ["incidents-id"]
    assert seen["filename"] == str(tmp_path / "sa.json")


def test_gspread_writer_reports_api_failures(monkeypatch):
    import gspread

    client = FakeGspreadClient(FakeWorksheet(error=RuntimeError("quota exceeded")))
    monkeypatch.setattr(gspread, "service_account", lambda filename=None: client)

    assert GspreadStatusWriter("incidents-id", "42").write(2, "Cerrada") is WriteOutcome.TRANSPORT_FAILURE
