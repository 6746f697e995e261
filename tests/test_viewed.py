"""Viewed markers are local, per dashboard, and survive reloads."""
import json
from pathlib import Path

from sheetdash.ingestion.mapper import map_incidents, map_transfers
from sheetdash.review.viewed import (
    JsonFileStore,
    MemoryStore,
    ViewedSetStore,
    apply_viewed,
    incident_id,
    transfer_id,
)


def test_record_ids_derive_from_natural_keys(transfer_rows, incident_rows):
    transfer = map_transfers(transfer_rows)[0]
    incident = map_incidents(incident_rows)[2]

    assert transfer_id(transfer) == "A1-O1-04/02/2026"
    assert incident_id(incident) == "C3-P3-05/02/2026-2"


def test_toggle_flips_membership_and_persists_immediately():
    store = MemoryStore()
    viewed = ViewedSetStore("transfers", store)

    assert viewed.toggle("A1-O1-04/02/2026") is True
    assert json.loads(store.get("viewed_transfers")) == ["A1-O1-04/02/2026"]

    assert viewed.toggle("A1-O1-04/02/2026") is False
    assert json.loads(store.get("viewed_transfers")) == []


def test_viewed_state_survives_a_new_store_instance(tmp_path: Path):
    path = tmp_path / "state" / "viewed.json"
    ViewedSetStore("incidents", JsonFileStore(path)).toggle("C1-P1-01/02/2026-0")

    reloaded = ViewedSetStore("incidents", JsonFileStore(path))

    assert reloaded.load() == {"C1-P1-01/02/2026-0"}
    assert reloaded.is_viewed("C1-P1-01/02/2026-0")


def test_dashboard_kinds_do_not_share_sets():
    store = MemoryStore()
    ViewedSetStore("transfers", store).toggle("same-id")

    assert ViewedSetStore("incidents", store).ids == set()


def test_corrupt_state_is_ignored(tmp_path: Path, caplog):
    path = tmp_path / "viewed.json"
    path.write_text("{not json", encoding="utf-8")
    caplog.set_level("WARNING")

    viewed = ViewedSetStore("transfers", JsonFileStore(path))

    assert viewed.load() == set()
    assert "unreadable" in caplog.text
    viewed.toggle("x")
    assert json.loads(path.read_text(encoding="utf-8")) == {"viewed_transfers": '["x"]'}


def test_apply_viewed_returns_flagged_copies(transfer_rows):
    records = map_transfers(transfer_rows)

    flagged = apply_viewed(records, {"A2-O2-10/02/2026"}, transfer_id)

    assert [record.viewed for record in flagged] == [False, True]
    assert records[1].viewed is None
