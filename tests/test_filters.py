"""Filter engine semantics per criterion."""
from datetime import date, datetime

from sheetdash.core.models import IncidentFilters, MessageFilters, TransferFilters
from sheetdash.ingestion.mapper import map_incidents, map_messages, map_transfers, values_to_cells
from sheetdash.processing.filters import (
    date_bounds,
    filter_incidents,
    filter_messages,
    filter_transfers,
    in_date_range,
)

NOW = datetime(2026, 3, 1, 12, 0)


def test_empty_criteria_are_the_identity(transfer_rows, incident_rows, message_rows):
    transfers = map_transfers(transfer_rows)
    incidents = map_incidents(incident_rows)
    messages = map_messages(message_rows)

    assert filter_transfers(transfers, TransferFilters()) == transfers
    assert filter_incidents(incidents, IncidentFilters()) == incidents
    assert filter_messages(messages, MessageFilters()) == messages
    assert filter_transfers(transfers, None) == transfers


def test_client_search_is_case_insensitive(transfer_rows):
    transfers = map_transfers(transfer_rows)

    kept = filter_transfers(transfers, TransferFilters(client_search="bob"))

    assert [record.client_name for record in kept] == ["Bob"]


def test_client_search_matches_number_or_name(transfer_rows):
    transfers = map_transfers(transfer_rows)
    assert [r.client_number for r in filter_transfers(transfers, TransferFilters(client_search="a1"))] == ["A1"]
    assert len(filter_transfers(transfers, TransferFilters(client_search="A"))) == 2


def test_order_search_is_a_substring_match(transfer_rows):
    transfers = map_transfers(transfer_rows)
    assert [r.order_number for r in filter_transfers(transfers, TransferFilters(order_search="o2"))] == ["O2"]


def test_date_range_includes_whole_bound_days(transfer_rows):
    transfers = map_transfers(transfer_rows)

    only_first = TransferFilters(start_date=date(2026, 2, 4), end_date=date(2026, 2, 4))
    from_tenth = TransferFilters(start_date=date(2026, 2, 10))

    assert [r.client_name for r in filter_transfers(transfers, only_first, now=NOW)] == ["Alice"]
    assert [r.client_name for r in filter_transfers(transfers, from_tenth, now=NOW)] == ["Bob"]


def test_open_end_defaults_to_now():
    start, end = date_bounds(date(2026, 2, 1), None, now=NOW)
    assert start == datetime(2026, 2, 1)
    assert end == NOW
    assert not in_date_range("05/03/2026", date(2026, 2, 1), None, now=NOW)


def test_unparsable_dates_skip_only_the_date_predicate(incident_rows):
    incidents = map_incidents(incident_rows)
    window = IncidentFilters(start_date=date(2026, 2, 2), end_date=date(2026, 2, 28))

    kept = filter_incidents(incidents, window, now=NOW)
    assert [r.client_number for r in kept] == ["C2", "C3", "C4"]

    narrowed = filter_incidents(
        incidents,
        IncidentFilters(start_date=date(2026, 2, 2), end_date=date(2026, 2, 28), client_search="carla"),
        now=NOW,
    )
    assert [r.client_number for r in narrowed] == ["C3"]


def test_categorical_filters_use_case_insensitive_equality(incident_rows):
    incidents = map_incidents(incident_rows)

    assert [r.client_number for r in filter_incidents(incidents, IncidentFilters(source_filter="WEB"))] == [
        "C1",
        "C3",
        "C4",
    ]
    assert [r.client_number for r in filter_incidents(incidents, IncidentFilters(incident_type_filter="rotura"))] == [
        "C2"
    ]
    assert [r.client_number for r in filter_incidents(incidents, IncidentFilters(status_filter="abierta"))] == [
        "C1",
        "C3",
        "C4",
    ]
    # equality, not substring
    assert filter_incidents(incidents, IncidentFilters(source_filter="we")) == []


def test_incident_quick_search_matches_client_or_order_number(incident_rows):
    incidents = map_incidents(incident_rows)
    assert [r.client_number for r in filter_incidents(incidents, IncidentFilters(search_term="p2"))] == ["C2"]
    assert [r.client_number for r in filter_incidents(incidents, IncidentFilters(search_term="c4"))] == ["C4"]
    # names are not part of the quick search
    assert filter_incidents(incidents, IncidentFilters(search_term="ana")) == []


def test_message_search_matches_phone_or_text(message_rows):
    messages = map_messages(message_rows)

    by_text = filter_messages(messages, MessageFilters(search_term="DEVOLVER"))
    by_phone = filter_messages(messages, MessageFilters(search_term="555"))

    assert [m.row_index for m in by_text] == [2]
    assert [m.row_index for m in by_phone] == [4]


def test_results_are_a_subset_in_input_order(incident_rows):
    incidents = map_incidents(incident_rows)
    kept = filter_incidents(incidents, IncidentFilters(incident_type_filter="retraso"))

    assert all(record in incidents for record in kept)
    assert len({record.row_index for record in kept}) == len(kept)
    assert [r.row_index for r in kept] == sorted(r.row_index for r in kept)


def test_filters_do_not_mutate_input():
    records = map_transfers(values_to_cells([["1", "Eva", "X", "01/01/2026", ""]]))
    snapshot = [record.to_dict() for record in records]

    filter_transfers(records, TransferFilters(client_search="zzz"))

    assert [record.to_dict() for record in records] == snapshot
