"""Compound, AND-combined filters over typed dashboard records."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from sheetdash.core.models import (
    EPOCH,
    IncidentFilters,
    IncidentRecord,
    MessageFilters,
    MessageRecord,
    TransferFilters,
    TransferRecord,
)
from sheetdash.ingestion.dates import parse_to_date

R = TypeVar("R")
Predicate = Callable[[R], bool]


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


def _equals(value: str, expected: str) -> bool:
    return value.lower() == expected.lower()


def date_bounds(
    start: Optional[date], end: Optional[date], now: Optional[datetime] = None
) -> tuple[datetime, datetime]:
    """Return inclusive bounds: start of the start day, end of the end day.

    An open start falls back to the epoch and an open end to ``now``.
    """

    lower = datetime.combine(start, time.min) if start else EPOCH
    upper = datetime.combine(end, time.max) if end else (now or datetime.now())
    return lower, upper


def in_date_range(
    raw_date: str, start: Optional[date], end: Optional[date], now: Optional[datetime] = None
) -> bool:
    """Date predicate; a value that does not parse is outside its jurisdiction."""

    if not (start or end):
        return True
    parsed = parse_to_date(raw_date)
    if parsed is None:
        return True
    lower, upper = date_bounds(start, end, now)
    return lower <= parsed <= upper


def apply_predicates(records: Iterable[R], predicates: Sequence[Predicate]) -> List[R]:
    """Keep records that satisfy every predicate, preserving input order."""

    return [record for record in records if all(predicate(record) for predicate in predicates)]


def _client_predicates(filters, now: Optional[datetime], date_of: Callable) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.start_date or filters.end_date:
        predicates.append(lambda r: in_date_range(date_of(r), filters.start_date, filters.end_date, now))
    if filters.client_search:
        predicates.append(
            lambda r: _contains(r.client_number, filters.client_search)
            or _contains(r.client_name, filters.client_search)
        )
    if filters.order_search:
        predicates.append(lambda r: _contains(r.order_number, filters.order_search))
    if filters.source_filter:
        predicates.append(lambda r: _equals(r.source, filters.source_filter))
    return predicates


def filter_transfers(
    records: Iterable[TransferRecord],
    filters: Optional[TransferFilters],
    now: Optional[datetime] = None,
) -> List[TransferRecord]:
    if filters is None:
        return list(records)
    predicates = _client_predicates(filters, now, lambda r: r.submission_date)
    return apply_predicates(records, predicates)


def filter_incidents(
    records: Iterable[IncidentRecord],
    filters: Optional[IncidentFilters],
    now: Optional[datetime] = None,
) -> List[IncidentRecord]:
    if filters is None:
        return list(records)
    predicates = _client_predicates(filters, now, lambda r: r.incident_date)
    if filters.incident_type_filter:
        predicates.append(lambda r: _equals(r.incident_type, filters.incident_type_filter))
    if filters.status_filter:
        predicates.append(lambda r: _equals(r.status, filters.status_filter))
    if filters.search_term:
        # Quick search bar: client number or order number.
        predicates.append(
            lambda r: _contains(r.client_number, filters.search_term)
            or _contains(r.order_number, filters.search_term)
        )
    return apply_predicates(records, predicates)


def filter_messages(
    records: Iterable[MessageRecord],
    filters: Optional[MessageFilters],
    now: Optional[datetime] = None,
) -> List[MessageRecord]:
    if filters is None:
        return list(records)
    predicates: List[Predicate] = []
    if filters.start_date or filters.end_date:
        predicates.append(lambda m: in_date_range(m.timestamp, filters.start_date, filters.end_date, now))
    if filters.search_term:
        predicates.append(
            lambda m: _contains(m.phone, filters.search_term) or _contains(m.text, filters.search_term)
        )
    return apply_predicates(records, predicates)
