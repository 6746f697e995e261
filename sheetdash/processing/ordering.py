"""Deterministic ordering of records and aggregation of messages into conversations."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from sheetdash.core.models import EPOCH, Conversation, IncidentRecord, MessageRecord, TransferRecord
from sheetdash.ingestion.dates import parse_to_date

R = TypeVar("R")


def recency_key(raw_date: str, row_index: int) -> Tuple[int, float, int]:
    """Sort key for newest-first ordering.

    Records with a parsable date come first (newest to oldest); records
    without one follow. Equal dates fall back to the later sheet row first.
    Tuples compare lexicographically, so this is a strict total order over
    distinct row indexes.
    """

    parsed = parse_to_date(raw_date)
    if parsed is None:
        return (1, 0.0, -row_index)
    return (0, -_ordinal(parsed), -row_index)


def chronological_key(raw_date: str, row_index: int) -> Tuple[int, float, int]:
    """Sort key for oldest-first ordering; unparsable timestamps go last."""

    parsed = parse_to_date(raw_date)
    if parsed is None:
        return (1, 0.0, row_index)
    return (0, _ordinal(parsed), row_index)


def _ordinal(value: datetime) -> float:
    return (value - EPOCH).total_seconds()


def sort_by_recency(records: Iterable[R], date_of: Callable[[R], str]) -> List[R]:
    """Return a new list ordered newest first with ``row_index`` tie-breaks."""

    return sorted(records, key=lambda record: recency_key(date_of(record), record.row_index))


def sort_transfers(records: Iterable[TransferRecord]) -> List[TransferRecord]:
    return sort_by_recency(records, lambda record: record.submission_date)


def sort_incidents(records: Iterable[IncidentRecord]) -> List[IncidentRecord]:
    return sort_by_recency(records, lambda record: record.incident_date)


def sort_messages(messages: Iterable[MessageRecord]) -> List[MessageRecord]:
    return sorted(messages, key=lambda message: chronological_key(message.timestamp, message.row_index))


def group_conversations(messages: Iterable[MessageRecord]) -> List[Conversation]:
    """Partition messages by phone and order conversations by last activity."""

    partitions: Dict[str, List[MessageRecord]] = {}
    for message in messages:
        partitions.setdefault(message.phone, []).append(message)

    conversations: List[Conversation] = []
    for phone, grouped in partitions.items():
        ordered = sort_messages(grouped)
        last: Optional[datetime] = parse_to_date(ordered[-1].timestamp) if ordered else None
        conversations.append(
            Conversation(
                phone=phone,
                messages=ordered,
                last_message_date=last or EPOCH,
                message_count=len(ordered),
            )
        )

    # Phone as secondary key keeps equal timestamps in a stable order.
    conversations.sort(key=lambda convo: convo.phone)
    conversations.sort(key=lambda convo: convo.last_message_date, reverse=True)
    return conversations


def find_conversation(conversations: Iterable[Conversation], phone: Optional[str]) -> Optional[Conversation]:
    if not phone:
        return None
    return next((convo for convo in conversations if convo.phone == phone), None)
