"""Data models for spreadsheet cells, typed dashboard records and filters."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

DEFAULT_INCIDENT_STATUS = "Abierta"
CLOSED_INCIDENT_STATUS = "Cerrada"

ROLE_USER = "user"
ROLE_BOT = "bot"

EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class EmptyCell:
    """A cell the query endpoint sent as ``null`` or did not send at all."""


@dataclass(frozen=True)
class RawCell:
    """A cell carrying only a typed value (no display formatting)."""

    value: Union[str, int, float, bool]


@dataclass(frozen=True)
class FormattedCell:
    """A cell carrying a locale-formatted display string."""

    text: str


Cell = Union[EmptyCell, RawCell, FormattedCell]


@dataclass
class TransferRecord:
    """A bank transfer receipt submitted by a client."""

    client_number: str
    client_name: str
    order_number: str
    submission_date: str
    receipt_url: str
    row_index: int
    source: str = ""
    viewed: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IncidentRecord:
    """An order incident reported for a client."""

    client_number: str
    client_name: str
    order_number: str
    incident_type: str
    incident_details: str
    incident_date: str
    row_index: int
    status: str = DEFAULT_INCIDENT_STATUS
    source: str = ""
    viewed: Optional[bool] = None

    @property
    def is_open(self) -> bool:
        return self.status.lower() == DEFAULT_INCIDENT_STATUS.lower()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MessageRecord:
    """One line of a messaging log; ``timestamp`` is kept as sent by the sheet."""

    timestamp: str
    phone: str
    role: str
    text: str
    row_index: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Conversation:
    """All filtered messages exchanged with one phone number."""

    phone: str
    messages: List[MessageRecord]
    last_message_date: datetime
    message_count: int

    @property
    def last_message(self) -> Optional[MessageRecord]:
        return self.messages[-1] if self.messages else None


@dataclass(frozen=True)
class TransferFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_search: str = ""
    order_search: str = ""
    source_filter: str = ""


@dataclass(frozen=True)
class IncidentFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_search: str = ""
    order_search: str = ""
    source_filter: str = ""
    incident_type_filter: str = ""
    status_filter: str = ""
    search_term: str = ""


@dataclass(frozen=True)
class MessageFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_term: str = ""


@dataclass(frozen=True)
class IncidentSummary:
    """Counts backing the incident overview cards and charts."""

    total: int
    open: int
    closed: int
    by_type: List[tuple] = field(default_factory=list)

    @property
    def open_percent(self) -> float:
        return (self.open / self.total) * 100 if self.total else 0.0
