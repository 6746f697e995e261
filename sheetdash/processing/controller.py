"""Per-dashboard state owners: fetch, filter, sort and local mutations.

Each controller owns one record list. A successful fetch replaces it
wholesale; optimistic mutations rebuild it with a single element swapped.
Every fetch takes a ticket from a monotonic counter and its result is only
applied if no newer fetch has been applied already, so a slow response can
never overwrite fresher data.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

import requests

from sheetdash.core.config import MISSING_SPREADSHEET_MESSAGE, DashboardSettings, SheetSource
from sheetdash.core.errors import ConfigurationError
from sheetdash.core.models import (
    Cell,
    Conversation,
    IncidentFilters,
    IncidentRecord,
    IncidentSummary,
    MessageFilters,
    MessageRecord,
    TransferFilters,
    TransferRecord,
)
from sheetdash.ingestion.mapper import map_incidents, map_messages, map_transfers
from sheetdash.ingestion.sheets import fetch_table
from sheetdash.processing.filters import filter_incidents, filter_messages, filter_transfers
from sheetdash.processing.ordering import find_conversation, group_conversations, sort_incidents, sort_transfers
from sheetdash.processing.stats import distinct_values, summarize_incidents
from sheetdash.review.status import (
    GspreadStatusWriter,
    StatusChange,
    StatusToggle,
    StatusWriter,
    WebhookStatusWriter,
    find_incident,
    next_status,
    patch_status,
)
from sheetdash.review.viewed import (
    JsonFileStore,
    KeyValueStore,
    ViewedSetStore,
    apply_viewed,
    incident_id,
    transfer_id,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")
F = TypeVar("F")

GENERIC_LOAD_ERROR = "Error al cargar los datos"

Fetcher = Callable[[str, str], List[List[Cell]]]


class DashboardController(Generic[R, F]):
    """Shared fetch/refresh lifecycle for one dashboard."""

    kind = ""

    def __init__(
        self,
        source: SheetSource,
        filters: F,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.source = source
        self._filters = filters
        self._fetcher = fetcher or fetch_table
        self._lock = threading.RLock()
        self._records: List[R] = []
        self._loading = True
        self._error: Optional[str] = None
        self._issued = 0
        self._applied = 0
        self._loading_ticket = 0

    # -- state ---------------------------------------------------------
    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def filters(self) -> F:
        return self._filters

    def set_filters(self, filters: F) -> None:
        with self._lock:
            self._filters = filters

    @property
    def all_records(self) -> List[R]:
        with self._lock:
            return list(self._records)

    # -- fetching ------------------------------------------------------
    def _map(self, rows: List[List[Cell]]) -> List[R]:
        raise NotImplementedError

    def _next_ticket(self) -> int:
        with self._lock:
            self._issued += 1
            return self._issued

    def _fetch(self) -> List[R]:
        source = self.source.require()
        rows = self._fetcher(source.spreadsheet_id, source.sheet_gid)
        return self._map(rows)

    def _apply(self, ticket: int, records: List[R]) -> bool:
        with self._lock:
            if ticket <= self._applied:
                logger.info(
                    "Dropping stale %s response (ticket %d, already applied %d)", self.kind, ticket, self._applied
                )
                return False
            self._applied = ticket
            self._records = records
            return True

    def load(self) -> None:
        """Initial or manual load; failures end up in ``error``."""

        if not self.source.spreadsheet_id:
            with self._lock:
                self._error = MISSING_SPREADSHEET_MESSAGE
                self._loading = False
            logger.error("%s dashboard: %s", self.kind, MISSING_SPREADSHEET_MESSAGE)
            return

        ticket = self._next_ticket()
        with self._lock:
            self._loading = True
            self._loading_ticket = ticket
            self._error = None
        try:
            records = self._fetch()
        except Exception as exc:
            logger.exception("%s dashboard failed to load", self.kind)
            self._fail(ticket, exc)
        else:
            if self._apply(ticket, records):
                with self._lock:
                    self._error = None
                logger.info("%s dashboard loaded %d records", self.kind, len(records))
        finally:
            with self._lock:
                # Only the latest manual load may clear the flag.
                if ticket == self._loading_ticket:
                    self._loading = False

    def _fail(self, ticket: int, exc: Exception) -> None:
        with self._lock:
            if ticket <= self._applied:
                logger.info(
                    "Ignoring stale %s failure (ticket %d, already applied %d)", self.kind, ticket, self._applied
                )
                return
            self._error = str(exc) or GENERIC_LOAD_ERROR

    def refresh(self) -> None:
        self.load()

    def silent_refresh(self) -> None:
        """Background re-fetch: no loading flag, failures are only logged."""

        if not self.source.spreadsheet_id:
            return

        ticket = self._next_ticket()
        try:
            records = self._fetch()
        except Exception as exc:
            logger.warning("Auto-refresh of %s dashboard failed: %s", self.kind, exc)
            return

        if self._apply(ticket, records):
            with self._lock:
                self._error = None


class _ViewedMixin:
    """Viewed-set overlay for dashboards whose rows can be marked as seen."""

    viewed_store: Optional[ViewedSetStore]
    _record_id: Callable

    def _viewed_ids(self) -> set:
        return self.viewed_store.ids if self.viewed_store is not None else set()

    def _with_viewed(self, records: List) -> List:
        return apply_viewed(records, self._viewed_ids(), self._record_id)

    def toggle_viewed(self, record) -> bool:
        """Flip the viewed marker locally; nothing is sent to the sheet."""

        if self.viewed_store is None:
            raise ConfigurationError("No viewed-state store configured for this dashboard")
        return self.viewed_store.toggle(self._record_id(record))


class TransferDashboard(_ViewedMixin, DashboardController[TransferRecord, TransferFilters]):
    kind = "transfers"

    def __init__(
        self,
        source: SheetSource,
        fetcher: Optional[Fetcher] = None,
        viewed_store: Optional[ViewedSetStore] = None,
    ) -> None:
        super().__init__(source, TransferFilters(), fetcher)
        self.viewed_store = viewed_store
        self._record_id = transfer_id

    def _map(self, rows: List[List[Cell]]) -> List[TransferRecord]:
        return map_transfers(rows)

    @property
    def records(self) -> List[TransferRecord]:
        with self._lock:
            current, filters = list(self._records), self._filters
        return self._with_viewed(sort_transfers(filter_transfers(current, filters)))

    @property
    def sources(self) -> List[str]:
        return distinct_values(self.all_records, "source")


class IncidentDashboard(_ViewedMixin, DashboardController[IncidentRecord, IncidentFilters]):
    kind = "incidents"

    def __init__(
        self,
        source: SheetSource,
        fetcher: Optional[Fetcher] = None,
        viewed_store: Optional[ViewedSetStore] = None,
        status_toggle: Optional[StatusToggle] = None,
    ) -> None:
        super().__init__(source, IncidentFilters(), fetcher)
        self.viewed_store = viewed_store
        self.status_toggle = status_toggle or StatusToggle(writer=None)
        self._record_id = incident_id

    def _map(self, rows: List[List[Cell]]) -> List[IncidentRecord]:
        return map_incidents(rows)

    @property
    def records(self) -> List[IncidentRecord]:
        with self._lock:
            current, filters = list(self._records), self._filters
        return self._with_viewed(sort_incidents(filter_incidents(current, filters)))

    @property
    def incident_types(self) -> List[str]:
        return distinct_values(self.all_records, "incident_type")

    @property
    def sources(self) -> List[str]:
        return distinct_values(self.all_records, "source")

    def summary(self, filtered: bool = True) -> IncidentSummary:
        return summarize_incidents(self.records if filtered else self.all_records)

    def patch_status(self, row_index: int, status: str) -> None:
        """Optimistically rewrite one record's status in memory."""

        with self._lock:
            self._records = patch_status(self._records, row_index, status)

    def _settle(self, change: StatusChange) -> StatusChange:
        if not change.applied:
            # Roll back against whatever list is current now, not the snapshot.
            self.patch_status(change.row_index, change.previous_status)
        return change

    def update_status(self, row_index: int, new_status: str) -> StatusChange:
        # Both phases patch the list current at that moment, so a refresh
        # applied in between is kept.
        change = self.status_toggle.update(
            self.all_records,
            row_index,
            new_status,
            on_patched=lambda _snapshot: self.patch_status(row_index, new_status),
        )
        return self._settle(change)

    def toggle_status(self, row_index: int) -> StatusChange:
        with self._lock:
            target = find_incident(self._records, row_index)
        if target is None:
            raise KeyError(f"No incident at row index {row_index}")
        return self.update_status(row_index, next_status(target.status))


class MessageDashboard(DashboardController[MessageRecord, MessageFilters]):
    kind = "messages"

    def __init__(self, source: SheetSource, fetcher: Optional[Fetcher] = None) -> None:
        super().__init__(source, MessageFilters(), fetcher)
        self.selected_phone: Optional[str] = None

    def _map(self, rows: List[List[Cell]]) -> List[MessageRecord]:
        return map_messages(rows)

    @property
    def records(self) -> List[MessageRecord]:
        with self._lock:
            current, filters = list(self._records), self._filters
        return filter_messages(current, filters)

    @property
    def conversations(self) -> List[Conversation]:
        return group_conversations(self.records)

    def select(self, phone: Optional[str]) -> None:
        self.selected_phone = phone

    @property
    def selected_conversation(self) -> Optional[Conversation]:
        return find_conversation(self.conversations, self.selected_phone)


class AutoRefresh:
    """Daemon thread calling ``silent_refresh`` on a fixed interval."""

    def __init__(self, controllers: Sequence[DashboardController], interval: float = 30.0) -> None:
        self.controllers = list(controllers)
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="sheetdash-auto-refresh", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def tick(self) -> None:
        for controller in self.controllers:
            controller.silent_refresh()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


@dataclass
class Dashboards:
    transfers: TransferDashboard
    incidents: IncidentDashboard
    messages: MessageDashboard

    def all(self) -> List[DashboardController]:
        return [self.transfers, self.incidents, self.messages]


def _status_writer(settings: DashboardSettings, http: requests.Session) -> Optional[StatusWriter]:
    """Webhook when configured, else a service-account writer, else none."""

    if settings.status_webhook_url:
        return WebhookStatusWriter(settings.status_webhook_url, session=http, timeout=settings.request_timeout)
    if settings.service_account_path and settings.incidents.spreadsheet_id:
        return GspreadStatusWriter(
            settings.incidents.spreadsheet_id,
            settings.incidents.sheet_gid,
            service_account_path=settings.service_account_path,
        )
    return None


def build_dashboards(
    settings: DashboardSettings,
    session: Optional[requests.Session] = None,
    store: Optional[KeyValueStore] = None,
) -> Dashboards:
    """Wire the three controllers from resolved settings."""

    http = session or requests.Session()
    fetcher = partial(fetch_table, session=http, timeout=settings.request_timeout)
    store = store or JsonFileStore(settings.viewed_state_path)
    writer = _status_writer(settings, http)
    return Dashboards(
        transfers=TransferDashboard(
            settings.transfers,
            fetcher=fetcher,
            viewed_store=ViewedSetStore("transfers", store),
        ),
        incidents=IncidentDashboard(
            settings.incidents,
            fetcher=fetcher,
            viewed_store=ViewedSetStore("incidents", store),
            status_toggle=StatusToggle(writer, header_rows=settings.header_rows),
        ),
        messages=MessageDashboard(settings.messages, fetcher=fetcher),
    )
