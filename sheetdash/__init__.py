"""Spreadsheet-backed dashboards for transfer receipts, incidents and message logs."""
from sheetdash.core import (
    ConfigurationError,
    Conversation,
    IncidentFilters,
    IncidentRecord,
    MessageFilters,
    MessageRecord,
    SheetFetchError,
    TransferFilters,
    TransferRecord,
    configure_logging,
    load_settings,
)
from sheetdash.ingestion import (
    fetch_table,
    format_canonical,
    map_incidents,
    map_messages,
    map_transfers,
    parse_to_date,
    resolve_cell,
)
from sheetdash.processing import (
    AutoRefresh,
    IncidentDashboard,
    MessageDashboard,
    TransferDashboard,
    build_dashboards,
    filter_incidents,
    filter_messages,
    filter_transfers,
    group_conversations,
    sort_incidents,
    sort_transfers,
)
from sheetdash.review import StatusToggle, ViewedSetStore, WebhookStatusWriter, WriteOutcome

__all__ = [
    "ConfigurationError",
    "Conversation",
    "IncidentFilters",
    "IncidentRecord",
    "MessageFilters",
    "MessageRecord",
    "SheetFetchError",
    "TransferFilters",
    "TransferRecord",
    "configure_logging",
    "load_settings",
    "fetch_table",
    "format_canonical",
    "map_incidents",
    "map_messages",
    "map_transfers",
    "parse_to_date",
    "resolve_cell",
    "AutoRefresh",
    "IncidentDashboard",
    "MessageDashboard",
    "TransferDashboard",
    "build_dashboards",
    "filter_incidents",
    "filter_messages",
    "filter_transfers",
    "group_conversations",
    "sort_incidents",
    "sort_transfers",
    "StatusToggle",
    "ViewedSetStore",
    "WebhookStatusWriter",
    "WriteOutcome",
]
