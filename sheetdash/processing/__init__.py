"""Filtering, ordering, aggregation and per-dashboard state."""
from sheetdash.processing.controller import (
    AutoRefresh,
    DashboardController,
    Dashboards,
    IncidentDashboard,
    MessageDashboard,
    TransferDashboard,
    build_dashboards,
)
from sheetdash.processing.filters import filter_incidents, filter_messages, filter_transfers
from sheetdash.processing.ordering import group_conversations, sort_incidents, sort_transfers
from sheetdash.processing.stats import distinct_values, summarize_incidents

__all__ = [
    "AutoRefresh",
    "DashboardController",
    "Dashboards",
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
    "distinct_values",
    "summarize_incidents",
]
