"""Core building blocks for the sheetdash package."""
from sheetdash.core.config import DashboardSettings, SheetSource, load_settings
from sheetdash.core.errors import ConfigurationError, SheetdashError, SheetFetchError
from sheetdash.core.logging import configure_logging
from sheetdash.core.models import (
    Conversation,
    IncidentFilters,
    IncidentRecord,
    MessageFilters,
    MessageRecord,
    TransferFilters,
    TransferRecord,
)

__all__ = [
    "DashboardSettings",
    "SheetSource",
    "load_settings",
    "ConfigurationError",
    "SheetdashError",
    "SheetFetchError",
    "configure_logging",
    "Conversation",
    "IncidentFilters",
    "IncidentRecord",
    "MessageFilters",
    "MessageRecord",
    "TransferFilters",
    "TransferRecord",
]
