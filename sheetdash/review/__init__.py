"""Local mutations layered over fetched records: viewed markers and status."""
from sheetdash.review.status import (
    GspreadStatusWriter,
    StatusChange,
    StatusToggle,
    WebhookStatusWriter,
    WriteOutcome,
    next_status,
    patch_status,
    settle_status,
    to_sheet_row,
)
from sheetdash.review.viewed import (
    JsonFileStore,
    MemoryStore,
    ViewedSetStore,
    apply_viewed,
    incident_id,
    transfer_id,
)

__all__ = [
    "GspreadStatusWriter",
    "StatusChange",
    "StatusToggle",
    "WebhookStatusWriter",
    "WriteOutcome",
    "next_status",
    "patch_status",
    "settle_status",
    "to_sheet_row",
    "JsonFileStore",
    "MemoryStore",
    "ViewedSetStore",
    "apply_viewed",
    "incident_id",
    "transfer_id",
]
