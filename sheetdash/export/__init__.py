"""Export destinations for dashboard records."""
from sheetdash.export.sinks import (
    conversation_filename,
    conversation_to_text,
    ensure_output_dir,
    export_conversation,
    records_to_rows,
    write_csv,
    write_excel,
)

__all__ = [
    "conversation_filename",
    "conversation_to_text",
    "ensure_output_dir",
    "export_conversation",
    "records_to_rows",
    "write_csv",
    "write_excel",
]
