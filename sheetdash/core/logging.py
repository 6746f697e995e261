"""Process-wide logging setup for the CLI and the Streamlit app."""
from __future__ import annotations

import logging
import os

# HTTP client internals log every connection at DEBUG; sheet fetches are
# already logged by ``sheetdash.ingestion.sheets``.
NOISY_LOGGERS = ("urllib3", "gspread")


def configure_logging(level: str | None = None) -> None:
    """Set the root level and format once for every sheetdash entry point.

    ``level`` wins over ``LOG_LEVEL`` (default ``INFO``). Connection-level
    chatter from the HTTP stack stays at ``WARNING`` or above even when
    dashboards are debugged at ``DEBUG``.
    """

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    floor = max(logging.getLogger().level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(floor)
