"""Runtime configuration for the three dashboards."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sheetdash.core.errors import ConfigurationError
from sheetdash.core.utils import get_config_value, load_env_file

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = Path("secrets/dashboard.env")
DEFAULT_VIEWED_STATE_PATH = Path.home() / ".sheetdash" / "viewed.json"
DEFAULT_REFRESH_SECONDS = 30.0
DEFAULT_HEADER_ROWS = 1
DEFAULT_TIMEOUT_SECONDS = 30.0

MISSING_SPREADSHEET_MESSAGE = "Configuración incompleta: falta el ID del spreadsheet"

_ENV_LOADED = False


def _ensure_env() -> None:
    """Populate dashboard env vars from secrets/dashboard.env once per process."""

    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True

    env_path = Path(os.getenv("SHEETDASH_ENV_FILE", DEFAULT_ENV_FILE))
    loaded = load_env_file(env_path)
    if loaded:
        logger.info("Read %s from %s", ", ".join(loaded), env_path)


@dataclass(frozen=True)
class SheetSource:
    """Address of one worksheet behind a dashboard."""

    spreadsheet_id: str
    sheet_gid: str = "0"

    def require(self) -> "SheetSource":
        if not self.spreadsheet_id:
            raise ConfigurationError(MISSING_SPREADSHEET_MESSAGE)
        return self


@dataclass(frozen=True)
class DashboardSettings:
    transfers: SheetSource
    incidents: SheetSource
    messages: SheetSource
    status_webhook_url: Optional[str] = None
    viewed_state_path: Path = DEFAULT_VIEWED_STATE_PATH
    auto_refresh_seconds: float = DEFAULT_REFRESH_SECONDS
    header_rows: int = DEFAULT_HEADER_ROWS
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    service_account_path: Optional[Path] = None

    def source_for(self, kind: str) -> SheetSource:
        try:
            return getattr(self, kind)
        except AttributeError as exc:
            raise ConfigurationError(f"Unknown dashboard kind: {kind}") from exc


def _float_setting(key: str, default: float) -> float:
    raw = get_config_value(key, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {raw!r}")
    return value


def _header_rows_setting() -> int:
    raw = get_config_value("SHEET_HEADER_ROWS", "")
    if not raw:
        return DEFAULT_HEADER_ROWS
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"SHEET_HEADER_ROWS must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"SHEET_HEADER_ROWS cannot be negative, got {raw!r}")
    return value


def load_settings() -> DashboardSettings:
    """Resolve settings from Streamlit secrets, the environment and the env file.

    Missing spreadsheet ids are allowed here; each dashboard reports its own
    configuration error when it tries to load, so siblings keep working.
    """

    _ensure_env()

    def _source(prefix: str) -> SheetSource:
        return SheetSource(
            spreadsheet_id=get_config_value(f"{prefix}_SPREADSHEET_ID", "").strip(),
            sheet_gid=get_config_value(f"{prefix}_SHEET_GID", "0").strip() or "0",
        )

    viewed_path = get_config_value("VIEWED_STATE_PATH", "")
    service_account = get_config_value("GOOGLE_SERVICE_ACCOUNT_FILE", "").strip()
    settings = DashboardSettings(
        transfers=_source("TRANSFERS"),
        incidents=_source("INCIDENTS"),
        messages=_source("MESSAGES"),
        status_webhook_url=get_config_value("STATUS_WEBHOOK_URL", "").strip() or None,
        viewed_state_path=Path(viewed_path).expanduser() if viewed_path else DEFAULT_VIEWED_STATE_PATH,
        auto_refresh_seconds=_float_setting("AUTO_REFRESH_SECONDS", DEFAULT_REFRESH_SECONDS),
        header_rows=_header_rows_setting(),
        request_timeout=_float_setting("REQUEST_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        service_account_path=Path(service_account).expanduser() if service_account else None,
    )
    if not (settings.status_webhook_url or settings.service_account_path):
        logger.info("No status write-back configured; incident status changes stay local.")
    return settings
