"""Settings lookup helpers used by ``sheetdash.core.config``."""
import logging
import os
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


def get_config_value(key: str, default: str = "") -> str:
    """Return one dashboard setting such as ``INCIDENTS_SPREADSHEET_ID``.

    A deployed Streamlit app keeps its sheet ids and webhook URL in
    ``st.secrets``; the CLI and local runs read the process environment.
    """
    try:
        import streamlit as st
        if hasattr(st, "secrets") and key in st.secrets:
            return str(st.secrets[key])
    except (ImportError, FileNotFoundError, KeyError):
        pass

    return os.getenv(key, default)


def _parse_env_line(raw_line: str):
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    value = value.strip()
    if value[:1] in {'"', "'"} and value[-1:] == value[:1] and len(value) > 1:
        value = value[1:-1]
    elif " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return (key, value) if key else None


def load_env_file(path: Path) -> List[str]:
    """Fill unset environment variables from a dotenv-style file.

    Accepts ``KEY=value`` and ``export KEY=value`` lines, quoted values and
    trailing `` # comments``. Variables already in the environment win.
    Returns the keys that were set, so callers can log where settings came from.
    """
    if not path.exists():
        return []

    loaded: List[str] = []
    try:
        with path.open(encoding="utf-8") as handle:
            for raw_line in handle:
                parsed = _parse_env_line(raw_line)
                if parsed is None:
                    continue
                key, value = parsed
                if key in os.environ:
                    continue
                os.environ[key] = value
                loaded.append(key)
    except OSError as exc:
        logger.warning("Could not read dashboard env file %s: %s", path, exc)
        return loaded

    logger.debug("Loaded %d settings from %s", len(loaded), path)
    return loaded
