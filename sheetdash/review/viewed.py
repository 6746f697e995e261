"""Per-dashboard "viewed" markers persisted outside the fetch lifecycle."""
from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set, TypeVar

from sheetdash.core.models import IncidentRecord, TransferRecord

logger = logging.getLogger(__name__)

R = TypeVar("R")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store; used by tests and when no state path is configured."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Key-value store backed by a single JSON document on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable viewed-state file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def transfer_id(record: TransferRecord) -> str:
    return f"{record.client_number}-{record.order_number}-{record.submission_date}"


def incident_id(record: IncidentRecord) -> str:
    return f"{record.client_number}-{record.order_number}-{record.incident_date}-{record.row_index}"


class ViewedSetStore:
    """Owns the viewed identifiers of one dashboard kind.

    ``load`` reads the persisted set, ``toggle`` flips one identifier and
    flushes immediately, ``flush`` writes the current set back.
    """

    def __init__(self, kind: str, store: KeyValueStore) -> None:
        self.kind = kind
        self.store = store
        self._ids: Set[str] = set()
        self._loaded = False

    @property
    def key(self) -> str:
        return f"viewed_{self.kind}"

    def load(self) -> Set[str]:
        raw = self.store.get(self.key)
        ids: Set[str] = set()
        if raw:
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Discarding malformed viewed set for %s", self.kind)
                decoded = []
            if isinstance(decoded, list):
                ids = {str(item) for item in decoded}
        self._ids = ids
        self._loaded = True
        return set(self._ids)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @property
    def ids(self) -> Set[str]:
        self._ensure_loaded()
        return set(self._ids)

    def is_viewed(self, record_id: str) -> bool:
        self._ensure_loaded()
        return record_id in self._ids

    def toggle(self, record_id: str) -> bool:
        """Flip one identifier and persist; return the new membership."""

        self._ensure_loaded()
        if record_id in self._ids:
            self._ids.discard(record_id)
            viewed = False
        else:
            self._ids.add(record_id)
            viewed = True
        self.flush()
        return viewed

    def flush(self) -> None:
        self.store.set(self.key, json.dumps(sorted(self._ids), ensure_ascii=False))


def apply_viewed(records: Iterable[R], ids: Set[str], id_of: Callable[[R], str]) -> List[R]:
    """Return copies of the records with ``viewed`` reflecting the id set."""

    return [replace(record, viewed=id_of(record) in ids) for record in records]
