"""Export destinations for dashboard records and conversations."""
from __future__ import annotations

import csv
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from sheetdash.core.models import ROLE_USER, Conversation
from sheetdash.ingestion.dates import parse_to_date

SEPARATOR = "=" * 50


def ensure_output_dir(output_path: Path) -> None:
    """Create parent folders for sink outputs when missing."""

    output_path.parent.mkdir(parents=True, exist_ok=True)


def records_to_rows(records: Iterable[Any]) -> List[Dict[str, Any]]:
    """Convert records to dictionaries for tabular rendering."""

    def _sanitize(value: Any) -> Any:
        if isinstance(value, str):
            return " ".join(value.split())
        return value

    sanitized_rows = []
    for record in records:
        row = record.to_dict()
        sanitized_rows.append({key: _sanitize(value) for key, value in row.items()})
    return sanitized_rows


def write_csv(rows: Iterable[Dict[str, Any]], output_path: Path) -> None:
    """Write rows to a CSV file using the first row's keys as headers."""

    rows = list(rows)
    ensure_output_dir(output_path)
    if not rows:
        return

    with output_path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


def write_excel(rows: Iterable[Dict[str, Any]], output_path: Path, sheet_title: str = "records") -> None:
    """Write rows to an Excel workbook using openpyxl."""

    rows = list(rows)
    if not rows:
        return

    try:
        from openpyxl import Workbook
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise ImportError("openpyxl is required for Excel sinks") from exc

    ensure_output_dir(output_path)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title
    headers: List[str] = list(rows[0].keys())
    sheet.append(headers)
    for row in rows:
        sheet.append([row.get(header, "") for header in headers])
    workbook.save(output_path)


def conversation_to_text(conversation: Conversation, exported_at: Optional[datetime] = None) -> str:
    """Render a conversation as the plain-text transcript users download."""

    exported_at = exported_at or datetime.now()
    lines = [
        f"Conversación con {conversation.phone}",
        f"Exportado el {exported_at:%d/%m/%Y %H:%M}",
        f"Total de mensajes: {conversation.message_count}",
        SEPARATOR,
        "",
    ]
    for message in conversation.messages:
        parsed = parse_to_date(message.timestamp)
        stamp = f"{parsed:%d/%m/%Y %H:%M}" if parsed else message.timestamp
        sender = "Usuario" if message.role == ROLE_USER else "Bot"
        lines.append(f"[{stamp}] {sender}:")
        lines.append(message.text)
        lines.append("")
    return "\n".join(lines) + "\n"


def conversation_filename(phone: str, exported_at: Optional[datetime] = None) -> str:
    exported_at = exported_at or datetime.now()
    digits = re.sub(r"\D", "", phone)
    return f"conversacion_{digits}_{exported_at:%Y%m%d}.txt"


def export_conversation(
    conversation: Conversation, output_dir: Path, exported_at: Optional[datetime] = None
) -> Path:
    """Write a conversation transcript into ``output_dir`` and return its path."""

    exported_at = exported_at or datetime.now()
    target = output_dir / conversation_filename(conversation.phone, exported_at)
    ensure_output_dir(target)
    target.write_text(conversation_to_text(conversation, exported_at), encoding="utf-8")
    return target
