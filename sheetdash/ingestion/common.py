"""Shared helpers for links stored in sheet cells."""
from __future__ import annotations

import re

DRIVE_FILE_RE = re.compile(r"/d/([a-zA-Z0-9_-]+)")
DRIVE_OPEN_RE = re.compile(r"[?&]id=([a-zA-Z0-9_-]+)")
THUMBNAIL_URL = "https://drive.google.com/thumbnail?id={file_id}&sz=w1000"


def drive_preview_url(url: str) -> str:
    """Turn a Drive sharing link into a directly viewable thumbnail URL.

    Handles ``/file/d/<id>/view`` and ``open?id=<id>`` links; anything else
    (already a direct image URL) is returned as is.
    """

    if not url:
        return ""

    for pattern in (DRIVE_FILE_RE, DRIVE_OPEN_RE):
        match = pattern.search(url)
        if match:
            return THUMBNAIL_URL.format(file_id=match.group(1))
    return url
