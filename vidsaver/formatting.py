"""Human-readable rendering of durations, view counts and file names."""
from __future__ import annotations

import os
import re
from typing import Any

CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
}


def format_duration(seconds: Any) -> str:
    """Render seconds as ``H:MM:SS`` or ``M:SS``; fractions are truncated."""
    try:
        total = int(seconds or 0)
    except (TypeError, ValueError):
        total = 0
    total = max(total, 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_views(count: Any) -> str:
    try:
        views = int(count or 0)
    except (TypeError, ValueError):
        views = 0
    if views >= 1_000_000_000:
        return f"{views / 1_000_000_000:.1f}B views"
    if views >= 1_000_000:
        return f"{views / 1_000_000:.1f}M views"
    if views >= 1_000:
        return f"{views / 1_000:.1f}K views"
    return f"{views} views"


def content_type_for(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    return CONTENT_TYPES.get(ext, "application/octet-stream")


def sanitize_filename(title: str, ext: str) -> str:
    """Create a safe, ASCII filename for Content-Disposition headers."""
    safe_title = (
        re.sub(r'[\\/*?:"<>|]', "", title)
        .replace("\n", " ")
        .replace("\r", " ")
        .strip()
    )
    # Force ASCII to avoid latin-1 header encoding failures
    safe_title = safe_title.encode("ascii", "ignore").decode("ascii").strip() or "download"
    safe_ext = ext.encode("ascii", "ignore").decode("ascii").strip(". ")
    return f"{safe_title}.{safe_ext}" if safe_ext else safe_title


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{filename}"'
