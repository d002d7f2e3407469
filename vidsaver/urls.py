"""Recognise the YouTube URL shapes the service accepts."""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
SHORT_HOSTS = {"youtu.be", "www.youtu.be"}
PATH_ID_PATTERN = re.compile(r"^/(?:embed|shorts)/([^/?#&]+)")


def _parse(url: str):
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return None
    return parsed


def extract_video_id(url: str) -> Optional[str]:
    """Return the video id carried by a supported URL, or ``None``."""
    parsed = _parse(url)
    if parsed is None:
        return None
    host = (parsed.hostname or "").lower()
    if host in SHORT_HOSTS:
        video_id = parsed.path.lstrip("/").split("/", 1)[0]
        return video_id or None
    if host in YOUTUBE_HOSTS:
        if parsed.path == "/watch":
            ids = parse_qs(parsed.query).get("v")
            return ids[0] if ids and ids[0] else None
        match = PATH_ID_PATTERN.match(parsed.path)
        if match:
            return match.group(1)
    return None


def is_supported_url(url: str) -> bool:
    """True for youtube.com/watch, youtu.be/, /embed/ and /shorts/ links."""
    if not url or not isinstance(url, str):
        return False
    parsed = _parse(url)
    if parsed is None:
        return False
    host = (parsed.hostname or "").lower()
    if host in SHORT_HOSTS:
        return bool(parsed.path.strip("/"))
    if host in YOUTUBE_HOSTS:
        return parsed.path == "/watch" or bool(PATH_ID_PATTERN.match(parsed.path))
    return False
