"""Runtime configuration read from environment variables."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_VIDEO_EXTENSIONS = ("mp4", "webm")
DEFAULT_AUDIO_EXTENSIONS = ("m4a", "webm", "mp3")


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str) -> Optional[float]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _list_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    log_file: Optional[str] = None
    backend: str = "cli"
    ytdlp_binary: str = "yt-dlp"
    ytdlp_timeout: Optional[float] = None
    work_dir: str = tempfile.gettempdir()
    max_concurrent_downloads: int = 3
    video_extensions: Tuple[str, ...] = DEFAULT_VIDEO_EXTENSIONS
    audio_extensions: Tuple[str, ...] = DEFAULT_AUDIO_EXTENSIONS
    max_height: int = 4320
    height_cap: int = 1080
    ffmpeg_location: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", 3001),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            backend=(os.getenv("VIDSAVER_BACKEND") or "cli").strip().lower(),
            ytdlp_binary=os.getenv("YTDLP_BINARY") or "yt-dlp",
            ytdlp_timeout=_float_env("YTDLP_TIMEOUT"),
            work_dir=os.getenv("VIDSAVER_WORK_DIR") or tempfile.gettempdir(),
            max_concurrent_downloads=max(_int_env("MAX_CONCURRENT_DOWNLOADS", 3), 1),
            video_extensions=_list_env("VIDSAVER_VIDEO_EXTENSIONS", DEFAULT_VIDEO_EXTENSIONS),
            audio_extensions=_list_env("VIDSAVER_AUDIO_EXTENSIONS", DEFAULT_AUDIO_EXTENSIONS),
            max_height=_int_env("VIDSAVER_MAX_HEIGHT", 4320),
            height_cap=_int_env("VIDSAVER_HEIGHT_CAP", 1080),
            ffmpeg_location=os.getenv("FFMPEG_LOCATION") or None,
        )
