"""Turn a download intent into a yt-dlp format selector and download plan."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .errors import InvalidInputError
from .models import DownloadIntent, DownloadKind

DEFAULT_HEIGHT_CAP = 1080


def parse_kind(kind: object) -> DownloadKind:
    try:
        return DownloadKind(kind)
    except ValueError:
        raise InvalidInputError("Invalid download type") from None


def build_selector(intent: DownloadIntent, height_cap: int = DEFAULT_HEIGHT_CAP) -> str:
    """
    Build the ``-f`` expression for yt-dlp.

    Every selector ends in a fallback chain so a format that vanished between
    listing and download degrades to the best available stream instead of
    failing.
    """
    kind = parse_kind(intent.kind)
    fallback = f"best[height<={height_cap}]/best"

    if kind is DownloadKind.VIDEO:
        video = intent.requested_video_format
        audio = intent.requested_audio_format
        if video and audio:
            return f"{video}+{audio}/{fallback}"
        if video:
            return f"{video}+bestaudio/{fallback}"
        return fallback

    # audio and mp3 pick the stream the same way; mp3 adds post-processing
    if intent.requested_audio_format:
        return f"{intent.requested_audio_format}/bestaudio/best"
    return "bestaudio/best"


@dataclass(frozen=True)
class DownloadPlan:
    selector: str
    output_template: str
    extract_audio: bool = False
    audio_format: str = "mp3"
    # yt-dlp VBR scale: 0 is best
    audio_quality: str = "0"
    ffmpeg_location: Optional[str] = None


def build_download_plan(intent: DownloadIntent, output_template: str, settings: Settings) -> DownloadPlan:
    selector = build_selector(intent, settings.height_cap)
    return DownloadPlan(
        selector=selector,
        output_template=output_template,
        extract_audio=parse_kind(intent.kind) is DownloadKind.MP3,
        ffmpeg_location=settings.ffmpeg_location,
    )
