"""Canned data returned when yt-dlp is missing or gives nothing usable."""
from __future__ import annotations

from typing import List

from .models import AudioQualityOption, QualityCatalog, VideoInfo, VideoQualityOption
from .urls import extract_video_id

MB = 1024 * 1024
FALLBACK_VIDEO_ID = "dQw4w9WgXcQ"


def mock_video_options() -> List[VideoQualityOption]:
    return [
        VideoQualityOption(format_id="137", quality="1080p", ext="mp4", filesize=89 * MB, width=1920, height=1080),
        VideoQualityOption(format_id="136", quality="720p", ext="mp4", filesize=45 * MB, width=1280, height=720),
        VideoQualityOption(format_id="135", quality="480p", ext="mp4", filesize=25 * MB, width=854, height=480),
        VideoQualityOption(format_id="134", quality="360p", ext="mp4", filesize=15 * MB, width=640, height=360),
        VideoQualityOption(format_id="133", quality="240p", ext="mp4", filesize=8 * MB, width=426, height=240),
    ]


def mock_audio_options() -> List[AudioQualityOption]:
    return [
        AudioQualityOption(format_id="251", ext="webm", abr=160, filesize=9 * MB),
        AudioQualityOption(format_id="140", ext="m4a", abr=128, filesize=8 * MB),
        AudioQualityOption(format_id="250", ext="webm", abr=70, filesize=4 * MB),
        AudioQualityOption(format_id="249", ext="webm", abr=50, filesize=3 * MB),
        AudioQualityOption(format_id="139", ext="m4a", abr=48, filesize=3 * MB),
    ]


def mock_catalog() -> QualityCatalog:
    """Return the fixed fallback catalog. Each call builds new objects."""
    return QualityCatalog(video=mock_video_options(), audio=mock_audio_options())


def mock_video_info(url: str) -> VideoInfo:
    video_id = extract_video_id(url) or FALLBACK_VIDEO_ID
    return VideoInfo(
        url=url,
        title="Rick Astley - Never Gonna Give You Up (Official Video)",
        thumbnail=f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg",
        duration="3:33",
        views="1.4B views",
        uploader="Rick Astley",
        description=(
            'The official video for "Never Gonna Give You Up" by Rick Astley. '
            "This is mock data for demonstration purposes."
        ),
    )
