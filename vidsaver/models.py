"""Data types passed between the tool, the normalizer and the API."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, Field, field_validator

T = TypeVar("T")


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass; yt-dlp never means it as a size
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json.loads accepts NaN and Infinity literals
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _int_or_none(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None


@dataclass
class MediaFormatDescriptor:
    """One entry of the ``formats`` array reported by yt-dlp."""

    format_id: str
    extension: str
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    height: Optional[int] = None
    width: Optional[int] = None
    average_bitrate: Optional[float] = None
    filesize: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "MediaFormatDescriptor":
        filesize = _int_or_none(raw.get("filesize"))
        if filesize is None:
            filesize = _int_or_none(raw.get("filesize_approx"))
        vcodec = raw.get("vcodec")
        acodec = raw.get("acodec")
        return cls(
            format_id=str(raw.get("format_id") or ""),
            extension=str(raw.get("ext") or "unknown"),
            video_codec=vcodec if isinstance(vcodec, str) else None,
            audio_codec=acodec if isinstance(acodec, str) else None,
            height=_int_or_none(raw.get("height")),
            width=_int_or_none(raw.get("width")),
            average_bitrate=_number(raw.get("abr")),
            filesize=filesize if filesize is None or filesize >= 0 else None,
        )


class VideoQualityOption(BaseModel):
    format_id: str
    quality: str
    ext: str
    filesize: Optional[int] = None
    width: Optional[int] = None
    height: int


class AudioQualityOption(BaseModel):
    format_id: str
    ext: str
    abr: int
    filesize: Optional[int] = None


class QualityCatalog(BaseModel):
    video: List[VideoQualityOption]
    audio: List[AudioQualityOption]


class VideoInfo(BaseModel):
    url: str
    title: str
    thumbnail: str
    duration: str
    views: str
    uploader: str
    description: Optional[str] = None


class DownloadKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    MP3 = "mp3"


@dataclass
class DownloadIntent:
    """What the client asked to download; ``kind`` is unvalidated input."""

    kind: str
    requested_video_format: Optional[str] = None
    requested_audio_format: Optional[str] = None


class VideoUrlRequest(BaseModel):
    url: str


class DownloadRequest(BaseModel):
    url: str
    type: str
    video_quality: Optional[str] = Field(
        None, validation_alias=AliasChoices("video_quality", "videoQuality")
    )
    audio_quality: Optional[str] = Field(
        None, validation_alias=AliasChoices("audio_quality", "audioQuality")
    )

    @field_validator("video_quality", "audio_quality")
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    def to_intent(self) -> DownloadIntent:
        return DownloadIntent(
            kind=self.type,
            requested_video_format=self.video_quality,
            requested_audio_format=self.audio_quality,
        )


@dataclass
class Live(Generic[T]):
    """Result built from data the media tool actually returned."""

    value: T
    is_mock = False


@dataclass
class Mock(Generic[T]):
    """Canned fallback used when live extraction was not possible."""

    value: T
    reason: str = ""
    is_mock = True


@dataclass
class DownloadResult:
    data: bytes
    filename: str
    content_type: str
