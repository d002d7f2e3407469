"""Reduce yt-dlp's raw format list to a short menu of video and audio qualities.

Classification
--------------
* video: ``vcodec`` present and not ``"none"``, numeric ``height`` within
  ``[min_height, max_height]``, extension in the video allow-list.
* audio: ``acodec`` present and not ``"none"`` while ``vcodec == "none"``
  (audio-only streams; muxed streams never appear in the audio list),
  bitrate > 0 after defaulting a missing ``abr`` to 128, extension in the
  audio allow-list.

Each list is then sorted descending (height / bitrate, stable), reduced to
the first entry per height / bitrate, replaced by the mock list when empty,
and truncated.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .config import DEFAULT_AUDIO_EXTENSIONS, DEFAULT_VIDEO_EXTENSIONS, Settings
from .mocks import mock_audio_options, mock_video_options
from .models import AudioQualityOption, MediaFormatDescriptor, QualityCatalog, VideoQualityOption

NO_CODEC = "none"

RawFormat = Union[MediaFormatDescriptor, Dict[str, Any]]


@dataclass(frozen=True)
class FormatPolicy:
    min_height: int = 144
    max_height: int = 4320
    # An empty allow-list accepts every extension
    video_extensions: Sequence[str] = DEFAULT_VIDEO_EXTENSIONS
    audio_extensions: Sequence[str] = DEFAULT_AUDIO_EXTENSIONS
    default_audio_bitrate: float = 128
    max_video_options: int = 10
    max_audio_options: int = 8

    @classmethod
    def from_settings(cls, settings: Settings) -> "FormatPolicy":
        return cls(
            max_height=settings.max_height,
            video_extensions=settings.video_extensions,
            audio_extensions=settings.audio_extensions,
        )


DEFAULT_POLICY = FormatPolicy()


def _has_codec(codec: Any) -> bool:
    return isinstance(codec, str) and codec != NO_CODEC


def _allowed(ext: str, allow_list: Sequence[str]) -> bool:
    return not allow_list or ext.lower() in allow_list


def classify_video(fmt: MediaFormatDescriptor, policy: FormatPolicy) -> Optional[VideoQualityOption]:
    if not _has_codec(fmt.video_codec) or fmt.height is None:
        return None
    if not policy.min_height <= fmt.height <= policy.max_height:
        return None
    if not _allowed(fmt.extension, policy.video_extensions):
        return None
    return VideoQualityOption(
        format_id=fmt.format_id,
        quality=f"{fmt.height}p",
        ext=fmt.extension,
        filesize=fmt.filesize,
        width=fmt.width,
        height=fmt.height,
    )


def classify_audio(fmt: MediaFormatDescriptor, policy: FormatPolicy) -> Optional[AudioQualityOption]:
    if not _has_codec(fmt.audio_codec) or fmt.video_codec != NO_CODEC:
        return None
    bitrate = fmt.average_bitrate if fmt.average_bitrate is not None else policy.default_audio_bitrate
    abr = int(bitrate)
    if abr <= 0:
        return None
    if not _allowed(fmt.extension, policy.audio_extensions):
        return None
    return AudioQualityOption(
        format_id=fmt.format_id,
        ext=fmt.extension,
        abr=abr,
        filesize=fmt.filesize,
    )


def _first_per_key(items: Iterable, key) -> List:
    seen = set()
    kept = []
    for item in items:
        value = key(item)
        if value in seen:
            continue
        seen.add(value)
        kept.append(item)
    return kept


def _descriptor(raw: RawFormat) -> Optional[MediaFormatDescriptor]:
    if isinstance(raw, MediaFormatDescriptor):
        return raw
    if isinstance(raw, dict):
        return MediaFormatDescriptor.from_json(raw)
    return None


def normalize(raw_formats: Iterable[RawFormat], policy: Optional[FormatPolicy] = None) -> QualityCatalog:
    """Build the client-facing quality catalog. Never raises on bad entries."""
    policy = policy or DEFAULT_POLICY
    video: List[VideoQualityOption] = []
    audio: List[AudioQualityOption] = []

    for raw in raw_formats or []:
        fmt = _descriptor(raw)
        if fmt is None:
            continue
        video_option = classify_video(fmt, policy)
        if video_option is not None:
            video.append(video_option)
        audio_option = classify_audio(fmt, policy)
        if audio_option is not None:
            audio.append(audio_option)

    # sorted() is stable, so equal heights keep their source order
    video = _first_per_key(sorted(video, key=lambda v: v.height, reverse=True), lambda v: v.height)
    audio = _first_per_key(sorted(audio, key=lambda a: a.abr, reverse=True), lambda a: a.abr)

    if not video:
        video = mock_video_options()
    if not audio:
        audio = mock_audio_options()

    return QualityCatalog(
        video=video[: policy.max_video_options],
        audio=audio[: policy.max_audio_options],
    )


def catalog_from_metadata(metadata: Dict[str, Any], policy: Optional[FormatPolicy] = None) -> QualityCatalog:
    formats = metadata.get("formats")
    if not isinstance(formats, list):
        formats = []
    return normalize(formats, policy)
