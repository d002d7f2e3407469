"""Metadata extraction and download orchestration on top of a media tool."""
from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, List, Optional, Union

from .config import Settings
from .errors import (
    CollaboratorUnavailableError,
    DownloadedFileNotFoundError,
    DownloadFailedError,
    InvalidInputError,
    ToolError,
    ToolExecutionError,
)
from .formats import FormatPolicy, catalog_from_metadata
from .formatting import content_type_for, format_duration, format_views, sanitize_filename
from .mocks import mock_catalog, mock_video_info
from .models import DownloadIntent, DownloadResult, Live, Mock, QualityCatalog, VideoInfo
from .selector import build_download_plan
from .tools import MediaTool
from .urls import is_supported_url

logger = logging.getLogger(__name__)

FILE_PREFIX = "vidsaver_"
# yt-dlp leaves these behind while a download is in flight
PARTIAL_SUFFIXES = (".part", ".ytdl", ".temp")

VideoInfoResult = Union[Live[VideoInfo], Mock[VideoInfo]]
CatalogResult = Union[Live[QualityCatalog], Mock[QualityCatalog]]


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def video_info_from_metadata(url: str, metadata: Dict[str, Any]) -> VideoInfo:
    description = metadata.get("description")
    return VideoInfo(
        url=url,
        title=_text(metadata.get("title"), "Unknown Title"),
        thumbnail=_text(metadata.get("thumbnail"), ""),
        duration=format_duration(metadata.get("duration")),
        views=format_views(metadata.get("view_count")),
        uploader=_text(metadata.get("uploader"), "Unknown Channel"),
        description=description if isinstance(description, str) else None,
    )


class VideoService:
    def __init__(self, tool: MediaTool, settings: Optional[Settings] = None) -> None:
        self.tool = tool
        self.settings = settings or Settings()
        self.policy = FormatPolicy.from_settings(self.settings)

    @staticmethod
    def _validate_url(url: str) -> None:
        if not is_supported_url(url):
            raise InvalidInputError("Invalid YouTube URL")

    def _fetch_metadata(self, url: str) -> Union[Dict[str, Any], str]:
        """Return metadata, or the reason live extraction was not possible."""
        if not self.tool.probe():
            return "yt-dlp is not available"
        try:
            return self.tool.fetch_metadata(url)
        except ToolError as exc:
            return str(exc)

    def extract_video_info(self, url: str) -> VideoInfoResult:
        self._validate_url(url)
        metadata = self._fetch_metadata(url)
        if isinstance(metadata, str):
            logger.warning("Returning mock video info for %s: %s", url, metadata)
            return Mock(mock_video_info(url), reason=metadata)
        return Live(video_info_from_metadata(url, metadata))

    def extract_quality_options(self, url: str) -> CatalogResult:
        self._validate_url(url)
        metadata = self._fetch_metadata(url)
        if isinstance(metadata, str):
            logger.warning("Returning mock quality options for %s: %s", url, metadata)
            return Mock(mock_catalog(), reason=metadata)
        return Live(catalog_from_metadata(metadata, self.policy))

    def _token_files(self, token: str) -> List[str]:
        return sorted(name for name in os.listdir(self.settings.work_dir) if token in name)

    def _cleanup(self, token: str) -> None:
        for name in self._token_files(token):
            try:
                os.remove(os.path.join(self.settings.work_dir, name))
            except FileNotFoundError:
                pass

    def download(self, url: str, intent: DownloadIntent) -> DownloadResult:
        self._validate_url(url)
        work_dir = self.settings.work_dir
        token = uuid.uuid4().hex
        prefix = f"{FILE_PREFIX}{token}_"
        template = os.path.join(work_dir, f"{prefix}%(title)s.%(ext)s")
        # Build the plan first so a bad download type never spawns a process
        plan = build_download_plan(intent, template, self.settings)

        if not self.tool.probe():
            raise CollaboratorUnavailableError(
                "yt-dlp is not available on this system. Please install it to enable downloads."
            )

        os.makedirs(work_dir, exist_ok=True)
        try:
            self.tool.download(url, plan)
        except ToolExecutionError as exc:
            self._cleanup(token)
            logger.error("yt-dlp download error: %s", exc.stderr or exc)
            raise DownloadFailedError(f"Download failed: {exc.stderr or exc}", diagnostics=exc.stderr) from exc

        candidates = [name for name in self._token_files(token) if not name.endswith(PARTIAL_SUFFIXES)]
        if not candidates:
            logger.error(
                "Downloaded file with token %s not found in %s; directory contains: %s",
                token,
                work_dir,
                sorted(os.listdir(work_dir)),
            )
            self._cleanup(token)
            raise DownloadedFileNotFoundError("Downloaded file not found")

        file_name = candidates[0]
        path = os.path.join(work_dir, file_name)
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        finally:
            self._cleanup(token)

        produced_name = file_name.split(token, 1)[1]
        if produced_name.startswith("_"):
            produced_name = produced_name[1:]
        stem, ext = os.path.splitext(produced_name)
        filename = sanitize_filename(stem, ext.lstrip("."))
        logger.info("Downloaded %s (%d bytes) for %s", filename, len(data), url)
        return DownloadResult(data=data, filename=filename, content_type=content_type_for(filename))
