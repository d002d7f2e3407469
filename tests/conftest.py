from typing import Any, Dict, List, Optional

import pytest

from vidsaver.config import Settings
from vidsaver.selector import DownloadPlan
from vidsaver.service import VideoService


SAMPLE_METADATA: Dict[str, Any] = {
    "title": "Test Video",
    "thumbnail": "https://img.example.com/test.jpg",
    "duration": 213.7,
    "view_count": 1_400_000_000,
    "uploader": "Test Channel",
    "description": "A test video",
    "formats": [
        {"format_id": "18", "ext": "mp4", "vcodec": "avc1", "acodec": "mp4a", "height": 360, "width": 640},
        {"format_id": "136", "ext": "mp4", "vcodec": "avc1", "acodec": "none", "height": 720, "width": 1280, "filesize": 1000},
        {"format_id": "137", "ext": "mp4", "vcodec": "avc1", "acodec": "none", "height": 1080, "width": 1920},
        {"format_id": "140", "ext": "m4a", "vcodec": "none", "acodec": "mp4a", "abr": 129.5},
        {"format_id": "251", "ext": "webm", "vcodec": "none", "acodec": "opus", "abr": 160.2},
    ],
}


class FakeTool:
    """In-memory stand-in for yt-dlp."""

    name = "fake"

    def __init__(
        self,
        available: bool = True,
        metadata: Optional[Dict[str, Any]] = None,
        metadata_error: Optional[Exception] = None,
        download_files: Optional[Dict[str, bytes]] = None,
        download_error: Optional[Exception] = None,
    ) -> None:
        self.available = available
        self.metadata = metadata if metadata is not None else SAMPLE_METADATA
        self.metadata_error = metadata_error
        # file suffix (after the token prefix) -> content
        self.download_files = download_files if download_files is not None else {"Test Video.mp4": b"video-bytes"}
        self.download_error = download_error
        self.plans: List[DownloadPlan] = []
        self.metadata_calls = 0

    def version(self) -> Optional[str]:
        return "2024.01.01" if self.available else None

    def probe(self) -> bool:
        return self.available

    def fetch_metadata(self, url: str) -> Dict[str, Any]:
        self.metadata_calls += 1
        if self.metadata_error is not None:
            raise self.metadata_error
        return self.metadata

    def download(self, url: str, plan: DownloadPlan) -> None:
        self.plans.append(plan)
        if self.download_error is not None:
            raise self.download_error
        prefix = plan.output_template.split("%(")[0]
        for suffix, content in self.download_files.items():
            with open(prefix + suffix, "wb") as handle:
                handle.write(content)


@pytest.fixture
def settings(tmp_path):
    return Settings(work_dir=str(tmp_path))


@pytest.fixture
def fake_tool():
    return FakeTool()


@pytest.fixture
def service(fake_tool, settings):
    return VideoService(fake_tool, settings)

