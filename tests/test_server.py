import logging

import pytest
from conftest import FakeTool
from fastapi.testclient import TestClient

import server
from vidsaver.errors import ToolExecutionError, ToolOutputError
from vidsaver.mocks import mock_catalog
from vidsaver.service import VideoService

URL = "https://www.youtube.com/watch?v=abc123"

client = TestClient(server.app)


@pytest.fixture
def use_tool(settings):
    def install(tool):
        server.app.dependency_overrides[server.get_service] = lambda: VideoService(tool, settings)
        return tool

    yield install
    server.app.dependency_overrides.clear()


def test_root_ok():
    resp = client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data.get("status") == "ok"


def test_health_includes_versions(use_tool):
    use_tool(FakeTool())
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data.get("status") == "ok"
    assert data["yt_dlp"] == "2024.01.01"
    assert data["backend"] == "fake"
    assert "ffmpeg" in data
    assert "max_concurrent_downloads" in data


def test_video_info_live(use_tool):
    use_tool(FakeTool())
    resp = client.post("/api/video-info", json={"url": URL})
    assert resp.status_code == 200
    assert resp.headers["X-Data-Source"] == "live"
    data = resp.json()
    assert data["title"] == "Test Video"
    assert data["views"] == "1.4B views"
    assert data["url"] == URL


def test_video_info_mock_when_tool_missing(use_tool):
    use_tool(FakeTool(available=False))
    resp = client.post("/api/video-info", json={"url": "https://youtu.be/xyz"})
    assert resp.status_code == 200
    assert resp.headers["X-Data-Source"] == "mock"
    assert resp.json()["thumbnail"] == "https://img.youtube.com/vi/xyz/maxresdefault.jpg"


def test_invalid_url_is_400(use_tool):
    use_tool(FakeTool())
    resp = client.post("/api/video-info", json={"url": "https://example.com/watch?v=1"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid_input", "message": "Invalid YouTube URL"}


def test_missing_url_is_422(use_tool):
    use_tool(FakeTool())
    resp = client.post("/api/quality-options", json={})
    assert resp.status_code == 422


def test_quality_options_live(use_tool):
    use_tool(FakeTool())
    resp = client.post("/api/quality-options", json={"url": URL})
    assert resp.status_code == 200
    data = resp.json()
    assert [v["quality"] for v in data["video"]] == ["1080p", "720p", "360p"]
    assert data["video"][0] == {
        "format_id": "137",
        "quality": "1080p",
        "ext": "mp4",
        "filesize": None,
        "width": 1920,
        "height": 1080,
    }
    assert [a["format_id"] for a in data["audio"]] == ["251", "140"]


def test_quality_options_mock_on_bad_output(use_tool):
    use_tool(FakeTool(metadata_error=ToolOutputError("invalid JSON")))
    resp = client.post("/api/quality-options", json={"url": URL})
    assert resp.status_code == 200
    assert resp.headers["X-Data-Source"] == "mock"
    assert resp.json() == mock_catalog().model_dump()


def test_download_returns_attachment(use_tool):
    tool = use_tool(FakeTool())
    resp = client.post(
        "/api/download",
        json={"url": URL, "type": "video", "video_quality": "137", "audio_quality": "140"},
    )
    assert resp.status_code == 200
    assert resp.content == b"video-bytes"
    assert resp.headers["content-type"] == "video/mp4"
    assert resp.headers["content-disposition"] == 'attachment; filename="Test Video.mp4"'
    assert tool.plans[0].selector == "137+140/best[height<=1080]/best"


def test_download_accepts_camel_case_fields(use_tool):
    tool = use_tool(FakeTool(download_files={"Song.mp3": b"mp3"}))
    resp = client.post("/api/download", json={"url": URL, "type": "mp3", "audioQuality": "251"})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "audio/mpeg"
    assert tool.plans[0].selector == "251/bestaudio/best"
    assert tool.plans[0].extract_audio is True


def test_download_blank_quality_means_default(use_tool):
    tool = use_tool(FakeTool(download_files={"a.webm": b"x"}))
    resp = client.post("/api/download", json={"url": URL, "type": "audio", "audio_quality": "  "})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "video/webm"
    assert tool.plans[0].selector == "bestaudio/best"


def test_download_invalid_type(use_tool):
    use_tool(FakeTool())
    resp = client.post("/api/download", json={"url": URL, "type": "flac"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid download type"


def test_download_without_tool_is_503(use_tool):
    use_tool(FakeTool(available=False))
    resp = client.post("/api/download", json={"url": URL, "type": "video"})
    assert resp.status_code == 503
    assert resp.json()["error"] == "tool_unavailable"


def test_download_failure_is_502(use_tool):
    use_tool(FakeTool(download_error=ToolExecutionError("exit 1", stderr="ERROR: private video")))
    resp = client.post("/api/download", json={"url": URL, "type": "video"})
    assert resp.status_code == 502
    assert "private video" in resp.json()["message"]


def test_download_missing_file_is_500(use_tool):
    use_tool(FakeTool(download_files={}))
    resp = client.post("/api/download", json={"url": URL, "type": "video"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "file_not_found"


def test_startup_logs_missing_tool(use_tool, caplog):
    use_tool(FakeTool(available=False))
    with caplog.at_level(logging.INFO):
        with TestClient(server.app) as startup_client:
            assert startup_client.get("/").status_code == 200
    assert "only mock data will be returned" in caplog.text


class BusyGuard:
    def acquire(self, timeout=None):
        return False


def test_download_busy_is_429(use_tool, monkeypatch):
    tool = use_tool(FakeTool())
    monkeypatch.setattr(server, "download_guard", lambda: BusyGuard())
    resp = client.post("/api/download", json={"url": URL, "type": "video"})
    assert resp.status_code == 429
    assert resp.json() == {"error": "too_many_downloads", "message": "Too many concurrent downloads, please wait."}
    assert tool.plans == []
