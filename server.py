"""FastAPI backend for VidSaver.

This service exposes:
- GET  /                    : liveness check
- GET  /api/health          : tool versions and limits
- POST /api/video-info      : video metadata for a YouTube URL (mock data when yt-dlp is unavailable)
- POST /api/quality-options : video/audio quality menu for a YouTube URL
- POST /api/download        : downloads video, audio or mp3 and returns the file

Run with:
    uvicorn server:app --host 0.0.0.0 --port 3001
"""
from __future__ import annotations

import logging
import subprocess
import threading
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from vidsaver import __version__
from vidsaver.config import Settings
from vidsaver.errors import TooManyDownloadsError, VidsaverError
from vidsaver.formatting import content_disposition
from vidsaver.models import DownloadRequest, QualityCatalog, VideoInfo, VideoUrlRequest
from vidsaver.service import VideoService
from vidsaver.tools import create_tool

logger = logging.getLogger("vidsaver.server")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_service() -> VideoService:
    settings = get_settings()
    return VideoService(create_tool(settings), settings)


@lru_cache(maxsize=1)
def download_guard() -> threading.BoundedSemaphore:
    return threading.BoundedSemaphore(value=get_settings().max_concurrent_downloads)


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = app.dependency_overrides.get(get_service, get_service)()
    if service.tool.probe():
        logger.info("yt-dlp is available (%s backend)", service.tool.name)
    else:
        logger.warning("yt-dlp is not available - only mock data will be returned")
    yield


app = FastAPI(title="VidSaver API", version=__version__, lifespan=lifespan)

# Allow the frontend to connect from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Data-Source"],
)


@app.exception_handler(VidsaverError)
async def vidsaver_error_handler(request: Request, exc: VidsaverError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "message": exc.message})


def ffmpeg_version() -> Optional[str]:
    try:
        proc = subprocess.run(["ffmpeg", "-version"], capture_output=True, text=True, timeout=2)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if proc.returncode == 0 and proc.stdout:
        return proc.stdout.splitlines()[0]
    return None


@app.get("/")
async def root() -> Dict[str, str]:
    return {"status": "ok", "message": "VidSaver backend is running"}


@app.get("/api/health")
def healthcheck(service: VideoService = Depends(get_service)) -> Dict[str, Any]:
    """Return service readiness and tool versions."""
    return {
        "status": "ok",
        "backend": service.tool.name,
        "yt_dlp": service.tool.version(),
        "ffmpeg": ffmpeg_version() or "missing",
        "max_concurrent_downloads": service.settings.max_concurrent_downloads,
    }


@app.post("/api/video-info", response_model=VideoInfo)
def video_info(
    body: VideoUrlRequest,
    response: Response,
    service: VideoService = Depends(get_service),
) -> VideoInfo:
    result = service.extract_video_info(body.url)
    response.headers["X-Data-Source"] = "mock" if result.is_mock else "live"
    return result.value


@app.post("/api/quality-options", response_model=QualityCatalog)
def quality_options(
    body: VideoUrlRequest,
    response: Response,
    service: VideoService = Depends(get_service),
) -> QualityCatalog:
    result = service.extract_quality_options(body.url)
    response.headers["X-Data-Source"] = "mock" if result.is_mock else "live"
    return result.value


@app.post("/api/download")
def download(body: DownloadRequest, service: VideoService = Depends(get_service)) -> Response:
    """
    Download the requested stream and return it as an attachment.

    Declared sync so FastAPI runs it on its worker thread pool; a slow
    yt-dlp process only ties up its own worker.
    """
    guard = download_guard()
    if not guard.acquire(timeout=2):
        raise TooManyDownloadsError("Too many concurrent downloads, please wait.")
    try:
        result = service.download(body.url, body.to_intent())
    finally:
        guard.release()

    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={"Content-Disposition": content_disposition(result.filename)},
    )


if __name__ == "__main__":
    import uvicorn

    from vidsaver.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    logger.info("VidSaver backend running on http://localhost:%s", settings.port)
    uvicorn.run("server:app", host=settings.host, port=settings.port, reload=False)
