"""Backends that talk to yt-dlp: the command line tool or the Python package.

Both expose the same small surface (``version``, ``probe``, ``fetch_metadata``,
``download``) so the service layer can be handed either one, or a fake in
tests.
"""
from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Dict, List, Optional, Protocol

import yt_dlp
from yt_dlp.version import __version__ as YT_DLP_VERSION

from .config import Settings
from .errors import ToolExecutionError, ToolOutputError
from .selector import DownloadPlan

logger = logging.getLogger(__name__)

METADATA_FLAGS = ["--dump-json", "--no-playlist", "--no-warnings", "--skip-download"]


class MediaTool(Protocol):
    name: str

    def version(self) -> Optional[str]:
        ...

    def probe(self) -> bool:
        ...

    def fetch_metadata(self, url: str) -> Dict[str, Any]:
        ...

    def download(self, url: str, plan: DownloadPlan) -> None:
        ...


def parse_metadata(stdout: str) -> Dict[str, Any]:
    """Decode ``--dump-json`` output; raises ToolOutputError when unusable."""
    if not stdout or not stdout.strip():
        raise ToolOutputError("yt-dlp returned no output")
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ToolOutputError(f"yt-dlp returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ToolOutputError("yt-dlp returned JSON that is not an object")
    return data


def download_args(plan: DownloadPlan) -> List[str]:
    args = [
        "--no-playlist",
        "--no-warnings",
        "-o",
        plan.output_template,
        "-f",
        plan.selector,
    ]
    if plan.extract_audio:
        args.extend(["--extract-audio", "--audio-format", plan.audio_format, "--audio-quality", plan.audio_quality])
    if plan.ffmpeg_location:
        args.extend(["--ffmpeg-location", plan.ffmpeg_location])
    return args


class YtDlpCli:
    """Run the ``yt-dlp`` executable as a subprocess."""

    name = "cli"

    def __init__(self, binary: str = "yt-dlp", timeout: Optional[float] = None) -> None:
        self.binary = binary
        self.timeout = timeout

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Executing %s", cmd)
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise ToolExecutionError(f"{self.binary} is not installed or not in PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolExecutionError(f"{self.binary} timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise ToolExecutionError(f"Could not start {self.binary}: {exc}") from exc
        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            logger.warning("%s exited with code %s: %s", self.binary, proc.returncode, stderr)
            raise ToolExecutionError(
                stderr or f"{self.binary} exited with code {proc.returncode}",
                stderr=stderr,
            )
        return proc

    def version(self) -> Optional[str]:
        try:
            proc = self._run(["--version"])
        except ToolExecutionError:
            return None
        return proc.stdout.strip() or None

    def probe(self) -> bool:
        return self.version() is not None

    def fetch_metadata(self, url: str) -> Dict[str, Any]:
        proc = self._run([*METADATA_FLAGS, url])
        return parse_metadata(proc.stdout)

    def download(self, url: str, plan: DownloadPlan) -> None:
        args = download_args(plan)
        args.append(url)
        logger.info("Executing yt-dlp with args: %s", args)
        self._run(args)


def build_ydl_opts(plan: Optional[DownloadPlan] = None) -> Dict[str, Any]:
    """Configure yt-dlp options for metadata or download operations."""
    options: Dict[str, Any] = {
        "noplaylist": True,
        "quiet": True,
        "no_warnings": True,
    }
    if plan is None:
        options["skip_download"] = True
        return options

    options["format"] = plan.selector
    options["outtmpl"] = plan.output_template
    if plan.ffmpeg_location:
        options["ffmpeg_location"] = plan.ffmpeg_location
    if plan.extract_audio:
        options["postprocessors"] = [
            {
                "key": "FFmpegExtractAudio",
                "preferredcodec": plan.audio_format,
                "preferredquality": plan.audio_quality,
            }
        ]
    return options


class YtDlpLibrary:
    """Drive yt-dlp in-process through ``yt_dlp.YoutubeDL``."""

    name = "library"

    def version(self) -> Optional[str]:
        return YT_DLP_VERSION or None

    def probe(self) -> bool:
        return self.version() is not None

    def fetch_metadata(self, url: str) -> Dict[str, Any]:
        try:
            with yt_dlp.YoutubeDL(build_ydl_opts()) as ydl:
                info = ydl.extract_info(url, download=False)
                info = ydl.sanitize_info(info)
        except yt_dlp.utils.DownloadError as exc:
            raise ToolExecutionError(str(exc), stderr=str(exc)) from exc
        except Exception as exc:
            logger.exception("yt-dlp metadata extraction crashed for %s", url)
            raise ToolExecutionError(f"yt-dlp failed: {exc}", stderr=str(exc)) from exc
        if not isinstance(info, dict) or not info:
            raise ToolOutputError("yt-dlp returned no metadata")
        return info

    def download(self, url: str, plan: DownloadPlan) -> None:
        logger.info("Downloading %s with format %s", url, plan.selector)
        try:
            with yt_dlp.YoutubeDL(build_ydl_opts(plan)) as ydl:
                ydl.extract_info(url, download=True)
        except yt_dlp.utils.DownloadError as exc:
            raise ToolExecutionError(str(exc), stderr=str(exc)) from exc
        except Exception as exc:
            logger.exception("yt-dlp download crashed for %s", url)
            raise ToolExecutionError(f"yt-dlp failed: {exc}", stderr=str(exc)) from exc


def create_tool(settings: Settings) -> MediaTool:
    if settings.backend == "library":
        return YtDlpLibrary()
    if settings.backend != "cli":
        logger.warning("Unknown backend %r, falling back to the yt-dlp executable", settings.backend)
    return YtDlpCli(settings.ytdlp_binary, settings.ytdlp_timeout)
