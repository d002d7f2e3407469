"""Error types raised by the VidSaver service layer."""
from __future__ import annotations


class VidsaverError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(VidsaverError):
    status_code = 400
    kind = "invalid_input"


class CollaboratorUnavailableError(VidsaverError):
    status_code = 503
    kind = "tool_unavailable"


class DownloadFailedError(VidsaverError):
    status_code = 502
    kind = "download_failed"

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class DownloadedFileNotFoundError(VidsaverError):
    status_code = 500
    kind = "file_not_found"


class ToolError(Exception):
    """Raised by media tool backends; never reaches the HTTP layer directly."""


class ToolExecutionError(ToolError):
    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ToolOutputError(ToolError):
    pass


class TooManyDownloadsError(VidsaverError):
    status_code = 429
    kind = "too_many_downloads"
