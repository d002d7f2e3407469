"""VidSaver: a small HTTP facade over yt-dlp."""

__version__ = "1.0.0"
