"""
YouTube URL parsing and small formatting helpers.
"""

import re
from typing import Iterable, Optional


VIDEO_ID_PATTERN = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?|shorts|live)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"
)
BARE_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")

VALID_URL_PATTERNS = [
    re.compile(r"^https?://(www\.|m\.)?youtube\.com/watch\?(.*&)?v=[\w-]+"),
    re.compile(r"^https?://youtu\.be/[\w-]+"),
    re.compile(r"^https?://(www\.)?youtube\.com/embed/[\w-]+"),
    re.compile(r"^https?://(www\.)?youtube\.com/v/[\w-]+"),
    re.compile(r"^https?://(www\.)?youtube\.com/shorts/[\w-]+"),
]

ISO_DURATION_PATTERN = re.compile(r"^P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")
BRACKET_TIMESTAMP_PATTERN = re.compile(r"\[(\d{1,2}):(\d{2}):(\d{2})\]")


def extract_video_id(url: str) -> Optional[str]:
    """Extract the 11-character video ID from a YouTube URL or bare ID."""
    if not url:
        return None
    url = url.strip()
    if BARE_VIDEO_ID_PATTERN.match(url):
        return url
    match = VIDEO_ID_PATTERN.search(url)
    return match.group(1) if match else None


def is_valid_youtube_url(url: str) -> bool:
    """Check that a URL looks like a YouTube video URL."""
    if not url:
        return False
    url = url.strip()
    return any(pattern.match(url) for pattern in VALID_URL_PATTERNS)


def parse_iso8601_duration(duration: str) -> int:
    """
    Parse a YouTube ISO-8601 duration into seconds.

    Args:
        duration: Duration like "PT1H2M3S"

    Returns:
        Total seconds, or 0 if the value cannot be parsed
    """
    if not duration:
        return 0
    match = ISO_DURATION_PATTERN.match(duration.strip())
    if not match:
        return 0
    days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS or H:MM:SS."""
    seconds = int(seconds or 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    seconds = int(seconds or 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_timestamp_to_seconds(timestamp: str) -> int:
    """
    Parse "[HH:MM:SS]", "HH:MM:SS" or "MM:SS" into seconds.

    Returns 0 when the value is not a timestamp.
    """
    if not timestamp:
        return 0
    match = BRACKET_TIMESTAMP_PATTERN.search(timestamp)
    if match:
        hours, minutes, seconds = (int(part) for part in match.groups())
        return hours * 3600 + minutes * 60 + seconds

    parts = timestamp.strip().split(":")
    if not all(part.isdigit() for part in parts):
        return 0
    values = [int(part) for part in parts]
    if len(values) == 3:
        return values[0] * 3600 + values[1] * 60 + values[2]
    if len(values) == 2:
        return values[0] * 60 + values[1]
    if len(values) == 1:
        return values[0]
    return 0


def create_youtube_url_with_timestamp(video_id: str, timestamp_in_seconds: float) -> str:
    """Watch URL that starts playback at the given offset."""
    minutes = int(timestamp_in_seconds // 60)
    seconds = int(timestamp_in_seconds % 60)
    return f"https://www.youtube.com/watch?v={video_id}&t={minutes}m{seconds}s"


def count_words(text: str) -> int:
    """Count whitespace separated words."""
    if not text:
        return 0
    return len(text.split())


def is_duplicate_url(url: str, existing_urls: Iterable[Optional[str]]) -> bool:
    """Check whether a URL was already imported, ignoring case and whitespace."""
    clean_url = url.strip().lower()
    return any(existing and existing.strip().lower() == clean_url for existing in existing_urls)
