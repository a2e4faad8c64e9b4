"""Utility functions for ytstream."""

import re
from urllib.parse import parse_qs, urlparse

from dateutil import parser as date_parser


def format_timestamp(seconds: float) -> str:
    """Convert seconds to HH:MM:SS format.

    Args:
        seconds: Time in seconds (can be float).

    Returns:
        Formatted string in HH:MM:SS format.
    """
    total_seconds = int(seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_size(size_bytes: int) -> str:
    """Format byte count in human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / 1024 / 1024:.1f} MB"


def format_date(date_str: str | None) -> str:
    """Parse a date string and return YYYY-MM-DD format.

    Args:
        date_str: A date string in various formats (e.g., "20241215", ISO 8601).

    Returns:
        Date formatted as YYYY-MM-DD, or empty string if parsing fails.
    """
    if not date_str:
        return ""

    try:
        # Handle yt-dlp format: YYYYMMDD
        if re.match(r'^\d{8}$', date_str):
            return f"{date_str[:4]}-{date_str[4:6]}-{date_str[6:8]}"

        parsed = date_parser.parse(date_str)
        return parsed.strftime("%Y-%m-%d")
    except (ValueError, TypeError, OverflowError):
        return ""


def extract_video_id(url: str) -> str | None:
    """Extract YouTube video ID from various URL formats.

    Supports:
    - https://www.youtube.com/watch?v=VIDEO_ID
    - https://youtu.be/VIDEO_ID
    - https://www.youtube.com/embed/VIDEO_ID
    - https://www.youtube.com/v/VIDEO_ID
    - https://www.youtube.com/live/VIDEO_ID
    - https://www.youtube.com/shorts/VIDEO_ID

    Args:
        url: A YouTube URL.

    Returns:
        The video ID string, or None if extraction fails.
    """
    parsed = urlparse(url)

    # youtu.be/VIDEO_ID
    if parsed.netloc in ('youtu.be', 'www.youtu.be'):
        return parsed.path.lstrip('/') or None

    if parsed.netloc in ('youtube.com', 'www.youtube.com', 'm.youtube.com', 'music.youtube.com'):
        # /watch?v=VIDEO_ID
        if parsed.path == '/watch':
            query = parse_qs(parsed.query)
            if 'v' in query:
                return query['v'][0]

        if parsed.path.startswith(('/embed/', '/v/', '/live/', '/shorts/')):
            parts = parsed.path.split('/')
            if len(parts) >= 3 and parts[2]:
                return parts[2]

    return None
