"""Video metadata extraction using yt-dlp."""

import asyncio
import json
import logging
import math
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from ytstream.formats import RenditionDescriptor
from ytstream.utils import extract_video_id

logger = logging.getLogger(__name__)

# YouTube live segments are five seconds unless the format says otherwise
DEFAULT_LIVE_TARGET_DURATION = 5.0

# yt-dlp extension -> container label used in the rendition type string
_CONTAINERS = {
    'm4a': 'mp4',
    'mp4': 'mp4',
    'webm': 'webm',
    '3gp': '3gpp',
}


class VideoError(Exception):
    """Exception raised for video-related errors."""

    pass


def parse_duration(value: Any) -> float:
    """Normalize a duration in seconds to a float.

    Accepts numbers and numeric strings. None and empty strings count as zero.

    Raises:
        VideoError: If the value is not a finite number.
    """
    if value is None or value == '':
        return 0.0
    try:
        duration = float(value)
    except (TypeError, ValueError):
        raise VideoError(f"Invalid video duration: {value!r}")
    if not math.isfinite(duration):
        raise VideoError(f"Invalid video duration: {value!r}")
    return duration


@dataclass(frozen=True)
class LiveStreamData:
    """Live broadcast state of a video."""

    is_live: bool = False
    dash_manifest_url: str | None = None
    hls_manifest_url: str | None = None


@dataclass(frozen=True)
class VideoDetails:
    """Descriptive details of a video."""

    url: str
    duration_in_sec: float = 0.0
    video_id: str = ''
    title: str = ''
    channel: str = ''
    upload_date: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'duration_in_sec', parse_duration(self.duration_in_sec))


@dataclass(frozen=True)
class VideoMetadata:
    """Everything the stream resolver needs to know about one video."""

    details: VideoDetails
    renditions: tuple[RenditionDescriptor, ...] = ()
    live: LiveStreamData = field(default_factory=LiveStreamData)

    def __post_init__(self):
        object.__setattr__(self, 'renditions', tuple(self.renditions))


def _rendition_mime_type(fmt: dict[str, Any]) -> str | None:
    """Build a MIME-like type string for a yt-dlp format, or None if it has no codecs."""
    vcodec = fmt.get('vcodec') or 'none'
    acodec = fmt.get('acodec') or 'none'
    ext = fmt.get('ext') or ''
    container = _CONTAINERS.get(ext, ext)

    if vcodec == 'none' and acodec == 'none':
        return None
    if vcodec == 'none':
        return f'audio/{container}; codecs="{acodec}"'

    codecs = vcodec if acodec == 'none' else f'{vcodec}, {acodec}'
    return f'video/{container}; codecs="{codecs}"'


def _first_manifest(formats: list[dict[str, Any]], prefix: str) -> str | None:
    for fmt in formats:
        protocol = fmt.get('protocol') or ''
        if protocol.startswith(prefix) and fmt.get('manifest_url'):
            return fmt['manifest_url']
    return None


def parse_video_info(info: dict[str, Any], url: str | None = None) -> VideoMetadata:
    """Convert a yt-dlp info dict into VideoMetadata.

    Args:
        info: Parsed output of `yt-dlp --dump-json`.
        url: Page URL the info was fetched for. Falls back to webpage_url.

    Returns:
        VideoMetadata with renditions in yt-dlp order (worst to best).

    Raises:
        VideoError: If the duration is not numeric.
    """
    formats = info.get('formats') or []
    is_live = bool(info.get('is_live')) or info.get('live_status') == 'is_live'

    renditions = []
    for fmt in formats:
        if not fmt.get('url'):
            continue
        mime_type = _rendition_mime_type(fmt)
        if mime_type is None:
            continue

        target_duration = fmt.get('target_duration_sec')
        if target_duration is None and is_live:
            target_duration = DEFAULT_LIVE_TARGET_DURATION

        renditions.append(RenditionDescriptor(
            mime_type=mime_type,
            url=fmt['url'],
            content_length=fmt.get('filesize') or fmt.get('filesize_approx'),
            target_duration_sec=target_duration,
        ))

    page_url = url or info.get('webpage_url') or info.get('original_url', '')
    video_id = extract_video_id(page_url) or info.get('id', '')

    details = VideoDetails(
        url=page_url,
        duration_in_sec=info.get('duration'),
        video_id=video_id,
        title=info.get('title', 'Untitled'),
        channel=info.get('channel', info.get('uploader', 'Unknown')),
        upload_date=info.get('upload_date') or '',
    )
    live = LiveStreamData(
        is_live=is_live,
        dash_manifest_url=_first_manifest(formats, 'http_dash_segments'),
        hls_manifest_url=_first_manifest(formats, 'm3u8'),
    )

    logger.debug(
        "Parsed %s: %d renditions, live=%s", video_id or page_url, len(renditions), is_live
    )
    return VideoMetadata(details=details, renditions=tuple(renditions), live=live)


def load_video_info(path: Path) -> VideoMetadata:
    """Load VideoMetadata from a saved `yt-dlp --dump-json` document.

    Raises:
        VideoError: If the file cannot be read or parsed.
    """
    try:
        info = json.loads(Path(path).read_text(encoding='utf-8'))
    except OSError as e:
        raise VideoError(f"Cannot read video info file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise VideoError(f"Failed to parse video info file {path}: {e}") from e

    if not isinstance(info, dict):
        raise VideoError(f"Video info file {path} does not contain a JSON object")
    return parse_video_info(info)


def get_video_info(url: str, proxy: str | None = None, timeout: float = 60) -> VideoMetadata:
    """Fetch stream metadata for a YouTube video.

    Uses yt-dlp CLI for better JS challenge handling.

    Args:
        url: YouTube video URL.
        proxy: Optional proxy URL passed through to yt-dlp.
        timeout: Seconds to wait for yt-dlp.

    Returns:
        VideoMetadata object with renditions and live state.

    Raises:
        VideoError: If the video is unavailable or metadata extraction fails.
    """
    if extract_video_id(url) is None:
        raise VideoError(f"Not a YouTube video URL: {url}")

    cmd = [
        'yt-dlp',
        '--dump-json',
        '--skip-download',
        '--no-warnings',
        '--remote-components', 'ejs:github',
    ]
    if proxy:
        cmd += ['--proxy', proxy]
    cmd.append(url)

    logger.debug("Running %s", ' '.join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )

        if result.returncode != 0:
            error_msg = result.stderr
            if 'Private video' in error_msg:
                raise VideoError(f"Video is private: {url}")
            if 'Video unavailable' in error_msg:
                raise VideoError(f"Video is unavailable: {url}")
            if 'Sign in' in error_msg:
                raise VideoError(f"Video requires authentication: {url}")
            raise VideoError(f"Failed to get video metadata: {error_msg}")

        info = json.loads(result.stdout)
        return parse_video_info(info, url)

    except subprocess.TimeoutExpired:
        raise VideoError("Metadata extraction timed out")
    except json.JSONDecodeError as e:
        raise VideoError(f"Failed to parse video metadata: {e}") from e
    except FileNotFoundError:
        raise VideoError(
            "yt-dlp not found. Please install yt-dlp:\n"
            "  pip install yt-dlp\n"
            "  or: brew install yt-dlp"
        )
    except VideoError:
        raise
    except Exception as e:
        raise VideoError(f"Unexpected error getting metadata: {e}") from e


async def fetch_video_info(
    url: str,
    proxy: Sequence[str] = (),
    timeout: float = 60,
) -> VideoMetadata:
    """Fetch video metadata without blocking the event loop.

    Only the first proxy is used; yt-dlp accepts a single proxy.
    """
    first_proxy = proxy[0] if proxy else None
    return await asyncio.to_thread(get_video_info, url, first_proxy, timeout)
