"""Resolve video metadata into a playable audio stream descriptor."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ytstream.formats import ClassifiedRendition, parse_audio_formats
from ytstream.video import VideoMetadata, fetch_video_info

logger = logging.getLogger(__name__)


class StreamType(str, Enum):
    """Wire type of a stream handed to a player."""

    ARBITRARY = 'arbitrary'
    RAW = 'raw'
    OGG_OPUS = 'ogg/opus'
    WEBM_OPUS = 'webm/opus'
    OPUS = 'opus'


class StreamError(Exception):
    """Exception raised for stream resolution errors."""

    pass


class EmptyAudioLadderError(StreamError):
    """Raised when a video has no audio renditions to choose from."""

    pass


@dataclass(frozen=True)
class StreamOptions:
    """Caller-supplied selection parameters.

    quality indexes the audio ladder (0 = lowest); None selects the highest.
    proxy is passed through to the transport untouched.
    """

    quality: int | None = None
    proxy: tuple[str, ...] = ()

    def __post_init__(self):
        if self.quality is not None and (
            isinstance(self.quality, bool) or not isinstance(self.quality, int)
        ):
            raise TypeError(f"quality must be an int or None, got {self.quality!r}")
        object.__setattr__(self, 'proxy', tuple(self.proxy))


@dataclass(frozen=True)
class LiveStream:
    """A live broadcast, played from its manifest."""

    manifest_url: str | None
    target_duration_sec: float | None
    source_url: str


@dataclass(frozen=True)
class Stream:
    """An on-demand audio rendition, played with byte-range requests."""

    url: str
    type: StreamType
    duration_in_sec: float
    content_length: int
    source_url: str
    options: StreamOptions

    @property
    def proxy(self) -> tuple[str, ...]:
        return self.options.proxy


StreamDescriptor = Union[LiveStream, Stream]


def select_quality(quality: int | None, ladder_size: int) -> int:
    """Clamp a requested quality index onto a ladder of the given size.

    Out-of-range requests snap to the nearest end of the ladder; they are
    never rejected.

    Raises:
        EmptyAudioLadderError: If the ladder is empty.
    """
    if ladder_size <= 0:
        raise EmptyAudioLadderError("No audio renditions available")
    if quality is None:
        return ladder_size - 1
    if quality <= 0:
        return 0
    if quality >= ladder_size:
        return ladder_size - 1
    return quality


def stream_type_for(rendition: ClassifiedRendition) -> StreamType:
    """Return WEBM_OPUS for opus-in-webm renditions, ARBITRARY otherwise."""
    if rendition.codec == 'opus' and rendition.container == 'webm':
        return StreamType.WEBM_OPUS
    return StreamType.ARBITRARY


def coerce_content_length(value: Any) -> int:
    """Convert a content length to an int, treating absent or non-numeric values as 0."""
    if value is None:
        logger.debug("Content length missing, using 0")
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        pass
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Content length %r is not numeric, using 0", value)
        return 0
    if not math.isfinite(number):
        logger.debug("Content length %r is not finite, using 0", value)
        return 0
    return int(number)


def _is_live_broadcast(metadata: VideoMetadata) -> bool:
    live = metadata.live
    return (
        live.is_live
        and live.hls_manifest_url is not None
        and metadata.details.duration_in_sec == 0
    )


def stream_from_info(
    metadata: VideoMetadata,
    options: StreamOptions | None = None,
) -> StreamDescriptor:
    """Resolve already fetched metadata into a stream descriptor.

    Live broadcasts resolve to a LiveStream without looking at the audio
    renditions. Everything else resolves to a Stream for the audio rendition
    selected by options.quality.

    Args:
        metadata: Video metadata, e.g. from get_video_info() or load_video_info().
        options: Quality and transport options. Never modified.

    Returns:
        LiveStream or Stream.

    Raises:
        MalformedRenditionError: If an audio rendition's type string is malformed.
        EmptyAudioLadderError: If the video has no audio renditions.
    """
    if options is None:
        options = StreamOptions()
    details = metadata.details

    if _is_live_broadcast(metadata):
        live = metadata.live
        renditions = metadata.renditions
        target_duration = renditions[-1].target_duration_sec if renditions else None
        logger.debug("Live broadcast detected for %s", details.url)
        return LiveStream(
            manifest_url=live.dash_manifest_url,
            target_duration_sec=target_duration,
            source_url=details.url,
        )

    ladder = parse_audio_formats(metadata.renditions)
    if not ladder:
        raise EmptyAudioLadderError(f"No audio renditions available for {details.url}")

    index = select_quality(options.quality, len(ladder))
    selected = ladder[index]
    stream_type = stream_type_for(selected)
    logger.debug(
        "Selected audio rendition %d/%d (%s, %s) for %s",
        index, len(ladder) - 1, selected.container, selected.codec, details.url,
    )

    return Stream(
        url=selected.url,
        type=stream_type,
        duration_in_sec=details.duration_in_sec,
        content_length=coerce_content_length(selected.content_length),
        source_url=details.url,
        options=options,
    )


async def stream(
    url: str,
    options: StreamOptions | None = None,
    *,
    timeout: float = 60,
) -> StreamDescriptor:
    """Fetch metadata for a YouTube URL and resolve it into a stream descriptor.

    Args:
        url: YouTube video URL.
        options: Quality and transport options.
        timeout: Seconds to wait for the metadata fetch.

    Returns:
        LiveStream or Stream, exactly as stream_from_info() would for the
        fetched metadata.

    Raises:
        VideoError: If the metadata fetch fails.
        MalformedRenditionError: If an audio rendition's type string is malformed.
        EmptyAudioLadderError: If the video has no audio renditions.
    """
    if options is None:
        options = StreamOptions()
    metadata = await fetch_video_info(url, proxy=options.proxy, timeout=timeout)
    return stream_from_info(metadata, options)


def describe(descriptor: StreamDescriptor) -> dict[str, Any]:
    """Return a JSON-serializable dict for a stream descriptor."""
    if isinstance(descriptor, LiveStream):
        return {
            'kind': 'live',
            'manifest_url': descriptor.manifest_url,
            'target_duration_sec': descriptor.target_duration_sec,
            'source_url': descriptor.source_url,
        }
    return {
        'kind': 'stream',
        'url': descriptor.url,
        'type': descriptor.type.value,
        'duration_in_sec': descriptor.duration_in_sec,
        'content_length': descriptor.content_length,
        'source_url': descriptor.source_url,
        'quality': descriptor.options.quality,
        'proxy': list(descriptor.options.proxy),
    }

