"""Resolve YouTube videos into playable audio stream descriptors."""

__version__ = "0.1.0"

from ytstream.formats import (
    ClassifiedRendition,
    MalformedRenditionError,
    RenditionDescriptor,
    parse_audio_formats,
)
from ytstream.stream import (
    EmptyAudioLadderError,
    LiveStream,
    Stream,
    StreamOptions,
    StreamType,
    stream,
    stream_from_info,
)
from ytstream.video import VideoError, VideoMetadata
