"""Audio rendition classification."""

from dataclasses import dataclass, fields
from typing import Iterable


@dataclass(frozen=True)
class RenditionDescriptor:
    """One encoded audio or video track option for a video."""

    mime_type: str  # e.g. 'audio/webm; codecs="opus"'
    url: str
    content_length: str | int | None = None
    target_duration_sec: float | None = None  # live only


@dataclass(frozen=True)
class ClassifiedRendition(RenditionDescriptor):
    """An audio rendition annotated with its codec and container."""

    codec: str = ''
    container: str = ''


class FormatError(Exception):
    """Exception raised for rendition format errors."""

    pass


class MalformedRenditionError(FormatError):
    """Raised when an audio type string cannot be split into codec and container."""

    def __init__(self, mime_type: str, missing: str):
        self.mime_type = mime_type
        self.missing = missing
        super().__init__(f"Malformed audio rendition type {mime_type!r}: missing {missing}")


def is_audio(rendition: RenditionDescriptor) -> bool:
    """Check whether the major component of the type string is 'audio'."""
    major = rendition.mime_type.split('/', 1)[0]
    return major.strip() == 'audio'


def classify_rendition(rendition: RenditionDescriptor) -> ClassifiedRendition:
    """Derive codec and container labels for a single audio rendition.

    Args:
        rendition: An audio rendition descriptor.

    Returns:
        ClassifiedRendition carrying the original fields plus codec and container.

    Raises:
        MalformedRenditionError: If the type string lacks a codecs="..." or
            an audio/...; segment.
    """
    mime_type = rendition.mime_type

    _, found, rest = mime_type.partition('codecs="')
    codec, closed, _ = rest.partition('"')
    if not found or not closed:
        raise MalformedRenditionError(mime_type, 'codecs="..."')

    _, found, rest = mime_type.partition('audio/')
    container, closed, _ = rest.partition(';')
    if not found or not closed:
        raise MalformedRenditionError(mime_type, 'audio/...;')

    base = {f.name: getattr(rendition, f.name) for f in fields(RenditionDescriptor)}
    return ClassifiedRendition(
        **base,
        codec=codec.strip(),
        container=container.strip(),
    )


def parse_audio_formats(renditions: Iterable[RenditionDescriptor]) -> list[ClassifiedRendition]:
    """Filter a rendition list down to its audio ladder.

    Video renditions are dropped; audio renditions keep their relative order
    and gain codec and container labels.

    Args:
        renditions: Mixed audio and video renditions, lowest quality first.

    Returns:
        List of ClassifiedRendition objects.

    Raises:
        MalformedRenditionError: If an audio rendition's type string is malformed.
    """
    return [classify_rendition(r) for r in renditions if is_audio(r)]


classify = parse_audio_formats
