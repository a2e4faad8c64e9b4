"""Player protocols for handing resolved streams to a playback backend."""

from typing import Any, Protocol, runtime_checkable

from ytstream.stream import LiveStream, StreamDescriptor, StreamType


@runtime_checkable
class LiveStreamPlayer(Protocol):
    """Plays a live broadcast by following its segment manifest."""

    def play_live(
        self,
        manifest_url: str | None,
        target_duration_sec: float | None,
        source_url: str,
    ) -> Any:
        """Start playback from a DASH/HLS manifest.

        target_duration_sec is the segment length to poll the manifest at.
        """
        ...


@runtime_checkable
class ByteRangeStreamPlayer(Protocol):
    """Plays an on-demand rendition using HTTP range requests."""

    def play_stream(
        self,
        url: str,
        stream_type: StreamType,
        duration_in_sec: float,
        content_length: int,
        source_url: str,
        proxy: tuple[str, ...],
    ) -> Any:
        """Start playback of a direct media URL."""
        ...


def hand_off(
    descriptor: StreamDescriptor,
    live_player: LiveStreamPlayer,
    stream_player: ByteRangeStreamPlayer,
) -> Any:
    """Pass a stream descriptor to the player that can handle it.

    Args:
        descriptor: Result of stream() or stream_from_info().
        live_player: Player used for LiveStream descriptors.
        stream_player: Player used for Stream descriptors.

    Returns:
        Whatever the chosen player returns.
    """
    if isinstance(descriptor, LiveStream):
        return live_player.play_live(
            descriptor.manifest_url,
            descriptor.target_duration_sec,
            descriptor.source_url,
        )
    return stream_player.play_stream(
        descriptor.url,
        descriptor.type,
        descriptor.duration_in_sec,
        descriptor.content_length,
        descriptor.source_url,
        descriptor.proxy,
    )
