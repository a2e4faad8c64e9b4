"""Tests for stream resolution."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from ytstream.formats import ClassifiedRendition, MalformedRenditionError, RenditionDescriptor
from ytstream.stream import (
    EmptyAudioLadderError,
    LiveStream,
    Stream,
    StreamOptions,
    StreamType,
    coerce_content_length,
    describe,
    select_quality,
    stream,
    stream_from_info,
    stream_type_for,
)
from ytstream.video import LiveStreamData, VideoDetails, VideoError, VideoMetadata

PAGE_URL = 'https://www.youtube.com/watch?v=abc123'
HLS_URL = 'https://x/m.m3u8'
DASH_URL = 'https://x/m.mpd'

LADDER = (
    RenditionDescriptor('audio/webm; codecs="opus"', 'u0', '100'),
    RenditionDescriptor('audio/mp4; codecs="mp4a.40.2"', 'u1', '200'),
)


def _metadata(renditions=LADDER, duration=212, live=None):
    return VideoMetadata(
        details=VideoDetails(url=PAGE_URL, duration_in_sec=duration),
        renditions=renditions,
        live=live or LiveStreamData(),
    )


def _live_metadata(duration=0, renditions=None, dash=DASH_URL, hls=HLS_URL):
    if renditions is None:
        renditions = (
            RenditionDescriptor('video/mp4; codecs="avc1"', 'v0', target_duration_sec=2.0),
            RenditionDescriptor('audio/mp4; codecs="mp4a.40.2"', 'a0', target_duration_sec=5.0),
        )
    return _metadata(
        renditions=renditions,
        duration=duration,
        live=LiveStreamData(is_live=True, dash_manifest_url=dash, hls_manifest_url=hls),
    )


class TestSelectQuality:
    """Tests for select_quality()."""

    def test_absent_selects_highest(self):
        assert select_quality(None, 4) == 3

    @pytest.mark.parametrize('quality', [0, -1, -5, -1000])
    def test_non_positive_selects_lowest(self, quality):
        assert select_quality(quality, 4) == 0

    @pytest.mark.parametrize('quality', [4, 5, 99])
    def test_too_high_selects_highest(self, quality):
        assert select_quality(quality, 4) == 3

    @pytest.mark.parametrize('quality', [1, 2, 3])
    def test_in_range_unchanged(self, quality):
        assert select_quality(quality, 4) == quality

    def test_always_in_bounds(self):
        for size in range(1, 6):
            for quality in range(-7, 8):
                assert 0 <= select_quality(quality, size) <= size - 1

    def test_single_rendition(self):
        assert select_quality(None, 1) == 0
        assert select_quality(3, 1) == 0

    def test_empty_ladder(self):
        with pytest.raises(EmptyAudioLadderError):
            select_quality(None, 0)


class TestStreamTypeFor:
    """Tests for stream_type_for()."""

    def test_webm_opus(self):
        rendition = ClassifiedRendition('audio/webm; codecs="opus"', 'u', codec='opus', container='webm')
        assert stream_type_for(rendition) is StreamType.WEBM_OPUS

    def test_mp4_aac(self):
        rendition = ClassifiedRendition('audio/mp4; codecs="mp4a.40.2"', 'u', codec='mp4a.40.2', container='mp4')
        assert stream_type_for(rendition) is StreamType.ARBITRARY

    def test_opus_in_other_container(self):
        rendition = ClassifiedRendition('audio/ogg; codecs="opus"', 'u', codec='opus', container='ogg')
        assert stream_type_for(rendition) is StreamType.ARBITRARY


class TestStreamType:
    """Tests for StreamType values."""

    def test_values(self):
        assert [t.value for t in StreamType] == ['arbitrary', 'raw', 'ogg/opus', 'webm/opus', 'opus']

    def test_string_comparison(self):
        assert StreamType.WEBM_OPUS == 'webm/opus'


class TestCoerceContentLength:
    """Tests for coerce_content_length()."""

    def test_decimal_string(self):
        assert coerce_content_length('3456') == 3456

    def test_int(self):
        assert coerce_content_length(42) == 42

    def test_absent(self):
        assert coerce_content_length(None) == 0

    def test_non_numeric(self):
        assert coerce_content_length('unknown') == 0

    def test_not_finite(self):
        assert coerce_content_length('nan') == 0
        assert coerce_content_length(float('inf')) == 0

    def test_fractional(self):
        assert coerce_content_length('12.9') == 12

    def test_large_decimal_string_is_exact(self):
        assert coerce_content_length(str(2**60 + 1)) == 2**60 + 1


class TestStreamOptions:
    """Tests for StreamOptions validation."""

    def test_defaults(self):
        options = StreamOptions()
        assert options.quality is None
        assert options.proxy == ()

    def test_proxy_list_becomes_tuple(self):
        options = StreamOptions(proxy=['http://p:8080'])
        assert options.proxy == ('http://p:8080',)

    def test_rejects_float_quality(self):
        with pytest.raises(TypeError):
            StreamOptions(quality=1.5)

    def test_rejects_bool_quality(self):
        with pytest.raises(TypeError):
            StreamOptions(quality=True)


class TestStreamFromInfoStatic:
    """Tests for stream_from_info() on on-demand videos."""

    def test_absent_quality_selects_best(self):
        result = stream_from_info(_metadata(), StreamOptions())
        assert isinstance(result, Stream)
        assert result.url == 'u1'
        assert result.type is StreamType.ARBITRARY
        assert result.content_length == 200
        assert result.duration_in_sec == 212.0
        assert result.source_url == PAGE_URL

    def test_out_of_range_matches_absent(self):
        absent = stream_from_info(_metadata(), StreamOptions())
        clamped = stream_from_info(_metadata(), StreamOptions(quality=99))
        assert clamped.url == absent.url
        assert clamped.type == absent.type
        assert clamped.content_length == absent.content_length

    def test_negative_quality_selects_lowest(self):
        result = stream_from_info(_metadata(), StreamOptions(quality=-5))
        assert result.url == 'u0'
        assert result.type is StreamType.WEBM_OPUS
        assert result.content_length == 100

    def test_no_options(self):
        result = stream_from_info(_metadata())
        assert result.url == 'u1'
        assert result.options == StreamOptions()

    def test_options_echoed_unchanged(self):
        options = StreamOptions(proxy=('http://p:8080',))
        result = stream_from_info(_metadata(), options)
        assert result.options is options
        assert options.quality is None
        assert result.proxy == ('http://p:8080',)

    def test_video_renditions_skipped(self):
        renditions = (
            RenditionDescriptor('video/webm; codecs="vp9"', 'v0', '9000'),
            *LADDER,
            RenditionDescriptor('video/mp4; codecs="avc1"', 'v1', '9999'),
        )
        result = stream_from_info(_metadata(renditions=renditions), StreamOptions(quality=0))
        assert result.url == 'u0'

    def test_missing_content_length(self):
        renditions = (RenditionDescriptor('audio/webm; codecs="opus"', 'u0'),)
        result = stream_from_info(_metadata(renditions=renditions))
        assert result.content_length == 0

    def test_string_duration(self):
        result = stream_from_info(_metadata(duration='212'))
        assert result.duration_in_sec == 212.0

    def test_no_audio(self):
        renditions = (RenditionDescriptor('video/mp4; codecs="avc1"', 'v0'),)
        with pytest.raises(EmptyAudioLadderError):
            stream_from_info(_metadata(renditions=renditions))

    def test_no_renditions(self):
        with pytest.raises(EmptyAudioLadderError):
            stream_from_info(_metadata(renditions=()))

    def test_malformed_audio(self):
        renditions = (RenditionDescriptor('audio/webm', 'u0'),)
        with pytest.raises(MalformedRenditionError):
            stream_from_info(_metadata(renditions=renditions))


class TestStreamFromInfoLive:
    """Tests for stream_from_info() on live broadcasts."""

    def test_live_short_circuit(self):
        result = stream_from_info(_live_metadata())
        assert isinstance(result, LiveStream)
        assert result.manifest_url == DASH_URL
        assert result.target_duration_sec == 5.0
        assert result.source_url == PAGE_URL

    def test_target_duration_from_last_rendition(self):
        """The last raw rendition is used even when it is a video track."""
        renditions = (
            RenditionDescriptor('audio/mp4; codecs="mp4a.40.2"', 'a0', target_duration_sec=5.0),
            RenditionDescriptor('video/mp4; codecs="avc1"', 'v0', target_duration_sec=2.0),
        )
        result = stream_from_info(_live_metadata(renditions=renditions))
        assert result.target_duration_sec == 2.0

    def test_classifier_skipped(self):
        """Malformed audio renditions do not matter for live broadcasts."""
        renditions = (RenditionDescriptor('audio/broken', 'a0', target_duration_sec=5.0),)
        result = stream_from_info(_live_metadata(renditions=renditions))
        assert isinstance(result, LiveStream)

    def test_classifier_not_called(self):
        with patch('ytstream.stream.parse_audio_formats') as mock_parse:
            stream_from_info(_live_metadata())
        mock_parse.assert_not_called()

    def test_textual_zero_duration(self):
        assert isinstance(stream_from_info(_live_metadata(duration='0')), LiveStream)

    def test_textual_float_zero_duration(self):
        assert isinstance(stream_from_info(_live_metadata(duration='0.0')), LiveStream)

    def test_nonzero_duration_falls_through(self):
        renditions = LADDER
        result = stream_from_info(_live_metadata(duration=120, renditions=renditions))
        assert isinstance(result, Stream)
        assert result.url == 'u1'

    def test_no_hls_manifest_falls_through(self):
        result = stream_from_info(_live_metadata(hls=None, renditions=LADDER))
        assert isinstance(result, Stream)

    def test_not_live_with_zero_duration(self):
        result = stream_from_info(_metadata(duration=0))
        assert isinstance(result, Stream)

    def test_dash_manifest_passed_through(self):
        assert stream_from_info(_live_metadata()).manifest_url == DASH_URL

    def test_missing_dash_manifest_stays_missing(self):
        """The HLS URL only qualifies the broadcast; it is never used as the manifest."""
        result = stream_from_info(_live_metadata(dash=None))
        assert isinstance(result, LiveStream)
        assert result.manifest_url is None

    def test_empty_rendition_list(self):
        result = stream_from_info(_live_metadata(renditions=()))
        assert isinstance(result, LiveStream)
        assert result.target_duration_sec is None


class TestStream:
    """Tests for the async stream() entry point."""

    def test_fetches_then_resolves(self):
        mock_fetch = AsyncMock(return_value=_metadata())
        options = StreamOptions(quality=0, proxy=('http://p:8080',))

        with patch('ytstream.stream.fetch_video_info', mock_fetch):
            result = asyncio.run(stream(PAGE_URL, options, timeout=30))

        mock_fetch.assert_awaited_once_with(PAGE_URL, proxy=('http://p:8080',), timeout=30)
        assert result == stream_from_info(_metadata(), options)

    def test_live(self):
        with patch('ytstream.stream.fetch_video_info', AsyncMock(return_value=_live_metadata())):
            result = asyncio.run(stream(PAGE_URL))
        assert isinstance(result, LiveStream)

    def test_fetch_error_propagates(self):
        mock_fetch = AsyncMock(side_effect=VideoError("Video is private"))
        with patch('ytstream.stream.fetch_video_info', mock_fetch):
            with pytest.raises(VideoError, match='private'):
                asyncio.run(stream(PAGE_URL))


class TestDescribe:
    """Tests for describe()."""

    def test_static(self):
        data = describe(stream_from_info(_metadata(), StreamOptions(quality=0)))
        assert data == {
            'kind': 'stream',
            'url': 'u0',
            'type': 'webm/opus',
            'duration_in_sec': 212.0,
            'content_length': 100,
            'source_url': PAGE_URL,
            'quality': 0,
            'proxy': [],
        }

    def test_live(self):
        data = describe(stream_from_info(_live_metadata()))
        assert data['kind'] == 'live'
        assert data['manifest_url'] == DASH_URL
