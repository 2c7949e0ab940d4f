"""Unit tests for format conformance analysis"""

from dataclasses import replace

from framecheck.analysis import conformance
from framecheck.models.enums import CheckStatus, ImageFormat, ImageQuality


class TestNonconformance:
    """Test suite for per-event field validation"""

    def test_conforming_video(self, make_video_events):
        event = make_video_events([0.0])[0]
        assert conformance.video_nonconformance(event) is None
        assert conformance.video_nonconformance(event, ImageFormat.JPEG, ImageQuality.HIGH) is None

    def test_first_bad_field_named(self, make_video_events):
        assert conformance.video_nonconformance(make_video_events([0.0], width=0)[0]) == "width"
        assert conformance.video_nonconformance(make_video_events([0.0], height=None)[0]) == "height"
        assert conformance.video_nonconformance(make_video_events([0.0], bytes_per_row=-4)[0]) == "bytes_per_row"

    def test_format_and_quality(self, make_video_events):
        event = make_video_events([0.0], format="jpeg", quality=0.3)[0]
        assert conformance.video_nonconformance(event, ImageFormat.RAW) == "format"
        assert conformance.video_nonconformance(event, ImageFormat.JPEG, ImageQuality.HIGH) == "quality"
        assert conformance.video_nonconformance(event, ImageFormat.JPEG, ImageQuality.LOW) is None

    def test_raw_ignores_quality(self, make_video_events):
        event = make_video_events([0.0], format="raw", quality=0.0)[0]
        assert conformance.video_nonconformance(event, ImageFormat.RAW, ImageQuality.STANDARD) is None

    def test_audio_fields(self, make_audio_events):
        assert conformance.audio_nonconformance(make_audio_events([0.0])[0]) is None
        assert conformance.audio_nonconformance(make_audio_events([0.0], sample_rate=0)[0]) == "sample_rate"
        assert conformance.audio_nonconformance(make_audio_events([0.0], channel_count=0)[0]) == "channel_count"


class TestFormatConformance:
    """Test suite for check_format_conformance"""

    def test_conforming_stream_passes(self, make_video_events, make_audio_events):
        result = conformance.check_format_conformance(
            make_video_events([0.0, 0.1]), make_audio_events([0.05], start_sequence=5))
        assert result.passed
        assert result.metrics['conforming_video'] == 2
        assert any("resolution: 640 x 360" in line for line in result.details)

    def test_zero_width_names_field(self, make_video_events, make_audio_events):
        result = conformance.check_format_conformance(
            make_video_events([0.0], width=0), make_audio_events([0.05], start_sequence=1))
        assert result.failed
        assert result.failing_field == "width"
        assert "invalid width (0)" in result.message

    def test_first_failure_in_arrival_order(self, make_video_events, make_audio_events):
        video = [replace(event, sequence=3) for event in make_video_events([0.1], width=0)]
        audio = make_audio_events([0.0], channel_count=0)
        result = conformance.check_format_conformance(video, audio)
        assert result.failing_field == "channel_count"

    def test_missing_kind_is_insufficient(self, make_video_events):
        result = conformance.check_format_conformance(make_video_events([0.0]), [])
        assert result.status == CheckStatus.INSUFFICIENT_DATA
        assert "audio" in result.message

    def test_video_only_requirement(self, make_video_events):
        result = conformance.check_format_conformance(
            make_video_events([0.0], format="raw"), [], require_audio=False,
            expected_format=ImageFormat.RAW)
        assert result.passed
        assert "raw" in result.message

    def test_wrong_format_fails(self, make_video_events):
        result = conformance.check_format_conformance(
            make_video_events([0.0]), [], require_audio=False, expected_format=ImageFormat.RAW)
        assert result.failing_field == "format"


class TestMetadataTimestamp:
    """Test suite for check_metadata_timestamp"""

    def test_positive_timestamp(self, make_video_events):
        assert conformance.check_metadata_timestamp(make_video_events([0.0])[0]).passed

    def test_zero_timestamp_fails(self, make_video_events):
        result = conformance.check_metadata_timestamp(make_video_events([0.0], source_timestamp=0.0)[0])
        assert result.failed
        assert result.failing_field == "timestamp"

    def test_no_events(self):
        assert conformance.check_metadata_timestamp(None).status == CheckStatus.INSUFFICIENT_DATA
