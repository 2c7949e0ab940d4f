"""Property-based tests for format conformance

Feature: capture-timing-validation, Property 6: Format conformance
Validates: non-positive metadata fields are named; conforming frames pass
"""

from hypothesis import given, strategies as st, settings

from framecheck.analysis.conformance import check_format_conformance
from framecheck.models.enums import CheckStatus, FrameKind, ImageFormat, ImageQuality
from framecheck.models.frames import FrameEvent


positive = st.integers(min_value=1, max_value=8192)


def video_event(sequence=0, **fields):
    values = dict(buffer_size=1000, source_timestamp=1.0, width=640, height=360,
                  bytes_per_row=2560, format="jpeg", quality=0.9)
    values.update(fields)
    return FrameEvent(timestamp=float(sequence), kind=FrameKind.VIDEO, sequence=sequence, **values)


def audio_event(sequence=0, **fields):
    values = dict(buffer_size=8192, source_timestamp=1.0, sample_rate=48000, channel_count=2)
    values.update(fields)
    return FrameEvent(timestamp=float(sequence), kind=FrameKind.AUDIO, sequence=sequence, **values)


# Feature: capture-timing-validation, Property 6: Format conformance
@settings(max_examples=50, deadline=None)
@given(
    field=st.sampled_from(["width", "height", "bytes_per_row"]),
    bad_value=st.integers(min_value=-100, max_value=0),
)
def test_non_positive_video_field_is_named(field, bad_value):
    """
    Property 6: Format conformance
    
    A video frame with a non-positive size field is non-conformant and the
    failing field is named in the check and its message.
    """
    result = check_format_conformance([video_event(**{field: bad_value})], [audio_event(1)])
    
    assert result.status == CheckStatus.FAIL
    assert result.failing_field == field
    assert field in result.message


# Feature: capture-timing-validation, Property 6: Format conformance
@settings(max_examples=50, deadline=None)
@given(
    width=positive,
    height=positive,
    sample_rate=st.sampled_from([8000, 16000, 44100, 48000]),
    channels=st.integers(min_value=1, max_value=8),
    case=st.sampled_from([
        (ImageFormat.JPEG, ImageQuality.HIGH),
        (ImageFormat.JPEG, ImageQuality.LOW),
        (ImageFormat.RAW, ImageQuality.STANDARD),
    ]),
)
def test_positive_matching_fields_conform(width, height, sample_rate, channels, case):
    """Frames with every field positive and the requested encoding pass."""
    image_format, quality = case
    video = [video_event(0, width=width, height=height, bytes_per_row=width * 4,
                         format=image_format.value, quality=quality.value)]
    audio = [audio_event(1, sample_rate=sample_rate, channel_count=channels)]
    
    result = check_format_conformance(video, audio, expected_format=image_format,
                                      expected_quality=quality)
    
    assert result.status == CheckStatus.PASS
    assert result.failing_field is None


# Feature: capture-timing-validation, Property 6: Format conformance
@settings(max_examples=30, deadline=None)
@given(bad_at=st.integers(min_value=0, max_value=9))
def test_first_non_conforming_event_is_reported(bad_at):
    """Among several frames the earliest non-conforming one decides the failure."""
    video = [video_event(i, width=0 if i == bad_at else 640) for i in range(10)]
    
    result = check_format_conformance(video, [], require_audio=False)
    
    assert result.failing_field == "width"
    assert f"#{bad_at}" in result.message
