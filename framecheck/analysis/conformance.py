"""Format conformance analysis

Checks that delivered frames carry usable metadata and the encoding that
was requested.
"""

import math
from typing import List, Optional, Sequence

from framecheck.models.enums import CheckStatus, ImageFormat, ImageQuality
from framecheck.models.frames import FrameEvent
from framecheck.models.results import CheckResult


VIDEO_FIELDS = ("width", "height", "bytes_per_row", "buffer_size")
AUDIO_FIELDS = ("sample_rate", "channel_count", "buffer_size")


def video_nonconformance(event: FrameEvent, expected_format: Optional[ImageFormat] = None,
                         expected_quality: Optional[ImageQuality] = None) -> Optional[str]:
    """Name of the first non-conforming field of a video event, or None.
    
    Size fields must be present and strictly positive. When expected_format
    is given the reported format must match it; the quality only has to
    match for JPEG.
    """
    for name in VIDEO_FIELDS:
        value = getattr(event, name)
        if value is None or value <= 0:
            return name
    
    if expected_format is not None:
        if event.format != expected_format.value:
            return "format"
        if expected_format == ImageFormat.JPEG and expected_quality is not None:
            if event.quality is None or not math.isclose(event.quality, expected_quality.value):
                return "quality"
    return None


def audio_nonconformance(event: FrameEvent) -> Optional[str]:
    for name in AUDIO_FIELDS:
        value = getattr(event, name)
        if value is None or value <= 0:
            return name
    return None


def describe_video(event: FrameEvent) -> List[str]:
    return [
        f"resolution: {event.width} x {event.height}",
        f"bytes per row: {event.bytes_per_row}",
        f"format: {event.format}",
        f"quality: {event.quality}",
        f"buffer size: {event.buffer_size} bytes",
    ]


def describe_audio(event: FrameEvent) -> List[str]:
    return [
        f"sample rate: {event.sample_rate}Hz",
        f"channels: {event.channel_count}",
        f"buffer size: {event.buffer_size} bytes",
    ]


def check_format_conformance(video: Sequence[FrameEvent], audio: Sequence[FrameEvent],
                             require_video: bool = True, require_audio: bool = True,
                             expected_format: Optional[ImageFormat] = None,
                             expected_quality: Optional[ImageQuality] = None) -> CheckResult:
    """Validate metadata of every received frame.
    
    Fails on the first non-conforming event (in arrival order) and names its
    field. Otherwise passes once at least one conforming event of every
    required kind was seen, and reports insufficient data when a required
    kind never arrived.
    
    Args:
        video: Video events in arrival order
        audio: Audio events in arrival order
        require_video: Whether a conforming video frame is required
        require_audio: Whether a conforming audio frame is required
        expected_format: Encoding the video frames must report
        expected_quality: Quality the JPEG frames must report
        
    Returns:
        CheckResult named "format_conformance"
    """
    video_checked = [(event, video_nonconformance(event, expected_format, expected_quality))
                     for event in video] if require_video else []
    audio_checked = [(event, audio_nonconformance(event)) for event in audio] if require_audio else []
    candidates = sorted(video_checked + audio_checked,
                        key=lambda pair: (pair[0].sequence, pair[0].kind.value))
    
    conforming_video = sum(1 for _, problem in video_checked if problem is None)
    conforming_audio = sum(1 for _, problem in audio_checked if problem is None)
    metrics = {
        'video_frames': float(len(video)),
        'audio_frames': float(len(audio)),
        'conforming_video': float(conforming_video),
        'conforming_audio': float(conforming_audio),
    }
    
    details = []
    if require_video and video:
        details.append("video sample:")
        details.extend(f"  {line}" for line in describe_video(video[0]))
    if require_audio and audio:
        details.append("audio sample:")
        details.extend(f"  {line}" for line in describe_audio(audio[0]))
    
    for event, problem in candidates:
        if problem is not None:
            value = getattr(event, problem)
            return CheckResult(
                "format_conformance", CheckStatus.FAIL,
                f"❌ {event.kind.value} frame #{event.sequence}: invalid {problem} ({value})",
                metrics, failing_field=problem, details=tuple(details),
            )
    
    missing = []
    if require_video and not conforming_video:
        missing.append("video")
    if require_audio and not conforming_audio:
        missing.append("audio")
    if missing:
        return CheckResult(
            "format_conformance", CheckStatus.INSUFFICIENT_DATA,
            f"⚠️ format not verified: no {' or '.join(missing)} frames received",
            metrics, details=tuple(details),
        )
    
    expected = f" ({expected_format.value})" if expected_format is not None else ""
    return CheckResult("format_conformance", CheckStatus.PASS,
                       f"✅ format verified{expected}", metrics, details=tuple(details))


def check_metadata_timestamp(first_event: Optional[FrameEvent]) -> CheckResult:
    if first_event is None:
        return CheckResult("metadata_timestamp", CheckStatus.INSUFFICIENT_DATA,
                           "⚠️ metadata not verified: no frames received")
    metrics = {'timestamp': first_event.source_timestamp}
    if first_event.source_timestamp > 0:
        return CheckResult("metadata_timestamp", CheckStatus.PASS,
                           f"✅ timestamp is positive ({first_event.source_timestamp:.3f})", metrics)
    return CheckResult("metadata_timestamp", CheckStatus.FAIL,
                       f"❌ invalid timestamp ({first_event.source_timestamp})", metrics,
                       failing_field="timestamp")
