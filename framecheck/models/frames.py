"""Data models for capture targets, capture configuration and media frames"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from framecheck.models.enums import (
    TargetKind,
    FrameKind,
    CaptureQuality,
    ImageFormat,
    ImageQuality,
)


@dataclass(frozen=True)
class CaptureTarget:
    """A capturable display or window, as reported by the capture source
    
    Attributes:
        kind: TargetKind.DISPLAY or TargetKind.WINDOW
        target_id: Numeric display or window id
        width: Pixel width
        height: Pixel height
        title: Window title (None for displays)
        app_name: Owning application name, if known
    """
    kind: TargetKind
    target_id: int
    width: int
    height: int
    title: Optional[str] = None
    app_name: Optional[str] = None
    
    def __post_init__(self):
        assert self.kind in (TargetKind.DISPLAY, TargetKind.WINDOW), \
            "Target kind must be DISPLAY or WINDOW"
        assert self.width >= 0 and self.height >= 0, "Dimensions must be non-negative"
    
    @property
    def label(self) -> str:
        if self.kind == TargetKind.WINDOW:
            return f"window {self.target_id}: {self.title or 'untitled'} ({self.width}x{self.height})"
        return f"display {self.target_id} ({self.width}x{self.height})"


@dataclass(frozen=True)
class CaptureConfig:
    """Settings handed to the capture source for one sub-cycle
    
    A frame_rate of 0 requests audio-only capture.
    """
    frame_rate: float
    quality: CaptureQuality = CaptureQuality.HIGH
    image_format: ImageFormat = ImageFormat.JPEG
    image_quality: ImageQuality = ImageQuality.HIGH
    audio_sample_rate: Optional[int] = None
    audio_channels: Optional[int] = None
    
    def __post_init__(self):
        assert self.frame_rate >= 0, "Frame rate must be non-negative"
    
    @property
    def audio_only(self) -> bool:
        return self.frame_rate == 0
    
    @property
    def expected_interval(self) -> Optional[float]:
        """Seconds between video frames, or None in audio-only mode"""
        if self.audio_only:
            return None
        return 1.0 / self.frame_rate
    
    def describe(self) -> str:
        if self.audio_only:
            return "audio only"
        text = f"{self.frame_rate:g}fps {self.image_format.value}"
        if self.image_format == ImageFormat.JPEG:
            text += f" q={self.image_quality.value}"
        return text


@dataclass(frozen=True)
class VideoInfo:
    width: int
    height: int
    bytes_per_row: int
    format: str
    quality: float


@dataclass(frozen=True)
class AudioInfo:
    sample_rate: float
    channel_count: int
    bytes_per_frame: int
    frame_count: int


@dataclass(frozen=True)
class SampleMetadata:
    """Metadata attached to every delivered MediaSample
    
    Attributes:
        timestamp: Source-side presentation time in seconds
        has_video: Whether the sample carries a video buffer
        has_audio: Whether the sample carries an audio buffer
        video_info: Video buffer description, if any
        audio_info: Audio buffer description, if any
    """
    timestamp: float
    has_video: bool
    has_audio: bool
    video_info: Optional[VideoInfo] = None
    audio_info: Optional[AudioInfo] = None


@dataclass(frozen=True)
class MediaSample:
    """One callback payload from the capture source"""
    metadata: SampleMetadata
    video_buffer: Optional[np.ndarray] = None
    audio_buffer: Optional[np.ndarray] = None


@dataclass(frozen=True)
class FrameEvent:
    """A recorded arrival of one media kind
    
    Attributes:
        timestamp: Monotonic arrival time in seconds
        kind: VIDEO or AUDIO
        sequence: Arrival sequence number assigned by the collector
        buffer_size: Buffer size in bytes
        source_timestamp: Timestamp reported in the sample metadata
        width, height, bytes_per_row, format, quality: Video metadata
        sample_rate, channel_count: Audio metadata
    """
    timestamp: float
    kind: FrameKind
    sequence: int
    buffer_size: int = 0
    source_timestamp: float = 0.0
    width: Optional[int] = None
    height: Optional[int] = None
    bytes_per_row: Optional[int] = None
    format: Optional[str] = None
    quality: Optional[float] = None
    sample_rate: Optional[float] = None
    channel_count: Optional[int] = None
    
    def __post_init__(self):
        assert self.sequence >= 0, "Sequence number must be non-negative"
        assert self.buffer_size >= 0, "Buffer size must be non-negative"
    
    @classmethod
    def from_video(cls, sample: MediaSample, timestamp: float, sequence: int) -> "FrameEvent":
        info = sample.metadata.video_info
        return cls(
            timestamp=timestamp,
            kind=FrameKind.VIDEO,
            sequence=sequence,
            buffer_size=int(sample.video_buffer.nbytes) if sample.video_buffer is not None else 0,
            source_timestamp=sample.metadata.timestamp,
            width=info.width if info else None,
            height=info.height if info else None,
            bytes_per_row=info.bytes_per_row if info else None,
            format=info.format if info else None,
            quality=info.quality if info else None,
        )
    
    @classmethod
    def from_audio(cls, sample: MediaSample, timestamp: float, sequence: int) -> "FrameEvent":
        info = sample.metadata.audio_info
        return cls(
            timestamp=timestamp,
            kind=FrameKind.AUDIO,
            sequence=sequence,
            buffer_size=int(sample.audio_buffer.nbytes) if sample.audio_buffer is not None else 0,
            source_timestamp=sample.metadata.timestamp,
            sample_rate=info.sample_rate if info else None,
            channel_count=info.channel_count if info else None,
        )
