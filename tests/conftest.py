"""Pytest configuration and fixtures"""

from typing import List, Optional

import numpy as np
import pytest
from hypothesis import settings, Verbosity

from framecheck.models.enums import TargetKind, FrameKind
from framecheck.models.frames import (
    AudioInfo,
    CaptureConfig,
    CaptureTarget,
    FrameEvent,
    MediaSample,
    SampleMetadata,
    VideoInfo,
)
from framecheck.models.interfaces import CaptureSource, CaptureSourceError

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20, verbosity=Verbosity.normal)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose)

# Use CI profile by default
settings.load_profile("ci")


DISPLAY = CaptureTarget(kind=TargetKind.DISPLAY, target_id=1, width=640, height=360)


class ManualCaptureSource(CaptureSource):
    """Capture source driven by the test: deliver() invokes the callback."""
    
    def __init__(self, targets: Optional[List[CaptureTarget]] = None, accept: bool = True,
                 start_error: Optional[str] = None, fail_enumeration: bool = False):
        self.targets = targets if targets is not None else [DISPLAY]
        self.accept = accept
        self.start_error = start_error
        self.fail_enumeration = fail_enumeration
        self.callback = None
        self.start_calls = 0
        self.stop_calls = 0
    
    async def enumerate_targets(self, kind=TargetKind.ALL):
        if self.fail_enumeration:
            raise CaptureSourceError("enumeration failed")
        return list(self.targets)
    
    async def start(self, target, config, on_sample):
        self.start_calls += 1
        if self.start_error:
            raise CaptureSourceError(self.start_error)
        if not self.accept:
            return False
        self.callback = on_sample
        return True
    
    async def stop(self):
        self.stop_calls += 1
    
    def deliver(self, item) -> None:
        self.callback(item)


def video_sample(timestamp: float = 1.0, width: int = 640, height: int = 360,
                 image_format: str = "jpeg", quality: float = 0.9, with_audio: bool = False) -> MediaSample:
    video_info = VideoInfo(width=width, height=height, bytes_per_row=width * 4,
                           format=image_format, quality=quality)
    audio_info = AudioInfo(sample_rate=48000, channel_count=2, bytes_per_frame=8, frame_count=1024)
    return MediaSample(
        metadata=SampleMetadata(timestamp=timestamp, has_video=True, has_audio=with_audio,
                                video_info=video_info, audio_info=audio_info if with_audio else None),
        video_buffer=np.zeros(max(1, width * height // 10), dtype=np.uint8),
        audio_buffer=np.zeros(2048, dtype=np.float32) if with_audio else None,
    )


def audio_sample(timestamp: float = 1.0, sample_rate: float = 48000, channels: int = 2) -> MediaSample:
    audio_info = AudioInfo(sample_rate=sample_rate, channel_count=channels,
                           bytes_per_frame=4 * channels, frame_count=1024)
    return MediaSample(
        metadata=SampleMetadata(timestamp=timestamp, has_video=False, has_audio=True,
                                audio_info=audio_info),
        audio_buffer=np.zeros(1024 * max(1, channels), dtype=np.float32),
    )


def video_events(timestamps, **fields) -> List[FrameEvent]:
    defaults = dict(buffer_size=23040, source_timestamp=1.0, width=640, height=360,
                    bytes_per_row=2560, format="jpeg", quality=0.9)
    defaults.update(fields)
    return [FrameEvent(timestamp=t, kind=FrameKind.VIDEO, sequence=i, **defaults)
            for i, t in enumerate(timestamps)]


def audio_events(timestamps, start_sequence: int = 0, **fields) -> List[FrameEvent]:
    defaults = dict(buffer_size=8192, source_timestamp=1.0, sample_rate=48000, channel_count=2)
    defaults.update(fields)
    return [FrameEvent(timestamp=t, kind=FrameKind.AUDIO, sequence=start_sequence + i, **defaults)
            for i, t in enumerate(timestamps)]


@pytest.fixture
def display_target():
    return DISPLAY


@pytest.fixture
def manual_source():
    return ManualCaptureSource()


@pytest.fixture
def capture_config():
    return CaptureConfig(frame_rate=15.0, audio_sample_rate=48000, audio_channels=2)


@pytest.fixture
def source_factory():
    return ManualCaptureSource


@pytest.fixture
def make_video_sample():
    return video_sample


@pytest.fixture
def make_audio_sample():
    return audio_sample


@pytest.fixture
def make_video_events():
    return video_events


@pytest.fixture
def make_audio_events():
    return audio_events
