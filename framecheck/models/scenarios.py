"""Declarative scenario descriptors"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from framecheck.models.enums import ImageFormat, ImageQuality
from framecheck.models.frames import CaptureConfig


class WaitCondition(Enum):
    """What ends the capture phase of a sub-cycle (besides the timeout)"""
    FRAME_COUNT = "frame_count"          # required_video / required_audio reached
    DURATION = "duration"                # capture for the full timeout
    CONFORMING_SAMPLE = "conforming"     # a conforming frame of each required kind seen


@dataclass(frozen=True)
class ScenarioStep:
    """One sub-cycle of a scenario
    
    Attributes:
        label: Name used in logs and verdict keys
        config: Capture configuration for this sub-cycle
        timeout: Gate deadline in seconds
        wait: Condition that ends capture early
        checks: Analyzer check names applied to the snapshot
        required_video: Video frames needed (FRAME_COUNT, frame_count check)
        required_audio: Audio frames needed (FRAME_COUNT)
        video_capacity: Collector cap for video events
        audio_capacity: Collector cap for audio events
        format_video: Video frames must conform (format checks)
        format_audio: Audio frames must conform (format checks)
        expected_format: Encoding video frames must report (defaults to config.image_format)
        expected_quality: JPEG quality video frames must report (defaults to config.image_quality)
    """
    label: str
    config: CaptureConfig
    timeout: float
    wait: WaitCondition = WaitCondition.FRAME_COUNT
    checks: Tuple[str, ...] = ()
    required_video: int = 0
    required_audio: int = 0
    video_capacity: Optional[int] = None
    audio_capacity: Optional[int] = None
    format_video: bool = False
    format_audio: bool = False
    expected_format: Optional[ImageFormat] = None
    expected_quality: Optional[ImageQuality] = None
    
    def __post_init__(self):
        assert self.timeout > 0, "Timeout must be positive"
        assert self.required_video >= 0 and self.required_audio >= 0, "Required counts must be non-negative"
    
    @property
    def video_format(self) -> ImageFormat:
        return self.expected_format or self.config.image_format
    
    @property
    def video_quality(self) -> ImageQuality:
        return self.expected_quality or self.config.image_quality


@dataclass(frozen=True)
class ScenarioDefinition:
    """A named test scenario: an ordered sequence of sub-cycles
    
    Attributes:
        name: Catalog key (e.g., "frame_rate_sweep")
        title: Display name
        steps: Sub-cycles, run in order
        settle_delay: Pause between sub-cycles in seconds
    """
    name: str
    title: str
    steps: Tuple[ScenarioStep, ...]
    settle_delay: float = 0.0
    
    def __post_init__(self):
        assert self.steps, "Scenario needs at least one step"
    
    @property
    def is_sweep(self) -> bool:
        return len(self.steps) > 1
