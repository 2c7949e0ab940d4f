"""Data models and interfaces"""

from framecheck.models.frames import (
    CaptureTarget,
    CaptureConfig,
    VideoInfo,
    AudioInfo,
    SampleMetadata,
    MediaSample,
    FrameEvent,
)
from framecheck.models.results import (
    CheckResult,
    SubCycleResult,
    TestResult,
    RunState,
    ResultFinalizedError,
)
from framecheck.models.enums import (
    TargetKind,
    FrameKind,
    CaptureQuality,
    ImageFormat,
    ImageQuality,
    CheckStatus,
    Verdict,
    ScenarioPhase,
    RunPhase,
)
from framecheck.models.interfaces import CaptureSource, CaptureSourceError, FrameCallback
from framecheck.models.scenarios import ScenarioDefinition, ScenarioStep, WaitCondition

__all__ = [
    # Frames
    "CaptureTarget",
    "CaptureConfig",
    "VideoInfo",
    "AudioInfo",
    "SampleMetadata",
    "MediaSample",
    "FrameEvent",
    # Results
    "CheckResult",
    "SubCycleResult",
    "TestResult",
    "RunState",
    "ResultFinalizedError",
    # Enums
    "TargetKind",
    "FrameKind",
    "CaptureQuality",
    "ImageFormat",
    "ImageQuality",
    "CheckStatus",
    "Verdict",
    "ScenarioPhase",
    "RunPhase",
    # Interfaces
    "CaptureSource",
    "CaptureSourceError",
    "FrameCallback",
    # Scenarios
    "ScenarioDefinition",
    "ScenarioStep",
    "WaitCondition",
]
