"""Scenario catalog

The eight capture tests, expressed as ScenarioDefinition data. Parameters
come from the configuration so a test run can be tuned without code
changes; builders also accept explicit arguments for ad hoc runs.
"""

import math
from typing import Dict, Iterable, List, Optional

from framecheck.models.enums import ImageFormat, ImageQuality, CaptureQuality
from framecheck.models.frames import CaptureConfig
from framecheck.models.scenarios import ScenarioDefinition, ScenarioStep, WaitCondition
from framecheck.config.config_loader import config


class ScenarioError(Exception):
    """Exception raised for unknown scenarios or unrunnable requests"""
    pass


def scaled_timeout(base: float, required_frames: int, fps: float, factor: Optional[float] = None) -> float:
    """Deadline for collecting required_frames at fps.
    
    Slow rates get proportionally longer deadlines:
    max(base, required_frames * factor / fps). Audio-only and zero-frame
    requests keep the base timeout.
    """
    if factor is None:
        factor = config.get('scenarios.timeout_factor', 1.5)
    if fps <= 0 or required_frames <= 0:
        return base
    return max(base, required_frames * factor / fps)


def _timeout(name: str, default: float) -> float:
    return config.get(f'scenarios.timeouts.{name}', default)


def _capture_config(fps: float, **kwargs) -> CaptureConfig:
    return CaptureConfig(
        frame_rate=fps,
        audio_sample_rate=config.get('capture.audio_sample_rate', 48000),
        audio_channels=config.get('capture.audio_channels', 2),
        **kwargs
    )


def frame_rate_accuracy(fps: Optional[float] = None, frames: Optional[int] = None) -> ScenarioDefinition:
    fps = fps or config.get('test.target_frame_rate', 15.0)
    frames = frames or config.get('test.frames_to_capture', 5)
    step = ScenarioStep(
        label=f"{fps:g}fps",
        config=_capture_config(fps),
        timeout=scaled_timeout(_timeout('frame_rate_accuracy', 15.0), frames, fps),
        checks=("frame_count", "audio_count", "interval_error", "audio_continuity"),
        required_video=frames,
        video_capacity=frames,
        audio_capacity=frames * 2,
    )
    return ScenarioDefinition("frame_rate_accuracy", "Frame rate accuracy", (step,))


def low_frame_rate(fps: Optional[float] = None, frames: Optional[int] = None) -> ScenarioDefinition:
    fps = fps or config.get('test.low_frame_rate', 0.5)
    frames = frames or config.get('test.frames_to_capture', 5)
    step = ScenarioStep(
        label=f"{fps:g}fps",
        config=_capture_config(fps),
        timeout=scaled_timeout(_timeout('low_frame_rate', 10.0), frames, fps),
        checks=("frame_count", "fps_error"),
        required_video=frames,
    )
    return ScenarioDefinition("low_frame_rate", "Low frame rate", (step,))


def audio_only() -> ScenarioDefinition:
    step = ScenarioStep(
        label="audio only",
        config=_capture_config(0.0),
        timeout=_timeout('audio_only', 5.0),
        checks=("audio_presence",),
        required_audio=1,
    )
    return ScenarioDefinition("audio_only", "Audio-only mode", (step,))


def frame_rate_sweep(rates: Iterable[float] = (30.0, 15.0, 5.0), frames: int = 3,
                     settle_delay: Optional[float] = None) -> ScenarioDefinition:
    base = _timeout('frame_rate_sweep', 10.0)
    steps = tuple(
        ScenarioStep(
            label=f"{fps:g}fps",
            config=_capture_config(fps),
            timeout=scaled_timeout(base, frames, fps),
            checks=("frame_count", "fps_error"),
            required_video=frames,
        )
        for fps in rates
    )
    if settle_delay is None:
        settle_delay = config.get('scenarios.settle_delay', 0.5)
    return ScenarioDefinition("frame_rate_sweep", "Frame rate sweep", steps, settle_delay)


def extreme_frame_rates(rates: Iterable[float] = (0.5, 60.0, 120.0),
                        settle_delay: Optional[float] = None) -> ScenarioDefinition:
    base = _timeout('extreme_frame_rates', 5.0)
    factor = config.get('scenarios.extreme_timeout_factor', 2.5)
    steps = []
    for fps in rates:
        # slow rates need fewer frames to finish in reasonable time
        frames = 2 if fps < 1.0 else 10
        steps.append(ScenarioStep(
            label=f"{fps:g}fps",
            config=_capture_config(fps),
            timeout=scaled_timeout(base, frames, fps, factor),
            checks=("frame_count",),
            required_video=frames,
        ))
    if settle_delay is None:
        settle_delay = config.get('scenarios.extreme_settle_delay', 0.8)
    return ScenarioDefinition("extreme_frame_rates", "Extreme frame rates", tuple(steps), settle_delay)


def extended_capture(fps: float = 15.0, duration: Optional[float] = None) -> ScenarioDefinition:
    duration = duration or config.get('test.extended_duration', 8.0)
    # headroom for a source delivering faster than requested
    video_capacity = int(math.ceil(fps * duration * 4)) + 16
    step = ScenarioStep(
        label=f"{fps:g}fps for {duration:g}s",
        config=_capture_config(fps),
        timeout=duration,
        wait=WaitCondition.DURATION,
        checks=("frame_count", "drift", "audio_sufficiency"),
        video_capacity=video_capacity,
    )
    return ScenarioDefinition("extended_capture", "Extended capture", (step,))


def media_data_format(fps: Optional[float] = None) -> ScenarioDefinition:
    fps = fps or config.get('test.format_frame_rate', 10.0)
    step = ScenarioStep(
        label="media format",
        config=_capture_config(fps),
        timeout=_timeout('media_data_format', 5.0),
        wait=WaitCondition.CONFORMING_SAMPLE,
        checks=("metadata_timestamp", "format_conformance"),
        format_video=True,
        format_audio=True,
    )
    return ScenarioDefinition("media_data_format", "Media data format", (step,))


IMAGE_FORMAT_CASES = (
    (ImageFormat.JPEG, ImageQuality.HIGH, "JPEG high quality"),
    (ImageFormat.JPEG, ImageQuality.LOW, "JPEG low quality"),
    (ImageFormat.RAW, ImageQuality.STANDARD, "RAW"),
)


def image_format_options(fps: Optional[float] = None,
                         settle_delay: Optional[float] = None) -> ScenarioDefinition:
    fps = fps or config.get('test.format_frame_rate', 10.0)
    steps = tuple(
        ScenarioStep(
            label=name,
            config=_capture_config(fps, quality=CaptureQuality.HIGH, image_format=image_format,
                                   image_quality=image_quality),
            timeout=_timeout('image_format_options', 3.0),
            wait=WaitCondition.CONFORMING_SAMPLE,
            checks=("format_conformance",),
            format_video=True,
            expected_format=image_format,
            expected_quality=image_quality,
        )
        for image_format, image_quality, name in IMAGE_FORMAT_CASES
    )
    if settle_delay is None:
        settle_delay = config.get('scenarios.settle_delay', 0.5)
    return ScenarioDefinition("image_format_options", "Image format options", steps, settle_delay)


BUILDERS = {
    "frame_rate_accuracy": frame_rate_accuracy,
    "low_frame_rate": low_frame_rate,
    "audio_only": audio_only,
    "frame_rate_sweep": frame_rate_sweep,
    "extreme_frame_rates": extreme_frame_rates,
    "extended_capture": extended_capture,
    "media_data_format": media_data_format,
    "image_format_options": image_format_options,
}


def build_catalog(names: Optional[Iterable[str]] = None) -> Dict[str, ScenarioDefinition]:
    """Build scenario definitions, in catalog order.
    
    Raises:
        ScenarioError: If a name is not in the catalog
    """
    names = list(BUILDERS) if names is None else list(names)
    return {name: get_scenario(name) for name in names}


def get_scenario(name: str) -> ScenarioDefinition:
    if name not in BUILDERS:
        raise ScenarioError(f"Unknown scenario: {name}")
    return BUILDERS[name]()


def scenario_names() -> List[str]:
    return list(BUILDERS)
