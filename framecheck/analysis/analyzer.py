"""Analyzer

Applies the checks named by a ScenarioStep to a frozen collector snapshot.
Deterministic for a given snapshot, step and tolerance set.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from framecheck.capture.frame_collector import CollectorSnapshot
from framecheck.models.enums import FrameKind
from framecheck.models.results import CheckResult
from framecheck.models.scenarios import ScenarioStep
from framecheck.analysis import timing, conformance
from framecheck.config.config_loader import config


@dataclass(frozen=True)
class Tolerances:
    """Thresholds applied by the timing checks"""
    allowed_frame_rate_error: float = 0.3
    min_audio_video_ratio: float = 1.0
    audio_gap_factor: float = 3.0
    long_interval_factor: float = 1.5
    long_interval_fraction: float = 0.1
    min_fps_ratio: float = 0.7
    audio_per_video_frame: float = 2.0
    
    @classmethod
    def from_config(cls) -> "Tolerances":
        defaults = cls()
        return cls(**{
            name: config.get(f'tolerances.{name}', getattr(defaults, name))
            for name in cls.__dataclass_fields__
        })


def _frame_count(snapshot: CollectorSnapshot, step: ScenarioStep, tolerances: Tolerances) -> CheckResult:
    return timing.check_frame_count(snapshot.video, max(1, step.required_video))


def _interval_error(snapshot, step, tolerances):
    return timing.check_interval_error(snapshot.video, step.config.expected_interval,
                                       tolerances.allowed_frame_rate_error)


def _fps_error(snapshot, step, tolerances):
    return timing.check_fps_error(snapshot.video, step.config.frame_rate,
                                  tolerances.allowed_frame_rate_error)


def _audio_continuity(snapshot, step, tolerances):
    return timing.check_audio_continuity(snapshot.video, snapshot.audio, step.config.expected_interval,
                                         tolerances.min_audio_video_ratio, tolerances.audio_gap_factor)


def _drift(snapshot, step, tolerances):
    return timing.check_drift(snapshot.video, step.config.frame_rate, tolerances.long_interval_factor,
                              tolerances.long_interval_fraction, tolerances.min_fps_ratio)


def _audio_presence(snapshot, step, tolerances):
    return timing.check_audio_presence(snapshot.audio)


def _audio_count(snapshot, step, tolerances):
    return timing.check_audio_count(snapshot.audio, step.required_audio or step.required_video)


def _audio_sufficiency(snapshot, step, tolerances):
    # strictly more than audio_per_video_frame per video frame
    minimum = int(len(snapshot.video) * tolerances.audio_per_video_frame) + 1
    return timing.check_audio_count(snapshot.audio, minimum, name="audio_sufficiency")


def _format_conformance(snapshot, step, tolerances):
    return conformance.check_format_conformance(
        snapshot.video, snapshot.audio,
        require_video=step.format_video, require_audio=step.format_audio,
        expected_format=step.video_format, expected_quality=step.video_quality,
    )


def _metadata_timestamp(snapshot, step, tolerances):
    return conformance.check_metadata_timestamp(snapshot.first_event)


CHECKS: Dict[str, Callable[[CollectorSnapshot, ScenarioStep, Tolerances], CheckResult]] = {
    "frame_count": _frame_count,
    "interval_error": _interval_error,
    "fps_error": _fps_error,
    "audio_continuity": _audio_continuity,
    "drift": _drift,
    "audio_presence": _audio_presence,
    "audio_count": _audio_count,
    "audio_sufficiency": _audio_sufficiency,
    "format_conformance": _format_conformance,
    "metadata_timestamp": _metadata_timestamp,
}


def analyze(snapshot: CollectorSnapshot, step: ScenarioStep,
            tolerances: Optional[Tolerances] = None) -> List[CheckResult]:
    """Run every check named by step against snapshot.
    
    Args:
        snapshot: Frozen collector snapshot
        step: Sub-cycle descriptor naming the checks and their parameters
        tolerances: Thresholds (defaults to the configured ones)
        
    Returns:
        One CheckResult per check, in the order the step lists them
        
    Raises:
        KeyError: If the step names an unknown check
    """
    tolerances = tolerances or Tolerances.from_config()
    results = []
    for name in step.checks:
        if name not in CHECKS:
            raise KeyError(f"Unknown check: {name}")
        results.append(CHECKS[name](snapshot, step, tolerances))
    return results


def measure(snapshot: CollectorSnapshot, step: ScenarioStep) -> Dict[str, float]:
    """Raw measurements reported with every sub-cycle"""
    metrics = timing.measure_rate(snapshot.video, step.config.frame_rate or None)
    metrics['video_frames'] = float(len(snapshot.video))
    metrics['audio_frames'] = float(len(snapshot.audio))
    metrics['video_dropped'] = float(snapshot.dropped.get(FrameKind.VIDEO, 0))
    metrics['audio_dropped'] = float(snapshot.dropped.get(FrameKind.AUDIO, 0))
    
    audio_span = timing.measure_rate(snapshot.audio)['duration']
    span = max(metrics['duration'], audio_span)
    metrics['audio_per_second'] = len(snapshot.audio) / max(1.0, span)
    return metrics
