"""Timing analysis

Pure functions computing frame timing statistics from recorded FrameEvents.
Every check returns a CheckResult; checks that cannot run for lack of
samples return CheckStatus.INSUFFICIENT_DATA instead of failing.
"""

from typing import Dict, Optional, Sequence

import numpy as np

from framecheck.models.enums import CheckStatus
from framecheck.models.frames import FrameEvent
from framecheck.models.results import CheckResult


def timestamps_of(events: Sequence[FrameEvent]) -> np.ndarray:
    return np.array([event.timestamp for event in events], dtype=np.float64)


def frame_intervals(events: Sequence[FrameEvent]) -> np.ndarray:
    """Gaps in seconds between consecutive events"""
    if len(events) < 2:
        return np.empty(0, dtype=np.float64)
    return np.diff(timestamps_of(events))


def measure_rate(events: Sequence[FrameEvent], requested_fps: Optional[float] = None) -> Dict[str, float]:
    """Measure span and rate of a run of video events.
    
    The measured rate is (n - 1) / (last - first): n events span n - 1 intervals.
    
    Args:
        events: Video events in arrival order
        requested_fps: Requested frame rate, adds fps_error when given
        
    Returns:
        Dictionary with frames, duration, measured_fps and, when possible, fps_error
    """
    metrics = {'frames': float(len(events)), 'duration': 0.0, 'measured_fps': 0.0}
    if len(events) < 2:
        return metrics
    
    duration = events[-1].timestamp - events[0].timestamp
    metrics['duration'] = duration
    if duration > 0:
        metrics['measured_fps'] = (len(events) - 1) / duration
        if requested_fps:
            metrics['fps_error'] = abs(metrics['measured_fps'] - requested_fps) / requested_fps
    return metrics


def check_frame_count(events: Sequence[FrameEvent], required: int, kind: str = "video") -> CheckResult:
    received = len(events)
    metrics = {'received': float(received), 'required': float(required)}
    if received >= required:
        return CheckResult("frame_count", CheckStatus.PASS,
                           f"✅ {kind} frames received: {received}/{required}", metrics)
    return CheckResult("frame_count", CheckStatus.FAIL,
                       f"❌ expected {required} {kind} frames, received {received}", metrics)


def check_interval_error(video: Sequence[FrameEvent], expected_interval: float,
                         allowed_error: float = 0.3) -> CheckResult:
    """Average relative deviation of video frame gaps from the expected gap.
    
    error_i = |dt_i - expected| / expected, averaged over all adjacent
    pairs. Passes when the average is strictly below allowed_error.
    
    Args:
        video: Video events in arrival order
        expected_interval: 1 / requested fps, in seconds
        allowed_error: Maximum average relative error
        
    Returns:
        CheckResult named "interval_error"; INSUFFICIENT_DATA with fewer
        than two video events
    """
    if len(video) < 2 or not expected_interval:
        return CheckResult("interval_error", CheckStatus.INSUFFICIENT_DATA,
                           f"⚠️ interval check skipped: {len(video)} video frame(s), need at least 2")
    
    intervals = frame_intervals(video)
    errors = np.abs(intervals - expected_interval) / expected_interval
    average_error = float(np.mean(errors))
    
    details = tuple(
        f"interval {i}: expected {expected_interval:.4f}s, actual {actual:.4f}s, error {error * 100:.1f}%"
        for i, (actual, error) in enumerate(zip(intervals, errors), start=1)
    )
    metrics = {
        'average_error': average_error,
        'max_error': float(np.max(errors)),
        'intervals': float(len(intervals)),
        'allowed_error': allowed_error,
    }
    
    if average_error < allowed_error:
        return CheckResult("interval_error", CheckStatus.PASS,
                           f"✅ average interval error {average_error * 100:.1f}% within tolerance",
                           metrics, details=details)
    return CheckResult("interval_error", CheckStatus.FAIL,
                       f"❌ average interval error {average_error * 100:.1f}% exceeds "
                       f"{allowed_error * 100:.0f}%",
                       metrics, details=details)


def check_fps_error(video: Sequence[FrameEvent], requested_fps: float,
                    allowed_error: float = 0.3) -> CheckResult:
    metrics = measure_rate(video, requested_fps)
    if 'fps_error' not in metrics:
        return CheckResult("fps_error", CheckStatus.INSUFFICIENT_DATA,
                           f"⚠️ {requested_fps:g}fps: not enough frames to measure the rate", metrics)
    
    fps_error = metrics['fps_error']
    summary = (f"{requested_fps:g}fps: {int(metrics['frames'])} frames in {metrics['duration']:.2f}s, "
               f"measured {metrics['measured_fps']:.1f}fps, error {fps_error * 100:.1f}%")
    if fps_error <= allowed_error:
        return CheckResult("fps_error", CheckStatus.PASS, f"✅ {summary}", metrics)
    return CheckResult("fps_error", CheckStatus.FAIL, f"❌ {summary}", metrics)


def check_audio_continuity(video: Sequence[FrameEvent], audio: Sequence[FrameEvent],
                           expected_interval: Optional[float], min_ratio: float = 1.0,
                           gap_factor: float = 3.0) -> CheckResult:
    """Audio must arrive at least as often as video, without long gaps.
    
    Args:
        video: Video events
        audio: Audio events
        expected_interval: Expected video interval in seconds
        min_ratio: Minimum audio/video count ratio
        gap_factor: Largest audio gap must stay below gap_factor * expected_interval
    """
    if not video or not audio or not expected_interval:
        return CheckResult("audio_continuity", CheckStatus.INSUFFICIENT_DATA,
                           f"⚠️ audio continuity skipped ({len(video)} video, {len(audio)} audio)")
    
    ratio = len(audio) / len(video)
    metrics = {'audio_video_ratio': ratio}
    details = [f"audio/video frame ratio: {ratio:.2f}"]
    
    if ratio < min_ratio:
        return CheckResult("audio_continuity", CheckStatus.FAIL,
                           f"❌ audio arrives too rarely (ratio {ratio:.2f} < {min_ratio:.2f})",
                           metrics, failing_field="audio_video_ratio", details=tuple(details))
    
    gaps = frame_intervals(audio)
    if len(gaps):
        max_gap = float(np.max(gaps))
        metrics['max_audio_gap'] = max_gap
        details.append(f"largest audio gap: {max_gap:.4f}s")
        if max_gap >= expected_interval * gap_factor:
            return CheckResult("audio_continuity", CheckStatus.FAIL,
                               f"❌ audio gap {max_gap:.4f}s exceeds {gap_factor:g}x frame interval",
                               metrics, failing_field="max_audio_gap", details=tuple(details))
    
    return CheckResult("audio_continuity", CheckStatus.PASS,
                       "✅ audio received continuously", metrics, details=tuple(details))


def check_drift(video: Sequence[FrameEvent], requested_fps: float, long_factor: float = 1.5,
                long_fraction: float = 0.1, min_fps_ratio: float = 0.7) -> CheckResult:
    """Extended-run stability: few long gaps and a sustained average rate.
    
    An interval is "long" when it exceeds long_factor * expected interval.
    Passes when long intervals are at most long_fraction of all frames and
    the average rate is at least min_fps_ratio of the requested rate.
    """
    if len(video) < 2 or requested_fps <= 0:
        return CheckResult("drift", CheckStatus.INSUFFICIENT_DATA,
                           f"⚠️ drift check skipped: {len(video)} video frame(s)")
    
    expected_interval = 1.0 / requested_fps
    intervals = frame_intervals(video)
    long_intervals = int(np.count_nonzero(intervals > expected_interval * long_factor))
    rate = measure_rate(video, requested_fps)
    
    metrics = {
        'long_intervals': float(long_intervals),
        'max_interval': float(np.max(intervals)),
        'average_fps': rate['measured_fps'],
        'duration': rate['duration'],
    }
    details = (
        f"total capture time: {rate['duration']:.1f}s",
        f"video frames: {len(video)}",
        f"average fps: {rate['measured_fps']:.2f}",
        f"largest interval: {metrics['max_interval']:.3f}s",
        f"long intervals: {long_intervals}",
    )
    
    problems = []
    if long_intervals > len(video) * long_fraction:
        problems.append(f"{long_intervals} long intervals (> {long_fraction * 100:.0f}% of frames)")
    if rate['measured_fps'] < requested_fps * min_fps_ratio:
        problems.append(f"average fps below {min_fps_ratio * 100:.0f}% of {requested_fps:g}")
    
    if problems:
        return CheckResult("drift", CheckStatus.FAIL, "❌ " + "; ".join(problems),
                           metrics, details=details)
    return CheckResult("drift", CheckStatus.PASS,
                       f"✅ stable over {rate['duration']:.1f}s ({rate['measured_fps']:.2f}fps average)",
                       metrics, details=details)


def check_audio_presence(audio: Sequence[FrameEvent]) -> CheckResult:
    metrics = {'audio_frames': float(len(audio))}
    if audio:
        return CheckResult("audio_presence", CheckStatus.PASS,
                           f"✅ received {len(audio)} audio frame(s)", metrics)
    return CheckResult("audio_presence", CheckStatus.FAIL, "❌ no audio frames received", metrics)


def check_audio_count(audio: Sequence[FrameEvent], minimum: float,
                      name: str = "audio_count") -> CheckResult:
    """Warn (never fail) when fewer audio frames than minimum arrived"""
    metrics = {'audio_frames': float(len(audio)), 'minimum': float(minimum)}
    if len(audio) >= minimum:
        return CheckResult(name, CheckStatus.PASS, f"✅ audio frames: {len(audio)}", metrics)
    return CheckResult(name, CheckStatus.INSUFFICIENT_DATA,
                       f"⚠️ audio frames may be too few ({len(audio)}, expected {minimum:g})", metrics)
