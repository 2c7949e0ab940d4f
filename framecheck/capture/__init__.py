"""Capture session management and frame collection"""

from framecheck.capture.frame_collector import FrameCollector, CollectorSnapshot
from framecheck.capture.capture_session import CaptureSession, CaptureSessionError
from framecheck.capture.simulated import SimulatedCaptureSource

__all__ = [
    "FrameCollector",
    "CollectorSnapshot",
    "CaptureSession",
    "CaptureSessionError",
    "SimulatedCaptureSource",
]
