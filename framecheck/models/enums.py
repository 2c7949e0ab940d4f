"""Enumerations for capture targets, media kinds and verdicts"""

from enum import Enum


class TargetKind(Enum):
    """Kinds of capturable sources (ALL is only valid as an enumeration filter)"""
    DISPLAY = "display"
    WINDOW = "window"
    ALL = "all"


class FrameKind(Enum):
    """Media kind carried by a FrameEvent"""
    VIDEO = "video"
    AUDIO = "audio"


class CaptureQuality(Enum):
    """Video quality tier requested from the capture source"""
    HIGH = 0
    MEDIUM = 1
    LOW = 2


class ImageFormat(Enum):
    """Image encoding of delivered video buffers"""
    JPEG = "jpeg"
    RAW = "raw"


class ImageQuality(Enum):
    """Encoder quality; only meaningful for JPEG"""
    HIGH = 0.9
    STANDARD = 0.75
    LOW = 0.3


class CheckStatus(Enum):
    """Outcome of a single Analyzer check"""
    PASS = "pass"
    FAIL = "fail"
    INSUFFICIENT_DATA = "insufficient_data"


class Verdict(Enum):
    """Verdict reported per checked property and per scenario"""
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class ScenarioPhase(Enum):
    """ScenarioRunner state machine"""
    CONFIGURING = "configuring"
    CAPTURING = "capturing"
    DRAINING = "draining"
    ANALYZING = "analyzing"
    DONE = "done"


class RunPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"
