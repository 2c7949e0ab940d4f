"""Data models for check results, scenario results and run state"""

import time
from types import MappingProxyType
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from framecheck.models.enums import CheckStatus, Verdict, RunPhase
from framecheck.models.frames import CaptureConfig


class ResultFinalizedError(Exception):
    """Raised when a finalized TestResult is modified"""
    pass


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one Analyzer check
    
    Attributes:
        name: Check identifier (e.g., "interval_error")
        status: PASS, FAIL or INSUFFICIENT_DATA
        message: Human-readable summary line
        metrics: Numbers computed by the check
        failing_field: First non-conforming field, for format checks
        details: Extra log lines (e.g., one per measured interval)
    """
    name: str
    status: CheckStatus
    message: str
    metrics: Dict[str, float] = field(default_factory=dict)
    failing_field: Optional[str] = None
    details: tuple = ()
    
    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS
    
    @property
    def failed(self) -> bool:
        return self.status == CheckStatus.FAIL
    
    @property
    def verdict(self) -> Verdict:
        if self.status == CheckStatus.PASS:
            return Verdict.PASS
        if self.status == CheckStatus.FAIL:
            return Verdict.FAIL
        return Verdict.WARN


@dataclass
class SubCycleResult:
    """One capture/stop/analyze iteration of a scenario
    
    Attributes:
        label: Short description, usually derived from the capture config
        config: Capture configuration used
        started: Whether the capture source accepted the start request
        satisfied: Whether the gate condition was met before the deadline
        error: Error text when the sub-cycle was truncated or failed
        checks: Analyzer check results
        metrics: Raw measurements (counts, durations, fps)
        intervals: Gaps between consecutive video frames in seconds
    """
    label: str
    config: Optional[CaptureConfig] = None
    started: bool = False
    satisfied: bool = False
    error: Optional[str] = None
    checks: List[CheckResult] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)
    intervals: tuple = ()
    
    @property
    def failed(self) -> bool:
        return self.error is not None or any(check.failed for check in self.checks)
    
    @property
    def verdict(self) -> Verdict:
        if self.failed:
            return Verdict.FAIL
        if any(check.status == CheckStatus.INSUFFICIENT_DATA for check in self.checks):
            return Verdict.WARN
        return Verdict.PASS
    
    def check(self, name: str) -> Optional[CheckResult]:
        for result in self.checks:
            if result.name == name:
                return result
        return None


@dataclass
class TestResult:
    """Result of one scenario run
    
    Built up while the scenario runs and frozen by finalize(); any later
    mutation raises ResultFinalizedError.
    """
    __test__ = False
    
    scenario: str
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    log_lines: List[str] = field(default_factory=list)
    sub_results: List[SubCycleResult] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)
    
    def __setattr__(self, name, value):
        if getattr(self, '_finalized', False):
            raise ResultFinalizedError(f"TestResult '{self.scenario}' is finalized")
        object.__setattr__(self, name, value)
    
    @property
    def finalized(self) -> bool:
        return getattr(self, '_finalized', False)
    
    def log(self, line: str) -> None:
        if self.finalized:
            raise ResultFinalizedError(f"TestResult '{self.scenario}' is finalized")
        self.log_lines.append(line)
    
    def add_sub_result(self, sub_result: SubCycleResult) -> None:
        if self.finalized:
            raise ResultFinalizedError(f"TestResult '{self.scenario}' is finalized")
        self.sub_results.append(sub_result)
    
    def finalize(self) -> "TestResult":
        if self.finalized:
            return self
        self.finished_at = time.time()
        self.metrics['duration'] = self.finished_at - self.started_at
        self.metrics['sub_cycles'] = len(self.sub_results)
        self.metrics['failed_sub_cycles'] = sum(1 for sub in self.sub_results if sub.failed)
        self.metrics = MappingProxyType(dict(self.metrics))
        self.log_lines = tuple(self.log_lines)
        self.sub_results = tuple(self.sub_results)
        object.__setattr__(self, '_finalized', True)
        return self
    
    @property
    def verdicts(self) -> Dict[str, Verdict]:
        """Verdict per checked property, keyed "<sub-cycle label>/<check name>"
        
        Sub-cycles that failed before any check ran report under "<label>/run".
        """
        verdicts = {}
        for sub in self.sub_results:
            if sub.error is not None:
                verdicts[f"{sub.label}/run"] = Verdict.FAIL
            for check in sub.checks:
                verdicts[f"{sub.label}/{check.name}"] = check.verdict
        return verdicts
    
    @property
    def verdict(self) -> Verdict:
        values = list(self.verdicts.values())
        if not values:
            return Verdict.FAIL
        if Verdict.FAIL in values:
            return Verdict.FAIL
        if Verdict.WARN in values:
            return Verdict.WARN
        return Verdict.PASS


@dataclass(frozen=True)
class RunState:
    """Observer-facing state of the orchestrator
    
    Frozen so readers always see a consistent snapshot; the orchestrator
    replaces the whole object on every transition.
    """
    phase: RunPhase = RunPhase.IDLE
    scenario: str = ""
    progress: float = 0.0
    status_text: str = ""
    
    @property
    def is_running(self) -> bool:
        return self.phase == RunPhase.RUNNING
    
    @classmethod
    def running(cls, scenario: str, status_text: str = "") -> "RunState":
        return cls(phase=RunPhase.RUNNING, scenario=scenario, progress=0.0, status_text=status_text)
    
    def advance(self, progress: Optional[float] = None, status_text: Optional[str] = None) -> "RunState":
        changes = {}
        if progress is not None:
            changes['progress'] = min(1.0, max(0.0, progress))
        if status_text is not None:
            changes['status_text'] = status_text
        return replace(self, **changes)
    
    def idle(self, status_text: str) -> "RunState":
        return RunState(phase=RunPhase.IDLE, scenario=self.scenario, progress=self.progress,
                        status_text=status_text)
