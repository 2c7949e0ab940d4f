"""Scenario Runner

Executes one ScenarioDefinition against a capture source. Every step runs as
its own sub-cycle: a fresh FrameCollector, DeadlineGate and CaptureSession
are created, capture runs until the step's wait condition or deadline, the
session is stopped unconditionally, and only then is the frozen snapshot
analyzed.

State machine per sub-cycle:
    CONFIGURING -> CAPTURING -> DRAINING -> ANALYZING -> (next step) -> DONE
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from framecheck.analysis import analyze, measure, Tolerances
from framecheck.analysis.conformance import video_nonconformance, audio_nonconformance
from framecheck.analysis.timing import frame_intervals
from framecheck.capture.capture_session import CaptureSession
from framecheck.capture.frame_collector import FrameCollector, CollectorSnapshot
from framecheck.engine.deadline_gate import DeadlineGate
from framecheck.models.enums import FrameKind, ScenarioPhase
from framecheck.models.frames import CaptureTarget
from framecheck.models.interfaces import CaptureSource
from framecheck.models.results import SubCycleResult, TestResult
from framecheck.models.scenarios import ScenarioDefinition, ScenarioStep, WaitCondition


logger = logging.getLogger(__name__)


class RunReporter:
    """Receives log lines and progress from a running scenario.
    
    The default implementation ignores everything; TestOrchestrator
    overrides both methods to republish them.
    """
    
    def log(self, line: str) -> None:
        pass
    
    def progress(self, fraction: float, status_text: str) -> None:
        pass


class ScenarioRunner:
    """Runs scenario definitions one sub-cycle at a time.
    
    Errors inside a sub-cycle (rejected start, transport failure, a check
    raising) truncate that sub-cycle and are recorded in its result; the
    runner then moves on to the next step.
    
    Attributes:
        source: Capture source shared by every sub-cycle
        tolerances: Thresholds passed to the Analyzer
        poll_interval: DeadlineGate fallback poll period
        settle_delay: Overrides the scenario's pause between sub-cycles
        phase: Current state machine phase
        phase_history: Every phase entered during the last run, in order
    """
    
    def __init__(self, source: CaptureSource, tolerances: Optional[Tolerances] = None,
                 poll_interval: Optional[float] = None, settle_delay: Optional[float] = None):
        self.source = source
        self.tolerances = tolerances or Tolerances.from_config()
        self.poll_interval = poll_interval
        self.settle_delay = settle_delay
        self.phase = ScenarioPhase.DONE
        self.phase_history: List[ScenarioPhase] = []
    
    def _enter(self, phase: ScenarioPhase) -> None:
        self.phase = phase
        self.phase_history.append(phase)
        logger.debug(f"Scenario phase: {phase.value}")
    
    async def run(self, scenario: ScenarioDefinition, target: CaptureTarget,
                  reporter: Optional[RunReporter] = None) -> TestResult:
        """Run every step of scenario against target.
        
        Args:
            scenario: Scenario to execute
            target: Capture target used by every sub-cycle
            reporter: Receives log lines and progress updates
        
        Returns:
            Finalized TestResult with one SubCycleResult per step
        """
        reporter = reporter or RunReporter()
        result = TestResult(scenario=scenario.name)
        self.phase_history = []
        
        def emit(line: str) -> None:
            result.log(line)
            reporter.log(line)
            logger.info(line)
        
        emit(f"🎬 {scenario.title} on {target.label}")
        settle_delay = self.settle_delay if self.settle_delay is not None else scenario.settle_delay
        total = len(scenario.steps)
        
        for index, step in enumerate(scenario.steps):
            sub = SubCycleResult(label=step.label, config=step.config)
            try:
                await self._run_step(index, total, scenario, step, target, sub, emit, reporter)
            except Exception as e:
                sub.error = str(e) or e.__class__.__name__
                logger.error(f"Sub-cycle '{step.label}' failed: {e}", exc_info=True)
                emit(f"❌ {step.label}: {sub.error}")
            result.add_sub_result(sub)
            reporter.progress((index + 1) / total, f"{scenario.title}: {step.label} done")
            
            if index < total - 1 and settle_delay > 0:
                await asyncio.sleep(settle_delay)
        
        if scenario.is_sweep:
            emit("📊 Summary:")
            for line in self._summary(result.sub_results):
                emit(line)
        
        self._enter(ScenarioPhase.DONE)
        result.finalize()
        verdict_line = f"{scenario.title}: {result.verdict.value.upper()}"
        reporter.log(verdict_line)
        logger.info(verdict_line)
        return result
    
    async def _run_step(self, index: int, total: int, scenario: ScenarioDefinition, step: ScenarioStep,
                        target: CaptureTarget, sub: SubCycleResult, emit: Callable[[str], None],
                        reporter: RunReporter) -> None:
        self._enter(ScenarioPhase.CONFIGURING)
        emit(f"▶️ {step.label}: {step.config.describe()}, timeout {step.timeout:.1f}s")
        
        collector = FrameCollector(step.video_capacity, step.audio_capacity)
        gate = DeadlineGate(self.poll_interval)
        collector.add_listener(gate.notify)
        session = CaptureSession(self.source)
        predicate = self._predicate(step, collector)
        
        started_at = time.monotonic()
        
        def on_wake():
            fraction = self._step_fraction(step, collector, time.monotonic() - started_at)
            video = collector.count(FrameKind.VIDEO)
            audio = collector.count(FrameKind.AUDIO)
            reporter.progress((index + fraction) / total,
                              f"{scenario.title}: {step.label} ({video} video, {audio} audio)")
        
        self._enter(ScenarioPhase.CAPTURING)
        try:
            sub.started = await session.start(target, step.config, collector.record_sample,
                                              collector.record_error)
            if sub.started:
                sub.satisfied = await gate.wait(predicate, step.timeout, on_wake)
        finally:
            self._enter(ScenarioPhase.DRAINING)
            await session.stop()
            snapshot = collector.freeze()
        
        sub.metrics['capture_time'] = time.monotonic() - started_at
        if not sub.started:
            sub.error = f"capture source declined to start {target.label}"
            emit(f"❌ {step.label}: failed to start capture")
            return
        
        self._report_wait(step, sub, snapshot, emit)
        if snapshot.error is not None:
            sub.error = f"transport error: {snapshot.error}"
            emit(f"❌ {step.label}: {sub.error}")
        
        self._enter(ScenarioPhase.ANALYZING)
        sub.metrics.update(measure(snapshot, step))
        sub.intervals = tuple(float(gap) for gap in frame_intervals(snapshot.video))
        for check in analyze(snapshot, step, self.tolerances):
            sub.checks.append(check)
            emit(check.message)
            for detail in check.details:
                emit(f"   {detail}")
    
    def _report_wait(self, step: ScenarioStep, sub: SubCycleResult, snapshot: CollectorSnapshot,
                     emit: Callable[[str], None]) -> None:
        counts = f"{len(snapshot.video)} video, {len(snapshot.audio)} audio"
        if step.wait == WaitCondition.DURATION:
            emit(f"⏱️ captured for {sub.metrics['capture_time']:.1f}s ({counts})")
        elif sub.satisfied:
            emit(f"✅ condition met in {sub.metrics['capture_time']:.2f}s ({counts})")
        else:
            emit(f"⏱️ timed out after {step.timeout:.1f}s ({counts})")
    
    @staticmethod
    def _predicate(step: ScenarioStep, collector: FrameCollector) -> Callable[[], bool]:
        """Condition that ends the capture phase early.
        
        A transport error always ends it; otherwise it depends on the
        step's wait condition.
        """
        if step.wait == WaitCondition.FRAME_COUNT:
            def ready():
                return collector.failed or (
                    collector.has_at_least(FrameKind.VIDEO, step.required_video)
                    and collector.has_at_least(FrameKind.AUDIO, step.required_audio)
                )
        elif step.wait == WaitCondition.DURATION:
            def ready():
                return collector.failed
        else:
            def ready():
                if collector.failed:
                    return True
                seen = []
                for kind, wanted in ((FrameKind.VIDEO, step.format_video), (FrameKind.AUDIO, step.format_audio)):
                    if not wanted:
                        continue
                    event = collector.last_event(kind)
                    if event is None:
                        seen.append(False)
                        continue
                    if kind == FrameKind.VIDEO:
                        problem = video_nonconformance(event, step.video_format, step.video_quality)
                    else:
                        problem = audio_nonconformance(event)
                    # a non-conforming frame already decides the check
                    if problem is not None:
                        return True
                    seen.append(True)
                return all(seen)
        return ready
    
    @staticmethod
    def _step_fraction(step: ScenarioStep, collector: FrameCollector, elapsed: float) -> float:
        if step.wait == WaitCondition.FRAME_COUNT:
            needed = step.required_video + step.required_audio
            if needed:
                have = min(collector.count(FrameKind.VIDEO), step.required_video) + \
                    min(collector.count(FrameKind.AUDIO), step.required_audio)
                return have / needed
        return min(1.0, elapsed / step.timeout)
    
    @staticmethod
    def _summary(sub_results) -> List[str]:
        lines = []
        for sub in sub_results:
            line = f"   {sub.label}: {sub.verdict.value.upper()}"
            if 'measured_fps' in sub.metrics and sub.metrics.get('video_frames', 0) >= 2:
                line += f" ({sub.metrics['measured_fps']:.1f}fps measured)"
            if sub.error:
                line += f" - {sub.error}"
            lines.append(line)
        return lines
