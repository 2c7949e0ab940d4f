"""Test Orchestrator

Top-level single-flight controller. Owns the capture target list, the
observer-facing run state and log, and admits at most one running scenario
at a time. It is the only writer of that state: the runner reports back
through the RunReporter interface and observers only read snapshots.
"""

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

from framecheck.engine.scenario_runner import RunReporter, ScenarioRunner
from framecheck.engine.scenarios import ScenarioError, get_scenario, scenario_names
from framecheck.models.enums import TargetKind
from framecheck.models.frames import CaptureTarget
from framecheck.models.interfaces import CaptureSource, CaptureSourceError
from framecheck.models.results import RunState, TestResult
from framecheck.models.scenarios import ScenarioDefinition


logger = logging.getLogger(__name__)


StateListener = Callable[[RunState], None]


class TestOrchestrator:
    """Single-flight test controller.
    
    Observer-facing state (is_running, current_scenario, progress,
    status_text, log_lines) can be read at any time; every transition
    replaces the RunState object as a whole and notifies subscribers.
    
    Attributes:
        source: Capture source used for enumeration and capture
        runner: ScenarioRunner executing admitted scenarios
        targets: Targets from the last load_targets()
        enable_logging: Record scenario log lines in log_lines
    """
    __test__ = False
    
    def __init__(self, source: CaptureSource, runner: Optional[ScenarioRunner] = None,
                 enable_logging: bool = True):
        self.source = source
        self.runner = runner or ScenarioRunner(source)
        self.targets: List[CaptureTarget] = []
        self.enable_logging = enable_logging
        
        self._selected_index = 0
        self._state = RunState()
        self._log: List[str] = []
        self._results: List[TestResult] = []
        self._listeners: List[StateListener] = []
        
        logger.info("TestOrchestrator initialized")
    
    # Observer-facing state
    
    @property
    def state(self) -> RunState:
        return self._state
    
    @property
    def is_running(self) -> bool:
        return self._state.is_running
    
    @property
    def current_scenario(self) -> str:
        return self._state.scenario
    
    @property
    def progress(self) -> float:
        return self._state.progress
    
    @property
    def status_text(self) -> str:
        return self._state.status_text
    
    @property
    def log_lines(self) -> Tuple[str, ...]:
        return tuple(self._log)
    
    @property
    def results(self) -> Tuple[TestResult, ...]:
        """TestResults produced by this orchestrator, newest last"""
        return tuple(self._results)
    
    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register listener for state and log changes.
        
        Args:
            listener: Called with the current RunState after every change
        
        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)
        
        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe
    
    def _publish(self, state: Optional[RunState] = None) -> None:
        if state is not None:
            self._state = state
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.warning(f"State listener failed: {e}")
    
    def _set_status(self, status_text: str) -> None:
        self._publish(replace(self._state, status_text=status_text))
    
    # Log
    
    def log(self, line: str) -> None:
        if self.enable_logging:
            self._log.append(line)
            self._publish()
    
    def progress_update(self, fraction: float, status_text: str) -> None:
        if self._state.is_running:
            self._publish(self._state.advance(fraction, status_text))
    
    def clear_log(self) -> None:
        self._log = []
        self._publish()
    
    # Targets
    
    async def load_targets(self, kind: TargetKind = TargetKind.ALL) -> List[CaptureTarget]:
        """Enumerate capture targets and select the first one.
        
        Returns:
            The loaded targets (empty when enumeration failed)
        """
        try:
            targets = list(await self.source.enumerate_targets(kind))
        except CaptureSourceError as e:
            logger.error(f"Target enumeration failed: {e}")
            self.log(f"❌ Failed to load targets: {e}")
            if not self._state.is_running:
                self._set_status("target loading failed")
            return []
        
        self.targets = targets
        self._selected_index = 0
        logger.info(f"Loaded {len(targets)} capture target(s)")
        if not self._state.is_running:
            self._set_status(f"targets loaded: {len(targets)}")
        return targets
    
    def select_target(self, index: int) -> Optional[CaptureTarget]:
        self._selected_index = index
        target = self.selected_target
        if target is None:
            logger.warning(f"No capture target at index {index}")
        return target
    
    @property
    def selected_target(self) -> Optional[CaptureTarget]:
        if 0 <= self._selected_index < len(self.targets):
            return self.targets[self._selected_index]
        return None
    
    # Running
    
    async def run(self, scenario: Union[str, ScenarioDefinition]) -> Optional[TestResult]:
        """Run one scenario if nothing else is running.
        
        Admission is decided before the first suspension point, so of any
        number of concurrent calls at most one is admitted.
        
        Args:
            scenario: Catalog name or an explicit ScenarioDefinition
        
        Returns:
            The finalized TestResult, or None when the request was rejected
            or the run failed outright
        """
        if self._state.is_running:
            logger.warning("Test request rejected: another test is already running")
            self.log("⚠️ another test is already running")
            return None
        
        try:
            definition = scenario if isinstance(scenario, ScenarioDefinition) else get_scenario(scenario)
        except ScenarioError as e:
            logger.error(str(e))
            self.log(f"❌ {e}")
            return None
        
        target = self.selected_target
        if target is None:
            logger.error("Test request rejected: no capture target selected")
            self.log("❌ no capture target selected")
            return None
        
        self._publish(RunState.running(definition.name, f"{definition.title} starting..."))
        try:
            result = await self.runner.run(definition, target, _Reporter(self))
        except Exception as e:
            logger.error(f"Scenario '{definition.name}' failed: {e}", exc_info=True)
            self.log(f"❌ {definition.title} failed: {e}")
            self._publish(self._state.idle(f"{definition.title} failed"))
            return None
        
        self._results.append(result)
        self._publish(self._state.advance(1.0).idle(f"{definition.title} completed"))
        return result
    
    async def run_all(self, names: Optional[Sequence[str]] = None) -> List[TestResult]:
        """Run catalog scenarios one after another (default: all of them)"""
        results = []
        for name in (scenario_names() if names is None else names):
            result = await self.run(name)
            if result is not None:
                results.append(result)
        return results


class _Reporter(RunReporter):
    """Forwards runner callbacks into the orchestrator's state"""
    
    def __init__(self, orchestrator: TestOrchestrator):
        self.orchestrator = orchestrator
    
    def log(self, line: str) -> None:
        self.orchestrator.log(line)
    
    def progress(self, fraction: float, status_text: str) -> None:
        self.orchestrator.progress_update(fraction, status_text)
