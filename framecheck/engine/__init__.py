"""Scenario execution: deadline gate, scenario catalog, runner and orchestrator"""

from framecheck.engine.deadline_gate import DeadlineGate, GateBusyError
from framecheck.engine.scenarios import ScenarioError, build_catalog, get_scenario, scenario_names
from framecheck.engine.scenario_runner import RunReporter, ScenarioRunner
from framecheck.engine.orchestrator import TestOrchestrator

__all__ = [
    "DeadlineGate",
    "GateBusyError",
    "ScenarioError",
    "build_catalog",
    "get_scenario",
    "scenario_names",
    "RunReporter",
    "ScenarioRunner",
    "TestOrchestrator",
]
