"""Unit tests for ScenarioRunner"""

import pytest

from framecheck.capture.simulated import SimulatedCaptureSource
from framecheck.engine.scenario_runner import RunReporter, ScenarioRunner
from framecheck.models.enums import CheckStatus, ScenarioPhase, Verdict
from framecheck.models.frames import CaptureConfig
from framecheck.models.scenarios import ScenarioDefinition, ScenarioStep, WaitCondition


class RecordingReporter(RunReporter):
    def __init__(self):
        self.lines = []
        self.updates = []

    def log(self, line):
        self.lines.append(line)

    def progress(self, fraction, status_text):
        self.updates.append((fraction, status_text))


def frame_step(fps, frames, timeout=2.0, checks=("frame_count", "fps_error"), **kwargs):
    return ScenarioStep(label=f"{fps:g}fps", config=CaptureConfig(frame_rate=fps), timeout=timeout,
                        checks=checks, required_video=frames, **kwargs)


class TestScenarioRunner:
    """Test suite for ScenarioRunner"""

    @pytest.mark.asyncio
    async def test_single_step_passes(self, display_target):
        runner = ScenarioRunner(SimulatedCaptureSource(), poll_interval=0.02)
        scenario = ScenarioDefinition("quick", "Quick check", (frame_step(20.0, 3),))
        reporter = RecordingReporter()

        result = await runner.run(scenario, display_target, reporter)

        assert result.finalized
        assert result.verdict == Verdict.PASS
        sub = result.sub_results[0]
        assert sub.started and sub.satisfied
        assert sub.metrics['video_frames'] >= 3
        assert len(sub.intervals) == sub.metrics['video_frames'] - 1
        assert reporter.lines[-1] == "Quick check: PASS"
        assert result.log_lines[0].startswith("🎬 Quick check")

    @pytest.mark.asyncio
    async def test_phase_order(self, display_target):
        runner = ScenarioRunner(SimulatedCaptureSource(), poll_interval=0.02, settle_delay=0)
        scenario = ScenarioDefinition("two", "Two steps", (frame_step(20.0, 2), frame_step(10.0, 2)))

        await runner.run(scenario, display_target)

        cycle = [ScenarioPhase.CONFIGURING, ScenarioPhase.CAPTURING,
                 ScenarioPhase.DRAINING, ScenarioPhase.ANALYZING]
        assert runner.phase_history == cycle + cycle + [ScenarioPhase.DONE]
        assert runner.phase == ScenarioPhase.DONE

    @pytest.mark.asyncio
    async def test_rejected_start_continues(self, source_factory, display_target):
        source = source_factory(accept=False)
        runner = ScenarioRunner(source, poll_interval=0.02, settle_delay=0)
        scenario = ScenarioDefinition("sweep", "Sweep", (frame_step(30.0, 3), frame_step(15.0, 3)))

        result = await runner.run(scenario, display_target)

        assert source.start_calls == 2
        assert len(result.sub_results) == 2
        assert all("declined" in sub.error for sub in result.sub_results)
        assert not any(sub.checks for sub in result.sub_results)
        assert result.verdict == Verdict.FAIL
        assert any("Summary" in line for line in result.log_lines)

    @pytest.mark.asyncio
    async def test_timeout_is_analyzed(self, display_target):
        source = SimulatedCaptureSource(stall_after=2)
        runner = ScenarioRunner(source, poll_interval=0.02)
        scenario = ScenarioDefinition("stall", "Stall", (frame_step(20.0, 10, timeout=0.5),))

        result = await runner.run(scenario, display_target)

        sub = result.sub_results[0]
        assert not sub.satisfied
        assert sub.error is None
        assert sub.check("frame_count").failed
        assert any("timed out" in line for line in result.log_lines)

    @pytest.mark.asyncio
    async def test_transport_error_marks_sub_cycle_failed(self, display_target):
        source = SimulatedCaptureSource(fail_after=2)
        runner = ScenarioRunner(source, poll_interval=0.02)
        scenario = ScenarioDefinition("broken", "Broken", (frame_step(20.0, 10, timeout=3.0),))

        result = await runner.run(scenario, display_target)

        sub = result.sub_results[0]
        assert sub.error == "transport error: Simulated transport failure"
        assert sub.metrics['capture_time'] < 3.0
        assert sub.metrics['video_frames'] == 2
        assert result.verdicts["20fps/run"] == Verdict.FAIL

    @pytest.mark.asyncio
    async def test_step_exception_is_contained(self, display_target):
        runner = ScenarioRunner(SimulatedCaptureSource(), poll_interval=0.02)
        bad = frame_step(20.0, 2, checks=("no_such_check",))
        scenario = ScenarioDefinition("bad", "Bad", (bad, frame_step(20.0, 2)), settle_delay=0)

        result = await runner.run(scenario, display_target)

        assert "no_such_check" in result.sub_results[0].error
        assert result.sub_results[1].error is None
        assert result.sub_results[1].verdict == Verdict.PASS

    @pytest.mark.asyncio
    async def test_conforming_sample_wait_ends_early(self, display_target):
        step = ScenarioStep(label="format", config=CaptureConfig(frame_rate=10.0), timeout=3.0,
                            wait=WaitCondition.CONFORMING_SAMPLE, checks=("format_conformance",),
                            format_video=True, format_audio=True)
        runner = ScenarioRunner(SimulatedCaptureSource(), poll_interval=0.02)

        result = await runner.run(ScenarioDefinition("fmt", "Format", (step,)), display_target)

        sub = result.sub_results[0]
        assert sub.satisfied
        assert sub.metrics['capture_time'] < 1.5
        assert sub.check("format_conformance").passed

    @pytest.mark.asyncio
    async def test_nonconforming_sample_fails_fast(self, display_target):
        step = ScenarioStep(label="format", config=CaptureConfig(frame_rate=10.0), timeout=3.0,
                            wait=WaitCondition.CONFORMING_SAMPLE, checks=("format_conformance",),
                            format_video=True)
        source = SimulatedCaptureSource(video_overrides={"width": 0})
        runner = ScenarioRunner(source, poll_interval=0.02)

        result = await runner.run(ScenarioDefinition("fmt", "Format", (step,)), display_target)

        check = result.sub_results[0].check("format_conformance")
        assert check.failed
        assert check.failing_field == "width"
        assert result.sub_results[0].metrics['capture_time'] < 1.5

    @pytest.mark.asyncio
    async def test_duration_wait_runs_full_timeout(self, display_target):
        step = ScenarioStep(label="long", config=CaptureConfig(frame_rate=20.0), timeout=0.5,
                            wait=WaitCondition.DURATION, checks=("frame_count", "drift"))
        runner = ScenarioRunner(SimulatedCaptureSource(), poll_interval=0.02)

        result = await runner.run(ScenarioDefinition("long", "Long", (step,)), display_target)

        sub = result.sub_results[0]
        assert not sub.satisfied
        assert sub.metrics['capture_time'] >= 0.45
        assert sub.check("drift").status in (CheckStatus.PASS, CheckStatus.FAIL)
        assert sub.metrics['video_frames'] >= 5

    @pytest.mark.asyncio
    async def test_progress_reported_per_step(self, display_target):
        runner = ScenarioRunner(SimulatedCaptureSource(), poll_interval=0.02, settle_delay=0)
        scenario = ScenarioDefinition("two", "Two", (frame_step(20.0, 3), frame_step(20.0, 3)))
        reporter = RecordingReporter()

        await runner.run(scenario, display_target, reporter)

        fractions = [fraction for fraction, _ in reporter.updates]
        assert fractions[-1] == 1.0
        assert all(0.0 <= f <= 1.0 for f in fractions)
        assert (0.5, "Two: 20fps done") in reporter.updates
