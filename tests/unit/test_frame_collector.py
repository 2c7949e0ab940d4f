"""Unit tests for FrameCollector"""

import logging
import threading

from framecheck.capture.frame_collector import FrameCollector
from framecheck.models.enums import FrameKind


class FakeClock:
    def __init__(self, start=100.0, step=0.1):
        self.now = start
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


class TestFrameCollector:
    """Test suite for FrameCollector"""

    def test_initialization_uses_configured_capacities(self):
        collector = FrameCollector()
        assert collector.video_capacity == 10000
        assert collector.audio_capacity == 20000
        assert collector.count(FrameKind.VIDEO) == 0
        assert not collector.failed
        assert not collector.frozen

    def test_sequence_numbers_follow_arrival(self, make_video_sample, make_audio_sample):
        collector = FrameCollector(clock=FakeClock())
        collector.record_sample(make_video_sample())
        collector.record_sample(make_audio_sample())
        collector.record_sample(make_video_sample())

        snapshot = collector.freeze()
        assert [event.sequence for event in snapshot.video] == [0, 2]
        assert [event.sequence for event in snapshot.audio] == [1]
        assert snapshot.video[0].timestamp < snapshot.video[1].timestamp

    def test_combined_sample_shares_sequence(self, make_video_sample):
        collector = FrameCollector(clock=FakeClock())
        accepted = collector.record_sample(make_video_sample(with_audio=True))

        assert [event.kind for event in accepted] == [FrameKind.VIDEO, FrameKind.AUDIO]
        assert accepted[0].sequence == accepted[1].sequence
        assert accepted[0].timestamp == accepted[1].timestamp

    def test_capacity_drops_and_warns_once(self, make_video_sample, caplog):
        collector = FrameCollector(video_capacity=2, audio_capacity=1)
        with caplog.at_level(logging.WARNING, logger="framecheck.capture.frame_collector"):
            for _ in range(5):
                collector.record_sample(make_video_sample())

        snapshot = collector.freeze()
        assert len(snapshot.video) == 2
        assert snapshot.dropped[FrameKind.VIDEO] == 3
        warnings = [r for r in caplog.records if "capacity" in r.getMessage()]
        assert len(warnings) == 1

    def test_freeze_is_idempotent_and_final(self, make_video_sample):
        collector = FrameCollector()
        collector.record_sample(make_video_sample())
        first = collector.freeze()

        assert collector.record_sample(make_video_sample()) == []
        assert collector.freeze() is first
        assert len(first.video) == 1
        assert collector.frozen

    def test_first_error_is_kept(self):
        collector = FrameCollector()
        collector.record_error(RuntimeError("first"))
        collector.record_error(RuntimeError("second"))

        assert collector.failed
        assert collector.error == "first"
        assert collector.freeze().error == "first"

    def test_listeners_notified_and_isolated(self, make_video_sample):
        collector = FrameCollector()
        calls = []

        def broken():
            raise RuntimeError("listener bug")

        collector.add_listener(broken)
        collector.add_listener(lambda: calls.append(1))
        collector.record_sample(make_video_sample())
        collector.record_error(RuntimeError("boom"))

        assert len(calls) == 2

    def test_threshold_predicate(self, make_video_sample):
        collector = FrameCollector()
        ready = collector.threshold(FrameKind.VIDEO, 2)
        assert not ready()
        collector.record_sample(make_video_sample())
        assert not ready()
        collector.record_sample(make_video_sample())
        assert ready()
        assert collector.last_event(FrameKind.VIDEO).sequence == 1
        assert collector.last_event(FrameKind.AUDIO) is None

    def test_first_event_across_kinds(self, make_video_sample, make_audio_sample):
        collector = FrameCollector()
        collector.record_sample(make_audio_sample(timestamp=5.0))
        collector.record_sample(make_video_sample(timestamp=6.0))
        assert collector.freeze().first_event.source_timestamp == 5.0
        assert FrameCollector().freeze().first_event is None

    def test_concurrent_appends(self, make_video_sample):
        collector = FrameCollector()
        sample = make_video_sample()

        def produce():
            for _ in range(200):
                collector.record_sample(sample)

        threads = [threading.Thread(target=produce) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        sequences = [event.sequence for event in collector.freeze().video]
        assert len(sequences) == 800
        assert sequences == sorted(set(sequences))
