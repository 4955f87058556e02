"""
Tests for the violation coordinator, alert signal and event log.
"""

import asyncio

import pytest
from unittest.mock import MagicMock

from conftest import StaticFeed
from evidence.recorder import ClipRecorder
from models.classification import Classification, LinePosition
from models.config import ViolationConfig
from models.violation import DEFAULT_OBJECT_LABEL, ViolationRecord
from violations.alert import AlertSignal
from violations.coordinator import CoordinatorState, ViolationCoordinator
from violations.event_log import EventLog


def _crossing(label="hand"):
    return Classification(True, LinePosition.CROSSING, True, label)


def _fast_config(settle=0.0):
    return ViolationConfig(settle_delay_s=settle, alert_duration_s=0.01)


class TestTrigger:
    def test_guard_round_trip(self, feed):
        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config())
            assert coordinator.state is CoordinatorState.IDLE

            assert coordinator.trigger(_crossing(), 1) is True
            assert coordinator.is_capturing is True
            assert coordinator.pending_task is not None

            await coordinator.wait_idle()
            return coordinator, log

        coordinator, log = asyncio.run(scenario())

        assert coordinator.state is CoordinatorState.IDLE
        assert coordinator.pending_task is None
        assert len(log) == 1
        record = log.latest()
        assert record.stop_duration_at_crossing == 1
        assert record.object_label == "hand"
        assert record.has_photo is True
        assert record.evidence_video is None

    def test_second_trigger_rejected_while_capturing(self, feed):
        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(settle=0.05))
            first = coordinator.trigger(_crossing(), 0)
            second = coordinator.trigger(_crossing(), 0)
            await coordinator.wait_idle()
            return first, second, log

        first, second, log = asyncio.run(scenario())

        assert first is True
        assert second is False
        assert len(log) == 1

    def test_default_label(self, feed):
        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config())
            coordinator.trigger(Classification(True, LinePosition.CROSSING, True, None), 0)
            await coordinator.wait_idle()
            return log

        log = asyncio.run(scenario())
        assert log.latest().object_label == DEFAULT_OBJECT_LABEL

    def test_missing_frame_gives_empty_photo(self):
        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(StaticFeed(None), log, _fast_config())
            coordinator.trigger(_crossing(), 2)
            await coordinator.wait_idle()
            return log

        log = asyncio.run(scenario())
        record = log.latest()
        assert record.evidence_photo == ""
        assert record.has_photo is False
        assert record.photo_bytes() is None

    def test_photo_captured_at_trigger_time(self, frame_data):
        feed = StaticFeed(frame_data)

        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(settle=0.02))
            coordinator.trigger(_crossing(), 0)
            feed.frame_data = None
            await coordinator.wait_idle()
            return log

        log = asyncio.run(scenario())
        assert log.latest().photo_bytes()[:2] == b"\xff\xd8"

    def test_alert_raised_and_cleared(self, feed):
        alert = AlertSignal()
        seen = []
        alert.add_listener(seen.append)

        async def scenario():
            coordinator = ViolationCoordinator(feed, EventLog(), _fast_config(), alert=alert)
            coordinator.trigger(_crossing(), 0)
            active_during = alert.is_active
            await coordinator.wait_idle()
            await asyncio.sleep(0.05)
            return active_during

        active_during = asyncio.run(scenario())

        assert active_during is True
        assert alert.is_active is False
        assert seen == [True, False]
        assert alert.activation_count == 1

    def test_trigger_requires_running_loop(self, feed):
        coordinator = ViolationCoordinator(feed, EventLog(), _fast_config())
        assert coordinator.trigger(_crossing(), 0) is False
        assert coordinator.state is CoordinatorState.IDLE


class TestRecorderHandoff:
    def test_clip_path_recorded_and_recorder_restarted(self, feed):
        recorder = MagicMock()
        clip = MagicMock()

        async def collect():
            return "output/evidence/violation_1.mp4"

        clip.collect = collect
        recorder.stop.return_value = clip

        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(), recorder=recorder)
            coordinator.trigger(_crossing(), 1)
            await coordinator.wait_idle()
            return log

        log = asyncio.run(scenario())

        recorder.stop.assert_called_once()
        recorder.start.assert_called_once()
        assert log.latest().evidence_video == "output/evidence/violation_1.mp4"
        assert log.latest().has_video is True

    def test_clip_failure_still_emits_record(self, feed):
        recorder = MagicMock()
        clip = MagicMock()

        async def collect():
            raise RuntimeError("codec unavailable")

        clip.collect = collect
        recorder.stop.return_value = clip

        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(), recorder=recorder)
            coordinator.trigger(_crossing(), 1)
            await coordinator.wait_idle()
            return coordinator, log

        coordinator, log = asyncio.run(scenario())

        assert coordinator.is_capturing is False
        assert len(log) == 1
        assert log.latest().evidence_video is None
        recorder.start.assert_called_once()

    def test_inactive_recorder_gives_no_video(self, feed):
        recorder = ClipRecorder(output_dir="unused")

        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(), recorder=recorder)
            coordinator.trigger(_crossing(), 1)
            await coordinator.wait_idle()
            return log

        log = asyncio.run(scenario())

        assert log.latest().evidence_video is None
        assert recorder.is_active is True

    def test_sink_failure_releases_guard(self, feed):
        log = MagicMock()
        log.append.side_effect = RuntimeError("sink down")
        recorder = MagicMock()
        recorder.stop.return_value = None

        async def scenario():
            coordinator = ViolationCoordinator(feed, log, _fast_config(), recorder=recorder)
            coordinator.trigger(_crossing(), 1)
            await coordinator.wait_idle()
            return coordinator

        coordinator = asyncio.run(scenario())

        assert coordinator.is_capturing is False
        recorder.start.assert_called_once()


class TestCancel:
    def test_cancel_releases_guard_without_record(self, feed):
        recorder = MagicMock()

        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(settle=10.0), recorder=recorder)
            coordinator.trigger(_crossing(), 0)
            await asyncio.sleep(0)
            await coordinator.cancel()
            return coordinator, log

        coordinator, log = asyncio.run(scenario())

        assert coordinator.is_capturing is False
        assert coordinator.pending_task is None
        assert len(log) == 0
        recorder.start.assert_not_called()

    def test_cancel_before_first_step(self, feed):
        async def scenario():
            log = EventLog()
            coordinator = ViolationCoordinator(feed, log, _fast_config(settle=10.0))
            coordinator.trigger(_crossing(), 0)
            await coordinator.cancel()
            return coordinator, log

        coordinator, log = asyncio.run(scenario())

        assert coordinator.is_capturing is False
        assert len(log) == 0

    def test_cancel_when_idle_is_noop(self, feed):
        coordinator = ViolationCoordinator(feed, EventLog(), _fast_config())
        asyncio.run(coordinator.cancel())
        assert coordinator.state is CoordinatorState.IDLE


class TestEventLog:
    def test_newest_first(self):
        log = EventLog()
        first = ViolationRecord(evidence_photo="", stop_duration_at_crossing=0)
        second = ViolationRecord(evidence_photo="", stop_duration_at_crossing=1)

        log.append(first)
        log.append(second)

        assert log.records() == (second, first)
        assert log.latest() is second
        assert len(log) == 2
        assert list(log) == [second, first]

    def test_get_by_id(self):
        log = EventLog()
        record = ViolationRecord(evidence_photo="", stop_duration_at_crossing=0)
        log.append(record)

        assert log.get(record.id) is record
        assert log.get("missing") is None

    def test_records_snapshot_is_immutable(self):
        log = EventLog()
        log.append(ViolationRecord(evidence_photo="", stop_duration_at_crossing=0))
        snapshot = log.records()
        log.append(ViolationRecord(evidence_photo="", stop_duration_at_crossing=0))
        assert len(snapshot) == 1

    def test_listener_errors_do_not_block_append(self):
        log = EventLog()
        received = []

        def broken(record):
            raise ValueError("boom")

        log.add_listener(broken)
        log.add_listener(received.append)
        record = ViolationRecord(evidence_photo="", stop_duration_at_crossing=0)
        log.append(record)

        assert received == [record]
        assert len(log) == 1

    def test_records_are_frozen(self):
        record = ViolationRecord(evidence_photo="", stop_duration_at_crossing=0)
        with pytest.raises(Exception):
            record.object_label = "changed"


class TestAlertSignal:
    def test_without_loop_pulses_listeners(self):
        alert = AlertSignal()
        seen = []
        alert.add_listener(seen.append)

        alert.activate(2.0)

        assert seen == [True, False]
        assert alert.is_active is False

    def test_reactivation_extends(self):
        alert = AlertSignal()

        async def scenario():
            alert.activate(0.05)
            await asyncio.sleep(0.03)
            alert.activate(0.05)
            await asyncio.sleep(0.03)
            still_active = alert.is_active
            await asyncio.sleep(0.05)
            return still_active

        assert asyncio.run(scenario()) is True
        assert alert.is_active is False
        assert alert.activation_count == 2
