"""
Violation coordinator: evidence capture for one non-compliant crossing at a time.

trigger() runs synchronously within a single sampling update (no suspension
point between checking and setting the guard), then schedules the finalize
step independently of the sampling cadence:

    IDLE --trigger()--> CAPTURING --(settle delay, stop clip, append record)--> IDLE

The guard returns to IDLE on every exit path of the finalize task, including
failures and cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol

from evidence.recorder import ClipRecorder
from evidence.snapshot import capture_snapshot
from models.classification import Classification
from models.config import ViolationConfig
from models.frame import FrameData
from models.violation import DEFAULT_OBJECT_LABEL, ViolationRecord
from .alert import AlertSignal
from .event_log import EventLog


class FrameProvider(Protocol):
    def current_frame(self) -> Optional[FrameData]:
        ...


class CoordinatorState(str, Enum):
    IDLE = "IDLE"
    CAPTURING = "CAPTURING"


class ViolationCoordinator:
    """
    Captures evidence and emits ViolationRecords.

    Args:
        frames: Source of the current frame for the still snapshot.
        event_log: Sink receiving finalized records.
        config: Timing configuration (settle delay, alert duration).
        alert: Optional alert raised on each trigger.
        recorder: Optional clip recorder; without it records carry only a photo.
    """

    def __init__(
        self,
        frames: Optional[FrameProvider],
        event_log: EventLog,
        config: Optional[ViolationConfig] = None,
        alert: Optional[AlertSignal] = None,
        recorder: Optional[ClipRecorder] = None,
    ):
        self.frames = frames
        self.event_log = event_log
        self.config = config or ViolationConfig()
        self.alert = alert
        self.recorder = recorder
        self._state = CoordinatorState.IDLE
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def is_capturing(self) -> bool:
        return self._state is CoordinatorState.CAPTURING

    @property
    def pending_task(self) -> Optional[asyncio.Task]:
        return self._task

    def trigger(self, classification: Classification, stop_duration: int) -> bool:
        """
        Start a capture cycle for a non-compliant crossing.

        Returns False (and does nothing) when a capture is already in flight.
        Must be called from within the running event loop.
        """
        if self._state is CoordinatorState.CAPTURING:
            return False
        self._state = CoordinatorState.CAPTURING

        label = classification.object_label or DEFAULT_OBJECT_LABEL
        try:
            if self.alert is not None:
                self.alert.activate(self.config.alert_duration_s)

            frame = self.frames.current_frame() if self.frames is not None else None
            photo = capture_snapshot(frame, jpeg_quality=self.config.snapshot_jpeg_quality)

            self._task = asyncio.get_running_loop().create_task(
                self._finalize(label, photo, stop_duration)
            )
            self._task.add_done_callback(self._on_finalize_done)
        except Exception as e:
            logging.error(f"Violation capture could not be scheduled: {e}")
            self._state = CoordinatorState.IDLE
            self._task = None
            return False

        logging.warning(f"Stop-line violation: {label} crossed after {stop_duration}s stopped")
        return True

    async def _finalize(self, label: str, photo: str, stop_duration: int) -> Optional[ViolationRecord]:
        cancelled = False
        try:
            await asyncio.sleep(self.config.settle_delay_s)
            video = await self._collect_clip()
            record = ViolationRecord(
                evidence_photo=photo,
                evidence_video=video,
                object_label=label,
                stop_duration_at_crossing=stop_duration,
            )
            self.event_log.append(record)
            return record
        except asyncio.CancelledError:
            cancelled = True
            logging.info("Pending violation capture cancelled, no record emitted")
            raise
        except Exception as e:
            logging.error(f"Violation finalize failed: {e}")
            return None
        finally:
            self._state = CoordinatorState.IDLE
            self._task = None
            if not cancelled and self.recorder is not None:
                self.recorder.start()

    def _on_finalize_done(self, task: asyncio.Task) -> None:
        # A task cancelled before its first step never runs the finally block
        if self._task is task:
            self._task = None
            self._state = CoordinatorState.IDLE

    async def _collect_clip(self) -> Optional[str]:
        if self.recorder is None:
            return None
        clip = self.recorder.stop()
        if clip is None:
            return None
        try:
            return await clip.collect()
        except Exception as e:
            logging.warning(f"Evidence clip unavailable: {e}")
            return None

    async def wait_idle(self) -> None:
        """Wait for a pending finalize (if any) to finish."""
        task = self._task
        if task is not None:
            await asyncio.wait([task])

    async def cancel(self) -> None:
        """Cancel a pending finalize; the guard is released without emitting a record."""
        task = self._task
        if task is None:
            return
        task.cancel()
        await asyncio.wait([task])
