"""
Detection state machine for the stop-line rule.

Consumes one Classification per sampling tick and maintains the lifecycle of
the single object believed to be in frame:

    NONE -> APPROACHING -> STOPPED -> CROSSING        (compliant)
                              \\-----> VIOLATION       (crossed before the threshold)

Rules are evaluated in fixed priority order: absence, approach, at-line,
crossing. While a violation capture is in flight every rule except crossing
is suppressed, and crossing is suppressed by the same guard, so a capture
cycle always completes against the subject that triggered it.

The stop timer is anchored at the first stationary at-line sighting of a
visit and only a return to NONE clears the anchor: stopping, moving again and
stopping again keeps accumulating from the original anchor.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from evidence.recorder import ClipRecorder
from models.classification import Classification, LinePosition
from models.config import DetectionConfig
from models.lifecycle import DetectionSnapshot, ObjectState
from violations.coordinator import ViolationCoordinator


class DetectionStateMachine:
    """
    Single-writer owner of the lifecycle state, stop timer and compliance flag.

    Args:
        config: Stop-rule configuration.
        coordinator: Violation coordinator consulted for the capture guard and
            triggered on non-compliant crossings.
        recorder: Optional evidence recorder started on approach.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        coordinator: Optional[ViolationCoordinator] = None,
        recorder: Optional[ClipRecorder] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or DetectionConfig()
        self.coordinator = coordinator
        self.recorder = recorder
        self._clock = clock
        self._state = ObjectState.NONE
        self._stop_anchor: Optional[float] = None
        self._stop_timer = 0
        self._compliant = False
        self._last: Optional[Classification] = None

    @property
    def state(self) -> ObjectState:
        return self._state

    @property
    def stop_timer(self) -> int:
        return self._stop_timer

    @property
    def is_compliant(self) -> bool:
        return self._compliant

    @property
    def capture_in_flight(self) -> bool:
        return self.coordinator is not None and self.coordinator.is_capturing

    def snapshot(self) -> DetectionSnapshot:
        return DetectionSnapshot(
            state=self._state,
            stop_timer=self._stop_timer,
            is_compliant=self._compliant,
            capture_in_flight=self.capture_in_flight,
            last_classification=self._last,
        )

    def reset(self) -> None:
        """Return to the initial state (used when monitoring stops)."""
        self._set_state(ObjectState.NONE)
        self._clear_stop()
        self._last = None

    def update(self, classification: Classification) -> ObjectState:
        """Apply one classification and return the resulting state."""
        self._last = classification
        capturing = self.capture_in_flight

        if not classification.object_present:
            if self._state is not ObjectState.NONE and not capturing:
                self._set_state(ObjectState.NONE)
                self._clear_stop()
            return self._state

        position = classification.position

        if position is LinePosition.APPROACHING and not capturing:
            self._set_state(ObjectState.APPROACHING)
            if self.recorder is not None:
                self.recorder.start()

        elif position is LinePosition.AT_LINE and not capturing:
            if classification.is_moving:
                # Still rolling through the zone; the stop anchor is kept
                self._set_state(ObjectState.APPROACHING)
            else:
                self._update_stop()

        elif position is LinePosition.CROSSING and not capturing:
            if self._state not in (ObjectState.CROSSING, ObjectState.VIOLATION):
                self._handle_crossing(classification)

        return self._state

    def _update_stop(self) -> None:
        now = self._clock()
        if self._stop_anchor is None:
            self._stop_anchor = now
            self._set_state(ObjectState.STOPPED)
            return

        elapsed = int(math.floor(now - self._stop_anchor))
        if elapsed > self._stop_timer:
            self._stop_timer = elapsed
        if self._stop_timer >= self.config.stop_threshold_s and not self._compliant:
            self._compliant = True
            logging.info(f"Stop requirement met after {self._stop_timer}s")
        if self._state is ObjectState.APPROACHING:
            self._set_state(ObjectState.STOPPED)

    def _handle_crossing(self, classification: Classification) -> None:
        if self._compliant:
            self._set_state(ObjectState.CROSSING)
            logging.info(f"Compliant crossing after {self._stop_timer}s stopped")
            return

        if self.coordinator is None:
            logging.warning("Non-compliant crossing with no violation coordinator configured")
            self._set_state(ObjectState.VIOLATION)
            return

        if self.coordinator.trigger(classification, self._stop_timer):
            self._set_state(ObjectState.VIOLATION)

    def _clear_stop(self) -> None:
        self._stop_anchor = None
        self._stop_timer = 0
        self._compliant = False

    def _set_state(self, state: ObjectState) -> None:
        if state is not self._state:
            logging.debug(f"Object state {self._state.value} -> {state.value}")
            self._state = state
