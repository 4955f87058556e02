"""
Lifecycle models for the object currently believed to be in frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .classification import Classification


class ObjectState(str, Enum):
    """Coarse lifecycle state of the observed object relative to the stop line."""
    NONE = "NONE"
    APPROACHING = "APPROACHING"
    STOPPED = "STOPPED"
    CROSSING = "CROSSING"
    VIOLATION = "VIOLATION"


@dataclass(frozen=True)
class DetectionSnapshot:
    """
    Immutable view of the detection state (for the API and callbacks).

    Attributes:
        state: Current lifecycle state.
        stop_timer: Whole seconds stopped at the line during this visit.
        is_compliant: Whether the stop requirement has been met.
        capture_in_flight: Whether a violation capture is pending.
        last_classification: Most recent classification seen, if any.
    """
    state: ObjectState
    stop_timer: int
    is_compliant: bool
    capture_in_flight: bool = False
    last_classification: Optional[Classification] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "stop_timer": self.stop_timer,
            "is_compliant": self.is_compliant,
            "capture_in_flight": self.capture_in_flight,
            "last_classification": (
                self.last_classification.to_dict() if self.last_classification else None
            ),
        }
