"""
Violation handling: the capture coordinator, the event log and the alert cue.
"""

from .alert import AlertSignal
from .coordinator import CoordinatorState, ViolationCoordinator
from .event_log import EventLog

__all__ = [
    "AlertSignal",
    "CoordinatorState",
    "ViolationCoordinator",
    "EventLog",
]
