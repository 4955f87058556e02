"""
Evidence capture: still snapshots and video clips for violation records.
"""

from .recorder import ClipRecorder, PendingClip
from .snapshot import capture_snapshot

__all__ = ["ClipRecorder", "PendingClip", "capture_snapshot"]
