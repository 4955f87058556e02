"""
ViolationRecord model for stop-line violations.
"""

from __future__ import annotations

import base64
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_OBJECT_LABEL = "Unidentified object"

_DATA_URL_PREFIX = "data:image/jpeg;base64,"


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ViolationRecord:
    """
    Evidence record emitted when an object crosses without a complete stop.

    Attributes:
        id: Opaque unique identifier.
        timestamp: Unix timestamp when the record was finalized.
        evidence_photo: Still image reference (JPEG data URL, "" if capture failed).
        evidence_video: Path to the recorded clip, if one was produced.
        object_label: Description of the offending object.
        stop_duration_at_crossing: Whole seconds stopped before crossing.
    """
    evidence_photo: str
    stop_duration_at_crossing: int
    object_label: str = DEFAULT_OBJECT_LABEL
    evidence_video: Optional[str] = None
    id: str = field(default_factory=new_record_id)
    timestamp: float = field(default_factory=time.time)

    @property
    def has_photo(self) -> bool:
        return bool(self.evidence_photo)

    @property
    def has_video(self) -> bool:
        return bool(self.evidence_video)

    def photo_bytes(self) -> Optional[bytes]:
        """Decode the still evidence back to JPEG bytes (None if absent or not a data URL)."""
        if not self.evidence_photo.startswith(_DATA_URL_PREFIX):
            return None
        return base64.b64decode(self.evidence_photo[len(_DATA_URL_PREFIX):])

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "evidence_photo": self.evidence_photo,
            "evidence_video": self.evidence_video,
            "object_label": self.object_label,
            "stop_duration_at_crossing": self.stop_duration_at_crossing,
        }
