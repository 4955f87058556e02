"""
Classification model: one classifier verdict about the current frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class LinePosition(str, Enum):
    """Where the observed object is relative to the stop line."""
    APPROACHING = "approaching"
    AT_LINE = "at_line"
    CROSSING = "crossing"
    ABSENT = "absent"


# Alternate spellings accepted from classification services
_POSITION_ALIASES = {
    "at_stop_line": LinePosition.AT_LINE,
    "gone": LinePosition.ABSENT,
}


def parse_position(value: Any) -> LinePosition:
    """
    Parse a position string into a LinePosition.

    Raises:
        ValueError: If the value is not a known position.
    """
    if isinstance(value, LinePosition):
        return value
    text = str(value).strip().lower()
    if text in _POSITION_ALIASES:
        return _POSITION_ALIASES[text]
    return LinePosition(text)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass(frozen=True)
class Classification:
    """
    Structured result of classifying a single frame sample.

    Produced once per sampling tick and consumed once by the detection
    state machine.

    Attributes:
        object_present: Whether any foreign object is in the monitored zone.
        position: Position of the object relative to the stop line.
        is_moving: Whether the object shows signs of motion.
        object_label: Free-text description of the object, if provided.
    """
    object_present: bool
    position: LinePosition
    is_moving: bool = False
    object_label: Optional[str] = None

    @classmethod
    def absent(cls) -> "Classification":
        """The neutral 'nothing in frame' classification."""
        return cls(object_present=False, position=LinePosition.ABSENT, is_moving=False)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Classification":
        """
        Adapter: Create from a classification service payload.

        Accepts snake_case keys (object_present, position, is_moving,
        object_label) and the camelCase keys (vehiclePresent, status,
        isMoving, vehicleType) used by earlier service prompts.

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Classification payload must be an object, got {type(d).__name__}")

        present = d.get("object_present", d.get("vehiclePresent"))
        position = d.get("position", d.get("status"))
        if present is None or position is None:
            raise ValueError("Classification payload missing object_present/position")

        label = d.get("object_label", d.get("vehicleType"))
        return cls(
            object_present=_as_bool(present),
            position=parse_position(position),
            is_moving=_as_bool(d.get("is_moving", d.get("isMoving", False))),
            object_label=str(label) if label else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "object_present": self.object_present,
            "position": self.position.value,
            "is_moving": self.is_moving,
            "object_label": self.object_label,
        }
