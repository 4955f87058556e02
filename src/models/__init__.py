"""
Typed models for the stop-line monitor.
"""

from .frame import FrameData, FrameSample
from .classification import Classification, LinePosition
from .lifecycle import ObjectState, DetectionSnapshot
from .violation import ViolationRecord, DEFAULT_OBJECT_LABEL
from .config import (
    Config,
    CameraConfig,
    SamplingConfig,
    ClassifierConfig,
    DetectionConfig,
    ViolationConfig,
    EvidenceConfig,
    WebConfig,
)

__all__ = [
    # Frames
    "FrameData",
    "FrameSample",
    # Classification
    "Classification",
    "LinePosition",
    # Lifecycle
    "ObjectState",
    "DetectionSnapshot",
    # Violations
    "ViolationRecord",
    "DEFAULT_OBJECT_LABEL",
    # Config
    "Config",
    "CameraConfig",
    "SamplingConfig",
    "ClassifierConfig",
    "DetectionConfig",
    "ViolationConfig",
    "EvidenceConfig",
    "WebConfig",
]
