"""
Observation layer: where frames come from.

Each source implements the ObservationSource interface and returns FrameData
objects; LiveFeed turns a source into a pull-based "current frame".
"""

from .base import ObservationSource, ObservationConfig, SourceUnavailableError
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config
from .feed import LiveFeed

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "SourceUnavailableError",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
    "LiveFeed",
]
