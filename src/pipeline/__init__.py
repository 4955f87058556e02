"""
Pipeline module for the stop-line monitor.

The sampling engine orchestrates the periodic flow:
- Frame sampling from the live feed
- Classification through the classifier adapter
- Detection state updates (and, through them, violation capture)
"""

from .engine import SamplingEngine, PipelineConfig, PipelineStats

__all__ = [
    "SamplingEngine",
    "PipelineConfig",
    "PipelineStats",
]
