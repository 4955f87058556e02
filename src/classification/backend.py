"""
Classification service interface.

A service takes one encoded frame sample and returns a structured
Classification. Services may raise on any failure; ClassifierAdapter
absorbs those failures.
"""

from __future__ import annotations

from typing import Protocol

from models.classification import Classification
from models.frame import FrameSample


class ClassificationService(Protocol):
    async def classify(self, sample: FrameSample) -> Classification:
        ...
