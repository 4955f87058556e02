"""
ClassifierAdapter: a classification call that never fails.

Any transport, HTTP, timeout or parse failure degrades to the neutral
"absent" classification, so the state machine always receives a well-formed
value and a service outage looks the same as an empty frame.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from models.classification import Classification
from models.frame import FrameSample
from .backend import ClassificationService


class ClassifierAdapter:
    """Wraps a ClassificationService with fail-open-to-absent semantics."""

    def __init__(self, service: ClassificationService):
        self.service = service
        self.success_count = 0
        self.failure_count = 0
        self.last_latency_s: Optional[float] = None

    async def classify(self, sample: FrameSample) -> Classification:
        started = time.monotonic()
        try:
            result = await self.service.classify(sample)
            if not isinstance(result, Classification):
                raise TypeError(f"Service returned {type(result).__name__}, expected Classification")
        except Exception as e:
            self.failure_count += 1
            logging.warning(f"Classification failed for frame {sample.frame_index}, treating as absent: {e!r}")
            return Classification.absent()
        finally:
            self.last_latency_s = time.monotonic() - started

        self.success_count += 1
        logging.debug(
            f"Frame {sample.frame_index} classified: present={result.object_present}, "
            f"position={result.position.value}, moving={result.is_moving}, "
            f"latency={self.last_latency_s:.2f}s"
        )
        return result

    async def aclose(self) -> None:
        close = getattr(self.service, "aclose", None)
        if close is not None:
            await close()
