"""
Monitoring session: start/stop lifecycle around the wired components.

Stopping tears down sampling and capture, cancels a violation finalize that
is still waiting out its settle delay (no record is emitted from a stopped
session), discards any partial recording and resets the detection state.
The event log survives stop/start.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from observation.base import SourceUnavailableError
from .context import RuntimeContext


class MonitoringStartError(RuntimeError):
    """Monitoring could not start; the message is meant for the operator."""


class MonitoringSession:
    def __init__(self, ctx: RuntimeContext):
        self.ctx = ctx
        self._feed_task: Optional[asyncio.Task] = None
        self._engine_task: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None
        self.last_error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def is_monitoring(self) -> bool:
        return self._engine_task is not None and not self._engine_task.done()

    async def start(self) -> None:
        """
        Open the capture device and begin sampling.

        Raises:
            MonitoringStartError: If the capture device is unavailable.
        """
        async with self._lock:
            if self.is_monitoring:
                return

            try:
                await asyncio.to_thread(self.ctx.feed.open)
            except SourceUnavailableError as e:
                self.last_error = str(e)
                logging.error(f"Monitoring not started: {e}")
                raise MonitoringStartError(str(e)) from e

            self.last_error = None
            self.ctx.state_machine.reset()
            self._feed_task = asyncio.create_task(self.ctx.feed.run())
            self._engine_task = asyncio.create_task(self.ctx.engine.run())
            self._started_at = time.time()
            logging.info("Monitoring started")

    async def stop(self) -> None:
        async with self._lock:
            if self._engine_task is None and self._feed_task is None:
                return

            self.ctx.engine.stop()
            self.ctx.feed.stop()
            await self._cancel(self._engine_task)
            await self.ctx.engine.cancel_inflight()
            await self.ctx.coordinator.cancel()
            await self._cancel(self._feed_task)

            if self.ctx.recorder is not None:
                self.ctx.recorder.discard()
            await self.ctx.feed.aclose()
            self.ctx.alert.clear()
            self.ctx.state_machine.reset()

            self._engine_task = None
            self._feed_task = None
            self._started_at = None
            logging.info("Monitoring stopped")

    async def aclose(self) -> None:
        await self.stop()
        await self.ctx.adapter.aclose()

    @staticmethod
    async def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is None:
            return
        if not task.done():
            task.cancel()
        await asyncio.wait([task])

    def status(self) -> Dict[str, Any]:
        """Aggregate status for the presentation layer."""
        snapshot = self.ctx.state_machine.snapshot()
        last = snapshot.last_classification
        uptime = time.time() - self._started_at if self._started_at else None
        return {
            "monitoring": self.is_monitoring,
            "state": snapshot.state.value,
            "stop_timer": snapshot.stop_timer,
            "stop_threshold_s": self.ctx.config.detection.stop_threshold_s,
            "is_compliant": snapshot.is_compliant,
            "capture_in_flight": snapshot.capture_in_flight,
            "alert_active": self.ctx.alert.is_active,
            "object_label": last.object_label if last else None,
            "violation_count": len(self.ctx.event_log),
            "uptime_seconds": int(uptime) if uptime is not None else None,
            "classifier_failures": self.ctx.adapter.failure_count,
            "sampling": self.ctx.engine.stats.to_dict(),
            "last_error": self.last_error,
        }
