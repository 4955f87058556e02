"""
LiveFeed: keeps the most recent frame of an observation source available.

The feed pumps frames from a blocking ObservationSource in a worker thread and
exposes a pull-based current_frame(). Listeners (e.g. the evidence recorder)
receive every frame as it arrives.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from models.frame import FrameData
from .base import ObservationSource


FrameListener = Callable[[FrameData], None]


class LiveFeed:
    """
    Pull-based frame provider backed by an ObservationSource.

    Example:
        feed = LiveFeed(source)
        await asyncio.to_thread(feed.open)
        pump = asyncio.create_task(feed.run())
        frame = feed.current_frame()
    """

    def __init__(
        self,
        source: ObservationSource,
        max_consecutive_failures: int = 10,
        retry_delay_s: float = 0.5,
    ):
        self.source = source
        self.max_consecutive_failures = max_consecutive_failures
        self.retry_delay_s = retry_delay_s
        self._latest: Optional[FrameData] = None
        self._listeners: List[FrameListener] = []
        self._running = False
        self._pending_read: Optional[asyncio.Future] = None
        self.frames_read = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def add_listener(self, listener: FrameListener) -> None:
        """Register a callable that receives every frame read."""
        self._listeners.append(listener)

    def current_frame(self) -> Optional[FrameData]:
        """Most recent frame, or None when no frame is available."""
        return self._latest

    def open(self) -> None:
        """Open the underlying source (blocking; raises SourceUnavailableError)."""
        self.source.open()

    def publish(self, frame_data: FrameData) -> None:
        """Make a frame current and hand it to listeners."""
        self._latest = frame_data
        self.frames_read += 1
        for listener in self._listeners:
            try:
                listener(frame_data)
            except Exception as e:
                logging.warning(f"Frame listener error: {e}")

    async def run(self) -> None:
        """Pump frames until stop() is called or the source is exhausted."""
        self._running = True
        failures = 0
        min_interval = 1.0 / self.source.fps if self.source.fps else 0.0

        try:
            while self._running:
                started = time.monotonic()
                self._pending_read = asyncio.ensure_future(asyncio.to_thread(self.source.read))
                # Shielded: the read outlives a cancelled run() and wait_reader() awaits it
                frame_data = await asyncio.shield(self._pending_read)
                self._pending_read = None

                if not self._running:
                    break

                if frame_data is None:
                    failures += 1
                    if failures >= self.max_consecutive_failures:
                        logging.error(f"Too many consecutive frame failures ({failures}), feed stopped")
                        self._latest = None
                        break
                    await asyncio.sleep(self.retry_delay_s)
                    continue

                failures = 0
                self.publish(frame_data)

                remaining = min_interval - (time.monotonic() - started)
                await asyncio.sleep(remaining if remaining > 0 else 0)
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False

    async def wait_reader(self) -> None:
        """Wait for a source read still running in the worker thread."""
        pending = self._pending_read
        if pending is None:
            return
        await asyncio.wait([pending])
        self._pending_read = None
        if not pending.cancelled() and pending.exception() is not None:
            logging.warning(f"Frame read failed during shutdown: {pending.exception()}")

    async def aclose(self) -> None:
        """Stop pumping, let an in-flight read finish, then release the source."""
        self.stop()
        await self.wait_reader()
        self.close()

    def close(self) -> None:
        """Release the source. Call only when no read is in flight (see aclose())."""
        self._running = False
        self._latest = None
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
