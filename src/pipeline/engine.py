"""
Sampling engine for the stop-line monitor.

On a fixed cadence the engine takes the feed's current frame, downscales and
encodes it, classifies it and forwards the verdict to the detection state
machine. At most one classification is outstanding at any time: a tick that
finds the previous call still running is skipped, so a slow service drops
frames instead of queueing them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple

from classification.adapter import ClassifierAdapter
from detection.state_machine import DetectionStateMachine
from models.classification import Classification
from models.config import (
    DEFAULT_SAMPLE_INTERVAL_S,
    DEFAULT_SAMPLE_JPEG_QUALITY,
    DEFAULT_SAMPLE_RESOLUTION,
    SamplingConfig,
)
from models.frame import FrameData
from models.lifecycle import DetectionSnapshot


class FrameProvider(Protocol):
    def current_frame(self) -> Optional[FrameData]:
        ...


@dataclass
class PipelineConfig:
    """
    Configuration for the sampling engine.

    Attributes:
        interval_s: Seconds between sampling ticks.
        resolution: (width, height) frames are downscaled to before upload.
        jpeg_quality: JPEG quality of uploaded samples.
        stats_log_interval_s: Seconds between status log messages.
    """
    interval_s: float = DEFAULT_SAMPLE_INTERVAL_S
    resolution: Tuple[int, int] = DEFAULT_SAMPLE_RESOLUTION
    jpeg_quality: int = DEFAULT_SAMPLE_JPEG_QUALITY
    stats_log_interval_s: float = 60.0

    @classmethod
    def from_sampling_config(cls, cfg: SamplingConfig) -> "PipelineConfig":
        return cls(
            interval_s=cfg.interval_s,
            resolution=tuple(cfg.resolution),
            jpeg_quality=cfg.jpeg_quality,
            stats_log_interval_s=cfg.stats_log_interval_s,
        )


@dataclass
class PipelineStats:
    """Runtime statistics for the sampling engine."""
    ticks: int = 0
    skipped_ticks: int = 0
    missing_frames: int = 0
    samples: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "ticks": self.ticks,
            "skipped_ticks": self.skipped_ticks,
            "missing_frames": self.missing_frames,
            "samples": self.samples,
            "errors": self.errors,
            "uptime_seconds": int(time.time() - self.start_time),
        }


SampleCallback = Callable[[Classification, DetectionSnapshot], None]


class SamplingEngine:
    """
    Periodic sampler driving the detection state machine.

    Example:
        engine = SamplingEngine(feed, adapter, state_machine, PipelineConfig())
        task = asyncio.create_task(engine.run())
        ...
        engine.stop()
    """

    def __init__(
        self,
        frames: FrameProvider,
        adapter: ClassifierAdapter,
        state_machine: DetectionStateMachine,
        config: Optional[PipelineConfig] = None,
    ):
        self.frames = frames
        self.adapter = adapter
        self.state_machine = state_machine
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._running = False
        self._busy = False
        self._inflight: Optional[asyncio.Task] = None
        self._callbacks: List[SampleCallback] = []

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_busy(self) -> bool:
        """Whether a classification call is outstanding."""
        return self._busy

    def add_callback(self, callback: SampleCallback) -> None:
        """
        Add a callback to be called after each classification is applied.

        Args:
            callback: Function taking (classification, snapshot) as arguments.
        """
        self._callbacks.append(callback)

    async def run(self) -> None:
        """Tick every interval_s until stop() is called."""
        self._running = True
        self.stats = PipelineStats()
        logging.info(f"Sampling started: interval={self.config.interval_s}s, resolution={self.config.resolution}")

        try:
            while self._running:
                self.tick()
                self._handle_periodic_tasks()
                await asyncio.sleep(self.config.interval_s)
        finally:
            self._running = False
            logging.info("Sampling stopped")

    def stop(self) -> None:
        """Signal the loop to stop after the current tick."""
        self._running = False

    def tick(self) -> Optional[asyncio.Task]:
        """
        Run one sampling tick.

        Returns the classification task, or None if the tick was skipped.
        Must be called from within the running event loop.
        """
        self.stats.ticks += 1

        if self._busy:
            self.stats.skipped_ticks += 1
            logging.debug("Previous classification still in flight, tick skipped")
            return None

        frame_data = self.frames.current_frame()
        if frame_data is None:
            self.stats.missing_frames += 1
            return None

        self._busy = True
        try:
            self._inflight = asyncio.get_running_loop().create_task(self._sample(frame_data))
        except Exception:
            self._busy = False
            raise
        return self._inflight

    async def _sample(self, frame_data: FrameData) -> None:
        try:
            sample = frame_data.to_sample(self.config.resolution, self.config.jpeg_quality)
            self.stats.samples += 1
            classification = await self.adapter.classify(sample)
            self.state_machine.update(classification)

            snapshot = self.state_machine.snapshot()
            for callback in self._callbacks:
                try:
                    callback(classification, snapshot)
                except Exception as e:
                    logging.warning(f"Callback error: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.errors += 1
            logging.error(f"Sampling tick failed: {e}")
        finally:
            self._busy = False
            self._inflight = None

    async def wait_idle(self) -> None:
        """Wait for the outstanding classification, if any."""
        task = self._inflight
        if task is not None:
            await asyncio.wait([task])

    async def cancel_inflight(self) -> None:
        task = self._inflight
        if task is None:
            return
        task.cancel()
        await asyncio.wait([task])
        self._busy = False
        self._inflight = None

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval_s:
            snapshot = self.state_machine.snapshot()
            logging.info(
                f"Sampling stats: ticks={self.stats.ticks}, skipped={self.stats.skipped_ticks}, "
                f"samples={self.stats.samples}, classifier_failures={self.adapter.failure_count}, "
                f"state={snapshot.state.value}"
            )
            self.stats.last_stats_log_time = now
