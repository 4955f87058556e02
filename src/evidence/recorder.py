"""
Evidence clip recording.

ClipRecorder streams frames straight to disk with cv2.VideoWriter while it is
active, rotating to a new segment file every max_clip_seconds and keeping only
the previous segment, so neither memory nor disk grows with session length.

Stopping is a two-phase operation: stop() closes the open segment and hands
back a PendingClip immediately, and `await clip.collect()` joins the retained
segments into the final mp4 in a worker thread and returns its path.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from datetime import datetime
from typing import List, Optional, Tuple

import cv2

from models.frame import FrameData


def _remove(path: Optional[str]) -> None:
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            logging.warning(f"Could not remove {path}: {e}")


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")


class PendingClip:
    """
    Closed segment files waiting to be joined into one clip.

    Attributes:
        segments: Segment paths, oldest first.
        frame_counts: Frames written to each segment.
        output_path: Where the joined clip is written.
        max_frames: The clip keeps at most this many trailing frames.
    """

    def __init__(
        self,
        segments: List[str],
        frame_counts: List[int],
        output_path: str,
        fps: float,
        frame_size: Tuple[int, int],
        max_frames: int,
        fourcc: str = "mp4v",
    ):
        self.segments = segments
        self.frame_counts = frame_counts
        self.output_path = output_path
        self.fps = fps
        self.frame_size = frame_size
        self.max_frames = max_frames
        self.fourcc = fourcc
        self._lock = threading.Lock()
        self._written = False
        self._discarded = False

    @property
    def frame_count(self) -> int:
        return min(sum(self.frame_counts), self.max_frames)

    async def collect(self) -> Optional[str]:
        """
        Write the clip and return its path, or None if nothing was recorded.

        If the awaiting task is cancelled, the clip is deleted once the
        worker thread finishes.

        Raises:
            RuntimeError: If the video writer cannot be opened.
        """
        if self.frame_count == 0:
            logging.info("Evidence clip is empty, nothing to write")
            self._remove_segments()
            return None
        try:
            return await asyncio.to_thread(self._write)
        except asyncio.CancelledError:
            self.discard()
            raise

    def discard(self) -> None:
        """Drop the clip; a write still running in the worker removes its output when done."""
        with self._lock:
            self._discarded = True
            written = self._written
        if written:
            _remove(self.output_path)
            logging.info(f"Discarded evidence clip {self.output_path}")

    def _write(self) -> Optional[str]:
        try:
            if len(self.segments) == 1 and self.frame_counts[0] <= self.max_frames:
                os.replace(self.segments[0], self.output_path)
            else:
                self._join()
        finally:
            self._remove_segments()

        with self._lock:
            if self._discarded:
                _remove(self.output_path)
                logging.info(f"Evidence clip {self.output_path} dropped after cancellation")
                return None
            self._written = True

        logging.info(f"Evidence clip saved: {self.output_path} ({self.frame_count} frames)")
        return self.output_path

    def _join(self) -> None:
        skip = max(0, sum(self.frame_counts) - self.max_frames)
        writer = cv2.VideoWriter(
            self.output_path, cv2.VideoWriter_fourcc(*self.fourcc), self.fps, self.frame_size, True
        )
        if not writer.isOpened():
            raise RuntimeError(f"Could not open video writer for {self.output_path}")

        try:
            for path in self.segments:
                cap = cv2.VideoCapture(path)
                try:
                    while True:
                        ret, frame = cap.read()
                        if not ret or frame is None:
                            break
                        if skip > 0:
                            skip -= 1
                            continue
                        writer.write(frame)
                finally:
                    cap.release()
        finally:
            writer.release()

    def _remove_segments(self) -> None:
        for path in self.segments:
            if path != self.output_path:
                _remove(path)


class ClipRecorder:
    """
    Segment-rotating recorder fed by LiveFeed.

    start() is a no-op while already active; stop() on an inactive recorder
    returns None. At most two segment files exist at any time, and each
    holds at most max_clip_seconds of video.
    """

    def __init__(
        self,
        output_dir: str = "output/evidence",
        fps: float = 30.0,
        max_clip_seconds: float = 30.0,
        fourcc: str = "mp4v",
    ):
        self.output_dir = output_dir
        self.fps = float(fps) if fps else 30.0
        self.max_clip_seconds = max_clip_seconds
        self.fourcc = fourcc
        self._active = False
        self._writer: Optional[cv2.VideoWriter] = None
        self._frame_size: Optional[Tuple[int, int]] = None
        self._current_path: Optional[str] = None
        self._current_frames = 0
        self._previous_path: Optional[str] = None
        self._previous_frames = 0

    @property
    def max_frames(self) -> int:
        return max(1, int(self.fps * self.max_clip_seconds))

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def segment_paths(self) -> List[str]:
        """Segment files currently on disk, oldest first."""
        return [p for p in (self._previous_path, self._current_path) if p]

    @property
    def recorded_frames(self) -> int:
        """Frames that a stop() right now would put in the clip."""
        return min(self._previous_frames + self._current_frames, self.max_frames)

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        logging.debug("Evidence recording started")

    def add_frame(self, frame_data: FrameData) -> None:
        """LiveFeed listener: write a frame while recording."""
        if not self._active:
            return
        try:
            if self._writer is None:
                self._open_segment(frame_data.size)
            elif self._current_frames >= self.max_frames:
                self._rotate()

            frame = frame_data.frame
            if frame_data.size != self._frame_size:
                frame = cv2.resize(frame, self._frame_size)
            self._writer.write(frame)
            self._current_frames += 1
        except Exception as e:
            logging.warning(f"Evidence recording failed, recorder stopped: {e}")
            self.discard()

    def _open_segment(self, frame_size: Tuple[int, int]) -> None:
        if not os.path.exists(self.output_dir):
            os.makedirs(self.output_dir)

        if self._frame_size is None:
            self._frame_size = tuple(frame_size)
        path = os.path.join(self.output_dir, f".segment_{_timestamp()}.mp4")
        writer = cv2.VideoWriter(
            path, cv2.VideoWriter_fourcc(*self.fourcc), self.fps, self._frame_size, True
        )
        if not writer.isOpened():
            writer.release()
            raise RuntimeError(f"Could not open video writer for {path}")

        self._writer = writer
        self._current_path = path
        self._current_frames = 0

    def _rotate(self) -> None:
        """Close the current segment and start a new one, dropping the oldest."""
        self._writer.release()
        _remove(self._previous_path)
        self._previous_path = self._current_path
        self._previous_frames = self._current_frames
        self._writer = None
        self._open_segment(self._frame_size)
        logging.debug(f"Evidence segment rotated: {self._previous_path}")

    def _release_writer(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None

    def _reset(self) -> None:
        self._active = False
        self._frame_size = None
        self._current_path = None
        self._current_frames = 0
        self._previous_path = None
        self._previous_frames = 0

    def stop(self) -> Optional[PendingClip]:
        if not self._active:
            return None
        self._release_writer()

        segments: List[str] = []
        counts: List[int] = []
        for path, count in ((self._previous_path, self._previous_frames),
                            (self._current_path, self._current_frames)):
            if path:
                segments.append(path)
                counts.append(count)

        frame_size = self._frame_size or (0, 0)
        self._reset()

        output_path = os.path.join(self.output_dir, f"violation_{_timestamp()}.mp4")
        logging.debug(f"Evidence recording stopped with {sum(counts)} frames in {len(segments)} segment(s)")
        return PendingClip(segments, counts, output_path, self.fps, frame_size, self.max_frames, self.fourcc)

    def discard(self) -> None:
        """Stop without producing a clip (session teardown)."""
        self._release_writer()
        for path in self.segment_paths:
            _remove(path)
        self._reset()
