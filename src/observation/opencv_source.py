"""
Camera capture through cv2.VideoCapture.

device_id is a camera index, an RTSP URL, or a video file path; OpenCV
picks the backend. The monitor only opens, reads and releases the device.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig, SourceUnavailableError
from .rtsp_utils import sanitize_url

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index, stream URL, or file path.
        open_attempts: Tries before open() gives up.
        retry_delay_s: Pause between tries.
        rotate: Clockwise rotation in degrees (0, 90, 180, 270).
    """
    device_id: Union[int, str] = 0
    open_attempts: int = 3
    retry_delay_s: float = 1.0
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        resolution = camera_cfg.get("resolution")
        return cls(
            source_id=source_id,
            resolution=tuple(resolution) if resolution else None,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(ObservationSource):
    """Frames from cv2.VideoCapture as FrameData, rotated and flipped per config."""

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._cv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._cv_config.device_id

    def open(self) -> None:
        if self._is_open:
            return

        attempts = max(1, self._cv_config.open_attempts)
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._cap = cap
                break
            cap.release()
            logging.warning(f"Could not open {sanitize_url(self.device_id)} (attempt {attempt}/{attempts})")
            if attempt < attempts:
                time.sleep(self._cv_config.retry_delay_s)
        else:
            raise SourceUnavailableError(
                f"Capture device {sanitize_url(self.device_id)} is unavailable; check that the "
                f"camera is connected, permitted, and not in use by another application"
            )

        # Only local cameras honor these; streams and files ignore them
        if isinstance(self.device_id, int) and self._cv_config.resolution:
            width, height = self._cv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            if self._cv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._cv_config.fps)

        self._is_open = True
        self._frame_index = 0
        logging.info(f"Camera opened: source_id={self.source_id}, device={sanitize_url(self.device_id)}")

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None

        cfg = self._cv_config
        if cfg.rotate in _ROTATIONS:
            frame = cv2.rotate(frame, _ROTATIONS[cfg.rotate])
        if cfg.flip_horizontal and cfg.flip_vertical:
            frame = cv2.flip(frame, -1)
        elif cfg.flip_horizontal:
            frame = cv2.flip(frame, 1)
        elif cfg.flip_vertical:
            frame = cv2.flip(frame, 0)

        self._frame_index += 1
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"Camera closed: source_id={self.source_id}")


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "main-camera") -> OpenCVSource:
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
