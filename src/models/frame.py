"""
Frame models: captured video frames and the encoded samples sent for classification.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    A captured video frame plus capture metadata.

    Attributes:
        frame: The raw frame data as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def to_sample(
        self,
        resolution: Optional[Tuple[int, int]] = None,
        jpeg_quality: int = 50,
    ) -> "FrameSample":
        """
        Encode this frame as a JPEG sample, optionally downscaled.

        Args:
            resolution: Target (width, height). None keeps the native size.
            jpeg_quality: JPEG quality, 1-100.

        Raises:
            ValueError: If the frame cannot be encoded.
        """
        image = self.frame
        if resolution is not None and tuple(resolution) != self.size:
            image = cv2.resize(image, tuple(resolution), interpolation=cv2.INTER_AREA)

        ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)])
        if not ok:
            raise ValueError(f"JPEG encoding failed for frame {self.frame_index}")

        h, w = image.shape[:2]
        return FrameSample(
            jpeg=buf.tobytes(),
            width=w,
            height=h,
            timestamp=self.timestamp,
            frame_index=self.frame_index,
        )


@dataclass(frozen=True)
class FrameSample:
    """
    A JPEG-encoded frame, ready to be shipped to the classification service.

    Attributes:
        jpeg: Encoded JPEG bytes.
        width: Encoded width in pixels.
        height: Encoded height in pixels.
        timestamp: Capture timestamp of the source frame.
        frame_index: Index of the source frame.
    """
    jpeg: bytes
    width: int
    height: int
    timestamp: float
    frame_index: int = 0

    def to_base64(self) -> str:
        return base64.b64encode(self.jpeg).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:image/jpeg;base64,{self.to_base64()}"
