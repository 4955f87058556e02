"""
Still-image evidence capture.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.frame import FrameData


def capture_snapshot(frame_data: Optional[FrameData], jpeg_quality: int = 80) -> str:
    """
    Encode a full-resolution frame as a JPEG data URL.

    Returns "" when no frame is available or encoding fails.
    """
    if frame_data is None:
        logging.warning("No frame available for violation snapshot")
        return ""
    try:
        return frame_data.to_sample(jpeg_quality=jpeg_quality).to_data_url()
    except Exception as e:
        logging.warning(f"Violation snapshot failed: {e}")
        return ""
