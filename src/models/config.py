"""
Typed configuration models matching the YAML config structure.

Timing constants are kept here as named defaults:

- DEFAULT_SAMPLE_INTERVAL_S: classification cadence. One call every 1.5s keeps
  service cost and latency bounded while still seeing a stop of a few seconds.
- DEFAULT_SAMPLE_RESOLUTION: frames are downscaled before upload to bound
  payload size.
- DEFAULT_STOP_THRESHOLD_S: minimum stationary time at the line to be compliant.
- DEFAULT_SETTLE_DELAY_S: time between a violation and finalizing its record,
  so the evidence clip covers a few seconds past the crossing.
- DEFAULT_ALERT_DURATION_S: how long the violation alert stays raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


DEFAULT_SAMPLE_INTERVAL_S = 1.5
DEFAULT_SAMPLE_RESOLUTION: Tuple[int, int] = (640, 480)
DEFAULT_SAMPLE_JPEG_QUALITY = 50
DEFAULT_STOP_THRESHOLD_S = 3
DEFAULT_SETTLE_DELAY_S = 3.0
DEFAULT_ALERT_DURATION_S = 2.0
DEFAULT_SNAPSHOT_JPEG_QUALITY = 80
DEFAULT_CLASSIFIER_TIMEOUT_S = 10.0

DEFAULT_CLASSIFIER_PROMPT = (
    "Act as a high-sensitivity computer vision system. Detect any object or "
    "entity that enters the monitored zone, focusing on the horizontal control "
    "line in the lower third of the image. Report its position relative to the "
    "line: 'approaching' (in view, not touching the line), 'at_line' (on or "
    "touching the line), 'crossing' (past the line), or 'absent' (nothing "
    "detected). Set is_moving to false only when the object at the line shows "
    "no sign of motion. Return strict JSON with keys object_present, position, "
    "is_moving and object_label."
)


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class SamplingConfig:
    """Sampling loop configuration."""
    interval_s: float = DEFAULT_SAMPLE_INTERVAL_S
    resolution: List[int] = field(default_factory=lambda: list(DEFAULT_SAMPLE_RESOLUTION))
    jpeg_quality: int = DEFAULT_SAMPLE_JPEG_QUALITY
    stats_log_interval_s: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SamplingConfig":
        return cls(
            interval_s=float(d.get("interval_s", DEFAULT_SAMPLE_INTERVAL_S)),
            resolution=d.get("resolution", list(DEFAULT_SAMPLE_RESOLUTION)),
            jpeg_quality=int(d.get("jpeg_quality", DEFAULT_SAMPLE_JPEG_QUALITY)),
            stats_log_interval_s=float(d.get("stats_log_interval_s", 60.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interval_s": self.interval_s,
            "resolution": self.resolution,
            "jpeg_quality": self.jpeg_quality,
            "stats_log_interval_s": self.stats_log_interval_s,
        }


@dataclass
class ClassifierConfig:
    """External classification service configuration."""
    endpoint: str = ""
    api_key_env: Optional[str] = None
    timeout_s: float = DEFAULT_CLASSIFIER_TIMEOUT_S
    prompt: str = DEFAULT_CLASSIFIER_PROMPT

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassifierConfig":
        return cls(
            endpoint=d.get("endpoint", ""),
            api_key_env=d.get("api_key_env"),
            timeout_s=float(d.get("timeout_s", DEFAULT_CLASSIFIER_TIMEOUT_S)),
            prompt=d.get("prompt") or DEFAULT_CLASSIFIER_PROMPT,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "endpoint": self.endpoint,
            "timeout_s": self.timeout_s,
            "prompt": self.prompt,
        }
        if self.api_key_env is not None:
            d["api_key_env"] = self.api_key_env
        return d


@dataclass
class DetectionConfig:
    """Stop-rule configuration."""
    stop_threshold_s: int = DEFAULT_STOP_THRESHOLD_S

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(stop_threshold_s=int(d.get("stop_threshold_s", DEFAULT_STOP_THRESHOLD_S)))

    def to_dict(self) -> Dict[str, Any]:
        return {"stop_threshold_s": self.stop_threshold_s}


@dataclass
class ViolationConfig:
    """Violation capture timing."""
    settle_delay_s: float = DEFAULT_SETTLE_DELAY_S
    alert_duration_s: float = DEFAULT_ALERT_DURATION_S
    snapshot_jpeg_quality: int = DEFAULT_SNAPSHOT_JPEG_QUALITY

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ViolationConfig":
        return cls(
            settle_delay_s=float(d.get("settle_delay_s", DEFAULT_SETTLE_DELAY_S)),
            alert_duration_s=float(d.get("alert_duration_s", DEFAULT_ALERT_DURATION_S)),
            snapshot_jpeg_quality=int(d.get("snapshot_jpeg_quality", DEFAULT_SNAPSHOT_JPEG_QUALITY)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settle_delay_s": self.settle_delay_s,
            "alert_duration_s": self.alert_duration_s,
            "snapshot_jpeg_quality": self.snapshot_jpeg_quality,
        }


@dataclass
class EvidenceConfig:
    """Evidence clip recording configuration."""
    record_video: bool = True
    output_dir: str = "output/evidence"
    max_clip_seconds: float = 30.0
    fourcc: str = "mp4v"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EvidenceConfig":
        return cls(
            record_video=d.get("record_video", True),
            output_dir=d.get("output_dir", "output/evidence"),
            max_clip_seconds=float(d.get("max_clip_seconds", 30.0)),
            fourcc=d.get("fourcc", "mp4v"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_video": self.record_video,
            "output_dir": self.output_dir,
            "max_clip_seconds": self.max_clip_seconds,
            "fourcc": self.fourcc,
        }


@dataclass
class WebConfig:
    """HTTP API configuration."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=int(d.get("port", 5000)))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    violation: ViolationConfig = field(default_factory=ViolationConfig)
    evidence: EvidenceConfig = field(default_factory=EvidenceConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/stop_line_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            sampling=SamplingConfig.from_dict(d.get("sampling", {}) or {}),
            classifier=ClassifierConfig.from_dict(d.get("classifier", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            violation=ViolationConfig.from_dict(d.get("violation", {}) or {}),
            evidence=EvidenceConfig.from_dict(d.get("evidence", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/stop_line_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "sampling": self.sampling.to_dict(),
            "classifier": self.classifier.to_dict(),
            "detection": self.detection.to_dict(),
            "violation": self.violation.to_dict(),
            "evidence": self.evidence.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
