from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class SamplingStats(BaseModel):
    ticks: int = 0
    skipped_ticks: int = 0
    missing_frames: int = 0
    samples: int = 0
    errors: int = 0
    uptime_seconds: int = 0


class StatusResponse(BaseModel):
    """
    Live monitor status, optimized for frontend polling.
    """
    monitoring: bool = Field(..., description="True while sampling is running")
    state: str = Field(..., description="NONE|APPROACHING|STOPPED|CROSSING|VIOLATION")
    stop_timer: int = Field(0, description="Whole seconds stopped at the line this visit")
    stop_threshold_s: int = Field(..., description="Seconds required for a compliant stop")
    is_compliant: bool = False
    capture_in_flight: bool = False
    alert_active: bool = False
    object_label: Optional[str] = None
    violation_count: int = 0
    uptime_seconds: Optional[int] = None
    classifier_failures: int = 0
    sampling: SamplingStats = Field(default_factory=SamplingStats)
    last_error: Optional[str] = None


class ViolationSummary(BaseModel):
    id: str
    timestamp: float
    object_label: str
    stop_duration_at_crossing: int
    has_photo: bool
    has_video: bool
    photo_url: Optional[str] = None
    video_url: Optional[str] = None


class ViolationListResponse(BaseModel):
    total: int
    violations: List[ViolationSummary]


class MonitoringResponse(BaseModel):
    monitoring: bool
    detail: str
