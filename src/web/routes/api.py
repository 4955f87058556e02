from __future__ import annotations

import os

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, Response

from models.violation import ViolationRecord
from runtime.session import MonitoringSession, MonitoringStartError
from ..api_models import (
    MonitoringResponse,
    StatusResponse,
    ViolationListResponse,
    ViolationSummary,
)

router = APIRouter()


def _session(request: Request) -> MonitoringSession:
    return request.app.state.session


def _summary(record: ViolationRecord) -> ViolationSummary:
    return ViolationSummary(
        id=record.id,
        timestamp=record.timestamp,
        object_label=record.object_label,
        stop_duration_at_crossing=record.stop_duration_at_crossing,
        has_photo=record.has_photo,
        has_video=record.has_video,
        photo_url=f"/api/violations/{record.id}/photo" if record.has_photo else None,
        video_url=f"/api/violations/{record.id}/video" if record.has_video else None,
    )


def _get_record(request: Request, violation_id: str) -> ViolationRecord:
    record = _session(request).ctx.event_log.get(violation_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Violation {violation_id} not found")
    return record


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """
    Live monitor status: lifecycle state, stop timer, compliance, alert and
    capture flags, violation count and sampling stats.
    """
    return _session(request).status()


@router.get("/violations", response_model=ViolationListResponse)
def list_violations(request: Request, limit: int = 50):
    """Violation records, newest first."""
    records = _session(request).ctx.event_log.records()
    return ViolationListResponse(
        total=len(records),
        violations=[_summary(r) for r in records[:max(limit, 0)]],
    )


@router.get("/violations/{violation_id}", response_model=ViolationSummary)
def get_violation(request: Request, violation_id: str):
    return _summary(_get_record(request, violation_id))


@router.get("/violations/{violation_id}/photo")
def get_violation_photo(request: Request, violation_id: str):
    record = _get_record(request, violation_id)
    data = record.photo_bytes()
    if not data:
        raise HTTPException(status_code=404, detail="No photo evidence for this violation")
    return Response(content=data, media_type="image/jpeg")


@router.get("/violations/{violation_id}/video")
def get_violation_video(request: Request, violation_id: str):
    record = _get_record(request, violation_id)
    if not record.evidence_video or not os.path.exists(record.evidence_video):
        raise HTTPException(status_code=404, detail="No video evidence for this violation")
    return FileResponse(
        record.evidence_video,
        media_type="video/mp4",
        filename=os.path.basename(record.evidence_video),
    )


@router.post("/monitoring/start", response_model=MonitoringResponse)
async def start_monitoring(request: Request):
    session = _session(request)
    if session.is_monitoring:
        return MonitoringResponse(monitoring=True, detail="Monitoring already running")
    try:
        await session.start()
    except MonitoringStartError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return MonitoringResponse(monitoring=True, detail="Monitoring started")


@router.post("/monitoring/stop", response_model=MonitoringResponse)
async def stop_monitoring(request: Request):
    session = _session(request)
    await session.stop()
    return MonitoringResponse(monitoring=False, detail="Monitoring stopped")
