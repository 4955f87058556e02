"""
Tests for the HTTP API.
"""

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from models.config import Config
from models.violation import ViolationRecord
from observation.base import SourceUnavailableError
from runtime.context import build_context
from runtime.session import MonitoringSession
from web.app import create_app


JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture
def session():
    config = Config.from_dict({
        "classifier": {"endpoint": "http://localhost:8080/classify"},
        "evidence": {"record_video": False},
    })
    source = MagicMock()
    source.open.side_effect = SourceUnavailableError("Camera 0 not found")
    return MonitoringSession(build_context(config, source=source, service=MagicMock()))


@pytest.fixture
def client(session):
    return TestClient(create_app(session))


def _record(**kwargs):
    defaults = {
        "evidence_photo": "data:image/jpeg;base64," + base64.b64encode(JPEG).decode("ascii"),
        "stop_duration_at_crossing": 1,
        "object_label": "hand",
    }
    defaults.update(kwargs)
    return ViolationRecord(**defaults)


class TestStatus:
    def test_idle_status(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        data = response.json()
        assert data["monitoring"] is False
        assert data["state"] == "NONE"
        assert data["stop_threshold_s"] == 3
        assert data["violation_count"] == 0
        assert data["sampling"]["ticks"] == 0

    def test_violation_count(self, client, session):
        session.ctx.event_log.append(_record())
        assert client.get("/api/status").json()["violation_count"] == 1


class TestViolations:
    def test_list_newest_first(self, client, session):
        older = _record(object_label="cup")
        newer = _record(object_label="pen", evidence_photo="")
        session.ctx.event_log.append(older)
        session.ctx.event_log.append(newer)

        data = client.get("/api/violations").json()

        assert data["total"] == 2
        assert [v["id"] for v in data["violations"]] == [newer.id, older.id]
        assert data["violations"][0]["photo_url"] is None
        assert data["violations"][1]["photo_url"] == f"/api/violations/{older.id}/photo"

    def test_list_limit(self, client, session):
        for _ in range(3):
            session.ctx.event_log.append(_record())

        data = client.get("/api/violations", params={"limit": 2}).json()

        assert data["total"] == 3
        assert len(data["violations"]) == 2

    def test_get_unknown(self, client):
        assert client.get("/api/violations/nope").status_code == 404

    def test_photo(self, client, session):
        record = _record()
        session.ctx.event_log.append(record)

        response = client.get(f"/api/violations/{record.id}/photo")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content == JPEG

    def test_missing_photo(self, client, session):
        record = _record(evidence_photo="")
        session.ctx.event_log.append(record)
        assert client.get(f"/api/violations/{record.id}/photo").status_code == 404

    def test_video(self, client, session, tmp_path):
        clip = tmp_path / "violation_1.mp4"
        clip.write_bytes(b"\x00\x00\x00\x18ftypmp42")
        record = _record(evidence_video=str(clip))
        session.ctx.event_log.append(record)

        summary = client.get(f"/api/violations/{record.id}").json()
        response = client.get(f"/api/violations/{record.id}/video")

        assert summary["has_video"] is True
        assert response.status_code == 200
        assert response.content == clip.read_bytes()

    def test_video_file_gone(self, client, session, tmp_path):
        record = _record(evidence_video=str(tmp_path / "deleted.mp4"))
        session.ctx.event_log.append(record)
        assert client.get(f"/api/violations/{record.id}/video").status_code == 404


class TestMonitoringControl:
    def test_start_failure_is_503(self, client, session):
        response = client.post("/api/monitoring/start")

        assert response.status_code == 503
        assert "Camera 0 not found" in response.json()["detail"]
        assert session.last_error == "Camera 0 not found"

    def test_start_when_running(self):
        fake = MagicMock()
        fake.is_monitoring = True
        fake.start = AsyncMock()
        client = TestClient(create_app(fake))

        response = client.post("/api/monitoring/start")

        assert response.status_code == 200
        assert response.json()["detail"] == "Monitoring already running"
        fake.start.assert_not_called()

    def test_stop(self):
        fake = MagicMock()
        fake.stop = AsyncMock()
        client = TestClient(create_app(fake))

        response = client.post("/api/monitoring/stop")

        assert response.status_code == 200
        assert response.json()["monitoring"] is False
        fake.stop.assert_awaited_once()
