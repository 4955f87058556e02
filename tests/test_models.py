"""
Smoke tests for typed models and adapters.
"""

import base64
import time
import pytest
import numpy as np

from models.classification import Classification, LinePosition, parse_position
from models.frame import FrameData, FrameSample
from models.lifecycle import DetectionSnapshot, ObjectState
from models.violation import DEFAULT_OBJECT_LABEL, ViolationRecord


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=time.time(), frame_index=5, source="cam")
        assert fd.size == (640, 480)
        assert fd.frame_index == 5

    def test_to_sample_downscales(self):
        frame = np.zeros((720, 1280, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=1.0, frame_index=3)

        sample = fd.to_sample((640, 480), jpeg_quality=50)

        assert isinstance(sample, FrameSample)
        assert (sample.width, sample.height) == (640, 480)
        assert sample.frame_index == 3
        assert sample.jpeg[:2] == b"\xff\xd8"

    def test_to_sample_native_size(self, frame_data):
        sample = frame_data.to_sample()
        assert (sample.width, sample.height) == frame_data.size

    def test_sample_encodings(self):
        sample = FrameSample(jpeg=b"\xff\xd8abc", width=1, height=1, timestamp=0.0)
        assert base64.b64decode(sample.to_base64()) == b"\xff\xd8abc"
        assert sample.to_data_url() == "data:image/jpeg;base64," + sample.to_base64()


class TestClassification:
    def test_absent(self):
        c = Classification.absent()
        assert c.object_present is False
        assert c.position is LinePosition.ABSENT
        assert c.is_moving is False

    def test_from_dict_snake_case(self):
        c = Classification.from_dict({
            "object_present": True,
            "position": "approaching",
            "is_moving": True,
            "object_label": "hand",
        })
        assert c == Classification(True, LinePosition.APPROACHING, True, "hand")

    def test_from_dict_camel_case_and_aliases(self):
        c = Classification.from_dict({
            "vehiclePresent": "true",
            "status": "AT_STOP_LINE",
            "isMoving": "false",
            "vehicleType": "toy car",
        })
        assert c.object_present is True
        assert c.position is LinePosition.AT_LINE
        assert c.is_moving is False
        assert c.object_label == "toy car"

    def test_from_dict_missing_fields(self):
        with pytest.raises(ValueError):
            Classification.from_dict({"object_present": True})

    def test_from_dict_unknown_position(self):
        with pytest.raises(ValueError):
            Classification.from_dict({"object_present": True, "position": "sideways"})

    def test_from_dict_not_an_object(self):
        with pytest.raises(ValueError):
            Classification.from_dict(["approaching"])

    def test_gone_alias(self):
        assert parse_position("gone") is LinePosition.ABSENT

    def test_to_dict(self):
        c = Classification(True, LinePosition.CROSSING, True, None)
        assert c.to_dict() == {
            "object_present": True,
            "position": "crossing",
            "is_moving": True,
            "object_label": None,
        }


class TestViolationRecord:
    def test_defaults(self):
        record = ViolationRecord(evidence_photo="", stop_duration_at_crossing=1)
        assert record.object_label == DEFAULT_OBJECT_LABEL
        assert record.evidence_video is None
        assert len(record.id) == 32
        assert record.timestamp > 0

    def test_ids_unique(self):
        ids = {ViolationRecord(evidence_photo="", stop_duration_at_crossing=0).id for _ in range(50)}
        assert len(ids) == 50

    def test_photo_bytes(self):
        encoded = base64.b64encode(b"\xff\xd8jpeg").decode("ascii")
        record = ViolationRecord(
            evidence_photo=f"data:image/jpeg;base64,{encoded}",
            stop_duration_at_crossing=0,
        )
        assert record.has_photo is True
        assert record.photo_bytes() == b"\xff\xd8jpeg"

    def test_to_dict(self):
        record = ViolationRecord(
            evidence_photo="",
            stop_duration_at_crossing=2,
            object_label="pen",
            evidence_video="output/evidence/v.mp4",
        )
        d = record.to_dict()
        assert d["id"] == record.id
        assert d["object_label"] == "pen"
        assert d["stop_duration_at_crossing"] == 2
        assert d["evidence_video"] == "output/evidence/v.mp4"


class TestDetectionSnapshot:
    def test_to_dict(self):
        snap = DetectionSnapshot(
            state=ObjectState.STOPPED,
            stop_timer=2,
            is_compliant=False,
            last_classification=Classification(True, LinePosition.AT_LINE, False),
        )
        d = snap.to_dict()
        assert d["state"] == "STOPPED"
        assert d["stop_timer"] == 2
        assert d["capture_in_flight"] is False
        assert d["last_classification"]["position"] == "at_line"
