from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from classification.adapter import ClassifierAdapter
from classification.backend import ClassificationService
from classification.http_service import HttpClassificationService, HttpServiceConfig
from detection.state_machine import DetectionStateMachine
from evidence.recorder import ClipRecorder
from models.config import Config
from observation.base import ObservationSource
from observation.feed import LiveFeed
from observation.opencv_source import create_source_from_config
from pipeline.engine import PipelineConfig, SamplingEngine
from violations.alert import AlertSignal
from violations.coordinator import ViolationCoordinator
from violations.event_log import EventLog


@dataclass
class RuntimeContext:
    """Holds the wired monitoring components; avoids global singletons."""

    config: Config
    feed: LiveFeed
    adapter: ClassifierAdapter
    event_log: EventLog
    alert: AlertSignal
    recorder: Optional[ClipRecorder]
    coordinator: ViolationCoordinator
    state_machine: DetectionStateMachine
    engine: SamplingEngine


def build_context(
    config: Config,
    source: Optional[ObservationSource] = None,
    service: Optional[ClassificationService] = None,
) -> RuntimeContext:
    """
    Wire all components from config.

    Args:
        config: Typed application config.
        source: Frame source override (defaults to an OpenCV source from camera config).
        service: Classification service override (defaults to the HTTP service).
    """
    if source is None:
        source = create_source_from_config(config.camera.to_dict())
    if service is None:
        service = HttpClassificationService(HttpServiceConfig.from_classifier_config(config.classifier))

    feed = LiveFeed(source)

    recorder: Optional[ClipRecorder] = None
    if config.evidence.record_video:
        recorder = ClipRecorder(
            output_dir=config.evidence.output_dir,
            fps=config.camera.fps,
            max_clip_seconds=config.evidence.max_clip_seconds,
            fourcc=config.evidence.fourcc,
        )
        feed.add_listener(recorder.add_frame)

    event_log = EventLog()
    alert = AlertSignal()
    coordinator = ViolationCoordinator(
        frames=feed,
        event_log=event_log,
        config=config.violation,
        alert=alert,
        recorder=recorder,
    )
    state_machine = DetectionStateMachine(
        config=config.detection,
        coordinator=coordinator,
        recorder=recorder,
    )
    adapter = ClassifierAdapter(service)
    engine = SamplingEngine(
        feed,
        adapter,
        state_machine,
        PipelineConfig.from_sampling_config(config.sampling),
    )

    return RuntimeContext(
        config=config,
        feed=feed,
        adapter=adapter,
        event_log=event_log,
        alert=alert,
        recorder=recorder,
        coordinator=coordinator,
        state_machine=state_machine,
        engine=engine,
    )
