"""Tick orchestration: detections in, camera alert levels out.

One tick resolves every detection of every camera against the tracking
registry, runs the escalation policy per camera, hands emitted alerts to the
recorder and other subscribers, and finally sweeps idle identities once.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from alerts.escalation import AlertLevel, CameraStates, EscalationPolicy
from alerts.recorder import AlertRecorder, ImageSink
from alerts.store import AlertStore
from app.events import EventBus
from configs.settings import AppConfig
from contracts import AlertEvent, Detection
from log_config.logger import get_logger, log_performance
from track.registry import TrackingRegistry

logger = get_logger(__name__)

DetectionsByCamera = Mapping[int, Sequence[Any]]
FramesByCamera = Mapping[int, Any]
TickInput = Tuple[DetectionsByCamera, Optional[FramesByCamera]]
AlertHandler = Callable[[AlertEvent], None]


def to_detection(camera_index: int, detection: Any) -> Detection:
    """Normalize detector output given as Detection, (x, y) or (x, y, w, h)."""
    if isinstance(detection, Detection):
        return detection
    if len(detection) >= 4:
        return Detection.from_rect(camera_index, detection)
    return Detection(camera_index=camera_index, x=int(detection[0]), y=int(detection[1]))


class SurveillancePipeline:
    """Owns the registry, per-camera alert states and the alert store."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[AlertStore] = None,
        sink: Optional[ImageSink] = None,
    ) -> None:
        self._config = config or AppConfig.default()
        tracking = self._config.tracking
        storage = self._config.storage

        self._registry = TrackingRegistry(tracking)
        self._policy = EscalationPolicy(self._config.alerts, strict_lookups=tracking.strict_lookups)
        self._states: CameraStates = {}
        self._store = store if store is not None else AlertStore(storage.alerts_path)
        self._recorder = AlertRecorder(
            self._store,
            storage.data_dir,
            sink=sink,
            image_dir_name=storage.image_dir_name,
            image_extension=storage.image_extension,
        )
        self._bus = EventBus()
        self._bus.subscribe(AlertEvent, self._recorder.handle)
        self._tick_count = 0

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def registry(self) -> TrackingRegistry:
        return self._registry

    @property
    def store(self) -> AlertStore:
        return self._store

    @property
    def recorder(self) -> AlertRecorder:
        return self._recorder

    @property
    def camera_states(self) -> CameraStates:
        return self._states

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def levels(self) -> Dict[int, AlertLevel]:
        return {index: state.level for index, state in self._states.items()}

    def add_alert_handler(self, handler: AlertHandler) -> None:
        self._bus.subscribe(AlertEvent, handler)

    def remove_alert_handler(self, handler: AlertHandler) -> bool:
        return self._bus.unsubscribe(AlertEvent, handler)

    def process_tick(
        self,
        detections_by_camera: DetectionsByCamera,
        frames: Optional[FramesByCamera] = None,
        now: Optional[datetime] = None,
    ) -> Dict[int, AlertLevel]:
        """Run one tick over all cameras.

        Cameras seen on earlier ticks but absent from ``detections_by_camera``
        are treated as having no detections.

        Args:
            detections_by_camera: Detector output per camera index
            frames: Frame buffers per camera, attached to alert snapshots
            now: Tick timestamp (defaults to the wall clock)

        Returns:
            Alert level of every known camera after the tick
        """
        now = now or datetime.now()
        frames = frames or {}
        started = time.perf_counter()

        cameras: List[int] = list(detections_by_camera)
        cameras.extend(index for index in self._states if index not in detections_by_camera)

        for camera_index in cameras:
            track_ids = [
                self._registry.observe(camera_index, to_detection(camera_index, detection).position, now)
                for detection in detections_by_camera.get(camera_index, ())
            ]
            events = self._policy.evaluate(
                self._states,
                camera_index,
                track_ids,
                self._registry,
                now,
                frame=frames.get(camera_index),
            )
            for event in events:
                self._bus.publish(event)

        self._recorder.forget(self._registry.sweep(now))
        self._tick_count += 1

        log_performance(
            f"tick {self._tick_count}",
            (time.perf_counter() - started) * 1000.0,
            threshold_ms=self._config.loop.tick_ms,
        )
        return self.levels()

    def load(self) -> int:
        """Restore persisted alerts from the configured alert log."""
        return self._store.load()

    def flush(self) -> bool:
        """Write the alert store to disk; called from shutdown paths."""
        return self._store.flush()


DetectionSource = Callable[[], Optional[TickInput]]


class TickLoop:
    """Drives a pipeline at a fixed period from a detection source.

    The source returns ``(detections_by_camera, frames)`` per call, or None
    when it is exhausted. The store is flushed once when the loop exits.
    """

    def __init__(
        self,
        pipeline: SurveillancePipeline,
        source: DetectionSource,
        period_s: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._pipeline = pipeline
        self._source = source
        self._period_s = pipeline.config.loop.period_s if period_s is None else period_s
        self._clock = clock
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def run(self, max_ticks: Optional[int] = None, flush_on_exit: bool = True) -> int:
        """Tick until stopped, exhausted or interrupted.

        Returns:
            Number of ticks processed
        """
        self._running = True
        ticks = 0
        logger.info(f"Tick loop started (period {self._period_s * 1000:.0f}ms)")
        try:
            while self._running and (max_ticks is None or ticks < max_ticks):
                started = time.monotonic()
                tick_input = self._source()
                if tick_input is None:
                    logger.info("Detection source exhausted")
                    break
                detections, frames = tick_input
                self._pipeline.process_tick(detections, frames, now=self._clock())
                ticks += 1

                remaining = self._period_s - (time.monotonic() - started)
                if remaining > 0:
                    time.sleep(remaining)
        except KeyboardInterrupt:
            logger.info("Tick loop interrupted")
        finally:
            self._running = False
            if flush_on_exit:
                self._pipeline.flush()
            logger.info(f"Tick loop stopped after {ticks} ticks")
        return ticks


__all__ = [
    "DetectionSource",
    "SurveillancePipeline",
    "TickLoop",
    "to_detection",
]
