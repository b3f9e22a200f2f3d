"""Per-camera alert escalation.

Each camera moves between three levels:

- NONE: nothing detected this tick
- DETECTING: something is in view but no identity is sustained yet
- ALERTED: a tracked identity has been in view past the alert threshold

Escalations (to DETECTING or ALERTED) are rate limited per camera by a
cooldown. Dropping back to NONE is never rate limited.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from configs.settings import AlertConfig
from contracts import AlertEvent
from exceptions import TrackedObjectNotFoundError
from log_config.logger import get_logger
from track.registry import TrackingRegistry

logger = get_logger(__name__)


class AlertLevel(Enum):
    NONE = 0
    DETECTING = 1
    ALERTED = 2


@dataclass
class CameraAlertState:
    level: AlertLevel = AlertLevel.NONE
    last_escalation_time: Optional[datetime] = None


CameraStates = Dict[int, CameraAlertState]


class EscalationPolicy:
    """Decides camera alert levels from registry signals.

    The policy holds no per-camera state itself; callers own the
    ``CameraStates`` map and pass it in on every evaluation.
    """

    def __init__(self, config: Optional[AlertConfig] = None, strict_lookups: bool = True) -> None:
        self._config = config or AlertConfig()
        self._cooldown = timedelta(seconds=self._config.cooldown_s)
        self._strict_lookups = strict_lookups

    @staticmethod
    def new_states(camera_indices: Iterable[int]) -> CameraStates:
        return {index: CameraAlertState() for index in camera_indices}

    def in_cooldown(self, state: CameraAlertState, now: datetime) -> bool:
        if state.last_escalation_time is None:
            return False
        return now - state.last_escalation_time < self._cooldown

    def evaluate(
        self,
        states: CameraStates,
        camera_index: int,
        track_ids: Sequence[str],
        registry: TrackingRegistry,
        now: datetime,
        frame: Any = None,
    ) -> List[AlertEvent]:
        """Apply one tick of escalation for a camera.

        Args:
            states: Per-camera state map (missing cameras are added)
            camera_index: Camera being evaluated
            track_ids: Identities resolved on this camera this tick, in detection order
            registry: Registry answering the sustained-detection query
            now: Tick timestamp
            frame: Frame snapshot attached to emitted events

        Returns:
            One AlertEvent per sustained identity when the camera escalates to
            ALERTED, otherwise an empty list
        """
        state = states.setdefault(camera_index, CameraAlertState())

        if not track_ids:
            state.level = AlertLevel.NONE
            return []

        if self.in_cooldown(state, now):
            return []

        sustained = self._sustained_ids(track_ids, registry, now)
        state.last_escalation_time = now
        if not sustained:
            state.level = AlertLevel.DETECTING
            return []

        if state.level is not AlertLevel.ALERTED:
            logger.info(f"Camera {camera_index} alerted by {', '.join(sustained)}")
        state.level = AlertLevel.ALERTED
        return [
            AlertEvent(track_id=track_id, camera_index=camera_index, now=now, frame=frame)
            for track_id in sustained
        ]

    def _sustained_ids(self, track_ids: Sequence[str], registry: TrackingRegistry, now: datetime) -> List[str]:
        sustained: List[str] = []
        for track_id in dict.fromkeys(track_ids):
            try:
                if registry.is_sustained(track_id, now):
                    sustained.append(track_id)
            except TrackedObjectNotFoundError:
                if self._strict_lookups:
                    raise
                logger.warning(f"Ignoring unknown track id {track_id}")
        return sustained


__all__ = ["AlertLevel", "CameraAlertState", "CameraStates", "EscalationPolicy"]
