"""Core data contracts shared by detection input, tracking and alerting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple, Sequence


class Position(NamedTuple):
    """Integer pixel coordinate of a detection's top-left corner."""

    x: int
    y: int


@dataclass(frozen=True)
class Detection:
    """One rectangle reported by the detector for a camera."""

    camera_index: int
    x: int
    y: int
    width: int = 0
    height: int = 0

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    @classmethod
    def from_rect(cls, camera_index: int, rect: Sequence[Any]) -> "Detection":
        """Build a detection from an ``(x, y, w, h)`` rectangle (e.g. OpenCV output)."""
        x, y, w, h = (int(v) for v in rect[:4])
        return cls(camera_index=camera_index, x=x, y=y, width=w, height=h)


@dataclass(frozen=True)
class Frame:
    camera_index: int
    image: Any


@dataclass(frozen=True)
class AlertEvent:
    """Emitted when a camera escalates to the alerted level.

    Attributes:
        track_id: Identity of the sustained tracked object
        camera_index: Camera that saw it
        now: Tick timestamp at which the escalation happened
        frame: Frame buffer snapshot for the image sink (may be None)
    """

    track_id: str
    camera_index: int
    now: datetime
    frame: Any = None
