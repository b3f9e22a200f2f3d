"""Tracked-object state and anchor-based position matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from contracts import Position


def format_track_id(camera_index: int, now: datetime) -> str:
    """Mint the time-qualified id for a new object seen on ``camera_index``."""
    return f"CAM{camera_index}-{now.hour}-{now.minute}-{now.second}"


@dataclass(frozen=True)
class PositionMatcher:
    """Per-axis tolerance test against a tracked object's anchor.

    Two positions are close when neither axis differs by more than
    ``tolerance`` (a square window, not a circle).
    """

    tolerance: int = 50

    def is_close(self, p1: Position, p2: Position) -> bool:
        return abs(p1[0] - p2[0]) <= self.tolerance and abs(p1[1] - p2[1]) <= self.tolerance

    def matches(self, obj: "TrackedObject", position: Position) -> bool:
        return self.is_close(position, obj.anchor)


@dataclass
class TrackedObject:
    """One identity and its accepted positions, oldest first."""

    id: str
    camera_index: int
    starting_time: datetime
    last_insertion_time: datetime
    positions: List[Position] = field(default_factory=list)

    @classmethod
    def create(cls, track_id: str, camera_index: int, position: Position, now: datetime) -> "TrackedObject":
        return cls(
            id=track_id,
            camera_index=camera_index,
            starting_time=now,
            last_insertion_time=now,
            positions=[Position(*position)],
        )

    @property
    def anchor(self) -> Position:
        """First recorded position; the permanent matching key."""
        return self.positions[0]

    @property
    def last_position(self) -> Position:
        return self.positions[-1]

    def age(self, now: datetime) -> float:
        """Seconds since creation."""
        return (now - self.starting_time).total_seconds()

    def idle(self, now: datetime) -> float:
        """Seconds since the last accepted update."""
        return (now - self.last_insertion_time).total_seconds()

    def lifetime(self) -> float:
        """Matched lifetime in seconds (last accepted update minus creation)."""
        return (self.last_insertion_time - self.starting_time).total_seconds()
