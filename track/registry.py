"""Registry resolving detections to tracked identities.

Each detection is matched against the *anchor* (first recorded position) of
every live object, in insertion order, and the first object within tolerance
wins. Objects drifting away from their anchor eventually stop matching and a
new identity is minted for them.

The registry is not thread-safe. Resolve, update, sweep and lookups must all
run on the tick thread.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional

from configs.settings import TrackingConfig
from contracts import Position
from exceptions import TrackedObjectNotFoundError
from log_config.logger import get_logger
from track.tracker import PositionMatcher, TrackedObject, format_track_id

logger = get_logger(__name__)


class TrackingRegistry:
    """Owns every TrackedObject, keyed by id."""

    def __init__(self, config: Optional[TrackingConfig] = None) -> None:
        self._config = config or TrackingConfig()
        self._matcher = PositionMatcher(tolerance=self._config.tolerance_px)
        self._debounce = timedelta(seconds=self._config.debounce_s)
        self._eviction = timedelta(seconds=self._config.eviction_s)
        self._alert_threshold = timedelta(seconds=self._config.alert_threshold_s)
        self._objects: Dict[str, TrackedObject] = {}

    @property
    def config(self) -> TrackingConfig:
        return self._config

    @property
    def matcher(self) -> PositionMatcher:
        return self._matcher

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._objects

    def __iter__(self) -> Iterator[TrackedObject]:
        return iter(list(self._objects.values()))

    def ids(self) -> List[str]:
        return list(self._objects)

    def get(self, track_id: str) -> TrackedObject:
        try:
            return self._objects[track_id]
        except KeyError:
            raise TrackedObjectNotFoundError(track_id) from None

    def clear(self) -> None:
        """Drop every object, starting a new registry generation."""
        self._objects.clear()

    def find_match(self, position: Position) -> Optional[TrackedObject]:
        """Return the first live object whose anchor is close to ``position``."""
        for obj in self._objects.values():
            if self._matcher.matches(obj, position):
                return obj
        return None

    def resolve_or_create(self, camera_index: int, position: Position, now: datetime) -> str:
        """Resolve ``position`` to an existing identity or mint a new one.

        A minted id that collides with a live object (same camera, same
        wall-clock second, different place) replaces that object.
        """
        position = Position(*position)
        match = self.find_match(position)
        if match is not None:
            return match.id

        track_id = format_track_id(camera_index, now)
        if track_id in self._objects:
            logger.debug(f"Id collision on {track_id}, replacing existing object")
        self._objects[track_id] = TrackedObject.create(track_id, camera_index, position, now)
        logger.debug(f"Tracking {track_id} at x={position.x} y={position.y}")
        return track_id

    def update(self, track_id: str, position: Position, now: datetime) -> bool:
        """Append ``position`` once the object is older than the debounce floor.

        Returns:
            True if the position was accepted. Rejected positions leave
            ``last_insertion_time`` untouched.

        Raises:
            TrackedObjectNotFoundError: If ``track_id`` is not live
        """
        obj = self.get(track_id)
        if now - obj.starting_time <= self._debounce:
            return False
        obj.positions.append(Position(*position))
        obj.last_insertion_time = now
        return True

    def observe(self, camera_index: int, position: Position, now: datetime) -> str:
        """Resolve a detection and feed it to the matched object."""
        track_id = self.resolve_or_create(camera_index, position, now)
        self.update(track_id, position, now)
        return track_id

    def is_sustained(self, track_id: str, now: Optional[datetime] = None) -> bool:
        """True when the object's matched lifetime strictly exceeds the alert threshold.

        ``now`` is accepted for call-site symmetry; the lifetime only depends
        on accepted updates.

        Raises:
            TrackedObjectNotFoundError: If ``track_id`` is not live
        """
        obj = self.get(track_id)
        return obj.last_insertion_time - obj.starting_time > self._alert_threshold

    def sweep(self, now: datetime) -> List[str]:
        """Evict every object idle for longer than the eviction threshold.

        Must run once per tick, after all resolve/update calls of that tick.

        Returns:
            Ids of the evicted objects
        """
        evicted = []
        for track_id in list(self._objects):
            obj = self._objects[track_id]
            if now - obj.last_insertion_time > self._eviction:
                del self._objects[track_id]
                evicted.append(track_id)
                logger.debug(f"Evicted {track_id}: idle {obj.idle(now):.1f}s")
        if evicted:
            logger.debug(f"Registry size after sweep: {len(self._objects)}")
        return evicted


__all__ = ["TrackingRegistry"]
