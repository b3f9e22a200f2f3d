"""Identity tracking for per-camera detections."""

from track.registry import TrackingRegistry
from track.tracker import PositionMatcher, TrackedObject, format_track_id

__all__ = ["PositionMatcher", "TrackedObject", "TrackingRegistry", "format_track_id"]
