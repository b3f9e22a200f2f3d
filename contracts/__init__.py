"""Shared data contracts for tracking and alerting."""

from .types import (
    AlertEvent,
    Detection,
    Frame,
    Position,
)

__all__ = [
    "AlertEvent",
    "Detection",
    "Frame",
    "Position",
]
