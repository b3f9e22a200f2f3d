"""Custom exception classes for CamWatch."""

from __future__ import annotations

from typing import Any, Optional


class CamWatchError(Exception):
    """Base exception for all CamWatch errors."""

    pass


class TrackingError(CamWatchError):
    """Base exception for tracking-related errors."""

    pass


class TrackedObjectNotFoundError(TrackingError, KeyError):
    """Raised when an id is not known to the current registry generation."""

    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(f"Tracked object not found: {track_id}")

    def __str__(self) -> str:
        return self.args[0]


class AlertStoreError(CamWatchError):
    """Base exception for alert store errors."""

    pass


class MalformedAlertRecordError(AlertStoreError):
    """Raised when a persisted alert entry is incomplete or unparseable."""

    def __init__(self, message: str, record: Optional[Any] = None):
        self.record = record
        super().__init__(message)


class AlertPersistenceError(AlertStoreError):
    """Raised when the alert log cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class ImageSinkError(CamWatchError):
    """Raised when an alert snapshot cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class ConfigError(CamWatchError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)
