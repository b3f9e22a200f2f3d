"""Alert escalation, persistence and snapshot recording."""

from alerts.escalation import AlertLevel, CameraAlertState, CameraStates, EscalationPolicy
from alerts.recorder import AlertRecorder, ImageSink, OpenCVImageSink, image_path_for
from alerts.store import AlertRecord, AlertStore, SortField

__all__ = [
    "AlertLevel",
    "AlertRecord",
    "AlertRecorder",
    "AlertStore",
    "CameraAlertState",
    "CameraStates",
    "EscalationPolicy",
    "ImageSink",
    "OpenCVImageSink",
    "SortField",
    "image_path_for",
]
