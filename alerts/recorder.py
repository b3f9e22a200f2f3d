"""Persist alert snapshots and record them in the alert store."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Set, Union

import cv2
import numpy as np

from alerts.store import AlertStore
from contracts import AlertEvent, Frame
from exceptions import ImageSinkError
from log_config.logger import get_logger

logger = get_logger(__name__)


def image_path_for(
    data_dir: Union[str, Path],
    track_id: str,
    image_dir_name: str = "img",
    extension: str = ".png",
) -> Path:
    """Deterministic snapshot path for an alerted identity."""
    return Path(data_dir) / image_dir_name / f"{track_id}{extension}"


class ImageSink(Protocol):
    def write(self, path: Path, frame: Any) -> None:
        ...


class OpenCVImageSink:
    """Writes frame buffers with ``cv2.imwrite``; the extension picks the codec."""

    def write(self, path: Path, frame: Any) -> None:
        image = frame.image if isinstance(frame, Frame) else frame
        if image is None:
            logger.debug(f"No frame for {path}, skipping snapshot")
            return

        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ImageSinkError(f"Cannot create image directory: {e}", path=str(path)) from e

        try:
            written = cv2.imwrite(str(path), np.asarray(image))
        except cv2.error as e:
            raise ImageSinkError(f"Cannot encode snapshot: {e}", path=str(path)) from e
        if not written:
            raise ImageSinkError(f"cv2.imwrite failed for {path}", path=str(path))
        logger.debug(f"Saved snapshot {path}")


class AlertRecorder:
    """Turns AlertEvents into stored alert records with a snapshot on disk.

    Only the first event of a live tracking session is recorded; repeats for
    the same id are ignored until ``forget`` ends that session. Ids recorded
    earlier (loaded from disk, or from a previous day) are overwritten.
    """

    def __init__(
        self,
        store: AlertStore,
        data_dir: Union[str, Path],
        sink: Optional[ImageSink] = None,
        image_dir_name: str = "img",
        image_extension: str = ".png",
    ) -> None:
        self._store = store
        self._data_dir = Path(data_dir)
        self._sink = sink if sink is not None else OpenCVImageSink()
        self._image_dir_name = image_dir_name
        self._image_extension = image_extension
        self._session_ids: Set[str] = set()

    @property
    def store(self) -> AlertStore:
        return self._store

    def image_path(self, track_id: str) -> Path:
        return image_path_for(self._data_dir, track_id, self._image_dir_name, self._image_extension)

    def handle(self, event: AlertEvent) -> bool:
        """Record ``event``; returns False when this session already recorded the id."""
        if event.track_id in self._session_ids:
            return False
        self._session_ids.add(event.track_id)

        path = self.image_path(event.track_id)
        try:
            self._sink.write(path, event.frame)
        except ImageSinkError as e:
            logger.error(f"Snapshot for {event.track_id} not saved: {e}")

        self._store.insert(
            event.track_id,
            str(path),
            event.now.date(),
            event.now.time(),
            event.camera_index,
        )
        logger.info(f"Alert {event.track_id} recorded for camera {event.camera_index}")
        return True

    def forget(self, track_ids: Iterable[str]) -> None:
        """End the tracking sessions of ``track_ids`` (e.g. after eviction)."""
        self._session_ids.difference_update(track_ids)


__all__ = ["AlertRecorder", "ImageSink", "OpenCVImageSink", "image_path_for"]
