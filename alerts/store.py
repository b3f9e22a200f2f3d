"""Durable log of emitted alerts.

Records live in memory keyed by id and are written to / read from a JSON
array only on explicit ``save``/``load``. File layout::

    [
      {"id": "CAM0-9-15-2", "imgPath": "data/img/CAM0-9-15-2.png",
       "date": "2024-05-01", "hour": "09:15:14", "camera": 0}
    ]

I/O problems never raise out of ``save``/``load``: they are logged and the
operation is skipped. Malformed entries are skipped individually.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from jsonschema import Draft7Validator

from exceptions import AlertPersistenceError, MalformedAlertRecordError
from log_config.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

RECORD_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["id", "imgPath", "date", "hour", "camera"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "imgPath": {"type": "string", "minLength": 1},
        "date": {"type": "string", "pattern": "^[0-9]{4}-[0-9]{2}-[0-9]{2}$"},
        "hour": {"type": "string", "pattern": "^[0-9]{2}:[0-9]{2}:[0-9]{2}(\\.[0-9]{3})?$"},
        "camera": {"type": "integer", "minimum": 0},
    },
}

_record_validator = Draft7Validator(RECORD_SCHEMA)


class SortField(str, Enum):
    CAMERA = "camera"
    HOUR = "hour"
    DATE = "date"


@dataclass(frozen=True)
class AlertRecord:
    id: str
    image_path: str
    date: date
    time: time
    camera_index: int

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imgPath": self.image_path,
            "date": self.date.isoformat(),
            "hour": format_hour(self.time),
            "camera": self.camera_index,
        }

    @classmethod
    def from_json(cls, entry: Any) -> "AlertRecord":
        """Parse one JSON array element.

        Raises:
            MalformedAlertRecordError: If a field is missing or unparseable
        """
        errors = sorted(_record_validator.iter_errors(entry), key=lambda e: list(e.path))
        if errors:
            raise MalformedAlertRecordError(errors[0].message, record=entry)
        try:
            parsed_date = date.fromisoformat(entry["date"])
        except ValueError:
            raise MalformedAlertRecordError(f"Invalid date {entry['date']!r}", record=entry) from None
        try:
            parsed_hour = time.fromisoformat(entry["hour"])
        except ValueError:
            raise MalformedAlertRecordError(f"Invalid hour {entry['hour']!r}", record=entry) from None
        return cls(
            id=entry["id"],
            image_path=entry["imgPath"],
            date=parsed_date,
            time=parsed_hour,
            camera_index=int(entry["camera"]),  # schema accepts 2.0 as an integer
        )


def format_hour(value: time) -> str:
    """``HH:MM:SS``, or ``HH:MM:SS.mmm`` when there is a sub-second part."""
    if value.microsecond:
        return value.isoformat(timespec="milliseconds")
    return value.isoformat(timespec="seconds")


_SORT_KEYS = {
    SortField.CAMERA: lambda record: record.camera_index,
    SortField.HOUR: lambda record: record.time,
    SortField.DATE: lambda record: record.date,
}


def _write_document(target: Path, document: str) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(document, encoding="utf-8")
    except OSError as e:
        raise AlertPersistenceError(f"Cannot write {target}: {e}", path=str(target)) from e


def _read_document(source: Path) -> str:
    try:
        return source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AlertPersistenceError(f"Cannot read {source}: {e}", path=str(source)) from e


class AlertStore:
    """In-memory alert records with JSON persistence.

    Args:
        path: Default file used by ``flush`` and by ``save``/``load`` when
            called without a path
    """

    def __init__(self, path: Optional[PathLike] = None) -> None:
        self._records: Dict[str, AlertRecord] = {}
        self.path = Path(path) if path is not None else None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._records

    def __iter__(self) -> Iterator[AlertRecord]:
        return iter(list(self._records.values()))

    def insert(self, alert_id: str, image_path: str, alert_date: date, alert_time: time, camera: int) -> AlertRecord:
        """Insert or replace the record stored under ``alert_id``."""
        record = AlertRecord(
            id=alert_id,
            image_path=str(image_path),
            date=alert_date,
            time=alert_time,
            camera_index=camera,
        )
        if alert_id in self._records:
            logger.debug(f"Replacing alert {alert_id}")
        self._records[alert_id] = record
        logger.debug(f"Added {alert_id} to alerts, {len(self._records)} stored")
        return record

    def contains(self, alert_id: str) -> bool:
        return alert_id in self._records

    def get(self, alert_id: str) -> Optional[AlertRecord]:
        return self._records.get(alert_id)

    def records(self) -> List[AlertRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()

    def sorted_by(self, field: Union[SortField, str]) -> List[AlertRecord]:
        """Records in ascending order of ``field``; ties keep store order.

        Raises:
            ValueError: If ``field`` is not camera, hour or date
        """
        key = _SORT_KEYS[SortField(field)]
        return sorted(self._records.values(), key=key)

    def _resolve(self, path: Optional[PathLike]) -> Optional[Path]:
        if path is not None:
            return Path(path)
        return self.path

    def save(self, path: Optional[PathLike] = None) -> bool:
        """Write every record to ``path`` as one JSON document.

        Returns:
            False if the file could not be written (the failure is logged)
        """
        target = self._resolve(path)
        if target is None:
            logger.error("No alert log path configured, nothing saved")
            return False

        document = json.dumps([record.to_json() for record in self._records.values()], indent=2)
        try:
            _write_document(target, document)
        except AlertPersistenceError as e:
            logger.error(f"Could not save alert log: {e}")
            return False

        logger.info(f"Saved {len(self._records)} alerts to {target}")
        return True

    def flush(self) -> bool:
        """Save to the bound path; safe to call repeatedly on shutdown."""
        return self.save()

    def load(self, path: Optional[PathLike] = None) -> int:
        """Replace the store contents with the records in ``path``.

        A missing, unreadable or non-array file leaves the store untouched.

        Returns:
            Number of records loaded (0 when the file was rejected)
        """
        source = self._resolve(path)
        if source is None:
            logger.error("No alert log path configured, nothing loaded")
            return 0
        if not source.exists():
            logger.warning(f"Alert log does not exist: {source}")
            return 0

        try:
            data = json.loads(_read_document(source))
        except AlertPersistenceError as e:
            logger.error(f"Could not open alert log: {e}")
            return 0
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in alert log {source}: {e}")
            return 0

        if not isinstance(data, list):
            logger.warning(f"Invalid alert log format in {source}: expected an array")
            return 0

        self._records.clear()
        for index, entry in enumerate(data):
            try:
                record = AlertRecord.from_json(entry)
            except MalformedAlertRecordError as e:
                entry_id = entry.get("id") if isinstance(entry, dict) else None
                logger.warning(f"Skipping alert entry {index} (id={entry_id!r}): {e}")
                continue
            self._records[record.id] = record

        logger.info(f"Loaded {len(self._records)} alerts from {source}")
        return len(self._records)


__all__ = ["AlertRecord", "AlertStore", "RECORD_SCHEMA", "SortField", "format_hour"]
