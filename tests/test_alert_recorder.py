from datetime import date, datetime, time
from pathlib import Path

import numpy as np

from alerts.recorder import AlertRecorder, OpenCVImageSink, image_path_for
from alerts.store import AlertStore
from contracts import AlertEvent, Frame
from exceptions import ImageSinkError

NOW = datetime(2024, 5, 1, 9, 15, 14)


class RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.writes = []
        self.fail = fail

    def write(self, path: Path, frame) -> None:
        self.writes.append((path, frame))
        if self.fail:
            raise ImageSinkError("disk full", path=str(path))


def test_image_path_is_deterministic() -> None:
    assert image_path_for("data", "CAM0-9-15-2") == Path("data/img/CAM0-9-15-2.png")
    assert image_path_for(Path("/srv"), "x", "snaps", ".jpg") == Path("/srv/snaps/x.jpg")


def test_handle_writes_snapshot_and_inserts_record(tmp_path: Path) -> None:
    store = AlertStore()
    sink = RecordingSink()
    recorder = AlertRecorder(store, tmp_path, sink=sink)
    frame = np.zeros((4, 4, 3), dtype=np.uint8)

    assert recorder.handle(AlertEvent("CAM1-9-15-2", 1, NOW, frame))

    expected_path = tmp_path / "img" / "CAM1-9-15-2.png"
    assert sink.writes == [(expected_path, frame)]
    record = store.get("CAM1-9-15-2")
    assert record.image_path == str(expected_path)
    assert record.date == date(2024, 5, 1)
    assert record.time == time(9, 15, 14)
    assert record.camera_index == 1


def test_handle_ignores_already_recorded_ids(tmp_path: Path) -> None:
    store = AlertStore()
    sink = RecordingSink()
    recorder = AlertRecorder(store, tmp_path, sink=sink)
    recorder.handle(AlertEvent("a", 0, NOW))

    assert not recorder.handle(AlertEvent("a", 2, NOW))
    assert len(sink.writes) == 1
    assert store.get("a").camera_index == 0


def test_sink_failure_still_records_alert(tmp_path: Path) -> None:
    store = AlertStore()
    recorder = AlertRecorder(store, tmp_path, sink=RecordingSink(fail=True))

    assert recorder.handle(AlertEvent("a", 0, NOW))
    assert store.contains("a")


def test_opencv_sink_writes_png(tmp_path: Path) -> None:
    path = tmp_path / "img" / "a.png"
    image = np.full((8, 8, 3), 127, dtype=np.uint8)

    OpenCVImageSink().write(path, Frame(camera_index=0, image=image))

    assert path.exists()
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_opencv_sink_skips_missing_frame(tmp_path: Path) -> None:
    path = tmp_path / "img" / "a.png"

    OpenCVImageSink().write(path, None)

    assert not path.exists()


def test_later_event_overwrites_loaded_record(tmp_path: Path) -> None:
    store = AlertStore()
    store.insert("CAM0-9-15-0", "old.png", date(2024, 5, 1), time(9, 15, 0), 0)
    sink = RecordingSink()
    recorder = AlertRecorder(store, tmp_path, sink=sink)

    assert recorder.handle(AlertEvent("CAM0-9-15-0", 0, datetime(2024, 5, 2, 9, 15, 12)))

    record = store.get("CAM0-9-15-0")
    assert record.date == date(2024, 5, 2)
    assert record.time == time(9, 15, 12)
    assert record.image_path == str(tmp_path / "img" / "CAM0-9-15-0.png")
    assert len(sink.writes) == 1


def test_forget_ends_tracking_session(tmp_path: Path) -> None:
    store = AlertStore()
    sink = RecordingSink()
    recorder = AlertRecorder(store, tmp_path, sink=sink)
    recorder.handle(AlertEvent("a", 0, NOW))

    recorder.forget(["a", "unknown"])

    assert recorder.handle(AlertEvent("a", 1, datetime(2024, 5, 2, 9, 15, 14)))
    assert store.get("a").camera_index == 1
    assert len(sink.writes) == 2
