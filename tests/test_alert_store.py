import json
from datetime import date, time
from pathlib import Path

import pytest

from alerts import store as store_module
from alerts.store import AlertRecord, AlertStore, SortField, format_hour
from exceptions import AlertPersistenceError


def _store_with(*records) -> AlertStore:
    store = AlertStore()
    for record in records:
        store.insert(*record)
    return store


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload))
    return path


def _good_entry(alert_id: str = "CAM0-9-15-2", camera: int = 0) -> dict:
    return {
        "id": alert_id,
        "imgPath": f"data/img/{alert_id}.png",
        "date": "2024-05-01",
        "hour": "09:15:14",
        "camera": camera,
    }


def test_insert_and_contains() -> None:
    store = AlertStore()
    record = store.insert("CAM0-9-15-2", "img/a.png", date(2024, 5, 1), time(9, 15, 14), 0)

    assert store.contains("CAM0-9-15-2")
    assert "CAM0-9-15-2" in store
    assert not store.contains("CAM1-9-15-2")
    assert store.get("CAM0-9-15-2") == record
    assert len(store) == 1


def test_insert_replaces_existing_record() -> None:
    store = AlertStore()
    store.insert("a", "img/old.png", date(2024, 5, 1), time(9, 0), 0)
    store.insert("a", "img/new.png", date(2024, 5, 2), time(10, 0), 3)

    assert len(store) == 1
    assert store.get("a").image_path == "img/new.png"
    assert store.get("a").camera_index == 3


def test_sorted_by_hour() -> None:
    store = _store_with(
        ("a", "a.png", date(2024, 5, 1), time(9, 0, 0), 0),
        ("b", "b.png", date(2024, 5, 1), time(23, 59, 0), 0),
        ("c", "c.png", date(2024, 5, 1), time(0, 1, 0), 0),
    )

    hours = [record.time for record in store.sorted_by("hour")]

    assert hours == [time(0, 1, 0), time(9, 0, 0), time(23, 59, 0)]


def test_sorted_by_camera_is_stable() -> None:
    store = _store_with(
        ("a", "a.png", date(2024, 5, 1), time(9, 0), 1),
        ("b", "b.png", date(2024, 5, 1), time(9, 0), 0),
        ("c", "c.png", date(2024, 5, 1), time(9, 0), 1),
        ("d", "d.png", date(2024, 5, 1), time(9, 0), 0),
    )

    assert [record.id for record in store.sorted_by(SortField.CAMERA)] == ["b", "d", "a", "c"]


def test_sorted_by_date() -> None:
    store = _store_with(
        ("a", "a.png", date(2024, 6, 1), time(9, 0), 0),
        ("b", "b.png", date(2023, 12, 31), time(9, 0), 0),
        ("c", "c.png", date(2024, 1, 15), time(9, 0), 0),
    )

    assert [record.id for record in store.sorted_by(SortField.DATE)] == ["b", "c", "a"]


def test_sorted_by_rejects_unknown_field() -> None:
    with pytest.raises(ValueError):
        AlertStore().sorted_by("image")


def test_format_hour() -> None:
    assert format_hour(time(9, 5, 1)) == "09:05:01"
    assert format_hour(time(9, 5, 1, 250000)) == "09:05:01.250"


def test_save_writes_json_array(tmp_path: Path) -> None:
    store = _store_with(("CAM2-9-15-2", "data/img/CAM2-9-15-2.png", date(2024, 5, 1), time(9, 15, 14), 2))
    path = tmp_path / "alerts.json"

    assert store.save(path)

    assert json.loads(path.read_text()) == [
        {
            "id": "CAM2-9-15-2",
            "imgPath": "data/img/CAM2-9-15-2.png",
            "date": "2024-05-01",
            "hour": "09:15:14",
            "camera": 2,
        }
    ]


@pytest.mark.parametrize("count", [0, 1, 5])
def test_save_then_load_reproduces_records(tmp_path: Path, count: int) -> None:
    store = AlertStore()
    for index in reversed(range(count)):
        store.insert(f"CAM{index}-10-0-{index}", f"img/{index}.png", date(2024, 5, 1 + index), time(10, 0, index), index)
    path = tmp_path / "alerts.json"
    store.save(path)

    restored = AlertStore()
    loaded = restored.load(path)

    assert loaded == count
    assert {r.id: r for r in restored.records()} == {r.id: r for r in store.records()}


def test_load_then_save_round_trips_document(tmp_path: Path) -> None:
    original = [
        _good_entry("CAM0-9-15-2", 0),
        {**_good_entry("CAM1-23-1-9", 1), "hour": "23:01:09.125", "date": "2023-12-31"},
    ]
    source = _write(tmp_path / "in.json", original)
    target = tmp_path / "out.json"

    store = AlertStore()
    store.load(source)
    store.save(target)

    assert json.loads(target.read_text()) == original


def test_subsecond_hours_are_kept_to_the_millisecond(tmp_path: Path) -> None:
    store = _store_with(("a", "a.png", date(2024, 5, 1), time(9, 0, 0, 123456), 0))
    path = tmp_path / "alerts.json"
    store.save(path)

    restored = AlertStore()
    restored.load(path)

    assert restored.get("a").time == time(9, 0, 0, 123000)


def test_load_skips_record_missing_camera(tmp_path: Path) -> None:
    broken = _good_entry("CAM1-9-15-3")
    del broken["camera"]
    path = _write(tmp_path / "alerts.json", [_good_entry(), broken])

    store = AlertStore()

    assert store.load(path) == 1
    assert store.contains("CAM0-9-15-2")
    assert not store.contains("CAM1-9-15-3")


@pytest.mark.parametrize(
    "override",
    [
        {"date": "2024-13-40"},
        {"hour": "25:99:00"},
        {"hour": "09:00:00+02:00"},
        {"hour": "09:15"},
        {"hour": "09:15:14.250000"},
        {"date": "20240501"},
        {"date": "2024-5-1"},
        {"camera": True},
        {"camera": -1},
        {"camera": "2"},
        {"id": ""},
        {"imgPath": None},
    ],
)
def test_load_skips_unparseable_values(tmp_path: Path, override: dict) -> None:
    bad = {**_good_entry("bad"), **override}
    path = _write(tmp_path / "alerts.json", [bad, _good_entry("good")])

    store = AlertStore()
    store.load(path)

    assert [record.id for record in store.records()] == ["good"]


def test_load_skips_non_object_elements(tmp_path: Path) -> None:
    path = _write(tmp_path / "alerts.json", [42, "text", None, _good_entry()])

    store = AlertStore()

    assert store.load(path) == 1


def test_load_replaces_existing_contents(tmp_path: Path) -> None:
    path = _write(tmp_path / "alerts.json", [_good_entry()])
    store = _store_with(("stale", "stale.png", date(2024, 1, 1), time(1, 0), 0))

    store.load(path)

    assert not store.contains("stale")
    assert store.contains("CAM0-9-15-2")


def test_load_missing_file_leaves_store_untouched(tmp_path: Path) -> None:
    store = _store_with(("keep", "keep.png", date(2024, 1, 1), time(1, 0), 0))

    assert store.load(tmp_path / "missing.json") == 0
    assert store.contains("keep")


@pytest.mark.parametrize("content", ['{"id": "x"}', "not json at all", "", "42"])
def test_load_rejects_non_array_documents(tmp_path: Path, content: str) -> None:
    path = tmp_path / "alerts.json"
    path.write_text(content)
    store = _store_with(("keep", "keep.png", date(2024, 1, 1), time(1, 0), 0))

    assert store.load(path) == 0
    assert store.contains("keep")


def test_save_failure_is_reported_not_raised(tmp_path: Path) -> None:
    store = _store_with(("a", "a.png", date(2024, 1, 1), time(1, 0), 0))

    # The target is a directory, so the write fails
    assert store.save(tmp_path) is False


def test_save_permission_error_is_reported_not_raised(tmp_path: Path, monkeypatch) -> None:
    def deny(self, *args, **kwargs):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(Path, "write_text", deny)
    store = _store_with(("a", "a.png", date(2024, 1, 1), time(1, 0), 0))

    assert store.save(tmp_path / "alerts.json") is False
    assert store.contains("a")


def test_write_failure_raises_persistence_error(tmp_path: Path) -> None:
    with pytest.raises(AlertPersistenceError) as exc_info:
        store_module._write_document(tmp_path, "[]")

    assert exc_info.value.path == str(tmp_path)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_load_undecodable_file_leaves_store_untouched(tmp_path: Path) -> None:
    path = tmp_path / "alerts.json"
    path.write_bytes(b"\xff\xfe\x00[")
    store = _store_with(("keep", "keep.png", date(2024, 1, 1), time(1, 0), 0))

    assert store.load(path) == 0
    assert store.contains("keep")

    with pytest.raises(AlertPersistenceError) as exc_info:
        store_module._read_document(path)
    assert exc_info.value.path == str(path)


def test_flush_uses_bound_path(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "alerts.json"
    store = AlertStore(path)
    store.insert("a", "a.png", date(2024, 1, 1), time(1, 0), 0)

    assert store.flush()
    assert store.flush()
    assert len(json.loads(path.read_text())) == 1


def test_flush_without_path_does_nothing() -> None:
    assert AlertStore().flush() is False


def test_record_json_roundtrip_keys() -> None:
    record = AlertRecord("a", "a.png", date(2024, 1, 2), time(3, 4, 5), 6)

    assert set(record.to_json()) == {"id", "imgPath", "date", "hour", "camera"}
    assert AlertRecord.from_json(record.to_json()) == record
