import json
import os

import pytest

from gios_air_quality.history import HistoryStore
from gios_air_quality.models import (
    AirQualityIndex,
    Coordinate,
    HistoryEntry,
    Measurement,
    Sensor,
    Station,
)


def make_entry(station_id, city, timestamp, name=None):
    station = Station(
        id=station_id,
        name=name or f"Station {station_id}",
        coordinate=Coordinate(52.0, 21.0),
        city_name=city,
    )
    return HistoryEntry(
        station=station,
        sensors=[Sensor(11, "pył zawieszony PM10", "PM10", [Measurement("2024-01-15 12:00:00", 21.5)])],
        air_quality_index=AirQualityIndex("2024-01-15 12:20:00", 1, "Dobry"),
        timestamp=timestamp,
    )


@pytest.fixture
def store(history_path):
    store = HistoryStore(history_path)
    store.save([
        make_entry(1, "Warszawa", "2023-10-01T12:00:00", "Stacja Warszawa 1"),
        make_entry(1, "Warszawa", "2023-10-02T12:00:00", "Stacja Warszawa 1 (nowsza)"),
        make_entry(2, "Kraków", "2023-10-01T12:00:00"),
    ])
    return store


def test_missing_file_loads_empty(history_path):
    assert HistoryStore(history_path).load() == []


def test_corrupted_file_loads_empty(history_path):
    with open(history_path, "w", encoding="utf-8") as file:
        file.write("{not json")
    assert HistoryStore(history_path).load() == []


def test_non_list_file_loads_empty(history_path):
    with open(history_path, "w", encoding="utf-8") as file:
        json.dump({"id": 1}, file)
    assert HistoryStore(history_path).load() == []


def test_malformed_entries_are_skipped(history_path):
    valid = make_entry(3, "Gdańsk", "2024-01-01T00:00:00")
    with open(history_path, "w", encoding="utf-8") as file:
        json.dump([{"name": "no id"}, valid.to_dict()], file)
    assert HistoryStore(history_path).load() == [valid]


def test_prepend_then_load_returns_entry_first(store):
    entry = make_entry(9, "Poznań", "2024-02-01T08:30:00")
    store.prepend(entry)

    loaded = HistoryStore(store.path).load()
    assert loaded[0] == entry
    assert len(loaded) == 4


def test_remove_at_keeps_relative_order(store):
    names = [e.station.name for e in store.entries]
    store.remove_at(0)
    assert [e.station.name for e in HistoryStore(store.path).load()] == names[1:]


@pytest.mark.parametrize("index", [-1, 3, 100])
def test_remove_out_of_range_is_noop(store, index):
    before = store.load()
    store.remove_at(index)
    assert store.load() == before


def test_clear(store):
    store.clear()
    assert store.entries == []
    assert HistoryStore(store.path).load() == []


def test_file_is_a_json_array_newest_first(store):
    store.prepend(make_entry(9, "Poznań", "2024-02-01T08:30:00"))
    with open(store.path, encoding="utf-8") as file:
        raw = json.load(file)

    assert isinstance(raw, list)
    assert raw[0]["id"] == 9
    assert raw[0]["cityName"] == "Poznań"
    assert raw[0]["airQualityIndex"] == {"calcDate": "2024-01-15 12:20:00", "indexLevel": 1, "indexLevelName": "Dobry"}
    assert raw[0]["sensors"][0]["measurements"] == [{"date": "2024-01-15 12:00:00", "value": 21.5}]


def test_entries_for_city_keeps_latest_per_station(store):
    warsaw = store.entries_for_city("Warszawa")
    assert len(warsaw) == 1
    assert warsaw[0].station.name == "Stacja Warszawa 1 (nowsza)"

    krakow = store.entries_for_city("Kraków")
    assert [e.station_id for e in krakow] == [2]

    assert store.entries_for_city("Poznań") == []


def test_entries_for_city_is_case_insensitive(store):
    assert store.entries_for_city("warszawa") == store.entries_for_city("Warszawa")
    assert store.entries_for_city("KRAKÓW") == store.entries_for_city("Kraków")


def test_unparsable_timestamp_loses(history_path):
    store = HistoryStore(history_path)
    store.save([
        make_entry(1, "Warszawa", "not a date", "broken"),
        make_entry(1, "Warszawa", "2023-10-01T12:00:00", "valid"),
        make_entry(1, "Warszawa", "", "empty"),
    ])
    assert [e.station.name for e in store.entries_for_city("Warszawa")] == ["valid"]


def test_equal_timestamps_keep_first(history_path):
    store = HistoryStore(history_path)
    store.save([
        make_entry(1, "Warszawa", "2023-10-01T12:00:00", "first"),
        make_entry(1, "Warszawa", "2023-10-01T12:00:00", "second"),
    ])
    assert store.entries_for_city("Warszawa")[0].station.name == "first"


def _failing(*args, **kwargs):
    raise OSError("disk full")


@pytest.mark.parametrize("target", ["replace", "dump"])
def test_failed_save_leaves_no_temp_file(store, tmp_path, monkeypatch, target):
    before = store.load()
    if target == "replace":
        monkeypatch.setattr(os, "replace", _failing)
    else:
        monkeypatch.setattr(json, "dump", _failing)

    with pytest.raises(OSError):
        store.save([])

    monkeypatch.undo()
    assert [p.name for p in tmp_path.iterdir()] == ["history.json"]
    assert HistoryStore(store.path).load() == before
