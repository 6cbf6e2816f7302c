import pytest

from gios_air_quality.catalog import (
    SearchMode,
    SearchQuery,
    StationCatalog,
    parse_station,
    parse_stations,
)
from gios_air_quality.distance import distance
from gios_air_quality.exceptions import StationNotFoundError
from gios_air_quality.models import Coordinate

from tests.conftest import STATIONS, station_record


def test_parse_station_maps_nested_fields():
    station = parse_station(STATIONS[0])

    assert station.id == 1
    assert station.name == "Warszawa-Marszałkowska"
    assert station.coordinate == Coordinate(52.2253, 21.0089)
    assert station.city_name == "Warszawa"
    assert station.commune_name == "Warszawa"
    assert station.province_name == "MAZOWIECKIE"
    assert station.street_address == "ul. Marszałkowska"
    assert station.saved_to_history is False
    assert station.distance_km is None


def test_unparsable_latitude_drops_record():
    record = station_record(5, "Broken", "abc", 21.0, "Warszawa")
    assert parse_stations([record]) == []


def test_missing_id_or_coordinate_drops_record():
    no_id = dict(STATIONS[0], id=None)
    no_lon = dict(STATIONS[1], gegrLon=None)
    assert parse_stations([no_id, no_lon, STATIONS[2]])[0].id == 3
    assert len(parse_stations([no_id, no_lon, STATIONS[2]])) == 1


def test_missing_city_yields_empty_strings():
    record = {"id": 7, "stationName": "Lonely", "gegrLat": "50.1", "gegrLon": "20.2", "city": None}
    station = parse_station(record)

    assert station.city_name == ""
    assert station.commune_name == ""
    assert station.district_name == ""
    assert station.street_address is None


def test_non_list_payload_parses_to_nothing():
    assert parse_stations({"error": "boom"}) == []


@pytest.mark.parametrize("text, mode", [
    ("", SearchMode.ALL),
    (None, SearchMode.ALL),
    ("Warszawa", SearchMode.CITY),
    ("52.1 21.2", SearchMode.NEAREST),
    ("Zielona Góra", SearchMode.CITY),
])
def test_query_from_text(text, mode):
    assert SearchQuery.from_text(text).mode is mode


def test_query_from_text_keeps_coordinates():
    assert SearchQuery.from_text("52.1 21.2").target == Coordinate(52.1, 21.2)


@pytest.fixture
def catalog():
    catalog = StationCatalog()
    catalog.load(STATIONS)
    return catalog


def test_all_mode_returns_full_list(catalog):
    stations, message = catalog.select(SearchQuery.all())
    assert [s.id for s in stations] == [1, 2, 3]
    assert message == ""


def test_city_mode_filters_exact_name(catalog):
    stations, _ = catalog.select(SearchQuery.by_city("Warszawa"))
    assert [s.id for s in stations] == [1, 2]


def test_city_mode_is_case_sensitive(catalog):
    with pytest.raises(StationNotFoundError):
        catalog.select(SearchQuery.by_city("warszawa"))


def test_city_without_stations_raises_not_found(catalog):
    with pytest.raises(StationNotFoundError, match="No stations found in Poznań"):
        catalog.select(SearchQuery.by_city("Poznań"))


def test_nearest_mode_picks_closest_station(catalog):
    target = Coordinate(50.0647, 19.9450)
    stations, message = catalog.select(SearchQuery.nearest(target))

    assert len(stations) == 1
    nearest = stations[0]
    assert nearest.id == 3

    expected = distance(target.lat, target.lon, 50.0577, 19.9265)
    assert nearest.distance_km == pytest.approx(expected)
    assert message == f"Nearest station: Kraków-Aleje, distance: {expected:.2f} km"
    for station in catalog.stations:
        assert distance(target.lat, target.lon, station.coordinate.lat, station.coordinate.lon) >= expected


def test_nearest_does_not_modify_catalog(catalog):
    catalog.nearest(Coordinate(50.0, 20.0))
    assert all(s.distance_km is None for s in catalog.stations)


def test_nearest_first_minimum_wins_on_tie():
    catalog = StationCatalog()
    catalog.load([
        station_record(1, "First", 50.0, 20.0, "A"),
        station_record(2, "Second", 50.0, 20.0, "B"),
    ])
    assert catalog.nearest(Coordinate(51.0, 20.0)).id == 1


def test_nearest_in_empty_catalog_raises():
    with pytest.raises(StationNotFoundError):
        StationCatalog().nearest(Coordinate(50.0, 20.0))


def test_clear_empties_catalog(catalog):
    catalog.clear()
    assert catalog.stations == []


@pytest.mark.parametrize("text", ["nan inf", "52.1 inf", "nan 21.0"])
def test_query_from_text_with_non_finite_tokens_is_a_city(text):
    query = SearchQuery.from_text(text)
    assert query.mode is SearchMode.CITY
    assert query.city == text
