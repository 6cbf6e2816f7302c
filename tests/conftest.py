import asyncio

import pytest

from gios_air_quality.exceptions import DataDownloadError


def station_record(station_id, name, lat, lon, city, street=None):
    return {
        "id": station_id,
        "stationName": name,
        "gegrLat": str(lat),
        "gegrLon": str(lon),
        "city": {
            "id": station_id * 10,
            "name": city,
            "commune": {
                "communeName": city,
                "districtName": city,
                "provinceName": "MAZOWIECKIE",
            },
        },
        "addressStreet": street,
    }


def sensor_record(sensor_id, name, formula):
    return {
        "id": sensor_id,
        "stationId": 1,
        "param": {"paramName": name, "paramFormula": formula, "paramCode": formula, "idParam": 1},
    }


def index_record(level_id=1, level_name="Dobry", calc_date="2024-01-15 12:20:00"):
    return {
        "id": 1,
        "stCalcDate": calc_date,
        "stIndexLevel": {"id": level_id, "indexLevelName": level_name},
    }


STATIONS = [
    station_record(1, "Warszawa-Marszałkowska", 52.2253, 21.0089, "Warszawa", "ul. Marszałkowska"),
    station_record(2, "Warszawa-Targówek", 52.2910, 21.0431, "Warszawa"),
    station_record(3, "Kraków-Aleje", 50.0577, 19.9265, "Kraków", "al. Krasińskiego"),
]


class FakeClient:
    """Stands in for GiosClient; answers from dictionaries and records every call."""

    def __init__(self, stations=None, sensors=None, measurements=None, indexes=None, failing=()):
        self.stations = STATIONS if stations is None else stations
        self.sensors = sensors or {}
        self.measurements = measurements or {}
        self.indexes = indexes or {}
        self.failing = set(failing)
        self.calls = []
        self.gates = {}

    def gate(self, call):
        self.gates[call] = asyncio.Event()
        return self.gates[call]

    async def _answer(self, call, payload):
        self.calls.append(call)
        if call in self.gates:
            await self.gates[call].wait()
        else:
            await asyncio.sleep(0)
        if call in self.failing or call[0] in self.failing:
            raise DataDownloadError(f"{call} failed")
        return payload

    async def fetch_stations(self):
        return await self._answer(("stations",), self.stations)

    async def fetch_sensors(self, station_id):
        return await self._answer(("sensors", station_id), self.sensors.get(station_id, []))

    async def fetch_measurements(self, sensor_id):
        return await self._answer(("data", sensor_id), self.measurements.get(sensor_id, {}))

    async def fetch_index(self, station_id):
        return await self._answer(("index", station_id), self.indexes.get(station_id, {}))


class FakeGeoLocator:
    def __init__(self, coordinates=None):
        self.coordinates = coordinates or {}
        self.queries = []
        self.gates = {}

    def gate(self, address):
        self.gates[address] = asyncio.Event()
        return self.gates[address]

    async def resolve(self, address):
        self.queries.append(address)
        if address in self.gates:
            await self.gates[address].wait()
        return self.coordinates.get(address)


@pytest.fixture
def two_sensor_client():
    return FakeClient(
        sensors={
            1: [sensor_record(11, "pył zawieszony PM10", "PM10"), sensor_record(12, "dwutlenek azotu", "NO2")],
        },
        measurements={
            11: {"key": "PM10", "values": [
                {"date": "2024-01-15 12:00:00", "value": 21.5},
                {"date": "2024-01-15 11:00:00", "value": None},
                {"date": "2024-01-15 10:00:00", "value": 19.0},
            ]},
            12: {"key": "NO2", "values": [{"date": "2024-01-15 12:00:00", "value": 30.1}]},
        },
        indexes={1: index_record()},
    )


@pytest.fixture
def history_path(tmp_path):
    return str(tmp_path / "history.json")
