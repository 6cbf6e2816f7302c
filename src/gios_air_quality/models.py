#  Provides a python client for looking up stations and retrieving
#  air quality data from the GIOŚ (api.gios.gov.pl) portal.
#  Copyright (C) 2025 chickendrop89

#  This library is free software; you can redistribute it and/or modify it
#  under the terms of the GNU Lesser General Public License as published by
#  the Free Software Foundation; either version 3 of the License, or
#  (at your option) any later version.

#  This library is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU Lesser General Public License for more details.

"""
Station, sensor and history data structures
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Coordinate:
    """Point in decimal degrees."""

    lat: float
    lon: float


@dataclass(frozen=True)
class Measurement:
    """Single reading of a sensor. The date is kept in the API format."""

    date: str
    value: float

    def to_dict(self) -> dict:
        return {"date": self.date, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Measurement":
        return cls(date=str(data["date"]), value=float(data["value"]))


@dataclass(frozen=True)
class AirQualityIndex:
    """Station index level computed by the API."""

    calc_date: str
    level_id: int
    level_name: str

    def to_dict(self) -> dict:
        return {
            "calcDate": self.calc_date,
            "indexLevel": self.level_id,
            "indexLevelName": self.level_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AirQualityIndex":
        return cls(
            calc_date=data.get("calcDate") or "",
            level_id=int(data.get("indexLevel", -1)),
            level_name=data.get("indexLevelName") or "",
        )


@dataclass
class Sensor:
    """
    A measured parameter at a station.

    ``measurements`` stays ``None`` until the series for this sensor arrives.
    """

    id: int
    param_name: str
    param_formula: str
    measurements: list[Measurement] | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "paramName": self.param_name,
            "paramFormula": self.param_formula,
        }
        if self.measurements is not None:
            data["measurements"] = [m.to_dict() for m in self.measurements]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Sensor":
        measurements = data.get("measurements")
        return cls(
            id=int(data["id"]),
            param_name=data.get("paramName") or "",
            param_formula=data.get("paramFormula") or "",
            measurements=(
                [Measurement.from_dict(m) for m in measurements]
                if measurements is not None else None
            ),
        )


@dataclass
class Station:
    """
    Monitoring station.

    ``distance_km`` is only set on results of a nearest-station search.
    """

    id: int
    name: str
    coordinate: Coordinate
    city_name: str = ""
    commune_name: str = ""
    district_name: str = ""
    province_name: str = ""
    street_address: str | None = None
    saved_to_history: bool = False
    distance_km: float | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "cityName": self.city_name,
            "communeName": self.commune_name,
            "districtName": self.district_name,
            "provinceName": self.province_name,
            "addressStreet": self.street_address,
            "savedToHistory": self.saved_to_history,
        }
        if self.distance_km is not None:
            data["dist"] = self.distance_km
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Station":
        distance_km = data.get("dist")
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            coordinate=Coordinate(float(data["lat"]), float(data["lon"])),
            city_name=data.get("cityName") or "",
            commune_name=data.get("communeName") or "",
            district_name=data.get("districtName") or "",
            province_name=data.get("provinceName") or "",
            street_address=data.get("addressStreet"),
            saved_to_history=bool(data.get("savedToHistory", False)),
            distance_km=float(distance_km) if distance_km is not None else None,
        )


@dataclass
class StationDetail:
    """Sensors and index of one station, filled in as responses arrive."""

    station_id: int
    sensors: list[Sensor] = field(default_factory=list)
    air_quality_index: AirQualityIndex | None = None

    def sensor_for_formula(self, formula: str) -> Sensor | None:
        """First sensor whose parameter formula equals ``formula``."""
        for sensor in self.sensors:
            if sensor.param_formula == formula:
                return sensor
        return None


@dataclass
class HistoryEntry:
    """Snapshot of a station and its detail at the time it was saved."""

    station: Station
    sensors: list[Sensor]
    air_quality_index: AirQualityIndex | None
    timestamp: str

    @property
    def station_id(self) -> int:
        return self.station.id

    @property
    def city_name(self) -> str:
        return self.station.city_name

    def to_detail(self) -> StationDetail:
        return StationDetail(
            station_id=self.station.id,
            sensors=self.sensors,
            air_quality_index=self.air_quality_index,
        )

    def to_dict(self) -> dict:
        data = self.station.to_dict()
        data["airQualityIndex"] = (
            self.air_quality_index.to_dict()
            if self.air_quality_index is not None else None
        )
        data["sensors"] = [sensor.to_dict() for sensor in self.sensors]
        data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        index = data.get("airQualityIndex")
        return cls(
            station=Station.from_dict(data),
            sensors=[Sensor.from_dict(s) for s in data.get("sensors") or []],
            air_quality_index=AirQualityIndex.from_dict(index) if index else None,
            timestamp=data.get("timestamp") or "",
        )
