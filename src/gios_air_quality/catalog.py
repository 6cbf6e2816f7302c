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
Station list parsing and selection
"""

from dataclasses import dataclass, replace
from enum import Enum
import logging
import math
from typing import Any

from gios_air_quality import const
from gios_air_quality.distance import distance
from gios_air_quality.exceptions import StationNotFoundError
from gios_air_quality.models import Coordinate, Station


_LOGGER = logging.getLogger(__name__)

class SearchMode(Enum):
    ALL = "all"
    CITY = "city"
    NEAREST = "nearest"


@dataclass(frozen=True)
class SearchQuery:
    """Which stations a catalog selection should return."""

    mode: SearchMode
    city: str | None = None
    target: Coordinate | None = None

    @classmethod
    def all(cls) -> "SearchQuery":
        return cls(SearchMode.ALL)

    @classmethod
    def by_city(cls, city: str) -> "SearchQuery":
        return cls(SearchMode.CITY, city=city)

    @classmethod
    def nearest(cls, target: Coordinate) -> "SearchQuery":
        return cls(SearchMode.NEAREST, target=target)

    @classmethod
    def from_text(cls, text: str | None) -> "SearchQuery":
        """
        Derive the query from a stored search string.

        Empty text selects all stations, text without a space is a city name
        and ``"<lat> <lon>"`` selects the nearest station. Any other text
        containing a space is taken as a city name.

        :param text: Stored search string
        :type text: str | None
        :rtype: SearchQuery
        """
        if not text:
            return cls.all()
        if " " not in text:
            return cls.by_city(text)

        tokens = text.split(" ")
        if len(tokens) == 2:
            lat = _parse_degrees(tokens[0])
            lon = _parse_degrees(tokens[1])
            if lat is not None and lon is not None:
                return cls.nearest(Coordinate(lat, lon))
        return cls.by_city(text)


def _parse_degrees(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        degrees = float(value)
    except (TypeError, ValueError):
        return None
    return degrees if math.isfinite(degrees) else None


def _nested(record: dict, key: str) -> dict:
    value = record.get(key)
    return value if isinstance(value, dict) else {}


def parse_station(record: Any) -> Station | None:
    """
    Build a Station from one raw ``station/findAll`` record.

    :param record: Raw station record
    :return: Station, or None if the id or either coordinate is missing or invalid
    :rtype: Station | None
    """
    if not isinstance(record, dict):
        return None

    station_id = record.get("id")
    if station_id is None or record.get("gegrLat") is None or record.get("gegrLon") is None:
        return None

    try:
        station_id = int(station_id)
    except (TypeError, ValueError):
        return None

    lat = _parse_degrees(record.get("gegrLat"))
    lon = _parse_degrees(record.get("gegrLon"))
    if lat is None or lon is None:
        _LOGGER.debug(
            "Skipping station %s due to invalid coordinates.",
            record.get("stationName"),
        )
        return None

    city = _nested(record, "city")
    commune = _nested(city, "commune")

    return Station(
        id=station_id,
        name=record.get("stationName") or "",
        coordinate=Coordinate(lat, lon),
        city_name=city.get("name") or "",
        commune_name=commune.get("communeName") or "",
        district_name=commune.get("districtName") or "",
        province_name=commune.get("provinceName") or "",
        street_address=record.get("addressStreet"),
    )


def parse_stations(raw: Any) -> list[Station]:
    """
    Normalize the station list response, dropping malformed records.

    :param raw: Decoded ``station/findAll`` payload
    :rtype: list[Station]
    """
    if not isinstance(raw, list):
        _LOGGER.warning("Station list payload is not a list, ignoring it.")
        return []

    stations = []
    for record in raw:
        station = parse_station(record)
        if station is not None:
            stations.append(station)

    _LOGGER.debug(
        "Parsed %d of %d station records.", len(stations), len(raw)
    )
    return stations


class StationCatalog:
    """Holds the last parsed station list and applies search modes to it."""

    def __init__(self):
        self._stations: list[Station] = []


    @property
    def stations(self) -> list[Station]:
        return self._stations


    def load(self, raw: Any) -> list[Station]:
        """Parse a station list response and replace the catalog with it."""
        self._stations = parse_stations(raw)
        return self._stations


    def clear(self) -> None:
        self._stations = []


    def select(self, query: SearchQuery) -> tuple[list[Station], str]:
        """
        Apply a search mode to the catalog.

        :param query: Search to apply
        :type query: SearchQuery
        :return: (stations, outcome_message) tuple; the message is empty
                 when there is nothing to report
        :rtype: tuple[list[Station], str]
        :raises StationNotFoundError: If no station matches the city, or the
                                      catalog is empty in nearest mode
        """
        if query.mode is SearchMode.CITY:
            return self._select_city(query.city or ""), ""

        if query.mode is SearchMode.NEAREST:
            nearest = self.nearest(query.target)
            message = const.NEAREST_STATION_MESSAGE.format(
                name=nearest.name,
                distance=nearest.distance_km,
            )
            return [nearest], message

        return list(self._stations), ""


    def _select_city(self, city: str) -> list[Station]:
        matches = [
            station for station in self._stations
            if station.city_name == city
        ]
        if not matches:
            raise StationNotFoundError(
                const.NO_STATIONS_IN_CITY_MESSAGE.format(city=city)
            )

        _LOGGER.info("Found %d stations in %s.", len(matches), city)
        return matches


    def nearest(self, target: Coordinate) -> Station:
        """
        Station closest to ``target``; the first one wins on exact ties.

        :param target: Point to measure from
        :type target: Coordinate
        :return: Copy of the nearest station with ``distance_km`` set
        :rtype: Station
        :raises StationNotFoundError: If the catalog is empty
        """
        nearest_station = None
        min_distance_km = float("inf")

        for station in self._stations:
            station_distance = distance(
                target.lat, target.lon,
                station.coordinate.lat, station.coordinate.lon,
            )
            if station_distance < min_distance_km:
                min_distance_km, nearest_station = station_distance, station

        if nearest_station is None:
            raise StationNotFoundError(const.NO_STATIONS_MESSAGE)

        _LOGGER.info(
            "Nearest Station Found: %s at %.2f km.",
            nearest_station.name,
            min_distance_km,
        )
        return replace(nearest_station, distance_km=min_distance_km)
