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
Search session: the state shown to the user and the operations on it
"""

import copy
from dataclasses import replace
from datetime import datetime
import logging

from observable import Observable

from gios_air_quality import const
from gios_air_quality.catalog import SearchQuery, StationCatalog
from gios_air_quality.client import GiosClient
from gios_air_quality.details import StationDetailAggregator
from gios_air_quality.exceptions import DataDownloadError, StationNotFoundError
from gios_air_quality.geolocator import GeoLocator
from gios_air_quality.history import HistoryStore
from gios_air_quality.models import Coordinate, HistoryEntry, Station, StationDetail


_LOGGER = logging.getLogger(__name__)

RESULT_CHANGED = "result_changed"
STATIONS_CHANGED = "stations_changed"
USER_LOCATION_CHANGED = "user_location_changed"
USER_ADDRESS_CHANGED = "user_address_changed"
DETAILS_CHANGED = "details_changed"
HISTORY_CHANGED = "history_changed"
FROM_HISTORY_CHANGED = "from_history_changed"
NETWORK_ERROR = "network_error"
LOCATION_NOT_FOUND = "location_not_found"


class SearchSession(Observable):
    """
    State and operations behind the station search screen.

    The presentation layer subscribes to events with ``session.on(event, handler)``
    and reads the current state from the properties. All coroutine methods are
    meant to run on one event loop.
    """

    def __init__(
        self,
        client: GiosClient | None = None,
        geolocator: GeoLocator | None = None,
        history: HistoryStore | None = None,
    ):
        """
        Initialize the session and load the saved history.

        :param client: GIOŚ API client
        :type client: GiosClient, optional
        :param geolocator: Address geocoder for nearest-station searches
        :type geolocator: GeoLocator, optional
        :param history: History storage
        :type history: HistoryStore, optional
        """
        super().__init__()

        self._client = client or GiosClient()
        self._geolocator = geolocator or GeoLocator()
        self._history = history or HistoryStore(auto_load=False)
        self._catalog = StationCatalog()
        self._aggregator = StationDetailAggregator(
            self._client,
            on_update=self._detail_updated,
            on_error=self._detail_failed,
        )

        self._result = ""
        self._stations: list[Station] = []
        self._user_location: Coordinate | None = None
        self._user_address: str | None = None
        self._station_details: StationDetail | None = None
        self._is_from_history = False
        self._search_generation = 0

        self._history.load()
        self.trigger(HISTORY_CHANGED)


    @property
    def result(self) -> str:
        """Outcome message of the last operation."""
        return self._result

    @property
    def stations(self) -> list[Station]:
        return self._stations

    @property
    def user_location(self) -> Coordinate | None:
        return self._user_location

    @property
    def user_address(self) -> str | None:
        return self._user_address

    @property
    def station_details(self) -> StationDetail | None:
        return self._station_details

    @property
    def history(self) -> list[HistoryEntry]:
        return self._history.entries

    @property
    def is_from_history(self) -> bool:
        """True when the displayed station comes from history, not a live fetch."""
        return self._is_from_history


    def _set_result(self, message: str) -> None:
        self._result = message
        self.trigger(RESULT_CHANGED)

    def _set_from_history(self, value: bool) -> None:
        self._is_from_history = value
        self.trigger(FROM_HISTORY_CHANGED)

    def _reset_search_state(self) -> int:
        self._search_generation += 1
        self._user_location = None
        self._user_address = None
        self._result = ""
        self.trigger(USER_LOCATION_CHANGED)
        self.trigger(USER_ADDRESS_CHANGED)
        self.trigger(RESULT_CHANGED)
        self._set_from_history(False)
        return self._search_generation


    def _is_current_search(self, generation: int) -> bool:
        if generation != self._search_generation:
            _LOGGER.debug("Dropping result of superseded search %d.", generation)
            return False
        return True


    async def search_all(self) -> list[Station]:
        """List every station."""
        generation = self._reset_search_state()
        return await self._run_search(generation, SearchQuery.all())


    async def search_by_city(self, city: str) -> list[Station]:
        """
        List the stations of a city (exact, case-sensitive name).

        :param city: City name, e.g. "Warszawa"
        :type city: str
        """
        generation = self._reset_search_state()
        self._set_result(city)
        return await self._run_search(generation, SearchQuery.by_city(city))


    async def search_nearest(self, address: str) -> list[Station]:
        """
        Find the station nearest to an address.

        :param address: Free-text address, e.g. "Wałcz ul. Południowa 10"
        :type address: str
        :return: Singleton list with the nearest station, empty if the
                 address could not be located or a newer search started
                 in the meantime
        """
        generation = self._reset_search_state()

        coordinate = await self._geolocator.resolve(address)
        if not self._is_current_search(generation):
            return []

        if coordinate is None:
            self._stations = []
            self.trigger(STATIONS_CHANGED)
            self._set_result(const.LOCATION_NOT_FOUND_MESSAGE.format(address=address))
            self.trigger(LOCATION_NOT_FOUND, address)
            return []

        self._user_location = coordinate
        self._user_address = address
        self.trigger(USER_LOCATION_CHANGED)
        self.trigger(USER_ADDRESS_CHANGED)
        self._set_result(f"{coordinate.lat} {coordinate.lon}")

        return await self._run_search(generation, SearchQuery.nearest(coordinate))


    async def _run_search(self, generation: int, query: SearchQuery) -> list[Station]:
        try:
            raw = await self._client.fetch_stations()
        except DataDownloadError as exc:
            if not self._is_current_search(generation):
                return []
            _LOGGER.error("Station list request failed: %s", exc)
            self._catalog.clear()
            self._stations = []
            self.trigger(STATIONS_CHANGED)
            self._set_result(const.NO_CONNECTION_MESSAGE)
            self.trigger(NETWORK_ERROR, exc)
            return []

        if not self._is_current_search(generation):
            return []

        self._catalog.load(raw)
        try:
            self._stations, message = self._catalog.select(query)
        except StationNotFoundError as exc:
            _LOGGER.info("%s", exc)
            self._stations = []
            message = str(exc)

        self.trigger(STATIONS_CHANGED)
        self._set_result(message)
        return self._stations


    async def open_details(self, station_id: int) -> StationDetail:
        """
        Fetch sensors, measurement series and index of a station.

        ``details_changed`` fires for every partial result.

        :param station_id: Station to open
        :type station_id: int
        """
        self._set_from_history(False)
        generation = self._aggregator.start(station_id)
        self._station_details = self._aggregator.detail
        self.trigger(DETAILS_CHANGED)
        return await self._aggregator.collect(generation)


    def _detail_updated(self, detail: StationDetail) -> None:
        self._station_details = detail
        self.trigger(DETAILS_CHANGED)

    def _detail_failed(self, exc: Exception) -> None:
        self.trigger(NETWORK_ERROR, exc)


    def _find_station(self, station_id: int) -> tuple[int, Station] | None:
        for position, station in enumerate(self._stations):
            if station.id == station_id:
                return position, station
        return None


    def _build_entry(self, station: Station) -> HistoryEntry:
        detail = self._station_details
        if detail is None or detail.station_id != station.id:
            _LOGGER.warning(
                "No details loaded for station %d, saving it without sensors.", station.id
            )
            detail = StationDetail(station_id=station.id)

        return HistoryEntry(
            station=copy.deepcopy(station),
            sensors=copy.deepcopy(detail.sensors),
            air_quality_index=detail.air_quality_index,
            timestamp=datetime.now().replace(microsecond=0).isoformat(),
        )


    def _persist(self, entry: HistoryEntry) -> bool:
        try:
            self._history.prepend(entry)
        except OSError as exc:
            _LOGGER.error("Could not write history file: %s", exc)
            return False

        self.trigger(HISTORY_CHANGED)
        return True


    def save_current_to_history(self, station: Station | None = None) -> HistoryEntry | None:
        """
        Save a station together with the currently loaded details.

        :param station: Station to save; defaults to the station whose
                        details are currently shown
        :type station: Station, optional
        :return: The saved entry, or None if there was nothing to save
        :rtype: HistoryEntry | None
        """
        if station is None:
            if self._station_details is None:
                _LOGGER.warning("No station selected, nothing to save.")
                return None

            found = self._find_station(self._station_details.station_id)
            if found is None:
                _LOGGER.warning(
                    "Station %d is not in the current results, nothing to save.",
                    self._station_details.station_id,
                )
                return None
            station = found[1]

        entry = self._build_entry(station)
        return entry if self._persist(entry) else None


    def save_to_history(self, station_id: int) -> HistoryEntry | None:
        """
        Save a station from the current results, once.

        Stations already marked as saved are skipped.

        :param station_id: Id of a station in ``stations``
        :type station_id: int
        :return: The saved entry, or None if nothing was saved
        :rtype: HistoryEntry | None
        """
        found = self._find_station(station_id)
        if found is None:
            _LOGGER.debug("Station %d is not in the current results.", station_id)
            return None

        position, station = found
        if station.saved_to_history:
            return None

        entry = self._build_entry(station)
        if not self._persist(entry):
            return None

        self._stations[position] = replace(station, saved_to_history=True)
        self.trigger(STATIONS_CHANGED)
        return entry


    def show_from_history(self, index: int) -> HistoryEntry | None:
        """
        Display a saved entry instead of live data.

        :param index: Position in ``history``; out of range does nothing
        :type index: int
        """
        entries = self._history.entries
        if index < 0 or index >= len(entries):
            return None

        entry = copy.deepcopy(entries[index])
        self._aggregator.invalidate()
        self._search_generation += 1

        self._stations = [replace(entry.station, saved_to_history=True)]
        self._user_location = None
        self._user_address = None
        self.trigger(USER_LOCATION_CHANGED)
        self.trigger(USER_ADDRESS_CHANGED)

        self._station_details = entry.to_detail()
        self.trigger(DETAILS_CHANGED)

        self._set_from_history(True)
        self.trigger(STATIONS_CHANGED)
        return entry


    def remove_from_history(self, index: int) -> None:
        """Remove a saved entry; out of range does nothing."""
        if index < 0 or index >= len(self._history.entries):
            return
        try:
            self._history.remove_at(index)
        except OSError as exc:
            _LOGGER.error("Could not write history file: %s", exc)
            return
        self.trigger(HISTORY_CHANGED)


    def clear_history(self) -> None:
        try:
            self._history.clear()
        except OSError as exc:
            _LOGGER.error("Could not write history file: %s", exc)
            return
        self.trigger(HISTORY_CHANGED)


    def stations_in_history_for_city(self, city: str) -> list[HistoryEntry]:
        """Latest saved entry of every station in a city (case-insensitive)."""
        return self._history.entries_for_city(city)
