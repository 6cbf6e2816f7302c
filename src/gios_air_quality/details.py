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
Station detail fan-out and merge
"""

import asyncio
import logging
from typing import Any, Callable

from gios_air_quality import const
from gios_air_quality.exceptions import DataDownloadError
from gios_air_quality.models import AirQualityIndex, Measurement, Sensor, StationDetail


_LOGGER = logging.getLogger(__name__)

def parse_sensors(raw: Any) -> list[Sensor]:
    """
    Build sensors from a ``station/sensors`` payload, without measurements.

    :param raw: Decoded payload
    :rtype: list[Sensor]
    """
    sensors = []
    for record in raw if isinstance(raw, list) else []:
        if not isinstance(record, dict) or record.get("id") is None:
            continue

        param = record.get("param")
        param = param if isinstance(param, dict) else {}
        try:
            sensor_id = int(record["id"])
        except (TypeError, ValueError):
            _LOGGER.debug("Skipping sensor with invalid id %r.", record.get("id"))
            continue

        sensors.append(
            Sensor(
                id=sensor_id,
                param_name=param.get("paramName") or "",
                param_formula=param.get("paramFormula") or "",
            )
        )
    return sensors


def parse_measurements(raw: Any) -> tuple[str, list[Measurement]]:
    """
    Extract the series key and its non-null readings, in API order.

    :param raw: Decoded ``data/getData`` payload
    :return: (key, measurements) tuple
    :rtype: tuple[str, list[Measurement]]
    """
    if not isinstance(raw, dict):
        return "", []

    measurements = []
    for entry in raw.get("values") or []:
        if not isinstance(entry, dict) or entry.get("value") is None:
            continue
        try:
            measurements.append(
                Measurement(date=str(entry.get("date") or ""), value=float(entry["value"]))
            )
        except (TypeError, ValueError):
            _LOGGER.debug("Skipping unreadable measurement value %r.", entry.get("value"))

    return raw.get("key") or "", measurements


def parse_index(raw: Any) -> AirQualityIndex:
    """Build the station index from an ``aqindex/getIndex`` payload."""
    raw = raw if isinstance(raw, dict) else {}
    level = raw.get("stIndexLevel")

    if not isinstance(level, dict) or level.get("id") is None:
        return AirQualityIndex(
            calc_date=raw.get("stCalcDate") or "",
            level_id=const.NO_INDEX_LEVEL_ID,
            level_name="",
        )

    return AirQualityIndex(
        calc_date=raw.get("stCalcDate") or "",
        level_id=int(level["id"]),
        level_name=level.get("indexLevelName") or "",
    )


class StationDetailAggregator:
    """
    Collects the sensor list, per-sensor series and the index of one station
    into a single StationDetail.

    Every fetch gets a generation number. Responses carrying an older
    generation than the current one are dropped, so a slow answer for a
    previously selected station never lands in the new detail record.
    """

    def __init__(
        self,
        client,
        on_update: Callable[[StationDetail], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_complete: Callable[[StationDetail], None] | None = None,
    ):
        """
        Initialize the aggregator.

        :param client: Object providing the ``fetch_sensors``, ``fetch_measurements``
                       and ``fetch_index`` coroutines
        :param on_update: Called after every response that changed the detail
        :param on_error: Called once per failed sub-request
        :param on_complete: Called when the last pending sub-request finished
        """
        self._client = client
        self._on_update = on_update
        self._on_error = on_error
        self._on_complete = on_complete

        self._generation = 0
        self._pending: dict[int, int] = {}
        self._detail: StationDetail | None = None


    @property
    def detail(self) -> StationDetail | None:
        return self._detail

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> int:
        """Sub-requests of the current fetch that have not finished yet."""
        if self._detail is None:
            return 0
        return self._pending.get(self._detail.station_id, 0)

    @property
    def is_complete(self) -> bool:
        return self._detail is not None and self.pending == 0


    def start(self, station_id: int) -> int:
        """
        Reset the detail record for a new station.

        :param station_id: Station to collect
        :type station_id: int
        :return: Generation number to pass to the handlers
        :rtype: int
        """
        self._generation += 1
        self._detail = StationDetail(station_id=station_id)
        self._pending = {station_id: const.INITIAL_DETAIL_REQUESTS}

        _LOGGER.debug(
            "Started detail fetch %d for station %d.", self._generation, station_id
        )
        return self._generation


    def invalidate(self) -> None:
        """Drop the current fetch; its late responses will be ignored."""
        self._generation += 1
        self._pending = {}


    def _is_current(self, generation: int) -> bool:
        if generation != self._generation or self._detail is None:
            _LOGGER.debug("Dropping response of stale detail fetch %d.", generation)
            return False
        return True


    def _finish_one(self) -> None:
        station_id = self._detail.station_id
        self._pending[station_id] = self._pending.get(station_id, 0) - 1

        if self._pending[station_id] == 0:
            _LOGGER.info("All detail requests for station %d finished.", station_id)
            if self._on_complete is not None:
                self._on_complete(self._detail)


    def _notify_update(self) -> None:
        if self._on_update is not None:
            self._on_update(self._detail)


    def handle_sensors(self, generation: int, raw: Any) -> list[int]:
        """
        Store the sensor list and account for one series request per sensor.

        :return: Sensor ids whose measurement series must be requested
        :rtype: list[int]
        """
        if not self._is_current(generation):
            return []

        sensors = parse_sensors(raw)
        station_id = self._detail.station_id

        # Count the new requests before releasing this one so the counter
        # cannot reach zero in between.
        self._pending[station_id] += len(sensors)
        self._detail.sensors = sensors
        self._finish_one()

        return [sensor.id for sensor in sensors]


    def handle_measurements(self, generation: int, raw: Any) -> None:
        """Attach a measurement series to the sensor with the matching formula."""
        if not self._is_current(generation):
            return

        key, measurements = parse_measurements(raw)
        sensor = self._detail.sensor_for_formula(key)
        if sensor is not None:
            sensor.measurements = measurements
        else:
            _LOGGER.warning(
                "No sensor with formula '%s' at station %d.", key, self._detail.station_id
            )

        self._notify_update()
        self._finish_one()


    def handle_index(self, generation: int, raw: Any) -> None:
        """Attach the station air quality index."""
        if not self._is_current(generation):
            return

        self._detail.air_quality_index = parse_index(raw)
        self._notify_update()
        self._finish_one()


    def handle_failure(self, generation: int, exc: Exception) -> None:
        """
        Record a failed sub-request. The detail keeps whatever already arrived.
        """
        if not self._is_current(generation):
            return

        _LOGGER.warning(
            "Detail request for station %d failed: %s", self._detail.station_id, exc
        )
        if self._on_error is not None:
            self._on_error(exc)
        self._finish_one()


    async def fetch(self, station_id: int) -> StationDetail:
        """
        Collect the full detail of a station.

        The sensor list and the index are requested concurrently; each sensor
        in the list then gets its own series request. Partial results are
        reported through ``on_update`` as they arrive.

        :param station_id: Station to collect
        :type station_id: int
        :return: The detail record of this fetch
        :rtype: StationDetail
        """
        return await self.collect(self.start(station_id))


    async def collect(self, generation: int) -> StationDetail:
        """
        Issue the requests of a fetch already begun with :meth:`start`.

        :param generation: Value returned by ``start``
        :type generation: int
        :rtype: StationDetail
        """
        detail = self._detail
        station_id = detail.station_id

        await asyncio.gather(
            self._request_sensors(generation, station_id),
            self._request_index(generation, station_id),
        )
        return detail


    async def _request_sensors(self, generation: int, station_id: int) -> None:
        try:
            raw = await self._client.fetch_sensors(station_id)
        except DataDownloadError as exc:
            self.handle_failure(generation, exc)
            return

        sensor_ids = self.handle_sensors(generation, raw)
        await asyncio.gather(
            *(self._request_measurements(generation, sensor_id) for sensor_id in sensor_ids)
        )


    async def _request_measurements(self, generation: int, sensor_id: int) -> None:
        try:
            raw = await self._client.fetch_measurements(sensor_id)
        except DataDownloadError as exc:
            self.handle_failure(generation, exc)
            return

        self.handle_measurements(generation, raw)


    async def _request_index(self, generation: int, station_id: int) -> None:
        try:
            raw = await self._client.fetch_index(station_id)
        except DataDownloadError as exc:
            self.handle_failure(generation, exc)
            return

        self.handle_index(generation, raw)
