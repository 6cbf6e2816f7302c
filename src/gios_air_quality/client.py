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
HTTP access to the GIOŚ REST API
"""

import asyncio
import logging
import threading
from typing import Any, Callable

import requests

from gios_air_quality import const
from gios_air_quality.exceptions import DataDownloadError


_LOGGER = logging.getLogger(__name__)

class GiosClient:
    """
    Thin client for the GIOŚ station, sensor, data and index endpoints.

    Requests are blocking ``requests`` calls; the coroutine methods hand them
    to a worker thread so the event loop stays responsive. Payloads are
    returned as decoded JSON, parsing is left to the callers.
    """

    def __init__(
        self,
        base_url: str = const.API_BASE_URL,
        request_timeout: int = const.REQUEST_TIMEOUT,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        """
        Initialize the API client.

        ``requests.Session`` is not thread-safe and the coroutine methods may
        run on several worker threads at once, so every thread gets its own
        session from ``session_factory``.

        :param base_url: Root of the REST API
        :type base_url: str
        :param request_timeout: HTTP request timeout in seconds
        :type request_timeout: int
        :param session_factory: Creates the session of a worker thread
        :type session_factory: Callable[[], requests.Session]
        """
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._session_factory = session_factory
        self._local = threading.local()


    def _thread_session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
        return session


    def make_url(self, endpoint: str) -> str:
        """Build the full URL for an endpoint path."""
        return f"{self._base_url}/{endpoint}"


    def get(self, endpoint: str) -> Any:
        """
        Perform a blocking GET and decode the JSON body.

        :param endpoint: Endpoint path relative to the base URL
        :type endpoint: str
        :return: Decoded JSON payload
        :raises DataDownloadError: On any network error, HTTP error status or invalid JSON
        """
        url = self.make_url(endpoint)
        headers = {
            "User-Agent": const.USER_AGENT,
            "Accept": "application/json",
        }

        try:
            response = self._thread_session().get(
                url,
                headers=headers,
                timeout=self._request_timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as exc:
            _LOGGER.error("Request to %s failed: %s", url, exc)
            raise DataDownloadError(f"Request to {url} failed: {exc}") from exc

        except ValueError as exc:
            _LOGGER.error("Response from %s is not valid JSON: %s", url, exc)
            raise DataDownloadError(f"Invalid JSON received from {url}: {exc}") from exc


    async def _get_async(self, endpoint: str) -> Any:
        return await asyncio.to_thread(self.get, endpoint)

    async def fetch_stations(self) -> Any:
        """Raw list of all measuring stations."""
        return await self._get_async(const.STATIONS_ENDPOINT)

    async def fetch_sensors(self, station_id: int) -> Any:
        """Raw list of sensors installed at a station."""
        return await self._get_async(
            const.SENSORS_ENDPOINT.format(station_id=station_id)
        )

    async def fetch_measurements(self, sensor_id: int) -> Any:
        """Raw measurement series (``{key, values}``) of one sensor."""
        return await self._get_async(
            const.MEASUREMENTS_ENDPOINT.format(sensor_id=sensor_id)
        )

    async def fetch_index(self, station_id: int) -> Any:
        """Raw air quality index of a station."""
        return await self._get_async(
            const.INDEX_ENDPOINT.format(station_id=station_id)
        )
