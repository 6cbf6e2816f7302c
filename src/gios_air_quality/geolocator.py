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
Address geocoding
"""

import asyncio
import logging
from typing import Callable

from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim
import requests

from gios_air_quality import const
from gios_air_quality.models import Coordinate


_LOGGER = logging.getLogger(__name__)

class GeoLocator:
    """
    Resolves a free-text address to a single coordinate using Nominatim,
    restricted to one country.
    """

    def __init__(
        self,
        use_nominatim: bool = True,
        nominatim_timeout: int = const.NOMINATIM_TIMEOUT,
        country_code: str = const.GEOCODER_COUNTRY_CODE,
        geocode: Callable | None = None,
    ):
        """
        Initialize the locator.

        :param use_nominatim: Enable Nominatim lookups; when False every address is not found
        :type use_nominatim: bool
        :param nominatim_timeout: Geocoding timeout in seconds
        :type nominatim_timeout: int
        :param country_code: ISO 3166-1 alpha-2 code the search is limited to
        :type country_code: str
        :param geocode: Replacement for the geopy geocode callable
        :type geocode: Callable, optional
        """
        self._use_nominatim = use_nominatim
        self._nominatim_timeout = nominatim_timeout
        self._country_code = country_code
        self._coordinate_cache: dict[str, Coordinate] = {}

        if geocode is not None:
            self._geocode = geocode
        elif self._use_nominatim:
            geolocator = Nominatim(
                user_agent=const.USER_AGENT
            )
            self._geocode = RateLimiter(
                geolocator.geocode,
                min_delay_seconds=const.NOMINATIM_MIN_DELAY_SECONDS,
                max_retries=0,
                swallow_exceptions=False
            )
        else:
            self._geocode = None


    async def resolve(self, address: str) -> Coordinate | None:
        """
        Geocode an address without blocking the event loop.

        :param address: Free-text address, e.g. "Wałcz ul. Południowa 10"
        :type address: str
        :return: Coordinate of the first result, or None if not found
        :rtype: Coordinate | None
        """
        if address in self._coordinate_cache:
            _LOGGER.info("Coordinates for '%s' retrieved from local cache.", address)
            return self._coordinate_cache[address]

        if self._geocode is None:
            _LOGGER.debug("Nominatim geocoding disabled. Cannot lookup coordinates for '%s'.", address)
            return None

        _LOGGER.info("Attempting external geocoding for '%s'...", address)
        try:
            location = await asyncio.to_thread(
                self._geocode,
                address,
                exactly_one=True,
                timeout=self._nominatim_timeout,
                country_codes=self._country_code,
            )
        except (requests.exceptions.RequestException, GeopyError) as exc:
            _LOGGER.error("Geocoding service error for '%s': %s", address, exc)
            return None

        if not location:
            _LOGGER.warning("External geocoding found nothing for '%s'.", address)
            return None

        coordinate = Coordinate(
            float(location.latitude),
            float(location.longitude)
        )
        self._coordinate_cache[address] = coordinate
        _LOGGER.info("Successfully geocoded '%s'.", address)
        return coordinate
