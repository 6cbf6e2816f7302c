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
Exception hierarchy
"""


class AirQualityError(Exception):
    """Base exception for the gios-air-quality library."""

class DataDownloadError(AirQualityError):
    """Raised when a request fails or its payload cannot be decoded."""

class StationNotFoundError(AirQualityError):
    """Raised when no station matches a city or a location."""
