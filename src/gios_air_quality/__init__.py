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
Provides a python client for looking up stations and retrieving
air quality data from the GIOŚ (api.gios.gov.pl) portal.
"""

__version__ = "1.0.0"

from .catalog import SearchMode, SearchQuery, StationCatalog, parse_stations
from .client import GiosClient
from .details import StationDetailAggregator
from .distance import distance
from .exceptions import AirQualityError, DataDownloadError, StationNotFoundError
from .geolocator import GeoLocator
from .history import HistoryStore
from .models import (
    AirQualityIndex,
    Coordinate,
    HistoryEntry,
    Measurement,
    Sensor,
    Station,
    StationDetail,
)
from .session import SearchSession

__all__ = [
    "SearchSession",
    "GiosClient",
    "GeoLocator",
    "StationCatalog",
    "StationDetailAggregator",
    "HistoryStore",
    "SearchMode",
    "SearchQuery",
    "parse_stations",
    "distance",
    "Coordinate",
    "Station",
    "Sensor",
    "Measurement",
    "AirQualityIndex",
    "StationDetail",
    "HistoryEntry",
    "AirQualityError",
    "DataDownloadError",
    "StationNotFoundError",
    "__version__",
]
