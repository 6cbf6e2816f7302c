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
Constants and defaults
"""

API_BASE_URL = "https://api.gios.gov.pl/pjp-api/rest"

STATIONS_ENDPOINT = "station/findAll"
SENSORS_ENDPOINT = "station/sensors/{station_id}"
MEASUREMENTS_ENDPOINT = "data/getData/{sensor_id}"
INDEX_ENDPOINT = "aqindex/getIndex/{station_id}"

USER_AGENT = "gios-air-quality-python/1.0"

REQUEST_TIMEOUT = 20
NOMINATIM_TIMEOUT = 10
NOMINATIM_MIN_DELAY_SECONDS = 1.0
GEOCODER_COUNTRY_CODE = "pl"

EARTH_RADIUS_KM = 6371.0

HISTORY_FILE_NAME = "history.json"

# Pending sub-requests at the start of a detail fetch: sensor list + index
INITIAL_DETAIL_REQUESTS = 2

NO_INDEX_LEVEL_ID = -1

NO_CONNECTION_MESSAGE = "No connection to the internet or the station database"
NO_STATIONS_IN_CITY_MESSAGE = "No stations found in {city}"
NO_STATIONS_MESSAGE = "No stations available"
NEAREST_STATION_MESSAGE = "Nearest station: {name}, distance: {distance:.2f} km"
LOCATION_NOT_FOUND_MESSAGE = "Location not found: {address}"
