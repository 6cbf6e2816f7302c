import asyncio
from types import SimpleNamespace

from geopy.exc import GeocoderServiceError, GeocoderTimedOut

from gios_air_quality.geolocator import GeoLocator
from gios_air_quality.models import Coordinate


class FakeGeocode:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, query, **kwargs):
        self.calls.append((query, kwargs))
        if self.error is not None:
            raise self.error
        return self.result


def test_resolves_first_result_within_country():
    geocode = FakeGeocode(SimpleNamespace(latitude=53.2747, longitude=16.4703))
    locator = GeoLocator(geocode=geocode)

    assert asyncio.run(locator.resolve("Wałcz ul. Południowa 10")) == Coordinate(53.2747, 16.4703)

    query, kwargs = geocode.calls[0]
    assert query == "Wałcz ul. Południowa 10"
    assert kwargs["exactly_one"] is True
    assert kwargs["country_codes"] == "pl"


def test_empty_result_is_not_found():
    assert asyncio.run(GeoLocator(geocode=FakeGeocode(None)).resolve("Nowhere")) is None


def test_provider_errors_are_not_found():
    for error in (GeocoderServiceError("down"), GeocoderTimedOut("slow")):
        locator = GeoLocator(geocode=FakeGeocode(error=error))
        assert asyncio.run(locator.resolve("Warszawa")) is None


def test_successful_lookups_are_cached():
    geocode = FakeGeocode(SimpleNamespace(latitude=52.23, longitude=21.01))
    locator = GeoLocator(geocode=geocode)

    asyncio.run(locator.resolve("Warszawa"))
    asyncio.run(locator.resolve("Warszawa"))
    assert len(geocode.calls) == 1


def test_disabled_nominatim_finds_nothing():
    assert asyncio.run(GeoLocator(use_nominatim=False).resolve("Warszawa")) is None
