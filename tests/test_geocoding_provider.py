from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
from geopy.exc import GeocoderServiceError

from narrative_geo.enrichment.geocoding_provider import (
    LookupTableProvider,
    get_geocoding_provider,
)


def test_lookup_provider_from_dataframe():
    table = pd.DataFrame({
        "address": ["Lahore, Pakistan", "Nowhere"],
        "latitude": [31.5497, None],
        "longitude": [74.3436, None],
    })
    provider = get_geocoding_provider("lookup", table=table)
    assert isinstance(provider, LookupTableProvider)

    hit = provider.geocode("  Lahore,  Pakistan ")
    assert (hit.latitude, hit.longitude) == (31.5497, 74.3436)
    assert provider.geocode("Nowhere") is None
    assert provider.geocode("") is None
    assert provider.get_stats() == {"provider": "lookup", "total_requests": 2, "misses": 1}


def test_lookup_provider_from_mapping():
    provider = LookupTableProvider({"Delhi": (28.65, 77.22)})
    assert provider.geocode("Delhi").longitude == 77.22


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown geocoding provider"):
        get_geocoding_provider("bing")


@patch("narrative_geo.enrichment.nominatim_geocoder.Nominatim")
def test_nominatim_provider_caches_and_maps(mock_nominatim):
    location = SimpleNamespace(latitude=31.5497, longitude=74.3436, address="Lahore, Punjab, Pakistan")
    geocode = MagicMock(return_value=location)
    mock_nominatim.return_value.geocode = geocode

    provider = get_geocoding_provider("nominatim", user_agent="test-agent", sleep_sec=0)
    first = provider.geocode("Lahore, Pakistan")
    second = provider.geocode("Lahore, Pakistan")

    assert first == second
    assert first.resolved_name == "Lahore, Punjab, Pakistan"
    assert first.provider == "nominatim"
    assert geocode.call_count == 1
    assert provider.get_stats()["cache_hits"] == 1
    mock_nominatim.assert_called_once_with(user_agent="test-agent", timeout=10)


@patch("narrative_geo.enrichment.nominatim_geocoder.Nominatim")
def test_nominatim_service_error_is_a_miss(mock_nominatim):
    mock_nominatim.return_value.geocode = MagicMock(side_effect=GeocoderServiceError("down"))

    provider = get_geocoding_provider("nominatim", user_agent="test-agent", sleep_sec=0)
    assert provider.geocode("Lahore, Pakistan") is None
    assert provider.get_stats()["misses"] == 1
