from __future__ import annotations

from typing import Dict, Optional, Tuple

import pandas as pd
import pytest

from narrative_geo.enrichment.geocoding_provider import GeocodeResult, GeocodingProvider
from narrative_geo.ingestion.loaders import prepare_mentions, prepare_resolved_locations
from narrative_geo.spatial.distance import DistanceComputer

DELHI_LON, DELHI_LAT = 77.2219388, 28.6517178


class FakeGeocoder(GeocodingProvider):
    """Answers from a dict and remembers every address it was asked for."""

    def __init__(self, table: Dict[str, Tuple[float, float]]):
        super().__init__()
        self.table = table
        self.calls = []

    @property
    def provider_name(self) -> str:
        return "fake"

    def _lookup(self, address: str) -> Optional[GeocodeResult]:
        self.calls.append(address)
        hit = self.table.get(address)
        if hit is None:
            return None
        return GeocodeResult(address, hit[0], hit[1], resolved_name=address, provider="fake")


class FixedDistance(DistanceComputer):
    """Every edge is `km` long."""

    def __init__(self, km: float = 100.0):
        self.km = km

    def compute(self, edges: pd.DataFrame) -> pd.DataFrame:
        out = edges[["person_id", "resolved_location"]].drop_duplicates().copy()
        out["distance_km"] = self.km
        return out.reset_index(drop=True)


def _mention(name, age, gender, occupation, location, city="", country="", **extra):
    row = {
        "name": name,
        "age": age,
        "migrated_from": "",
        "migrated_to": "",
        "gender": gender,
        "occupation": occupation,
        "location": location,
        "city": city,
        "country": country,
    }
    row.update(extra)
    return row


@pytest.fixture
def raw_mentions() -> pd.DataFrame:
    """
    Small study: two women, two men, one narrator flagged occupation=No.

    Amir (Male, Yes) mentions Lahore twice and Delhi once.
    Bibi (Female, NotMentioned) mentions Lahore and Kingsway Camp.
    """
    rows = [
        _mention("Amir", "Age in 1947: 20", "Male", "Yes", "Lahore", country="Pakistan"),
        _mention("Amir", "Age in 1947: 20", "Male", "Yes", "Lahore", country="Pakistan"),
        _mention("Amir", "Age in 1947: 20", "Male", "Yes", "Delhi", country="India"),
        _mention("Bibi", "Age in 1947: 12", "Female", "NotMentioned", "Lahore", country="Pakistan"),
        _mention("Bibi", "Age in 1947: 12", "Female", "NotMentioned", "Kingsway Camp", "Delhi", "India"),
        _mention("Chand", "30", "f", "Yes", "Amritsar", country="India"),
        _mention("Chand", "30", "f", "Yes", "Punjab", country="India"),
        _mention("Dev", "Age in 1947: 25", "M", "not mentioned", "Multan", country="Pakistan"),
        _mention("Dev", "Age in 1947: 25", "M", "not mentioned", "Lahore", country="Pakistan"),
        _mention("Dev", "Age in 1947: 25", "M", "not mentioned", "Rawalpindi", country="Pakistan"),
        _mention("Esha", "Age in 1947: 8", "Female", "No", "Karachi", country="Pakistan"),
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def mentions(raw_mentions) -> pd.DataFrame:
    return prepare_mentions(raw_mentions)


@pytest.fixture
def resolved() -> pd.DataFrame:
    raw = pd.DataFrame([
        {"address": "Lahore, Pakistan", "latitude": "31.5497", "longitude": "74.3436",
         "known": "True", "camp": "False", "resolved_location": "Lahore", "admin": "False"},
        {"address": "Delhi, India", "latitude": str(DELHI_LAT), "longitude": str(DELHI_LON),
         "known": "True", "camp": "False", "resolved_location": "Delhi", "admin": "False"},
        {"address": "Kingsway Camp, Delhi, India", "latitude": "28.7041", "longitude": "77.2025",
         "known": "True", "camp": "True", "resolved_location": "Kingsway Camp", "admin": "False"},
        {"address": "Amritsar, India", "latitude": "31.6340", "longitude": "74.8723",
         "known": "True", "camp": "False", "resolved_location": "Amritsar", "admin": "False"},
        {"address": "Punjab, India", "latitude": "31.1471", "longitude": "75.3412",
         "known": "True", "camp": "False", "resolved_location": "Punjab", "admin": "True"},
        {"address": "Multan, Pakistan", "latitude": "30.1575", "longitude": "71.5249",
         "known": "True", "camp": "False", "resolved_location": "Multan", "admin": "False"},
        {"address": "Karachi, Pakistan", "latitude": "24.8607", "longitude": "67.0011",
         "known": "True", "camp": "False", "resolved_location": "Karachi", "admin": "False"},
    ])
    return prepare_resolved_locations(raw)


@pytest.fixture
def fake_geocoder() -> FakeGeocoder:
    return FakeGeocoder({
        "Lahore, Pakistan": (31.5497, 74.3436),
        "Delhi, India": (DELHI_LAT, DELHI_LON),
    })
