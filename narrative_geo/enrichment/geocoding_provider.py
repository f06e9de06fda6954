"""
narrative_geo/enrichment/geocoding_provider.py

Abstract geocoding collaborator and the provider factory.

The pipeline never talks to a geocoding web service directly: it receives a
GeocodingProvider and asks it for one address at a time. Tests pass a
LookupTableProvider built from a small dict; production runs either replay a
precomputed lookup CSV or query Nominatim.

Usage:
    from narrative_geo.enrichment.geocoding_provider import get_geocoding_provider

    provider = get_geocoding_provider("lookup", table=lookup_df)
    provider = get_geocoding_provider("nominatim", user_agent="my-study/1.0")
    result = provider.geocode("Lahore, Pakistan")
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from narrative_geo.utils.text_utils import clean_fragment


@dataclass(frozen=True)
class GeocodeResult:
    """Standardized answer from any geocoding provider."""
    address: str
    latitude: float
    longitude: float
    resolved_name: Optional[str]
    provider: str


class GeocodingProvider(ABC):
    """
    Synchronous request/response geocoder.

    Implementations must return None (not raise) for an address they cannot
    place: unmatched addresses are an expected gap, fixed by manual correction.
    """

    def __init__(self):
        self.total_requests = 0
        self.misses = 0

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def _lookup(self, address: str) -> Optional[GeocodeResult]:
        pass

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        address = clean_fragment(address)
        if not address:
            return None
        self.total_requests += 1
        result = self._lookup(address)
        if result is None:
            self.misses += 1
            logger.debug(f"[{self.provider_name}] no result for '{address}'")
        return result

    def get_stats(self) -> Dict[str, Any]:
        return {
            "provider": self.provider_name,
            "total_requests": self.total_requests,
            "misses": self.misses,
        }


class LookupTableProvider(GeocodingProvider):
    """
    Answers from a precomputed address -> coordinates table.

    Accepts either a DataFrame with address/latitude/longitude columns or a
    mapping address -> (lat, lon).
    """

    def __init__(self, table: Union[pd.DataFrame, Mapping[str, Tuple[float, float]]]):
        super().__init__()
        self._table: Dict[str, Tuple[float, float]] = {}
        if isinstance(table, pd.DataFrame):
            for address, lat, lon in zip(table["address"], table["latitude"], table["longitude"]):
                if pd.notna(lat) and pd.notna(lon):
                    self._table[clean_fragment(address)] = (float(lat), float(lon))
        else:
            for address, (lat, lon) in table.items():
                self._table[clean_fragment(address)] = (float(lat), float(lon))

    @property
    def provider_name(self) -> str:
        return "lookup"

    def _lookup(self, address: str) -> Optional[GeocodeResult]:
        hit = self._table.get(address)
        if hit is None:
            return None
        lat, lon = hit
        return GeocodeResult(address, lat, lon, resolved_name=None, provider=self.provider_name)


ProviderType = Literal["lookup", "nominatim"]


def get_geocoding_provider(provider: ProviderType = "lookup", **kwargs) -> GeocodingProvider:
    """
    Factory for geocoding providers.

    Args:
        provider: 'lookup' (needs table=...) or 'nominatim'
        **kwargs: passed to the provider constructor

    Raises:
        ValueError: If provider is unknown
    """
    provider = provider.lower()
    logger.info(f"Initializing geocoding provider: {provider}")

    if provider == "lookup":
        return LookupTableProvider(**kwargs)

    elif provider == "nominatim":
        from .nominatim_geocoder import NominatimProvider
        return NominatimProvider(**kwargs)

    else:
        raise ValueError(
            f"Unknown geocoding provider: {provider}. Valid options: 'lookup', 'nominatim'"
        )
