"""
narrative_geo/enrichment/nominatim_geocoder.py

OpenStreetMap Nominatim client (through geopy) for the one-shot geocoding of
distinct addresses.

Features:
- Rate limiting with geopy's RateLimiter (Nominatim policy: 1 req/sec)
- In-memory cache so repeated addresses cost one request
- No retries: a failed request is logged and the address is left unmatched
  for the manual correction pass

Configuration (env, via .env):
    NOMINATIM_USER_AGENT: identifies the study to the OSM servers
"""
from __future__ import annotations

import os
from typing import Dict, Optional

from dotenv import load_dotenv
from geopy.exc import GeocoderServiceError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim
from loguru import logger

from .geocoding_provider import GeocodeResult, GeocodingProvider

load_dotenv()

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_USER_AGENT = "narrative-geo/0.1"
NOMINATIM_TIMEOUT = 10  # seconds
RATE_LIMIT_DELAY = 1.0  # Nominatim usage policy


class NominatimProvider(GeocodingProvider):
    """Nominatim geocoder with caching and rate limiting."""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        sleep_sec: float = RATE_LIMIT_DELAY,
        language: str = "en",
        timeout: int = NOMINATIM_TIMEOUT,
    ):
        super().__init__()
        self.user_agent = user_agent or os.getenv("NOMINATIM_USER_AGENT") or DEFAULT_USER_AGENT
        self.language = language
        self.cache_hits = 0
        self._cache: Dict[str, Optional[GeocodeResult]] = {}

        geolocator = Nominatim(user_agent=self.user_agent, timeout=timeout)
        self._geocode = RateLimiter(
            geolocator.geocode,
            min_delay_seconds=sleep_sec,
            max_retries=0,
            swallow_exceptions=False,
        )

    @property
    def provider_name(self) -> str:
        return "nominatim"

    def _lookup(self, address: str) -> Optional[GeocodeResult]:
        if address in self._cache:
            self.cache_hits += 1
            return self._cache[address]

        try:
            location = self._geocode(address, exactly_one=True, language=self.language)
        except GeocoderServiceError as e:
            logger.warning(f"Nominatim error for '{address}': {e}")
            location = None

        result = None
        if location is not None:
            result = GeocodeResult(
                address=address,
                latitude=float(location.latitude),
                longitude=float(location.longitude),
                resolved_name=location.address,
                provider=self.provider_name,
            )
            logger.debug(
                f"Nominatim geocoded: '{address}' → ({result.latitude:.4f}, {result.longitude:.4f})"
            )

        self._cache[address] = result
        return result

    def get_stats(self) -> Dict[str, object]:
        stats = super().get_stats()
        stats.update({"cache_hits": self.cache_hits, "cache_size": len(self._cache)})
        return stats
