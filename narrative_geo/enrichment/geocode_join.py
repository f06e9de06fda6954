from __future__ import annotations

from typing import Iterable

import pandas as pd
from loguru import logger

from narrative_geo.enrichment.geocoding_provider import GeocodingProvider
from narrative_geo.ingestion.schema import RESOLVED_BOOL_COLUMNS, RESOLVED_REQUIRED
from narrative_geo.utils.dq_checks import require_columns, require_unique_key


def build_geocode_lookup(addresses: Iterable[str], provider: GeocodingProvider) -> pd.DataFrame:
    """
    Ask `provider` for every distinct address.

    Returns one row per address (address, latitude, longitude, resolved_name);
    addresses the provider cannot place keep null coordinates.
    """
    rows = []
    seen = set()
    for address in addresses:
        if not address or address in seen:
            continue
        seen.add(address)
        result = provider.geocode(address)
        rows.append({
            "address": address,
            "latitude": result.latitude if result else None,
            "longitude": result.longitude if result else None,
            "resolved_name": result.resolved_name if result else None,
        })

    lookup = pd.DataFrame(rows, columns=["address", "latitude", "longitude", "resolved_name"])
    lookup["latitude"] = lookup["latitude"].astype(float)
    lookup["longitude"] = lookup["longitude"].astype(float)
    matched = int(lookup["latitude"].notna().sum())
    logger.success(
        f"[GEOCODE] {provider.provider_name}: {matched}/{len(lookup)} addresses placed"
    )
    return lookup


def lookup_to_correction_template(lookup: pd.DataFrame) -> pd.DataFrame:
    """
    Resolved-location skeleton for the manual correction pass.

    Every row starts as an unverified guess (known=False), not a camp, not an
    admin area, resolved to its own address.
    """
    require_columns(lookup, ["address", "latitude", "longitude"], table="geocode lookup")
    template = lookup[["address", "latitude", "longitude"]].copy()
    template["known"] = False
    template["camp"] = False
    template["resolved_location"] = template["address"]
    template["admin"] = False
    return template[RESOLVED_REQUIRED]


def join_resolved_locations(mentions: pd.DataFrame, resolved: pd.DataFrame) -> pd.DataFrame:
    """
    Left join mentions to resolved locations on exact `address`.

    The join is many-to-one and non-lossy: the output has exactly as many
    rows as `mentions`; unmatched addresses carry null coordinates.
    """
    require_columns(resolved, RESOLVED_REQUIRED, table="resolved locations")
    require_unique_key(resolved, ["address"], table="resolved locations")

    joined = mentions.merge(
        resolved[RESOLVED_REQUIRED],
        on="address",
        how="left",
        validate="many_to_one",
    )
    if len(joined) != len(mentions):
        raise RuntimeError(
            f"Geocode join changed the row count ({len(mentions)} -> {len(joined)})"
        )
    # unmatched rows leave the flags unknown rather than False
    for col in RESOLVED_BOOL_COLUMNS:
        joined[col] = joined[col].astype("boolean")

    matched = int(joined["resolved_location"].notna().sum())
    logger.info(f"[JOIN] rows={len(joined)} matched={matched} unmatched={len(joined) - matched}")
    return joined
