"""
narrative_geo/spatial/edges.py

Hub-and-spoke geometry: every mentioned location becomes a line segment to
one fixed destination point. The segments are exported for the external GIS
distance tool and re-imported later keyed by (person_id, resolved_location).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import pandas as pd
from loguru import logger
from shapely.geometry import LineString

EDGE_COLUMNS = [
    "person_id",
    "resolved_location",
    "origin_lon",
    "origin_lat",
    "dest_lon",
    "dest_lat",
    "geometry_wkt",
]


@dataclass(frozen=True)
class Destination:
    name: str
    lon: float
    lat: float

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "Destination":
        if not cfg:
            return DELHI
        return cls(name=str(cfg["name"]), lon=float(cfg["lon"]), lat=float(cfg["lat"]))


DELHI = Destination(name="Delhi", lon=77.2219388, lat=28.6517178)


def _at_destination(row_lon: pd.Series, row_lat: pd.Series, names: pd.Series,
                    destination: Destination, tolerance: float) -> pd.Series:
    same_point = ((row_lon - destination.lon).abs() <= tolerance) & (
        (row_lat - destination.lat).abs() <= tolerance
    )
    same_name = names.str.casefold() == destination.name.casefold()
    return same_point | same_name


def build_spatial_edges(
    analytic: pd.DataFrame,
    destination: Destination = DELHI,
    tolerance: float = 1e-7,
) -> pd.DataFrame:
    """
    One directed edge (location -> destination) per analytic row.

    Rows without coordinates cannot form a segment and are skipped, as are
    rows that already sit at the destination (same point, or resolved to the
    destination's name). Each (person_id, resolved_location) yields at most one
    edge, the key the distance re-import joins on.
    """
    located = analytic[analytic["longitude"].notna() & analytic["latitude"].notna()]
    at_dest = _at_destination(
        located["longitude"], located["latitude"],
        located["resolved_location"].astype(str), destination, tolerance,
    )
    spokes = located[~at_dest].drop_duplicates(
        subset=["person_id", "resolved_location"], keep="first"
    )

    edges = pd.DataFrame({
        "person_id": spokes["person_id"].to_numpy(),
        "resolved_location": spokes["resolved_location"].to_numpy(),
        "origin_lon": spokes["longitude"].astype(float).to_numpy(),
        "origin_lat": spokes["latitude"].astype(float).to_numpy(),
    })
    edges["dest_lon"] = destination.lon
    edges["dest_lat"] = destination.lat
    edges["geometry_wkt"] = [
        LineString([(lon, lat), (destination.lon, destination.lat)]).wkt
        for lon, lat in zip(edges["origin_lon"], edges["origin_lat"])
    ]

    logger.info(
        f"[EDGES] {len(edges)} spokes to {destination.name} "
        f"(skipped: {len(analytic) - len(located)} unlocated, {int(at_dest.sum())} at destination)"
    )
    return edges[EDGE_COLUMNS]
