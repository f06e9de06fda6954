"""
narrative_geo/spatial/distance.py

Distance collaborators for the hub-and-spoke edges.

The study computed distances in a desktop GIS and re-imported them; that
round-trip is modelled as a DistanceComputer:

- DistanceTable: replays a re-imported GIS table (PersonID, resolved_location, distance_km)
- GeodesicDistanceComputer: computes the same figures in-process with geopy

A location missing from the distances is excluded from distance-based
aggregates; it is never treated as zero distance.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

import pandas as pd
from geopy.distance import geodesic
from loguru import logger

from narrative_geo.utils.dq_checks import require_columns, require_unique_key

DISTANCE_KEY = ["person_id", "resolved_location"]
DISTANCE_COLUMNS = DISTANCE_KEY + ["distance_km"]


class DistanceComputer(ABC):
    """Synchronous edges -> distance_km collaborator."""

    @abstractmethod
    def compute(self, edges: pd.DataFrame) -> pd.DataFrame:
        """Return one row per (person_id, resolved_location) with `distance_km`."""
        pass


class DistanceTable(DistanceComputer):
    """Distances computed elsewhere and read back from disk."""

    def __init__(self, distances: pd.DataFrame):
        require_columns(distances, DISTANCE_COLUMNS, table="distance table")
        require_unique_key(distances, DISTANCE_KEY, table="distance table")
        self.distances = distances[DISTANCE_COLUMNS].copy()

    def compute(self, edges: pd.DataFrame) -> pd.DataFrame:
        return self.distances.copy()


class GeodesicDistanceComputer(DistanceComputer):
    """WGS-84 geodesic length of each edge, in kilometres."""

    def compute(self, edges: pd.DataFrame) -> pd.DataFrame:
        require_columns(edges, DISTANCE_KEY + ["origin_lat", "origin_lon", "dest_lat", "dest_lon"],
                        table="edges")
        km = [
            geodesic((o_lat, o_lon), (d_lat, d_lon)).km
            for o_lat, o_lon, d_lat, d_lon in zip(
                edges["origin_lat"], edges["origin_lon"], edges["dest_lat"], edges["dest_lon"]
            )
        ]
        out = edges[DISTANCE_KEY].copy()
        out["distance_km"] = pd.Series(km, index=out.index, dtype=float)
        return out.drop_duplicates(subset=DISTANCE_KEY).reset_index(drop=True)


def attach_distances(analytic: pd.DataFrame, distances: pd.DataFrame) -> pd.DataFrame:
    """Inner join on (person_id, resolved_location)."""
    require_unique_key(distances, DISTANCE_KEY, table="distance table")
    joined = analytic.merge(distances[DISTANCE_COLUMNS], on=DISTANCE_KEY, how="inner")
    logger.info(
        f"[DISTANCE] {len(joined)}/{len(analytic)} analytic rows have a distance "
        f"(excluded={len(analytic) - len(joined)})"
    )
    return joined


def distance_per_person(with_distances: pd.DataFrame) -> pd.DataFrame:
    """Mean / max distance and number of measured locations per person."""
    per_person = (
        with_distances.groupby("person_id", sort=True)
        .agg(
            gender=("gender", "first"),
            occupation_mentioned=("occupation_mentioned", "first"),
            mean_distance_km=("distance_km", "mean"),
            max_distance_km=("distance_km", "max"),
            measured_locations=("distance_km", "size"),
        )
        .reset_index()
    )
    per_person["gender_occupation"] = (
        per_person["gender"] + "_" + per_person["occupation_mentioned"]
    )
    return per_person
