import math

import pandas as pd
import pytest
from shapely import wkt

from narrative_geo.spatial.distance import (
    DistanceTable,
    GeodesicDistanceComputer,
    attach_distances,
    distance_per_person,
)
from narrative_geo.spatial.edges import DELHI, EDGE_COLUMNS, Destination, build_spatial_edges
from narrative_geo.utils.dq_checks import DuplicateKeyError


@pytest.fixture
def analytic():
    return pd.DataFrame({
        "person_id": ["Amir_20", "Amir_20", "Bibi_12", "Bibi_12"],
        "person_name": ["Amir", "Amir", "Bibi", "Bibi"],
        "age": ["20", "20", "12", "12"],
        "gender": ["Male", "Male", "Female", "Female"],
        "occupation_mentioned": ["Yes", "Yes", "NotMentioned", "NotMentioned"],
        "resolved_location": ["Lahore", "Delhi", "Lahore", "Somewhere"],
        "latitude": [31.5497, DELHI.lat, 31.5497, math.nan],
        "longitude": [74.3436, DELHI.lon, 74.3436, math.nan],
        "known": [True, True, True, False],
        "camp": [False, False, False, False],
    })


def test_edges_skip_destination_and_unlocated(analytic):
    edges = build_spatial_edges(analytic)
    assert list(edges.columns) == EDGE_COLUMNS
    assert edges["person_id"].tolist() == ["Amir_20", "Bibi_12"]
    assert (edges["dest_lon"] == DELHI.lon).all()


def test_edge_geometry_runs_to_destination(analytic):
    line = wkt.loads(build_spatial_edges(analytic)["geometry_wkt"].iloc[0])
    assert list(line.coords) == [(74.3436, 31.5497), (DELHI.lon, DELHI.lat)]


def test_destination_matched_by_name():
    df = pd.DataFrame({
        "person_id": ["a"], "resolved_location": ["delhi"],
        "latitude": [28.6], "longitude": [77.2],
    })
    assert build_spatial_edges(df).empty


def test_custom_destination(analytic):
    amritsar = Destination.from_config({"name": "Amritsar", "lon": 74.8723, "lat": 31.6340})
    edges = build_spatial_edges(analytic, amritsar)
    assert len(edges) == 3
    assert Destination.from_config(None) == DELHI


def test_geodesic_distance_lahore_delhi(analytic):
    distances = GeodesicDistanceComputer().compute(build_spatial_edges(analytic))
    assert list(distances.columns) == ["person_id", "resolved_location", "distance_km"]
    assert distances["distance_km"].iloc[0] == pytest.approx(425, abs=15)


def test_missing_distance_is_excluded_not_zero(analytic):
    distances = pd.DataFrame({
        "person_id": ["Amir_20"], "resolved_location": ["Lahore"], "distance_km": [420.0],
    })
    joined = attach_distances(analytic, DistanceTable(distances).compute(pd.DataFrame()))
    assert len(joined) == 1
    per_person = distance_per_person(joined)
    assert per_person["person_id"].tolist() == ["Amir_20"]
    assert per_person["mean_distance_km"].iloc[0] == 420.0
    assert per_person["measured_locations"].iloc[0] == 1


def test_distance_table_requires_unique_key():
    distances = pd.DataFrame({
        "person_id": ["a", "a"], "resolved_location": ["X", "X"], "distance_km": [1.0, 2.0],
    })
    with pytest.raises(DuplicateKeyError):
        DistanceTable(distances)


def test_one_edge_per_person_location(analytic):
    df = pd.concat([analytic, analytic.iloc[[0]].assign(latitude=31.5880, longitude=74.3150)],
                   ignore_index=True)
    edges = build_spatial_edges(df)
    assert edges[["person_id", "resolved_location"]].values.tolist() == [
        ["Amir_20", "Lahore"], ["Bibi_12", "Lahore"],
    ]
    assert edges["origin_lat"].iloc[0] == 31.5497


def test_gis_round_trip_of_exported_edges(analytic):
    from narrative_geo.ingestion.loaders import prepare_distances

    df = pd.concat([analytic, analytic.iloc[[0]].assign(latitude=31.5880, longitude=74.3150)],
                   ignore_index=True)
    edges = build_spatial_edges(df)
    gis_output = pd.DataFrame({
        "PersonID": edges["person_id"],
        "resolved_location": edges["resolved_location"],
        "distance_km": ["425.0"] * len(edges),
    })
    distances = prepare_distances(gis_output)
    joined = attach_distances(df.drop_duplicates(subset=["person_id", "resolved_location"]),
                              DistanceTable(distances).compute(edges))
    assert distance_per_person(joined)["measured_locations"].tolist() == [1, 1]
