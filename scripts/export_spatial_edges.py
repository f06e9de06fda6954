"""
scripts/export_spatial_edges.py

Export hub-and-spoke line records (location -> destination) for the GIS
distance tool. With --geodesic the distances are also computed in-process
and written in the same layout the GIS re-import uses.

Usage:
    python scripts/export_spatial_edges.py
    python scripts/export_spatial_edges.py --geodesic
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from narrative_geo.analysis.aggregate import analytic_subpopulation
from narrative_geo.enrichment.geocode_join import join_resolved_locations
from narrative_geo.ingestion.loaders import load_mentions, load_resolved_locations
from narrative_geo.pipeline import NarrativeGeoPipeline
from narrative_geo.spatial.distance import GeodesicDistanceComputer
from narrative_geo.spatial.edges import build_spatial_edges
from narrative_geo.utils.config import load_config, resolve_path
from narrative_geo.utils.log_config import setup_logger


def main() -> int:
    parser = argparse.ArgumentParser(description="Export hub-and-spoke edges for the GIS tool")
    parser.add_argument("--config", default="config/settings.yaml")
    parser.add_argument("--mentions")
    parser.add_argument("--resolved")
    parser.add_argument("--out-dir", help="Default: data_paths.interim")
    parser.add_argument("--geodesic", action="store_true", help="Also write geodesic distances")
    args = parser.parse_args()

    setup_logger()
    cfg = load_config(args.config)
    inputs = cfg["inputs"]
    mentions_path = Path(args.mentions) if args.mentions else resolve_path(inputs["mentions"])
    resolved_path = Path(args.resolved) if args.resolved else resolve_path(inputs["resolved_locations"])
    out_dir = Path(args.out_dir) if args.out_dir else resolve_path(cfg["data_paths"]["interim"])

    pipeline = NarrativeGeoPipeline.from_config(cfg)
    s = pipeline.settings
    deduped = pipeline.prepare_mentions(load_mentions(mentions_path))
    joined = join_resolved_locations(deduped, load_resolved_locations(resolved_path))
    analytic = analytic_subpopulation(joined, s.exclude_occupation)
    edges = build_spatial_edges(analytic, s.destination)

    out_dir.mkdir(parents=True, exist_ok=True)
    edges_path = out_dir / "spatial_edges.csv"
    edges.to_csv(edges_path, index=False, encoding="utf-8")
    logger.success(f"Wrote {len(edges)} edges: {edges_path}")

    if args.geodesic:
        distances = GeodesicDistanceComputer().compute(edges)
        dist_path = out_dir / "distances_km.csv"
        distances.rename(columns={"person_id": "PersonID"}).to_csv(
            dist_path, index=False, encoding="utf-8"
        )
        logger.success(f"Wrote {len(distances)} distances: {dist_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
