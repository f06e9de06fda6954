#!/usr/bin/env python
"""
scripts/run_pipeline.py - Full narrative-geography analysis run

Usage:
    python scripts/run_pipeline.py
    python scripts/run_pipeline.py --mentions data/raw/location_mentions.csv --resolved data/interim/resolved_locations.csv
    python scripts/run_pipeline.py --no-db --out-dir outputs/draft
    python scripts/run_pipeline.py --strict   # fail on undefined statistical tests

Steps:
1. Load raw mentions + corrected resolved locations (+ distances / country
   classification when the GIS exports exist)
2. Normalize, identify, dedupe, join, aggregate, test, build spatial edges
3. Export CSV tables to --out-dir
4. Persist stage tables to DuckDB and record the run in ops_pipeline_runs
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from narrative_geo.db.warehouse import connect, write_tables
from narrative_geo.ingestion.loaders import (
    load_country_classification,
    load_distances,
    load_mentions,
    load_resolved_locations,
)
from narrative_geo.ops.runs import end_run, new_run_id, start_run
from narrative_geo.pipeline import NarrativeGeoPipeline, export_outputs
from narrative_geo.utils.config import load_config, resolve_path
from narrative_geo.utils.log_config import setup_logger


def _optional_input(explicit: Optional[str], configured: Optional[str]) -> Optional[Path]:
    """Explicit paths must exist; configured defaults are skipped when absent."""
    if explicit:
        return Path(explicit)
    if configured:
        path = resolve_path(configured)
        if path.exists():
            return path
        logger.info(f"[JOB] Optional input not found, skipping: {path}")
    return None


def main() -> int:
    parser = argparse.ArgumentParser(description="Narrative geography analysis pipeline")
    parser.add_argument("--config", default="config/settings.yaml")
    parser.add_argument("--mentions", help="Raw location/person CSV")
    parser.add_argument("--resolved", help="Manually corrected resolved-location CSV")
    parser.add_argument("--distances", help="GIS distance CSV (PersonID, resolved_location, distance_km)")
    parser.add_argument("--classification", help="GIS country classification CSV (PersonID, CNTRY_NAME)")
    parser.add_argument("--out-dir", help="Output directory for CSV tables")
    parser.add_argument("--db", help="DuckDB path (default from config)")
    parser.add_argument("--no-db", action="store_true", help="Skip DuckDB persistence")
    parser.add_argument("--strict", action="store_true", help="Raise on undefined statistical tests")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    setup_logger(args.log_level)
    cfg = load_config(args.config)
    inputs = cfg.get("inputs", {})

    mentions_path = Path(args.mentions) if args.mentions else resolve_path(inputs["mentions"])
    resolved_path = Path(args.resolved) if args.resolved else resolve_path(inputs["resolved_locations"])
    distances_path = _optional_input(args.distances, inputs.get("distances"))
    classification_path = _optional_input(args.classification, inputs.get("classification"))
    out_dir = Path(args.out_dir) if args.out_dir else resolve_path(cfg["data_paths"]["outputs"])

    pipeline = NarrativeGeoPipeline.from_config(cfg)
    if args.strict:
        pipeline.settings.strict_stats = True

    run_id = new_run_id()
    con = None
    if not args.no_db:
        con = connect(Path(args.db) if args.db else resolve_path(cfg["db"]["duckdb_path"]))
        start_run(con, run_id, "run_pipeline", params=vars(args))

    logger.info(f"[JOB] run_id={run_id}")
    try:
        mentions = load_mentions(mentions_path)
        resolved = load_resolved_locations(resolved_path)
        distances = load_distances(distances_path) if distances_path else None
        classification = (
            load_country_classification(classification_path) if classification_path else None
        )

        result = pipeline.run(mentions, resolved, distances, classification)
        export_outputs(result, out_dir, pipeline.settings.display_decimals)

        for name, message in result.stat_report.failures.items():
            logger.warning(f"[JOB] {name} not reported: {message}")

        if con is not None:
            write_tables(con, result.tables())
            end_run(con, run_id, "SUCCESS", 0, result.metrics())
        return 0

    except Exception as ex:
        logger.error(f"[JOB] Run failed: {ex}")
        if con is not None:
            end_run(con, run_id, "FAILED", 1)
        raise

    finally:
        if con is not None:
            con.close()


if __name__ == "__main__":
    raise SystemExit(main())
