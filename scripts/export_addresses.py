"""
scripts/export_addresses.py

Export the distinct, per-person deduplicated addresses that the geocoder
has to place.

Usage:
    python scripts/export_addresses.py
    python scripts/export_addresses.py --mentions data/raw/location_mentions.csv --out data/interim/deduplicated_addresses.csv
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from narrative_geo.ingestion.loaders import load_mentions
from narrative_geo.pipeline import NarrativeGeoPipeline
from narrative_geo.processing.normalize_addresses import distinct_addresses
from narrative_geo.utils.config import load_config, resolve_path
from narrative_geo.utils.log_config import setup_logger


def main() -> int:
    parser = argparse.ArgumentParser(description="Export distinct addresses for geocoding")
    parser.add_argument("--config", default="config/settings.yaml")
    parser.add_argument("--mentions", help="Raw location/person CSV")
    parser.add_argument("--out", help="Output CSV (default: <interim>/deduplicated_addresses.csv)")
    args = parser.parse_args()

    setup_logger()
    cfg = load_config(args.config)
    mentions_path = Path(args.mentions) if args.mentions else resolve_path(cfg["inputs"]["mentions"])
    out = (
        Path(args.out) if args.out
        else resolve_path(cfg["data_paths"]["interim"]) / "deduplicated_addresses.csv"
    )

    pipeline = NarrativeGeoPipeline.from_config(cfg)
    deduped = pipeline.prepare_mentions(load_mentions(mentions_path))
    addresses = distinct_addresses(deduped)

    out.parent.mkdir(parents=True, exist_ok=True)
    addresses.to_csv(out, index=False, encoding="utf-8")
    logger.success(f"Wrote {len(addresses)} distinct addresses: {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
