"""
scripts/geocode_addresses.py

Geocode the exported addresses and write:
  - the raw geocode lookup (address, latitude, longitude, resolved_name)
  - a correction template in the resolved-location format, to be checked by
    hand (known / camp / admin / resolved_location) and saved as the
    resolved-location table. The corrected table itself is never overwritten.

Usage:
    python scripts/geocode_addresses.py --addresses data/interim/deduplicated_addresses.csv
    python scripts/geocode_addresses.py --addresses a.csv --provider lookup --lookup previous_lookup.csv
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd
from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from narrative_geo.enrichment.geocode_join import build_geocode_lookup, lookup_to_correction_template
from narrative_geo.enrichment.geocoding_provider import get_geocoding_provider
from narrative_geo.ingestion.loaders import load_geocode_lookup
from narrative_geo.utils.config import load_config, resolve_path
from narrative_geo.utils.dq_checks import require_columns
from narrative_geo.utils.log_config import setup_logger


def main() -> int:
    parser = argparse.ArgumentParser(description="Geocode distinct addresses")
    parser.add_argument("--config", default="config/settings.yaml")
    parser.add_argument("--addresses", required=True, help="CSV with an 'address' column")
    parser.add_argument("--provider", choices=["nominatim", "lookup"], help="Default from config")
    parser.add_argument("--lookup", help="Existing lookup CSV (provider=lookup)")
    parser.add_argument("--out-dir", help="Default: data_paths.interim")
    args = parser.parse_args()

    setup_logger()
    cfg = load_config(args.config)
    geo_cfg = cfg.get("geocoding", {}) or {}
    provider_name = args.provider or geo_cfg.get("provider", "nominatim")
    out_dir = Path(args.out_dir) if args.out_dir else resolve_path(cfg["data_paths"]["interim"])

    addresses = pd.read_csv(args.addresses, dtype=str, keep_default_na=False)
    require_columns(addresses, ["address"], table=args.addresses)

    if provider_name == "lookup":
        if not args.lookup:
            raise SystemExit("--lookup is required with --provider lookup")
        provider = get_geocoding_provider("lookup", table=load_geocode_lookup(Path(args.lookup)))
    else:
        provider = get_geocoding_provider(
            "nominatim",
            user_agent=geo_cfg.get("user_agent"),
            sleep_sec=float(geo_cfg.get("sleep_sec", 1.0)),
            language=geo_cfg.get("language", "en"),
        )

    lookup = build_geocode_lookup(addresses["address"], provider)
    template = lookup_to_correction_template(lookup)

    out_dir.mkdir(parents=True, exist_ok=True)
    lookup_path = out_dir / "geocode_lookup.csv"
    template_path = out_dir / "resolved_locations_template.csv"
    lookup.to_csv(lookup_path, index=False, encoding="utf-8")
    template.to_csv(template_path, index=False, encoding="utf-8")

    logger.info(f"Provider stats: {provider.get_stats()}")
    logger.success(f"Wrote {lookup_path} and {template_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
