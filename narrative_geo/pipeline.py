"""
narrative_geo/pipeline.py

Linear analysis pipeline over the oral-history location tables.

Stages (each a pure function from one table to a new one):
1. Load          raw mentions (see ingestion.loaders)
2. Normalize     clean fragments, strip labels, build `address`
3. Identify      attach `person_id` (name + age, or interview_id)
4. Dedupe        one row per (person, address)
5. Join          left join onto the corrected resolved-location table
6. Aggregate     analytic subpopulation, loc_by_name, loc_total, group summaries
7. Test          Welch t-tests and one-way ANOVA
8. Spatial       hub-and-spoke edges, optional distance re-import

The geocoding service and the GIS distance tool are injected collaborators
(GeocodingProvider, DistanceComputer), so the whole run can be exercised
against fakes.

Usage:
    cfg = load_config()
    pipeline = NarrativeGeoPipeline.from_config(cfg)
    result = pipeline.run(mentions, resolved)
    export_outputs(result, Path("outputs"))
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd
from loguru import logger

from narrative_geo.analysis.aggregate import (
    DEFAULT_QUANTILES,
    analytic_subpopulation,
    camp_share_by_group,
    group_summary,
    location_totals,
    locations_per_person,
    round_for_display,
    summarize_groups,
)
from narrative_geo.analysis.international import (
    DEFAULT_SUBCONTINENT,
    international_per_person,
    international_share,
)
from narrative_geo.analysis.stat_tests import (
    TEST_GROUPINGS,
    AnovaResult,
    StatTestReport,
    run_all_tests,
)
from narrative_geo.enrichment.geocode_join import build_geocode_lookup, join_resolved_locations
from narrative_geo.enrichment.geocoding_provider import GeocodingProvider
from narrative_geo.identity.person_id import (
    DEFAULT_SEPARATOR as ID_SEPARATOR,
    assign_person_ids,
    count_shared_names,
)
from narrative_geo.processing.normalize_addresses import (
    DEFAULT_PREFIXES,
    DEFAULT_SEPARATOR as ADDRESS_SEPARATOR,
    dedupe_addresses,
    distinct_addresses,
    normalize_mentions,
)
from narrative_geo.spatial.distance import (
    DistanceComputer,
    DistanceTable,
    attach_distances,
    distance_per_person,
)
from narrative_geo.spatial.edges import DELHI, Destination, build_spatial_edges
from narrative_geo.utils.dq_checks import (
    DQResult,
    check_min_rows,
    check_null_share,
    check_unique_key,
    summarize_results,
)


@dataclass
class PipelineSettings:
    address_separator: str = ADDRESS_SEPARATOR
    prefixes: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PREFIXES))
    identity_separator: str = ID_SEPARATOR
    exclude_occupation: str = "No"
    quantiles: Tuple[float, ...] = DEFAULT_QUANTILES
    display_decimals: int = 2
    destination: Destination = DELHI
    subcontinent: Tuple[str, ...] = DEFAULT_SUBCONTINENT
    strict_stats: bool = False

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "PipelineSettings":
        normalize = cfg.get("normalize", {}) or {}
        identity = cfg.get("identity", {}) or {}
        analysis = cfg.get("analysis", {}) or {}
        return cls(
            address_separator=normalize.get("address_separator", ADDRESS_SEPARATOR),
            prefixes=dict(normalize.get("strip_prefixes", DEFAULT_PREFIXES) or {}),
            identity_separator=identity.get("separator", ID_SEPARATOR),
            exclude_occupation=analysis.get("exclude_occupation", "No"),
            quantiles=tuple(analysis.get("quantiles", DEFAULT_QUANTILES)),
            display_decimals=int(analysis.get("display_decimals", 2)),
            destination=Destination.from_config(cfg.get("destination")),
            subcontinent=tuple(analysis.get("subcontinent", DEFAULT_SUBCONTINENT)),
            strict_stats=bool(analysis.get("strict_stats", False)),
        )


@dataclass
class PipelineResult:
    mentions: pd.DataFrame
    deduped: pd.DataFrame
    addresses: pd.DataFrame
    joined: pd.DataFrame
    analytic: pd.DataFrame
    per_person: pd.DataFrame
    loc_totals: pd.DataFrame
    summaries: Dict[str, pd.DataFrame]
    camp_share: pd.DataFrame
    stat_report: StatTestReport
    edges: pd.DataFrame
    dq: DQResult
    with_distances: Optional[pd.DataFrame] = None
    distance_summaries: Dict[str, pd.DataFrame] = field(default_factory=dict)
    international: Optional[pd.DataFrame] = None
    international_share: Optional[pd.DataFrame] = None

    def metrics(self) -> Dict[str, int]:
        return {
            "raw_rows": len(self.mentions),
            "mention_rows": len(self.deduped),
            "analytic_rows": len(self.analytic),
            "persons": len(self.per_person),
            "edge_rows": len(self.edges),
            "stat_failures": len(self.stat_report.failures),
        }

    def tables(self) -> Dict[str, pd.DataFrame]:
        """Stage tables keyed by warehouse table name."""
        tables = {
            "stg_mentions": self.deduped,
            "stg_addresses": self.addresses,
            "stg_joined_locations": self.joined,
            "fct_analytic_locations": self.analytic,
            "fct_person_locations": self.per_person,
            "fct_location_totals": self.loc_totals,
            "fct_spatial_edges": self.edges,
            "fct_stat_tests": stat_report_table(self.stat_report),
        }
        for name, df in self.summaries.items():
            tables[f"agg_loc_by_{name}"] = df
        if self.with_distances is not None:
            tables["fct_location_distances"] = self.with_distances
        for name, df in self.distance_summaries.items():
            tables[f"agg_distance_by_{name}"] = df
        if self.international is not None:
            tables["fct_person_international"] = self.international
        return tables


class NarrativeGeoPipeline:
    """Explicit composition of the stage functions with their settings."""

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        geocoder: Optional[GeocodingProvider] = None,
        distance_computer: Optional[DistanceComputer] = None,
    ):
        self.settings = settings or PipelineSettings()
        self.geocoder = geocoder
        self.distance_computer = distance_computer

    @classmethod
    def from_config(
        cls,
        cfg: Mapping[str, Any],
        geocoder: Optional[GeocodingProvider] = None,
        distance_computer: Optional[DistanceComputer] = None,
    ) -> "NarrativeGeoPipeline":
        return cls(PipelineSettings.from_config(cfg), geocoder, distance_computer)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def prepare_mentions(self, mentions: pd.DataFrame) -> pd.DataFrame:
        """Normalize, identify and dedupe raw mentions."""
        s = self.settings
        normalized = normalize_mentions(mentions, s.address_separator, s.prefixes)
        identified = assign_person_ids(normalized, s.identity_separator)
        shared = count_shared_names(identified)
        if shared:
            logger.info(f"[IDENTITY] {shared} names are shared by persons of different age")
        return dedupe_addresses(identified)

    def geocode(self, deduped: pd.DataFrame) -> pd.DataFrame:
        if self.geocoder is None:
            raise RuntimeError("No GeocodingProvider configured for this pipeline")
        return build_geocode_lookup(distinct_addresses(deduped)["address"], self.geocoder)

    def aggregate(self, joined: pd.DataFrame):
        s = self.settings
        analytic = analytic_subpopulation(joined, s.exclude_occupation)
        per_person = locations_per_person(analytic)
        totals = location_totals(analytic)
        summaries = summarize_groups(per_person, quantiles=s.quantiles)
        return analytic, per_person, totals, summaries

    def distances(
        self,
        analytic: pd.DataFrame,
        edges: pd.DataFrame,
        distances: Optional[pd.DataFrame] = None,
    ) -> Optional[pd.DataFrame]:
        computer = DistanceTable(distances) if distances is not None else self.distance_computer
        if computer is None:
            return None
        return attach_distances(analytic, computer.compute(edges))

    # -------------------------------------------------------------------------
    # Full run
    # -------------------------------------------------------------------------

    def run(
        self,
        mentions: pd.DataFrame,
        resolved: pd.DataFrame,
        distances: Optional[pd.DataFrame] = None,
        classification: Optional[pd.DataFrame] = None,
    ) -> PipelineResult:
        s = self.settings
        logger.info(f"[PIPELINE] Starting run on {len(mentions)} raw mentions")

        deduped = self.prepare_mentions(mentions)
        addresses = distinct_addresses(deduped)
        joined = join_resolved_locations(deduped, resolved)

        dq = summarize_results([
            check_min_rows(len(mentions), 1),
            check_unique_key(deduped, ["person_id", "address"]),
            check_null_share(joined, "latitude", max_share=1.0),
        ])
        logger.info(f"[DQ] ok={dq.ok} checks={dq.checks}")

        analytic, per_person, totals, summaries = self.aggregate(joined)
        camp_share = camp_share_by_group(analytic, per_person, "gender")
        stat_report = run_all_tests(per_person, strict=s.strict_stats)
        edges = build_spatial_edges(analytic, s.destination)

        result = PipelineResult(
            mentions=mentions,
            deduped=deduped,
            addresses=addresses,
            joined=joined,
            analytic=analytic,
            per_person=per_person,
            loc_totals=totals,
            summaries=summaries,
            camp_share=camp_share,
            stat_report=stat_report,
            edges=edges,
            dq=dq,
        )

        with_distances = self.distances(analytic, edges, distances)
        if with_distances is not None:
            by_person = distance_per_person(with_distances)
            result.with_distances = with_distances
            result.distance_summaries = {
                "gender": group_summary(by_person, "gender", "mean_distance_km", s.quantiles),
                "occupation": group_summary(
                    by_person, "occupation_mentioned", "mean_distance_km", s.quantiles
                ),
            }

        if classification is not None:
            result.international = international_per_person(
                classification, per_person, s.subcontinent
            )
            result.international_share = international_share(result.international, "gender")

        logger.success(f"[PIPELINE] Done: {result.metrics()}")
        return result


# =============================================================================
# EXPORT
# =============================================================================

def stat_report_table(report: StatTestReport) -> pd.DataFrame:
    rows = []
    for name, res in report.results.items():
        rows.append({
            "test": name,
            "by": res.by,
            "groups": " | ".join(res.groups),
            "sizes": " | ".join(str(n) for n in res.sizes),
            "statistic": res.f_statistic if isinstance(res, AnovaResult) else res.statistic,
            "pvalue": res.pvalue,
            "error": None,
        })
    for name, message in report.failures.items():
        rows.append({
            "test": name, "by": TEST_GROUPINGS.get(name), "groups": None, "sizes": None,
            "statistic": None, "pvalue": None, "error": message,
        })
    table = pd.DataFrame(
        rows, columns=["test", "by", "groups", "sizes", "statistic", "pvalue", "error"]
    )
    for col in ("test", "by", "groups", "sizes", "error"):
        table[col] = table[col].astype("string")
    for col in ("statistic", "pvalue"):
        table[col] = table[col].astype(float)
    return table


def export_outputs(result: PipelineResult, out_dir: Path, decimals: int = 2) -> List[Path]:
    """
    Write the GIS hand-off tables and the rounded summary tables as CSV.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    files: Dict[str, pd.DataFrame] = {
        "deduplicated_addresses.csv": result.addresses,
        "joined_locations.csv": result.joined,
        "spatial_edges.csv": result.edges,
        "person_locations.csv": result.per_person,
        "location_totals.csv": result.loc_totals,
        "camp_share_by_gender.csv": round_for_display(result.camp_share, decimals),
        "stat_tests.csv": stat_report_table(result.stat_report),
    }
    for name, df in result.summaries.items():
        files[f"summary_loc_by_{name}.csv"] = round_for_display(df, decimals)
    for name, df in result.distance_summaries.items():
        files[f"summary_distance_by_{name}.csv"] = round_for_display(df, decimals)
    if result.international_share is not None:
        files["international_share_by_gender.csv"] = round_for_display(
            result.international_share, decimals
        )

    written: List[Path] = []
    for filename, df in files.items():
        path = out_dir / filename
        df.to_csv(path, index=False, encoding="utf-8")
        written.append(path)

    logger.success(f"[EXPORT] {len(written)} tables -> {out_dir.as_posix()}")
    return written
