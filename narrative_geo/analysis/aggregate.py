"""
narrative_geo/analysis/aggregate.py

Per-person and per-group location statistics.

Every aggregate below is computed over the analytic subpopulation only:
rows with a resolved, non-admin location whose narrator's occupation flag
is not the excluded value ("No"). Persons with no qualifying location
are absent from every mean; they are never counted as zero.

Full precision is kept here; round_for_display() is for report tables.
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Union

import pandas as pd
from loguru import logger

from narrative_geo.ingestion.schema import ANALYTIC_COLUMNS

DEFAULT_QUANTILES = (0.25, 0.5, 0.75)
GROUPINGS: Dict[str, List[str]] = {
    "gender": ["gender"],
    "occupation": ["occupation_mentioned"],
    "gender_occupation": ["gender", "occupation_mentioned"],
}


def analytic_subpopulation(joined: pd.DataFrame, exclude_occupation: str = "No") -> pd.DataFrame:
    """
    Filter to `admin == False` and `occupation_mentioned != exclude_occupation`,
    project to ANALYTIC_COLUMNS and keep one row per (person_id, resolved_location).

    Rows that never matched a resolved location have a null `admin` and drop
    out here. "NotMentioned" is kept as its own category. When two addresses of
    one person resolve to the same location, the first one's coordinates win.
    """
    not_admin = joined["admin"].eq(False).fillna(False).astype(bool)
    keep = not_admin & joined["occupation_mentioned"].ne(exclude_occupation)
    analytic = (
        joined.loc[keep, ANALYTIC_COLUMNS]
        .drop_duplicates(subset=["person_id", "resolved_location"], keep="first")
        .reset_index(drop=True)
    )
    logger.info(
        f"[ANALYTIC] {len(joined)} -> {len(analytic)} rows, "
        f"persons={analytic['person_id'].nunique()}"
    )
    return analytic


def locations_per_person(analytic: pd.DataFrame) -> pd.DataFrame:
    """`loc_by_name`: distinct resolved locations per PersonID."""
    per_person = (
        analytic.groupby("person_id", sort=True)
        .agg(
            person_name=("person_name", "first"),
            gender=("gender", "first"),
            occupation_mentioned=("occupation_mentioned", "first"),
            loc_by_name=("resolved_location", "nunique"),
        )
        .reset_index()
    )
    per_person["gender_occupation"] = (
        per_person["gender"] + "_" + per_person["occupation_mentioned"]
    )
    return per_person


def location_totals(analytic: pd.DataFrame) -> pd.DataFrame:
    """`loc_total`: number of persons mentioning each resolved location."""
    totals = (
        analytic.groupby("resolved_location")["person_id"]
        .nunique()
        .rename("loc_total")
        .reset_index()
        .sort_values(["loc_total", "resolved_location"], ascending=[False, True])
        .reset_index(drop=True)
    )
    return totals


def group_summary(
    per_person: pd.DataFrame,
    by: Union[str, Sequence[str]],
    value: str = "loc_by_name",
    quantiles: Sequence[float] = DEFAULT_QUANTILES,
) -> pd.DataFrame:
    """
    count / mean / median / std and quantiles of `value` per group.

    Only groups present in `per_person` appear: an empty group is absent
    from the result rather than reported with a zero mean.
    """
    by = [by] if isinstance(by, str) else list(by)
    grouped = per_person.groupby(by, observed=True)[value]
    summary = grouped.agg(["count", "mean", "median", "std"])

    if quantiles and len(per_person):
        q = grouped.quantile(list(quantiles)).unstack(level=-1)
        q.columns = [f"q{int(round(x * 100))}" for x in q.columns]
        summary = summary.join(q)

    return summary.reset_index()


def summarize_groups(
    per_person: pd.DataFrame,
    value: str = "loc_by_name",
    quantiles: Sequence[float] = DEFAULT_QUANTILES,
) -> Dict[str, pd.DataFrame]:
    """The three grouped reductions: by gender, by occupation, by both."""
    return {
        name: group_summary(per_person, cols, value=value, quantiles=quantiles)
        for name, cols in GROUPINGS.items()
    }


def camp_share_by_group(
    analytic: pd.DataFrame,
    per_person: pd.DataFrame,
    by: Union[str, Sequence[str]] = "gender",
) -> pd.DataFrame:
    """Share of persons in each group who mention at least one camp."""
    by = [by] if isinstance(by, str) else list(by)
    mentions_camp = (
        analytic.assign(camp=analytic["camp"].astype(bool))
        .groupby("person_id")["camp"]
        .any()
        .rename("mentions_camp")
        .reset_index()
    )
    merged = per_person.merge(mentions_camp, on="person_id", how="inner")
    return (
        merged.groupby(by, observed=True)["mentions_camp"]
        .agg(persons="size", camp_share="mean")
        .reset_index()
    )


def round_for_display(df: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    return df.round(decimals)
