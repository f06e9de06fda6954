"""
narrative_geo/ingestion/loaders.py

Readers for the static input tables of the study.

Every table is read as strings (`dtype=str, keep_default_na=False`) so that
nothing is guessed by pandas; each `prepare_*` function then validates the
header contract, renames to internal names and casts the columns it owns.
A missing column stops the run (MissingColumnsError) instead of dropping rows.

Inputs:
  - raw location/person table          -> load_mentions
  - geocode lookup (address -> lat/lon) -> load_geocode_lookup
  - manually corrected locations        -> load_resolved_locations
  - GIS distance output                 -> load_distances
  - GIS country classification          -> load_country_classification
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable

import pandas as pd
from loguru import logger

from narrative_geo.ingestion.schema import (
    CLASSIFICATION_REQUIRED,
    DISTANCE_REQUIRED,
    GENDERS,
    GEOCODE_LOOKUP_REQUIRED,
    MENTION_COLUMN_MAP,
    MENTION_OPTIONAL,
    MENTION_REQUIRED,
    OCCUPATION_VALUES,
    RESOLVED_BOOL_COLUMNS,
    RESOLVED_REQUIRED,
)
from narrative_geo.utils.dq_checks import require_columns, require_unique_key
from narrative_geo.utils.text_utils import canonical_token, clean_fragment, is_blank


class InvalidCategoryError(ValueError):
    """A categorical column holds a value outside its documented set."""


_GENDER_TOKENS: Dict[str, str] = {
    "female": "Female",
    "f": "Female",
    "male": "Male",
    "m": "Male",
}

_OCCUPATION_TOKENS: Dict[str, str] = {
    "no": "No",
    "yes": "Yes",
    "notmentioned": "NotMentioned",
}

_TRUE_TOKENS = {"true", "yes", "y", "1", "t"}
_FALSE_TOKENS = {"false", "no", "n", "0", "f", ""}


def _read_csv(path: Path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input table not found: {path}")
    df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
    logger.info(f"[LOAD] {path.as_posix()} (rows={len(df)}, cols={len(df.columns)})")
    return df


def _map_category(
    series: pd.Series,
    tokens: Dict[str, str],
    allowed: Iterable[str],
    column: str,
) -> pd.Series:
    mapped = series.map(lambda v: tokens.get(canonical_token(v)))
    bad = sorted(set(series[mapped.isna()].map(clean_fragment)))
    if bad:
        raise InvalidCategoryError(
            f"Column '{column}' has values outside {list(allowed)}: {bad}"
        )
    return mapped


def to_bool_column(series: pd.Series, column: str) -> pd.Series:
    """Cast a Yes/No, True/False, 1/0 text column to bool (blank is False)."""

    def parse(v) -> bool:
        token = "" if is_blank(v) else str(v).strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        raise InvalidCategoryError(f"Column '{column}' has a non-boolean value: {v!r}")

    return series.map(parse).astype(bool)


def to_float_column(series: pd.Series, column: str) -> pd.Series:
    """Cast a text column to float; blanks become NaN, anything else non-numeric fails."""
    blank = series.map(is_blank).astype(bool)
    values = pd.to_numeric(series.where(~blank), errors="coerce")
    bad = series[values.isna() & ~blank]
    if len(bad):
        raise ValueError(
            f"Column '{column}' has non-numeric values: {sorted(set(bad))[:5]}"
        )
    return values.astype(float)


# =============================================================================
# RAW MENTIONS
# =============================================================================

def normalize_categories(df: pd.DataFrame) -> pd.DataFrame:
    """
    Map gender and occupation spellings onto their canonical values.

    "No" and "NotMentioned" stay distinct categories; only spelling variants
    ("Not Mentioned", "not_mentioned") are folded together.
    """
    out = df.copy()
    out["gender"] = _map_category(out["gender"], _GENDER_TOKENS, GENDERS, "gender")
    out["occupation_mentioned"] = _map_category(
        out["occupation_mentioned"], _OCCUPATION_TOKENS, OCCUPATION_VALUES, "occupation"
    )
    return out


def prepare_mentions(raw: pd.DataFrame) -> pd.DataFrame:
    """Validate and rename a raw mention table already in memory."""
    require_columns(raw, MENTION_REQUIRED, table="raw location table")
    keep = MENTION_REQUIRED + [c for c in MENTION_OPTIONAL if c in raw.columns]
    df = raw[keep].rename(columns=MENTION_COLUMN_MAP).reset_index(drop=True)
    return normalize_categories(df)


def load_mentions(path: Path) -> pd.DataFrame:
    return prepare_mentions(_read_csv(path))


# =============================================================================
# GEOCODES AND CORRECTIONS
# =============================================================================

def prepare_geocode_lookup(raw: pd.DataFrame) -> pd.DataFrame:
    require_columns(raw, GEOCODE_LOOKUP_REQUIRED, table="geocode lookup")
    df = raw[GEOCODE_LOOKUP_REQUIRED].copy()
    df["address"] = df["address"].map(clean_fragment)
    df["latitude"] = to_float_column(df["latitude"], "latitude")
    df["longitude"] = to_float_column(df["longitude"], "longitude")
    require_unique_key(df, ["address"], table="geocode lookup")
    return df.reset_index(drop=True)


def load_geocode_lookup(path: Path) -> pd.DataFrame:
    return prepare_geocode_lookup(_read_csv(path))


def prepare_resolved_locations(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Validate the manually corrected location table.

    `address` must be unique: the join from mentions is many-to-one and the
    external correction step is responsible for deduplicating it.
    """
    require_columns(raw, RESOLVED_REQUIRED, table="resolved locations")
    df = raw[RESOLVED_REQUIRED].copy()
    df["address"] = df["address"].map(clean_fragment)
    df["resolved_location"] = df["resolved_location"].map(clean_fragment)
    df["latitude"] = to_float_column(df["latitude"], "latitude")
    df["longitude"] = to_float_column(df["longitude"], "longitude")
    for col in RESOLVED_BOOL_COLUMNS:
        df[col] = to_bool_column(df[col], col)
    require_unique_key(df, ["address"], table="resolved locations")
    return df.reset_index(drop=True)


def load_resolved_locations(path: Path) -> pd.DataFrame:
    return prepare_resolved_locations(_read_csv(path))


# =============================================================================
# GIS ROUND-TRIPS
# =============================================================================

def prepare_distances(raw: pd.DataFrame) -> pd.DataFrame:
    require_columns(raw, DISTANCE_REQUIRED, table="distance table")
    df = raw[DISTANCE_REQUIRED].rename(columns={"PersonID": "person_id"})
    df["person_id"] = df["person_id"].map(clean_fragment)
    df["resolved_location"] = df["resolved_location"].map(clean_fragment)
    df["distance_km"] = to_float_column(df["distance_km"], "distance_km")
    require_unique_key(df, ["person_id", "resolved_location"], table="distance table")
    return df.reset_index(drop=True)


def load_distances(path: Path) -> pd.DataFrame:
    return prepare_distances(_read_csv(path))


def prepare_country_classification(raw: pd.DataFrame) -> pd.DataFrame:
    require_columns(raw, CLASSIFICATION_REQUIRED, table="country classification")
    cols = CLASSIFICATION_REQUIRED + (
        ["resolved_location"] if "resolved_location" in raw.columns else []
    )
    df = raw[cols].rename(columns={"PersonID": "person_id", "CNTRY_NAME": "country_name"})
    for col in df.columns:
        df[col] = df[col].map(clean_fragment)
    return df.reset_index(drop=True)


def load_country_classification(path: Path) -> pd.DataFrame:
    return prepare_country_classification(_read_csv(path))
