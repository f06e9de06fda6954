from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import pandas as pd
from loguru import logger

from narrative_geo.utils.text_utils import clean_fragment, is_blank, strip_prefix

DEFAULT_SEPARATOR = ", "
DEFAULT_PREFIXES: Dict[str, str] = {"age": "Age in 1947: "}

TEXT_COLUMNS = [
    "person_name",
    "age",
    "migrated_from",
    "migrated_to",
    "raw_location",
    "city",
    "country",
]


def build_address(location: Any, city: Any, country: Any, separator: str = DEFAULT_SEPARATOR) -> str:
    """
    Join the non-empty fragments with `separator`.

    ("A", "", "C") -> "A, C". An all-empty mention gives "" and is kept as
    such so that "locations mentioned" stays well defined downstream.
    """
    parts = [clean_fragment(p) for p in (location, city, country)]
    return separator.join(p for p in parts if p)


def _clean_column(series: pd.Series, prefix: Optional[str]) -> pd.Series:
    def clean(v):
        # label match runs on the untrimmed cell
        text = "" if is_blank(v) else str(v).lstrip()
        return clean_fragment(strip_prefix(text, prefix))

    return series.map(clean)


def normalize_mentions(
    df: pd.DataFrame,
    separator: str = DEFAULT_SEPARATOR,
    prefixes: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    """
    Clean the free-text columns and add the canonical `address`.

    Annotation labels listed in `prefixes` (column -> label) are removed by
    exact prefix match; values without the label pass through. Also adds
    `age_years` (nullable int) next to the textual `age`, which keeps the
    cleaned text because the identity key is built from it.

    Running this twice gives the same table.
    """
    prefixes = DEFAULT_PREFIXES if prefixes is None else prefixes
    out = df.copy()

    for col in TEXT_COLUMNS:
        if col in out.columns:
            out[col] = _clean_column(out[col], prefixes.get(col))

    out["address"] = [
        build_address(loc, city, country, separator)
        for loc, city, country in zip(out["raw_location"], out["city"], out["country"])
    ]

    years = pd.to_numeric(out["age"].where(out["age"] != ""), errors="coerce")
    out["age_years"] = years.where(years.mod(1) == 0).astype("Int64")
    unparsed = int((out["age_years"].isna() & (out["age"] != "")).sum())
    if unparsed:
        logger.warning(f"[NORMALIZE] {unparsed} rows have a non-numeric age after prefix stripping")

    empty = int((out["address"] == "").sum())
    logger.info(f"[NORMALIZE] rows={len(out)} empty_addresses={empty}")
    return out


def dedupe_addresses(df: pd.DataFrame, key: str = "person_id") -> pd.DataFrame:
    """
    Keep the first occurrence of each (person, address) pair.

    Uniqueness is exact string equality on the normalised address; a place
    mentioned twice in one account counts once. Empty addresses are treated
    as one more value, not dropped.
    """
    before = len(df)
    out = df.drop_duplicates(subset=[key, "address"], keep="first").reset_index(drop=True)
    logger.info(f"[DEDUPE] {before} -> {len(out)} (removed={before - len(out)})")
    return out


def distinct_addresses(df: pd.DataFrame) -> pd.DataFrame:
    """Unique non-empty addresses, in first-seen order, for the geocoder."""
    addresses = df.loc[df["address"] != "", "address"].drop_duplicates()
    return pd.DataFrame({"address": addresses.tolist()})


def addresses_per_person(df: pd.DataFrame, key: str = "person_id") -> pd.Series:
    """Count of distinct non-empty addresses per person."""
    named = df[df["address"] != ""]
    return named.groupby(key)["address"].nunique()
