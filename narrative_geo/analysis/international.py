from __future__ import annotations

from typing import Iterable

import pandas as pd

DEFAULT_SUBCONTINENT = ("India", "Pakistan", "Bangladesh")


def international_per_person(
    classification: pd.DataFrame,
    per_person: pd.DataFrame,
    subcontinent: Iterable[str] = DEFAULT_SUBCONTINENT,
) -> pd.DataFrame:
    """
    Join the GIS country classification onto the analytic persons.

    Adds `n_countries` (distinct countries among the person's classified
    places) and `international` (at least one place outside `subcontinent`).
    Persons missing from the classification are left out, not counted as
    subcontinent-only.
    """
    home = {c.casefold() for c in subcontinent}
    classified = classification[classification["country_name"] != ""].copy()
    classified["outside"] = ~classified["country_name"].str.casefold().isin(home)

    per_country = (
        classified.groupby("person_id")
        .agg(n_countries=("country_name", "nunique"), international=("outside", "any"))
        .reset_index()
    )
    return per_person.merge(per_country, on="person_id", how="inner")


def international_share(international: pd.DataFrame, by: str = "gender") -> pd.DataFrame:
    """Share of persons per group with at least one place outside the subcontinent."""
    return (
        international.groupby(by, observed=True)["international"]
        .agg(persons="size", international_share="mean")
        .reset_index()
    )
