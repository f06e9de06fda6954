from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd

from narrative_geo.utils.text_utils import clean_fragment, is_blank

DEFAULT_SEPARATOR = "_"


@dataclass(frozen=True)
class PersonID:
    """
    Derived identity key: name ++ separator ++ age.

    Stable (same inputs give the same key) but NOT globally unique: two
    narrators sharing a name and an age collide. Per-person aggregation
    groups by this key rather than by name alone, which lowers the collision
    risk without removing it. Where a real guarantee is needed, supply an
    `interview_id` column and it will be used instead.
    """
    name: str
    age: str
    separator: str = DEFAULT_SEPARATOR

    @property
    def key(self) -> str:
        return f"{self.name}{self.separator}{self.age}"

    def __str__(self) -> str:
        return self.key


def make_person_id(name: Any, age: Any, separator: str = DEFAULT_SEPARATOR) -> str:
    return PersonID(clean_fragment(name), clean_fragment(age), separator).key


def assign_person_ids(df: pd.DataFrame, separator: str = DEFAULT_SEPARATOR) -> pd.DataFrame:
    """
    Return a copy of `df` with a `person_id` column.

    Rows carrying a non-empty `interview_id` use it verbatim; the others fall
    back to the name+age key.
    """
    out = df.copy()
    derived = [
        make_person_id(n, a, separator)
        for n, a in zip(out["person_name"], out["age"])
    ]
    if "interview_id" in out.columns:
        supplied = out["interview_id"].map(clean_fragment)
        out["person_id"] = [
            s if s else d for s, d in zip(supplied, derived)
        ]
    else:
        out["person_id"] = derived
    return out


def count_shared_names(df: pd.DataFrame) -> int:
    """Number of person names that map to more than one PersonID."""
    if df.empty:
        return 0
    ids_per_name = (
        df[~df["person_name"].map(is_blank)]
        .groupby("person_name")["person_id"]
        .nunique()
    )
    return int((ids_per_name > 1).sum())
