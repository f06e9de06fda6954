from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any, Iterable, List, Sequence

import pandas as pd


class MissingColumnsError(ValueError):
    """An input table lacks one or more columns of its header contract."""


class DuplicateKeyError(ValueError):
    """A table that must be keyed uniquely holds repeated keys."""


@dataclass
class DQResult:
    ok: bool
    checks: List[Dict[str, Any]]


def require_columns(df: pd.DataFrame, columns: Iterable[str], table: str = "table") -> None:
    """
    Raise MissingColumnsError if any of `columns` is absent from `df`.

    Dropping malformed rows silently would corrupt aggregate denominators,
    so the whole run stops here instead.
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise MissingColumnsError(
            f"{table} is missing required columns {missing} (found: {list(df.columns)})"
        )


def require_unique_key(df: pd.DataFrame, key: Sequence[str], table: str = "table") -> None:
    dupes = df[df.duplicated(subset=list(key), keep=False)]
    if len(dupes):
        sample = dupes[list(key)].drop_duplicates().head(5).to_dict("records")
        raise DuplicateKeyError(
            f"{table} has {len(dupes)} rows sharing a key on {list(key)}, e.g. {sample}"
        )


def check_min_rows(count: int, min_rows: int = 1) -> Dict[str, Any]:
    ok = count >= min_rows
    return {"check": "min_rows", "min_rows": min_rows, "value": count, "ok": ok}


def check_unique_key(df: pd.DataFrame, key: Sequence[str]) -> Dict[str, Any]:
    n_dupes = int(df.duplicated(subset=list(key)).sum())
    return {"check": "unique_key", "key": list(key), "value": n_dupes, "ok": n_dupes == 0}


def check_null_share(df: pd.DataFrame, column: str, max_share: float = 1.0) -> Dict[str, Any]:
    share = float(df[column].isna().mean()) if len(df) else 0.0
    return {
        "check": "null_share",
        "column": column,
        "max_share": max_share,
        "value": round(share, 4),
        "ok": share <= max_share,
    }


def summarize_results(checks: List[Dict[str, Any]]) -> DQResult:
    ok = all(c.get("ok", False) for c in checks)
    return DQResult(ok=ok, checks=checks)
