from __future__ import annotations

import re
from pathlib import Path
from typing import Dict

import duckdb
import pandas as pd
from loguru import logger

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _as_posix(p: Path) -> str:
    return p.resolve().as_posix()


def connect(db_path: Path) -> duckdb.DuckDBPyConnection:
    """Open (creating if needed) the study's DuckDB file."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Connecting DuckDB: {_as_posix(db_path)}")
    return duckdb.connect(_as_posix(db_path))


def write_tables(con: duckdb.DuckDBPyConnection, tables: Dict[str, pd.DataFrame]) -> Dict[str, int]:
    """
    Replace each named table with the content of its DataFrame.

    Stage tables are rebuilt from scratch on every run, so the load is a plain
    CREATE OR REPLACE rather than an upsert.
    """
    counts: Dict[str, int] = {}
    for name, df in tables.items():
        if not _TABLE_NAME.match(name):
            raise ValueError(f"Invalid table name: {name!r}")
        con.register("_stage_df", df)
        try:
            con.execute(f"CREATE OR REPLACE TABLE {name} AS SELECT * FROM _stage_df")
        finally:
            con.unregister("_stage_df")
        counts[name] = con.execute(f"SELECT COUNT(*) FROM {name}").fetchone()[0]

    logger.success(f"[DW] Wrote {len(counts)} tables: {counts}")
    return counts


def read_table(con: duckdb.DuckDBPyConnection, name: str) -> pd.DataFrame:
    if not _TABLE_NAME.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return con.execute(f"SELECT * FROM {name}").df()
