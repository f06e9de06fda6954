from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import duckdb

OPS_RUNS_DDL = """
CREATE TABLE IF NOT EXISTS ops_pipeline_runs (
    run_id VARCHAR,
    job_name VARCHAR,
    started_at TIMESTAMP,
    ended_at TIMESTAMP,
    status VARCHAR,
    params_json VARCHAR,
    raw_rows BIGINT,
    mention_rows BIGINT,
    analytic_rows BIGINT,
    persons BIGINT,
    edge_rows BIGINT,
    stat_failures INTEGER,
    exit_code INTEGER
);
"""

METRIC_COLUMNS = (
    "raw_rows",
    "mention_rows",
    "analytic_rows",
    "persons",
    "edge_rows",
    "stat_failures",
)


def utcnow_naive() -> datetime:
    # DuckDB stores naive TIMESTAMP: UTC without tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


def ensure_ops_tables(con: duckdb.DuckDBPyConnection) -> None:
    con.execute(OPS_RUNS_DDL)


def start_run(
    con: duckdb.DuckDBPyConnection,
    run_id: str,
    job_name: str,
    params: Optional[Dict[str, Any]] = None,
) -> None:
    ensure_ops_tables(con)
    con.execute(
        """
        INSERT INTO ops_pipeline_runs (
          run_id, job_name, started_at, status, params_json
        ) VALUES (?, ?, ?, ?, ?)
        """,
        [
            run_id,
            job_name,
            utcnow_naive(),
            "RUNNING",
            json.dumps(params or {}, ensure_ascii=False, default=str),
        ],
    )


def end_run(
    con: duckdb.DuckDBPyConnection,
    run_id: str,
    status: str,
    exit_code: int,
    metrics: Optional[Dict[str, Any]] = None,
) -> None:
    metrics = metrics or {}
    ensure_ops_tables(con)
    con.execute(
        """
        UPDATE ops_pipeline_runs
        SET ended_at = ?,
            status = ?,
            exit_code = ?,
            raw_rows = COALESCE(?, raw_rows),
            mention_rows = COALESCE(?, mention_rows),
            analytic_rows = COALESCE(?, analytic_rows),
            persons = COALESCE(?, persons),
            edge_rows = COALESCE(?, edge_rows),
            stat_failures = COALESCE(?, stat_failures)
        WHERE run_id = ?
        """,
        [
            utcnow_naive(),
            status,
            int(exit_code),
            *[metrics.get(c) for c in METRIC_COLUMNS],
            run_id,
        ],
    )
