"""
SQLite schema DDL for the three stored collections.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is **idempotent**:
safe to call on an already-initialized database (e.g. on every CLI run or
in tests).

Every table is keyed by the record's deterministic composite id
(``sector-year-month-indicatorId`` etc.), not by a surrogate integer, so an
upsert of a regenerated key always replaces the existing row.

  1. indicators  — monthly numerator/denominator observations
  2. goals       — yearly targets per sector and indicator
  3. planning    — monthly responsible person per sector
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_INDICATORS = """
CREATE TABLE IF NOT EXISTS indicators (
    id              TEXT    PRIMARY KEY,
    sector          TEXT    NOT NULL,
    year            INTEGER NOT NULL,
    month           INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    indicator_id    TEXT    NOT NULL,
    numerator       REAL    NOT NULL DEFAULT 0 CHECK (numerator >= 0),
    denominator     REAL    NOT NULL DEFAULT 0 CHECK (denominator >= 0),
    observation     TEXT    NOT NULL DEFAULT '',
    is_ignored      INTEGER NOT NULL DEFAULT 0,
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_indicators_sector_year
    ON indicators (sector, year);
"""

_DDL_GOALS = """
CREATE TABLE IF NOT EXISTS goals (
    id              TEXT    PRIMARY KEY,
    sector          TEXT    NOT NULL,
    year            INTEGER NOT NULL,
    indicator_id    TEXT    NOT NULL,
    value           REAL    NOT NULL,
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_PLANNING = """
CREATE TABLE IF NOT EXISTS planning (
    id              TEXT    PRIMARY KEY,
    sector          TEXT    NOT NULL,
    year            INTEGER NOT NULL,
    month           INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    responsible     TEXT    NOT NULL CHECK (trim(responsible) <> ''),
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_planning_year
    ON planning (year);
"""

_ALL_DDL = [_DDL_INDICATORS, _DDL_GOALS, _DDL_PLANNING]

# Table names for introspection / tests
ALL_TABLE_NAMES = ["indicators", "goals", "planning"]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent — safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection``.
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
