from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns added after the first release; older databases are patched at startup.
# (name, sqlite_type, postgres_type)
REQUIRED_MEET_COLUMNS: List[Tuple[str, str, str]] = [
    ("enforce_age_gap_check", "INTEGER DEFAULT 1", "BOOLEAN DEFAULT TRUE"),
    ("enforce_weight_check", "INTEGER DEFAULT 1", "BOOLEAN DEFAULT TRUE"),
    ("board_seq", "INTEGER DEFAULT 0", "INTEGER DEFAULT 0"),
    ("lock_expires_at", "DATETIME", "TIMESTAMP"),
]

REQUIRED_BOUT_COLUMNS: List[Tuple[str, str, str]] = [
    ("original_mat", "INTEGER", "INTEGER"),
    ("locked", "INTEGER DEFAULT 0", "BOOLEAN DEFAULT FALSE"),
    ("notes", "TEXT", "TEXT"),
]

REQUIRED_TEAM_COLUMNS: List[Tuple[str, str, str]] = [
    ("home_team_prefer_same_mat", "INTEGER DEFAULT 0", "BOOLEAN DEFAULT FALSE"),
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _get_existing_columns_sqlite(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        res = conn.execute(text(f"PRAGMA table_info({table_name});")).fetchall()
        # PRAGMA table_info returns rows: (cid, name, type, notnull, dflt_value, pk)
        for row in res:
            cols[str(row[1])] = str(row[2])
    return cols


def _get_existing_columns_postgres(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    sql = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = 'public' AND table_name = :table_name;
    """
    with engine.connect() as conn:
        res = conn.execute(text(sql), {"table_name": table_name}).fetchall()
        for row in res:
            cols[str(row[0])] = str(row[1])
    return cols


def _table_exists(engine: Engine, table: str) -> bool:
    if _is_sqlite(engine):
        sql = "SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"
    else:
        sql = """
        SELECT 1 FROM information_schema.tables
        WHERE table_schema = 'public' AND table_name = :table_name
        """
    with engine.connect() as conn:
        return conn.execute(text(sql), {"table_name": table}).fetchone() is not None


def ensure_columns(engine: Engine, table: str, required: List[Tuple[str, str, str]]) -> List[str]:
    """
    Idempotently add missing columns to *table*. Safe to run at every startup.

    Returns the names of the columns that were added.
    """
    if not _table_exists(engine, table):
        # create_all will build it with every column
        return []

    sqlite = _is_sqlite(engine)
    existing = _get_existing_columns_sqlite(engine, table) if sqlite else _get_existing_columns_postgres(engine, table)
    added: List[str] = []
    with engine.begin() as conn:
        for name, sqlite_type, pg_type in required:
            if name in existing:
                continue
            if sqlite:
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {sqlite_type};"))
            else:
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {pg_type};"))
            added.append(name)
    if added:
        logger.info("Added columns to %s: %s", table, ", ".join(added))
    return added


def ensure_schema_columns(engine: Engine) -> List[str]:
    from meetpair.models.bout import Bout
    from meetpair.models.meet import Meet
    from meetpair.models.team import Team

    added: List[str] = []
    for model, required in (
        (Meet, REQUIRED_MEET_COLUMNS),
        (Bout, REQUIRED_BOUT_COLUMNS),
        (Team, REQUIRED_TEAM_COLUMNS),
    ):
        table = model.__table__.name
        try:
            added.extend(f"{table}.{name}" for name in ensure_columns(engine, table, required))
        except Exception as e:
            # Log error but don't crash the server
            logger.warning(f"Failed to ensure {table} columns: {e}")
    return added
