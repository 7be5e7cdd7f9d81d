"""
SQLite connection for the local indicator store.

``SqliteIndicatorStore`` opens one connection per call, from the CLI, the
dashboard and a view's background writer alike. Rows come back as
``sqlite3.Row`` so the repositories can read columns by name.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Open ``db_path``, creating its directory, and yield the connection.

    The transaction commits when the block exits cleanly and rolls back
    when it raises. WAL lets the dashboard read while a writer thread holds
    the write lock; ``busy_timeout_ms`` bounds how long a writer waits.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        if wal_mode:
            conn.execute("PRAGMA journal_mode = WAL;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
