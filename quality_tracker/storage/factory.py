"""
Backend selection.

``build_store(config)`` is the only place that knows which concrete
``IndicatorStore`` the CLI and dashboard talk to.
"""

from __future__ import annotations

import logging

from quality_tracker.config import AppConfig
from quality_tracker.storage.base import IndicatorStore
from quality_tracker.storage.rest_store import RestIndicatorStore
from quality_tracker.storage.sqlite_store import SqliteIndicatorStore

logger = logging.getLogger(__name__)


def build_store(config: AppConfig) -> IndicatorStore:
    """Create the store named by ``config.storage.backend``.

    The SQLite backend has its schema applied (idempotent) before it is
    returned.

    Raises:
        StorageError: If the SQLite schema cannot be applied.
    """
    storage = config.storage
    if storage.backend == "rest":
        logger.info("Using REST storage at %s", storage.rest_url)
        return RestIndicatorStore(
            base_url=storage.rest_url,
            api_key=storage.rest_key,
            timeout_s=storage.rest_timeout_s,
            records_table=storage.records_table,
            goals_table=storage.goals_table,
            planning_table=storage.planning_table,
        )

    db = config.database
    logger.info("Using SQLite storage at %s", db.db_path)
    store = SqliteIndicatorStore(
        db_path=db.db_path,
        wal_mode=db.wal_mode,
        busy_timeout_ms=db.busy_timeout_ms,
    )
    store.initialize()
    return store
