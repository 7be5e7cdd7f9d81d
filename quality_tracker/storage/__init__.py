"""
quality_tracker.storage — the data service behind every view.

The rest of the application only ever needs six calls: load all records,
goals or planning rows, and upsert one of each by composite key. There is
no querying, filtering or transaction support on purpose; views load the
full collections once and derive everything in memory.

Modules:
  base         — ``IndicatorStore`` interface and ``StorageError``.
  sqlite_store — local SQLite backend (default), built on ``quality_tracker.db``.
  rest_store   — hosted PostgREST backend over ``httpx``.
  factory      — ``build_store(config)`` picks the backend from ``AppConfig``.
"""
