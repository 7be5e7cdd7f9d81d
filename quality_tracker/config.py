"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``QUALITY_TRACKER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

CLI commands and the dashboard receive an ``AppConfig`` instance — never
raw dicts or individual env var lookups scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

VALID_STORAGE_BACKENDS = frozenset({"sqlite", "rest"})

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/quality_tracker.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class StorageConfig(BaseModel):
    """Which data service backs the record/goal/planning collections.

    ``sqlite`` uses the local database from ``DatabaseConfig``.
    ``rest`` talks to a hosted PostgREST endpoint; ``rest_url`` and
    ``rest_key`` are normally supplied through ``.env``.
    """

    model_config = ConfigDict(frozen=True)

    backend: str = "sqlite"
    rest_url: str = ""
    rest_key: str = ""
    rest_timeout_s: float = 15.0
    records_table: str = "indicators"
    goals_table: str = "goals"
    planning_table: str = "planning"

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend '{v}'. Must be one of {sorted(VALID_STORAGE_BACKENDS)}."
            )
        return v

    @model_validator(mode="after")
    def validate_rest_settings(self) -> "StorageConfig":
        if self.backend == "rest" and not self.rest_url:
            raise ValueError("storage.rest_url is required when backend = 'rest'.")
        return self


class DashboardConfig(BaseModel):
    """Defaults for the interactive views."""

    model_config = ConfigDict(frozen=True)

    default_sector: str = "UTI Geral"


class ExportConfig(BaseModel):
    """Where CSV/JSON exports are written."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs/exports"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/quality_tracker.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    storage: StorageConfig = StorageConfig()
    dashboard: DashboardConfig = DashboardConfig()
    export: ExportConfig = ExportConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply QUALITY_TRACKER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply QUALITY_TRACKER_* env vars to the raw config dict.

    Supported overrides:
      QUALITY_TRACKER_DB_PATH          → raw["database"]["db_path"]
      QUALITY_TRACKER_STORAGE_BACKEND  → raw["storage"]["backend"]
      QUALITY_TRACKER_REST_URL         → raw["storage"]["rest_url"]
      QUALITY_TRACKER_REST_KEY         → raw["storage"]["rest_key"]
      QUALITY_TRACKER_LOG_LEVEL        → raw["logging"]["level"]
      QUALITY_TRACKER_DEBUG            → raw["debug"]
    """
    if db_path := os.environ.get("QUALITY_TRACKER_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if backend := os.environ.get("QUALITY_TRACKER_STORAGE_BACKEND"):
        raw.setdefault("storage", {})["backend"] = backend

    if rest_url := os.environ.get("QUALITY_TRACKER_REST_URL"):
        raw.setdefault("storage", {})["rest_url"] = rest_url

    if rest_key := os.environ.get("QUALITY_TRACKER_REST_KEY"):
        raw.setdefault("storage", {})["rest_key"] = rest_key

    if log_level := os.environ.get("QUALITY_TRACKER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("QUALITY_TRACKER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        storage=StorageConfig(**raw.get("storage", {})),
        dashboard=DashboardConfig(**raw.get("dashboard", {})),
        export=ExportConfig(**raw.get("export", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
