"""
Quality Tracker — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Open the configured store and load the view snapshot.
  4. Derive / edit / export.
  5. Report result to stdout.

A store that cannot be loaded ends the command with exit code 1; so does
an edit whose background write failed.

Install and run::

    pip install -e .
    quality-tracker --help
    quality-tracker init-db
    quality-tracker panel --family identificacao --sector "UTI Geral" --year 2024
    quality-tracker record identificacao_pulseira --month 3 --numerator 16
    quality-tracker export identificacao_pulseira --year 2024
    quality-tracker report --sector "UTI Geral"
    quality-tracker plan-assign "UTI Geral" 3 "Ana" --year 2024
    quality-tracker plan-ranking --year 2024
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="quality-tracker",
    help="Hospital quality-indicator tracker — monthly scores, goals, trends and planning.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None, db_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from quality_tracker.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        config = load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)

    if db_path:
        config = config.model_copy(
            update={"database": config.database.model_copy(update={"db_path": db_path})}
        )
    return config


def _configure_logging(config):
    """Set up logging from config."""
    from quality_tracker.utils.logging import configure_logging
    configure_logging(config.logging)


def _open_store_or_exit(config):
    from quality_tracker.storage.base import StorageError
    from quality_tracker.storage.factory import build_store

    try:
        return build_store(config)
    except StorageError as exc:
        typer.echo(f"[ERROR] Could not open storage: {exc}", err=True)
        raise typer.Exit(code=1)


def _reload_or_exit(view) -> None:
    from quality_tracker.storage.base import StorageError

    try:
        view.reload()
    except StorageError as exc:
        typer.echo(f"[ERROR] Could not load data: {exc}", err=True)
        view.close(close_store=True)
        raise typer.Exit(code=1)


def _finish_writes_or_exit(view) -> None:
    """Wait for background writes; exit 1 if any of them failed."""
    view.flush()
    view.close(close_store=True)
    if view.write_failures:
        for failure in view.write_failures:
            typer.echo(
                f"[ERROR] {failure.operation} failed for '{failure.key}': {failure.error}",
                err=True,
            )
        typer.echo("  Local change was not saved; run the command again.", err=True)
        raise typer.Exit(code=1)


def _resolve_sector_or_exit(config, sector: Optional[str]) -> str:
    from quality_tracker.taxonomy.indicator_taxonomy import SECTORS

    chosen = sector or config.dashboard.default_sector
    if chosen not in SECTORS:
        typer.echo(f"[ERROR] Unknown sector '{chosen}'. Known sectors: {', '.join(SECTORS)}", err=True)
        raise typer.Exit(code=1)
    return chosen


def _resolve_indicator_or_exit(indicator_id: str):
    from quality_tracker.catalog import get_indicator

    try:
        return get_indicator(indicator_id)
    except KeyError as exc:
        typer.echo(f"[ERROR] {exc.args[0]}", err=True)
        raise typer.Exit(code=1)


def _year_or_current(year: Optional[int]) -> int:
    return year if year is not None else date.today().year


def _check_month_or_exit(month: int) -> None:
    if not 1 <= month <= 12:
        typer.echo(f"[ERROR] --month must be 1..12, got {month}.", err=True)
        raise typer.Exit(code=1)


# ── Setup commands ────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    """
    from quality_tracker.db.schema import ALL_TABLE_NAMES
    from quality_tracker.storage.base import StorageError
    from quality_tracker.storage.sqlite_store import SqliteIndicatorStore

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)

    target_path = config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    store = SqliteIndicatorStore(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    )
    try:
        store.initialize()
    except StorageError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Storage backend:  {config.storage.backend}")
    if config.storage.backend == "rest":
        typer.echo(f"  REST URL:         {config.storage.rest_url}")
    else:
        typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Default sector:   {config.dashboard.default_sector}")
    typer.echo(f"  Export dir:       {config.export.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        dumped = config.model_dump()
        if dumped["storage"]["rest_key"]:
            dumped["storage"]["rest_key"] = "***"
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")


@app.command("glossary")
def glossary(
    family: Optional[str] = typer.Option(
        None,
        "--family",
        help="Only one family: identificacao, cirurgia, lpp or quedas.",
    ),
) -> None:
    """Print indicator definitions, formulas and how to read them."""
    from quality_tracker.catalog import build_glossary
    from quality_tracker.reporting.formatters import format_glossary

    entries = build_glossary()
    if family:
        entries = [e for e in entries if e.family.value == family]
        if not entries:
            typer.echo(f"[ERROR] Unknown family '{family}'.", err=True)
            raise typer.Exit(code=1)
    typer.echo(format_glossary(entries))


# ── Indicator commands ────────────────────────────────────────────────────────

@app.command("panel")
def panel(
    family: Optional[str] = typer.Option(
        None,
        "--family",
        help="Show every indicator of this family.",
    ),
    indicator_id: Optional[str] = typer.Option(
        None,
        "--indicator",
        help="Show a single indicator (overrides --family).",
    ),
    sector: Optional[str] = typer.Option(None, "--sector", help="Sector (default from config)."),
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Show the 12-month table, goal and headline figure of indicators."""
    from quality_tracker.catalog import indicators_for_family
    from quality_tracker.reporting.formatters import format_indicator_panel
    from quality_tracker.views.state import IndicatorViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    sector = _resolve_sector_or_exit(config, sector)
    year = _year_or_current(year)

    if indicator_id:
        definitions = [_resolve_indicator_or_exit(indicator_id)]
    elif family:
        try:
            definitions = list(indicators_for_family(family))
        except ValueError:
            typer.echo(f"[ERROR] Unknown family '{family}'.", err=True)
            raise typer.Exit(code=1)
    else:
        typer.echo("[ERROR] Pass --family or --indicator.", err=True)
        raise typer.Exit(code=1)

    view = IndicatorViewState(_open_store_or_exit(config), sector=sector, year=year)
    _reload_or_exit(view)
    for definition in definitions:
        typer.echo(format_indicator_panel(view.indicator_panel(definition.id), sector, year))
    typer.echo("")
    view.close(close_store=True)


@app.command("record")
def record(
    indicator_id: str = typer.Argument(..., help="Indicator id, e.g. identificacao_pulseira."),
    month: int = typer.Option(..., "--month", help="Month 1..12."),
    numerator: Optional[float] = typer.Option(None, "--numerator", help="Numerator value."),
    denominator: Optional[float] = typer.Option(None, "--denominator", help="Denominator value."),
    observation: Optional[str] = typer.Option(None, "--observation", help="Free-text note."),
    ignored: Optional[bool] = typer.Option(
        None,
        "--ignore/--include",
        help="Exclude the month from aggregates, or bring it back.",
    ),
    sector: Optional[str] = typer.Option(None, "--sector", help="Sector (default from config)."),
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Edit one month of an indicator (created with defaults on first edit)."""
    from pydantic import ValidationError

    from quality_tracker.reporting.formatters import format_score
    from quality_tracker.scoring.engine import score_record
    from quality_tracker.views.state import IndicatorViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    sector = _resolve_sector_or_exit(config, sector)
    year = _year_or_current(year)
    definition = _resolve_indicator_or_exit(indicator_id)
    _check_month_or_exit(month)

    changes: dict = {}
    if numerator is not None:
        changes["numerator"] = numerator
    if denominator is not None:
        changes["denominator"] = denominator
    if observation is not None:
        changes["observation"] = observation
    if ignored is not None:
        changes["is_ignored"] = ignored
    if not changes:
        typer.echo("[ERROR] Nothing to change: pass --numerator, --denominator, --observation or --ignore/--include.", err=True)
        raise typer.Exit(code=1)

    view = IndicatorViewState(_open_store_or_exit(config), sector=sector, year=year)
    _reload_or_exit(view)
    try:
        saved = view.edit_record(definition.id, month, **changes)
    except ValidationError as exc:
        view.close(close_store=True)
        typer.echo(f"[ERROR] Invalid value: {exc}", err=True)
        raise typer.Exit(code=1)
    _finish_writes_or_exit(view)

    result = format_score(score_record(saved, definition), definition.formula_type, definition.unit)
    typer.echo(f"[OK] {saved.id}: {saved.numerator:g}/{saved.denominator:g} -> {result}")


@app.command("goal")
def goal(
    indicator_id: str = typer.Argument(..., help="Indicator id."),
    value: float = typer.Argument(..., help="Goal value for the sector and year."),
    sector: Optional[str] = typer.Option(None, "--sector", help="Sector (default from config)."),
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Set the goal of an indicator for one sector and year."""
    from quality_tracker.views.state import IndicatorViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    sector = _resolve_sector_or_exit(config, sector)
    year = _year_or_current(year)
    definition = _resolve_indicator_or_exit(indicator_id)

    view = IndicatorViewState(_open_store_or_exit(config), sector=sector, year=year)
    _reload_or_exit(view)
    saved = view.set_goal(definition.id, value)
    _finish_writes_or_exit(view)
    typer.echo(f"[OK] Goal {saved.id} = {saved.value:g}{definition.unit}")


@app.command("export")
def export(
    indicator_id: str = typer.Argument(..., help="Indicator id."),
    sector: Optional[str] = typer.Option(None, "--sector", help="Sector (default from config)."),
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Directory for the CSV (default: export.output_dir from config).",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Write the 12-month table of an indicator as CSV."""
    from quality_tracker.reporting.export import export_filename, write_indicator_csv
    from quality_tracker.views.state import IndicatorViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    sector = _resolve_sector_or_exit(config, sector)
    year = _year_or_current(year)
    definition = _resolve_indicator_or_exit(indicator_id)

    view = IndicatorViewState(_open_store_or_exit(config), sector=sector, year=year)
    _reload_or_exit(view)
    points = view.indicator_panel(definition.id).points
    view.close(close_store=True)

    out_dir = Path(output_dir or config.export.output_dir)
    path = write_indicator_csv(points, year, out_dir / export_filename(definition.id, sector, year))
    typer.echo(f"[OK] Exported {len(points)} months to {path}")


@app.command("report")
def report(
    sector: Optional[str] = typer.Option(None, "--sector", help="Sector (default from config)."),
    family: Optional[List[str]] = typer.Option(
        None,
        "--family",
        help="Family to include (repeatable). Default: all four.",
    ),
    export_csv: bool = typer.Option(False, "--csv", help="Also write a flat CSV of the report."),
    export_json: bool = typer.Option(False, "--json", help="Also write a flat JSON of the report."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Consolidated multi-year trend analysis of one sector."""
    from quality_tracker.reporting.consolidated import (
        build_consolidated_report,
        flatten_report_for_export,
    )
    from quality_tracker.reporting.export import export_to_csv, export_to_json
    from quality_tracker.reporting.formatters import format_consolidated_report
    from quality_tracker.views.state import IndicatorViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    sector = _resolve_sector_or_exit(config, sector)

    view = IndicatorViewState(_open_store_or_exit(config), sector=sector, year=_year_or_current(None))
    _reload_or_exit(view)
    view.close(close_store=True)

    try:
        result = build_consolidated_report(view.records.values(), sector, family or None)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_consolidated_report(result))

    if export_csv or export_json:
        rows = flatten_report_for_export(result)
        out_dir = Path(config.export.output_dir)
        stem = f"consolidated_{sector}_{date.today().isoformat()}"
        if export_csv:
            path = export_to_csv(rows, out_dir / f"{stem}.csv")
            typer.echo(f"[OK] CSV written to {path}")
        if export_json:
            path = export_to_json(rows, out_dir / f"{stem}.json")
            typer.echo(f"[OK] JSON written to {path}")
    typer.echo("")


# ── Planning commands ─────────────────────────────────────────────────────────

@app.command("plan-assign")
def plan_assign(
    sector: str = typer.Argument(..., help="Sector name."),
    month: int = typer.Argument(..., help="Month 1..12."),
    responsible: str = typer.Argument(..., help="Responsible name; empty string clears the cell."),
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Assign (or clear) who is responsible for a sector in a month."""
    from quality_tracker.views.state import PlanningViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    sector = _resolve_sector_or_exit(config, sector)
    _check_month_or_exit(month)
    year = _year_or_current(year)

    view = PlanningViewState(_open_store_or_exit(config), year=year)
    _reload_or_exit(view)
    saved = view.assign(sector, month, responsible)
    _finish_writes_or_exit(view)

    if saved.is_blank:
        typer.echo(f"[OK] Cleared {saved.id}")
    else:
        typer.echo(f"[OK] {saved.id} -> {saved.responsible}")


@app.command("plan-show")
def plan_show(
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print the sector × month responsibility calendar."""
    from quality_tracker.reporting.formatters import format_planning_calendar
    from quality_tracker.views.state import PlanningViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    year = _year_or_current(year)

    view = PlanningViewState(_open_store_or_exit(config), year=year)
    _reload_or_exit(view)
    view.close(close_store=True)
    typer.echo(format_planning_calendar(view.grid(), year))
    typer.echo("")


@app.command("plan-ranking")
def plan_ranking(
    year: Optional[int] = typer.Option(None, "--year", help="Year (default: current year)."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Rank responsible people by assigned sector-months."""
    from quality_tracker.reporting.formatters import format_ranking
    from quality_tracker.views.state import PlanningViewState

    config = _load_config_or_exit(config_path, db_path)
    _configure_logging(config)
    year = _year_or_current(year)

    view = PlanningViewState(_open_store_or_exit(config), year=year)
    _reload_or_exit(view)
    view.close(close_store=True)
    typer.echo(format_ranking(view.ranking(), view.total(), year))
    typer.echo("")


if __name__ == "__main__":
    app()
