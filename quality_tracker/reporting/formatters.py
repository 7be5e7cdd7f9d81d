"""
Plain-text terminal formatters for CLI commands.

All formatters accept already-derived objects (panels, glossary entries,
reports, rankings) and return multi-line strings suitable for
``typer.echo()``. No colour, no third-party table libraries.

Scores are printed at their formula's precision (``94.1``, ``3.00``,
``2``); ignored months print ``N/A`` and are marked ``[ignored]``.
"""

from __future__ import annotations

from typing import Optional

from quality_tracker.catalog import GlossaryEntry
from quality_tracker.planning.aggregator import ResponsibleShare
from quality_tracker.reporting.consolidated import ConsolidatedReport
from quality_tracker.taxonomy.indicator_taxonomy import MONTHS, FormulaType
from quality_tracker.views.state import IndicatorPanel


def format_score(score: Optional[float], formula_type: FormulaType, unit: str = "") -> str:
    """Fixed-precision score text; ``None`` -> ``"N/A"``."""
    if score is None:
        return "N/A"
    return f"{score:.{formula_type.precision}f}{unit}"


def _mark(ok: bool) -> str:
    return "OK" if ok else "--"


# ── Indicator panel ───────────────────────────────────────────────────────────


def format_indicator_panel(panel: IndicatorPanel, sector: str, year: int) -> str:
    """Twelve-month table of one indicator with its goal and headline figures.

    Example::

        === Proporção com Pulseiras (identificacao_pulseira) ===
          Sector: UTI Geral   Year: 2024   Goal: 95.0%  (higher is better)

          Month      Num      Den   Result  Goal  Observation
          --------------------------------------------------
          Jan         16       17    94.1%    --
          ...
          Average: 94.1%  [--]   Total numerator: 16
    """
    d = panel.definition
    ftype = d.formula_type
    polarity = "lower is better" if d.is_inverse else "higher is better"
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {d.name} ({d.id}) ===")
    lines.append(
        f"  Sector: {sector}   Year: {year}   "
        f"Goal: {panel.goal:g}{d.unit}  ({polarity})"
    )
    lines.append("")
    header = f"  {'Month':<6}  {'Num':>7}  {'Den':>7}  {'Result':>9}  {'Goal':>4}  Observation"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for point, favorable in zip(panel.points, panel.month_favorable):
        result = format_score(point.score, ftype, d.unit)
        note = point.observation[:40]
        if point.is_ignored:
            note = f"[ignored] {note}".rstrip()
        lines.append(
            f"  {point.month_label:<6}  {point.numerator:>7g}  {point.denominator:>7g}  "
            f"{result:>9}  {_mark(favorable) if point.has_data else '':>4}  {note}"
        )

    label = "Total" if ftype is FormulaType.COUNT else "Average"
    lines.append("")
    lines.append(
        f"  {label}: {format_score(panel.aggregate, ftype, d.unit)}  "
        f"[{_mark(panel.aggregate_favorable)}]   Total numerator: {panel.total}"
    )
    return "\n".join(lines)


# ── Glossary ──────────────────────────────────────────────────────────────────


def format_glossary(entries: list[GlossaryEntry]) -> str:
    """Definitions page: one block per indicator, grouped under family titles."""
    lines: list[str] = []
    current_family = None
    for e in entries:
        if e.family != current_family:
            current_family = e.family
            lines.append("")
            lines.append(f"=== {e.category} ===")
        lines.append("")
        lines.append(f"  {e.name}  [{e.indicator_id}]")
        lines.append(f"    {e.description}")
        lines.append(f"    Fórmula:        {e.formula}")
        lines.append(f"    Interpretação:  {e.interpretation}")
        if e.fixed_sample is not None:
            lines.append(f"    Amostra fixa:   {e.fixed_sample}")
        lines.append(f"    Meta padrão:    {e.default_goal:g}{e.unit}")
    return "\n".join(lines)


# ── Consolidated report ───────────────────────────────────────────────────────


def format_consolidated_report(report: ConsolidatedReport) -> str:
    """Sector report: per family, one line of trend analysis per indicator."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Consolidated Indicator Report ===")
    lines.append(f"  Sector: {report.sector}")

    if report.card_count == 0:
        lines.append("")
        lines.append("  (no data recorded for this sector)")
        return "\n".join(lines)

    for section in report.sections:
        lines.append("")
        lines.append(f"  [{section.title.upper()}]")
        if not section.cards:
            lines.append("    (no data)")
            continue
        for card in section.cards:
            d = card.definition
            last = format_score(card.last_score, d.formula_type, d.unit)
            lines.append(
                f"    {d.name:<36}  last {last:>9}  "
                f"{card.trend.value:<6}  {card.points[0].label} .. {card.points[-1].label}"
            )
            lines.append(f"      Análise técnica: {card.interpretation}")
    return "\n".join(lines)


# ── Planning ──────────────────────────────────────────────────────────────────


def format_planning_calendar(grid: dict[str, dict[int, str]], year: int, width: int = 10) -> str:
    """Sector × month grid of responsible names (truncated to ``width``)."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Planning Calendar {year} ===")
    lines.append("")
    month_cols = "  ".join(f"{m.short_label:<{width}}" for m in MONTHS)
    header = f"  {'Sector':<24}  {month_cols}"
    lines.append(header.rstrip())
    lines.append("  " + "-" * (len(header.rstrip()) - 2))
    for sector, months in grid.items():
        cells = "  ".join(f"{months.get(m.value, '.')[:width]:<{width}}" for m in MONTHS)
        lines.append(f"  {sector[:24]:<24}  {cells}".rstrip())
    return "\n".join(lines)


def format_ranking(ranking: list[ResponsibleShare], total: int, year: int) -> str:
    """Workload ranking with percentage share and a text bar."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Responsibility Ranking {year} ===")
    lines.append(f"  Assigned sector-months: {total}")

    if not ranking:
        lines.append("")
        lines.append("  (no assignments for this year)")
        return "\n".join(lines)

    lines.append("")
    header = f"  {'#':>3}  {'Responsible':<28}  {'Count':>5}  {'Share':>6}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for rank, share in enumerate(ranking, start=1):
        bar = "#" * int(share.percentage // 5)
        lines.append(
            f"  {rank:>3}  {share.name[:28]:<28}  {share.count:>5}  "
            f"{share.percentage:>5.1f}%  {bar}"
        )
    return "\n".join(lines)
