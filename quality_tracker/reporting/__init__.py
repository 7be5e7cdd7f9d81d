"""
quality_tracker.reporting — exports and text reports.

Everything here works on data already derived by the scoring and
planning packages; nothing reads from storage directly.

Modules:
  export       — indicator CSV contract plus generic CSV/JSON writers.
  consolidated — multi-year trend analysis of one sector.
  formatters   — plain-text tables for Typer CLI commands.
"""
