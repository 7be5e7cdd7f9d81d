"""
quality_tracker.planning — responsibility calendar and workload analytics.

Modules:
  aggregator — per-person assignment counts and shares for a year, and the
               sector × month calendar grid.
"""
