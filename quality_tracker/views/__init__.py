"""
quality_tracker.views — in-memory state behind each screen.

A view loads the full collections it needs once (``reload()``), derives
every displayed number from that snapshot, and applies edits locally
before handing the remote write to a background worker.

Modules:
  state — ``IndicatorViewState``, ``PlanningViewState`` and ``IndicatorPanel``.
"""
