"""
quality_tracker.scoring — pure functions that turn raw monthly counts into
comparable, goal-relative, trend-bearing scores.

Modules
-------
engine   Per-month score by formula type, 12-month series, headline
         aggregate (sum or mean) and numerator total.
goals    Effective goal resolution: stored goal, else catalog default.
trend    Trend direction of a chronological series and the two independent
         favorability judgments (point vs. goal, trend vs. polarity).

Nothing here performs I/O or raises on well-formed input: zero
denominators, absent months and missing goals all resolve to defaults.
"""
