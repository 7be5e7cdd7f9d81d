"""
Dashboard data access.

The store is created once per server process (``st.cache_resource``);
view states live in ``st.session_state`` so each browser session keeps its
own snapshot and its own background writer. Nothing here renders widgets.

Frame builders turn derived objects into ``pandas.DataFrame`` tables with
Portuguese column names, ready for ``st.dataframe`` / ``st.data_editor``
and the built-in charts.
"""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from quality_tracker.config import AppConfig, load_config
from quality_tracker.planning.aggregator import ResponsibleShare
from quality_tracker.reporting.consolidated import AnalysisCard
from quality_tracker.storage.base import IndicatorStore, StorageError
from quality_tracker.storage.factory import build_store
from quality_tracker.taxonomy.indicator_taxonomy import MONTHS
from quality_tracker.utils.logging import configure_logging
from quality_tracker.views.state import IndicatorPanel, IndicatorViewState, PlanningViewState

logger = logging.getLogger(__name__)

EDITABLE_COLUMNS = {
    "Numerador": "numerator",
    "Denominador": "denominator",
    "Observação": "observation",
}


# ── Resources ────────────────────────────────────────────────────────────────


@st.cache_resource
def get_config() -> AppConfig:
    config = load_config()
    configure_logging(config.logging)
    return config


@st.cache_resource
def get_store() -> IndicatorStore:
    """Shared store for every session. Raises ``StorageError`` if unusable."""
    return build_store(get_config())


def indicator_view(sector: str, year: int) -> IndicatorViewState:
    """Session's indicator view, retargeted to the current filters."""
    view = st.session_state.get("indicator_view")
    if view is None:
        view = IndicatorViewState(get_store(), sector=sector, year=year)
        st.session_state["indicator_view"] = view
    view.sector = sector
    view.year = year
    return view


def planning_view(year: int) -> PlanningViewState:
    view = st.session_state.get("planning_view")
    if view is None:
        view = PlanningViewState(get_store(), year=year)
        st.session_state["planning_view"] = view
    view.year = year
    return view


def ensure_loaded(view) -> bool:
    """Load ``view`` on first use. ``False`` means ``view.load_error`` is set."""
    if view.is_loaded:
        return True
    try:
        view.reload()
    except StorageError:
        return False
    return True


def retry_load(view) -> bool:
    try:
        view.reload()
    except StorageError:
        return False
    return True


# ── Frame builders ───────────────────────────────────────────────────────────


def panel_frame(panel: IndicatorPanel) -> pd.DataFrame:
    """Editable 12-month table: one row per month, indexed by month number."""
    rows = [
        {
            "Mês": p.month_label,
            "Considerar": not p.is_ignored,
            "Numerador": p.numerator,
            "Denominador": p.denominator,
            "Resultado": p.score,
            "Meta atingida": ok if p.has_data else None,
            "Observação": p.observation,
        }
        for p, ok in zip(panel.points, panel.month_favorable)
    ]
    return pd.DataFrame(rows, index=[p.month for p in panel.points])


def panel_changes(before: pd.DataFrame, after: pd.DataFrame) -> dict[int, dict]:
    """Field changes per month between two ``panel_frame`` tables."""
    changes: dict[int, dict] = {}
    for month in after.index:
        diff: dict = {}
        for column, field in EDITABLE_COLUMNS.items():
            old, new = before.at[month, column], after.at[month, column]
            if pd.isna(new) or new == old:
                continue
            diff[field] = str(new) if field == "observation" else float(new)
        if bool(after.at[month, "Considerar"]) != bool(before.at[month, "Considerar"]):
            diff["is_ignored"] = not bool(after.at[month, "Considerar"])
        if diff:
            changes[int(month)] = diff
    return changes


def chart_frame(panel: IndicatorPanel) -> pd.DataFrame:
    """Score and goal lines by short month label (ignored months left blank)."""
    return pd.DataFrame(
        {
            "Resultado": [p.score for p in panel.points],
            "Meta": [panel.goal] * len(panel.points),
        },
        index=pd.CategoricalIndex(
            [p.month_label for p in panel.points],
            categories=[m.short_label for m in MONTHS],
            ordered=True,
        ),
    )


def card_frame(card: AnalysisCard) -> pd.DataFrame:
    return pd.DataFrame(
        {"Resultado": [p.score for p in card.points]},
        index=[p.label for p in card.points],
    )


def grid_frame(grid: dict[str, dict[int, str]]) -> pd.DataFrame:
    """Sector rows × short-month columns of responsible names."""
    return pd.DataFrame(
        [[grid[sector].get(m.value, "") for m in MONTHS] for sector in grid],
        index=list(grid),
        columns=[m.short_label for m in MONTHS],
    )


def grid_changes(before: pd.DataFrame, after: pd.DataFrame) -> list[tuple[str, int, str]]:
    """``(sector, month, name)`` for every edited cell."""
    changed: list[tuple[str, int, str]] = []
    for sector in after.index:
        for m in MONTHS:
            new = after.at[sector, m.short_label]
            new = "" if pd.isna(new) else str(new).strip()
            if new != before.at[sector, m.short_label]:
                changed.append((sector, m.value, new))
    return changed


def ranking_frame(ranking: list[ResponsibleShare]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Responsável": s.name, "Setores-mês": s.count, "%": s.percentage} for s in ranking],
        columns=["Responsável", "Setores-mês", "%"],
    )
