"""
Quality Tracker — Streamlit Dashboard
=====================================

Interactive front end over the same view states the CLI uses. Edits are
applied to the session snapshot at once and written to the configured
store in the background.

App structure (7 tabs)
----------------------
  1-4. One tab per indicator family: 12-month table (editable), goal,
       headline figure, chart and CSV download per indicator.
  5.   Glossário   — definitions, formulas and polarity of every indicator.
  6.   Análise     — consolidated multi-year trend report of one sector.
  7.   Planejamento — sector × month responsibility calendar and ranking.

A failed load blocks the tab with the error and a retry button; nothing
derived from a failed load is shown.

Usage
-----
    pip install -e ".[dashboard]"
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

# ── Ensure project root is importable ────────────────────────────────────────
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import streamlit as st

# ── Must be the first Streamlit call ─────────────────────────────────────────
st.set_page_config(
    page_title="Quality Tracker",
    layout="wide",
    initial_sidebar_state="expanded",
)

import pandas as pd

from dashboard.data_loader import (
    card_frame,
    chart_frame,
    ensure_loaded,
    get_config,
    get_store,
    grid_changes,
    grid_frame,
    indicator_view,
    panel_changes,
    panel_frame,
    planning_view,
    ranking_frame,
    retry_load,
)
from quality_tracker.catalog import INDICATORS_BY_FAMILY, build_glossary
from quality_tracker.reporting.consolidated import build_consolidated_report
from quality_tracker.reporting.export import export_filename, indicator_csv
from quality_tracker.storage.base import StorageError
from quality_tracker.taxonomy.indicator_taxonomy import SECTORS, FormulaType, IndicatorFamily

config = get_config()

# ── Sidebar ───────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("Quality Tracker")
    st.caption("Indicadores de segurança do paciente")
    st.divider()

    default_sector = config.dashboard.default_sector
    sector = st.selectbox(
        "Setor",
        options=list(SECTORS),
        index=SECTORS.index(default_sector) if default_sector in SECTORS else 0,
    )
    year = int(
        st.number_input("Ano", min_value=2000, max_value=2100, value=date.today().year, step=1)
    )

    if st.button("Recarregar dados", help="Descarta o estado local e lê tudo novamente."):
        for key in ("indicator_view", "planning_view"):
            view = st.session_state.pop(key, None)
            if view is not None:
                view.close()
        st.rerun()

try:
    get_store()
except StorageError as exc:
    st.error(f"Não foi possível abrir o armazenamento: {exc}")
    if st.button("Tentar novamente"):
        get_store.clear()
        st.rerun()
    st.stop()


# ── Helpers ───────────────────────────────────────────────────────────────────


def _blocking_error(view, key: str) -> bool:
    """Render the load error with a retry button. ``True`` if blocked."""
    if ensure_loaded(view):
        return False
    st.error(f"Erro ao carregar dados: {view.load_error}")
    if st.button("Tentar novamente", key=f"retry_{key}"):
        retry_load(view)
        st.rerun()
    return True


def _write_failures(view) -> None:
    if view.write_failures:
        st.warning(
            f"{len(view.write_failures)} alteração(ões) não foram gravadas no servidor. "
            "Os valores na tela podem divergir do banco até a próxima recarga."
        )
        with st.expander("Detalhes"):
            for f in view.write_failures:
                st.text(f"{f.operation} {f.key}: {f.error}")


def _family_tab(family: IndicatorFamily) -> None:
    st.header(family.title)
    st.caption(family.subtitle)

    view = indicator_view(sector, year)
    if _blocking_error(view, family.value):
        return
    _write_failures(view)

    for definition in INDICATORS_BY_FAMILY[family]:
        panel = view.indicator_panel(definition.id)
        with st.expander(f"{definition.name}", expanded=True):
            st.caption(definition.description)

            col_goal, col_agg, col_total = st.columns(3)
            with col_goal:
                new_goal = st.number_input(
                    "Meta",
                    value=float(panel.goal),
                    key=f"goal_{definition.id}_{sector}_{year}",
                )
                if new_goal != panel.goal:
                    view.set_goal(definition.id, new_goal)
                    st.rerun()
            with col_agg:
                st.metric(
                    "Total" if definition.formula_type is FormulaType.COUNT else "Média",
                    f"{panel.aggregate:g}{definition.unit}",
                    delta="dentro da meta" if panel.aggregate_favorable else "fora da meta",
                    delta_color="normal" if panel.aggregate_favorable else "inverse",
                )
            with col_total:
                st.metric("Soma do numerador", panel.total)

            before = panel_frame(panel)
            after = st.data_editor(
                before,
                key=f"table_{definition.id}_{sector}_{year}",
                use_container_width=True,
                disabled=["Mês", "Resultado", "Meta atingida"],
                column_config={
                    "Denominador": st.column_config.NumberColumn(
                        disabled=definition.fixed_denominator is not None
                    ),
                },
            )
            changes = panel_changes(before, after)
            if changes:
                for month, fields in changes.items():
                    view.edit_record(definition.id, month, **fields)
                st.rerun()

            st.line_chart(chart_frame(panel))
            st.download_button(
                "Exportar CSV",
                data=indicator_csv(panel.points, year),
                file_name=export_filename(definition.id, sector, year),
                mime="text/csv",
                key=f"csv_{definition.id}_{sector}_{year}",
            )


# ── Tabs ──────────────────────────────────────────────────────────────────────

families = list(INDICATORS_BY_FAMILY)
tabs = st.tabs([f.title for f in families] + ["Glossário", "Análise", "Planejamento"])

for family, tab in zip(families, tabs[: len(families)]):
    with tab:
        _family_tab(family)

tab_glossary, tab_report, tab_plan = tabs[len(families):]


# ══════════════════════════════════════════════════════════════════════════════
# Glossário
# ══════════════════════════════════════════════════════════════════════════════

with tab_glossary:
    st.header("Glossário de Indicadores")
    glossary = pd.DataFrame(
        [
            {
                "Categoria": e.category,
                "Indicador": e.name,
                "Descrição": e.description,
                "Fórmula": e.formula,
                "Interpretação": e.interpretation,
                "Amostra fixa": e.fixed_sample,
                "Meta padrão": f"{e.default_goal:g}{e.unit}",
            }
            for e in build_glossary()
        ]
    )
    st.dataframe(glossary, use_container_width=True, hide_index=True)


# ══════════════════════════════════════════════════════════════════════════════
# Análise consolidada
# ══════════════════════════════════════════════════════════════════════════════

with tab_report:
    st.header(f"Análise Consolidada — {sector}")
    view = indicator_view(sector, year)
    if not _blocking_error(view, "report"):
        selected = st.multiselect(
            "Seções",
            options=families,
            default=families,
            format_func=lambda f: f.title,
        )
        report = build_consolidated_report(view.records.values(), sector, selected)
        if report.card_count == 0:
            st.info("Nenhum dado registrado para este setor.")
        for section in report.sections:
            if not section.cards:
                continue
            st.subheader(section.title)
            columns = st.columns(2)
            for i, card in enumerate(section.cards):
                with columns[i % 2]:
                    d = card.definition
                    st.metric(d.name, f"{card.last_score:g}{d.unit}", delta=card.trend.value)
                    st.line_chart(card_frame(card))
                    st.caption(f"Análise técnica: {card.interpretation}")


# ══════════════════════════════════════════════════════════════════════════════
# Planejamento
# ══════════════════════════════════════════════════════════════════════════════

with tab_plan:
    st.header(f"Planejamento {year}")
    plan = planning_view(year)
    if not _blocking_error(plan, "planning"):
        _write_failures(plan)

        before = grid_frame(plan.grid())
        after = st.data_editor(before, key=f"planning_{year}", use_container_width=True)
        edits = grid_changes(before, after)
        if edits:
            for cell_sector, month, name in edits:
                plan.assign(cell_sector, month, name)
            st.rerun()

        st.subheader("Carga por responsável")
        st.caption(f"Setores-mês atribuídos: {plan.total()}")
        ranking = ranking_frame(plan.ranking())
        if ranking.empty:
            st.info("Nenhuma atribuição neste ano.")
        else:
            st.dataframe(ranking, use_container_width=True, hide_index=True)
            st.bar_chart(ranking.set_index("Responsável")["Setores-mês"])
