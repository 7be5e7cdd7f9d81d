"""
Static indicator catalog and glossary.

Four fixed lists of ``IndicatorDefinition``, one per ``IndicatorFamily``:

  - PATIENT_IDENTIFICATION_INDICATORS  (3)
  - SAFE_SURGERY_INDICATORS            (4)
  - PRESSURE_INJURY_INDICATORS         (4)
  - FALLS_INDICATORS                   (5)

The catalog is configuration, not data: it is not user-editable and is
never persisted. Goals set by users override ``default_goal`` per
sector/year (see ``quality_tracker.scoring.goals``).
"""

from __future__ import annotations

from dataclasses import dataclass

from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.taxonomy.indicator_taxonomy import FormulaType, IndicatorFamily

_F = IndicatorFamily
_T = FormulaType

PATIENT_IDENTIFICATION_INDICATORS: tuple[IndicatorDefinition, ...] = (
    IndicatorDefinition(
        id="identificacao_eventos",
        name="Eventos Adversos",
        description=(
            "Nº de eventos adversos devido a falhas na identificação do paciente "
            "(Valor Total no Mês)."
        ),
        family=_F.PATIENT_IDENTIFICATION,
        formula_type=_T.COUNT,
        default_goal=0,
        is_inverse=True,
    ),
    IndicatorDefinition(
        id="identificacao_pulseira",
        name="Proporção com Pulseiras",
        description=(
            "Pacientes com pulseira entre os internados "
            "(Fórmula: Conformidades * 100 / 17)."
        ),
        family=_F.PATIENT_IDENTIFICATION,
        formula_type=_T.PERCENTAGE_FIXED,
        fixed_denominator=17,
        default_goal=95,
        unit="%",
    ),
    IndicatorDefinition(
        id="identificacao_placa",
        name="Proporção com Placa no Leito",
        description=(
            "Pacientes com placa no leito entre os internados "
            "(Fórmula: Conformidades * 100 / 17)."
        ),
        family=_F.PATIENT_IDENTIFICATION,
        formula_type=_T.PERCENTAGE_FIXED,
        fixed_denominator=17,
        default_goal=95,
        unit="%",
    ),
)

SAFE_SURGERY_INDICATORS: tuple[IndicatorDefinition, ...] = (
    IndicatorDefinition(
        id="adesao_lvcs",
        name="Taxa de Adesão LVCS",
        description="Nº procedimentos c/ LVCS utilizada * 100 / Nº procedimentos realizados.",
        family=_F.SAFE_SURGERY,
        formula_type=_T.PERCENTAGE_VARIABLE,
        default_goal=95,
        unit="%",
    ),
    IndicatorDefinition(
        id="evento_lado",
        name="Evento: Lado Errado",
        description="Nº absoluto de procedimentos cirúrgicos realizados no lado errado.",
        family=_F.SAFE_SURGERY,
        formula_type=_T.COUNT,
        default_goal=0,
        is_inverse=True,
    ),
    IndicatorDefinition(
        id="evento_paciente",
        name="Evento: Paciente Errado",
        description="Nº absoluto de cirurgias realizadas no paciente errado.",
        family=_F.SAFE_SURGERY,
        formula_type=_T.COUNT,
        default_goal=0,
        is_inverse=True,
    ),
    IndicatorDefinition(
        id="evento_procedimento",
        name="Evento: Procedimento Errado",
        description="Nº absoluto de procedimentos cirúrgicos errados.",
        family=_F.SAFE_SURGERY,
        formula_type=_T.COUNT,
        default_goal=0,
        is_inverse=True,
    ),
)

PRESSURE_INJURY_INDICATORS: tuple[IndicatorDefinition, ...] = (
    IndicatorDefinition(
        id="lpp_risco_adm",
        name="Avaliação de Risco na Admissão",
        description=(
            "Pacientes avaliados (Braden) em 24h da admissão "
            "(Fórmula: Conformidades * 100 / 17)."
        ),
        family=_F.PRESSURE_INJURY,
        formula_type=_T.PERCENTAGE_FIXED,
        fixed_denominator=17,
        default_goal=95,
        unit="%",
    ),
    IndicatorDefinition(
        id="lpp_preventivas",
        name="Cuidado Preventivo Apropriado",
        description=(
            "Pacientes de risco recebendo cuidados preventivos "
            "(Fórmula: Conformidades * 100 / 17)."
        ),
        family=_F.PRESSURE_INJURY,
        formula_type=_T.PERCENTAGE_FIXED,
        fixed_denominator=17,
        default_goal=95,
        unit="%",
    ),
    IndicatorDefinition(
        id="lpp_reaval_diaria",
        name="Reavaliação Diária de Risco",
        description=(
            "Pacientes com avaliação diária de risco "
            "(Fórmula: Conformidades * 100 / 17)."
        ),
        family=_F.PRESSURE_INJURY,
        formula_type=_T.PERCENTAGE_FIXED,
        fixed_denominator=17,
        default_goal=95,
        unit="%",
    ),
    IndicatorDefinition(
        id="lpp_incidencia",
        name="Índice de Lesão por Pressão",
        description=(
            "Novos casos de LPP em pacientes de risco "
            "(Fórmula: Novos Casos * 100 / 17)."
        ),
        family=_F.PRESSURE_INJURY,
        formula_type=_T.PERCENTAGE_FIXED,
        fixed_denominator=17,
        default_goal=0,
        is_inverse=True,
        unit="%",
    ),
)

FALLS_INDICATORS: tuple[IndicatorDefinition, ...] = (
    IndicatorDefinition(
        id="queda_com_dano",
        name="Índice de Quedas C/ Dano",
        description="Quedas C/ Dano * 100 / Total Pacientes (Absoluto ou Amostra).",
        family=_F.FALLS,
        formula_type=_T.PERCENTAGE_VARIABLE,
        default_goal=0,
        is_inverse=True,
        unit="%",
    ),
    IndicatorDefinition(
        id="queda_sem_dano",
        name="Índice de Quedas S/ Dano",
        description="Quedas S/ Dano * 100 / Total Pacientes (Absoluto ou Amostra).",
        family=_F.FALLS,
        formula_type=_T.PERCENTAGE_VARIABLE,
        default_goal=0,
        is_inverse=True,
        unit="%",
    ),
    IndicatorDefinition(
        id="queda_risco_adm",
        name="Avaliação de Risco na Admissão",
        description="Avaliações na admissão * 100 / Total Pacientes (Absoluto ou Amostra).",
        family=_F.FALLS,
        formula_type=_T.PERCENTAGE_VARIABLE,
        default_goal=95,
        unit="%",
    ),
    IndicatorDefinition(
        id="queda_geral",
        name="Índice de Queda (Geral)",
        description="Pacientes com queda * 100 / Total Pacientes (Absoluto ou Amostra).",
        family=_F.FALLS,
        formula_type=_T.PERCENTAGE_VARIABLE,
        default_goal=0,
        is_inverse=True,
        unit="%",
    ),
    IndicatorDefinition(
        id="queda_reaval_diaria",
        name="Reavaliação Diária de Risco",
        description="Avaliações diárias * 100 / Total Pacientes (Absoluto ou Amostra).",
        family=_F.FALLS,
        formula_type=_T.PERCENTAGE_VARIABLE,
        default_goal=95,
        unit="%",
    ),
)

INDICATORS_BY_FAMILY: dict[IndicatorFamily, tuple[IndicatorDefinition, ...]] = {
    IndicatorFamily.PATIENT_IDENTIFICATION: PATIENT_IDENTIFICATION_INDICATORS,
    IndicatorFamily.SAFE_SURGERY: SAFE_SURGERY_INDICATORS,
    IndicatorFamily.PRESSURE_INJURY: PRESSURE_INJURY_INDICATORS,
    IndicatorFamily.FALLS: FALLS_INDICATORS,
}

_BY_ID: dict[str, IndicatorDefinition] = {}
for _family_list in INDICATORS_BY_FAMILY.values():
    for _definition in _family_list:
        if _definition.id in _BY_ID:
            raise ValueError(f"Duplicate indicator id in catalog: '{_definition.id}'.")
        _BY_ID[_definition.id] = _definition


def all_indicators() -> list[IndicatorDefinition]:
    """Return every indicator, in family then catalog order."""
    return list(_BY_ID.values())


def indicators_for_family(family: IndicatorFamily | str) -> tuple[IndicatorDefinition, ...]:
    """Return the indicator list of one family.

    Raises:
        ValueError: If ``family`` is not a known family slug.
    """
    return INDICATORS_BY_FAMILY[IndicatorFamily(family)]


def get_indicator(indicator_id: str) -> IndicatorDefinition:
    """Look up a definition by id.

    Raises:
        KeyError: If no indicator has this id.
    """
    try:
        return _BY_ID[indicator_id]
    except KeyError:
        raise KeyError(
            f"Unknown indicator '{indicator_id}'. Known ids: {sorted(_BY_ID)}."
        ) from None


# ── Glossary ──────────────────────────────────────────────────────────────────

_FORMULA_TEXT: dict[FormulaType, str] = {
    FormulaType.COUNT: "Soma absoluta de ocorrências.",
    FormulaType.PERCENTAGE_FIXED: "(Numerador × 100) ÷ Denominador",
    FormulaType.PERCENTAGE_VARIABLE: "(Numerador × 100) ÷ Denominador",
    FormulaType.RATE_1000: "(Numerador × 1000) ÷ Denominador",
}


def formula_text(definition: IndicatorDefinition) -> str:
    """How to compute the indicator, in words."""
    return _FORMULA_TEXT[definition.formula_type]


def polarity_text(definition: IndicatorDefinition) -> str:
    """How to read the indicator: lower-is-better or higher-is-better."""
    if definition.is_inverse:
        return "Quanto MENOR o resultado, MELHOR para a segurança do paciente."
    return "Quanto MAIOR o resultado, MELHOR a adesão/qualidade."


@dataclass(frozen=True)
class GlossaryEntry:
    """One indicator as shown on the definitions page."""

    family: IndicatorFamily
    category: str
    indicator_id: str
    name: str
    description: str
    formula: str
    interpretation: str
    fixed_sample: int | None
    default_goal: float
    unit: str


def build_glossary() -> list[GlossaryEntry]:
    """Return one glossary entry per indicator, grouped by family."""
    entries: list[GlossaryEntry] = []
    for family, definitions in INDICATORS_BY_FAMILY.items():
        for d in definitions:
            entries.append(
                GlossaryEntry(
                    family=family,
                    category=family.title,
                    indicator_id=d.id,
                    name=d.name,
                    description=d.description,
                    formula=formula_text(d),
                    interpretation=polarity_text(d),
                    fixed_sample=d.fixed_denominator,
                    default_goal=d.goal_fallback,
                    unit=d.unit,
                )
            )
    return entries
