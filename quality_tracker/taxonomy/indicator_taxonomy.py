"""
Closed vocabularies for quality indicators.

  - ``FormulaType``     — how a monthly score is computed from counts.
  - ``IndicatorFamily`` — which patient-safety protocol an indicator belongs to.
  - ``Trend``           — direction of the last move in a score series.

Plus the fixed hospital ``SECTORS`` list and the ``MONTHS`` calendar used
for labels and export rows.

This module has NO imports from any other ``quality_tracker`` package.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class FormulaType(StrEnum):
    """How a monthly (numerator, denominator) pair becomes a score."""

    COUNT = "count"
    """Absolute number of occurrences; the denominator is not used."""

    PERCENTAGE_FIXED = "percentage_fixed"
    """Numerator × 100 / a fixed audit sample size (e.g. 17 patients)."""

    PERCENTAGE_VARIABLE = "percentage_variable"
    """Numerator × 100 / a denominator entered every month."""

    RATE_1000 = "rate_1000"
    """Numerator × 1000 / denominator (e.g. events per 1000 patient-days)."""

    @property
    def precision(self) -> int:
        """Decimal places of the per-month score and of the monthly mean."""
        if self is FormulaType.RATE_1000:
            return 2
        if self is FormulaType.COUNT:
            return 0
        return 1

    @property
    def is_percentage(self) -> bool:
        return self in (FormulaType.PERCENTAGE_FIXED, FormulaType.PERCENTAGE_VARIABLE)


class IndicatorFamily(StrEnum):
    """The four monitored patient-safety protocols."""

    PATIENT_IDENTIFICATION = "identificacao"
    SAFE_SURGERY = "cirurgia"
    PRESSURE_INJURY = "lpp"
    FALLS = "quedas"

    @property
    def title(self) -> str:
        return _FAMILY_TITLES[self][0]

    @property
    def subtitle(self) -> str:
        return _FAMILY_TITLES[self][1]


_FAMILY_TITLES: dict[IndicatorFamily, tuple[str, str]] = {
    IndicatorFamily.PATIENT_IDENTIFICATION: (
        "Identificação do Paciente",
        "Monitoramento da meta de segurança internacional Nº 1",
    ),
    IndicatorFamily.SAFE_SURGERY: (
        "Cirurgia Segura",
        "Monitoramento do Protocolo de Cirurgia Segura (LVCS)",
    ),
    IndicatorFamily.PRESSURE_INJURY: (
        "Lesão por Pressão",
        "Prevenção e Gerenciamento de LPP",
    ),
    IndicatorFamily.FALLS: (
        "Prevenção de Quedas",
        "Indicadores de risco e incidência de quedas",
    ),
}


class Trend(StrEnum):
    """Direction of the most recent change in a chronological score series."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# ── Sectors and months ────────────────────────────────────────────────────────

SECTORS: tuple[str, ...] = (
    "Clínica Médica",
    "Clínica Cirúrgica",
    "UTI Geral",
    "UTI Cardio",
    "UTI Neonatal",
    "UTI Pediátrica",
    "Pediatria",
    "Maternidade",
    "Centro Cirúrgico",
    "Centro Obstétrico",
    "Hemodinâmica",
    "Emergência",
    "Ambulatório",
    "Oncologia",
    "Diálise",
    "Endoscopia",
    "Diagnóstico por Imagem",
    "Laboratório",
    "Farmácia",
    "Nutrição",
    "Banco de Sangue",
    "Radioterapia",
)


@dataclass(frozen=True)
class Month:
    """One calendar month: number (1–12) and Portuguese label."""

    value: int
    label: str

    @property
    def short_label(self) -> str:
        return self.label[:3]


MONTHS: tuple[Month, ...] = (
    Month(1, "Janeiro"),
    Month(2, "Fevereiro"),
    Month(3, "Março"),
    Month(4, "Abril"),
    Month(5, "Maio"),
    Month(6, "Junho"),
    Month(7, "Julho"),
    Month(8, "Agosto"),
    Month(9, "Setembro"),
    Month(10, "Outubro"),
    Month(11, "Novembro"),
    Month(12, "Dezembro"),
)


def month_label(month: int, short: bool = False) -> str:
    """Return the Portuguese label for ``month`` (1–12).

    Raises:
        ValueError: If ``month`` is outside 1–12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}.")
    m = MONTHS[month - 1]
    return m.short_label if short else m.label
