"""
Indicator definition — one entry of the static indicator catalog.

Definitions are compiled into ``quality_tracker.catalog`` and are never
edited at runtime. They carry everything the scoring functions need:
formula type, optional fixed sample size, default goal, and polarity.

Polarity (``is_inverse``):
  - ``False`` → higher is better (adherence, compliance percentages).
  - ``True``  → lower is better (adverse events, falls, new injuries).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from quality_tracker.taxonomy.indicator_taxonomy import FormulaType, IndicatorFamily


class IndicatorDefinition(BaseModel):
    """Immutable definition of a tracked indicator.

    Attributes:
        id: Stable identifier, unique across all families.
        name: Display name.
        description: Glossary text, including the formula in words.
        family: Protocol the indicator belongs to.
        formula_type: How monthly counts become a score.
        fixed_denominator: Audit sample size; present only for
            ``percentage_fixed``.
        default_goal: Fallback target when no goal is stored for a
            sector/year. ``None`` resolves to 0.
        is_inverse: ``True`` when lower scores are better.
        unit: Display unit (``"%"`` or empty); not used in computation.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    family: IndicatorFamily
    formula_type: FormulaType
    fixed_denominator: Optional[int] = None
    default_goal: Optional[float] = None
    is_inverse: bool = False
    unit: str = ""

    @model_validator(mode="after")
    def validate_fixed_denominator(self) -> "IndicatorDefinition":
        if self.formula_type is FormulaType.PERCENTAGE_FIXED:
            if self.fixed_denominator is None or self.fixed_denominator <= 0:
                raise ValueError(
                    f"Indicator '{self.id}': percentage_fixed requires a positive "
                    f"fixed_denominator, got {self.fixed_denominator}."
                )
        elif self.fixed_denominator is not None:
            raise ValueError(
                f"Indicator '{self.id}': fixed_denominator is only valid for "
                f"percentage_fixed, not {self.formula_type.value}."
            )
        return self

    @property
    def goal_fallback(self) -> float:
        """``default_goal``, or 0 when the definition has none."""
        return self.default_goal if self.default_goal is not None else 0.0
