"""
Export helpers.

``indicator_csv()`` renders the 12-month table of one indicator in the
fixed layout users import into spreadsheets::

  Ano,Mês,Numerador,Denominador,Resultado,Observação
  2024,Jan,16,17,94.1,"sem intercorrências"
  2024,Fev,0,17,N/A,""

  - one row per month, January first;
  - ``N/A`` in ``Resultado`` for ignored months;
  - the observation is always double-quoted, embedded quotes doubled;
  - whole numbers are written without a trailing ``.0``.

``export_to_csv()`` / ``export_to_json()`` are generic writers that accept
``list[dict]`` rows and return the written ``Path``.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from quality_tracker.scoring.engine import MonthlyPoint

CSV_HEADER: tuple[str, ...] = (
    "Ano",
    "Mês",
    "Numerador",
    "Denominador",
    "Resultado",
    "Observação",
)
MISSING_SCORE = "N/A"


def format_number(value: float) -> str:
    """``17.0`` -> ``"17"``, ``94.1`` -> ``"94.1"``."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def indicator_csv(points: Iterable[MonthlyPoint], year: int) -> str:
    """Render monthly points as CSV text (``\\n`` line endings, no trailing newline)."""
    lines = [",".join(CSV_HEADER)]
    for p in points:
        result = MISSING_SCORE if p.score is None else format_number(p.score)
        lines.append(
            ",".join(
                (
                    str(year),
                    p.month_label,
                    format_number(p.numerator),
                    format_number(p.denominator),
                    result,
                    _quote(p.observation),
                )
            )
        )
    return "\n".join(lines)


def export_filename(indicator_id: str, sector: str, year: int) -> str:
    """Download name of an indicator export: ``{id}_{sector}_{year}.csv``."""
    return f"{indicator_id}_{sector}_{year}.csv"


def write_indicator_csv(
    points: Iterable[MonthlyPoint],
    year: int,
    path: Path,
) -> Path:
    """Write ``indicator_csv()`` output to ``path`` (UTF-8, parents created)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(indicator_csv(points, year) + "\n", encoding="utf-8")
    return path


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: Optional[list[str]] = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order. If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed UTF-8 JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    return path
