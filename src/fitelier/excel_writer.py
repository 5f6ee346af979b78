"""Exportación a Excel de los planes de seguimiento (resumen + una hoja por plan)."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from fitelier.calendar_grid import WEEKDAY_LABELS
from fitelier.errors import DivisionByZeroError
from fitelier.model import DatedObservation, TrackingPlan
from fitelier.progress import (
    average_value,
    best_value,
    latest_value,
    observations_to_frame,
    percent_change,
)

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Day",
    "date": "Date",
    "value": "Value",
    "note": "Note",
}

_SUMMARY_COLUMNS: list[str] = [
    "Plan",
    "Category",
    "Unit",
    "Entries",
    "Latest",
    "Best",
    "Average",
    "Change (%)",
]


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the progress workbook."""

    summary_sheet: str = "Summary"


PlanSeries = tuple[TrackingPlan, Sequence[DatedObservation]]


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta Sun..Sat."""
    if i is None or (isinstance(i, float) and pd.isna(i)):
        return ""
    if isinstance(i, int | float):
        idx = int(i)
        return WEEKDAY_LABELS[(idx + 1) % 7] if 0 <= idx < 7 else ""
    return ""


def _sheet_name(title: str, used: set[str]) -> str:
    base = _INVALID_SHEET_CHARS.sub("_", title).strip() or "Plan"
    base = base[:31]
    name = base
    n = 2
    while name.lower() in used:
        suffix = f" ({n})"
        name = base[: 31 - len(suffix)] + suffix
        n += 1
    used.add(name.lower())
    return name


def _summary_row(
    plan: TrackingPlan, series: Sequence[DatedObservation]
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "Plan": plan.title,
        "Category": plan.category,
        "Unit": plan.unit,
        "Entries": len(series),
        "Latest": None,
        "Best": None,
        "Average": None,
        "Change (%)": None,
    }
    if not series:
        return row
    row["Latest"] = latest_value(series)
    row["Best"] = best_value(series, lower_is_better=plan.lower_is_better)
    row["Average"] = round(average_value(series), 2)
    try:
        change = percent_change(series)
    except DivisionByZeroError:
        # Línea base 0: cambio indefinido, la celda queda vacía.
        change = None
    row["Change (%)"] = round(change, 1) if change is not None else None
    return row


def _plan_frame(series: Sequence[DatedObservation]) -> pd.DataFrame:
    df = observations_to_frame(series)
    if df.empty:
        return pd.DataFrame(columns=list(_HEADER_MAP.values()))
    weekday_series = pd.to_datetime(df["date"]).dt.weekday
    df.insert(0, "weekday", weekday_series.map(_weekday_label))
    return df.rename(columns=_HEADER_MAP)


def write_progress_xlsx(
    plans: Sequence[PlanSeries], out_path: Path, layout: ExcelLayout
) -> None:
    """Write a formatted progress workbook.

    Args:
        plans: Pairs of tracking plan and its observations.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = pd.DataFrame(
        [_summary_row(plan, series) for plan, series in plans],
        columns=_SUMMARY_COLUMNS,
    )
    used = {layout.summary_sheet.lower()}

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        summary.to_excel(writer, index=False, sheet_name=layout.summary_sheet)
        _format_sheet(writer.book[layout.summary_sheet])
        for plan, series in plans:
            name = _sheet_name(plan.title, used)
            _plan_frame(series).to_excel(writer, index=False, sheet_name=name)
            _format_sheet(writer.book[name])


def _thin_border() -> Border:
    thin = Side(style="thin")
    return Border(left=thin, right=thin, top=thin, bottom=thin)


def _centered() -> Alignment:
    return Alignment(horizontal="center", vertical="center", wrap_text=True)


def _style_header_row(ws: Any) -> None:
    """Cabecera del resumen o de una hoja de plan: negrita, centrada y con borde."""
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = _centered()
        cell.border = _thin_border()


def _style_body_rows(ws: Any) -> None:
    border = _thin_border()
    center = _centered()
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    return {str(cell.value): idx + 1 for idx, cell in enumerate(ws[1])}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    widths = {
        "Day": 6,
        "Date": 12,
        "Value": 10,
        "Note": 30,
        "Plan": 24,
        "Category": 14,
        "Unit": 8,
        "Entries": 9,
        "Latest": 10,
        "Best": 10,
        "Average": 10,
        "Change (%)": 11,
    }
    for header, width in widths.items():
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    fmt_map: dict[str, str] = {
        "Date": "dd/mm/yyyy",
        "Value": "0.0#",
        "Latest": "0.0#",
        "Best": "0.0#",
        "Average": "0.00",
        "Change (%)": "0.0",
        "Entries": "0",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Format a Summary or per-plan sheet of the progress workbook.

    Columns are matched by header name, so plan sheets (Day, Date, Value,
    Note) and the Summary sheet share one code path; unknown headers only get
    the header and border styling.

    Args:
        ws: openpyxl worksheet written by ``write_progress_xlsx``.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
