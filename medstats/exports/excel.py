from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Iterable

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from medstats.constants import ALL_SPECIALISTS, COLUMN_MAPPING, STANDARD
from medstats.pipeline import filter_records
from medstats.records import RECORD_FIELDS, StudyRecord

SUMMARY_SHEET = "Resumen Estudios"
DETAIL_SHEET = "Detalle Datos"
SUMMARY_HEADERS = ["Fecha", "Modalidad", "Subcategoría", "Cantidad"]

_FIELD_LABELS = {field_name: raw_name for raw_name, field_name in COLUMN_MAPPING.items()}
DETAIL_HEADERS = [_FIELD_LABELS[name] for name in RECORD_FIELDS] + ["SUBCATEGORÍA"]


def _header_font() -> Font:
    return Font(bold=True, color="FFFFFF")

def _header_fill(hex_color: str) -> PatternFill:
    return PatternFill("solid", fgColor=hex_color)

def _style_sheet(ws, col_widths: list[int], header_color: str):
    """Apply bold header, color, frozen row, and column widths."""
    fill = _header_fill(header_color)
    font = _header_font()
    for cell in ws[1]:
        cell.font  = font
        cell.fill  = fill
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=False)
    ws.freeze_panes = "A2"
    for i, width in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _infer_col_widths(rows: list[list], min_width: int = 10, max_width: int = 60, sample: int = 300) -> list[int]:
    if not rows:
        return []
    widths = [max(min_width, min(max_width, len(str(v)) + 2)) for v in rows[0]]
    for row in rows[1 : sample + 1]:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], min(max_width, len(str(val)) + 2))
    return [max(min_width, min(max_width, w)) for w in widths]


def excel_filename(specialist: str) -> str:
    token = re.sub(r"\s", "_", specialist)
    return f"Reporte_Estadistico_{token}.xlsx"


def summarize_by_date(records: Iterable[StudyRecord]) -> list[list]:
    """One row per (date performed, modality, subcategory) with its study count."""
    counts: dict[tuple[str, str, str], int] = {}
    for record in records:
        key = (record.performed_date, record.modality, record.subcategory or STANDARD)
        counts[key] = counts.get(key, 0) + 1
    return [[date, modality, subcategory, count] for (date, modality, subcategory), count in counts.items()]


def build_workbook(records: Iterable[StudyRecord], specialist: str = ALL_SPECIALISTS) -> openpyxl.Workbook:
    filtered = filter_records(records, specialist)
    wb = openpyxl.Workbook()

    # ── Sheet 1: study counts per date / modality / subcategory ─────────
    ws1 = wb.active
    ws1.title = SUMMARY_SHEET
    summary_rows = [SUMMARY_HEADERS] + summarize_by_date(filtered)
    for row in summary_rows:
        ws1.append(row)
    _style_sheet(ws1, _infer_col_widths(summary_rows), "02A58D")   # teal

    # ── Sheet 2: every record, for audit ────────────────────────────────
    ws2 = wb.create_sheet(DETAIL_SHEET)
    detail_rows = [DETAIL_HEADERS]
    for record in filtered:
        values = record.to_dict()
        detail_rows.append([values[name] for name in RECORD_FIELDS] + [record.subcategory])
    for row in detail_rows:
        ws2.append(row)
    _style_sheet(ws2, _infer_col_widths(detail_rows), "252525")   # charcoal

    description_col = get_column_letter(RECORD_FIELDS.index("description") + 1)
    for cell in ws2[description_col][1:]:
        cell.alignment = Alignment(wrap_text=True, vertical="top")

    return wb


def export_excel(records: Iterable[StudyRecord], output_path: Path, specialist: str = ALL_SPECIALISTS) -> Path:
    wb = build_workbook(records, specialist)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
    return output_path


def excel_bytes(records: Iterable[StudyRecord], specialist: str = ALL_SPECIALISTS) -> bytes:
    buffer = io.BytesIO()
    build_workbook(records, specialist).save(buffer)
    return buffer.getvalue()
