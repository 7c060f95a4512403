"""
Word-compatible productivity report.

The report is an HTML document with Office namespaces, saved with a .doc
extension and a UTF-8 BOM so Word opens it directly. It has a header box
(period analyzed, specialist filter, generation time, total studies), a
per-specialist productivity table split by modality/subcategory, and a
patient detail list.
"""

from __future__ import annotations

import html
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable

from medstats.constants import ALL_SPECIALISTS, CONTRASTADOS, ESPECIALES, NOT_APPLICABLE
from medstats.pipeline import filter_records
from medstats.records import DateRange, StudyRecord

PRODUCTIVITY_COLUMNS = ["ct_std", "ct_cont", "cr_std", "cr_esp", "mg", "us", "otros"]

SUBCATEGORY_CLASSES = {
    CONTRASTADOS: "highlight-contrast",
    ESPECIALES: "highlight-special",
}
SUBCATEGORY_SUFFIXES = {
    CONTRASTADOS: "(CONTRASTE)",
    ESPECIALES: "(ESPECIAL)",
}

STYLE = """
      body { font-family: 'Arial', sans-serif; line-height: 1.2; color: #252525; }
      h1 { color: #02a58d; text-align: center; font-size: 16pt; margin-bottom: 5px; text-transform: uppercase; border-bottom: 2px solid #02a58d; }
      h2 { color: #ffffff; background-color: #252525; padding: 5px 10px; margin-top: 20px; font-size: 12pt; border-radius: 4px; }
      table { width: 100%; border-collapse: collapse; margin-top: 10px; margin-bottom: 15px; table-layout: fixed; }
      th, td { border: 1px solid #000; padding: 4px; text-align: center; font-size: 7.5pt; word-wrap: break-word; }
      th { background-color: #f2f2f2; font-weight: bold; text-transform: uppercase; }
      .text-left { text-align: left; }
      .footer { margin-top: 30px; font-size: 7pt; color: #666; text-align: center; }
      .highlight-contrast { background-color: #fff0f0; color: #ff4d63; font-weight: bold; }
      .highlight-special { background-color: #f0fff4; color: #02a58d; font-weight: bold; }
      .header-box { padding: 10px; background-color: #fafafa; border: 1px solid #ccc; font-size: 9pt; }
      .period-badge { color: #02a58d; font-weight: bold; }
"""


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def _or_na(value: str) -> str:
    return value or NOT_APPLICABLE


def productivity_rows(records: Iterable[StudyRecord]) -> list[dict]:
    """Per-specialist counts split into the report's modality columns, first-seen order."""
    stats: dict[str, dict] = {}
    for record in records:
        name = (record.performed_by or NOT_APPLICABLE).strip()
        if name not in stats:
            stats[name] = {"name": name, "total": 0, **{column: 0 for column in PRODUCTIVITY_COLUMNS}}
        row = stats[name]
        row["total"] += 1

        modality = (record.modality or "").strip().upper()
        if modality == "CT":
            row["ct_cont" if record.subcategory == CONTRASTADOS else "ct_std"] += 1
        elif modality == "CR":
            row["cr_esp" if record.subcategory == ESPECIALES else "cr_std"] += 1
        elif modality == "MG":
            row["mg"] += 1
        elif modality == "US":
            row["us"] += 1
        else:
            row["otros"] += 1
    return list(stats.values())


def sort_patients(records: Iterable[StudyRecord]) -> list[StudyRecord]:
    return sorted(records, key=lambda r: (r.performed_by.casefold(), r.report_date.casefold()))


def _productivity_table(rows: list[dict]) -> str:
    body = "".join(
        f"""
            <tr>
              <td class="text-left"><strong>{_esc(row['name'])}</strong></td>
              <td><strong>{row['total']}</strong></td>
              <td>{row['ct_std']}</td>
              <td class="highlight-contrast">{row['ct_cont']}</td>
              <td>{row['cr_std']}</td>
              <td class="highlight-special">{row['cr_esp']}</td>
              <td>{row['mg']}</td>
              <td>{row['us']}</td>
              <td>{row['otros']}</td>
            </tr>"""
        for row in rows
    )
    return f"""
      <table>
        <thead>
          <tr>
            <th style="width: 25%;">Especialista</th>
            <th style="width: 8%;">Total</th>
            <th style="width: 8%;">CT Std</th>
            <th style="width: 8%;">CT Cont</th>
            <th style="width: 8%;">CR Std</th>
            <th style="width: 8%;">CR Esp</th>
            <th style="width: 8%;">MG</th>
            <th style="width: 8%;">US</th>
            <th style="width: 8%;">Otros</th>
          </tr>
        </thead>
        <tbody>{body}
        </tbody>
      </table>"""


def _patient_table(records: list[StudyRecord]) -> str:
    rows = []
    for record in records:
        css_class = SUBCATEGORY_CLASSES.get(record.subcategory, "")
        modality_label = _or_na(record.modality)
        suffix = SUBCATEGORY_SUFFIXES.get(record.subcategory)
        if suffix:
            modality_label = f"{modality_label} {suffix}"
        rows.append(
            f"""
            <tr>
              <td class="text-left">{_esc(_or_na(record.performed_by))}</td>
              <td>{_esc(_or_na(record.report_status))}</td>
              <td>{_esc(_or_na(record.report_date))}</td>
              <td>{_esc(_or_na(record.patient_id))}</td>
              <td class="text-left"><strong>{_esc(_or_na(record.patient_name))}</strong></td>
              <td class="text-left">{_esc(_or_na(record.description))}</td>
              <td class="{css_class}">{_esc(modality_label)}</td>
            </tr>"""
        )
    body = "".join(rows)
    return f"""
      <table>
        <thead>
          <tr>
            <th style="width: 15%;">REALIZADO POR</th>
            <th style="width: 10%;">ESTADO REPORTE</th>
            <th style="width: 10%;">FECHA REPORTE</th>
            <th style="width: 10%;">ID PACIENTE</th>
            <th style="width: 18%;">NOMBRE PACIENTE</th>
            <th style="width: 27%;">DESCRIPCIÓN</th>
            <th style="width: 10%;">MODALIDAD</th>
          </tr>
        </thead>
        <tbody>{body}
        </tbody>
      </table>"""


def build_word_report(
    records: Iterable[StudyRecord],
    specialist: str,
    date_range: DateRange,
    generated_at: datetime | None = None,
) -> str:
    filtered = filter_records(records, specialist)
    generated_at = generated_at or datetime.now()
    specialist_label = "GLOBAL" if specialist == ALL_SPECIALISTS else specialist
    generated_label = generated_at.strftime("%d/%m/%Y %H:%M:%S")

    return f"""
    <html xmlns:o='urn:schemas-microsoft-com:office:office' xmlns:w='urn:schemas-microsoft-com:office:word' xmlns='http://www.w3.org/TR/REC-html40'>
    <head><meta charset='utf-8'><title>Reporte Estadístico Consolidado</title>
    <style>{STYLE}    </style>
    </head>
    <body>
      <h1>REPORTE DE PRODUCTIVIDAD RADIOLÓGICA</h1>

      <div class="header-box">
        <p><strong>PERIODO ANALIZADO:</strong> <span class="period-badge">{_esc(date_range.display())}</span></p>
        <p><strong>FILTRO ESPECIALISTA:</strong> {_esc(specialist_label)}</p>
        <p><strong>FECHA GENERACIÓN:</strong> {generated_label}</p>
        <p><strong>TOTAL ESTUDIOS:</strong> {len(filtered)}</p>
      </div>

      <h2>1. CUADRO RESUMEN DE PRODUCTIVIDAD POR MODALIDAD</h2>{_productivity_table(productivity_rows(filtered))}

      <h2>2. RELACIÓN DETALLADA DE PACIENTES</h2>{_patient_table(sort_patients(filtered))}

      <div class="footer">
        © {generated_at.year} MedStats Pro Intelligence
      </div>
    </body>
    </html>
  """


def word_filename(specialist: str, stamp: str | None = None) -> str:
    token = re.sub(r"\s", "_", specialist)
    return f"Reporte_MedStats_{token}_{stamp or int(time.time() * 1000)}.doc"


def word_bytes(
    records: Iterable[StudyRecord],
    specialist: str,
    date_range: DateRange,
    generated_at: datetime | None = None,
) -> bytes:
    document = build_word_report(records, specialist, date_range, generated_at)
    return ("\ufeff" + document).encode("utf-8")


def export_word(
    records: Iterable[StudyRecord],
    output_path: Path,
    specialist: str,
    date_range: DateRange,
    generated_at: datetime | None = None,
) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(word_bytes(records, specialist, date_range, generated_at))
    return output_path
