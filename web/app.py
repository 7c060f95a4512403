#!/usr/bin/env python3
from __future__ import annotations

import hashlib
import sys
from pathlib import Path

import pandas as pd
import streamlit as st


ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from medstats.constants import ALL_SPECIALISTS, SUBCATEGORIES  # noqa: E402
from medstats.exports import excel_bytes, excel_filename, word_bytes, word_filename  # noqa: E402
from medstats.loader import load_bytes  # noqa: E402
from medstats.pipeline import Dashboard, build_dashboard, list_specialists  # noqa: E402
from medstats.records import RECORD_FIELDS  # noqa: E402

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DOC_MIME = "application/msword"
DETAIL_LABELS = {
    "patient_id": "ID Paciente",
    "patient_name": "Nombre Paciente",
    "description": "Descripción",
    "region": "Región",
    "performed_date": "Fecha Realizado",
    "modality": "Modalidad",
    "performed_by": "Realizado Por",
    "report_status": "Estado Reporte",
    "report_date": "Fecha Reporte",
    "subcategory": "Subcategoría",
}


def ensure_state() -> None:
    st.session_state.setdefault("loaded", None)
    st.session_state.setdefault("loaded_key", None)
    st.session_state.setdefault("load_error", None)


def reset_state() -> None:
    st.session_state["loaded"] = None
    st.session_state["loaded_key"] = None
    st.session_state["load_error"] = None


def upload_key(name: str, raw: bytes) -> tuple[str, str]:
    return name, hashlib.sha256(raw).hexdigest()


def load_upload(upload) -> None:
    """Parse each distinct upload once; reruns reuse the stored record tuple."""
    if upload is None:
        reset_state()
        return
    raw = upload.getvalue()
    key = upload_key(upload.name, raw)
    if key == st.session_state["loaded_key"]:
        return
    st.session_state["loaded_key"] = key
    try:
        loaded = load_bytes(raw)
    except ValueError as exc:
        st.session_state["loaded"] = None
        st.session_state["load_error"] = str(exc)
        return
    loaded["file"] = upload.name
    st.session_state["loaded"] = loaded
    st.session_state["load_error"] = None


def summary_frame(dashboard: Dashboard) -> pd.DataFrame:
    rows = []
    for summary in dashboard.summaries:
        row = {"Especialista": summary.specialist, "Total": summary.total_studies}
        row.update(dict(summary.modalities))
        row.update({name.title(): summary.subcategories[name] for name in SUBCATEGORIES})
        rows.append(row)
    return pd.DataFrame(rows).fillna(0)


def detail_frame(dashboard: Dashboard) -> pd.DataFrame:
    columns = list(RECORD_FIELDS) + ["subcategory"]
    frame = pd.DataFrame([record.to_dict() for record in dashboard.records], columns=columns)
    return frame.rename(columns=DETAIL_LABELS)


def render_metrics(dashboard: Dashboard) -> None:
    cols = st.columns(4)
    cols[0].metric("Estudios", dashboard.total_studies)
    cols[1].metric("Contrastados", dashboard.contrast_count)
    cols[2].metric("Especiales", dashboard.special_count)
    cols[3].metric("Periodo", dashboard.date_range.display() or "-")


def render_charts(dashboard: Dashboard) -> None:
    left, right = st.columns(2)
    with left:
        st.caption("Estudios por modalidad")
        if dashboard.modality_stats:
            modality_df = pd.DataFrame(dashboard.modality_stats, columns=["Modalidad", "Estudios"])
            st.bar_chart(modality_df, x="Modalidad", y="Estudios")
    with right:
        st.caption("Estudios por subcategoría")
        subcategory_df = pd.DataFrame(
            [(name, dashboard.subcategory_totals[name]) for name in SUBCATEGORIES],
            columns=["Subcategoría", "Estudios"],
        )
        st.bar_chart(subcategory_df, x="Subcategoría", y="Estudios")


def render_downloads(loaded: dict, dashboard: Dashboard, specialist: str) -> None:
    left, right = st.columns(2)
    left.download_button(
        "Descargar Excel",
        data=excel_bytes(loaded["records"], specialist),
        file_name=excel_filename(specialist),
        mime=XLSX_MIME,
        width="stretch",
        key="download_xlsx",
    )
    right.download_button(
        "Descargar Word",
        data=word_bytes(loaded["records"], specialist, dashboard.date_range),
        file_name=word_filename(specialist),
        mime=DOC_MIME,
        width="stretch",
        key="download_doc",
    )


def render_dashboard(loaded: dict) -> None:
    records = loaded["records"]
    for warning in loaded.get("warnings", []):
        st.warning(warning)
    if not records:
        st.info("No admissible studies were found in this file.")
        return

    controls = st.columns([1, 2])
    specialist = controls[0].selectbox("Especialista", [ALL_SPECIALISTS] + list_specialists(records), key="specialist_input")
    search = controls[1].text_input("Buscar paciente (nombre o ID)", key="search_input")

    dashboard = build_dashboard(records, specialist, search)
    for warning in dashboard.warnings:
        st.warning(warning)

    render_metrics(dashboard)
    render_downloads(loaded, dashboard, specialist)

    st.subheader("Resumen por especialista")
    if dashboard.summaries:
        st.dataframe(summary_frame(dashboard), width="stretch", hide_index=True)
    else:
        st.info("No studies match the current filters.")

    render_charts(dashboard)

    st.subheader("Detalle")
    st.dataframe(detail_frame(dashboard), width="stretch", hide_index=True)


def main() -> None:
    st.set_page_config(page_title="MedStats", page_icon="🩻", layout="wide", initial_sidebar_state="collapsed")
    ensure_state()

    st.title("MedStats")
    st.caption("Upload a pipe-delimited radiology export to see productivity by specialist, modality and subcategory.")

    upload = st.file_uploader("Export file", key="upload_input")
    load_upload(upload)

    if st.session_state["load_error"]:
        st.error(st.session_state["load_error"])
        return
    if st.session_state["loaded"] is None:
        st.info("Waiting for an export file.")
        return

    loaded = st.session_state["loaded"]
    st.caption(
        f"{loaded['file']}  •  encoding {loaded.get('detected_encoding', '-')}  •  "
        f"{loaded['parsed_rows']} rows read, {loaded['dropped_rows']} dropped"
    )
    render_dashboard(loaded)


if __name__ == "__main__":
    main()
