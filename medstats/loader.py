"""
loader.py - flat-file loader for radiology study exports

Exports are pipe-delimited text with a few metadata lines before the real
header row. The loader finds that header, parses the table, maps raw columns
onto StudyRecord fields, classifies every row and keeps the admissible ones.

Public API:
    result  = load_export("path/to/export.txt")
    records = result["records"]

Result dict keys:
    records            tuple of classified, admissible StudyRecord
    parsed_rows        data rows read below the header
    dropped_rows       parsed rows rejected (no patient id / modality not allowed)
    header_line        1-based line number of the detected header row
    columns            raw header names as they appear in the file
    matched_columns    StudyRecord field -> raw header it was read from
    detected_encoding  encoding used for decoding
    encoding_info      full dict: detected, confidence, is_utf8, suspicious_chars
    warnings           list of warning strings
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import chardet
import pandas as pd

from medstats.classifier import classify_record
from medstats.constants import ALLOWED_MODALITIES, COLUMN_MAPPING, HEADER_MARKERS
from medstats.normalizer import normalize
from medstats.records import RECORD_FIELDS, StudyRecord

DELIMITER = "|"

NO_HEADER_MESSAGE = "No valid header row found. Check the export format."
NO_ADMISSIBLE_ROWS_MESSAGE = (
    "The file was read but no row matches the allowed modalities "
    f"({', '.join(ALLOWED_MODALITIES)})."
)


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding_info(raw: bytes) -> dict:
    """
    Detect encoding from raw bytes.

    Returns dict with: detected, confidence, is_utf8, suspicious_chars.
    """
    result = chardet.detect(raw)
    detected = result.get("encoding") or "unknown"
    confidence = round(result.get("confidence") or 0.0, 2)

    is_utf8 = detected.upper().replace("-", "") in ("UTF8", "UTF8SIG", "ASCII")

    suspicious: list[str] = []
    if not is_utf8:
        for row_idx, line in enumerate(raw.split(b"\n")[:100], start=1):
            try:
                line.decode("utf-8")
            except UnicodeDecodeError as e:
                bad_byte = line[e.start : e.end]
                suspicious.append(f"row {row_idx}: byte {bad_byte!r} at position {e.start}")

    return {
        "detected":         detected,
        "confidence":       confidence,
        "is_utf8":          is_utf8,
        "suspicious_chars": suspicious[:10],
    }


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Strategy per line: UTF-8, then the detected encoding, then latin-1, and
    finally CP1252 with replacement so decoding never fails. Null bytes and
    the UTF-8 BOM are stripped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc or enc == "unknown":
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", "").replace("\ufeff", "").rstrip("\r"))
    return "\n".join(decoded_lines)


# ══════════════════════════════════════════════════════════════════════════════
# HEADER DETECTION + ROW MAPPING
# ══════════════════════════════════════════════════════════════════════════════

def find_header_index(lines: list[str]) -> int | None:
    """Index of the first line that looks like the export header, or None."""
    for idx, line in enumerate(lines):
        normalized = normalize(line)
        if any(marker in normalized for marker in HEADER_MARKERS):
            return idx
    return None


def match_columns(columns: list[str]) -> dict[str, str]:
    """Map StudyRecord field names to the raw header carrying them."""
    by_normalized: dict[str, str] = {}
    for column in columns:
        by_normalized.setdefault(normalize(column), column)

    matched: dict[str, str] = {}
    for raw_name, field_name in COLUMN_MAPPING.items():
        column = by_normalized.get(normalize(raw_name))
        if column is not None:
            matched[field_name] = column
    return matched


def map_row(row: dict[str, Any], matched: dict[str, str]) -> StudyRecord:
    values = {field_name: row.get(column, "") for field_name, column in matched.items()}
    description = (values.get("description") or "").strip()
    if not description:
        # Some exports shift the description into the third column without a header.
        cells = list(row.values())
        if len(cells) > 2 and cells[2]:
            values["description"] = cells[2]
    return StudyRecord.from_mapping(values)


def is_admissible(record: StudyRecord) -> bool:
    return bool(record.patient_id) and record.modality.strip().upper() in ALLOWED_MODALITIES


def _parse_table(text: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=DELIMITER,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
            engine="python",
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except Exception as exc:
        raise ValueError(f"Could not parse export: {exc}") from exc
    return df.fillna("")


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def load_text(text: str) -> dict:
    """Parse already-decoded export text. See the module docstring for result keys."""
    lines = text.split("\n")
    header_idx = find_header_index(lines)
    if header_idx is None:
        raise ValueError(NO_HEADER_MESSAGE)

    df = _parse_table("\n".join(lines[header_idx:]))
    columns = [str(column) for column in df.columns]
    matched = match_columns(columns)

    warnings: list[str] = []
    missing = [field_name for field_name in RECORD_FIELDS if field_name not in matched]
    if missing:
        warnings.append(f"Columns not found in header (left blank): {', '.join(missing)}")

    parsed = [
        classify_record(map_row(row, matched))
        for row in df.to_dict(orient="records")
    ]
    records = tuple(record for record in parsed if is_admissible(record))
    if parsed and not records:
        warnings.append(NO_ADMISSIBLE_ROWS_MESSAGE)

    return {
        "records":         records,
        "parsed_rows":     len(parsed),
        "dropped_rows":    len(parsed) - len(records),
        "header_line":     header_idx + 1,
        "columns":         columns,
        "matched_columns": matched,
        "warnings":        warnings,
    }


def load_bytes(raw: bytes) -> dict:
    enc_info = _detect_encoding_info(raw)
    enc = enc_info["detected"] if enc_info["detected"] != "unknown" else "utf-8"
    result = load_text(_read_text_safely(raw, enc))
    result["detected_encoding"] = enc
    result["encoding_info"] = enc_info
    return result


def load_export(path: "str | Path") -> dict:
    """
    Load a pipe-delimited radiology export from disk.

    The file extension is not checked; any text file with a recognizable
    header row is accepted.

    Raises:
        FileNotFoundError  if the file does not exist.
        ValueError         if the table cannot be parsed or no header row
                           is found.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    result = load_bytes(path.read_bytes())
    result["file"] = path.name
    return result
