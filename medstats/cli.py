from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from medstats import __version__ as TOOL_VERSION
from medstats.constants import ALL_SPECIALISTS, SUBCATEGORIES
from medstats.contracts import build_payload
from medstats.exports import excel_filename, export_excel, export_word, word_filename
from medstats.loader import load_export
from medstats.pipeline import Dashboard, build_dashboard, filter_records


EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_NO_RECORDS = 3

EXPORT_FORMATS = ("xlsx", "doc")


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class MedstatsArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def timestamp_token() -> str:
    override = os.environ.get("MEDSTATS_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "medstats-output" / f"{input_path.stem}-{timestamp_token()}"


def determine_output_dir(args: argparse.Namespace, input_path: Path) -> Path:
    if getattr(args, "out_dir", None):
        return Path(args.out_dir)
    return default_output_dir(input_path)


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, payload: str) -> None:
    ensure_parent(path)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def classify_backend_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, UnicodeDecodeError):
        return EXIT_PARSE_FAILED
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def load_input(args: argparse.Namespace) -> tuple[Path, dict]:
    input_path = Path(args.input)
    if not input_path.exists():
        raise CliError(f"File not found: {input_path}", EXIT_COMMAND_ERROR)
    return input_path, load_export(input_path)


def load_metrics(loaded: dict, dashboard: Dashboard) -> dict[str, Any]:
    return {
        "parsed_rows": loaded["parsed_rows"],
        "admissible_rows": len(loaded["records"]),
        "dropped_rows": loaded["dropped_rows"],
        "filtered_rows": dashboard.total_studies,
        "specialists": len(dashboard.summaries),
    }


def exit_code_for_records(loaded: dict) -> int:
    if not loaded["records"]:
        return EXIT_NO_RECORDS
    return EXIT_SUCCESS


def render_summary_text(loaded: dict, dashboard: Dashboard) -> str:
    totals = dashboard.subcategory_totals
    lines = [
        "medstats summary",
        f"File: {loaded.get('file', '[unknown]')}",
        f"Encoding: {loaded.get('detected_encoding', '[unknown]')}",
        f"Header line: {loaded['header_line']}",
        f"Parsed rows: {loaded['parsed_rows']}",
        f"Dropped rows: {loaded['dropped_rows']}",
        f"Specialist filter: {dashboard.specialist}",
        f"Studies: {dashboard.total_studies}",
        f"Period: {dashboard.date_range.display() or '[none]'}",
        "Subcategories: " + ", ".join(f"{name} {totals[name]}" for name in SUBCATEGORIES),
    ]
    if dashboard.summaries:
        lines.append("By specialist:")
        for summary in dashboard.summaries:
            modalities = ", ".join(f"{name} {count}" for name, count in summary.modalities.items())
            lines.append(f"- {summary.specialist}: {summary.total_studies} ({modalities})")
    warnings = list(loaded.get("warnings", [])) + dashboard.warnings
    if warnings:
        lines.append("Warnings:")
        lines.extend(f"- {warning}" for warning in warnings)
    return "\n".join(lines) + "\n"


def run_summary(args: argparse.Namespace) -> int:
    try:
        input_path, loaded = load_input(args)
        dashboard = build_dashboard(loaded["records"], args.specialist, args.search)
        out_dir = determine_output_dir(args, input_path)
        report_path = safe_output_path(Path(args.output) if args.output else out_dir / "summary.json")
        payload = build_payload(
            "medstats.summary",
            {"file": loaded.get("file"), "summary": dashboard.to_dict()},
            command="summary",
            input_path=input_path,
            output_path=report_path,
            metrics=load_metrics(loaded, dashboard),
            warnings=list(loaded["warnings"]) + dashboard.warnings,
        )
        write_json(report_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_summary_text(loaded, dashboard).rstrip(), quiet=args.quiet)
            emit_human(f"Summary written: {report_path}", quiet=args.quiet)
        return exit_code_for_records(loaded)
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_records(args: argparse.Namespace) -> int:
    try:
        input_path, loaded = load_input(args)
        filtered = filter_records(loaded["records"], args.specialist, args.search)
        out_dir = determine_output_dir(args, input_path)
        records_path = safe_output_path(Path(args.output) if args.output else out_dir / "records.json")
        payload = build_payload(
            "medstats.records",
            {"file": loaded.get("file"), "records": [record.to_dict() for record in filtered]},
            command="records",
            input_path=input_path,
            output_path=records_path,
            metrics={
                "parsed_rows": loaded["parsed_rows"],
                "admissible_rows": len(loaded["records"]),
                "filtered_rows": len(filtered),
            },
            warnings=list(loaded["warnings"]),
        )
        write_json(records_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(f"Records: {len(filtered)}", quiet=args.quiet)
            emit_human(f"Records written: {records_path}", quiet=args.quiet)
        return exit_code_for_records(loaded)
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_export(args: argparse.Namespace) -> int:
    try:
        input_path, loaded = load_input(args)
        if not loaded["records"]:
            for warning in loaded["warnings"]:
                eprint(warning)
            raise CliError("No admissible records to export.", EXIT_NO_RECORDS)

        dashboard = build_dashboard(loaded["records"], args.specialist, args.search)
        out_dir = determine_output_dir(args, input_path)
        if args.format == "xlsx":
            default_name = excel_filename(args.specialist)
        else:
            default_name = word_filename(args.specialist, timestamp_token())
        output_path = safe_output_path(Path(args.output) if args.output else out_dir / default_name)

        if args.format == "xlsx":
            export_excel(loaded["records"], output_path, args.specialist)
        else:
            export_word(loaded["records"], output_path, args.specialist, dashboard.date_range)

        payload = build_payload(
            "medstats.export",
            {"file": loaded.get("file"), "format": args.format, "specialist_filter": args.specialist},
            command="export",
            input_path=input_path,
            output_path=output_path,
            metrics=load_metrics(loaded, dashboard),
            warnings=list(loaded["warnings"]) + dashboard.warnings,
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(f"Period: {dashboard.date_range.display() or '[none]'}", quiet=args.quiet)
            emit_human(f"Report written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Pipe-delimited export file")
    parser.add_argument("--specialist", default=ALL_SPECIALISTS, help="Only studies performed by this specialist (default: All)")
    parser.add_argument("--search", default="", help="Filter by patient name or patient id substring")
    parser.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    parser.add_argument("--output", help="Explicit output path")
    parser.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")


def build_parser() -> argparse.ArgumentParser:
    parser = MedstatsArgumentParser(prog="medstats", description="Radiology productivity statistics from flat-file exports.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Summarize studies per specialist, modality and subcategory.")
    _add_common_arguments(summary)

    records = subparsers.add_parser("records", help="Write the classified records as JSON.")
    _add_common_arguments(records)

    export = subparsers.add_parser("export", help="Write an Excel workbook or a Word report.")
    _add_common_arguments(export)
    export.add_argument("--format", choices=EXPORT_FORMATS, default="xlsx", help="Report format")

    subparsers.add_parser("version", help="Print version")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "summary":
            return run_summary(args)
        if args.command == "records":
            return run_records(args)
        if args.command == "export":
            return run_export(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
