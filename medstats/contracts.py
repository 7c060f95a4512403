"""Shared versioned contracts for medstats machine-readable outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from medstats import __version__ as TOOL_VERSION

CONTRACT_VERSIONS = {
    "medstats.summary": "1.0.0",
    "medstats.records": "1.0.0",
    "medstats.export": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    command: str,
    input_path: Path,
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": "medstats",
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "input_file": str(input_path),
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def build_payload(
    name: str,
    body: dict[str, Any],
    *,
    command: str,
    input_path: Path,
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    contract = build_contract(name)
    payload = {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
    }
    payload.update(body)
    payload["run_summary"] = build_run_summary(
        command=command,
        input_path=input_path,
        output_path=output_path,
        metrics=metrics,
        warnings=warnings,
    )
    return payload
