"""
Filter + derive step shared by the CLI, the exporters and the dashboard.

Everything here is recomputed from the loaded record tuple on every call;
nothing is cached between calls.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from medstats.aggregator import modality_stats, subcategory_totals, summarize_by_specialist
from medstats.constants import ALL_SPECIALISTS, CONTRASTADOS, ESPECIALES
from medstats.date_range import resolve_date_range
from medstats.records import EMPTY_RANGE, DateRange, SpecialistSummary, StudyRecord


def filter_records(
    records: Iterable[StudyRecord],
    specialist: str = ALL_SPECIALISTS,
    search: str = "",
) -> tuple[StudyRecord, ...]:
    """
    Keep records for one specialist (or all) whose patient matches the search.

    The search is a case-insensitive substring of the patient name, or a
    plain substring of the patient id.
    """
    needle = search or ""
    lowered = needle.lower()

    def keep(record: StudyRecord) -> bool:
        if specialist != ALL_SPECIALISTS and record.performed_by != specialist:
            return False
        return lowered in record.patient_name.lower() or needle in record.patient_id

    return tuple(record for record in records if keep(record))


def list_specialists(records: Iterable[StudyRecord]) -> list[str]:
    return sorted({record.performed_by for record in records if record.performed_by})


@dataclass(frozen=True)
class Dashboard:
    specialist: str
    search: str
    records: tuple[StudyRecord, ...]
    summaries: list[SpecialistSummary] = field(default_factory=list)
    date_range: DateRange = EMPTY_RANGE
    modality_stats: list[tuple[str, int]] = field(default_factory=list)
    subcategory_totals: Counter = field(default_factory=Counter)

    @property
    def total_studies(self) -> int:
        return len(self.records)

    @property
    def contrast_count(self) -> int:
        return self.subcategory_totals[CONTRASTADOS]

    @property
    def special_count(self) -> int:
        return self.subcategory_totals[ESPECIALES]

    @property
    def warnings(self) -> list[str]:
        if not self.date_range.unparsed:
            return []
        sample = ", ".join(repr(value) for value in self.date_range.unparsed[:3])
        extra = f" (+{len(self.date_range.unparsed) - 3} more)" if len(self.date_range.unparsed) > 3 else ""
        return [
            f"{len(self.date_range.unparsed)} performed dates could not be parsed and may be "
            f"mis-ordered in the analyzed period: {sample}{extra}"
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "specialist_filter": self.specialist,
            "search": self.search,
            "total_studies": self.total_studies,
            "subcategory_totals": dict(self.subcategory_totals),
            "date_range": self.date_range.to_dict(),
            "period": self.date_range.display(),
            "modality_stats": [{"name": name, "value": value} for name, value in self.modality_stats],
            "specialists": [summary.to_dict() for summary in self.summaries],
            "warnings": self.warnings,
        }


def build_dashboard(
    records: Iterable[StudyRecord],
    specialist: str = ALL_SPECIALISTS,
    search: str = "",
) -> Dashboard:
    filtered = filter_records(records, specialist, search)
    return Dashboard(
        specialist=specialist,
        search=search,
        records=filtered,
        summaries=summarize_by_specialist(filtered),
        date_range=resolve_date_range(filtered),
        modality_stats=modality_stats(filtered),
        subcategory_totals=subcategory_totals(filtered),
    )
