from __future__ import annotations

from collections import Counter
from typing import Iterable

from medstats.constants import MISSING_MODALITY, SUBCATEGORIES, UNASSIGNED_SPECIALIST
from medstats.records import SpecialistSummary, StudyRecord


def specialist_key(record: StudyRecord) -> str:
    return (record.performed_by or "").strip() or UNASSIGNED_SPECIALIST


def modality_key(record: StudyRecord) -> str:
    return (record.modality or "").strip().upper() or MISSING_MODALITY


def _empty_subcategory_counts() -> Counter:
    return Counter({subcategory: 0 for subcategory in SUBCATEGORIES})


def summarize_by_specialist(records: Iterable[StudyRecord]) -> list[SpecialistSummary]:
    """
    Fold classified records into one summary per specialist.

    Buckets are created in first-seen order and the result is sorted by total
    studies, descending. sorted() is stable, so equal totals keep that order.
    """
    totals: dict[str, int] = {}
    modalities: dict[str, Counter] = {}
    subcategories: dict[str, Counter] = {}

    for record in records:
        key = specialist_key(record)
        if key not in totals:
            totals[key] = 0
            modalities[key] = Counter()
            subcategories[key] = _empty_subcategory_counts()
        totals[key] += 1
        modalities[key][modality_key(record)] += 1
        subcategories[key][record.subcategory] += 1

    summaries = [
        SpecialistSummary(
            specialist=key,
            total_studies=total,
            modalities=modalities[key],
            subcategories=subcategories[key],
        )
        for key, total in totals.items()
    ]
    return sorted(summaries, key=lambda summary: summary.total_studies, reverse=True)


def modality_stats(records: Iterable[StudyRecord]) -> list[tuple[str, int]]:
    """Study count per modality, in first-seen order, for charting."""
    counts: Counter = Counter(modality_key(record) for record in records)
    return list(counts.items())


def subcategory_totals(records: Iterable[StudyRecord]) -> Counter:
    counts = _empty_subcategory_counts()
    counts.update(record.subcategory for record in records)
    return counts
