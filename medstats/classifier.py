"""
Subcategory classification for single studies.

Rules are evaluated in order and the first one that returns a subcategory
wins. A free-text contrast mention beats every modality-specific list; the
lists only apply to their own modality. Anything left over is STANDARD.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from medstats.constants import (
    CONTRAST_KEYWORDS,
    CONTRASTADOS,
    CONTRASTADOS_PROCEDURES,
    ESPECIALES,
    ESPECIALES_PROCEDURES,
    STANDARD,
)
from medstats.normalizer import normalize
from medstats.records import StudyRecord


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    subcategory: str
    keywords: tuple[str, ...]
    modalities: frozenset[str] | None = None

    @classmethod
    def build(
        cls,
        name: str,
        subcategory: str,
        keywords: Iterable[str],
        modalities: Iterable[str] | None = None,
    ) -> "ClassificationRule":
        normalized = tuple(keyword for keyword in (normalize(k) for k in keywords) if keyword)
        scope = frozenset(m.strip().upper() for m in modalities) if modalities is not None else None
        return cls(name=name, subcategory=subcategory, keywords=normalized, modalities=scope)

    def apply(self, description: str, modality: str) -> str | None:
        """Return this rule's subcategory when it matches a normalized description."""
        if self.modalities is not None and modality not in self.modalities:
            return None
        if any(keyword in description for keyword in self.keywords):
            return self.subcategory
        return None


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule.build("contrast_keywords", CONTRASTADOS, CONTRAST_KEYWORDS),
    ClassificationRule.build("ct_contrast_procedures", CONTRASTADOS, CONTRASTADOS_PROCEDURES, modalities=["CT"]),
    ClassificationRule.build("cr_special_procedures", ESPECIALES, ESPECIALES_PROCEDURES, modalities=["CR"]),
)


def subcategory_for(
    description: str | None,
    modality: str | None,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> str:
    normalized_description = normalize(description)
    normalized_modality = (modality or "").strip().upper()
    for rule in rules:
        matched = rule.apply(normalized_description, normalized_modality)
        if matched is not None:
            return matched
    return STANDARD


def classify_record(
    record: StudyRecord,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> StudyRecord:
    return replace(record, subcategory=subcategory_for(record.description, record.modality, rules))


def classify_records(
    records: Iterable[StudyRecord],
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> list[StudyRecord]:
    return [classify_record(record, rules) for record in records]
