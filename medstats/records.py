from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from medstats.constants import NOT_APPLICABLE, STANDARD

RECORD_FIELDS = (
    "patient_id",
    "patient_name",
    "description",
    "region",
    "performed_date",
    "modality",
    "performed_by",
    "report_status",
    "report_date",
)

PERIOD_SEPARATOR = " — "


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class StudyRecord:
    patient_id: str = ""
    patient_name: str = ""
    description: str = ""
    region: str = ""
    performed_date: str = ""
    modality: str = ""
    performed_by: str = ""
    report_status: str = ""
    report_date: str = ""
    subcategory: str = STANDARD

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "StudyRecord":
        """Build a record from field-keyed values, trimming and blanking missing ones."""
        return cls(**{name: _clean(values.get(name)) for name in RECORD_FIELDS})

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class SpecialistSummary:
    """Per-specialist counts; both count mappings are read-only views."""

    specialist: str
    total_studies: int
    modalities: Mapping[str, int] = field(default_factory=Counter)
    subcategories: Mapping[str, int] = field(default_factory=Counter)

    def __post_init__(self) -> None:
        object.__setattr__(self, "modalities", MappingProxyType(Counter(self.modalities)))
        object.__setattr__(self, "subcategories", MappingProxyType(Counter(self.subcategories)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "specialist": self.specialist,
            "total_studies": self.total_studies,
            "modalities": dict(self.modalities),
            "subcategories": dict(self.subcategories),
        }


@dataclass(frozen=True)
class DateRange:
    min: str
    max: str
    unparsed: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.min and not self.max

    @property
    def is_applicable(self) -> bool:
        return not self.is_empty and (self.min, self.max) != (NOT_APPLICABLE, NOT_APPLICABLE)

    def display(self, separator: str = PERIOD_SEPARATOR) -> str:
        if not self.min or not self.max:
            return ""
        return f"{self.min}{separator}{self.max}"

    def to_dict(self) -> dict[str, Any]:
        return {"min": self.min, "max": self.max, "unparsed": list(self.unparsed)}


EMPTY_RANGE = DateRange("", "")
NOT_APPLICABLE_RANGE = DateRange(NOT_APPLICABLE, NOT_APPLICABLE)
