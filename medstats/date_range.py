"""
Earliest/latest performed date across a loaded export.

Exports mix DD/MM/YYYY, ISO dates and the odd free-form value in the same
column. Values are ordered by the instant they parse to, but the returned
bounds are the raw strings, untouched.

The ordering heuristic is kept as-is for compatibility with historical
reports:

  - three '/'- or '-'-separated parts, first part 2 characters, last part
    4 characters: read as DD/MM/YYYY
  - anything else: parsed directly (ISO 8601, YYYY/MM/DD, MM/DD/YYYY,
    English month names), then handed to pandas for free-form values
    such as RFC 2822 timestamps or dotted dates

A value that cannot be parsed compares equal to every other value. The sort
never fails, but such values may land anywhere, so they are reported back in
DateRange.unparsed.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Iterable

import pandas as pd

from medstats.records import EMPTY_RANGE, NOT_APPLICABLE_RANGE, DateRange, StudyRecord

_PART_SPLIT_RE = re.compile(r"[/\-]")

DIRECT_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%B %d %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def _to_timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _parse_day_first(day: str, month: str, year: str) -> float | None:
    try:
        return _to_timestamp(datetime(int(year), int(month), int(day)))
    except ValueError:
        return None


def _parse_direct(value: str) -> float | None:
    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return _to_timestamp(datetime.fromisoformat(candidate))
    except ValueError:
        pass
    for fmt in DIRECT_FORMATS:
        try:
            return _to_timestamp(datetime.strptime(candidate, fmt))
        except ValueError:
            continue

    parsed = pd.to_datetime(candidate, errors="coerce", utc=False)
    if pd.isna(parsed):
        return None
    if isinstance(parsed, pd.Timestamp):
        return _to_timestamp(parsed.to_pydatetime())
    return None


def parse_instant(value: str) -> float | None:
    """Epoch seconds for a raw date string, or None when it cannot be read."""
    parts = _PART_SPLIT_RE.split(value)
    if len(parts) == 3 and len(parts[0]) == 2 and len(parts[2]) == 4:
        return _parse_day_first(parts[0], parts[1], parts[2])
    return _parse_direct(value)


def _compare(left: float | None, right: float | None) -> int:
    if left is None or right is None:
        return 0
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def sort_date_strings(values: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Sort raw date strings by parsed instant.

    Returns (sorted_values, unparsed_values); unparsed values keep their
    first-seen order and are not deduplicated.
    """
    values = list(values)
    instants = {value: parse_instant(value) for value in set(values)}
    ordered = sorted(values, key=cmp_to_key(lambda a, b: _compare(instants[a], instants[b])))
    unparsed = [value for value in values if instants[value] is None]
    return ordered, unparsed


def resolve_date_range(records: Iterable[StudyRecord]) -> DateRange:
    records = list(records)
    if not records:
        return EMPTY_RANGE

    candidates = [
        record.performed_date
        for record in records
        if record.performed_date and record.performed_date.strip()
    ]
    if not candidates:
        return NOT_APPLICABLE_RANGE

    ordered, unparsed = sort_date_strings(candidates)
    return DateRange(min=ordered[0], max=ordered[-1], unparsed=tuple(unparsed))
