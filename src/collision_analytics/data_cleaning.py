from __future__ import annotations

import csv
import re
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .schemas import MAX_COUNT, CollisionRecord, LoadSummary
from .settings import CalendarPolicy

DATETIME_COLS = ["CRASH DATE", "CRASH TIME"]

SKIPPED_COLUMNS = [
    "BOROUGH",
    "ZIP CODE",
    "LATITUDE",
    "LONGITUDE",
    "LOCATION",
    "ON STREET NAME",
    "CROSS STREET NAME",
    "OFF STREET NAME",
]

COUNT_COLUMNS = [
    "NUMBER OF PERSONS INJURED",
    "NUMBER OF PERSONS KILLED",
    "NUMBER OF PEDESTRIANS INJURED",
    "NUMBER OF PEDESTRIANS KILLED",
    "NUMBER OF CYCLIST INJURED",
    "NUMBER OF CYCLIST KILLED",
    "NUMBER OF MOTORIST INJURED",
    "NUMBER OF MOTORIST KILLED",
]

COUNT_FIELDS = [
    "persons_injured",
    "persons_killed",
    "pedestrians_injured",
    "pedestrians_killed",
    "cyclists_injured",
    "cyclists_killed",
    "motorists_injured",
    "motorists_killed",
]

COUNTS_OFFSET = len(DATETIME_COLS) + len(SKIPPED_COLUMNS)
REQUIRED_FIELD_COUNT = COUNTS_OFFSET + len(COUNT_COLUMNS)

_ASCII_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ParsedRow:
    record: CollisionRecord


@dataclass(frozen=True)
class RowError:
    reason: str


RowOutcome = Union[ParsedRow, RowError]


def _is_digits(text: str, width: int) -> bool:
    return len(text) == width and _ASCII_DIGITS.fullmatch(text) is not None


def _is_calendar_date(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def normalize_date(text: str, policy: CalendarPolicy = CalendarPolicy.LENIENT) -> Optional[int]:
    """Turn ``MM/DD/YYYY`` into a ``YYYYMMDD`` integer, or None when the shape is wrong.

    Single-digit month and day components (``3/4/2021``) are zero-padded before
    the separators are stripped. The lenient policy checks digit count only.
    """
    if not text:
        return None
    parts = text.split("/")
    if len(parts) == 3:
        parts = [part.zfill(2) if len(part) == 1 else part for part in parts[:2]] + parts[2:]
    digits = "".join(parts)
    if not _is_digits(digits, 8):
        return None
    month, day, year = digits[:2], digits[2:4], digits[4:]
    if policy is CalendarPolicy.STRICT and not _is_calendar_date(int(year), int(month), int(day)):
        return None
    return int(year + month + day)


def normalize_time(text: str, policy: CalendarPolicy = CalendarPolicy.LENIENT) -> Optional[int]:
    """Turn ``H:MM`` or ``HH:MM`` into an ``HHMM`` integer, or None."""
    if len(text) < 3:
        return None
    colon = text.find(":")
    if colon == -1:
        return None
    if colon == 1:
        text = "0" + text
    digits = text.replace(":", "")
    if not _is_digits(digits, 4):
        return None
    if policy is CalendarPolicy.STRICT and (int(digits[:2]) > 23 or int(digits[2:]) > 59):
        return None
    return int(digits)


def parse_count(text: str) -> Optional[int]:
    if text == "":
        return 0
    if len(text) > len(str(MAX_COUNT)) or _ASCII_DIGITS.fullmatch(text) is None:
        return None
    value = int(text)
    return value if value <= MAX_COUNT else None


def split_row(line: str) -> Optional[List[str]]:
    try:
        return next(csv.reader([line]), [])
    except csv.Error:
        return None


def normalize_row(fields: Sequence[str], policy: CalendarPolicy = CalendarPolicy.LENIENT) -> RowOutcome:
    if len(fields) < REQUIRED_FIELD_COUNT:
        return RowError("too few fields")

    crash_date = normalize_date(fields[0], policy)
    if crash_date is None:
        return RowError("invalid date")
    crash_time = normalize_time(fields[1], policy)
    if crash_time is None:
        return RowError("invalid time")

    counts = {}
    for offset, (name, column) in enumerate(zip(COUNT_FIELDS, COUNT_COLUMNS)):
        value = parse_count(fields[COUNTS_OFFSET + offset])
        if value is None:
            return RowError(f"invalid count: {column}")
        counts[name] = value

    return ParsedRow(CollisionRecord(crash_date=crash_date, crash_time=crash_time, **counts))


def normalize_line(line: str, policy: CalendarPolicy = CalendarPolicy.LENIENT) -> RowOutcome:
    fields = split_row(line.rstrip("\r\n"))
    if fields is None:
        return RowError("malformed row")
    return normalize_row(fields, policy)


def normalize_lines(
    lines: Iterable[str], policy: CalendarPolicy = CalendarPolicy.LENIENT
) -> Iterator[RowOutcome]:
    for line in lines:
        yield normalize_line(line, policy)


def tally_outcomes(outcomes: Iterable[RowOutcome]) -> Tuple[List[CollisionRecord], LoadSummary]:
    records: List[CollisionRecord] = []
    reasons: Counter[str] = Counter()
    for outcome in outcomes:
        if isinstance(outcome, ParsedRow):
            records.append(outcome.record)
        else:
            reasons[outcome.reason] += 1
    summary = LoadSummary(
        loaded=len(records),
        failed=sum(reasons.values()),
        failure_reasons=dict(reasons),
    )
    return records, summary
