"""Builders for synthetic collision rows and records."""

from __future__ import annotations

from src.collision_analytics.data_cleaning import COUNT_COLUMNS, COUNT_FIELDS, DATETIME_COLS, SKIPPED_COLUMNS
from src.collision_analytics.schemas import CollisionRecord

HEADER = ",".join(DATETIME_COLS + SKIPPED_COLUMNS + COUNT_COLUMNS + ["CONTRIBUTING FACTOR VEHICLE 1", "COLLISION_ID"])


def make_fields(crash_date: str, crash_time: str, **counts: object) -> list[str]:
    unknown = set(counts) - set(COUNT_FIELDS)
    if unknown:
        raise TypeError(f"unknown count fields: {sorted(unknown)}")
    count_values = [str(counts.get(name, "")) for name in COUNT_FIELDS]
    return [crash_date, crash_time] + [""] * len(SKIPPED_COLUMNS) + count_values + ["Unspecified", "4407458"]


def make_line(crash_date: str, crash_time: str, **counts: object) -> str:
    return ",".join(make_fields(crash_date, crash_time, **counts))


def make_record(crash_date: int, crash_time: int = 1200, **counts: int) -> CollisionRecord:
    return CollisionRecord(crash_date=crash_date, crash_time=crash_time, **counts)
