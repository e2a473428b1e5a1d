from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar, Union

import numpy as np
import pandas as pd

from .data_cleaning import COUNT_FIELDS, normalize_lines, tally_outcomes
from .schemas import CollisionRecord, LoadSummary
from .settings import CalendarPolicy, QuerySettings

logger = logging.getLogger(__name__)

NUM_HOURS = 24
SEVERE_INJURY_THRESHOLD = 5
SEVERE_FATALITY_THRESHOLD = 1
COLUMN_FIELDS = ["crash_date", "crash_time", *COUNT_FIELDS]

T = TypeVar("T")


def partition_bounds(size: int, partitions: int) -> List[Tuple[int, int]]:
    """Split ``range(size)`` into ``partitions`` contiguous, disjoint slices (some may be empty)."""
    edges = np.linspace(0, size, partitions + 1).astype(np.int64)
    return [(int(lo), int(hi)) for lo, hi in zip(edges[:-1], edges[1:])]


def _in_range(dates: np.ndarray, start_date: int, end_date: int) -> np.ndarray:
    return (dates >= start_date) & (dates <= end_date)


class CollisionStore:
    """Ordered in-memory collision records with inclusive date-range queries.

    Every query scans the whole sequence once, split into ``workers`` contiguous
    partitions that run on a thread pool; the caller blocks until all of them
    finish. Records are never mutated after load, so partitions read them
    without locking. Sums do not depend on the worker count. The order of
    ``severe_accidents`` results is only the source order when ``workers == 1``.
    """

    def __init__(self, workers: int = 1, calendar_policy: CalendarPolicy = CalendarPolicy.LENIENT) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.workers = workers
        self.calendar_policy = calendar_policy
        self.load_summary = LoadSummary()
        self._records: List[CollisionRecord] = []
        self._columns: Optional[Dict[str, np.ndarray]] = None
        self._columns_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: QuerySettings) -> CollisionStore:
        return cls(workers=settings.workers, calendar_policy=settings.calendar_policy)

    @classmethod
    def from_records(
        cls,
        records: Iterable[CollisionRecord],
        workers: int = 1,
        calendar_policy: CalendarPolicy = CalendarPolicy.LENIENT,
    ) -> CollisionStore:
        store = cls(workers=workers, calendar_policy=calendar_policy)
        store._append(list(records))
        return store

    def __len__(self) -> int:
        return len(self._records)

    # Loading

    def load(self, path: Union[str, Path]) -> Tuple[int, int]:
        """Load a header-bearing CSV file and return ``(loaded, failed)``.

        An unreadable source is logged and reported as ``(0, 0)``.
        """
        logger.info("Started loading data set from %s", path)
        try:
            with open(path, encoding="utf-8", errors="replace", newline="") as handle:
                return self.load_lines(handle)
        except OSError as exc:
            logger.error("Unable to open file %s: %s", path, exc)
            return 0, 0

    def load_lines(self, lines: Iterable[str]) -> Tuple[int, int]:
        rows = iter(lines)
        if next(rows, None) is None:
            logger.warning("Data set has no header line; nothing loaded")
            return 0, 0

        records, summary = tally_outcomes(normalize_lines(rows, self.calendar_policy))
        self._append(records)
        self.load_summary = self.load_summary.merge(summary)
        logger.info("Successfully loaded %d records. Failed: %d", summary.loaded, summary.failed)
        if summary.failure_reasons:
            logger.debug("Failed rows by reason: %s", summary.failure_reasons)
        return summary.loaded, summary.failed

    def _append(self, records: List[CollisionRecord]) -> None:
        with self._columns_lock:
            self._records.extend(records)
            self._columns = None

    def _column_view(self) -> Dict[str, np.ndarray]:
        with self._columns_lock:
            if self._columns is None:
                size = len(self._records)
                self._columns = {
                    name: np.fromiter((getattr(r, name) for r in self._records), dtype=np.int64, count=size)
                    for name in COLUMN_FIELDS
                }
            return self._columns

    def _map_partitions(self, scan: Callable[[int, int], T]) -> List[T]:
        bounds = partition_bounds(len(self._records), self.workers)
        if self.workers == 1 or not self._records:
            return [scan(lo, hi) for lo, hi in bounds]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [executor.submit(scan, lo, hi) for lo, hi in bounds]
            return [future.result() for future in futures]

    # Queries

    def _sum_in_range(self, field: str, start_date: int, end_date: int) -> int:
        columns = self._column_view()
        dates, values = columns["crash_date"], columns[field]

        def scan(lo: int, hi: int) -> int:
            mask = _in_range(dates[lo:hi], start_date, end_date)
            return int(values[lo:hi][mask].sum())

        return sum(self._map_partitions(scan))

    def total_injuries(self, start_date: int, end_date: int) -> int:
        return self._sum_in_range("persons_injured", start_date, end_date)

    def total_fatalities(self, start_date: int, end_date: int) -> int:
        return self._sum_in_range("persons_killed", start_date, end_date)

    def severe_accidents(self, start_date: int, end_date: int) -> List[CollisionRecord]:
        """Copies of in-range records with more than 5 injured or more than 1 killed.

        Partitions merge into the result as they finish, so the order is
        unspecified when more than one worker is used.
        """
        columns = self._column_view()
        dates, injured, killed = columns["crash_date"], columns["persons_injured"], columns["persons_killed"]
        severe: List[CollisionRecord] = []
        merge_lock = threading.Lock()

        def scan(lo: int, hi: int) -> None:
            mask = _in_range(dates[lo:hi], start_date, end_date) & (
                (injured[lo:hi] > SEVERE_INJURY_THRESHOLD) | (killed[lo:hi] > SEVERE_FATALITY_THRESHOLD)
            )
            local = [self._records[lo + int(i)].model_copy() for i in np.flatnonzero(mask)]
            with merge_lock:
                severe.extend(local)

        self._map_partitions(scan)
        return severe

    def peak_accident_hour(self, start_date: int, end_date: int) -> Tuple[int, int]:
        """Return ``(hour, count)`` for the busiest hour of day in range.

        Hours are scanned 0..23 and only a strictly greater count replaces the
        current peak, so the earliest hour wins a tie. No matches gives ``(0, 0)``.
        """
        columns = self._column_view()
        dates, times = columns["crash_date"], columns["crash_time"]

        def scan(lo: int, hi: int) -> np.ndarray:
            hours = times[lo:hi][_in_range(dates[lo:hi], start_date, end_date)] // 100
            hours = hours[(hours >= 0) & (hours < NUM_HOURS)]
            return np.bincount(hours, minlength=NUM_HOURS)

        counts = np.sum(self._map_partitions(scan), axis=0)

        peak_hour, peak_count = 0, 0
        for hour in range(NUM_HOURS):
            if counts[hour] > peak_count:
                peak_hour, peak_count = hour, int(counts[hour])
        return peak_hour, peak_count

    def search_by_date_range(self, start_date: int, end_date: int) -> List[CollisionRecord]:
        dates = self._column_view()["crash_date"]

        def scan(lo: int, hi: int) -> List[CollisionRecord]:
            matches = np.flatnonzero(_in_range(dates[lo:hi], start_date, end_date))
            return [self._records[lo + int(i)].model_copy() for i in matches]

        return [record for part in self._map_partitions(scan) for record in part]

    def injury_breakdown(self, start_date: int, end_date: int) -> Tuple[int, int, int]:
        """Return ``(pedestrians, cyclists, motorists)`` injured in range."""
        columns = self._column_view()
        dates = columns["crash_date"]
        fields = ("pedestrians_injured", "cyclists_injured", "motorists_injured")

        def scan(lo: int, hi: int) -> np.ndarray:
            mask = _in_range(dates[lo:hi], start_date, end_date)
            return np.array([columns[field][lo:hi][mask].sum() for field in fields], dtype=np.int64)

        pedestrians, cyclists, motorists = (int(v) for v in np.sum(self._map_partitions(scan), axis=0))
        return pedestrians, cyclists, motorists

    def deadliest_accident_on_date(self, crash_date: int) -> Optional[CollisionRecord]:
        columns = self._column_view()
        matches = np.flatnonzero(columns["crash_date"] == crash_date)
        if matches.size == 0:
            return None
        # argmax keeps the first maximum, i.e. the earliest record in source order
        best = matches[int(np.argmax(columns["persons_killed"][matches]))]
        return self._records[int(best)].model_copy()

    def to_dataframe(self) -> pd.DataFrame:
        columns = self._column_view()
        aliases = {name: CollisionRecord.model_fields[name].alias for name in COLUMN_FIELDS}
        return pd.DataFrame({aliases[name]: columns[name] for name in COLUMN_FIELDS})
