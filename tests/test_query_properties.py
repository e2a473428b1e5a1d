"""Property tests: partitioned scans agree with a plain linear scan."""

from __future__ import annotations

from typing import List

from hypothesis import given, settings
from hypothesis import strategies as st

from src.collision_analytics.query_engine import CollisionStore
from src.collision_analytics.schemas import CollisionRecord

WORKER_COUNTS = (1, 2, 8, 64)

counts = st.integers(min_value=0, max_value=8)


@st.composite
def records(draw) -> CollisionRecord:
    hour = draw(st.integers(min_value=0, max_value=23))
    minute = draw(st.integers(min_value=0, max_value=59))
    return CollisionRecord(
        crash_date=draw(st.integers(min_value=20220101, max_value=20241231)),
        crash_time=hour * 100 + minute,
        persons_injured=draw(counts),
        persons_killed=draw(st.integers(min_value=0, max_value=3)),
        pedestrians_injured=draw(counts),
        cyclists_injured=draw(counts),
        motorists_injured=draw(counts),
    )


date_ranges = st.tuples(
    st.integers(min_value=20220101, max_value=20241231),
    st.integers(min_value=20220101, max_value=20241231),
).map(sorted)


def _sort_key(record: CollisionRecord) -> tuple:
    return tuple(record.model_dump().values())


def _linear_peak(matching: List[CollisionRecord]) -> tuple:
    buckets = [0] * 24
    for record in matching:
        buckets[record.crash_time // 100] += 1
    best = max(buckets)
    return (buckets.index(best), best) if best else (0, 0)


@settings(max_examples=25, deadline=None)
@given(st.lists(records(), max_size=120), date_ranges)
def test_partitioned_queries_match_linear_scan(rows: List[CollisionRecord], date_range: list) -> None:
    start_date, end_date = date_range
    matching = [r for r in rows if start_date <= r.crash_date <= end_date]
    expected_severe = sorted(
        (r for r in matching if r.persons_injured > 5 or r.persons_killed > 1), key=_sort_key
    )

    for workers in WORKER_COUNTS:
        store = CollisionStore.from_records(rows, workers=workers)

        assert store.total_injuries(start_date, end_date) == sum(r.persons_injured for r in matching)
        assert store.total_fatalities(start_date, end_date) == sum(r.persons_killed for r in matching)
        assert sorted(store.severe_accidents(start_date, end_date), key=_sort_key) == expected_severe
        assert store.peak_accident_hour(start_date, end_date) == _linear_peak(matching)
        assert store.search_by_date_range(start_date, end_date) == matching


@settings(max_examples=40, deadline=None)
@given(st.lists(records(), max_size=120), date_ranges, st.sampled_from(WORKER_COUNTS))
def test_total_injuries_decomposes_into_severe_and_other(
    rows: List[CollisionRecord], date_range: list, workers: int
) -> None:
    start_date, end_date = date_range
    store = CollisionStore.from_records(rows, workers=workers)

    severe = store.severe_accidents(start_date, end_date)
    other = [
        r
        for r in store.search_by_date_range(start_date, end_date)
        if not (r.persons_injured > 5 or r.persons_killed > 1)
    ]

    assert store.total_injuries(start_date, end_date) == sum(r.persons_injured for r in severe + other)
