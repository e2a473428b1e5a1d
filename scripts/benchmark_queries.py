from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Callable, Dict

import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.collision_analytics.query_engine import CollisionStore
from src.collision_analytics.settings import PATHS, QUERY_SETTINGS

logging.basicConfig(level=logging.INFO)


def time_query(func: Callable[[], object], runs: int) -> int:
    """Total wall time of ``runs`` calls, in microseconds."""
    total = 0.0
    for _ in range(runs):
        started = time.perf_counter()
        func()
        total += time.perf_counter() - started
    return int(total * 1_000_000)


def benchmark(store: CollisionStore, start_date: int, end_date: int, runs: int) -> pd.DataFrame:
    queries: Dict[str, Callable[[], object]] = {
        "Total Injuries": lambda: store.total_injuries(start_date, end_date),
        "Total Fatalities": lambda: store.total_fatalities(start_date, end_date),
        "Most Severe Accidents": lambda: store.severe_accidents(start_date, end_date),
        "Peak Accident Hour": lambda: store.peak_accident_hour(start_date, end_date),
    }
    rows = [{"query": name, "total_us": time_query(func, runs), "runs": runs} for name, func in queries.items()]
    return pd.DataFrame(rows)


def main() -> None:
    store = CollisionStore.from_settings(QUERY_SETTINGS)
    store.load(PATHS.raw_data)

    results = benchmark(store, QUERY_SETTINGS.report_start, QUERY_SETTINGS.report_end, QUERY_SETTINGS.benchmark_runs)
    print("================== Performance Benchmark ==================")
    print(results.to_string(index=False))
    print(f"Total time for all queries: {results['total_us'].sum()} us over {QUERY_SETTINGS.benchmark_runs} runs")

    PATHS.benchmark_report.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(PATHS.benchmark_report, index=False)


if __name__ == "__main__":
    main()
