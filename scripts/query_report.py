from __future__ import annotations

import logging
import sys
from pathlib import Path

import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.collision_analytics.query_engine import CollisionStore
from src.collision_analytics.settings import PATHS, QUERY_SETTINGS

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def build_report(store: CollisionStore, start_date: int, end_date: int) -> pd.DataFrame:
    peak_hour, peak_count = store.peak_accident_hour(start_date, end_date)
    pedestrians, cyclists, motorists = store.injury_breakdown(start_date, end_date)
    rows = [
        {"query": "Total injuries", "result": store.total_injuries(start_date, end_date)},
        {"query": "Total fatalities", "result": store.total_fatalities(start_date, end_date)},
        {"query": "Severe accidents", "result": len(store.severe_accidents(start_date, end_date))},
        {"query": "Peak accident hour", "result": f"{peak_hour:02d}:00 ({peak_count} accidents)"},
        {"query": "Pedestrians injured", "result": pedestrians},
        {"query": "Cyclists injured", "result": cyclists},
        {"query": "Motorists injured", "result": motorists},
    ]
    return pd.DataFrame(rows)


def main() -> None:
    store = CollisionStore.from_settings(QUERY_SETTINGS)
    loaded, failed = store.load(PATHS.raw_data)
    if not loaded:
        logger.warning("No records loaded from %s (%d failed rows)", PATHS.raw_data, failed)

    start_date, end_date = QUERY_SETTINGS.report_start, QUERY_SETTINGS.report_end
    report = build_report(store, start_date, end_date)
    print(f"Collision report {start_date} - {end_date} ({len(store)} records, {QUERY_SETTINGS.workers} workers)")
    print(report.to_string(index=False))


if __name__ == "__main__":
    main()
