from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CalendarPolicy(str, Enum):
    """How strictly normalized dates and times are checked against the calendar."""

    LENIENT = "lenient"
    STRICT = "strict"


class QuerySettings(BaseSettings):
    """Configuration for loading the dataset and running range queries."""

    workers: int = Field(default_factory=lambda: os.cpu_count() or 1, ge=1)
    calendar_policy: CalendarPolicy = Field(default=CalendarPolicy.LENIENT)
    report_start: int = Field(default=20230101)
    report_end: int = Field(default=20231231)
    benchmark_runs: int = Field(default=100, ge=1)

    model_config = SettingsConfigDict(env_prefix="COLLISIONS_", env_file=".env")


class Paths(BaseModel):
    """Project paths used across scripts."""

    raw_data: Path = Path("data/Motor_Vehicle_Collisions_-_Crashes_20250212.csv")
    artifacts_dir: Path = Path("artifacts")
    benchmark_report: Path = artifacts_dir / "query_benchmark.csv"


QUERY_SETTINGS = QuerySettings()
PATHS = Paths()
