from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

# Upper bound for every count field (32-bit signed)
MAX_COUNT = 2**31 - 1


class CollisionRecord(BaseModel):
    """One normalized collision: YYYYMMDD date, HHMM time and eight casualty counts."""

    crash_date: int = Field(..., alias="CRASH DATE")
    crash_time: int = Field(..., alias="CRASH TIME")
    persons_injured: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF PERSONS INJURED")
    persons_killed: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF PERSONS KILLED")
    pedestrians_injured: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF PEDESTRIANS INJURED")
    pedestrians_killed: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF PEDESTRIANS KILLED")
    cyclists_injured: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF CYCLIST INJURED")
    cyclists_killed: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF CYCLIST KILLED")
    motorists_injured: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF MOTORIST INJURED")
    motorists_killed: int = Field(0, ge=0, le=MAX_COUNT, alias="NUMBER OF MOTORIST KILLED")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class LoadSummary(BaseModel):
    loaded: int = 0
    failed: int = 0
    failure_reasons: Dict[str, int] = Field(default_factory=dict)

    def merge(self, other: LoadSummary) -> LoadSummary:
        reasons = dict(self.failure_reasons)
        for reason, count in other.failure_reasons.items():
            reasons[reason] = reasons.get(reason, 0) + count
        return LoadSummary(
            loaded=self.loaded + other.loaded,
            failed=self.failed + other.failed,
            failure_reasons=reasons,
        )
