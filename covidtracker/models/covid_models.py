"""COVID Tracker — Unified Data Models.

``UnifiedRecord`` is the immutable value that flows through the pipeline;
every stage hands back new copies. ``CovidDataRow`` is its persisted form.
"""

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import SQLModel, Field

from covidtracker.core.locations import Location


# ─────────────────────────────────────────────
# PIPELINE VALUES
# ─────────────────────────────────────────────


class UnifiedRecord(BaseModel):
    """One observation for one location on one date."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    location: Location
    new_positive_tests: Optional[int] = None
    total_positive_tests: Optional[int] = None
    current_hospitalizations: Optional[int] = None
    positive_test_rate: Optional[float] = None
    total_people_vaccinated: Optional[int] = None
    new_people_vaccinated: Optional[int] = None

    # Derived by the rolling average engine
    positive_test_rate_trailing_avg: Optional[float] = None
    new_vaccinations_trailing_avg: Optional[float] = None

    @property
    def key(self) -> tuple[dt.date, Location]:
        return self.date, self.location


@dataclass(frozen=True)
class VaccinationPoint:
    """Cumulative vaccinations for one location on one date, plus the daily delta."""

    date: dt.date
    location: Location
    total_vaccinated: Optional[int]
    new_vaccinations: int


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class CovidDataRow(SQLModel, table=True):
    """Persisted unified record.

    Composite primary key on (date, location) keeps one row per observation.
    """

    __tablename__ = "covid_data"

    date: dt.date = Field(primary_key=True, description="Calendar day")
    location: str = Field(primary_key=True, index=True, description="Location code")
    new_positive_tests: Optional[int] = None
    total_positive_tests: Optional[int] = None
    current_hospitalizations: Optional[int] = None
    positive_test_rate: Optional[float] = None
    total_people_vaccinated: Optional[int] = None
    new_people_vaccinated: Optional[int] = None
    positive_test_rate_trailing_avg: Optional[float] = None
    new_vaccinations_trailing_avg: Optional[float] = None

    @classmethod
    def from_record(cls, record: UnifiedRecord) -> "CovidDataRow":
        values = record.model_dump()
        values["location"] = record.location.code
        return cls(**values)

    def to_record(self) -> UnifiedRecord:
        values = self.model_dump()
        values["location"] = Location(self.location)
        return UnifiedRecord(**values)


class RefreshStatus(SQLModel, table=True):
    """Bookkeeping for the last successful reconciliation run (single row)."""

    __tablename__ = "refresh_status"

    id: int = Field(default=1, primary_key=True)
    refreshed_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        description="UTC time of the last successful run",
    )
    record_count: int = Field(default=0)
