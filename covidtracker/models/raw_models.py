"""COVID Tracker — Raw Source Models.

Shape of one daily record as served by the COVID Tracking Project API.
Only the fields the tracker consumes are declared; everything else is ignored.
"""

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CovidTrackingRecord(BaseModel):
    """One per-location, per-date record from the structured API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: dt.date
    state: Optional[str] = None
    positive: Optional[int] = None
    positive_increase: Optional[int] = Field(default=None, alias="positiveIncrease")
    hospitalized_currently: Optional[int] = Field(
        default=None, alias="hospitalizedCurrently"
    )
    total_test_results_increase: Optional[int] = Field(
        default=None, alias="totalTestResultsIncrease"
    )

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        """Accept the API's integer YYYYMMDD form as well as ISO strings."""
        if isinstance(value, int) and not isinstance(value, bool):
            return dt.datetime.strptime(str(value), "%Y%m%d").date()
        if isinstance(value, str) and value.isdigit():
            return dt.datetime.strptime(value, "%Y%m%d").date()
        return value

    @field_validator(
        "positive",
        "positive_increase",
        "hospitalized_currently",
        "total_test_results_increase",
        mode="before",
    )
    @classmethod
    def blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def positive_test_rate(self) -> Optional[float]:
        """Share of the day's test results that were positive, when sane."""
        if self.positive_increase is None or not self.total_test_results_increase:
            return None
        if self.total_test_results_increase < 0:
            return None
        rate = self.positive_increase / self.total_test_results_increase
        if rate < 0.0 or rate > 1.0:
            return None
        return rate
