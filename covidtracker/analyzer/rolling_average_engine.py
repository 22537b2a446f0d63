"""COVID Tracker — Rolling Average Engine.

Annotates each location's series with trailing averages:
  * positive test rate over a fixed 7-day window
  * new vaccinations over a window that grows from the first day of the
    vaccination campaign up to 7 days

Averages are always computed from raw fields, never from other averages.
"""

from datetime import date
from typing import Dict, List, Optional

from covidtracker.config import settings
from covidtracker.core.locations import Location
from covidtracker.core.logging import get_logger
from covidtracker.models.covid_models import UnifiedRecord

logger = get_logger("analyzer.rolling_average")

POSITIVE_RATE_WINDOW = 7
MAX_VACCINATION_WINDOW = 7


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def positive_rate_average(series: List[UnifiedRecord], index: int) -> Optional[float]:
    """Mean of the present positive test rates in ``[index-6, index]``."""
    span = POSITIVE_RATE_WINDOW - 1
    if index < span:
        return None
    window = series[index - span : index + 1]
    return _mean([r.positive_test_rate for r in window if r.positive_test_rate is not None])


def vaccination_average(
    series: List[UnifiedRecord],
    index: int,
    vaccination_start: date,
) -> Optional[float]:
    """Trailing mean of new vaccinations, anchored to the campaign start.

    The country series counts missing days as zero; regional series only
    average the days that reported.
    """
    record = series[index]
    days_since_start = (record.date - vaccination_start).days
    span = min(days_since_start, MAX_VACCINATION_WINDOW - 1)
    if days_since_start < 0 or index < span:
        return None

    window = series[index - span : index + 1]
    if record.location == Location.US:
        values = [float(r.new_people_vaccinated or 0) for r in window]
    else:
        values = [
            float(r.new_people_vaccinated)
            for r in window
            if r.new_people_vaccinated is not None
        ]
    return _mean(values)


def group_by_location(records: List[UnifiedRecord]) -> Dict[Location, List[UnifiedRecord]]:
    """Partition records by location, each series sorted by date (stable)."""
    groups: Dict[Location, List[UnifiedRecord]] = {}
    for record in records:
        groups.setdefault(record.location, []).append(record)
    return {loc: sorted(series, key=lambda r: r.date) for loc, series in groups.items()}


def compute_trailing_averages(
    records: List[UnifiedRecord],
    vaccination_start: date | None = None,
) -> List[UnifiedRecord]:
    """Return new records carrying both trailing averages.

    Output is grouped by location (first-seen order), each group by date.
    """
    start = vaccination_start or settings.vaccination_start_date
    annotated: List[UnifiedRecord] = []

    groups = group_by_location(records)
    for series in groups.values():
        for index, record in enumerate(series):
            annotated.append(
                record.model_copy(
                    update={
                        "positive_test_rate_trailing_avg": positive_rate_average(
                            series, index
                        ),
                        "new_vaccinations_trailing_avg": vaccination_average(
                            series, index, start
                        ),
                    }
                )
            )

    logger.info(
        f"Computed trailing averages for {len(annotated)} records across {len(groups)} locations",
        extra={"record_count": len(annotated)},
    )
    return annotated
