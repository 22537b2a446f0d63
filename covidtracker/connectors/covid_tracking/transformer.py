"""COVID Tracker — COVID Tracking Project Raw → Unified Transformer.

Maps typed API records 1:1 onto ``UnifiedRecord``. Rows that cannot be
parsed are dropped; the batch never fails as a whole.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import ValidationError

from covidtracker.core.locations import Location
from covidtracker.core.logging import get_logger
from covidtracker.models.covid_models import UnifiedRecord
from covidtracker.models.raw_models import CovidTrackingRecord

logger = get_logger("covid_tracking.transformer")


def _to_unified(raw: CovidTrackingRecord, location: Location) -> UnifiedRecord:
    return UnifiedRecord(
        date=raw.date,
        location=location,
        new_positive_tests=raw.positive_increase,
        total_positive_tests=raw.positive,
        current_hospitalizations=raw.hospitalized_currently,
        positive_test_rate=raw.positive_test_rate,
    )


def transform_daily_records(
    raw_data: Iterable[Dict[str, Any]],
    location: Optional[Location] = None,
) -> List[UnifiedRecord]:
    """Transform raw API rows into unified records.

    ``location`` tags every row with a fixed location (the country feed);
    when omitted, each row's ``state`` code is resolved instead.
    """
    records: List[UnifiedRecord] = []
    seen: Set[Tuple[date, Location]] = set()
    dropped = 0

    for row in raw_data:
        try:
            raw = CovidTrackingRecord.model_validate(row)
        except ValidationError as e:
            dropped += 1
            logger.debug(f"Dropping malformed row: {e.error_count()} errors")
            continue

        row_location = location or Location.from_code(raw.state)
        if row_location is None:
            dropped += 1
            logger.debug(f"Dropping row with unknown location {raw.state!r}")
            continue

        record = _to_unified(raw, row_location)
        # First row wins when the API repeats a (date, location)
        if record.key in seen:
            dropped += 1
            logger.debug(f"Dropping duplicate row for {row_location.code} on {record.date}")
            continue
        seen.add(record.key)
        records.append(record)

    logger.info(
        f"Transformed {len(records)} rows ({dropped} dropped)",
        extra={"record_count": len(records)},
    )
    return records
