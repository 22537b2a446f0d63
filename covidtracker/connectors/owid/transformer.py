"""COVID Tracker — Our World in Data Vaccination Feed Transformer.

Parses the raw delimited-text vaccination feeds into ``VaccinationPoint``
series. Fields may be double-quoted and contain commas.
"""

import csv
from datetime import date, datetime
from typing import Dict, List, Optional

from covidtracker.core.locations import Location
from covidtracker.core.logging import get_logger
from covidtracker.models.covid_models import UnifiedRecord, VaccinationPoint

logger = get_logger("owid.transformer")

DATE_HEADER = "date"
PEOPLE_VACCINATED_HEADER = "people_vaccinated"
LOCATION_HEADER = "location"
DATE_FORMAT = "%Y-%m-%d"


class MalformedLineError(ValueError):
    """A single feed line could not be parsed."""


def split_csv_line(line: str) -> List[str]:
    """Split one line on commas that are not inside double quotes.

    An unbalanced quote only affects the rest of this line.
    """
    try:
        return next(csv.reader([line]), [])
    except csv.Error as e:
        raise MalformedLineError(f"unsplittable line: {e}") from e


def _field(values: List[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(values):
        return None
    return values[index]


def _parse_date(value: Optional[str]) -> date:
    if not value:
        raise MalformedLineError("missing date")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as e:
        raise MalformedLineError(f"bad date {value!r}") from e


def _parse_count(value: Optional[str]) -> Optional[int]:
    """Empty means absent; anything else must be numeric."""
    if value is None or not value.strip():
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError) as e:
        raise MalformedLineError(f"bad count {value!r}") from e


def _header_index(headers: List[str], name: str) -> Optional[int]:
    try:
        return headers.index(name)
    except ValueError:
        return None


def parse_vaccination_feed(
    raw_feed: str, is_country_data: bool
) -> List[VaccinationPoint]:
    """Build the vaccination series of a raw feed.

    Deltas are taken against the previous point of the same location, so
    the feed must already be ordered by date within each location. A feed
    without a ``date`` column yields no points.
    """
    # Each line is split on its own so a stray quote cannot swallow later lines
    lines = [line for line in raw_feed.splitlines() if line.strip()]
    if not lines:
        return []
    try:
        headers = [h.strip() for h in split_csv_line(lines[0])]
    except MalformedLineError as e:
        logger.warning(f"Vaccination feed header unreadable, skipping enrichment: {e}")
        return []

    date_index = _header_index(headers, DATE_HEADER)
    if date_index is None:
        logger.warning("Vaccination feed has no date column, skipping enrichment")
        return []
    vaccinated_index = _header_index(headers, PEOPLE_VACCINATED_HEADER)
    location_index = _header_index(headers, LOCATION_HEADER)

    points: List[VaccinationPoint] = []
    previous: Dict[Location, VaccinationPoint] = {}
    skipped = 0

    for line_num, line in enumerate(lines[1:], start=2):
        try:
            values = split_csv_line(line)
            point_date = _parse_date(_field(values, date_index))
            total = _parse_count(_field(values, vaccinated_index))
        except MalformedLineError as e:
            skipped += 1
            logger.debug(f"Skipping vaccination line {line_num}: {e}")
            continue

        if is_country_data:
            location = Location.US
        else:
            location = Location.from_name(_field(values, location_index))
        if location is None:
            skipped += 1
            continue

        if total is None:
            new_vaccinations = 0
        else:
            prior = previous.get(location)
            prior_total = prior.total_vaccinated if prior else None
            new_vaccinations = total - (prior_total or 0)

        point = VaccinationPoint(
            date=point_date,
            location=location,
            total_vaccinated=total,
            new_vaccinations=new_vaccinations,
        )
        previous[location] = point
        points.append(point)

    logger.info(
        f"Parsed {len(points)} vaccination points ({skipped} lines skipped)",
        extra={"source": "owid", "record_count": len(points)},
    )
    return points


def transform_vaccination_feed(
    raw_feed: str, is_country_data: bool
) -> List[UnifiedRecord]:
    """Build unified records from a vaccination feed alone.

    Fallback adapter for locations without a structured API: only the
    vaccination fields are populated.
    """
    return [
        UnifiedRecord(
            date=point.date,
            location=point.location,
            total_people_vaccinated=point.total_vaccinated,
            new_people_vaccinated=point.new_vaccinations,
        )
        for point in parse_vaccination_feed(raw_feed, is_country_data)
    ]
