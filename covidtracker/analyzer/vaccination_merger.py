"""COVID Tracker — Vaccination Merger.

Left-joins cumulative vaccination counts from a raw feed onto unified
records by exact (date, location).
"""

from datetime import date
from typing import Dict, List

from covidtracker.connectors.owid.transformer import parse_vaccination_feed
from covidtracker.core.locations import Location
from covidtracker.core.logging import get_logger
from covidtracker.models.covid_models import UnifiedRecord, VaccinationPoint

logger = get_logger("analyzer.vaccination_merger")


def merge_vaccinations(
    raw_feed: str,
    records: List[UnifiedRecord],
    is_country_data: bool,
) -> List[UnifiedRecord]:
    """Return ``records`` enriched with vaccination totals and daily deltas.

    Output has the same length and order as the input. Records without a
    matching vaccination point are returned unchanged.
    """
    points = parse_vaccination_feed(raw_feed, is_country_data)
    if not points:
        return list(records)

    # First point wins when a feed repeats a (date, location)
    by_key: Dict[tuple[date, Location], VaccinationPoint] = {}
    for point in points:
        by_key.setdefault((point.date, point.location), point)

    merged: List[UnifiedRecord] = []
    matched = 0
    for record in records:
        point = by_key.get(record.key)
        if point is None:
            merged.append(record)
            continue
        matched += 1
        merged.append(
            record.model_copy(
                update={
                    "total_people_vaccinated": point.total_vaccinated,
                    "new_people_vaccinated": point.new_vaccinations,
                }
            )
        )

    scope = "country" if is_country_data else "regional"
    logger.info(
        f"Merged vaccinations into {matched}/{len(records)} {scope} records",
        extra={"record_count": matched},
    )
    return merged
