"""COVID Tracker — COVID Tracking Project Endpoints.

Fetch functions for the structured daily-statistics API.
"""

from typing import Any, Dict, List

from covidtracker.config import settings
from covidtracker.connectors.client import SourceAPIError, SourceClient
from covidtracker.core.logging import get_logger

logger = get_logger("covid_tracking.endpoints")


class CovidTrackingEndpoints:
    """Fetch raw daily records from the COVID Tracking Project API."""

    def __init__(self, client: SourceClient, base_url: str | None = None):
        self.client = client
        self.base_url = (base_url or settings.covid_tracking_base_url).rstrip("/")

    async def _fetch_list(self, path: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{path}"
        data = await self.client.get_json(url)
        if not isinstance(data, list):
            raise SourceAPIError(f"Expected a JSON list from {url}", url=url)
        logger.info(
            f"Fetched {len(data)} records from {path}",
            extra={"source": "covid_tracking", "record_count": len(data)},
        )
        return data

    async def fetch_state_daily(self) -> List[Dict[str, Any]]:
        """Per-state, per-day records."""
        return await self._fetch_list("states/daily.json")

    async def fetch_us_daily(self) -> List[Dict[str, Any]]:
        """Country-aggregated per-day records."""
        return await self._fetch_list("us/daily.json")
