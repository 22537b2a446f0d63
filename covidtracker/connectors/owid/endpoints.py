"""COVID Tracker — Our World in Data Vaccination Endpoints.

The vaccination feeds are plain CSV files; they are returned undecoded and
parsed by the vaccination merger.
"""

from covidtracker.config import settings
from covidtracker.connectors.client import SourceClient
from covidtracker.core.logging import get_logger

logger = get_logger("owid.endpoints")

US_VACCINATIONS_PATH = "country_data/United%20States.csv"
STATE_VACCINATIONS_PATH = "us_state_vaccinations.csv"


class OurWorldInDataEndpoints:
    """Fetch raw vaccination CSV feeds."""

    def __init__(self, client: SourceClient, base_url: str | None = None):
        self.client = client
        self.base_url = (base_url or settings.owid_vaccinations_base_url).rstrip("/")

    async def _fetch_csv(self, path: str) -> str:
        text = await self.client.get_text(f"{self.base_url}/{path}")
        logger.info(
            f"Fetched {len(text)} bytes from {path}", extra={"source": "owid"}
        )
        return text

    async def fetch_us_vaccinations(self) -> str:
        return await self._fetch_csv(US_VACCINATIONS_PATH)

    async def fetch_state_vaccinations(self) -> str:
        return await self._fetch_csv(STATE_VACCINATIONS_PATH)
