"""COVID Tracker — Reconciliation Pipeline.

Runs one full reconciliation cycle:
  fetch (concurrently) → adapt → merge vaccinations → trailing averages → replace dataset

A run reports a single boolean outcome; no exception escapes ``refresh()``.
Concurrent ``refresh()`` calls on one pipeline share the in-flight run.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from covidtracker.analyzer.rolling_average_engine import compute_trailing_averages
from covidtracker.analyzer.vaccination_merger import merge_vaccinations
from covidtracker.connectors.client import SourceClient
from covidtracker.connectors.covid_tracking.endpoints import CovidTrackingEndpoints
from covidtracker.connectors.covid_tracking.transformer import transform_daily_records
from covidtracker.connectors.owid.endpoints import OurWorldInDataEndpoints
from covidtracker.core.locations import Location
from covidtracker.core.logging import get_logger
from covidtracker.database import get_gateway
from covidtracker.models.covid_models import UnifiedRecord
from covidtracker.storage.gateway import CovidDataGateway

logger = get_logger("analyzer.pipeline")


@dataclass(frozen=True)
class SourcePayloads:
    """Raw payloads of every source needed for one run."""

    state_daily: List[Dict[str, Any]]
    us_daily: List[Dict[str, Any]]
    us_vaccinations: str
    state_vaccinations: str


async def fetch_all_sources(client: SourceClient | None = None) -> SourcePayloads:
    """Fetch all four sources concurrently. Any failure raises."""
    owns_client = client is None
    client = client or SourceClient()
    tracking = CovidTrackingEndpoints(client)
    owid = OurWorldInDataEndpoints(client)

    try:
        results = await asyncio.gather(
            tracking.fetch_state_daily(),
            tracking.fetch_us_daily(),
            owid.fetch_us_vaccinations(),
            owid.fetch_state_vaccinations(),
            return_exceptions=True,
        )
    finally:
        if owns_client:
            await client.close()

    for result in results:
        if isinstance(result, BaseException):
            raise result

    state_daily, us_daily, us_vaccinations, state_vaccinations = results
    return SourcePayloads(
        state_daily=state_daily,
        us_daily=us_daily,
        us_vaccinations=us_vaccinations,
        state_vaccinations=state_vaccinations,
    )


def build_unified_dataset(
    payloads: SourcePayloads,
    vaccination_start: date | None = None,
) -> List[UnifiedRecord]:
    """Pure part of a run: adapt, merge and average the fetched payloads."""
    # ── Adapt ──
    state_records = transform_daily_records(payloads.state_daily)
    us_records = transform_daily_records(payloads.us_daily, location=Location.US)

    # ── Merge vaccinations, once per scope ──
    state_records = merge_vaccinations(
        payloads.state_vaccinations, state_records, is_country_data=False
    )
    us_records = merge_vaccinations(
        payloads.us_vaccinations, us_records, is_country_data=True
    )

    # ── Trailing averages ──
    return compute_trailing_averages(state_records + us_records, vaccination_start)


Fetcher = Callable[[], Awaitable[SourcePayloads]]


class ReconciliationPipeline:
    """Owns the fetch → merge → average → persist cycle."""

    def __init__(
        self,
        gateway: CovidDataGateway,
        fetcher: Fetcher = fetch_all_sources,
        vaccination_start: date | None = None,
    ):
        self.gateway = gateway
        self.fetcher = fetcher
        self.vaccination_start = vaccination_start
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    async def refresh(self) -> bool:
        """Run a reconciliation cycle, or join the one already running.

        Cancelling the caller does not cancel the run; it still finishes
        its write.
        """
        if not self.running:
            self._in_flight = asyncio.create_task(self._run())
        else:
            logger.info("Reconciliation already in progress, joining it")
        return await asyncio.shield(self._in_flight)

    async def _run(self) -> bool:
        started = time.monotonic()
        logger.info("Starting reconciliation run")

        # ── Step 1: Fetch ──
        try:
            payloads = await self.fetcher()
        except Exception as e:
            logger.error(f"Source fetch failed, dataset left untouched: {e}")
            return False

        # ── Step 2: Adapt, merge, average ──
        try:
            records = build_unified_dataset(payloads, self.vaccination_start)
        except Exception:
            logger.exception("Building the unified dataset failed")
            return False

        # ── Step 3: Replace persisted dataset ──
        try:
            written = await asyncio.to_thread(self.gateway.replace_all, records)
        except Exception as e:
            logger.error(f"Persisting unified dataset failed: {e}")
            return False

        try:
            await asyncio.to_thread(self.gateway.mark_refreshed, written)
        except Exception as e:
            logger.warning(f"Could not record refresh time: {e}")

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Reconciliation complete: {written} records",
            extra={"record_count": written, "duration_ms": duration_ms},
        )
        return True


_pipeline: Optional[ReconciliationPipeline] = None


def get_pipeline() -> ReconciliationPipeline:
    """Process-wide pipeline, so every trigger shares one in-flight run."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ReconciliationPipeline(get_gateway())
    return _pipeline
