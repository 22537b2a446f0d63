"""COVID Tracker — Data & Refresh API Routes."""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from covidtracker.config import settings
from covidtracker.database import get_gateway
from covidtracker.analyzer.pipeline import ReconciliationPipeline, get_pipeline
from covidtracker.core.locations import Location
from covidtracker.models.covid_models import UnifiedRecord
from covidtracker.storage.gateway import CovidDataGateway, PersistenceError, is_stale
from covidtracker.core.logging import get_logger

logger = get_logger("api.covid")

router = APIRouter(tags=["COVID Data"])


# ── Response Models ──


class RecordsResponse(BaseModel):
    """Response for GET /records."""

    status: str = "success"
    location: str
    after: date
    count: int
    records: List[UnifiedRecord]


class RefreshResponse(BaseModel):
    """Response for POST /refresh."""

    status: str
    success: bool


class LocationInfo(BaseModel):
    code: str
    name: str
    is_country: bool


# ── Helpers ──


def _resolve_after_date(after: Optional[str], days: Optional[int]) -> date:
    """``after`` wins over ``days``; default is the configured look-back."""
    if after:
        try:
            return datetime.strptime(after, "%Y-%m-%d").date()
        except ValueError:
            raise HTTPException(
                status_code=400, detail=f"Invalid date {after!r}, expected YYYY-MM-DD"
            )
    lookback = days if days is not None else settings.default_days_to_show
    return datetime.now(timezone.utc).date() - timedelta(days=lookback)


# ── Endpoints ──


@router.get("/records", response_model=RecordsResponse)
async def get_records(
    location: str = Query(..., description="Location code, e.g. US or NY"),
    after: Optional[str] = Query(None, description="Earliest date (YYYY-MM-DD)"),
    days: Optional[int] = Query(None, ge=1, description="Look back this many days"),
    gateway: CovidDataGateway = Depends(get_gateway),
):
    """Stored records for one location, oldest first."""
    loc = Location.from_code(location)
    if loc is None:
        raise HTTPException(status_code=400, detail=f"Unknown location {location!r}")
    after_date = _resolve_after_date(after, days)

    try:
        records = gateway.get_records(loc, after_date)
    except PersistenceError as e:
        logger.error(f"Reading records failed: {e}")
        raise HTTPException(status_code=500, detail="Could not read stored data")

    return RecordsResponse(
        location=loc.code, after=after_date, count=len(records), records=records
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_now(pipeline: ReconciliationPipeline = Depends(get_pipeline)):
    """Run a full reconciliation cycle and report whether it succeeded."""
    success = await pipeline.refresh()
    return RefreshResponse(status="success" if success else "failed", success=success)


@router.get("/status")
async def get_status(gateway: CovidDataGateway = Depends(get_gateway)):
    """When the dataset was last refreshed and whether it is stale."""
    try:
        status = gateway.last_refreshed()
    except PersistenceError as e:
        logger.error(f"Reading refresh status failed: {e}")
        raise HTTPException(status_code=500, detail="Could not read refresh status")

    if status is None:
        return {"status": "never_updated", "stale": True, "refreshed_at": None, "record_count": 0}

    return {
        "status": "success",
        "stale": is_stale(status, settings.stale_after_hours),
        "refreshed_at": status.refreshed_at.isoformat(),
        "record_count": status.record_count,
    }


@router.get("/locations", response_model=List[LocationInfo])
async def list_locations():
    """Every location the tracker reports on."""
    return [
        LocationInfo(code=loc.code, name=loc.display_name, is_country=loc.is_country)
        for loc in Location
    ]
