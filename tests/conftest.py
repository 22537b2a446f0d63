from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from covidtracker.core.locations import Location
from covidtracker.models import covid_models  # noqa: F401  (registers tables)
from covidtracker.models.covid_models import UnifiedRecord
from covidtracker.storage.gateway import CovidDataGateway


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def gateway(engine) -> CovidDataGateway:
    return CovidDataGateway(engine)


@pytest.fixture
def make_series():
    """Build consecutive daily records for one location."""

    def _make(
        location: Location,
        start: date,
        *,
        rates: list | None = None,
        new_vaccinations: list | None = None,
    ) -> list[UnifiedRecord]:
        length = len(rates if rates is not None else new_vaccinations or [])
        return [
            UnifiedRecord(
                date=start + timedelta(days=i),
                location=location,
                positive_test_rate=rates[i] if rates is not None else None,
                new_people_vaccinated=new_vaccinations[i] if new_vaccinations is not None else None,
            )
            for i in range(length)
        ]

    return _make
