from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from covidtracker.analyzer.pipeline import ReconciliationPipeline, get_pipeline
from covidtracker.core.locations import Location
from covidtracker.database import get_gateway
from covidtracker.main import app
from covidtracker.models.covid_models import UnifiedRecord


class StubPipeline(ReconciliationPipeline):
    def __init__(self, gateway, outcome: bool):
        super().__init__(gateway)
        self.outcome = outcome
        self.calls = 0

    async def refresh(self) -> bool:
        self.calls += 1
        return self.outcome


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.mark.integration
def test_records_filtered_by_location_and_date(client, gateway):
    gateway.replace_all(
        [
            UnifiedRecord(date=date(2021, 1, 2), location=Location.NY, positive_test_rate=0.1),
            UnifiedRecord(date=date(2021, 1, 1), location=Location.NY),
            UnifiedRecord(date=date(2020, 12, 31), location=Location.NY),
            UnifiedRecord(date=date(2021, 1, 2), location=Location.NJ),
        ]
    )

    resp = client.get("/records", params={"location": "ny", "after": "2021-01-01"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["location"] == "NY"
    assert body["count"] == 2
    assert [r["date"] for r in body["records"]] == ["2021-01-01", "2021-01-02"]
    assert body["records"][1]["positive_test_rate"] == 0.1
    assert body["records"][1]["location"] == "NY"


@pytest.mark.integration
def test_records_default_to_a_look_back_window(client, gateway):
    today = datetime.now(timezone.utc).date()
    gateway.replace_all(
        [
            UnifiedRecord(date=today - timedelta(days=2), location=Location.US),
            UnifiedRecord(date=today - timedelta(days=400), location=Location.US),
        ]
    )

    assert client.get("/records", params={"location": "US"}).json()["count"] == 1
    assert client.get("/records", params={"location": "US", "days": 500}).json()["count"] == 2


@pytest.mark.integration
@pytest.mark.parametrize(
    "params",
    [
        {"location": "ZZ"},
        {"location": "NY", "after": "01/02/2021"},
    ],
)
def test_records_rejects_bad_input(client, params):
    assert client.get("/records", params=params).status_code == 400


@pytest.mark.integration
@pytest.mark.parametrize("outcome,status", [(True, "success"), (False, "failed")])
def test_refresh_reports_pipeline_outcome(client, gateway, outcome, status):
    pipeline = StubPipeline(gateway, outcome)
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    resp = client.post("/refresh")

    assert resp.status_code == 200
    assert resp.json() == {"status": status, "success": outcome}
    assert pipeline.calls == 1


@pytest.mark.integration
def test_status_before_and_after_refresh(client, gateway):
    assert client.get("/status").json()["status"] == "never_updated"

    gateway.mark_refreshed(7)
    body = client.get("/status").json()

    assert body["status"] == "success"
    assert body["stale"] is False
    assert body["record_count"] == 7


@pytest.mark.integration
def test_locations_and_health(client):
    locations = client.get("/locations").json()

    assert {"code": "NY", "name": "New York", "is_country": False} in locations
    assert len(locations) == len(Location)
    assert client.get("/health").json()["status"] == "healthy"
