from __future__ import annotations

from datetime import date

import pytest

from covidtracker.connectors.covid_tracking.transformer import transform_daily_records
from covidtracker.core.locations import Location


def _row(**overrides):
    row = {
        "date": 20210110,
        "state": "NY",
        "positive": 1000,
        "positiveIncrease": 50,
        "hospitalizedCurrently": 300,
        "totalTestResultsIncrease": 500,
        "negative": 4000,
    }
    row.update(overrides)
    return row


def test_maps_fields_one_to_one():
    (record,) = transform_daily_records([_row()])

    assert record.date == date(2021, 1, 10)
    assert record.location is Location.NY
    assert record.new_positive_tests == 50
    assert record.total_positive_tests == 1000
    assert record.current_hospitalizations == 300
    assert record.positive_test_rate == pytest.approx(0.1)
    assert record.total_people_vaccinated is None
    assert record.positive_test_rate_trailing_avg is None
    assert record.new_vaccinations_trailing_avg is None


def test_country_feed_tags_every_row_with_the_fixed_location():
    rows = [_row(state=None), _row(date=20210111, state="XX")]
    records = transform_daily_records(rows, location=Location.US)

    assert [r.location for r in records] == [Location.US, Location.US]


def test_empty_or_missing_fields_become_absent():
    row = _row(positive="", hospitalizedCurrently=None)
    del row["positiveIncrease"]
    (record,) = transform_daily_records([row])

    assert record.total_positive_tests is None
    assert record.current_hospitalizations is None
    assert record.new_positive_tests is None
    assert record.positive_test_rate is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"totalTestResultsIncrease": 0},
        {"totalTestResultsIncrease": None},
        {"positiveIncrease": 900},
        {"positiveIncrease": -5},
    ],
)
def test_positive_rate_absent_when_not_a_proportion(overrides):
    (record,) = transform_daily_records([_row(**overrides)])
    assert record.positive_test_rate is None


def test_malformed_rows_are_dropped_without_aborting_the_batch():
    rows = [
        _row(date=20210101),
        _row(date="not-a-date"),
        _row(date=20211345),
        _row(date=20210102, state="ZZ"),
        _row(date=20210103, positive="many"),
        None,
        _row(date="2021-01-04"),
    ]
    records = transform_daily_records(rows)

    assert [r.date for r in records] == [date(2021, 1, 1), date(2021, 1, 4)]


def test_repeated_rows_keep_the_first_occurrence():
    rows = [
        _row(state="AL", positiveIncrease=10),
        _row(state="AL", positiveIncrease=99),
        _row(state="NY"),
    ]
    records = transform_daily_records(rows)

    assert [r.location for r in records] == [Location.AL, Location.NY]
    assert records[0].new_positive_tests == 10
