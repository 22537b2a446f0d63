"""COVID Tracker — Persistence Gateway.

Sole write path for the unified dataset. The dataset is always replaced as
a whole: ``replace_all`` clears and inserts inside one transaction, holding
a process-wide writer lock so two replacements never interleave.
"""

import threading
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from covidtracker.core.locations import Location
from covidtracker.core.logging import get_logger
from covidtracker.models.covid_models import CovidDataRow, RefreshStatus, UnifiedRecord

logger = get_logger("storage.gateway")

_WRITE_LOCK = threading.Lock()


class PersistenceError(Exception):
    """Raised when the store cannot be read or written."""


class CovidDataGateway:
    """Clear-and-replace access to the persisted unified dataset."""

    def __init__(self, engine: Engine):
        self.engine = engine

    # ── Writes ──

    def clear_all(self) -> None:
        """Remove every stored record."""
        with _WRITE_LOCK:
            try:
                with Session(self.engine) as session:
                    session.exec(delete(CovidDataRow))  # type: ignore[call-overload]
                    session.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(f"Clearing covid data failed: {e}") from e

    def insert(self, records: Iterable[UnifiedRecord]) -> int:
        """Bulk-write records. Returns how many were written."""
        rows = [CovidDataRow.from_record(r) for r in records]
        with _WRITE_LOCK:
            try:
                with Session(self.engine) as session:
                    session.add_all(rows)
                    session.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(f"Inserting covid data failed: {e}") from e
        return len(rows)

    def replace_all(self, records: Iterable[UnifiedRecord]) -> int:
        """Clear the dataset and write ``records`` as one unit of work.

        On failure the transaction rolls back and the previous dataset stays.
        """
        rows = [CovidDataRow.from_record(r) for r in records]
        with _WRITE_LOCK:
            try:
                with Session(self.engine) as session:
                    session.exec(delete(CovidDataRow))  # type: ignore[call-overload]
                    session.add_all(rows)
                    session.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(f"Replacing covid data failed: {e}") from e

        logger.info(
            f"Replaced covid dataset with {len(rows)} records",
            extra={"record_count": len(rows)},
        )
        return len(rows)

    def mark_refreshed(self, record_count: int) -> None:
        """Record the time of a successful reconciliation run."""
        try:
            with Session(self.engine) as session:
                status = session.get(RefreshStatus, 1) or RefreshStatus(id=1)
                status.refreshed_at = _now()
                status.record_count = record_count
                session.add(status)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Saving refresh status failed: {e}") from e

    # ── Reads ──

    def get_records(self, location: Location, after_date: date) -> List[UnifiedRecord]:
        """Records for ``location`` dated on or after ``after_date``, oldest first."""
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(CovidDataRow)
                    .where(
                        CovidDataRow.location == location.code,
                        CovidDataRow.date >= after_date,
                    )
                    .order_by(CovidDataRow.date)  # type: ignore[arg-type]
                ).all()
                return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Reading covid data failed: {e}") from e

    def count(self) -> int:
        try:
            with Session(self.engine) as session:
                return session.exec(select(func.count()).select_from(CovidDataRow)).one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Counting covid data failed: {e}") from e

    def last_refreshed(self) -> Optional[RefreshStatus]:
        """The last successful refresh, or ``None`` if there never was one."""
        try:
            with Session(self.engine) as session:
                return session.get(RefreshStatus, 1)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Reading refresh status failed: {e}") from e


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_stale(status: Optional[RefreshStatus], max_age_hours: int) -> bool:
    """True when no refresh happened or the last one is older than ``max_age_hours``."""
    if status is None:
        return True
    refreshed_at = status.refreshed_at
    # SQLite drops tzinfo on the way back
    if refreshed_at.tzinfo is None:
        refreshed_at = refreshed_at.replace(tzinfo=timezone.utc)
    age = _now() - refreshed_at
    return age.total_seconds() > max_age_hours * 3600
