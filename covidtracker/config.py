"""COVID Tracker — Central Configuration via Pydantic Settings."""

import os
from datetime import date
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Sources ──
    covid_tracking_base_url: str = "https://api.covidtracking.com/v1"
    owid_vaccinations_base_url: str = (
        "https://raw.githubusercontent.com/owid/covid-19-data/master/public/data/vaccinations"
    )
    http_timeout: float = 30.0

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    refresh_hour: int = 6  # Daily refresh at 6 AM UTC
    stale_after_hours: int = 24

    # ── Analysis ──
    vaccination_start_date: date = date(2020, 12, 14)  # First U.S. doses
    default_days_to_show: int = 90

    @property
    def effective_database_url(self) -> str:
        """Return the configured database URL, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/covidtracker.db"
        return "sqlite:///./covidtracker.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
