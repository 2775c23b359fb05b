"""Shared fixtures: a throwaway SQLite alert store per test."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from alertgrid.config import Settings
from alertgrid.database import get_session_maker, init_db, rebuild_grid_tables
from alertgrid.models import Alert
from alertgrid.schemas.grid import DAY_MS

# Reference "now" used across tests (2023-11-14T22:13:20Z)
T0 = 1_700_000_000_000


def days_ago(days: float) -> int:
    """Timestamp a number of days before T0."""
    return int(T0 - days * DAY_MS)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'alerts.sqlite'}"


@pytest.fixture
async def engine(db_url):
    """Engine with the alerts and grid tables created."""
    engine = create_async_engine(db_url)
    await init_db(engine)
    await rebuild_grid_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return get_session_maker(engine)


@pytest.fixture
def settings(db_url):
    return Settings(
        database_url=db_url,
        waze_area_top=1.0,
        waze_area_bottom=-1.0,
        waze_area_left=-1.0,
        waze_area_right=1.0,
    )


@pytest.fixture
def add_alerts(session_maker):
    """Insert alerts given as (pub_millis, longitude, latitude) tuples."""
    counter = {"n": 0}

    async def _add(*alerts: tuple[int, float | None, float | None]) -> None:
        async with session_maker() as db:
            for pub_millis, lon, lat in alerts:
                counter["n"] += 1
                db.add(
                    Alert(
                        uuid=f"alert-{counter['n']}",
                        pub_millis=pub_millis,
                        longitude=lon,
                        latitude=lat,
                        confidence=0,
                        reliability=5,
                    )
                )
            await db.commit()

    return _add
