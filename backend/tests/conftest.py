"""共用測試設定"""

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base
from app.schemas.report import WeatherReading


READING = WeatherReading(temperature=25.5, pressure=1013.2, humidity=60.0, cloud_cover=30.0)


class FakeWeatherSource:
    """記錄呼叫次數的假天氣資料來源"""

    def __init__(self, reading=READING, error=None, delay=0.0):
        self.reading = reading
        self.error = error
        self.delay = delay
        self.current_calls = 0
        self.historical_calls = []

    async def get_current(self):
        self.current_calls += 1
        return await self._respond()

    async def get_historical(self, timestamp):
        self.historical_calls.append(timestamp)
        return await self._respond()

    async def _respond(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reading


def utc(*args) -> datetime:
    """建立 UTC datetime"""
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """記憶體 SQLite，每個測試重建資料表"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_source():
    return FakeWeatherSource()
