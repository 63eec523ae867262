"""Shared fixtures: in-memory cache with a controllable clock, SQLite indexer."""

import pytest
from sqlmodel import SQLModel, create_engine

from core.cache import CacheService
from core.config import Settings
from fakes import FakeClock, SqliteDatabase
from services.fetcher import CachedFetcher

import models.explorer  # noqa: F401  registers the indexer tables


@pytest.fixture
def settings():
    return Settings(_env_file=None, redis_enabled=False, cache_ttl=60)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(settings, clock):
    return CacheService(settings, clock=clock)


@pytest.fixture
def fetcher(cache):
    return CachedFetcher(cache, lock_ttl=30, lock_wait=1.0, poll_interval=0.01)


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sqlite_db(engine):
    return SqliteDatabase(engine)
