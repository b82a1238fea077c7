from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from appshare.container import Services, build_services
from appshare.core.signing import HmacSignatureVerifier
from appshare.db import init_models
from appshare.gallery_cache import GalleryCache

TEST_SECRET = "test-signing-secret"


class FrozenClock:
    """Settable UTC clock for services that stamp rows."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def _enable_foreign_keys(eng: AsyncEngine) -> None:
    @event.listens_for(eng.sync_engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_foreign_keys(eng)
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def file_session_factory(tmp_path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Pooled engine on a database file, so concurrent tasks get separate connections."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'appshare.db'}")
    _enable_foreign_keys(eng)
    await init_models(eng)
    yield async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    await eng.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def cache() -> GalleryCache:
    return GalleryCache(ttl_seconds=30)


@pytest.fixture
def verifier() -> HmacSignatureVerifier:
    return HmacSignatureVerifier(TEST_SECRET)


@pytest.fixture
def services(
    session_factory: async_sessionmaker[AsyncSession],
    cache: GalleryCache,
    verifier: HmacSignatureVerifier,
    clock: FrozenClock,
) -> Services:
    return build_services(session_factory, verifier=verifier, cache=cache, clock=clock)
