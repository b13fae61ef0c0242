# ============================================================================
# FILE: test/conftest.py
# Shared fixtures for ALL test suites
# ============================================================================

import pytest
import pytest_asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from api.app import create_app
from db.db import get_db
from db.models import Base, CouponModel, ClaimRecordModel
from coupon_allocator.utils.datetime_utils import get_current_datetime


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """
    File-backed SQLite engine, fresh per test.

    A file (not :memory:) so that worker threads get their own
    connections and see each other's commits.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'coupons_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30}
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Provide a database session per test."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def app(session_factory):
    """FastAPI app whose get_db hands out one session per request."""
    application = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app):
    """Provide FastAPI test client with test database."""
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def async_client(app):
    """Async client for firing truly concurrent requests at the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_coupons(db_session):
    """Insert unclaimed coupons with predictable codes."""
    def _make(count, prefix="CODE", claimed=False):
        now = get_current_datetime()
        coupons = [
            CouponModel(
                code=f"{prefix}-{i:04d}",
                is_claimed=claimed,
                created_at=now,
                claimed_at=now if claimed else None
            )
            for i in range(count)
        ]
        db_session.add_all(coupons)
        db_session.commit()
        return coupons
    return _make


@pytest.fixture
def make_claim_record(db_session):
    """Insert a claim record made `age_seconds` ago."""
    def _make(identity, age_seconds=0, window_seconds=3600):
        claimed_at = get_current_datetime() - timedelta(seconds=age_seconds)
        record = ClaimRecordModel(
            identity=identity,
            claimed_at=claimed_at,
            expires_at=claimed_at + timedelta(seconds=window_seconds)
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _make
