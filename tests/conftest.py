"""Shared test fixtures for the CoworkHub reconciliation tests.

Uses a file-based SQLite database so tests run without PostgreSQL.
"""

from __future__ import annotations

import os

# Override DATABASE_URL before importing anything from coworkhub; the
# module-level ``engine`` in coworkhub.core.database reads it at import.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from coworkhub.core.config import Settings
from coworkhub.core.database import Base, get_db
from coworkhub.main import app
from coworkhub.models.enums import PaymentStatus
from coworkhub.models.payment import RecordedPayment

TEST_DATABASE_URL = "sqlite:///./test.db"

TENANT = "tenant-test"
USER = "operator-1"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with overridden DB dependency."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def config() -> Settings:
    return Settings(database_url=TEST_DATABASE_URL)


@pytest.fixture
def headers() -> dict[str, str]:
    return {"X-Tenant-ID": TENANT, "X-User-ID": USER}


@pytest.fixture
def make_payment(db_session):
    """Factory that persists a recorded payment and returns it."""

    def _make(
        amount: str = "250.00",
        reference: str | None = "INV-42",
        processed_at: datetime = datetime(2024, 1, 5, 10, 0),
        tenant_id: str = TENANT,
        status: PaymentStatus = PaymentStatus.COMPLETED,
        description: str | None = None,
    ) -> RecordedPayment:
        payment = RecordedPayment(
            id=uuid.uuid4(),
            tenant_id=tenant_id,
            amount=Decimal(amount),
            currency="USD",
            reference=reference,
            description=description,
            status=status,
            processed_at=processed_at,
        )
        db_session.add(payment)
        db_session.commit()
        return payment

    return _make
