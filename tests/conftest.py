"""Shared test fixtures and configuration."""

import os
import pytest
from datetime import datetime, timedelta
from typing import Dict, Any

# Set up test environment variables before importing modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing."""
    from payment_records.database import create_async_engine, create_all_tables

    engine = create_async_engine(
        database_url="sqlite+aiosqlite:///:memory:",
        echo=False
    )
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a database session for testing."""
    from payment_records.database import get_async_session_factory

    session_factory = get_async_session_factory(db_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session):
    """Create a PaymentRecordStore over the test session."""
    from payment_records import PaymentRecordStore

    return PaymentRecordStore(db_session)


@pytest.fixture
def payment_session_data() -> Dict[str, Any]:
    """Return payment session data as the payments extension sends it."""
    return {
        "id": "pay_001",
        "gid": "gid://shopify/PaymentSession/1",
        "group": "grp_001",
        "amount": "12.50",
        "currency": "USD",
        "test": True,
        "kind": "sale",
        "paymentMethod": {"type": "offsite", "data": {"cancel_url": "https://shop.test/cancel"}},
        "customer": {"email": "buyer@example.com", "locale": "en"},
        "proposedAt": "2026-10-01T12:00:00Z",
        "cancelUrl": "https://shop.test/cancel",
    }


@pytest.fixture
async def payment_session(store, payment_session_data):
    """Create and return a stored payment session."""
    return await store.create_payment_session(payment_session_data)


@pytest.fixture
def proposed_times():
    """Return a factory of distinct proposal timestamps, oldest first."""
    base = datetime(2026, 10, 1, 9, 0, 0)

    def _at(index: int) -> datetime:
        return base + timedelta(minutes=index)

    return _at
