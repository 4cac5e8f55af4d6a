"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.domain.services.lead_service import LeadService
from app.infrastructure.handoff_store import InMemoryHandoffStore
from app.infrastructure.notifications import ReviewMessageRef
from app.infrastructure.rejection_state_store import InMemoryRejectionStateStore
from app.persistence.database import Base, get_db
from app.persistence.models import *  # noqa: F401, F403
from app.persistence.models.contact import Contact
from app.persistence.models.lead import Lead


class FakeClock:
    """Controllable clock returning naive UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 10, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def db_session():
    """Create a test database session."""
    # Use in-memory SQLite for testing
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def clock():
    """Fake clock shared by services and stores in a test."""
    return FakeClock()


@pytest.fixture
def notifier():
    """Notifier double recording every call."""
    mock = MagicMock()
    mock.post_for_review = AsyncMock(return_value=ReviewMessageRef(chat_id="-100200", message_id="42"))
    mock.update_review_message = AsyncMock(return_value=None)
    mock.notify_decision = AsyncMock(return_value=None)
    mock.send_reminder = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def handoff_store(clock):
    """In-memory handoff store on the fake clock."""
    return InMemoryHandoffStore(ttl_seconds=1800, clock=clock)


@pytest.fixture
def rejection_store():
    """In-memory rejection state store."""
    return InMemoryRejectionStateStore()


@pytest.fixture
def lead_service(db_session, notifier, handoff_store, rejection_store, clock):
    """Lead service wired to test doubles."""
    return LeadService(
        db_session,
        notifier=notifier,
        handoff_store=handoff_store,
        rejection_store=rejection_store,
        clock=clock,
        max_retries=3,
    )


@pytest.fixture
def make_contact(db_session):
    """Factory persisting a contact."""

    async def _make(phone: str, external_id: str | None = None, **fields) -> Contact:
        contact = Contact(phone=phone, external_id=external_id, **fields)
        db_session.add(contact)
        await db_session.commit()
        return contact

    return _make


@pytest.fixture
def make_lead(db_session):
    """Factory persisting a lead for a contact."""

    async def _make(contact: Contact, status: str = "FULL", **fields) -> Lead:
        data = {"full_name": "Aziz Karimov", "phone_number": contact.phone, "interests": []}
        data.update(fields)
        lead = Lead(contact_id=contact.id, status=status, **data)
        db_session.add(lead)
        await db_session.commit()
        return lead

    return _make


@pytest.fixture
async def client(db_session, notifier, handoff_store, rejection_store):
    """Create a test HTTP client against the FastAPI app."""
    from httpx import ASGITransport, AsyncClient

    from app.api.deps import get_handoff_store, get_notifier, get_rejection_store
    from app.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_handoff_store] = lambda: handoff_store
    app.dependency_overrides[get_rejection_store] = lambda: rejection_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
