import os

# must be set before src.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFICATION_WEBHOOK_URL", "")

import pytest

from src.config.database import async_session_maker, engine
from src.invitations.locks import KeyedLocks
from src.invitations.repository import orm_models  # noqa: F401
from src.invitations.tests.inmemory_repositories import (
    InMemoryBatchInvitationRepository,
    InMemoryConfirmationRepository,
    InMemoryInvitationRepository,
)
from src.invitations.tests.recording_publisher import RecordingNotificationPublisher
from src.models.base import BaseModel


@pytest.fixture(scope="function")
async def db_session():
    """A session on a freshly created in-memory SQLite schema."""
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    async with async_session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)
    # the pooled connection belongs to this test's event loop
    await engine.dispose()


@pytest.fixture
def invitation_repository() -> InMemoryInvitationRepository:
    return InMemoryInvitationRepository()


@pytest.fixture
def batch_invitation_repository() -> InMemoryBatchInvitationRepository:
    return InMemoryBatchInvitationRepository()


@pytest.fixture
def confirmation_repository() -> InMemoryConfirmationRepository:
    return InMemoryConfirmationRepository()


@pytest.fixture
def publisher() -> RecordingNotificationPublisher:
    return RecordingNotificationPublisher()


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks()
