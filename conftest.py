"""
Test configuration and shared fixtures

Every test gets its own SQLite database file (aiosqlite), so tests never
share contacts.
"""

import os
from datetime import datetime, timedelta, timezone

# Set test environment variables before importing app modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_contacts.db")
os.environ.setdefault("AUTO_CREATE_TABLES", "False")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from database import DatabaseManager
from main import app, get_identity_service
from models.contact import Contact, PRIMARY, SECONDARY
from services.identity_service import IdentityService

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def database(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'contacts.db'}")
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def service(database):
    return IdentityService(database)


@pytest_asyncio.fixture
async def client(service):
    app.dependency_overrides[get_identity_service] = lambda: service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def seed(database):
    """
    Insert a contact directly, bypassing resolution
    `minutes` offsets created_at from BASE_TIME to control seniority.
    """
    async def _seed(email=None, phone_number=None, linked_id=None, precedence=PRIMARY, minutes=0):
        async with database.get_session() as session:
            contact = Contact(
                email=email,
                phone_number=phone_number,
                linked_id=linked_id,
                link_precedence=precedence,
                created_at=BASE_TIME + timedelta(minutes=minutes),
            )
            session.add(contact)
            await session.flush()
            return contact
    return _seed


@pytest.fixture
def all_contacts(database):
    async def _all_contacts():
        async with database.get_session() as session:
            result = await session.execute(select(Contact).order_by(Contact.id))
            return {contact.id: contact for contact in result.scalars().all()}
    return _all_contacts


@pytest.fixture
def assert_link_invariants(all_contacts):
    """
    Secondaries point at primaries, primaries point nowhere, and each
    connected group has exactly one primary
    """
    async def _check():
        contacts = await all_contacts()
        for contact in contacts.values():
            if contact.link_precedence == SECONDARY:
                assert contact.linked_id in contacts
                assert contacts[contact.linked_id].link_precedence == PRIMARY
            else:
                assert contact.linked_id is None

        groups = {}
        for contact in contacts.values():
            root = contact.id if contact.link_precedence == PRIMARY else contact.linked_id
            groups.setdefault(root, []).append(contact)
        for members in groups.values():
            assert sum(1 for c in members if c.link_precedence == PRIMARY) == 1
        return contacts
    return _check
