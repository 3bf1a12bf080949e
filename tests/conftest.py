"""Shared pytest fixtures: in-memory store, API client and auth headers."""

import os
import uuid
from datetime import date

import pytest

# Test configuration must be in place before app.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_FORMAT"] = "text"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.core.security import create_access_token
from app.database import Database
from app.main import app
from app.models.enums import StudentStatus, UserRole
from app.models.student import Student

CLASS_A = uuid.UUID("11111111-1111-1111-1111-111111111111")
SECTION_A = uuid.UUID("33333333-3333-3333-3333-333333333333")


@pytest.fixture
async def database():
    """Fresh in-memory SQLite store per test. StaticPool keeps one shared connection."""
    db = Database("sqlite+aiosqlite://", poolclass=StaticPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database: Database):
    async with database.session() as session:
        yield session


@pytest.fixture
def api_base() -> str:
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(database: Database, api_base: str):
    """ASGI client bound to the test store. The lifespan is not run."""
    app.state.db = database
    transport = ASGITransport(app=app)
    client = AsyncClient(transport=transport, base_url=api_base, timeout=30.0)
    yield client
    await client.aclose()


def _auth_headers(role: UserRole) -> dict:
    token = create_access_token({"sub": str(uuid.uuid4()), "role": role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict:
    return _auth_headers(UserRole.SCHOOL_ADMIN)


@pytest.fixture
def user_headers() -> dict:
    """Authenticated non-admin (accountant)."""
    return _auth_headers(UserRole.ACCOUNTANT)


@pytest.fixture
def make_student(database: Database):
    """Factory inserting a student in its own session; returns the stored Student."""

    async def _make(
        admission_number: str = None,
        class_id: uuid.UUID = CLASS_A,
        admission_date: date = date(2024, 1, 10),
        first_name: str = "Ada",
        last_name: str = "Obi",
    ) -> Student:
        student = Student(
            admission_number=admission_number or f"ADM-{uuid.uuid4().hex[:8]}",
            first_name=first_name,
            last_name=last_name,
            date_of_birth=date(2012, 5, 1),
            class_id=class_id,
            section_id=SECTION_A,
            admission_date=admission_date,
            contact_number="0800000000",
            address="1 School Road",
            parent_name="Parent",
            parent_contact="0800000001",
            status=StudentStatus.ACTIVE,
        )
        async with database.session() as session:
            session.add(student)
            await session.commit()
        return student

    return _make
