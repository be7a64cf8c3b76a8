"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches Docker secrets or a production database.
"""

import os, uuid

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite://",
    "POSTGRES_PASSWORD": "testpassword",
    "APP_SECRET_KEY": "test-secret-key-for-jwt-signing",
    "PUBLIC_BASE_URL": "https://test.example.com",
    "SHARE_SWEEP_INTERVAL_SECONDS": "0",
})

import pytest

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Now safe to import application code
from models.base import Base, get_db
from models import Document, DocumentStatus, Role, User
from auth.jwt import create_access_token


# ── SQLite async engine ───────────────────────────────────────────────
_test_engine = create_async_engine("sqlite+aiosqlite://", echo=False)
_TestSession = async_sessionmaker(_test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def _create_tables():
    """Create and drop SQLite tables around every test."""
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session():
    """Yield a test DB session with auto-rollback."""
    async with _TestSession() as session:
        yield session


@pytest.fixture
async def test_client(db_session: AsyncSession):
    """HTTPX async client wired to the FastAPI app, with DB override.

    The startup event is NOT run (tables come from ``_create_tables``).
    """
    from main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db_session: AsyncSession, email: str, role: Role = Role.USER) -> dict:
    from passlib.hash import bcrypt

    user_id = uuid.uuid4()
    db_session.add(User(id=user_id, email=email, hashed_password=bcrypt.using(rounds=4).hash("password123"), role=role))
    await db_session.commit()
    token = create_access_token(user_id)
    return {
        "id": user_id,
        "email": email,
        "access_token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture
async def registered_user(db_session: AsyncSession) -> dict:
    """Insert a user and return ``{id, email, access_token, headers}``."""
    return await _make_user(db_session, "test@example.com")


@pytest.fixture
async def other_user(db_session: AsyncSession) -> dict:
    return await _make_user(db_session, "other@example.com")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> dict:
    return await _make_user(db_session, "admin@example.com", role=Role.ADMIN)


@pytest.fixture
def auth_headers(registered_user: dict) -> dict[str, str]:
    """Authorization header for the registered test user."""
    return registered_user["headers"]


@pytest.fixture
async def owned_document(db_session: AsyncSession, registered_user: dict) -> dict:
    """A document owned by ``registered_user``; returns plain values, not the ORM row."""
    doc_id = uuid.uuid4()
    db_session.add(Document(
        id=doc_id,
        user_id=registered_user["id"],
        file_name="passport.pdf",
        file_url="https://objects.example.com/vault/passport.pdf",
        document_type="passport",
        tags=["travel", "id"],
        status=DocumentStatus.PENDING,
    ))
    await db_session.commit()
    return {"id": doc_id, "file_url": "https://objects.example.com/vault/passport.pdf"}
