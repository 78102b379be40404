"""
Test configuration

Fixtures: a throwaway SQLite database per test, an API client bound to the
app over ASGITransport, signed-in users, and a temporary file store.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from jobtracker.auth import create_session_token
from jobtracker.database import Base, get_db
from jobtracker.main import create_app
from jobtracker.models import Application, Profile, User
from jobtracker.services.storage import FileStorage, get_storage

TEST_SECRET = "test-secret"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    return FileStorage(str(tmp_path / "storage"), TEST_SECRET, "http://test")


@pytest.fixture
def app(session_factory, storage):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ========== Users and data ==========

@dataclass
class SignedInUser:
    user: User
    token: str
    headers: dict = field(default_factory=dict)


async def make_user(db: AsyncSession, subject: str, email: str) -> SignedInUser:
    user = User(provider="github", provider_subject=subject, email=email, display_name=subject)
    db.add(user)
    await db.flush()
    db.add(Profile(id=user.id, full_name=subject))
    await db.commit()
    await db.refresh(user)

    token, _ = create_session_token(user.id)
    return SignedInUser(user=user, token=token, headers={"Authorization": f"Bearer {token}"})


@pytest_asyncio.fixture
async def alice(db_session) -> SignedInUser:
    return await make_user(db_session, "alice", "alice@example.com")


@pytest_asyncio.fixture
async def bob(db_session) -> SignedInUser:
    return await make_user(db_session, "bob", "bob@example.com")


async def add_application(db: AsyncSession, owner: User, **overrides) -> Application:
    data = {
        "company": "Acme",
        "position": "Engineer",
        "status": "applied",
        "date_applied": date(2024, 1, 1),
        **overrides,
    }
    application = Application(user_id=owner.id, **data)
    db.add(application)
    await db.commit()
    await db.refresh(application)
    return application


@pytest.fixture
def seed(db_session):
    """Insert an application for a user directly, bypassing the API."""

    async def _seed(owner: SignedInUser, **overrides) -> Application:
        return await add_application(db_session, owner.user, **overrides)

    return _seed


# ========== Client-side records ==========

@pytest.fixture
def make_record():
    """Build ApplicationResponse records without a server."""
    from itertools import count
    from jobtracker.schemas import ApplicationResponse

    ids = count(1)

    def _make(**overrides) -> ApplicationResponse:
        data = {
            "id": f"rec-{next(ids)}",
            "user_id": "user-1",
            "company": "Acme",
            "position": "Engineer",
            "status": "applied",
            "date_applied": date(2024, 1, 1),
            **overrides,
        }
        return ApplicationResponse(**data)

    return _make
