"""Pytest fixtures and configuration."""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-at-least-32-characters-long")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IMAGE_HOST_CLOUD_NAME", "")

import memehub.models  # noqa: E402, F401
from memehub.database import Base, enable_sqlite_savepoints, get_db  # noqa: E402
from memehub.main import app  # noqa: E402
from memehub.models.meme import Meme  # noqa: E402
from memehub.models.user import User  # noqa: E402
from memehub.utils.security import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "securepassword123"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite database with the full schema.

    StaticPool keeps the single in-memory connection alive, so sessions that
    use it must not overlap.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """A session for service-level tests. Uncommitted work is rolled back on close."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints against the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user() -> Callable:
    """Factory that adds a user to the given session."""

    async def _make_user(
        session: AsyncSession,
        username: str = "testuser",
        email: str | None = None,
        password: str = TEST_PASSWORD,
        is_active: bool = True,
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=hash_password(password),
            profile_picture="",
            bio="",
            is_active=is_active,
        )
        session.add(user)
        await session.flush()
        return user

    return _make_user


@pytest.fixture
def make_meme() -> Callable:
    """Factory that adds a meme to the given session."""

    async def _make_meme(
        session: AsyncSession,
        creator: User,
        title: str = "Test meme",
        tags: list[str] | None = None,
        upvotes: int = 0,
        downvotes: int = 0,
        views: int = 0,
        created_at: datetime | None = None,
    ) -> Meme:
        meme = Meme(
            title=title,
            image_url="https://res.example.com/demo/image/upload/v1/meme.png",
            creator_id=creator.id,
            tags=tags or [],
            upvotes=upvotes,
            downvotes=downvotes,
            views=views,
        )
        if created_at is not None:
            meme.created_at = created_at
        session.add(meme)
        await session.flush()
        return meme

    return _make_meme


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build an Authorization header carrying a valid token for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
