"""Shared test fixtures: in-memory SQLite engine, local provider, ASGI client."""

import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_PROVIDER", "local")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import hotelhub.models  # noqa: F401, E402
from hotelhub.auth.container import build_auth_services  # noqa: E402
from hotelhub.auth.local_provider import LocalAuthProvider  # noqa: E402
from hotelhub.auth.login_attempts import LoginAttemptTracker  # noqa: E402
from hotelhub.core.config import get_settings  # noqa: E402
from hotelhub.core.database import get_session  # noqa: E402
from hotelhub.main import app  # noqa: E402
from hotelhub.models.hotel import Hotel, HotelStatus  # noqa: E402
from hotelhub.models.profile import Profile, UserRole  # noqa: E402

PASSWORD = "correct-horse-42"


@pytest.fixture
async def engine():
    # One shared connection so every session sees the same in-memory DB
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def unreachable_factory(tmp_path):
    """Session factory for a database file that cannot be opened."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'hotelhub.db'}")
    yield sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    await eng.dispose()


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as sess:
        yield sess


@pytest.fixture
def provider(session_factory) -> LocalAuthProvider:
    return LocalAuthProvider(session_factory, LoginAttemptTracker(session_factory, max_failed=3))


@pytest.fixture
def services(session_factory, provider):
    services = build_auth_services(get_settings(), session_factory, provider=provider)
    yield services
    services.session.close()


@pytest.fixture
async def client(session, services) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session and auth services overridden."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.state.auth = services
    await services.session.start()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Data helpers ─────────────────────────────────────────────

@pytest.fixture
def make_hotel(session_factory):
    async def _make(
        name: str = "Pousada Azul",
        slug: str | None = None,
        status: HotelStatus = HotelStatus.ACTIVE,
    ) -> Hotel:
        hotel = Hotel(name=name, slug=slug or name.lower().replace(" ", "-"), status=status)
        async with session_factory() as db:
            db.add(hotel)
            await db.commit()
            await db.refresh(hotel)
        return hotel

    return _make


@pytest.fixture
def make_user(provider, session_factory):
    """Create a principal and, when ``role`` is given, its profile row."""

    async def _make(
        email: str,
        *,
        role: UserRole | None = None,
        hotel_id: uuid.UUID | None = None,
        is_active: bool = True,
        password: str = PASSWORD,
        metadata: dict | None = None,
        email_confirmed: bool = True,
    ):
        user = await provider.create_principal(
            email, password, metadata=metadata, email_confirmed=email_confirmed
        )
        if role is not None:
            async with session_factory() as db:
                db.add(Profile(
                    id=uuid.UUID(user.id),
                    email=user.email,
                    full_name=email.split("@")[0].title(),
                    role=role,
                    hotel_id=hotel_id,
                    is_active=is_active,
                ))
                await db.commit()
        return user

    return _make


@pytest.fixture
def auth_headers(provider):
    async def _headers(email: str, password: str = PASSWORD) -> dict:
        resp = await provider.sign_in_with_password(email, password)
        assert resp.session is not None, resp.error
        return {"Authorization": f"Bearer {resp.session.access_token}"}

    return _headers
