"""Tests for profile resolution and first-login bootstrap."""

import uuid
from types import SimpleNamespace

import pytest
from sqlmodel import select

from hotelhub.auth.errors import AuthErrorKind
from hotelhub.auth.profiles import BootstrapRoleRule, ProfileResolver, slugify
from hotelhub.auth.provider import ProviderUser
from hotelhub.models.hotel import Hotel, HotelStatus
from hotelhub.models.profile import Profile, UserRole


def _principal(email: str, **metadata) -> ProviderUser:
    return ProviderUser(id=str(uuid.uuid4()), email=email, user_metadata=metadata)


class _RowsSession:
    """Stand-in table client returning a fixed row set."""

    def __init__(self, rows):
        self._rows = rows

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, _stmt):
        return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: self._rows))


class _UnreachableSession:
    async def __aenter__(self):
        raise ConnectionRefusedError("connection refused")

    async def __aexit__(self, *exc):
        return False


# ── Existing profiles ────────────────────────────────────────

@pytest.mark.asyncio
async def test_existing_profile_is_returned(session_factory, make_hotel, make_user):
    hotel = await make_hotel()
    user = await make_user("client@pousada.com", role=UserRole.CLIENT, hotel_id=hotel.id)

    result = await ProfileResolver(session_factory).resolve_profile(user)

    assert result.ok
    assert str(result.value.id) == user.id
    assert result.value.role == UserRole.CLIENT
    assert result.value.hotel_id == hotel.id


@pytest.mark.asyncio
async def test_inactive_profile_is_disabled(session_factory, make_user):
    user = await make_user("admin@hotelhub.com", role=UserRole.MASTER_ADMIN, is_active=False)

    result = await ProfileResolver(session_factory).resolve_profile(user)

    assert not result.ok
    assert result.kind == AuthErrorKind.ACCOUNT_DISABLED


@pytest.mark.asyncio
async def test_multiple_rows_fail_loudly(caplog):
    """Two profiles for one principal is never resolved by picking one."""
    principal = _principal("dup@pousada.com")
    rows = [
        Profile(id=uuid.UUID(principal.id), email="dup@pousada.com"),
        Profile(id=uuid.UUID(principal.id), email="dup@pousada.com"),
    ]
    resolver = ProfileResolver(lambda: _RowsSession(rows))

    result = await resolver.resolve_profile(principal)

    assert result.kind == AuthErrorKind.UNEXPECTED_ERROR
    assert any(r.levelname == "ERROR" for r in caplog.records)


@pytest.mark.asyncio
async def test_malformed_principal_id(session_factory):
    principal = ProviderUser(id="u1", email="client@pousada.com")

    result = await ProfileResolver(session_factory).resolve_profile(principal)

    assert result.kind == AuthErrorKind.UNEXPECTED_ERROR


# ── Store failures ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_table_is_schema_error(engine, session_factory):
    async with engine.begin() as conn:
        await conn.run_sync(Profile.__table__.drop)

    result = await ProfileResolver(session_factory).resolve_profile(_principal("a@b.com"))

    assert result.kind == AuthErrorKind.SCHEMA_ERROR
    assert "profiles" in result.error.detail


@pytest.mark.asyncio
async def test_unreachable_store_is_connection_error():
    resolver = ProfileResolver(lambda: _UnreachableSession())

    result = await resolver.resolve_profile(_principal("a@b.com"))

    assert result.kind == AuthErrorKind.CONNECTION_ERROR


# ── Bootstrap ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_bootstrap_admin_by_email_substring(session_factory):
    """admin@example.com with no profile becomes a platform-scoped master admin."""
    principal = _principal("admin@example.com")

    result = await ProfileResolver(session_factory).resolve_profile(principal)

    assert result.ok
    assert result.value.role == UserRole.MASTER_ADMIN
    assert result.value.hotel_id is None
    assert result.value.full_name == "admin"
    async with session_factory() as db:
        rows = (await db.execute(select(Profile))).scalars().all()
    assert [str(p.id) for p in rows] == [principal.id]


@pytest.mark.asyncio
async def test_bootstrap_client_gets_pending_hotel(session_factory):
    principal = _principal("Maria@Pousada.com", full_name="Maria Souza")

    result = await ProfileResolver(session_factory).resolve_profile(principal)

    assert result.ok
    profile = result.value
    assert profile.role == UserRole.CLIENT
    assert profile.email == "maria@pousada.com"
    assert profile.full_name == "Maria Souza"
    async with session_factory() as db:
        hotel = await db.get(Hotel, profile.hotel_id)
    assert hotel is not None
    assert hotel.status == HotelStatus.PENDING_SETUP
    assert hotel.name == "Hotel Maria Souza"
    assert hotel.slug.startswith("hotel-maria-souza-")


@pytest.mark.asyncio
async def test_bootstrap_client_joins_hotel_from_metadata(session_factory, make_hotel):
    hotel = await make_hotel("Pousada Azul")
    principal = _principal("recepcao@pousada.com", hotel_id=str(hotel.id))

    result = await ProfileResolver(session_factory).resolve_profile(principal)

    assert result.value.hotel_id == hotel.id
    async with session_factory() as db:
        hotels = (await db.execute(select(Hotel))).scalars().all()
    assert len(hotels) == 1


@pytest.mark.asyncio
async def test_bootstrap_ignores_unknown_metadata_hotel(session_factory):
    principal = _principal("recepcao@pousada.com", hotel_id=str(uuid.uuid4()), hotel_name="Pousada Mar")

    result = await ProfileResolver(session_factory).resolve_profile(principal)

    async with session_factory() as db:
        hotel = await db.get(Hotel, result.value.hotel_id)
    assert hotel.name == "Pousada Mar"
    assert hotel.status == HotelStatus.PENDING_SETUP


@pytest.mark.asyncio
async def test_bootstrap_disabled(session_factory):
    resolver = ProfileResolver(session_factory, bootstrap=False)

    result = await resolver.resolve_profile(_principal("admin@example.com"))

    assert result.kind == AuthErrorKind.PROFILE_NOT_FOUND
    async with session_factory() as db:
        assert (await db.execute(select(Profile))).first() is None


@pytest.mark.asyncio
async def test_bootstrap_is_idempotent(session_factory):
    principal = _principal("admin@example.com")
    resolver = ProfileResolver(session_factory)

    first = await resolver.resolve_profile(principal)
    second = await resolver.resolve_profile(principal)

    assert first.value.id == second.value.id
    async with session_factory() as db:
        assert len((await db.execute(select(Profile))).scalars().all()) == 1


# ── Self-registration ────────────────────────────────────────

@pytest.mark.asyncio
async def test_register_profile_is_always_a_client(session_factory):
    rule = BootstrapRoleRule(admin_emails=frozenset({"boss@hotelhub.com"}))
    resolver = ProfileResolver(session_factory, rule, bootstrap=False)

    result = await resolver.register_profile(
        _principal("boss@hotelhub.com", full_name="Boss", hotel_name="Pousada Azul")
    )

    assert result.ok
    assert result.value.role == UserRole.CLIENT
    assert result.value.full_name == "Boss"
    async with session_factory() as db:
        hotel = await db.get(Hotel, result.value.hotel_id)
    assert hotel.name == "Pousada Azul"
    assert hotel.status == HotelStatus.PENDING_SETUP


@pytest.mark.asyncio
async def test_register_profile_keeps_existing(session_factory):
    principal = _principal("maria@pousada.com")
    resolver = ProfileResolver(session_factory)
    first = await resolver.resolve_profile(principal)

    again = await resolver.register_profile(principal)

    assert again.value.id == first.value.id
    async with session_factory() as db:
        assert len((await db.execute(select(Hotel))).scalars().all()) == 1


# ── Bootstrap role rule ──────────────────────────────────────

def test_role_rule_default_substring():
    rule = BootstrapRoleRule()
    assert rule.role_for("Admin@Hotel.com") == UserRole.MASTER_ADMIN
    assert rule.role_for("sysadmin.ops@hotel.com") == UserRole.MASTER_ADMIN
    assert rule.role_for("maria@pousada.com") == UserRole.CLIENT


def test_role_rule_explicit_list_only():
    rule = BootstrapRoleRule(admin_emails=frozenset({"boss@hotelhub.com"}), admin_substring="")
    assert rule.role_for(" BOSS@hotelhub.com") == UserRole.MASTER_ADMIN
    assert rule.role_for("admin@hotelhub.com") == UserRole.CLIENT


@pytest.mark.asyncio
async def test_rule_applies_to_bootstrap(session_factory):
    rule = BootstrapRoleRule(admin_emails=frozenset({"boss@hotelhub.com"}), admin_substring="")
    resolver = ProfileResolver(session_factory, rule)

    boss = await resolver.resolve_profile(_principal("boss@hotelhub.com"))
    other = await resolver.resolve_profile(_principal("admin@hotelhub.com"))

    assert boss.value.role == UserRole.MASTER_ADMIN
    assert other.value.role == UserRole.CLIENT
    assert other.value.hotel_id is not None


def test_slugify():
    assert slugify("Pousada Azul & Spa") == "pousada-azul-spa"
    assert slugify("   ") == "hotel"
