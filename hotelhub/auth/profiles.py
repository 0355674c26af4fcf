"""Profile resolver: maps an authenticated principal to its Profile row.

A principal without a profile is bootstrapped once: a minimal profile is
created according to the configured ``BootstrapRoleRule`` and the lookup is
retried. Non-admin profiles always get a hotel so the tenant invariant holds.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from hotelhub.auth.errors import (
    AuthErrorKind,
    Err,
    Ok,
    Result,
    classify_store_error,
    err,
)
from hotelhub.auth.provider import ProviderUser
from hotelhub.core.config import Settings
from hotelhub.models.hotel import Hotel, HotelStatus
from hotelhub.models.profile import Profile, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapRoleRule:
    """Decides the role of a bootstrapped profile.

    An email listed in ``admin_emails`` or containing ``admin_substring``
    becomes ``master_admin``. An empty substring disables that match.
    """
    admin_emails: frozenset[str] = field(default_factory=frozenset)
    admin_substring: str = "admin"

    @classmethod
    def from_settings(cls, settings: Settings) -> BootstrapRoleRule:
        return cls(
            admin_emails=frozenset(settings.admin_emails),
            admin_substring=settings.bootstrap_admin_email_substring.strip().lower(),
        )

    def role_for(self, email: str) -> UserRole:
        email = email.strip().lower()
        if email in self.admin_emails:
            return UserRole.MASTER_ADMIN
        if self.admin_substring and self.admin_substring in email:
            return UserRole.MASTER_ADMIN
        return UserRole.CLIENT


class ProfileResolver:
    def __init__(
        self,
        session_factory: sessionmaker,
        rule: BootstrapRoleRule | None = None,
        *,
        bootstrap: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self.rule = rule or BootstrapRoleRule()
        self.bootstrap = bootstrap

    async def resolve_profile(self, principal: ProviderUser) -> Result[Profile]:
        try:
            principal_id = uuid.UUID(principal.id)
        except ValueError:
            logger.error("Principal id %r is not a UUID", principal.id)
            return err(AuthErrorKind.UNEXPECTED_ERROR, f"Malformed principal id {principal.id!r}")

        found = await self._lookup(principal_id)
        if isinstance(found, Err):
            return found
        if found.value is not None:
            return _check_active(found.value)

        if not self.bootstrap:
            logger.warning("No profile for principal %s and bootstrap is disabled", principal_id)
            return err(AuthErrorKind.PROFILE_NOT_FOUND, f"No profile for {principal_id}")

        logger.info("No profile for principal %s, bootstrapping", principal_id)
        created = await self._create_profile(principal_id, principal)
        if isinstance(created, Err):
            return created

        retried = await self._lookup(principal_id)
        if isinstance(retried, Err):
            return retried
        if retried.value is None:
            logger.error("Profile for %s still missing after bootstrap", principal_id)
            return err(AuthErrorKind.PROFILE_NOT_FOUND, f"Bootstrap did not create {principal_id}")
        return _check_active(retried.value)

    async def register_profile(self, principal: ProviderUser) -> Result[Profile]:
        """Create the profile of a self-registered principal.

        Sign-up always yields a client with its own hotel. The bootstrap role
        rule and the ``bootstrap`` switch do not apply here.
        """
        try:
            principal_id = uuid.UUID(principal.id)
        except ValueError:
            logger.error("Principal id %r is not a UUID", principal.id)
            return err(AuthErrorKind.UNEXPECTED_ERROR, f"Malformed principal id {principal.id!r}")

        created = await self._create_profile(principal_id, principal, role=UserRole.CLIENT)
        if isinstance(created, Err):
            return created
        found = await self._lookup(principal_id)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return err(AuthErrorKind.PROFILE_NOT_FOUND, f"Registration did not create {principal_id}")
        return _check_active(found.value)

    # ── Internal helpers ──────────────────────────────────────

    async def _lookup(self, principal_id: uuid.UUID) -> Result[Profile | None]:
        stmt = select(Profile).where(Profile.id == principal_id).limit(2)
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            error = classify_store_error(exc)
            logger.error("Profile lookup failed for %s: %s", principal_id, error.detail)
            return Err(error)

        if len(rows) > 1:
            logger.error("Principal %s has %d profile rows", principal_id, len(rows))
            return err(
                AuthErrorKind.UNEXPECTED_ERROR,
                f"Multiple profiles for principal {principal_id}",
            )
        return Ok(rows[0] if rows else None)

    async def _create_profile(
        self,
        principal_id: uuid.UUID,
        principal: ProviderUser,
        role: UserRole | None = None,
    ) -> Result[None]:
        metadata = principal.user_metadata or {}
        email = principal.email.strip().lower()
        full_name = (
            metadata.get("full_name")
            or (email.split("@")[0] if email else "")
            or "User"
        )
        role = role or self.rule.role_for(email)

        try:
            async with self._session_factory() as db:
                hotel_id = None
                if role != UserRole.MASTER_ADMIN:
                    hotel_id = await _bootstrap_hotel(db, metadata, full_name)
                db.add(Profile(
                    id=principal_id,
                    email=email,
                    full_name=full_name,
                    role=role,
                    hotel_id=hotel_id,
                    is_active=True,
                ))
                await db.commit()
        except IntegrityError:
            # Created concurrently; the retry picks it up
            logger.info("Profile for %s already exists", principal_id)
            return Ok(None)
        except (SQLAlchemyError, OSError) as exc:
            error = classify_store_error(exc)
            if error.kind in (AuthErrorKind.SCHEMA_ERROR, AuthErrorKind.CONNECTION_ERROR):
                logger.error("Profile bootstrap failed for %s: %s", principal_id, error.detail)
                return Err(error)
            logger.exception("Profile bootstrap failed for %s", principal_id)
            return err(AuthErrorKind.PROFILE_NOT_FOUND, error.detail, error.code)

        logger.info("Bootstrapped %s profile for %s", role, principal_id)
        return Ok(None)


def _check_active(profile: Profile) -> Result[Profile]:
    if not profile.is_active:
        logger.info("Profile %s is deactivated", profile.id)
        return err(AuthErrorKind.ACCOUNT_DISABLED, f"Profile {profile.id} is inactive")
    return Ok(profile)


async def _bootstrap_hotel(db: AsyncSession, metadata: dict, full_name: str) -> uuid.UUID:
    """Return the hotel a bootstrapped client belongs to, creating one if needed."""
    raw_id = metadata.get("hotel_id")
    if raw_id:
        try:
            hotel = await db.get(Hotel, uuid.UUID(str(raw_id)))
        except ValueError:
            hotel = None
        if hotel is not None:
            return hotel.id
        logger.warning("Signup metadata names unknown hotel %s", raw_id)

    name = metadata.get("hotel_name") or f"Hotel {full_name}"
    hotel = Hotel(
        name=name,
        slug=f"{slugify(name)}-{uuid.uuid4().hex[:8]}",
        status=HotelStatus.PENDING_SETUP,
    )
    db.add(hotel)
    await db.flush()
    return hotel.id


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:80] or "hotel"
