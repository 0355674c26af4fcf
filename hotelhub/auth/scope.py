"""Tenant scope resolver: attaches the owning hotel to a profile."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from hotelhub.auth.errors import Ok, Result, classify_store_error
from hotelhub.models.hotel import Hotel
from hotelhub.models.profile import Profile, ProfileRead, ScopedUser

logger = logging.getLogger(__name__)


class TenantScopeResolver:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def resolve_scope(self, profile: Profile) -> Result[ScopedUser]:
        """Build the ScopedUser for ``profile``.

        Master admins have platform scope and no hotel lookup is made. For
        everyone else a missing or unreadable hotel only produces a warning:
        the user is still returned, with ``hotel_name`` left empty.
        """
        base = ProfileRead.model_validate(profile).model_dump()
        if profile.hotel_id is None:
            return Ok(ScopedUser(**base))

        try:
            async with self._session_factory() as db:
                hotel = await db.get(Hotel, profile.hotel_id)
        except (SQLAlchemyError, OSError) as exc:
            error = classify_store_error(exc)
            warning = f"Hotel lookup failed for {profile.hotel_id}: {error.kind}"
            logger.warning("%s (%s)", warning, error.detail)
            return Ok(ScopedUser(**base), warnings=[warning])

        if hotel is None:
            warning = f"Hotel {profile.hotel_id} referenced by profile {profile.id} not found"
            logger.warning(warning)
            return Ok(ScopedUser(**base), warnings=[warning])

        return Ok(ScopedUser(**base, hotel_name=hotel.name, hotel_status=hotel.status))
