"""Profiles: self-service updates and tenant-scoped listing.

Profiles are never deleted; deactivation flips ``is_active``.
"""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from hotelhub.api.deps import CurrentUser, MasterAdmin, Session
from hotelhub.models.profile import Profile, ProfileRead, ProfileUpdate, ScopedUser, UserRole

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ScopedUser)
async def get_me(user: CurrentUser) -> ScopedUser:
    """Return the caller's profile with its tenant scope."""
    return user


@router.patch("/me", response_model=ProfileRead)
async def update_me(body: ProfileUpdate, user: CurrentUser, session: Session) -> ProfileRead:
    profile = await _get_or_404(user.id, session)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    profile.touch()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return ProfileRead.model_validate(profile)


@router.get("", response_model=list[ProfileRead])
async def list_profiles(
    user: CurrentUser,
    session: Session,
    hotel_id: uuid.UUID | None = None,
) -> list[ProfileRead]:
    """Master admins see every profile (optionally per hotel); others see their hotel."""
    stmt = select(Profile).order_by(Profile.email.asc())  # type: ignore[union-attr]
    if user.role == UserRole.MASTER_ADMIN:
        if hotel_id is not None:
            stmt = stmt.where(Profile.hotel_id == hotel_id)
    else:
        if hotel_id is not None and hotel_id != user.hotel_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Profiles of other hotels are not visible",
            )
        stmt = stmt.where(Profile.hotel_id == user.hotel_id)
    result = await session.execute(stmt)
    return [ProfileRead.model_validate(p) for p in result.scalars().all()]


@router.post("/{profile_id}/deactivate", response_model=ProfileRead)
async def deactivate_profile(
    profile_id: uuid.UUID,
    admin: MasterAdmin,
    session: Session,
) -> ProfileRead:
    if profile_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You cannot deactivate your own profile",
        )
    profile = await _get_or_404(profile_id, session)
    profile.is_active = False
    profile.touch()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return ProfileRead.model_validate(profile)


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(profile_id: uuid.UUID, session) -> Profile:
    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile
