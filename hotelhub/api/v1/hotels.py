"""Hotel lifecycle: master-admin management plus the tenant's own view."""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlmodel import select

from hotelhub.api.deps import HotelMember, MasterAdmin, Session
from hotelhub.models.hotel import Hotel, HotelCreate, HotelRead, HotelStats, HotelStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hotels", tags=["hotels"])


class SuspendRequest(BaseModel):
    ids: list[uuid.UUID] = Field(min_length=1)


# ── Master admin routes ──────────────────────────────────────

@router.post("", response_model=HotelRead, status_code=status.HTTP_201_CREATED)
async def create_hotel(body: HotelCreate, admin: MasterAdmin, session: Session) -> HotelRead:
    existing = await session.execute(select(Hotel).where(Hotel.slug == body.slug))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Slug '{body.slug}' is already taken",
        )

    hotel = Hotel(**body.model_dump())
    session.add(hotel)
    await session.commit()
    await session.refresh(hotel)
    logger.info("Hotel %s created by %s", hotel.id, admin.email)
    return HotelRead.model_validate(hotel)


@router.get("", response_model=list[HotelRead])
async def list_hotels(
    _admin: MasterAdmin,
    session: Session,
    status_filter: HotelStatus | None = Query(default=None, alias="status"),
) -> list[HotelRead]:
    stmt = select(Hotel).order_by(Hotel.created_at.desc())  # type: ignore[union-attr]
    if status_filter is not None:
        stmt = stmt.where(Hotel.status == status_filter)
    result = await session.execute(stmt)
    return [HotelRead.model_validate(h) for h in result.scalars().all()]


@router.get("/stats", response_model=HotelStats)
async def hotel_stats(_admin: MasterAdmin, session: Session) -> HotelStats:
    result = await session.execute(
        select(Hotel.status, func.count()).group_by(Hotel.status)
    )
    counts = {str(row[0]): row[1] for row in result.all()}
    return HotelStats(total=sum(counts.values()), **counts)


@router.post("/suspend", response_model=list[HotelRead])
async def suspend_hotels(body: SuspendRequest, admin: MasterAdmin, session: Session) -> list[HotelRead]:
    """Suspend several hotels at once. Rows are kept; only status changes."""
    result = await session.execute(select(Hotel).where(Hotel.id.in_(body.ids)))  # type: ignore[attr-defined]
    hotels = list(result.scalars().all())
    if len(hotels) != len(set(body.ids)):
        found = {h.id for h in hotels}
        missing = [str(i) for i in body.ids if i not in found]
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Hotels not found: {', '.join(missing)}",
        )

    for hotel in hotels:
        hotel.status = HotelStatus.SUSPENDED
        hotel.touch()
        session.add(hotel)
    await session.commit()
    logger.info("Suspended %d hotel(s) by %s", len(hotels), admin.email)
    return [HotelRead.model_validate(h) for h in hotels]


@router.post("/{hotel_id}/reactivate", response_model=HotelRead)
async def reactivate_hotel(hotel_id: uuid.UUID, admin: MasterAdmin, session: Session) -> HotelRead:
    hotel = await _get_or_404(hotel_id, session)
    if hotel.status == HotelStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cancelled hotels cannot be reactivated",
        )
    hotel.status = HotelStatus.ACTIVE
    hotel.touch()
    session.add(hotel)
    await session.commit()
    await session.refresh(hotel)
    logger.info("Hotel %s reactivated by %s", hotel.id, admin.email)
    return HotelRead.model_validate(hotel)


# ── Tenant routes ────────────────────────────────────────────

@router.get("/me", response_model=HotelRead)
async def get_my_hotel(user: HotelMember, session: Session) -> HotelRead:
    """The hotel the caller is scoped to."""
    return HotelRead.model_validate(await _get_or_404(user.hotel_id, session))


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(hotel_id: uuid.UUID, session) -> Hotel:
    hotel = await session.get(Hotel, hotel_id)
    if hotel is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hotel not found")
    return hotel
