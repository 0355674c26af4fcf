"""V1 API router aggregation."""

from fastapi import APIRouter

from hotelhub.api.v1.hotels import router as hotels_router
from hotelhub.api.v1.profiles import router as profiles_router
from hotelhub.api.v1.session import router as session_router
from hotelhub.api.v1.system import router as system_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(session_router)
v1_router.include_router(hotels_router)
v1_router.include_router(profiles_router)
v1_router.include_router(system_router)
