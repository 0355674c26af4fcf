"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotelhub.api.v1 import v1_router
from hotelhub.auth.container import build_auth_services
from hotelhub.core.config import get_settings
from hotelhub.core.database import async_session_factory, init_db

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: fail fast on missing provider config, then build the one
    # session store for this process
    _settings.require_provider()
    await init_db()
    services = build_auth_services(_settings, async_session_factory)
    await services.session.start()
    app.state.auth = services
    yield
    services.session.close()


app = FastAPI(
    title="HotelHub",
    version="0.1.0",
    description="Session and tenant authorization for the HotelHub consoles",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
