"""Diagnostic probe: read-only checks for troubleshooting sign-in problems.

Used by the diagnostics endpoint only; it never touches session state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from hotelhub.auth.errors import AuthErrorKind, classify_store_error
from hotelhub.auth.provider import AuthProvider
from hotelhub.auth.verifier import classify_provider_error
from hotelhub.models.hotel import Hotel
from hotelhub.models.profile import Profile

logger = logging.getLogger(__name__)


class DiagnosticCheck(BaseModel):
    name: str
    ok: bool
    error: str | None = None
    classification: AuthErrorKind | None = None
    latency_ms: int | None = None


class DiagnosticReport(BaseModel):
    status: str  # "ok" or "degraded"
    connection: bool
    profiles: bool
    hotels: bool
    auth_session: bool
    errors: list[str]
    checks: list[DiagnosticCheck]
    test_accounts: list[str]


class DiagnosticProbe:
    def __init__(
        self,
        session_factory: sessionmaker,
        provider: AuthProvider,
        test_accounts: list[str] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._provider = provider
        self._test_accounts = [e.strip().lower() for e in test_accounts or [] if e.strip()]

    async def diagnose(self) -> DiagnosticReport:
        checks = [
            await self._run("connection", self._check_connection),
            await self._run("profiles", self._check_table(Profile)),
            await self._run("hotels", self._check_table(Hotel)),
            await self._run("auth_session", self._check_provider_session),
        ]
        found: list[str] = []
        accounts = await self._run("test_accounts", self._find_test_accounts(found))
        if self._test_accounts:
            checks.append(accounts)

        by_name = {c.name: c for c in checks}
        errors = [f"{c.name}: {c.error}" for c in checks if not c.ok]
        return DiagnosticReport(
            status="ok" if not errors else "degraded",
            connection=by_name["connection"].ok,
            profiles=by_name["profiles"].ok,
            hotels=by_name["hotels"].ok,
            auth_session=by_name["auth_session"].ok,
            errors=errors,
            checks=checks,
            test_accounts=found,
        )

    # ── Checks ───────────────────────────────────────────────

    async def _run(
        self, name: str, check: Callable[[], Awaitable[None]]
    ) -> DiagnosticCheck:
        t0 = time.monotonic()
        try:
            await check()
        except _ProviderCheckFailed as exc:
            return DiagnosticCheck(
                name=name,
                ok=False,
                error=exc.error.detail[:200],
                classification=exc.error.kind,
                latency_ms=int((time.monotonic() - t0) * 1000),
            )
        except Exception as exc:
            error = classify_store_error(exc)
            logger.warning("Diagnostic check %s failed: %s", name, error.detail)
            return DiagnosticCheck(
                name=name,
                ok=False,
                error=error.detail[:200] or exc.__class__.__name__,
                classification=error.kind,
                latency_ms=int((time.monotonic() - t0) * 1000),
            )
        return DiagnosticCheck(name=name, ok=True, latency_ms=int((time.monotonic() - t0) * 1000))

    async def _check_connection(self) -> None:
        async with self._session_factory() as db:
            await db.execute(text("SELECT 1"))

    def _check_table(self, model: type) -> Callable[[], Awaitable[None]]:
        async def check() -> None:
            async with self._session_factory() as db:
                await db.execute(select(model.id).limit(1))

        return check

    async def _check_provider_session(self) -> None:
        # Read only; get_session() can refresh or expire the session
        resp = self._provider.peek_session()
        if resp.error is not None:
            raise _ProviderCheckFailed(classify_provider_error(resp.error))

    def _find_test_accounts(self, found: list[str]) -> Callable[[], Awaitable[None]]:
        async def check() -> None:
            if not self._test_accounts:
                return
            async with self._session_factory() as db:
                result = await db.execute(
                    select(Profile.email).where(Profile.email.in_(self._test_accounts))  # type: ignore[attr-defined]
                )
                found.extend(sorted(result.scalars().all()))

        return check


class _ProviderCheckFailed(Exception):
    def __init__(self, error) -> None:
        super().__init__(error.detail)
        self.error = error
