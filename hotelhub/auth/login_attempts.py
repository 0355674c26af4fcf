"""Failed sign-in tracking for the local auth provider.

An email is locked once it accumulates ``max_failed`` failures inside
``window``; the lock lasts for one window. Counters live in the
``login_attempts`` table so every worker sees the same lock, and rows
whose window and lock have both lapsed are pruned as new failures arrive.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from hotelhub.models.base import utcnow
from hotelhub.models.login_attempt import LoginAttempt

ATTEMPT_WINDOW = timedelta(minutes=10)


class LoginAttemptTracker:
    def __init__(
        self,
        session_factory: sessionmaker,
        max_failed: int = 5,
        window: timedelta = ATTEMPT_WINDOW,
    ) -> None:
        self._session_factory = session_factory
        self.max_failed = max_failed
        self.window = window

    async def is_locked(self, email: str, now: datetime | None = None) -> bool:
        now = now or utcnow()
        async with self._session_factory() as db:
            attempt = await _get_attempt(db, email)
        if attempt is None or attempt.locked_until is None:
            return False
        return attempt.locked_until > now

    async def register_failure(self, email: str, now: datetime | None = None) -> bool:
        """Record a failed attempt. Returns True if the email is now locked."""
        now = now or utcnow()
        async with self._session_factory() as db:
            await self._prune(db, now)
            attempt = await _get_attempt(db, email)
            if attempt is None:
                attempt = LoginAttempt(email=_key(email), failed_count=0, first_failed_at=now)
                db.add(attempt)
            elif attempt.first_failed_at is None or now - attempt.first_failed_at > self.window:
                attempt.failed_count = 0
                attempt.first_failed_at = now
                attempt.locked_until = None

            attempt.failed_count += 1
            attempt.last_failed_at = now
            attempt.touch()
            locked = attempt.failed_count >= self.max_failed
            if locked:
                attempt.locked_until = now + self.window
            await db.commit()
        return locked

    async def clear(self, email: str) -> None:
        async with self._session_factory() as db:
            await db.execute(delete(LoginAttempt).where(LoginAttempt.email == _key(email)))
            await db.commit()

    async def _prune(self, db: AsyncSession, now: datetime) -> None:
        await db.execute(
            delete(LoginAttempt).where(
                LoginAttempt.first_failed_at < now - self.window,
                or_(LoginAttempt.locked_until.is_(None), LoginAttempt.locked_until <= now),  # type: ignore[union-attr]
            )
        )


async def _get_attempt(db: AsyncSession, email: str) -> LoginAttempt | None:
    result = await db.execute(select(LoginAttempt).where(LoginAttempt.email == _key(email)))
    return result.scalar_one_or_none()


def _key(email: str) -> str:
    return email.strip().lower()
