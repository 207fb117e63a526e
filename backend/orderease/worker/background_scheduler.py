"""Background maintenance that runs with uvicorn (FastAPI lifespan).

One asyncio task wakes up every CLEANUP_INTERVAL_SEC and removes expired
blacklisted tokens, expired temp tokens and stale rate-limit buckets.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from orderease.core.config import settings
from orderease.core.db import AsyncSessionMaker
from orderease.core.security import hash_password
from orderease.repos.admin_repo import AdminRepo
from orderease.repos.token_repo import TokenRepo
from orderease.services.rate_limit import RateLimiter

log = logging.getLogger(__name__)

_running = False
_task: asyncio.Task | None = None
_wakeup: asyncio.Event | None = None


async def cleanup_tick(rate_limiter: RateLimiter | None = None, session_maker=AsyncSessionMaker) -> dict[str, int]:
    """Run one maintenance pass. Returns the number of removed rows per kind."""
    async with session_maker() as s:
        async with s.begin():
            repo = TokenRepo(s)
            blacklisted = await repo.purge_expired_blacklist()
            temp = await repo.purge_expired_temp_tokens()
    buckets = rate_limiter.evict() if rate_limiter is not None else 0
    result = {"blacklisted_tokens": blacklisted, "temp_tokens": temp, "rate_limit_buckets": buckets}
    log.info("[cleanup] removed %s", result)
    return result


async def _background_loop(rate_limiter: RateLimiter | None) -> None:
    log.info("[cleanup] started, interval=%ss", settings.CLEANUP_INTERVAL_SEC)
    while _running:
        try:
            await cleanup_tick(rate_limiter)
        except Exception:
            log.exception("[cleanup] tick failed")

        try:
            await asyncio.wait_for(_wakeup.wait(), timeout=settings.CLEANUP_INTERVAL_SEC)
        except asyncio.TimeoutError:
            pass
    log.info("[cleanup] stopped")


def start_background_scheduler(rate_limiter: RateLimiter | None = None) -> None:
    global _running, _task, _wakeup
    if _running:
        return
    _running = True
    _wakeup = asyncio.Event()
    _task = asyncio.create_task(_background_loop(rate_limiter))


async def stop_background_scheduler() -> None:
    """Stop the maintenance task gracefully."""
    global _running, _task
    if not _running:
        return
    _running = False
    if _wakeup is not None:
        _wakeup.set()
    if _task is not None:
        try:
            await asyncio.wait_for(_task, timeout=10.0)
        except asyncio.TimeoutError:
            _task.cancel()
            try:
                await _task
            except asyncio.CancelledError:
                pass
        _task = None


async def bootstrap_admin(session_maker=AsyncSessionMaker) -> bool:
    """Create the configured administrator when no admin account exists yet."""
    if not settings.ADMIN_PASSWORD:
        return False
    async with session_maker() as s:
        async with s.begin():
            repo = AdminRepo(s)
            if await repo.count() > 0:
                return False
            await repo.create(settings.ADMIN_USERNAME, hash_password(settings.ADMIN_PASSWORD))
    log.info("[bootstrap] created admin account %r", settings.ADMIN_USERNAME)
    return True


@asynccontextmanager
async def lifespan_with_scheduler(app) -> AsyncGenerator[None, None]:
    """FastAPI lifespan: admin bootstrap, then the maintenance loop until shutdown."""
    await bootstrap_admin()
    if settings.CLEANUP_ENABLED:
        start_background_scheduler(getattr(app.state, "rate_limiter", None))
    yield
    await stop_background_scheduler()
    broadcaster = getattr(app.state, "broadcaster", None)
    if broadcaster is not None:
        broadcaster.close_all()
