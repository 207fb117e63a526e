"""Tests for the background maintenance pass and admin bootstrap."""

import asyncio
import logging
from datetime import timedelta

from sqlalchemy import select

from conftest import SHOP_ID, seed_shop
from orderease.core.config import settings
from orderease.models import Admin, BlacklistedToken, TempToken
from orderease.models.base import utcnow
from orderease.services.rate_limit import RateLimiter
from orderease.worker import background_scheduler
from orderease.worker.background_scheduler import bootstrap_admin, cleanup_tick


class TestCleanup:
    async def test_removes_only_expired_rows(self, session_maker):
        await seed_shop(session_maker)
        now = utcnow()
        async with session_maker() as s:
            s.add_all([
                BlacklistedToken(token="old", expired_at=now - timedelta(days=1)),
                BlacklistedToken(token="fresh", expired_at=now + timedelta(days=1)),
                TempToken(id=1, shop_id=SHOP_ID, user_id=5, token="123456", expires_at=now - timedelta(minutes=1)),
                TempToken(id=2, shop_id=SHOP_ID, user_id=5, token="654321", expires_at=now + timedelta(minutes=5)),
            ])
            await s.commit()

        limiter = RateLimiter(10)
        limiter.hit("1.1.1.1", now=0)

        result = await cleanup_tick(limiter, session_maker=session_maker)

        assert result == {"blacklisted_tokens": 1, "temp_tokens": 1, "rate_limit_buckets": 1}
        async with session_maker() as s:
            assert [t.token for t in (await s.execute(select(BlacklistedToken))).scalars()] == ["fresh"]
            assert [t.id for t in (await s.execute(select(TempToken))).scalars()] == [2]

    async def test_failed_tick_is_logged_with_traceback(self, monkeypatch, caplog):
        attempted = asyncio.Event()

        async def _broken_tick(rate_limiter=None):
            attempted.set()
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(background_scheduler, "cleanup_tick", _broken_tick)
        with caplog.at_level(logging.ERROR, logger=background_scheduler.__name__):
            background_scheduler.start_background_scheduler()
            await asyncio.wait_for(attempted.wait(), timeout=5)
            await background_scheduler.stop_background_scheduler()

        failures = [r for r in caplog.records if "tick failed" in r.getMessage()]
        assert failures
        assert failures[0].exc_info is not None
        assert isinstance(failures[0].exc_info[1], RuntimeError)


class TestBootstrapAdmin:
    async def test_creates_admin_once(self, session_maker, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", "bootstrap-pass")
        assert await bootstrap_admin(session_maker=session_maker) is True
        assert await bootstrap_admin(session_maker=session_maker) is False
        async with session_maker() as s:
            admins = list((await s.execute(select(Admin))).scalars())
        assert [a.username for a in admins] == [settings.ADMIN_USERNAME]

    async def test_skipped_without_password(self, session_maker, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", None)
        assert await bootstrap_admin(session_maker=session_maker) is False


class TestRateLimitDependency:
    async def test_too_many_requests(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        app.state.rate_limiter = RateLimiter(2)
        codes = [(await client.get("/api/store/product/list", params={"shop_id": 1})).status_code for _ in range(3)]
        assert codes == [404, 404, 429]
        assert (await client.get("/health")).status_code == 200
