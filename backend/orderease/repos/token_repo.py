from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.models.base import utcnow
from orderease.models.token import BlacklistedToken, TempToken


class TokenRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_blacklisted(self, token: str) -> bool:
        res = await self.session.execute(select(BlacklistedToken.id).where(BlacklistedToken.token == token))
        return res.scalar_one_or_none() is not None

    async def blacklist(self, token: str, expired_at: datetime) -> None:
        if await self.is_blacklisted(token):
            return
        self.session.add(BlacklistedToken(token=token, expired_at=expired_at))
        await self.session.flush()

    async def purge_expired_blacklist(self, now: datetime | None = None) -> int:
        res = await self.session.execute(delete(BlacklistedToken).where(BlacklistedToken.expired_at < (now or utcnow())))
        return int(res.rowcount or 0)

    async def purge_expired_temp_tokens(self, now: datetime | None = None) -> int:
        res = await self.session.execute(delete(TempToken).where(TempToken.expires_at < (now or utcnow())))
        return int(res.rowcount or 0)
