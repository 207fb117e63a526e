from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.models.admin import Admin


class AdminRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, admin_id: int) -> Admin | None:
        return await self.session.get(Admin, admin_id)

    async def get_by_username(self, username: str) -> Admin | None:
        res = await self.session.execute(select(Admin).where(Admin.username == username))
        return res.scalar_one_or_none()

    async def count(self) -> int:
        res = await self.session.execute(select(func.count(Admin.id)))
        return int(res.scalar_one() or 0)

    async def create(self, username: str, password_hash: str) -> Admin:
        admin = Admin(username=username, password_hash=password_hash)
        self.session.add(admin)
        await self.session.flush()
        return admin
