from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.core.ids import new_id
from orderease.models.user import User


class UserRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_name(self, name: str) -> User | None:
        res = await self.session.execute(select(User).where(User.name == name))
        return res.scalar_one_or_none()

    async def create(self, **fields) -> User:
        user = User(id=new_id(), **fields)
        self.session.add(user)
        await self.session.flush()
        return user

    async def list_page(self, page: int, page_size: int) -> tuple[list[User], int]:
        total = (await self.session.execute(select(func.count(User.id)))).scalar_one()
        res = await self.session.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * page_size).limit(page_size)
        )
        return list(res.scalars().all()), int(total or 0)

    async def simple_list(self, search: str | None = None, limit: int = 100) -> list[User]:
        q = select(User)
        if search:
            q = q.where(User.name.ilike(f"%{search}%"))
        res = await self.session.execute(q.order_by(User.name).limit(limit))
        return list(res.scalars().all())

    async def delete(self, user_id: int) -> None:
        await self.session.execute(delete(User).where(User.id == user_id))
