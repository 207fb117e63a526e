from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.core.ids import new_id
from orderease.models.shop import Shop


class ShopRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, shop_id: int) -> Shop | None:
        return await self.session.get(Shop, shop_id)

    async def get_by_owner_username(self, username: str) -> Shop | None:
        res = await self.session.execute(select(Shop).where(Shop.owner_username == username))
        return res.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Shop | None:
        res = await self.session.execute(select(Shop).where(Shop.name == name))
        return res.scalar_one_or_none()

    async def list_page(self, page: int, page_size: int, *, name: str | None = None) -> tuple[list[Shop], int]:
        where = []
        if name:
            where.append(Shop.name.ilike(f"%{name}%"))
        total = (await self.session.execute(select(func.count()).select_from(Shop).where(*where))).scalar_one()
        res = await self.session.execute(
            select(Shop).where(*where).order_by(Shop.created_at.desc(), Shop.id.desc())
            .offset((page - 1) * page_size).limit(page_size)
        )
        return list(res.scalars().all()), int(total or 0)

    async def create(self, **fields) -> Shop:
        shop = Shop(id=new_id(), **fields)
        self.session.add(shop)
        await self.session.flush()
        return shop

    async def delete(self, shop_id: int) -> None:
        await self.session.execute(delete(Shop).where(Shop.id == shop_id))
