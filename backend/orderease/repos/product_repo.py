from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderease.models.product import Product, ProductOption, ProductOptionCategory


class ProductRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, product_id: int, shop_id: int) -> Product | None:
        """The product with its option categories and options loaded."""
        res = await self.session.execute(
            select(Product)
            .where(Product.id == product_id, Product.shop_id == shop_id)
            .options(selectinload(Product.option_categories).selectinload(ProductOptionCategory.options))
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def list_page(
        self,
        shop_id: int,
        page: int,
        page_size: int,
        *,
        statuses: list[str] | None = None,
    ) -> tuple[list[Product], int]:
        where = [Product.shop_id == shop_id]
        if statuses:
            where.append(Product.status.in_(statuses))
        total = (await self.session.execute(select(func.count()).select_from(Product).where(*where))).scalar_one()
        res = await self.session.execute(
            select(Product).where(*where).order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * page_size).limit(page_size)
        )
        return list(res.scalars().all()), int(total or 0)

    async def count_by_shop(self, shop_id: int) -> int:
        res = await self.session.execute(select(func.count()).select_from(Product).where(Product.shop_id == shop_id))
        return int(res.scalar_one() or 0)

    async def add(self, product: Product) -> Product:
        self.session.add(product)
        await self.session.flush()
        return product

    async def delete_option_categories(self, product_id: int) -> None:
        category_ids = select(ProductOptionCategory.id).where(ProductOptionCategory.product_id == product_id).scalar_subquery()
        await self.session.execute(delete(ProductOption).where(ProductOption.category_id.in_(category_ids)))
        await self.session.execute(delete(ProductOptionCategory).where(ProductOptionCategory.product_id == product_id))

    async def delete(self, product_id: int, shop_id: int) -> None:
        await self.delete_option_categories(product_id)
        await self.session.execute(delete(Product).where(Product.id == product_id, Product.shop_id == shop_id))
