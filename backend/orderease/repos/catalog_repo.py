from __future__ import annotations

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.models.product import Product, ProductOption, ProductOptionCategory


def lock_products_query(product_ids: set[int], shop_id: int) -> Select:
    """SELECT ... FOR UPDATE over the shop's products, rows taken in ascending id order."""
    return (
        select(Product)
        .where(Product.id.in_(sorted(product_ids)), Product.shop_id == shop_id)
        .order_by(Product.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


class CatalogRepo:
    """Tenant-scoped catalog lookups used while building orders.

    A product owned by another shop is reported as missing, never as forbidden.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_product(self, product_id: int, shop_id: int) -> Product | None:
        res = await self.session.execute(select(Product).where(Product.id == product_id, Product.shop_id == shop_id))
        return res.scalar_one_or_none()

    async def find_option(self, option_id: int) -> ProductOption | None:
        return await self.session.get(ProductOption, option_id)

    async def find_option_category(self, category_id: int) -> ProductOptionCategory | None:
        return await self.session.get(ProductOptionCategory, category_id)

    async def lock_products(self, product_ids: set[int], shop_id: int) -> dict[int, Product]:
        if not product_ids:
            return {}
        res = await self.session.execute(lock_products_query(product_ids, shop_id))
        return {p.id: p for p in res.scalars().all()}
