from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.models.enums import ProductStatus
from orderease.models.product import Product
from orderease.models.tag import ProductTag, Tag


class TagRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, tag_id: int, shop_id: int) -> Tag | None:
        res = await self.session.execute(select(Tag).where(Tag.id == tag_id, Tag.shop_id == shop_id))
        return res.scalar_one_or_none()

    async def get_by_name(self, shop_id: int, name: str) -> Tag | None:
        res = await self.session.execute(select(Tag).where(Tag.shop_id == shop_id, Tag.name == name))
        return res.scalar_one_or_none()

    async def list_by_shop(self, shop_id: int) -> list[Tag]:
        res = await self.session.execute(
            select(Tag).where(Tag.shop_id == shop_id).order_by(Tag.created_at.desc(), Tag.id.desc())
        )
        return list(res.scalars().all())

    async def create(self, **fields) -> Tag:
        tag = Tag(**fields)
        self.session.add(tag)
        await self.session.flush()
        return tag

    async def delete(self, tag_id: int) -> None:
        await self.session.execute(delete(Tag).where(Tag.id == tag_id))

    async def delete_by_shop(self, shop_id: int) -> None:
        await self.session.execute(delete(ProductTag).where(ProductTag.shop_id == shop_id))
        await self.session.execute(delete(Tag).where(Tag.shop_id == shop_id))

    async def count_bindings(self, tag_id: int) -> int:
        res = await self.session.execute(select(func.count()).select_from(ProductTag).where(ProductTag.tag_id == tag_id))
        return int(res.scalar_one() or 0)

    async def bind(self, product_ids: list[int], tag_id: int, shop_id: int) -> int:
        """Tag the shop's products among ``product_ids``; returns how many new bindings were made.

        Ids of other shops' products and products already carrying the tag are skipped.
        """
        valid = set(
            (await self.session.execute(
                select(Product.id).where(Product.id.in_(product_ids), Product.shop_id == shop_id)
            )).scalars().all()
        )
        bound = set(
            (await self.session.execute(
                select(ProductTag.product_id).where(ProductTag.tag_id == tag_id, ProductTag.product_id.in_(valid))
            )).scalars().all()
        ) if valid else set()
        fresh = sorted(valid - bound)
        self.session.add_all(ProductTag(product_id=pid, tag_id=tag_id, shop_id=shop_id) for pid in fresh)
        await self.session.flush()
        return len(fresh)

    async def unbind(self, product_ids: list[int], tag_id: int, shop_id: int) -> int:
        res = await self.session.execute(
            delete(ProductTag).where(
                ProductTag.shop_id == shop_id,
                ProductTag.tag_id == tag_id,
                ProductTag.product_id.in_(product_ids),
            )
        )
        return int(res.rowcount or 0)

    async def delete_product_bindings(self, product_id: int) -> None:
        await self.session.execute(delete(ProductTag).where(ProductTag.product_id == product_id))

    async def tags_of_product(self, product_id: int, shop_id: int) -> list[Tag]:
        res = await self.session.execute(
            select(Tag)
            .join(ProductTag, ProductTag.tag_id == Tag.id)
            .where(ProductTag.product_id == product_id, Tag.shop_id == shop_id)
            .order_by(Tag.id)
        )
        return list(res.scalars().all())

    async def unbound_tags_of_product(self, product_id: int, shop_id: int) -> list[Tag]:
        bound = select(ProductTag.tag_id).where(ProductTag.product_id == product_id)
        res = await self.session.execute(
            select(Tag).where(Tag.shop_id == shop_id, Tag.id.not_in(bound)).order_by(Tag.id)
        )
        return list(res.scalars().all())

    async def online_products(self, tag_id: int, shop_id: int) -> list[Product]:
        res = await self.session.execute(
            select(Product)
            .join(ProductTag, ProductTag.product_id == Product.id)
            .where(
                ProductTag.tag_id == tag_id,
                Product.shop_id == shop_id,
                Product.status == ProductStatus.online.value,
            )
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return list(res.scalars().all())

    async def _product_page(self, where: list, page: int, page_size: int) -> tuple[list[Product], int]:
        total = (await self.session.execute(select(func.count()).select_from(Product).where(*where))).scalar_one()
        res = await self.session.execute(
            select(Product).where(*where).order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * page_size).limit(page_size)
        )
        return list(res.scalars().all()), int(total or 0)

    async def bound_products(
        self, tag_id: int, shop_id: int, page: int, page_size: int, *, online_only: bool = False
    ) -> tuple[list[Product], int]:
        where = [
            Product.shop_id == shop_id,
            Product.id.in_(select(ProductTag.product_id).where(ProductTag.tag_id == tag_id)),
        ]
        if online_only:
            where.append(Product.status == ProductStatus.online.value)
        return await self._product_page(where, page, page_size)

    async def unbound_products_for_tag(
        self, tag_id: int, shop_id: int, page: int, page_size: int
    ) -> tuple[list[Product], int]:
        where = [
            Product.shop_id == shop_id,
            Product.id.not_in(select(ProductTag.product_id).where(ProductTag.tag_id == tag_id)),
        ]
        return await self._product_page(where, page, page_size)

    def _untagged(self, shop_id: int, online_only: bool) -> list:
        where = [Product.shop_id == shop_id, Product.id.not_in(select(ProductTag.product_id))]
        if online_only:
            where.append(Product.status == ProductStatus.online.value)
        return where

    async def untagged_products(
        self, shop_id: int, page: int, page_size: int, *, online_only: bool = False
    ) -> tuple[list[Product], int]:
        return await self._product_page(self._untagged(shop_id, online_only), page, page_size)

    async def untagged_count(self, shop_id: int, *, online_only: bool = False) -> int:
        res = await self.session.execute(
            select(func.count()).select_from(Product).where(*self._untagged(shop_id, online_only))
        )
        return int(res.scalar_one() or 0)

    async def unused_tags(self, shop_id: int, page: int, page_size: int) -> tuple[list[Tag], int]:
        where = [Tag.shop_id == shop_id, Tag.id.not_in(select(ProductTag.tag_id))]
        total = (await self.session.execute(select(func.count()).select_from(Tag).where(*where))).scalar_one()
        res = await self.session.execute(
            select(Tag).where(*where).order_by(Tag.created_at.desc(), Tag.id.desc())
            .offset((page - 1) * page_size).limit(page_size)
        )
        return list(res.scalars().all()), int(total or 0)
