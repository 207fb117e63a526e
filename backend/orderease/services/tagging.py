"""Replacing the full tag set of one product."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.core.errors import InvalidInput, NotFound
from orderease.models.tag import ProductTag
from orderease.repos.catalog_repo import CatalogRepo
from orderease.repos.tag_repo import TagRepo


@dataclass(frozen=True)
class TagDiff:
    to_add: list[int]
    to_delete: list[int]


def diff_tags(current: list[int], wanted: list[int]) -> TagDiff:
    """Bindings to create and to drop so that ``current`` becomes ``wanted``.

    Duplicates in ``wanted`` count once; the order of first appearance is kept.
    """
    have = set(current)
    want = list(dict.fromkeys(wanted))
    keep = set(want)
    return TagDiff(
        to_add=[t for t in want if t not in have],
        to_delete=[t for t in dict.fromkeys(current) if t not in keep],
    )


async def set_product_tags(session: AsyncSession, shop_id: int, product_id: int, tag_ids: list[int]) -> TagDiff:
    if await CatalogRepo(session).find_product(product_id, shop_id) is None:
        raise NotFound("product not found")

    repo = TagRepo(session)
    shop_tags = {t.id for t in await repo.list_by_shop(shop_id)}
    foreign = sorted(set(tag_ids) - shop_tags)
    if foreign:
        raise InvalidInput(f"tags {', '.join(str(t) for t in foreign)} do not belong to the shop")

    current = [t.id for t in await repo.tags_of_product(product_id, shop_id)]
    diff = diff_tags(current, tag_ids)
    session.add_all(ProductTag(product_id=product_id, tag_id=t, shop_id=shop_id) for t in diff.to_add)
    if diff.to_delete:
        await session.execute(
            delete(ProductTag).where(ProductTag.product_id == product_id, ProductTag.tag_id.in_(diff.to_delete))
        )
    await session.flush()
    return diff
