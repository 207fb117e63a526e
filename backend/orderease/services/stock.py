"""Stock reservation.

All stock mutations go through this module. ``apply_stock_delta`` and
``set_stock`` row-lock the affected products in id order before reading or
writing their stock.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from orderease.core.errors import InvalidInput, NotFound, OutOfStock
from orderease.models.product import Product
from orderease.repos.catalog_repo import CatalogRepo

log = logging.getLogger(__name__)


def quantities(lines: Iterable[tuple[int, int]]) -> dict[int, int]:
    """Sum (product_id, quantity) pairs per product."""
    out: dict[int, int] = defaultdict(int)
    for product_id, qty in lines:
        out[int(product_id)] += int(qty)
    return dict(out)


async def apply_stock_delta(
    session: AsyncSession,
    shop_id: int,
    take: dict[int, int],
    give_back: dict[int, int] | None = None,
) -> dict[int, Product]:
    """Decrement stock by ``take`` and increment it by ``give_back`` in one locked pass.

    Products named in ``take`` must exist in the shop (NotFound otherwise).
    Products in ``give_back`` that no longer exist are skipped.
    Returns the locked product rows keyed by id.
    """
    give_back = give_back or {}
    products = await CatalogRepo(session).lock_products(set(take) | set(give_back), shop_id)

    for product_id in sorted(take):
        if product_id not in products:
            raise NotFound(f"product {product_id} not found")

    for product_id in sorted(set(take) | set(give_back)):
        product = products.get(product_id)
        if product is None:
            log.warning("[stock] product %s vanished, skipping restore", product_id)
            continue
        new_stock = product.stock + give_back.get(product_id, 0) - take.get(product_id, 0)
        if new_stock < 0:
            raise OutOfStock(product_id)
        product.stock = new_stock

    await session.flush()
    return products


async def reserve(session: AsyncSession, shop_id: int, wanted: dict[int, int]) -> dict[int, Product]:
    return await apply_stock_delta(session, shop_id, take=wanted)


async def restore(session: AsyncSession, shop_id: int, returned: dict[int, int]) -> None:
    await apply_stock_delta(session, shop_id, take={}, give_back=returned)


async def set_stock(session: AsyncSession, shop_id: int, product_id: int, level: int) -> Product:
    """Overwrite a product's stock level while holding its row lock."""
    if level < 0:
        raise InvalidInput("stock must be >= 0")
    product = (await CatalogRepo(session).lock_products({product_id}, shop_id)).get(product_id)
    if product is None:
        raise NotFound("product not found")
    product.stock = level
    await session.flush()
    return product
