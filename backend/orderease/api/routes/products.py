from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.access import require_public_shop, require_shop_access
from orderease.api.deps import Principal, check_page, get_db
from orderease.core.errors import InvalidInput, NotFound, PreconditionFailed
from orderease.core.ids import new_id
from orderease.models.enums import ProductStatus, product_transition_allowed
from orderease.models.product import Product, ProductOption, ProductOptionCategory
from orderease.repos.catalog_repo import CatalogRepo
from orderease.repos.order_repo import OrderRepo
from orderease.repos.product_repo import ProductRepo
from orderease.repos.tag_repo import TagRepo
from orderease.schemas.common import MessageOut, Page
from orderease.schemas.product import (
    ProductCreate,
    ProductListItem,
    ProductOptionCategoryIn,
    ProductOut,
    ProductToggleStatus,
    ProductUpdate,
)
from orderease.services import stock
from orderease.services.pricing import money

log = logging.getLogger(__name__)


def _categories(product_id: int, payload: list[ProductOptionCategoryIn]) -> list[ProductOptionCategory]:
    out = []
    for c in payload:
        category = ProductOptionCategory(
            id=new_id(),
            product_id=product_id,
            name=c.name,
            is_required=c.is_required,
            is_multiple=c.is_multiple,
            display_order=c.display_order,
        )
        category.options = [
            ProductOption(
                id=new_id(),
                category_id=category.id,
                name=o.name,
                price_adjustment=money(o.price_adjustment),
                is_default=o.is_default,
                display_order=o.display_order,
            )
            for o in c.options
        ]
        out.append(category)
    return out


def _page(rows: list[Product], total: int, page: int, page_size: int) -> Page[ProductListItem]:
    return Page[ProductListItem](
        total=total, page=page, page_size=page_size, data=[ProductListItem.model_validate(p) for p in rows]
    )


def build_product_router(principal_dep: Callable) -> APIRouter:
    """Catalog management shared by administrators and shop owners."""

    router = APIRouter()

    @router.post("/create", response_model=ProductOut)
    async def create_product(
        payload: ProductCreate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        product = Product(
            id=new_id(),
            shop_id=access.shop_id,
            name=payload.name,
            description=payload.description,
            price=money(payload.price),
            stock=payload.stock,
            image_url=payload.image_url,
            status=ProductStatus.pending.value,
        )
        product.option_categories = _categories(product.id, payload.option_categories)
        repo = ProductRepo(db)
        await repo.add(product)
        await db.commit()
        log.info("[products] created product %s shop=%s", product.id, access.shop_id)
        return await repo.get(product.id, access.shop_id)

    @router.get("/list", response_model=Page[ProductListItem])
    async def list_products(
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        rows, total = await ProductRepo(db).list_page(access.shop_id, page, page_size)
        return _page(rows, total, page, page_size)

    @router.get("/detail", response_model=ProductOut)
    async def product_detail(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        product = await ProductRepo(db).get(id, access.shop_id)
        if product is None:
            raise NotFound("product not found")
        return product

    @router.put("/update", response_model=ProductOut)
    async def update_product(
        payload: ProductUpdate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        repo = ProductRepo(db)
        # Stock is set before the other fields: the locked read refreshes the row.
        if payload.stock is not None:
            product = await stock.set_stock(db, access.shop_id, payload.id, payload.stock)
        else:
            product = await CatalogRepo(db).find_product(payload.id, access.shop_id)
        if product is None:
            raise NotFound("product not found")

        fields = payload.model_dump(exclude_unset=True, exclude={"id", "shop_id", "stock", "option_categories"})
        for key, value in fields.items():
            if value is None and key in {"name", "price"}:
                continue
            setattr(product, key, money(value) if key == "price" else value)

        if payload.option_categories is not None:
            await repo.delete_option_categories(product.id)
            db.add_all(_categories(product.id, payload.option_categories))
        await db.flush()
        await db.commit()
        return await repo.get(product.id, access.shop_id)

    @router.put("/toggle-status", response_model=ProductOut)
    async def toggle_product_status(
        payload: ProductToggleStatus,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        if payload.status not in ProductStatus.values():
            raise InvalidInput(f"unknown product status {payload.status!r}")
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        repo = ProductRepo(db)
        product = await CatalogRepo(db).find_product(payload.id, access.shop_id)
        if product is None:
            raise NotFound("product not found")
        if not product_transition_allowed(product.status, payload.status):
            raise InvalidInput(f"product status cannot change from {product.status} to {payload.status}")
        product.status = payload.status
        await db.commit()
        return await repo.get(product.id, access.shop_id)

    @router.delete("/delete", response_model=MessageOut)
    async def delete_product(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id, write=True)
        repo = ProductRepo(db)
        if await CatalogRepo(db).find_product(id, access.shop_id) is None:
            raise NotFound("product not found")
        if await OrderRepo(db).product_referenced(id):
            raise PreconditionFailed("product is referenced by orders; take it offline instead")
        await TagRepo(db).delete_product_bindings(id)
        await repo.delete(id, access.shop_id)
        await db.commit()
        log.info("[products] deleted product %s shop=%s", id, access.shop_id)
        return MessageOut(message="product deleted")

    return router


# Storefront: unauthenticated reads of online products.
store_router = APIRouter()


@store_router.get("/list", response_model=Page[ProductListItem])
async def store_list_products(
    shop_id: int = Query(...),
    page: int = Query(default=1),
    page_size: int = Query(default=10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    check_page(page, page_size)
    shop = await require_public_shop(db, shop_id)
    rows, total = await ProductRepo(db).list_page(shop.id, page, page_size, statuses=[ProductStatus.online.value])
    return _page(rows, total, page, page_size)


@store_router.get("/detail", response_model=ProductOut)
async def store_product_detail(
    id: int = Query(...),
    shop_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    shop = await require_public_shop(db, shop_id)
    product = await ProductRepo(db).get(id, shop.id)
    if product is None or product.status != ProductStatus.online.value:
        raise NotFound("product not found")
    return product
