from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.access import require_public_shop, require_shop_access
from orderease.api.deps import Principal, check_page, get_db
from orderease.core.errors import Conflict, NotFound, PreconditionFailed
from orderease.models.product import Product
from orderease.models.tag import Tag
from orderease.repos.catalog_repo import CatalogRepo
from orderease.repos.tag_repo import TagRepo
from orderease.schemas.common import MessageOut, Page
from orderease.schemas.product import ProductListItem
from orderease.schemas.tag import (
    BatchTagRequest,
    BatchTagResult,
    ProductTagsOut,
    ProductTagsRequest,
    ProductTagsResult,
    TagCreate,
    TagList,
    TagOut,
    TagProductsOut,
    TagUpdate,
)
from orderease.services.tagging import set_product_tags

log = logging.getLogger(__name__)

# Storefront pseudo-tag grouping online products that carry no tag.
UNTAGGED_ID = -1
UNTAGGED_NAME = "其他"


def _products(rows: list[Product], total: int, page: int, page_size: int) -> Page[ProductListItem]:
    return Page[ProductListItem](
        total=total, page=page, page_size=page_size, data=[ProductListItem.model_validate(p) for p in rows]
    )


async def _tag(repo: TagRepo, tag_id: int, shop_id: int) -> Tag:
    tag = await repo.get(tag_id, shop_id)
    if tag is None:
        raise NotFound("tag not found")
    return tag


async def _product_exists(db: AsyncSession, product_id: int, shop_id: int) -> None:
    if await CatalogRepo(db).find_product(product_id, shop_id) is None:
        raise NotFound("product not found")


def build_tag_router(principal_dep: Callable) -> APIRouter:
    """Tag management shared by administrators and shop owners."""

    router = APIRouter()

    @router.post("/create", response_model=TagOut)
    async def create_tag(
        payload: TagCreate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        repo = TagRepo(db)
        if await repo.get_by_name(access.shop_id, payload.name) is not None:
            raise Conflict(f"tag {payload.name!r} already exists")
        tag = await repo.create(shop_id=access.shop_id, name=payload.name, description=payload.description)
        await db.commit()
        log.info("[tags] created tag %s shop=%s", tag.id, access.shop_id)
        return tag

    @router.get("/list", response_model=TagList)
    async def list_tags(
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        tags = await TagRepo(db).list_by_shop(access.shop_id)
        return TagList(total=len(tags), tags=[TagOut.model_validate(t) for t in tags])

    @router.get("/detail", response_model=TagOut)
    async def tag_detail(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        return await _tag(TagRepo(db), id, access.shop_id)

    @router.put("/update", response_model=TagOut)
    async def update_tag(
        payload: TagUpdate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        repo = TagRepo(db)
        tag = await _tag(repo, payload.id, access.shop_id)
        if payload.name is not None and payload.name != tag.name:
            if await repo.get_by_name(access.shop_id, payload.name) is not None:
                raise Conflict(f"tag {payload.name!r} already exists")
            tag.name = payload.name
        if "description" in payload.model_fields_set:
            tag.description = payload.description
        await db.flush()
        await db.commit()
        return tag

    @router.delete("/delete", response_model=MessageOut)
    async def delete_tag(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id, write=True)
        repo = TagRepo(db)
        await _tag(repo, id, access.shop_id)
        bound = await repo.count_bindings(id)
        if bound:
            raise PreconditionFailed(f"tag is bound to {bound} products; unbind them first")
        await repo.delete(id)
        await db.commit()
        log.info("[tags] deleted tag %s shop=%s", id, access.shop_id)
        return MessageOut(message="tag deleted")

    @router.post("/batch-tag", response_model=BatchTagResult)
    async def batch_tag(
        payload: BatchTagRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        repo = TagRepo(db)
        await _tag(repo, payload.tag_id, access.shop_id)
        successful = await repo.bind(payload.product_ids, payload.tag_id, access.shop_id)
        await db.commit()
        return BatchTagResult(total=len(payload.product_ids), successful=successful)

    @router.delete("/batch-untag", response_model=BatchTagResult)
    async def batch_untag(
        payload: BatchTagRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        repo = TagRepo(db)
        await _tag(repo, payload.tag_id, access.shop_id)
        successful = await repo.unbind(payload.product_ids, payload.tag_id, access.shop_id)
        await db.commit()
        return BatchTagResult(total=len(payload.product_ids), successful=successful)

    @router.post("/batch-tag-product", response_model=ProductTagsResult)
    async def batch_tag_product(
        payload: ProductTagsRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        diff = await set_product_tags(db, access.shop_id, payload.product_id, payload.tag_ids)
        await db.commit()
        return ProductTagsResult(added_count=len(diff.to_add), deleted_count=len(diff.to_delete))

    @router.get("/online-products", response_model=TagProductsOut)
    async def online_products(
        tag_id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        repo = TagRepo(db)
        await _tag(repo, tag_id, access.shop_id)
        rows = await repo.online_products(tag_id, access.shop_id)
        return TagProductsOut(tag_id=tag_id, products=[ProductListItem.model_validate(p) for p in rows])

    @router.get("/bound-tags", response_model=ProductTagsOut)
    async def bound_tags(
        product_id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        await _product_exists(db, product_id, access.shop_id)
        tags = await TagRepo(db).tags_of_product(product_id, access.shop_id)
        return ProductTagsOut(product_id=product_id, tags=[TagOut.model_validate(t) for t in tags])

    @router.get("/unbound-tags", response_model=ProductTagsOut)
    async def unbound_tags(
        product_id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        await _product_exists(db, product_id, access.shop_id)
        tags = await TagRepo(db).unbound_tags_of_product(product_id, access.shop_id)
        return ProductTagsOut(product_id=product_id, tags=[TagOut.model_validate(t) for t in tags])

    @router.get("/bound-products", response_model=Page[ProductListItem])
    async def bound_products(
        tag_id: int = Query(...),
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        repo = TagRepo(db)
        if tag_id == UNTAGGED_ID:
            rows, total = await repo.untagged_products(access.shop_id, page, page_size)
        else:
            await _tag(repo, tag_id, access.shop_id)
            rows, total = await repo.bound_products(tag_id, access.shop_id, page, page_size)
        return _products(rows, total, page, page_size)

    @router.get("/unbound-products", response_model=Page[ProductListItem])
    async def unbound_products(
        tag_id: int = Query(...),
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        repo = TagRepo(db)
        await _tag(repo, tag_id, access.shop_id)
        rows, total = await repo.unbound_products_for_tag(tag_id, access.shop_id, page, page_size)
        return _products(rows, total, page, page_size)

    @router.get("/unbound-list", response_model=Page[TagOut])
    async def unused_tags(
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        rows, total = await TagRepo(db).unused_tags(access.shop_id, page, page_size)
        return Page[TagOut](total=total, page=page, page_size=page_size, data=[TagOut.model_validate(t) for t in rows])

    return router


# Storefront: unauthenticated reads; only online products are shown.
store_router = APIRouter()


@store_router.get("/list", response_model=TagList)
async def store_list_tags(shop_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    shop = await require_public_shop(db, shop_id)
    repo = TagRepo(db)
    tags = [TagOut.model_validate(t) for t in await repo.list_by_shop(shop.id)]
    if await repo.untagged_count(shop.id, online_only=True) > 0:
        tags.append(TagOut(id=UNTAGGED_ID, name=UNTAGGED_NAME))
    return TagList(total=len(tags), tags=tags)


@store_router.get("/detail", response_model=TagOut)
async def store_tag_detail(id: int = Query(...), shop_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    shop = await require_public_shop(db, shop_id)
    return await _tag(TagRepo(db), id, shop.id)


@store_router.get("/bound-products", response_model=Page[ProductListItem])
async def store_bound_products(
    tag_id: int = Query(...),
    shop_id: int = Query(...),
    page: int = Query(default=1),
    page_size: int = Query(default=10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    check_page(page, page_size)
    shop = await require_public_shop(db, shop_id)
    repo = TagRepo(db)
    if tag_id == UNTAGGED_ID:
        rows, total = await repo.untagged_products(shop.id, page, page_size, online_only=True)
    else:
        await _tag(repo, tag_id, shop.id)
        rows, total = await repo.bound_products(tag_id, shop.id, page, page_size, online_only=True)
    return _products(rows, total, page, page_size)
