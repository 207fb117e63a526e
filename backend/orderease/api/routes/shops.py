from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.deps import Principal, check_page, get_db, require_admin, require_owner
from orderease.api.access import require_shop_access
from orderease.core.errors import Conflict, Forbidden, NotFound, PreconditionFailed
from orderease.core.security import hash_password
from orderease.models.shop import Shop
from orderease.repos.order_repo import OrderRepo
from orderease.repos.product_repo import ProductRepo
from orderease.repos.shop_repo import ShopRepo
from orderease.repos.tag_repo import TagRepo
from orderease.models.base import utcnow
from orderease.schemas.common import MessageOut, Page
from orderease.schemas.shop import CheckNameOut, OwnerShopUpdate, ShopCreate, ShopListItem, ShopOut, ShopUpdate
from orderease.schemas.status_flow import OrderStatusFlow, OrderStatusFlowOut, UpdateOrderStatusFlowRequest
from orderease.services.status_flow import default_flow, ensure_covers, load_flow, validate_flow

log = logging.getLogger(__name__)

DEFAULT_VALIDITY = timedelta(days=365)

admin_router = APIRouter()
owner_router = APIRouter()


def _shop_out(shop: Shop) -> ShopOut:
    fields = {k: getattr(shop, k) for k in ShopOut.model_fields if k not in {"remaining_days", "is_expired"}}
    return ShopOut(**fields, remaining_days=shop.remaining_days(), is_expired=shop.is_expired())


def _checked_flow(flow: OrderStatusFlow) -> dict:
    validate_flow(flow)
    return flow.as_json()


async def _replacement_flow(db: AsyncSession, shop_id: int, flow: OrderStatusFlow) -> dict:
    """Validated flow JSON that still contains every status the shop's orders are in."""
    checked = _checked_flow(flow)
    ensure_covers(flow, await OrderRepo(db).statuses_in_use(shop_id))
    return checked


async def _ensure_unique(repo: ShopRepo, *, name: str | None, owner_username: str | None, shop_id: int | None = None) -> None:
    if name is not None:
        other = await repo.get_by_name(name)
        if other is not None and other.id != shop_id:
            raise Conflict("shop name already exists")
    if owner_username is not None:
        other = await repo.get_by_owner_username(owner_username)
        if other is not None and other.id != shop_id:
            raise Conflict("owner username already exists")


@admin_router.post("/create", response_model=ShopOut)
async def create_shop(payload: ShopCreate, db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_admin)):
    repo = ShopRepo(db)
    await _ensure_unique(repo, name=payload.name, owner_username=payload.owner_username)

    shop = await repo.create(
        name=payload.name,
        owner_username=payload.owner_username,
        owner_password_hash=hash_password(payload.owner_password),
        contact_phone=payload.contact_phone,
        contact_email=payload.contact_email,
        address=payload.address,
        image_url=payload.image_url,
        description=payload.description,
        valid_until=payload.valid_until or (utcnow() + DEFAULT_VALIDITY),
        settings=payload.settings or {},
        order_status_flow=_checked_flow(payload.order_status_flow) if payload.order_status_flow else default_flow(),
    )
    await db.commit()
    log.info("[shops] created shop %s (%s)", shop.id, shop.name)
    return _shop_out(shop)


@admin_router.put("/update", response_model=ShopOut)
async def update_shop(payload: ShopUpdate, db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_admin)):
    repo = ShopRepo(db)
    shop = await repo.get(payload.id)
    if shop is None:
        raise NotFound("shop not found")
    await _ensure_unique(repo, name=payload.name, owner_username=payload.owner_username, shop_id=shop.id)

    fields = payload.model_dump(exclude_unset=True, exclude={"id", "owner_password", "order_status_flow"})
    for key, value in fields.items():
        if key in {"name", "owner_username", "valid_until"} and value is None:
            continue
        setattr(shop, key, value if key != "settings" else (value or {}))
    if payload.owner_password:
        shop.owner_password_hash = hash_password(payload.owner_password)
    if payload.order_status_flow is not None:
        shop.order_status_flow = await _replacement_flow(db, shop.id, payload.order_status_flow)
    await db.commit()
    return _shop_out(shop)


@admin_router.get("/detail", response_model=ShopOut)
async def shop_detail(id: int = Query(...), db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_admin)):
    shop = await ShopRepo(db).get(id)
    if shop is None:
        raise NotFound("shop not found")
    return _shop_out(shop)


@admin_router.get("/list", response_model=Page[ShopListItem])
async def list_shops(
    page: int = Query(default=1),
    page_size: int = Query(default=10, alias="pageSize"),
    name: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    check_page(page, page_size)
    rows, total = await ShopRepo(db).list_page(page, page_size, name=name)
    return Page[ShopListItem](
        total=total, page=page, page_size=page_size, data=[ShopListItem.model_validate(s) for s in rows]
    )


@admin_router.delete("/delete", response_model=MessageOut)
async def delete_shop(id: int = Query(...), db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_admin)):
    repo = ShopRepo(db)
    if await repo.get(id) is None:
        raise NotFound("shop not found")
    if await ProductRepo(db).count_by_shop(id) > 0:
        raise PreconditionFailed("shop still has products")
    if await OrderRepo(db).count_by_shop(id) > 0:
        raise PreconditionFailed("shop still has orders")
    await TagRepo(db).delete_by_shop(id)
    await repo.delete(id)
    await db.commit()
    log.info("[shops] deleted shop %s", id)
    return MessageOut(message="shop deleted")


@admin_router.get("/check-name", response_model=CheckNameOut)
async def check_shop_name(name: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_admin)):
    return CheckNameOut(name=name, exists=await ShopRepo(db).get_by_name(name) is not None)


@admin_router.put("/update-order-status-flow", response_model=OrderStatusFlowOut)
async def update_order_status_flow(
    payload: UpdateOrderStatusFlowRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    shop = await ShopRepo(db).get(payload.shop_id)
    if shop is None:
        raise NotFound("shop not found")
    shop.order_status_flow = await _replacement_flow(db, shop.id, payload.order_status_flow)
    await db.commit()
    log.info("[shops] shop %s status flow replaced (%s statuses)", shop.id, len(payload.order_status_flow.statuses))
    return OrderStatusFlowOut(shop_id=shop.id, order_status_flow=load_flow(shop.order_status_flow).as_json())


@owner_router.get("/detail", response_model=ShopOut)
async def owner_shop_detail(
    shop_id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_owner),
):
    access = await require_shop_access(db, principal, shop_id)
    return _shop_out(access.shop)


@owner_router.put("/update", response_model=ShopOut)
async def owner_shop_update(
    payload: OwnerShopUpdate,
    shop_id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_owner),
):
    if "valid_until" in payload.model_fields_set and not principal.is_admin:
        raise Forbidden("shop owners cannot change the validity period")
    access = await require_shop_access(db, principal, shop_id, write=True)
    shop = access.shop
    for key, value in payload.model_dump(exclude_unset=True, exclude={"valid_until"}).items():
        setattr(shop, key, value if key != "settings" else (value or {}))
    await db.commit()
    return _shop_out(shop)
