from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.access import require_shop_access
from orderease.api.deps import (
    Principal,
    check_page,
    get_broadcaster,
    get_db,
    require_customer,
)
from orderease.core.config import settings
from orderease.core.errors import InvalidInput, NotFound
from orderease.models.order import Order
from orderease.repos.order_repo import OrderRepo
from orderease.repos.user_repo import UserRepo
from orderease.schemas.common import MessageOut, Page
from orderease.schemas.order import (
    AdvanceSearchRequest,
    CreateOrderRequest,
    CreateOrderResponse,
    OrderDetail,
    OrderStatusLogOut,
    OrderSummary,
    ToggleOrderStatusRequest,
    ToggleOrderStatusResponse,
    UpdateOrderRequest,
)
from orderease.schemas.status_flow import OrderStatusFlowOut
from orderease.services.broadcaster import OrderBroadcaster
from orderease.services.events import order_event_stream
from orderease.services.ordering import OrderService
from orderease.services.status_flow import load_flow, unfinished_statuses

log = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _page(rows: list[Order], total: int, page: int, page_size: int) -> Page[OrderSummary]:
    return Page[OrderSummary](
        total=total,
        page=page,
        page_size=page_size,
        data=[OrderSummary.model_validate(o) for o in rows],
    )


def _publish(broadcaster: OrderBroadcaster, order: Order) -> None:
    payload = OrderDetail.model_validate(order).model_dump(mode="json", by_alias=True)
    broadcaster.publish(order.shop_id, order.id, payload)


async def _create(
    payload: CreateOrderRequest,
    user_id: int,
    principal: Principal,
    db: AsyncSession,
    broadcaster: OrderBroadcaster,
) -> CreateOrderResponse:
    access = await require_shop_access(db, principal, payload.shop_id, write=True)
    if await UserRepo(db).get(user_id) is None:
        raise InvalidInput(f"user {user_id} not found")

    order = await OrderService(db).create(access.shop, user_id, payload.items, payload.remark)
    await db.commit()
    _publish(broadcaster, order)
    return CreateOrderResponse(
        order_id=order.id,
        total_price=order.total_price,
        created_at=order.created_at,
        status=order.status,
    )


def build_order_router(principal_dep: Callable) -> APIRouter:
    """Order management routes shared by administrators and shop owners."""

    router = APIRouter()

    @router.post("/create", response_model=CreateOrderResponse)
    async def create_order(
        payload: CreateOrderRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
        broadcaster: OrderBroadcaster = Depends(get_broadcaster),
    ):
        if payload.user_id is None:
            raise InvalidInput("user_id is required")
        return await _create(payload, payload.user_id, principal, db, broadcaster)

    @router.get("", response_model=OrderDetail)
    async def get_order(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        order = await OrderRepo(db).get(id, access.shop_id)
        if order is None:
            raise NotFound("order not found")
        return order

    @router.get("/list", response_model=Page[OrderSummary])
    async def list_orders(
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        rows, total = await OrderRepo(db).list_by_shop(access.shop_id, page, page_size)
        return _page(rows, total, page, page_size)

    @router.get("/user", response_model=Page[OrderSummary])
    async def list_user_orders(
        user_id: int = Query(...),
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        rows, total = await OrderRepo(db).list_by_user(user_id, access.shop_id, page, page_size)
        return _page(rows, total, page, page_size)

    @router.post("/advance-search", response_model=Page[OrderSummary])
    async def advance_search(
        payload: AdvanceSearchRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id)
        rows, total = await OrderRepo(db).search(
            access.shop_id,
            payload.page,
            payload.page_size,
            user_id=payload.user_id,
            statuses=payload.status,
            start_time=payload.start_time,
            end_time=payload.end_time,
        )
        return _page(rows, total, payload.page, payload.page_size)

    @router.get("/unfinished", response_model=Page[OrderSummary])
    async def list_unfinished(
        shop_id: int | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        access = await require_shop_access(db, principal, shop_id)
        statuses = unfinished_statuses(load_flow(access.shop.order_status_flow))
        if not statuses:
            return _page([], 0, page, page_size)
        rows, total = await OrderRepo(db).search(access.shop_id, page, page_size, statuses=statuses)
        return _page(rows, total, page, page_size)

    @router.put("/toggle-status", response_model=ToggleOrderStatusResponse)
    async def toggle_status(
        payload: ToggleOrderStatusRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        old_status, order = await OrderService(db).change_status(access.shop, payload.id, payload.next_status)
        await db.commit()
        return ToggleOrderStatusResponse(
            old_status=old_status,
            new_status=order.status,
            order=OrderDetail.model_validate(order),
        )

    @router.put("/update", response_model=OrderDetail)
    async def update_order(
        payload: UpdateOrderRequest,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, payload.shop_id, write=True)
        order = await OrderService(db).update(access.shop, payload.id, payload.items, payload.remark)
        await db.commit()
        return order

    @router.delete("", response_model=MessageOut)
    async def delete_order(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id, write=True)
        await OrderService(db).delete(access.shop, id)
        await db.commit()
        return MessageOut(message="order deleted")

    @router.get("/status-flow", response_model=OrderStatusFlowOut)
    async def get_status_flow(
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        flow = load_flow(access.shop.order_status_flow)
        return OrderStatusFlowOut(shop_id=access.shop_id, order_status_flow=flow.as_json())

    @router.get("/logs", response_model=list[OrderStatusLogOut])
    async def list_status_logs(
        id: int = Query(...),
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        access = await require_shop_access(db, principal, shop_id)
        repo = OrderRepo(db)
        if await repo.get(id, access.shop_id, with_items=False) is None:
            raise NotFound("order not found")
        return await repo.list_logs(id)

    @router.get("/events")
    async def order_events(
        request: Request,
        shop_id: int | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
        broadcaster: OrderBroadcaster = Depends(get_broadcaster),
    ):
        access = await require_shop_access(db, principal, shop_id)
        # The stream outlives the request; do not hold a transaction open for it.
        await db.rollback()
        sub = broadcaster.subscribe(access.shop_id)
        return StreamingResponse(
            order_event_stream(sub, keepalive_sec=settings.SSE_KEEPALIVE_SEC, is_disconnected=request.is_disconnected),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return router


# Storefront: customers act on their own orders only.
store_router = APIRouter()


@store_router.post("/create", response_model=CreateOrderResponse)
async def store_create_order(
    payload: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_customer),
    broadcaster: OrderBroadcaster = Depends(get_broadcaster),
):
    return await _create(payload, principal.id, principal, db, broadcaster)


@store_router.get("", response_model=OrderDetail)
async def store_get_order(
    id: int = Query(...),
    shop_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_customer),
):
    access = await require_shop_access(db, principal, shop_id)
    order = await OrderRepo(db).get(id, access.shop_id)
    if order is None or order.user_id != principal.id:
        raise NotFound("order not found")
    return order


@store_router.get("/user", response_model=Page[OrderSummary])
async def store_list_orders(
    shop_id: int = Query(...),
    page: int = Query(default=1),
    page_size: int = Query(default=10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_customer),
):
    check_page(page, page_size)
    access = await require_shop_access(db, principal, shop_id)
    rows, total = await OrderRepo(db).list_by_user(principal.id, access.shop_id, page, page_size)
    return _page(rows, total, page, page_size)


@store_router.delete("", response_model=MessageOut)
async def store_delete_order(
    id: int = Query(...),
    shop_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_customer),
):
    access = await require_shop_access(db, principal, shop_id, write=True)
    order = await OrderRepo(db).get(id, access.shop_id, with_items=False)
    if order is None or order.user_id != principal.id:
        raise NotFound("order not found")
    await OrderService(db).delete(access.shop, id)
    await db.commit()
    return MessageOut(message="order deleted")
