"""Order lifecycle: create, replace basket, change status, delete.

Methods only flush. The caller owns the transaction and commits once the
call returns; any exception leaves the session uncommitted.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from orderease.core.errors import NotFound, PreconditionFailed
from orderease.core.ids import new_id
from orderease.models.base import utcnow
from orderease.models.order import Order, OrderStatusLog
from orderease.models.shop import Shop
from orderease.repos.catalog_repo import CatalogRepo
from orderease.repos.order_repo import OrderRepo
from orderease.schemas.order import OrderItemIn
from orderease.services import stock
from orderease.services.pricing import CatalogSnapshot, build_items
from orderease.services.status_flow import initial_status, is_final, load_flow, validate_transition

log = logging.getLogger(__name__)


class OrderService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.orders = OrderRepo(session)
        self.catalog = CatalogRepo(session)

    async def _snapshot(self, basket: list[OrderItemIn], products: dict) -> CatalogSnapshot:
        snapshot = CatalogSnapshot(products=products)
        for category_id, option_id in sorted({(o.category_id, o.option_id) for line in basket for o in line.options}):
            if category_id not in snapshot.categories:
                category = await self.catalog.find_option_category(category_id)
                if category is not None:
                    snapshot.categories[category_id] = category
            if option_id not in snapshot.options:
                option = await self.catalog.find_option(option_id)
                if option is not None:
                    snapshot.options[option_id] = option
        return snapshot

    async def create(self, shop: Shop, user_id: int, basket: list[OrderItemIn], remark: str | None) -> Order:
        flow = load_flow(shop.order_status_flow)
        status = initial_status(flow)

        wanted = stock.quantities((line.product_id, line.quantity) for line in basket)
        products = await stock.reserve(self.session, shop.id, wanted)
        snapshot = await self._snapshot(basket, products)

        order_id = new_id()
        items, total = build_items(order_id, basket, snapshot)

        now = utcnow()
        order = Order(
            id=order_id,
            user_id=user_id,
            shop_id=shop.id,
            total_price=total,
            status=status,
            remark=remark,
            created_at=now,
            updated_at=now,
        )
        order.items = items
        await self.orders.add(
            order,
            OrderStatusLog(id=new_id(), order_id=order_id, old_status=None, new_status=status, changed_time=now),
        )
        log.info("[orders] created order %s shop=%s total=%s items=%s", order.id, shop.id, total, len(items))
        return order

    async def update(self, shop: Shop, order_id: int, basket: list[OrderItemIn], remark: str | None) -> Order:
        order = await self.orders.get_for_update(order_id, shop.id)
        if order is None:
            raise NotFound("order not found")

        flow = load_flow(shop.order_status_flow)
        if is_final(flow, order.status):
            raise PreconditionFailed("order is in a final status and can no longer be changed")

        old = stock.quantities(await self.orders.item_quantities(order.id))
        wanted = stock.quantities((line.product_id, line.quantity) for line in basket)
        products = await stock.apply_stock_delta(self.session, shop.id, take=wanted, give_back=old)
        snapshot = await self._snapshot(basket, products)

        items, total = build_items(order.id, basket, snapshot)
        await self.orders.replace_items(order.id, items)

        order.total_price = total
        order.remark = remark
        order.updated_at = utcnow()
        await self.session.flush()
        log.info("[orders] updated order %s shop=%s total=%s", order.id, shop.id, total)
        return await self.orders.get(order.id, shop.id)

    async def change_status(self, shop: Shop, order_id: int, next_status: int) -> tuple[int, Order]:
        """Move the order along the shop's flow. Returns the previous status and the order."""
        order = await self.orders.get_for_update(order_id, shop.id)
        if order is None:
            raise NotFound("order not found")

        flow = load_flow(shop.order_status_flow)
        validate_transition(flow, order.status, next_status)

        old_status = order.status
        now = utcnow()
        order.status = next_status
        order.updated_at = now
        await self.orders.add_status_log(
            OrderStatusLog(id=new_id(), order_id=order.id, old_status=old_status, new_status=next_status, changed_time=now)
        )
        log.info("[orders] order %s status %s -> %s", order.id, old_status, next_status)
        return old_status, await self.orders.get(order.id, shop.id)

    async def delete(self, shop: Shop, order_id: int) -> None:
        order = await self.orders.get_for_update(order_id, shop.id)
        if order is None:
            raise NotFound("order not found")

        flow = load_flow(shop.order_status_flow)
        if not is_final(flow, order.status):
            await stock.restore(self.session, shop.id, stock.quantities(await self.orders.item_quantities(order.id)))

        await self.orders.delete_in_tx(order.id, shop.id)
        log.info("[orders] deleted order %s shop=%s", order_id, shop.id)
