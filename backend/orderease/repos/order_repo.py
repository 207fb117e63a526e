from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderease.core.errors import NotFound
from orderease.models.order import Order, OrderItem, OrderItemOption, OrderStatusLog


class OrderRepo:
    """Order aggregate persistence. Every read and write is scoped by shop id."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, order_id: int, shop_id: int, *, with_items: bool = True) -> Order | None:
        q = select(Order).where(Order.id == order_id, Order.shop_id == shop_id)
        if with_items:
            q = q.options(selectinload(Order.items).selectinload(OrderItem.options))
        res = await self.session.execute(q.execution_options(populate_existing=True))
        return res.scalar_one_or_none()

    async def get_for_update(self, order_id: int, shop_id: int) -> Order | None:
        res = await self.session.execute(
            select(Order)
            .where(Order.id == order_id, Order.shop_id == shop_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def _page(self, where: list, page: int, page_size: int) -> tuple[list[Order], int]:
        total = (await self.session.execute(select(func.count()).select_from(Order).where(*where))).scalar_one()
        res = await self.session.execute(
            select(Order)
            .where(*where)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(res.scalars().all()), int(total or 0)

    async def list_by_shop(self, shop_id: int, page: int, page_size: int) -> tuple[list[Order], int]:
        return await self._page([Order.shop_id == shop_id], page, page_size)

    async def list_by_user(self, user_id: int, shop_id: int, page: int, page_size: int) -> tuple[list[Order], int]:
        return await self._page([Order.shop_id == shop_id, Order.user_id == user_id], page, page_size)

    async def search(
        self,
        shop_id: int,
        page: int,
        page_size: int,
        *,
        user_id: int | None = None,
        statuses: list[int] | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> tuple[list[Order], int]:
        where = [Order.shop_id == shop_id]
        if user_id is not None:
            where.append(Order.user_id == user_id)
        if statuses is not None:
            where.append(Order.status.in_(statuses))
        if start_time is not None:
            where.append(Order.created_at >= start_time)
        if end_time is not None:
            where.append(Order.created_at <= end_time)
        return await self._page(where, page, page_size)

    async def add(self, order: Order, log: OrderStatusLog) -> Order:
        self.session.add(order)
        self.session.add(log)
        await self.session.flush()
        return order

    async def item_quantities(self, order_id: int) -> list[tuple[int, int]]:
        res = await self.session.execute(
            select(OrderItem.product_id, OrderItem.quantity).where(OrderItem.order_id == order_id)
        )
        return [(int(pid), int(qty)) for pid, qty in res.all()]

    async def _delete_items(self, order_id: int) -> None:
        item_ids = select(OrderItem.id).where(OrderItem.order_id == order_id).scalar_subquery()
        await self.session.execute(delete(OrderItemOption).where(OrderItemOption.order_item_id.in_(item_ids)))
        await self.session.execute(delete(OrderItem).where(OrderItem.order_id == order_id))

    async def replace_items(self, order_id: int, items: list[OrderItem]) -> None:
        """Drop the current items/options of the order and insert ``items``."""
        await self._delete_items(order_id)
        self.session.add_all(items)
        await self.session.flush()

    async def delete_in_tx(self, order_id: int, shop_id: int) -> None:
        """Delete the order with its items, options and status logs.

        Raises NotFound when no order row was removed.
        """
        exists = await self.session.execute(select(Order.id).where(Order.id == order_id, Order.shop_id == shop_id))
        if exists.scalar_one_or_none() is None:
            raise NotFound("order not found")
        await self._delete_items(order_id)
        await self.session.execute(delete(OrderStatusLog).where(OrderStatusLog.order_id == order_id))
        res = await self.session.execute(delete(Order).where(Order.id == order_id, Order.shop_id == shop_id))
        if res.rowcount == 0:
            raise NotFound("order not found")

    async def add_status_log(self, log: OrderStatusLog) -> None:
        self.session.add(log)
        await self.session.flush()

    async def list_logs(self, order_id: int) -> list[OrderStatusLog]:
        res = await self.session.execute(
            select(OrderStatusLog)
            .where(OrderStatusLog.order_id == order_id)
            .order_by(OrderStatusLog.changed_time, OrderStatusLog.id)
        )
        return list(res.scalars().all())

    async def statuses_in_use(self, shop_id: int) -> set[int]:
        res = await self.session.execute(select(Order.status).where(Order.shop_id == shop_id).distinct())
        return {int(s) for s in res.scalars().all()}

    async def count_by_shop(self, shop_id: int) -> int:
        res = await self.session.execute(select(func.count()).select_from(Order).where(Order.shop_id == shop_id))
        return int(res.scalar_one() or 0)

    async def count_by_user(self, user_id: int) -> int:
        res = await self.session.execute(select(func.count()).select_from(Order).where(Order.user_id == user_id))
        return int(res.scalar_one() or 0)

    async def product_referenced(self, product_id: int) -> bool:
        res = await self.session.execute(select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1))
        return res.scalar_one_or_none() is not None
