from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from orderease.schemas.common import MAX_PAGE_SIZE, Money, UtcDatetime


class OrderItemOptionIn(BaseModel):
    category_id: int
    option_id: int


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    options: list[OrderItemOptionIn] = Field(default_factory=list)


class CreateOrderRequest(BaseModel):
    user_id: int | None = None
    shop_id: int | None = None
    items: list[OrderItemIn] = Field(min_length=1)
    remark: str | None = Field(default=None, max_length=500)


class CreateOrderResponse(BaseModel):
    order_id: int
    total_price: Money
    created_at: UtcDatetime
    status: int


class UpdateOrderRequest(BaseModel):
    id: int
    shop_id: int | None = None
    items: list[OrderItemIn] = Field(min_length=1)
    remark: str | None = Field(default=None, max_length=500)


class ToggleOrderStatusRequest(BaseModel):
    id: int
    shop_id: int | None = None
    next_status: int


class AdvanceSearchRequest(BaseModel):
    shop_id: int | None = None
    page: int = 1
    page_size: int = Field(default=10, alias="pageSize")
    user_id: int | None = None
    status: list[int] | None = None
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None

    class Config:
        populate_by_name = True

    @field_validator("page")
    @classmethod
    def _page(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page must be >= 1")
        return v

    @field_validator("page_size")
    @classmethod
    def _page_size(cls, v: int) -> int:
        if v < 1 or v > MAX_PAGE_SIZE:
            raise ValueError(f"pageSize must be within 1..{MAX_PAGE_SIZE}")
        return v

    @field_validator("status")
    @classmethod
    def _status(cls, v: list[int] | None) -> list[int] | None:
        # An empty set is ambiguous: omit the field to search every status.
        if v is not None and not v:
            raise ValueError("status filter must not be empty")
        return v


class OrderItemOptionOut(BaseModel):
    id: int
    category_id: int
    option_id: int
    option_name: str
    category_name: str
    price_adjustment: Money

    class Config:
        from_attributes = True


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: Money
    total_price: Money
    product_name: str
    product_description: str | None = None
    product_image_url: str | None = None
    options: list[OrderItemOptionOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    """List projection: items are left out."""

    id: int
    user_id: int
    shop_id: int
    total_price: Money
    status: int
    remark: str | None = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    class Config:
        from_attributes = True


class OrderDetail(OrderSummary):
    items: list[OrderItemOut] = Field(default_factory=list)


class OrderStatusLogOut(BaseModel):
    id: int
    order_id: int
    old_status: int | None = None
    new_status: int
    changed_time: UtcDatetime

    class Config:
        from_attributes = True


class ToggleOrderStatusResponse(BaseModel):
    old_status: int
    new_status: int
    order: OrderDetail
