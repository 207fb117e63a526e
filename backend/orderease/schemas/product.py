from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from orderease.schemas.common import Money, UtcDatetime


class ProductOptionIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    price_adjustment: Decimal = Decimal("0")
    is_default: bool = False
    display_order: int = 0


class ProductOptionCategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    is_required: bool = False
    is_multiple: bool = False
    display_order: int = 0
    options: list[ProductOptionIn] = Field(default_factory=list)


class ProductCreate(BaseModel):
    shop_id: int | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    image_url: str | None = Field(default=None, max_length=255)
    option_categories: list[ProductOptionCategoryIn] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    id: int
    shop_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, max_length=255)
    # None keeps the current categories; a list replaces them.
    option_categories: list[ProductOptionCategoryIn] | None = None


class ProductToggleStatus(BaseModel):
    id: int
    shop_id: int | None = None
    status: str


class ProductOptionOut(BaseModel):
    id: int
    category_id: int
    name: str
    price_adjustment: Money
    is_default: bool
    display_order: int

    class Config:
        from_attributes = True


class ProductOptionCategoryOut(BaseModel):
    id: int
    product_id: int
    name: str
    is_required: bool
    is_multiple: bool
    display_order: int
    options: list[ProductOptionOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ProductListItem(BaseModel):
    id: int
    shop_id: int
    name: str
    description: str | None = None
    price: Money
    stock: int
    image_url: str | None = None
    status: str
    created_at: UtcDatetime
    updated_at: UtcDatetime

    class Config:
        from_attributes = True


class ProductOut(ProductListItem):
    option_categories: list[ProductOptionCategoryOut] = Field(default_factory=list)
