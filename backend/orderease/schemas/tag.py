from __future__ import annotations

from pydantic import BaseModel, Field

from orderease.schemas.common import UtcDatetime
from orderease.schemas.product import ProductListItem


class TagCreate(BaseModel):
    shop_id: int | None = None
    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class TagUpdate(BaseModel):
    id: int
    shop_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class TagOut(BaseModel):
    id: int
    shop_id: int | None = None
    name: str
    description: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None

    class Config:
        from_attributes = True


class TagList(BaseModel):
    total: int
    tags: list[TagOut]


class BatchTagRequest(BaseModel):
    shop_id: int | None = None
    tag_id: int
    product_ids: list[int] = Field(min_length=1)


class BatchTagResult(BaseModel):
    total: int
    successful: int


class ProductTagsRequest(BaseModel):
    shop_id: int | None = None
    product_id: int
    # An empty list removes every tag from the product.
    tag_ids: list[int] = Field(default_factory=list)


class ProductTagsResult(BaseModel):
    added_count: int
    deleted_count: int


class ProductTagsOut(BaseModel):
    product_id: int
    tags: list[TagOut]


class TagProductsOut(BaseModel):
    tag_id: int
    products: list[ProductListItem]
