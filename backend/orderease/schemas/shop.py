from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from orderease.schemas.common import UtcDatetime
from orderease.schemas.status_flow import OrderStatusFlow


class ShopCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    owner_username: str = Field(min_length=1, max_length=50)
    owner_password: str = Field(min_length=6, max_length=128)
    contact_phone: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=100)
    address: str | None = Field(default=None, max_length=100)
    image_url: str | None = Field(default=None, max_length=255)
    description: str | None = None
    # Defaults to one year from now.
    valid_until: datetime | None = None
    settings: dict | None = None
    order_status_flow: OrderStatusFlow | None = None


class ShopUpdate(BaseModel):
    id: int
    name: str | None = Field(default=None, min_length=1, max_length=100)
    owner_username: str | None = Field(default=None, min_length=1, max_length=50)
    owner_password: str | None = Field(default=None, min_length=6, max_length=128)
    contact_phone: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=100)
    address: str | None = Field(default=None, max_length=100)
    image_url: str | None = Field(default=None, max_length=255)
    description: str | None = None
    valid_until: datetime | None = None
    settings: dict | None = None
    order_status_flow: OrderStatusFlow | None = None


class OwnerShopUpdate(BaseModel):
    """Fields a shop owner may edit on their own shop."""

    contact_phone: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=100)
    address: str | None = Field(default=None, max_length=100)
    image_url: str | None = Field(default=None, max_length=255)
    description: str | None = None
    settings: dict | None = None
    # Present only to be refused: owners cannot extend their own validity.
    valid_until: datetime | None = None


class ShopListItem(BaseModel):
    id: int
    name: str
    owner_username: str
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    image_url: str | None = None
    valid_until: UtcDatetime
    created_at: UtcDatetime

    class Config:
        from_attributes = True


class ShopOut(ShopListItem):
    description: str | None = None
    settings: dict = Field(default_factory=dict)
    order_status_flow: dict = Field(default_factory=dict)
    updated_at: UtcDatetime
    remaining_days: int = 0
    is_expired: bool = False


class CheckNameOut(BaseModel):
    name: str
    exists: bool
