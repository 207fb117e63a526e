from __future__ import annotations

from pydantic import BaseModel, Field

from orderease.models.enums import UserRole, UserType
from orderease.schemas.common import UtcDatetime


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.private_user
    type: UserType = UserType.delivery
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=6, max_length=128)


class UserUpdate(BaseModel):
    id: int
    name: str | None = Field(default=None, min_length=1, max_length=100)
    role: UserRole | None = None
    type: UserType | None = None
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=6, max_length=128)


class UserOut(BaseModel):
    id: int
    name: str
    role: str
    type: str
    phone: str | None = None
    address: str | None = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    class Config:
        from_attributes = True


class UserSimple(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
