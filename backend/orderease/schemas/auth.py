from __future__ import annotations

from pydantic import BaseModel, Field

from orderease.schemas.common import UtcDatetime


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=6, max_length=128)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=255)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class UserInfo(BaseModel):
    id: int
    name: str


class TokenResponse(BaseModel):
    token: str
    expired_at: UtcDatetime
    role: str
    user_info: UserInfo
