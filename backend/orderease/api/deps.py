from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.core.config import settings
from orderease.core.db import get_session
from orderease.core.errors import Forbidden, InvalidInput, RateLimited, Unauthenticated
from orderease.core.security import decode_token
from orderease.models.enums import PrincipalRole
from orderease.repos.token_repo import TokenRepo
from orderease.schemas.common import MAX_PAGE_SIZE
from orderease.services.broadcaster import OrderBroadcaster
from orderease.services.rate_limit import RateLimiter

log = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    id: int
    username: str
    role: str
    token: str
    claims: dict

    @property
    def is_admin(self) -> bool:
        return self.role == PrincipalRole.admin.value

    @property
    def is_shop_owner(self) -> bool:
        return self.role == PrincipalRole.shop_owner.value


async def get_db() -> AsyncSession:
    async for s in get_session():
        yield s


async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if creds is None or not creds.credentials:
        raise Unauthenticated()
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise Unauthenticated("invalid token")

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or not str(sub).isdigit() or role not in PrincipalRole.values():
        raise Unauthenticated("invalid token subject")

    if await TokenRepo(db).is_blacklisted(creds.credentials):
        raise Unauthenticated("token revoked")

    return Principal(
        id=int(sub),
        username=str(payload.get("username") or ""),
        role=role,
        token=creds.credentials,
        claims=payload,
    )


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise Forbidden("admin access required")
    return principal


async def require_owner(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.role not in {PrincipalRole.shop_owner.value, PrincipalRole.admin.value}:
        raise Forbidden("shop owner access required")
    return principal


async def require_customer(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.role != PrincipalRole.user.value:
        raise Forbidden("customer access required")
    return principal


def get_broadcaster(request: Request) -> OrderBroadcaster:
    return request.app.state.broadcaster


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


async def rate_limit(request: Request) -> None:
    if not settings.RATE_LIMIT_ENABLED:
        return
    ip = request.client.host if request.client else "unknown"
    if not get_rate_limiter(request).hit(ip):
        log.warning("[rate-limit] rejected request from %s", ip)
        raise RateLimited()


def check_page(page: int, page_size: int) -> None:
    """Out-of-range paging is rejected, never clamped."""
    if page < 1:
        raise InvalidInput("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidInput(f"pageSize must be within 1..{MAX_PAGE_SIZE}")
