from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.deps import Principal, get_db, require_admin, require_customer, require_owner
from orderease.core.errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthenticated
from orderease.core.security import create_access_token, hash_password, token_expiry, verify_password
from orderease.models.enums import PrincipalRole, UserRole
from orderease.repos.admin_repo import AdminRepo
from orderease.repos.shop_repo import ShopRepo
from orderease.repos.token_repo import TokenRepo
from orderease.repos.user_repo import UserRepo
from orderease.schemas.auth import ChangePasswordRequest, LoginRequest, RegisterRequest, TokenResponse, UserInfo
from orderease.schemas.common import MessageOut

log = logging.getLogger(__name__)

router = APIRouter()


def _token_response(subject_id: int, name: str, role: str) -> TokenResponse:
    token, expires_at = create_access_token(str(subject_id), username=name, role=role)
    return TokenResponse(token=token, expired_at=expires_at, role=role, user_info=UserInfo(id=subject_id, name=name))


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Universal login: administrators first, then shop owners."""
    admin = await AdminRepo(db).get_by_username(payload.username)
    if admin is not None:
        if not verify_password(payload.password, admin.password_hash):
            raise Unauthenticated("invalid credentials")
        return _token_response(admin.id, admin.username, PrincipalRole.admin.value)

    shop = await ShopRepo(db).get_by_owner_username(payload.username)
    if shop is None or not verify_password(payload.password, shop.owner_password_hash):
        raise Unauthenticated("invalid credentials")
    if shop.is_expired():
        raise Forbidden("shop expired")
    return _token_response(shop.id, shop.owner_username, PrincipalRole.shop_owner.value)


async def _logout(principal: Principal, db: AsyncSession) -> MessageOut:
    await TokenRepo(db).blacklist(principal.token, token_expiry(principal.claims))
    await db.commit()
    log.info("[auth] %s %s logged out", principal.role, principal.id)
    return MessageOut(message="logged out")


@router.post("/admin/logout", response_model=MessageOut)
async def admin_logout(db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_admin)):
    return await _logout(principal, db)


@router.post("/shopOwner/logout", response_model=MessageOut)
async def owner_logout(db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_owner)):
    return await _logout(principal, db)


@router.post("/store/user/logout", response_model=MessageOut)
async def customer_logout(db: AsyncSession = Depends(get_db), principal: Principal = Depends(require_customer)):
    return await _logout(principal, db)


@router.post("/admin/change-password", response_model=MessageOut)
async def admin_change_password(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    admin = await AdminRepo(db).get(principal.id)
    if admin is None:
        raise NotFound("admin not found")
    if not verify_password(payload.old_password, admin.password_hash):
        raise InvalidInput("old password is incorrect")
    admin.password_hash = hash_password(payload.new_password)
    await db.commit()
    return MessageOut(message="password changed")


@router.post("/shopOwner/change-password", response_model=MessageOut)
async def owner_change_password(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_owner),
):
    if not principal.is_shop_owner:
        raise Forbidden("shop owner access required")
    shop = await ShopRepo(db).get(principal.id)
    if shop is None:
        raise NotFound("shop not found")
    if not verify_password(payload.old_password, shop.owner_password_hash):
        raise InvalidInput("old password is incorrect")
    shop.owner_password_hash = hash_password(payload.new_password)
    await db.commit()
    return MessageOut(message="password changed")


@router.post("/store/user/register", response_model=TokenResponse)
async def customer_register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    repo = UserRepo(db)
    if await repo.get_by_name(payload.name):
        raise Conflict("user name already taken")
    user = await repo.create(
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=UserRole.public_user.value,
        phone=payload.phone,
        address=payload.address,
    )
    await db.commit()
    return _token_response(user.id, user.name, PrincipalRole.user.value)


@router.post("/store/user/login", response_model=TokenResponse)
async def customer_login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await UserRepo(db).get_by_name(payload.username)
    if user is None or not verify_password(payload.password, user.password_hash or ""):
        raise Unauthenticated("invalid credentials")
    return _token_response(user.id, user.name, PrincipalRole.user.value)
