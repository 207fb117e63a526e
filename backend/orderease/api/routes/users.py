from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.deps import Principal, check_page, get_db
from orderease.core.errors import Conflict, NotFound, PreconditionFailed
from orderease.core.security import hash_password
from orderease.repos.order_repo import OrderRepo
from orderease.repos.user_repo import UserRepo
from orderease.schemas.common import MessageOut, Page
from orderease.schemas.user import UserCreate, UserOut, UserSimple, UserUpdate


def build_user_router(principal_dep: Callable) -> APIRouter:
    """Customer roster management for administrators and shop owners."""

    router = APIRouter()

    @router.post("/create", response_model=UserOut)
    async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db), principal: Principal = Depends(principal_dep)):
        repo = UserRepo(db)
        if await repo.get_by_name(payload.name):
            raise Conflict("user name already taken")
        user = await repo.create(
            name=payload.name,
            role=payload.role.value,
            type=payload.type.value,
            phone=payload.phone,
            address=payload.address,
            password_hash=hash_password(payload.password) if payload.password else None,
        )
        await db.commit()
        return user

    @router.get("/list", response_model=Page[UserOut])
    async def list_users(
        page: int = Query(default=1),
        page_size: int = Query(default=10, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        check_page(page, page_size)
        rows, total = await UserRepo(db).list_page(page, page_size)
        return Page[UserOut](total=total, page=page, page_size=page_size, data=[UserOut.model_validate(u) for u in rows])

    @router.get("/simple-list", response_model=list[UserSimple])
    async def simple_list(
        search: str | None = Query(default=None),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(principal_dep),
    ):
        return await UserRepo(db).simple_list(search)

    @router.get("/detail", response_model=UserOut)
    async def user_detail(id: int = Query(...), db: AsyncSession = Depends(get_db), principal: Principal = Depends(principal_dep)):
        user = await UserRepo(db).get(id)
        if user is None:
            raise NotFound("user not found")
        return user

    @router.put("/update", response_model=UserOut)
    async def update_user(payload: UserUpdate, db: AsyncSession = Depends(get_db), principal: Principal = Depends(principal_dep)):
        repo = UserRepo(db)
        user = await repo.get(payload.id)
        if user is None:
            raise NotFound("user not found")
        if payload.name and payload.name != user.name and await repo.get_by_name(payload.name):
            raise Conflict("user name already taken")

        for key, value in payload.model_dump(exclude_unset=True, exclude={"id", "password"}).items():
            if value is None and key in {"name", "role", "type"}:
                continue
            setattr(user, key, getattr(value, "value", value))
        if payload.password:
            user.password_hash = hash_password(payload.password)
        await db.commit()
        return user

    @router.delete("/delete", response_model=MessageOut)
    async def delete_user(id: int = Query(...), db: AsyncSession = Depends(get_db), principal: Principal = Depends(principal_dep)):
        repo = UserRepo(db)
        if await repo.get(id) is None:
            raise NotFound("user not found")
        if await OrderRepo(db).count_by_user(id) > 0:
            raise PreconditionFailed("user has orders")
        await repo.delete(id)
        await db.commit()
        return MessageOut(message="user deleted")

    return router
