from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from orderease.api.deps import Principal
from orderease.core.errors import InvalidInput, NotFound, PreconditionFailed
from orderease.models.shop import Shop
from orderease.repos.shop_repo import ShopRepo


@dataclass(frozen=True)
class ShopAccess:
    shop: Shop
    principal: Principal

    @property
    def shop_id(self) -> int:
        return self.shop.id


def resolve_shop_id(principal: Principal, requested: int | None) -> int:
    """Shop the request acts on.

    A shop owner is always bound to their own shop: whatever shop_id the
    request carries is replaced by the owner's shop id.
    """
    if principal.is_shop_owner:
        return principal.id
    if requested is None:
        raise InvalidInput("shop_id is required")
    return requested


async def require_shop_access(
    db: AsyncSession,
    principal: Principal,
    requested: int | None,
    *,
    write: bool = False,
) -> ShopAccess:
    shop = await ShopRepo(db).get(resolve_shop_id(principal, requested))
    if shop is None:
        raise NotFound("shop not found")
    # An expired shop is read-only for every role; validity is extended through /admin/shop/update.
    if write and shop.is_expired():
        raise PreconditionFailed("shop expired")
    return ShopAccess(shop=shop, principal=principal)


async def require_public_shop(db: AsyncSession, shop_id: int) -> Shop:
    shop = await ShopRepo(db).get(shop_id)
    if shop is None:
        raise NotFound("shop not found")
    return shop
