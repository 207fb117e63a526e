from __future__ import annotations

import enum


class ProductStatus(str, enum.Enum):
    pending = "pending"
    online = "online"
    offline = "offline"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]


PRODUCT_STATUS_TRANSITIONS: dict[str, set[str]] = {
    ProductStatus.pending.value: {ProductStatus.online.value},
    ProductStatus.online.value: {ProductStatus.offline.value},
    ProductStatus.offline.value: {ProductStatus.online.value},
}


def product_transition_allowed(current: str, target: str) -> bool:
    return target in PRODUCT_STATUS_TRANSITIONS.get(current, set())


class PrincipalRole(str, enum.Enum):
    """Role carried in the bearer token."""
    admin = "admin"
    shop_owner = "shop_owner"
    user = "user"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]


class UserRole(str, enum.Enum):
    """Storefront customer role."""
    private_user = "private_user"
    public_user = "public_user"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]


class UserType(str, enum.Enum):
    delivery = "delivery"
    pickup = "pickup"
    system = "system"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]
