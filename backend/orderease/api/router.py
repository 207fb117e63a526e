from __future__ import annotations

from fastapi import APIRouter, Depends

from orderease.api.deps import rate_limit, require_admin, require_owner
from orderease.api.routes import auth, orders, products, shops, tags, users

router = APIRouter(dependencies=[Depends(rate_limit)])
router.include_router(auth.router, tags=["auth"])

# Administrator
router.include_router(shops.admin_router, prefix="/admin/shop", tags=["admin"])
router.include_router(products.build_product_router(require_admin), prefix="/admin/product", tags=["admin"])
router.include_router(tags.build_tag_router(require_admin), prefix="/admin/tag", tags=["admin"])
router.include_router(users.build_user_router(require_admin), prefix="/admin/user", tags=["admin"])
router.include_router(orders.build_order_router(require_admin), prefix="/admin/order", tags=["admin"])

# Shop owner (shop_id is always the owner's own shop)
router.include_router(shops.owner_router, prefix="/shopOwner/shop", tags=["shopOwner"])
router.include_router(products.build_product_router(require_owner), prefix="/shopOwner/product", tags=["shopOwner"])
router.include_router(tags.build_tag_router(require_owner), prefix="/shopOwner/tag", tags=["shopOwner"])
router.include_router(users.build_user_router(require_owner), prefix="/shopOwner/user", tags=["shopOwner"])
router.include_router(orders.build_order_router(require_owner), prefix="/shopOwner/order", tags=["shopOwner"])

# Storefront
router.include_router(products.store_router, prefix="/store/product", tags=["store"])
router.include_router(tags.store_router, prefix="/store/tag", tags=["store"])
router.include_router(orders.store_router, prefix="/store/order", tags=["store"])
