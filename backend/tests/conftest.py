import os

# Settings are read at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CLEANUP_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from datetime import timedelta
from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from orderease.api.deps import get_db
from orderease.core.security import create_access_token, hash_password
from orderease.main import create_app
from orderease.models import Base, Product, ProductOption, ProductOptionCategory, Shop, User
from orderease.models.base import utcnow
from orderease.services.status_flow import default_flow

SHOP_ID = 456
OTHER_SHOP_ID = 999
USER_ID = 123
PRODUCT_ID = 789
CATEGORY_ID = 200
OPTION_ID = 100


@pytest.fixture()
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orderease.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture()
def session_maker(engine):
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
async def db(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture()
def app(session_maker):
    app = create_app()

    async def _get_db():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_db] = _get_db
    return app


@pytest.fixture()
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def bearer(subject_id: int, role: str, username: str = "tester") -> dict:
    token, _ = create_access_token(str(subject_id), username=username, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers():
    return bearer(1, "admin", "admin")


@pytest.fixture()
def owner_headers():
    return bearer(SHOP_ID, "shop_owner", "owner456")


@pytest.fixture()
def customer_headers():
    return bearer(USER_ID, "user", "alice")


async def seed_shop(session_maker, shop_id: int = SHOP_ID, *, name: str | None = None, flow: dict | None = None,
                    valid_until=None, owner_username: str | None = None, password: str = "secret123") -> None:
    async with session_maker() as s:
        s.add(
            Shop(
                id=shop_id,
                name=name or f"shop-{shop_id}",
                owner_username=owner_username or f"owner{shop_id}",
                owner_password_hash=hash_password(password),
                valid_until=valid_until or (utcnow() + timedelta(days=30)),
                settings={},
                order_status_flow=flow if flow is not None else default_flow(),
            )
        )
        await s.commit()


async def seed_user(session_maker, user_id: int = USER_ID, name: str = "alice") -> None:
    async with session_maker() as s:
        s.add(User(id=user_id, name=name, password_hash=hash_password("secret123")))
        await s.commit()


async def seed_product(session_maker, product_id: int = PRODUCT_ID, *, shop_id: int = SHOP_ID, price: str = "10000",
                       stock: int = 10, name: str = "Test Product", status: str = "online") -> None:
    async with session_maker() as s:
        s.add(
            Product(
                id=product_id,
                shop_id=shop_id,
                name=name,
                description="A product used in tests",
                price=Decimal(price),
                stock=stock,
                image_url="p.png",
                status=status,
            )
        )
        await s.commit()


async def seed_option(session_maker, *, option_id: int = OPTION_ID, category_id: int = CATEGORY_ID,
                      product_id: int = PRODUCT_ID, adjustment: str = "500", category_name: str = "Size",
                      option_name: str = "Large") -> None:
    async with session_maker() as s:
        s.add(ProductOptionCategory(id=category_id, product_id=product_id, name=category_name))
        await s.flush()
        s.add(ProductOption(id=option_id, category_id=category_id, name=option_name, price_adjustment=Decimal(adjustment)))
        await s.commit()


@pytest.fixture()
async def catalog(session_maker):
    """Scenario catalog: shop 456, user 123, product 789 (price 10000, stock 10), option 100 in category 200."""
    await seed_shop(session_maker)
    await seed_user(session_maker)
    await seed_product(session_maker)
    await seed_option(session_maker)
