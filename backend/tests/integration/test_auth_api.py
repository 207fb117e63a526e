"""Integration tests for login, logout and password changes."""

from datetime import timedelta

from conftest import SHOP_ID, seed_shop
from orderease.core.security import hash_password
from orderease.models import Admin
from orderease.models.base import utcnow


async def _seed_admin(session_maker, password="adminpass"):
    async with session_maker() as s:
        s.add(Admin(username="root", password_hash=hash_password(password)))
        await s.commit()


class TestUniversalLogin:
    async def test_admin_login(self, client, session_maker):
        await _seed_admin(session_maker)
        response = await client.post("/api/login", json={"username": "root", "password": "adminpass"})
        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "admin"
        assert body["user_info"]["name"] == "root"
        assert body["token"]

    async def test_owner_login(self, client, session_maker):
        await seed_shop(session_maker, owner_username="chef")
        body = (await client.post("/api/login", json={"username": "chef", "password": "secret123"})).json()
        assert body["role"] == "shop_owner"
        assert body["user_info"]["id"] == SHOP_ID

        headers = {"Authorization": f"Bearer {body['token']}"}
        detail = await client.get("/api/shopOwner/shop/detail", headers=headers)
        assert detail.json()["id"] == SHOP_ID

    async def test_wrong_password(self, client, session_maker):
        await seed_shop(session_maker, owner_username="chef")
        response = await client.post("/api/login", json={"username": "chef", "password": "nope"})
        assert response.status_code == 401

    async def test_expired_shop_refused(self, client, session_maker):
        await seed_shop(session_maker, owner_username="chef", valid_until=utcnow() - timedelta(hours=1))
        response = await client.post("/api/login", json={"username": "chef", "password": "secret123"})
        assert response.status_code == 403
        assert response.json() == {"error": "shop expired"}


class TestLogout:
    async def test_logged_out_token_is_rejected(self, client, session_maker):
        await seed_shop(session_maker, owner_username="chef")
        token = (await client.post("/api/login", json={"username": "chef", "password": "secret123"})).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        assert (await client.post("/api/shopOwner/logout", headers=headers)).status_code == 200
        response = await client.get("/api/shopOwner/shop/detail", headers=headers)
        assert response.status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get("/api/shopOwner/shop/detail", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


class TestChangePassword:
    async def test_owner_change_password(self, client, session_maker, owner_headers):
        await seed_shop(session_maker, owner_username="chef")
        bad = await client.post(
            "/api/shopOwner/change-password",
            json={"old_password": "wrong", "new_password": "newsecret"},
            headers=owner_headers,
        )
        assert bad.status_code == 400

        ok = await client.post(
            "/api/shopOwner/change-password",
            json={"old_password": "secret123", "new_password": "newsecret"},
            headers=owner_headers,
        )
        assert ok.status_code == 200
        login = await client.post("/api/login", json={"username": "chef", "password": "newsecret"})
        assert login.status_code == 200


class TestCustomers:
    async def test_register_and_login(self, client):
        registered = await client.post("/api/store/user/register", json={"name": "carol", "password": "secret123"})
        assert registered.status_code == 200
        assert registered.json()["role"] == "user"

        again = await client.post("/api/store/user/register", json={"name": "carol", "password": "secret123"})
        assert again.status_code == 409

        login = await client.post("/api/store/user/login", json={"username": "carol", "password": "secret123"})
        assert login.status_code == 200
        assert login.json()["user_info"]["id"] == registered.json()["user_info"]["id"]
