"""Integration tests for the customer roster."""

from conftest import PRODUCT_ID, SHOP_ID, USER_ID, seed_product, seed_shop, seed_user

OWNER = "/api/shopOwner/user"


class TestUsers:
    async def test_crud(self, client, owner_headers):
        created = await client.post(
            f"{OWNER}/create", json={"name": "dave", "type": "pickup", "phone": "123"}, headers=owner_headers
        )
        assert created.status_code == 200, created.text
        user = created.json()
        assert user["role"] == "private_user"
        assert user["type"] == "pickup"

        updated = await client.put(f"{OWNER}/update", json={"id": user["id"], "address": "Here"}, headers=owner_headers)
        assert updated.json()["address"] == "Here"

        listed = (await client.get(f"{OWNER}/simple-list", params={"search": "da"}, headers=owner_headers)).json()
        assert [u["name"] for u in listed] == ["dave"]

        deleted = await client.delete(f"{OWNER}/delete", params={"id": user["id"]}, headers=owner_headers)
        assert deleted.status_code == 200
        missing = await client.get(f"{OWNER}/detail", params={"id": user["id"]}, headers=owner_headers)
        assert missing.status_code == 404

    async def test_duplicate_name(self, client, owner_headers):
        await client.post(f"{OWNER}/create", json={"name": "dave"}, headers=owner_headers)
        response = await client.post(f"{OWNER}/create", json={"name": "dave"}, headers=owner_headers)
        assert response.status_code == 409

    async def test_invalid_type(self, client, owner_headers):
        response = await client.post(f"{OWNER}/create", json={"name": "eve", "type": "drone"}, headers=owner_headers)
        assert response.status_code == 400

    async def test_user_with_orders_cannot_be_deleted(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        await seed_user(session_maker)
        await seed_product(session_maker)
        await client.post(
            "/api/shopOwner/order/create",
            json={"user_id": USER_ID, "shop_id": SHOP_ID, "items": [{"product_id": PRODUCT_ID, "quantity": 1}]},
            headers=owner_headers,
        )
        response = await client.delete(f"{OWNER}/delete", params={"id": USER_ID}, headers=owner_headers)
        assert response.status_code == 409
