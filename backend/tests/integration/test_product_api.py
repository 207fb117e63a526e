"""Integration tests for catalog administration and storefront reads."""

import pytest

from conftest import PRODUCT_ID, SHOP_ID, USER_ID, seed_product, seed_shop, seed_user
from orderease.repos.catalog_repo import CatalogRepo

OWNER = "/api/shopOwner/product"


def _product_payload(**overrides):
    payload = {
        "name": "Beef Noodles",
        "description": "spicy",
        "price": 28.5,
        "stock": 20,
        "option_categories": [
            {
                "name": "Size",
                "is_required": True,
                "display_order": 1,
                "options": [
                    {"name": "Regular", "price_adjustment": 0, "is_default": True, "display_order": 1},
                    {"name": "Large", "price_adjustment": 4.5, "display_order": 2},
                ],
            },
            {"name": "Spice", "display_order": 0, "options": [{"name": "Mild", "price_adjustment": -0.5}]},
        ],
    }
    payload.update(overrides)
    return payload


async def _create(client, headers, **overrides):
    response = await client.post(f"{OWNER}/create", json=_product_payload(**overrides), headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestProductCrud:
    async def test_create_starts_pending_with_ordered_options(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        body = await _create(client, owner_headers)
        assert body["status"] == "pending"
        assert body["shop_id"] == SHOP_ID
        assert body["price"] == 28.5
        assert [c["name"] for c in body["option_categories"]] == ["Spice", "Size"]
        assert [o["name"] for o in body["option_categories"][1]["options"]] == ["Regular", "Large"]

    async def test_negative_price_rejected(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        response = await client.post(f"{OWNER}/create", json=_product_payload(price=-1), headers=owner_headers)
        assert response.status_code == 400

    async def test_update_replaces_option_categories(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        product = await _create(client, owner_headers)
        response = await client.put(
            f"{OWNER}/update",
            json={"id": product["id"], "stock": 3, "option_categories": [{"name": "Temp", "options": [{"name": "Hot"}]}]},
            headers=owner_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["stock"] == 3
        assert body["name"] == "Beef Noodles"
        assert [c["name"] for c in body["option_categories"]] == ["Temp"]

    async def test_list_and_detail(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        product = await _create(client, owner_headers)
        page = (await client.get(f"{OWNER}/list", headers=owner_headers)).json()
        assert page["total"] == 1
        detail = (await client.get(f"{OWNER}/detail", params={"id": product["id"]}, headers=owner_headers)).json()
        assert len(detail["option_categories"]) == 2


    async def test_stock_change_takes_the_row_lock(self, client, owner_headers, session_maker, monkeypatch):
        await seed_shop(session_maker)
        product = await _create(client, owner_headers)
        calls = []
        original = CatalogRepo.lock_products

        async def _recording(self, product_ids, shop_id):
            calls.append((set(product_ids), shop_id))
            return await original(self, product_ids, shop_id)

        monkeypatch.setattr(CatalogRepo, "lock_products", _recording)

        renamed = await client.put(f"{OWNER}/update", json={"id": product["id"], "name": "Soup"}, headers=owner_headers)
        assert renamed.status_code == 200, renamed.text
        assert calls == []

        restocked = await client.put(
            f"{OWNER}/update", json={"id": product["id"], "stock": 7, "price": 30}, headers=owner_headers
        )
        assert restocked.status_code == 200, restocked.text
        assert calls == [({product["id"]}, SHOP_ID)]
        body = restocked.json()
        assert (body["name"], body["stock"], body["price"]) == ("Soup", 7, 30.0)

    async def test_stock_change_of_unknown_product(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        response = await client.put(f"{OWNER}/update", json={"id": 4242, "stock": 1}, headers=owner_headers)
        assert response.status_code == 404


class TestProductStatus:
    @pytest.mark.parametrize(
        "current,target,ok",
        [
            ("pending", "online", True),
            ("online", "offline", True),
            ("offline", "online", True),
            ("pending", "offline", False),
            ("online", "pending", False),
            ("offline", "offline", False),
        ],
    )
    async def test_transitions(self, client, owner_headers, session_maker, current, target, ok):
        await seed_shop(session_maker)
        await seed_product(session_maker, status=current)
        response = await client.put(
            f"{OWNER}/toggle-status", json={"id": PRODUCT_ID, "status": target}, headers=owner_headers
        )
        assert (response.status_code == 200) is ok
        if not ok:
            assert response.status_code == 400

    async def test_unknown_status(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        await seed_product(session_maker)
        response = await client.put(f"{OWNER}/toggle-status", json={"id": PRODUCT_ID, "status": "gone"}, headers=owner_headers)
        assert response.status_code == 400


class TestProductDelete:
    async def test_delete_cascades_options(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        product = await _create(client, owner_headers)
        response = await client.delete(f"{OWNER}/delete", params={"id": product["id"]}, headers=owner_headers)
        assert response.status_code == 200
        missing = await client.get(f"{OWNER}/detail", params={"id": product["id"]}, headers=owner_headers)
        assert missing.status_code == 404

    async def test_referenced_product_cannot_be_deleted(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        await seed_user(session_maker)
        await seed_product(session_maker)
        created = await client.post(
            "/api/shopOwner/order/create",
            json={"user_id": USER_ID, "items": [{"product_id": PRODUCT_ID, "quantity": 1}]},
            headers=owner_headers,
        )
        assert created.status_code == 200
        response = await client.delete(f"{OWNER}/delete", params={"id": PRODUCT_ID}, headers=owner_headers)
        assert response.status_code == 409


class TestStorefrontProducts:
    async def test_only_online_products_are_listed(self, client, session_maker):
        await seed_shop(session_maker)
        await seed_product(session_maker, 1, status="online")
        await seed_product(session_maker, 2, status="offline")
        await seed_product(session_maker, 3, status="pending")

        page = (await client.get("/api/store/product/list", params={"shop_id": SHOP_ID})).json()
        assert [p["id"] for p in page["data"]] == [1]

        assert (await client.get("/api/store/product/detail", params={"id": 2, "shop_id": SHOP_ID})).status_code == 404
        assert (await client.get("/api/store/product/detail", params={"id": 1, "shop_id": SHOP_ID})).status_code == 200

    async def test_unknown_shop(self, client):
        response = await client.get("/api/store/product/list", params={"shop_id": 1})
        assert response.status_code == 404
