"""Integration tests for product tags."""

from sqlalchemy import func, select

from conftest import OTHER_SHOP_ID, PRODUCT_ID, SHOP_ID, seed_product, seed_shop
from orderease.models.tag import ProductTag, Tag

OWNER = "/api/shopOwner/tag"
ADMIN = "/api/admin/tag"
STORE = "/api/store/tag"

SECOND_PRODUCT_ID = 790
OFFLINE_PRODUCT_ID = 791


async def _create_tag(client, headers, name="Hot", **extra):
    response = await client.post(f"{OWNER}/create", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def _bindings(session_maker):
    async with session_maker() as s:
        res = await s.execute(select(ProductTag.product_id, ProductTag.tag_id).order_by(ProductTag.product_id))
        return [tuple(r) for r in res.all()]


async def _menu(session_maker):
    await seed_shop(session_maker)
    await seed_product(session_maker, name="Soup")
    await seed_product(session_maker, SECOND_PRODUCT_ID, name="Noodles")
    await seed_product(session_maker, OFFLINE_PRODUCT_ID, name="Retired", status="offline")


class TestTagCrud:
    async def test_create_list_detail(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        first = await _create_tag(client, owner_headers, "Hot", description="spicy dishes")
        await _create_tag(client, owner_headers, "Cold")
        assert first["shop_id"] == SHOP_ID

        listed = (await client.get(f"{OWNER}/list", headers=owner_headers)).json()
        assert listed["total"] == 2
        assert {t["name"] for t in listed["tags"]} == {"Hot", "Cold"}

        detail = await client.get(f"{OWNER}/detail", params={"id": first["id"]}, headers=owner_headers)
        assert detail.json()["description"] == "spicy dishes"

    async def test_duplicate_name_in_one_shop(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        await _create_tag(client, owner_headers, "Hot")
        response = await client.post(f"{OWNER}/create", json={"name": "Hot"}, headers=owner_headers)
        assert response.status_code == 409

    async def test_same_name_in_another_shop(self, client, owner_headers, admin_headers, session_maker):
        await seed_shop(session_maker)
        await seed_shop(session_maker, OTHER_SHOP_ID)
        await _create_tag(client, owner_headers, "Hot")
        response = await client.post(
            f"{ADMIN}/create", json={"name": "Hot", "shop_id": OTHER_SHOP_ID}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["shop_id"] == OTHER_SHOP_ID

    async def test_update(self, client, owner_headers, session_maker):
        await seed_shop(session_maker)
        tag = await _create_tag(client, owner_headers, "Hot", description="spicy")
        await _create_tag(client, owner_headers, "Cold")

        clash = await client.put(f"{OWNER}/update", json={"id": tag["id"], "name": "Cold"}, headers=owner_headers)
        assert clash.status_code == 409

        response = await client.put(f"{OWNER}/update", json={"id": tag["id"], "name": "Spicy"}, headers=owner_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Spicy"
        assert response.json()["description"] == "spicy"

    async def test_other_shops_tag_is_not_found(self, client, owner_headers, admin_headers, session_maker):
        await seed_shop(session_maker)
        await seed_shop(session_maker, OTHER_SHOP_ID)
        foreign = (await client.post(
            f"{ADMIN}/create", json={"name": "Theirs", "shop_id": OTHER_SHOP_ID}, headers=admin_headers
        )).json()
        response = await client.get(
            f"{OWNER}/detail", params={"id": foreign["id"], "shop_id": OTHER_SHOP_ID}, headers=owner_headers
        )
        assert response.status_code == 404

    async def test_bound_tag_cannot_be_deleted(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID]}, headers=owner_headers
        )

        response = await client.delete(f"{OWNER}/delete", params={"id": tag["id"]}, headers=owner_headers)
        assert response.status_code == 409

        await client.request(
            "DELETE", f"{OWNER}/batch-untag", json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID]},
            headers=owner_headers,
        )
        response = await client.delete(f"{OWNER}/delete", params={"id": tag["id"]}, headers=owner_headers)
        assert response.status_code == 200
        async with session_maker() as s:
            assert (await s.execute(select(func.count()).select_from(Tag))).scalar_one() == 0


class TestBinding:
    async def test_batch_tag_skips_foreign_and_existing(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        await seed_shop(session_maker, OTHER_SHOP_ID)
        await seed_product(session_maker, 5000, shop_id=OTHER_SHOP_ID)
        tag = await _create_tag(client, owner_headers)

        first = await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, 5000]}, headers=owner_headers
        )
        assert first.json() == {"total": 2, "successful": 1}

        again = await client.post(
            f"{OWNER}/batch-tag",
            json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, SECOND_PRODUCT_ID]},
            headers=owner_headers,
        )
        assert again.json() == {"total": 2, "successful": 1}
        assert await _bindings(session_maker) == [(PRODUCT_ID, tag["id"]), (SECOND_PRODUCT_ID, tag["id"])]

    async def test_batch_untag(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag",
            json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, SECOND_PRODUCT_ID]},
            headers=owner_headers,
        )
        response = await client.request(
            "DELETE", f"{OWNER}/batch-untag", json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, 4242]},
            headers=owner_headers,
        )
        assert response.json() == {"total": 2, "successful": 1}
        assert await _bindings(session_maker) == [(SECOND_PRODUCT_ID, tag["id"])]

    async def test_unknown_tag(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        response = await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": 4242, "product_ids": [PRODUCT_ID]}, headers=owner_headers
        )
        assert response.status_code == 404

    async def test_empty_product_list_rejected(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        response = await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": tag["id"], "product_ids": []}, headers=owner_headers
        )
        assert response.status_code == 400

    async def test_replace_tags_of_product(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        hot = await _create_tag(client, owner_headers, "Hot")
        cold = await _create_tag(client, owner_headers, "Cold")
        new = await _create_tag(client, owner_headers, "New")
        await client.post(
            f"{OWNER}/batch-tag-product", json={"product_id": PRODUCT_ID, "tag_ids": [hot["id"], cold["id"]]},
            headers=owner_headers,
        )

        response = await client.post(
            f"{OWNER}/batch-tag-product", json={"product_id": PRODUCT_ID, "tag_ids": [cold["id"], new["id"]]},
            headers=owner_headers,
        )
        assert response.json() == {"added_count": 1, "deleted_count": 1}

        bound = (await client.get(f"{OWNER}/bound-tags", params={"product_id": PRODUCT_ID}, headers=owner_headers)).json()
        assert sorted(t["name"] for t in bound["tags"]) == ["Cold", "New"]
        unbound = (await client.get(
            f"{OWNER}/unbound-tags", params={"product_id": PRODUCT_ID}, headers=owner_headers
        )).json()
        assert [t["name"] for t in unbound["tags"]] == ["Hot"]

    async def test_replace_with_foreign_tag_rejected(self, client, owner_headers, admin_headers, session_maker):
        await _menu(session_maker)
        await seed_shop(session_maker, OTHER_SHOP_ID)
        foreign = (await client.post(
            f"{ADMIN}/create", json={"name": "Theirs", "shop_id": OTHER_SHOP_ID}, headers=admin_headers
        )).json()
        response = await client.post(
            f"{OWNER}/batch-tag-product", json={"product_id": PRODUCT_ID, "tag_ids": [foreign["id"]]},
            headers=owner_headers,
        )
        assert response.status_code == 400
        assert await _bindings(session_maker) == []

    async def test_product_delete_drops_bindings(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID]}, headers=owner_headers
        )
        response = await client.delete("/api/shopOwner/product/delete", params={"id": PRODUCT_ID}, headers=owner_headers)
        assert response.status_code == 200
        assert await _bindings(session_maker) == []


class TestTagProducts:
    async def test_bound_and_unbound_products(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag",
            json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, OFFLINE_PRODUCT_ID]},
            headers=owner_headers,
        )

        bound = (await client.get(f"{OWNER}/bound-products", params={"tag_id": tag["id"]}, headers=owner_headers)).json()
        assert bound["total"] == 2
        assert {p["id"] for p in bound["data"]} == {PRODUCT_ID, OFFLINE_PRODUCT_ID}

        online = (await client.get(f"{OWNER}/online-products", params={"tag_id": tag["id"]}, headers=owner_headers)).json()
        assert [p["id"] for p in online["products"]] == [PRODUCT_ID]

        unbound = (await client.get(
            f"{OWNER}/unbound-products", params={"tag_id": tag["id"]}, headers=owner_headers
        )).json()
        assert [p["id"] for p in unbound["data"]] == [SECOND_PRODUCT_ID]

        untagged = (await client.get(f"{OWNER}/bound-products", params={"tag_id": -1}, headers=owner_headers)).json()
        assert [p["id"] for p in untagged["data"]] == [SECOND_PRODUCT_ID]

    async def test_unused_tags(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        used = await _create_tag(client, owner_headers, "Hot")
        await _create_tag(client, owner_headers, "Cold")
        await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": used["id"], "product_ids": [PRODUCT_ID]}, headers=owner_headers
        )
        body = (await client.get(f"{OWNER}/unbound-list", headers=owner_headers)).json()
        assert body["total"] == 1
        assert [t["name"] for t in body["data"]] == ["Cold"]


class TestStorefront:
    async def test_list_adds_untagged_group(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag", json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID]}, headers=owner_headers
        )

        body = (await client.get(f"{STORE}/list", params={"shop_id": SHOP_ID})).json()
        assert body["total"] == 2
        assert body["tags"][-1]["id"] == -1
        assert body["tags"][-1]["name"] == "其他"

        untagged = (await client.get(f"{STORE}/bound-products", params={"shop_id": SHOP_ID, "tag_id": -1})).json()
        assert [p["id"] for p in untagged["data"]] == [SECOND_PRODUCT_ID]

    async def test_no_untagged_group_when_every_online_product_is_tagged(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag",
            json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, SECOND_PRODUCT_ID]},
            headers=owner_headers,
        )
        body = (await client.get(f"{STORE}/list", params={"shop_id": SHOP_ID})).json()
        assert [t["id"] for t in body["tags"]] == [tag["id"]]

    async def test_bound_products_are_online_only(self, client, owner_headers, session_maker):
        await _menu(session_maker)
        tag = await _create_tag(client, owner_headers)
        await client.post(
            f"{OWNER}/batch-tag",
            json={"tag_id": tag["id"], "product_ids": [PRODUCT_ID, OFFLINE_PRODUCT_ID]},
            headers=owner_headers,
        )
        body = (await client.get(f"{STORE}/bound-products", params={"shop_id": SHOP_ID, "tag_id": tag["id"]})).json()
        assert body["total"] == 1
        assert [p["id"] for p in body["data"]] == [PRODUCT_ID]

        detail = await client.get(f"{STORE}/detail", params={"shop_id": SHOP_ID, "id": tag["id"]})
        assert detail.json()["name"] == "Hot"
