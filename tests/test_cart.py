# tests/test_cart.py

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.core import locales
from storefront.services import cart as cart_service
from storefront.services.cart import CartStore, CartStoreError

pytestmark = pytest.mark.asyncio

SESSION = "session-abc"


async def test_add_item_persists_snapshot(redis):
    store = await CartStore(redis, SESSION).load()

    await store.add_item(1, "island-tee", 104, 2, max_quantity=5)

    saved = json.loads(redis.data["cart:session-abc"])
    assert saved["session_id"] == SESSION
    assert saved["items"] == [
        {"product_id": 1, "product_slug": "island-tee", "variant_id": 104, "quantity": 2}
    ]
    assert redis.ttls["cart:session-abc"] > 0

    reloaded = await CartStore(redis, SESSION).load()
    assert reloaded.item_count == 2


async def test_add_same_variant_merges_quantity(redis):
    store = await CartStore(redis, SESSION).load()

    await store.add_item(1, "island-tee", 104, 2, max_quantity=5)
    await store.add_item(1, "island-tee", 104, 3, max_quantity=5)
    await store.add_item(1, "island-tee", 105, 1, max_quantity=5)

    assert [(i.variant_id, i.quantity) for i in store.items] == [(104, 5), (105, 1)]


async def test_merge_over_max_leaves_cart_untouched(redis):
    store = await CartStore(redis, SESSION).load()
    await store.add_item(1, "island-tee", 104, 4, max_quantity=5)
    before = redis.data["cart:session-abc"]

    with pytest.raises(CartStoreError) as exc_info:
        await store.add_item(1, "island-tee", 104, 2, max_quantity=5)

    assert exc_info.value.message == locales.ERROR_NOT_ENOUGH_STOCK.format(available_quantity=5)
    assert store.items[0].quantity == 4
    assert redis.data["cart:session-abc"] == before


async def test_snapshot_from_other_session_is_ignored(redis):
    redis.data["cart:session-abc"] = json.dumps({
        "session_id": "someone-else",
        "items": [{"product_id": 1, "product_slug": "x", "variant_id": 1, "quantity": 1}],
    })

    store = await CartStore(redis, SESSION).load()

    assert store.items == []


async def test_corrupted_snapshot_is_discarded(redis):
    redis.data["cart:session-abc"] = "{not json"
    store = await CartStore(redis, SESSION).load()
    assert store.items == []


async def test_update_and_remove(redis):
    store = await CartStore(redis, SESSION).load()
    await store.add_item(1, "island-tee", 104, 1)

    await store.update_quantity(1, 104, 3)
    assert store.item_count == 3

    with pytest.raises(KeyError):
        await store.update_quantity(1, 999, 3)

    assert await store.remove_item(1, 104) is True
    assert await store.remove_item(1, 104) is False
    assert store.items == []


async def test_clear_removes_snapshot(redis):
    store = await CartStore(redis, SESSION).load()
    await store.add_item(1, "island-tee", None, 1)

    await store.clear()

    assert "cart:session-abc" not in redis.data
    assert store.items == []


async def test_redis_failure_is_wrapped(redis):
    store = await CartStore(redis, SESSION).load()
    redis.fail_with = RedisConnectionError("down")

    with pytest.raises(CartStoreError) as exc_info:
        await store.add_item(1, "island-tee", 104, 1)

    assert exc_info.value.message == locales.ERROR_CART_UNAVAILABLE
    assert store.items == []


async def test_validate_cart_reports_issues(redis, mocker, build_product, variant_data):
    product = build_product([
        variant_data(1, {"Size": "S"}, stock=2),
        variant_data(2, {"Size": "M"}, stock=0, available=False),
    ])

    async def fake_get_product(_redis, slug):
        return product if slug == "island-tee" else None

    mocker.patch.object(cart_service.catalog_service, "get_product", side_effect=fake_get_product)

    store = await CartStore(redis, SESSION).load()
    await store.add_item(1, "island-tee", 1, 4)
    await store.add_item(1, "island-tee", 2, 1)
    await store.add_item(1, "island-tee", 3, 1)
    await store.add_item(9, "gone-product", None, 1)

    result = await cart_service.validate_cart(store, redis)

    assert result.valid is False
    issues = {(i.variant_id, i.type, i.action) for i in result.issues}
    assert issues == {
        (1, "quantity_reduced", "reduce"),
        (2, "out_of_stock", "remove"),
        (3, "unavailable", "remove"),
        (None, "unavailable", "remove"),
    }
    # В представлении корзины остаются только позиции, которые еще существуют
    assert [i.variant_id for i in result.cart.items] == [1, 2]
    assert result.cart.items[0].availability.quantity_exceeds_stock is True
    assert result.cart.subtotal_cents == 2500 * 5


async def test_get_cart_totals(redis, mocker, tee):
    mocker.patch.object(cart_service.catalog_service, "get_product", return_value=tee)

    store = await CartStore(redis, SESSION).load()
    await store.add_item(tee.id, tee.slug, 101, 2)

    cart = await cart_service.get_cart(store, redis)

    assert cart.item_count == 2
    assert cart.subtotal_cents == 5000
    assert cart.items[0].product_name == "Island Tee"
    assert cart.items[0].options == {"Size": "S", "Color": "Red"}
