# tests/test_product_page.py

import asyncio
import logging

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.core import locales
from storefront.services.cart import CartStore
from storefront.services.product_page import ProductPage
from storefront.services.quantity import AddToCartRejected
from storefront.services.selection import InvalidSelectionError

pytestmark = pytest.mark.asyncio


def static_loader(product):
    async def _load(_redis, slug):
        return product if slug == product.slug else None
    return _load


async def test_open_seeds_selection(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))

    view = await page.open("island-tee")

    assert view.selection == {"Size": "S", "Color": "Red"}
    assert page.selection == {"Size": "S", "Color": "Red"}
    assert page.is_open


async def test_open_unknown_product(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))

    assert await page.open("missing") is None
    assert page.error == locales.ERROR_PRODUCT_NOT_FOUND
    with pytest.raises(InvalidSelectionError):
        page.view()


async def test_stale_fetch_after_close_is_discarded(redis, tee, caplog):
    release = asyncio.Event()

    async def slow_loader(_redis, slug):
        await release.wait()
        return tee

    page = ProductPage(redis, loader=slow_loader)
    task = asyncio.create_task(page.open("island-tee"))
    await asyncio.sleep(0)

    page.close()
    release.set()
    with caplog.at_level(logging.DEBUG, logger="storefront.services.product_page"):
        result = await task

    assert result is None
    assert page.product is None
    assert "Discarding stale product fetch" in caplog.text


async def test_slower_first_fetch_does_not_override_second(redis, tee, build_product, variant_data):
    other = build_product([variant_data(1, {"Size": "One Size"})], id=2, slug="cap", name="Cap")
    first_release = asyncio.Event()

    async def loader(_redis, slug):
        if slug == "island-tee":
            await first_release.wait()
            return tee
        return other

    page = ProductPage(redis, loader=loader)
    first = asyncio.create_task(page.open("island-tee"))
    await asyncio.sleep(0)

    second_view = await page.open("cap")
    first_release.set()
    first_view = await first

    assert first_view is None
    assert second_view.product_slug == "cap"
    assert page.product.slug == "cap"


async def test_select_resets_quantity(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))
    await page.open("island-tee")
    page.set_quantity(4)
    assert page.quantity == 4

    view = page.select("Color", "Blue")

    assert view.selection == {"Size": "S", "Color": "Blue"}
    assert page.quantity == 1


async def test_set_quantity_clamps(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))
    await page.open("island-tee")

    assert page.set_quantity(40).quantity == 5
    assert page.set_quantity(-1).quantity == 1


async def test_add_to_cart_success_resets_quantity(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))
    await page.open("island-tee")
    page.restore({"Size": "M", "Color": "Blue"}, quantity=2)
    store = await CartStore(redis, "s1").load()

    assert await page.add_to_cart(store) is True

    assert [(i.variant_id, i.quantity) for i in store.items] == [(104, 2)]
    assert page.quantity == 1
    assert page.adding is False


async def test_add_to_cart_rejects_invalid_quantity(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))
    await page.open("island-tee")
    store = await CartStore(redis, "s1").load()

    with pytest.raises(AddToCartRejected):
        await page.add_to_cart(store, quantity=6)
    assert store.items == []


async def test_add_to_cart_failure_preserves_state(redis, tee):
    page = ProductPage(redis, loader=static_loader(tee))
    await page.open("island-tee")
    page.restore({"Size": "L", "Color": "Blue"}, quantity=3)
    store = await CartStore(redis, "s1").load()
    redis.fail_with = RedisConnectionError("down")

    assert await page.add_to_cart(store) is False

    assert page.error == locales.ERROR_CART_UNAVAILABLE
    assert page.selection == {"Size": "L", "Color": "Blue"}
    assert page.quantity == 3
    assert page.adding is False
    assert store.items == []


async def test_context_manager_closes_page(redis, tee):
    async with ProductPage(redis, loader=static_loader(tee)) as page:
        await page.open("island-tee")
        assert page.is_open

    assert not page.is_open
    assert page.product is None


async def test_select_variant_in_legacy_mode(redis, legacy_product):
    page = ProductPage(redis, loader=static_loader(legacy_product))
    view = await page.open("legacy-tee")
    assert view.matched_variant.id == 12

    view = page.select_variant(13)

    assert view.matched_variant.id == 13
    assert view.max_quantity == 10
    with pytest.raises(InvalidSelectionError):
        page.select_variant(999)
