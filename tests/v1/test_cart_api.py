# tests/v1/test_cart_api.py

import pytest
from httpx import AsyncClient
from unittest.mock import MagicMock

pytestmark = pytest.mark.asyncio


async def _add(client, headers, variant_id=104, quantity=1):
    return await client.post(
        "/api/v1/cart/items",
        json={"product_slug": "island-tee", "variant_id": variant_id, "quantity": quantity},
        headers=headers,
    )


async def test_cart_requires_session_header(client: AsyncClient):
    response = await client.get("/api/v1/cart")
    assert response.status_code == 400


async def test_empty_cart(client, session_headers):
    response = await client.get("/api/v1/cart", headers=session_headers)

    assert response.status_code == 200
    assert response.json() == {"items": [], "subtotal_cents": 0, "item_count": 0}


async def test_add_update_remove_flow(client: AsyncClient, mock_api_client: MagicMock, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await _add(client, session_headers, quantity=2)
    assert response.status_code == 200
    assert response.json()["item_count"] == 2

    response = await client.put(
        "/api/v1/cart/items/1", params={"variant_id": 104}, json={"quantity": 4}, headers=session_headers
    )
    assert response.status_code == 200
    assert response.json()["items"][0]["quantity"] == 4
    assert response.json()["subtotal_cents"] == 10000

    response = await client.delete("/api/v1/cart/items/1", params={"variant_id": 104}, headers=session_headers)
    assert response.status_code == 200
    assert response.json()["items"] == []


async def test_merge_above_stock_is_conflict(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)

    assert (await _add(client, session_headers, quantity=4)).status_code == 200
    response = await _add(client, session_headers, quantity=2)

    assert response.status_code == 409
    cart = (await client.get("/api/v1/cart", headers=session_headers)).json()
    assert cart["item_count"] == 4


async def test_update_above_stock_is_conflict(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)
    await _add(client, session_headers)

    response = await client.put(
        "/api/v1/cart/items/1", params={"variant_id": 104}, json={"quantity": 9}, headers=session_headers
    )

    assert response.status_code == 409


async def test_update_of_unavailable_variant_is_conflict(
    client, mock_api_client, api_response, tee_data, session_headers, redis
):
    mock_api_client.get.return_value = api_response(tee_data)
    await _add(client, session_headers)

    # Вариант сняли с продажи, остаток при этом не изменился
    tee_data["variants"][3]["actually_available"] = False
    redis.data.pop("product:island-tee")
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.put(
        "/api/v1/cart/items/1", params={"variant_id": 104}, json={"quantity": 2}, headers=session_headers
    )

    assert response.status_code == 409
    cart = (await client.get("/api/v1/cart", headers=session_headers)).json()
    assert cart["items"][0]["quantity"] == 1


async def test_unknown_item_is_404(client, session_headers):
    response = await client.delete("/api/v1/cart/items/1", params={"variant_id": 104}, headers=session_headers)
    assert response.status_code == 404


async def test_unknown_variant_is_404(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)
    response = await _add(client, session_headers, variant_id=999)
    assert response.status_code == 404


async def test_carts_are_isolated_per_session(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)
    await _add(client, session_headers, quantity=3)

    response = await client.get("/api/v1/cart", headers={"X-Session-ID": "another-session"})

    assert response.json()["item_count"] == 0


async def test_clear_cart(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)
    await _add(client, session_headers, quantity=3)

    response = await client.delete("/api/v1/cart", headers=session_headers)

    assert response.status_code == 204
    assert (await client.get("/api/v1/cart", headers=session_headers)).json()["item_count"] == 0


async def test_validate_reports_stock_drop(client, mock_api_client, api_response, tee_data, session_headers, redis):
    mock_api_client.get.return_value = api_response(tee_data)
    await _add(client, session_headers, quantity=4)

    # Остаток варианта упал до 1 после добавления в корзину
    tee_data["variants"][3]["stock_quantity"] = 1
    redis.data.pop("product:island-tee")
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post("/api/v1/cart/validate", headers=session_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["issues"][0]["type"] == "quantity_reduced"
    assert data["issues"][0]["available"] == 1


async def test_checkout_creates_order_and_clears_cart(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)
    mock_api_client.post.return_value = {
        "success": True,
        "order": {"id": 55, "order_number": "HAF-0055", "status": "pending", "total_cents": 5000},
    }
    await _add(client, session_headers, quantity=2)

    response = await client.post(
        "/api/v1/orders",
        json={
            "email": "buyer@example.com",
            "phone": "555-0101",
            "shipping_address": {
                "name": "Buyer", "street1": "1 Main St", "city": "Hagatna", "state": "GU", "zip": "96910",
            },
            "shipping_method": {"carrier": "USPS", "service": "Priority", "rate_cents": 900},
            "payment_method": {"type": "stripe", "token": "tok_123"},
        },
        headers={**session_headers, "Authorization": "Bearer user-token"},
    )

    assert response.status_code == 200
    assert response.json()["order"]["order_number"] == "HAF-0055"

    args, kwargs = mock_api_client.post.call_args
    assert args[0] == "orders"
    assert kwargs["json"]["order"]["items"] == [{"product_id": 1, "product_variant_id": 104, "quantity": 2}]
    assert kwargs["session_id"] == session_headers["X-Session-ID"]
    assert kwargs["token"] == "user-token"

    cart = (await client.get("/api/v1/cart", headers=session_headers)).json()
    assert cart["item_count"] == 0


async def test_checkout_with_empty_cart_is_400(client, session_headers):
    response = await client.post(
        "/api/v1/orders",
        json={
            "email": "buyer@example.com",
            "phone": "555-0101",
            "shipping_address": {
                "name": "Buyer", "street1": "1 Main St", "city": "Hagatna", "state": "GU", "zip": "96910",
            },
            "shipping_method": {"carrier": "USPS", "service": "Priority", "rate_cents": 900},
            "payment_method": {"type": "stripe"},
        },
        headers=session_headers,
    )
    assert response.status_code == 400
