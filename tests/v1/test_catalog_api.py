# tests/v1/test_catalog_api.py

import json

import pytest
from httpx import AsyncClient
from unittest.mock import MagicMock

pytestmark = pytest.mark.asyncio


async def test_get_product_is_cached(client: AsyncClient, mock_api_client: MagicMock, api_response, tee_data, redis):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.get("/api/v1/products/island-tee")
    assert response.status_code == 200
    assert len(response.json()["variants"]) == 6

    await client.get("/api/v1/products/island-tee")
    mock_api_client.get.assert_awaited_once_with("products/island-tee")
    assert "product:island-tee" in redis.data


async def test_missing_product_is_404_and_cached(client, mock_api_client, api_error, redis):
    mock_api_client.get.side_effect = api_error(404)

    response = await client.get("/api/v1/products/nope")

    assert response.status_code == 404
    assert redis.data["product:nope"] == "null"


async def test_upstream_failure_is_502(client, mock_api_client, api_error):
    mock_api_client.get.side_effect = api_error(500)
    response = await client.get("/api/v1/products/island-tee")
    assert response.status_code == 502


async def test_product_list_falls_back_to_empty_page(client, mock_api_client, api_error):
    mock_api_client.get.side_effect = api_error(503)

    response = await client.get("/api/v1/products", params={"page": 2, "per_page": 12})

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["meta"]["page"] == 2


async def test_product_list_passes_filters(client, mock_api_client, api_response):
    mock_api_client.get.return_value = api_response({
        "products": [{"id": 1, "name": "Island Tee", "slug": "island-tee", "base_price_cents": 2500}],
        "meta": {"page": 1, "per_page": 24, "total": 1},
    })

    response = await client.get("/api/v1/products", params={"collection": "tees", "sort": "newest"})

    assert response.status_code == 200
    assert response.json()["meta"]["total"] == 1
    _, kwargs = mock_api_client.get.call_args
    assert kwargs["params"] == {"page": 1, "per_page": 24, "collection": "tees", "sort": "newest"}


# --- Выбор варианта ---

async def test_empty_selection_is_seeded(client, mock_api_client, api_response, tee_data):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post("/api/v1/products/island-tee/selection", json={})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "matched"
    assert data["selection"] == {"Size": "S", "Color": "Red"}
    assert [d["name"] for d in data["dimensions"]] == ["Size", "Color"]
    assert data["max_quantity"] == 5
    assert data["can_add_to_cart"] is True


async def test_select_option_transition(client, mock_api_client, api_response, tee_data):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post(
        "/api/v1/products/island-tee/selection/select",
        json={"selection": {"Size": "M", "Color": "Red"}, "dimension": "Color", "value": "Blue", "quantity": 3},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["selection"] == {"Size": "M", "Color": "Blue"}
    assert data["matched_variant"]["id"] == 104
    assert data["quantity"] == 1


async def test_unknown_option_value_is_422(client, mock_api_client, api_response, tee_data):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post(
        "/api/v1/products/island-tee/selection", json={"selection": {"Size": "XXL"}}
    )

    assert response.status_code == 422


async def test_selection_for_missing_product_is_404(client, mock_api_client, api_error):
    mock_api_client.get.side_effect = api_error(404)
    response = await client.post("/api/v1/products/nope/selection", json={})
    assert response.status_code == 404


async def test_add_selection_to_cart(client, mock_api_client, api_response, tee_data, session_headers, redis):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post(
        "/api/v1/products/island-tee/cart",
        json={"selection": {"Size": "M", "Color": "Blue"}, "quantity": 2},
        headers=session_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["item_count"] == 2
    assert data["view"]["quantity"] == 1

    saved = json.loads(redis.data[f"cart:{session_headers['X-Session-ID']}"])
    assert saved["items"][0]["variant_id"] == 104


async def test_add_incomplete_selection_is_rejected(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post(
        "/api/v1/products/island-tee/cart",
        json={"selection": {"Size": "M"}, "quantity": 1},
        headers=session_headers,
    )

    assert response.status_code == 409


async def test_add_quantity_above_stock_is_rejected(client, mock_api_client, api_response, tee_data, session_headers):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post(
        "/api/v1/products/island-tee/cart",
        json={"selection": {"Size": "M", "Color": "Blue"}, "quantity": 6},
        headers=session_headers,
    )

    assert response.status_code == 409
    assert "between 1 and 5" in response.json()["detail"]


async def test_add_to_cart_requires_session(client, mock_api_client, api_response, tee_data):
    mock_api_client.get.return_value = api_response(tee_data)

    response = await client.post("/api/v1/products/island-tee/cart", json={"quantity": 1})

    assert response.status_code == 400


async def test_config_endpoint(client, mock_api_client, api_response):
    mock_api_client.get.return_value = api_response({"app_mode": "test", "stripe_enabled": False})

    response = await client.get("/api/v1/config")

    assert response.status_code == 200
    assert response.json()["features"] == {"payments": False, "shipping": False}
