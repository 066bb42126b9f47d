# storefront/services/order.py

import json
import logging
from typing import Optional

import httpx
from fastapi import HTTPException, status
from redis.asyncio import Redis

from storefront.clients.storefront_api import api_client
from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.fundraiser import FundraiserCheckoutRequest, FundraiserDetail
from storefront.schemas.order import (
    CheckoutRequest, CreateOrderResponse, FundraiserOrderResponse,
    PaymentIntentCreate, PaymentIntentResponse,
)
from storefront.services import cart as cart_service
from storefront.services.cart import CartStore
from storefront.services.fundraiser_cart import FundraiserCartStore

logger = logging.getLogger(__name__)

FUNDRAISER_CACHE_TTL_SECONDS = settings.CATALOG_CACHE_TTL_SECONDS


def _upstream_error_detail(e: httpx.HTTPStatusError) -> str:
    # Внешний API отдает {"error": "..."} или {"errors": [...]}
    try:
        body = e.response.json()
    except ValueError:
        return locales.ERROR_ORDER_FAILED
    if isinstance(body, dict):
        if body.get("error"):
            return str(body["error"])
        if body.get("errors"):
            return "; ".join(str(err) for err in body["errors"])
    return locales.ERROR_ORDER_FAILED


def _raise_for_upstream(e: Exception):
    """Ошибки валидации внешнего API (4xx) передаются клиенту, остальное - 502."""
    if isinstance(e, httpx.HTTPStatusError) and 400 <= e.response.status_code < 500:
        raise HTTPException(status_code=e.response.status_code, detail=_upstream_error_detail(e))
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=locales.ERROR_UPSTREAM_UNAVAILABLE)


# --- Розничный заказ ---

async def create_order(
    store: CartStore,
    redis: Redis,
    order_data: CheckoutRequest,
    token: Optional[str] = None,
) -> CreateOrderResponse:
    """
    Оформляет заказ из корзины сессии. Перед отправкой корзина заново
    сверяется с каталогом; при расхождениях заказ не создается (409).
    После успешного создания корзина очищается.
    """
    await store.ensure_loaded()
    if not store.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_CART_EMPTY)

    validation = await cart_service.validate_cart(store, redis)
    if not validation.valid:
        details = ", ".join(issue.message for issue in validation.issues)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=locales.ERROR_CART_HAS_ISSUES.format(details=details),
        )

    payload = {
        "order": {
            **order_data.model_dump(exclude_none=True),
            "items": [
                {
                    "product_id": item.product_id,
                    "product_variant_id": item.variant_id,
                    "quantity": item.quantity,
                }
                for item in store.items
            ],
        }
    }

    try:
        data = await api_client.post("orders", json=payload, session_id=store.session_id, token=token)
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to create order for session {store.session_id}")
        _raise_for_upstream(e)

    response = CreateOrderResponse.model_validate(data)
    logger.info(f"Order {response.order.order_number} created for session {store.session_id}.")

    await store.clear()
    return response


async def create_payment_intent(
    data: PaymentIntentCreate,
    session_id: str,
    token: Optional[str] = None,
) -> PaymentIntentResponse:
    try:
        result = await api_client.post(
            "payment_intents", json=data.model_dump(), session_id=session_id, token=token
        )
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to create payment intent for session {session_id}")
        _raise_for_upstream(e)
    return PaymentIntentResponse.model_validate(result)


# --- Сбор средств ---

async def get_fundraiser(redis: Redis, slug: str) -> Optional[FundraiserDetail]:
    """Сбор средств с товарами и участниками. None, если сбор не найден."""
    cache_key = f"fundraiser:{slug}"

    cached = await redis.get(cache_key)
    if cached:
        return FundraiserDetail.model_validate(json.loads(cached))

    try:
        response = await api_client.get(f"fundraisers/{slug}")
        detail = FundraiserDetail.model_validate(response.json())
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            logger.warning(f"Fundraiser '{slug}' not found (404).")
            return None
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=locales.ERROR_UPSTREAM_UNAVAILABLE)
    except httpx.RequestError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=locales.ERROR_UPSTREAM_UNAVAILABLE)

    await redis.set(cache_key, detail.model_dump_json(), ex=FUNDRAISER_CACHE_TTL_SECONDS)
    return detail


async def create_fundraiser_order(
    store: FundraiserCartStore,
    fundraiser: FundraiserDetail,
    order_data: FundraiserCheckoutRequest,
) -> FundraiserOrderResponse:
    if not fundraiser.fundraiser.can_order:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=locales.ERROR_FUNDRAISER_CLOSED)
    if not store.state.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_CART_EMPTY)

    slug = fundraiser.fundraiser.slug
    order = order_data.model_dump(exclude_none=True)
    order["items"] = [
        {
            "fundraiser_product_id": item.fundraiser_product_id,
            "variant_id": item.variant_id,
            "quantity": item.quantity,
        }
        for item in store.state.items
    ]
    if store.state.participant_code:
        order["participant_code"] = store.state.participant_code

    try:
        data = await api_client.post(f"fundraisers/{slug}/orders", json={"order": order})
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to create order for fundraiser '{slug}'")
        _raise_for_upstream(e)

    response = FundraiserOrderResponse.model_validate(data)
    logger.info(f"Fundraiser order {response.order.order_number} created for '{slug}'.")

    await store.clear()
    return response
