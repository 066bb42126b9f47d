# storefront/routers/order.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from redis.asyncio import Redis
from typing import Optional

from storefront.core.config import settings
from storefront.core.limiter import limiter
from storefront.core.redis import get_redis_client
from storefront.dependencies import get_cart_store, get_optional_token, get_session_id
from storefront.schemas.order import (
    CheckoutRequest, CreateOrderResponse, PaymentIntentCreate, PaymentIntentResponse,
)
from storefront.services import order as order_service
from storefront.services.cart import CartStore, CartStoreError

router = APIRouter()


@router.post("/orders", response_model=CreateOrderResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def create_new_order(
    request: Request,
    order_data: CheckoutRequest,
    store: CartStore = Depends(get_cart_store),
    redis: Redis = Depends(get_redis_client),
    token: Optional[str] = Depends(get_optional_token),
):
    """Оформление заказа из корзины текущей сессии."""
    try:
        return await order_service.create_order(store, redis, order_data, token=token)
    except CartStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post("/payment_intents", response_model=PaymentIntentResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def create_payment_intent(
    request: Request,
    data: PaymentIntentCreate,
    session_id: str = Depends(get_session_id),
    token: Optional[str] = Depends(get_optional_token),
):
    return await order_service.create_payment_intent(data, session_id, token=token)
