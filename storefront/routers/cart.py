# storefront/routers/cart.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from redis.asyncio import Redis

from storefront.core import locales
from storefront.core.config import settings
from storefront.core.limiter import limiter
from storefront.core.redis import get_redis_client
from storefront.dependencies import get_cart_store
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartResponse, CartValidation
from storefront.services import cart as cart_service
from storefront.services import catalog as catalog_service
from storefront.services import quantity as quantity_service
from storefront.services.cart import CartStore, CartStoreError

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_error(e: CartStoreError) -> HTTPException:
    if e.message == locales.ERROR_CART_UNAVAILABLE:
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    store: CartStore = Depends(get_cart_store),
    redis: Redis = Depends(get_redis_client),
):
    """Содержимое корзины текущей сессии с актуальными ценами и остатками."""
    return await cart_service.get_cart(store, redis)


@router.post("/cart/items", response_model=CartResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def add_cart_item(
    request: Request,
    item_data: CartItemAdd,
    store: CartStore = Depends(get_cart_store),
    redis: Redis = Depends(get_redis_client),
):
    """
    Добавление позиции по id варианта (без выбора опций)
    с проверкой наличия на складе.
    """
    product = await catalog_service.get_product(redis, item_data.product_slug)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)

    variant = None
    if item_data.variant_id is not None:
        variant = next((v for v in product.variants if v.id == item_data.variant_id), None)
        if variant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_NO_VARIANT_SELECTED)

    try:
        max_qty = quantity_service.check_add_to_cart(product, variant, item_data.quantity)
        await store.add_item(
            product_id=product.id,
            product_slug=product.slug,
            variant_id=variant.id if variant else None,
            quantity=item_data.quantity,
            max_quantity=max_qty,
        )
    except quantity_service.AddToCartRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except CartStoreError as e:
        raise _store_error(e)

    return await cart_service.get_cart(store, redis)


@router.put("/cart/items/{product_id}", response_model=CartResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def update_cart_item(
    request: Request,
    product_id: int,
    item_data: CartItemUpdate,
    variant_id: Optional[int] = Query(None),
    store: CartStore = Depends(get_cart_store),
    redis: Redis = Depends(get_redis_client),
):
    """
    Изменение количества позиции. Отклоняется, если товар или вариант стал
    недоступен либо количество больше остатка.
    """
    existing = store.find_item(product_id, variant_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)

    product = await catalog_service.get_product(redis, existing.product_slug)
    if product:
        variant = next((v for v in product.variants if v.id == variant_id), None)
        try:
            quantity_service.check_add_to_cart(product, variant, item_data.quantity)
        except quantity_service.AddToCartRejected as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    try:
        await store.update_quantity(product_id, variant_id, item_data.quantity)
    except CartStoreError as e:
        raise _store_error(e)

    return await cart_service.get_cart(store, redis)


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def remove_cart_item(
    request: Request,
    product_id: int,
    variant_id: Optional[int] = Query(None),
    store: CartStore = Depends(get_cart_store),
    redis: Redis = Depends(get_redis_client),
):
    try:
        removed = await store.remove_item(product_id, variant_id)
    except CartStoreError as e:
        raise _store_error(e)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)
    return await cart_service.get_cart(store, redis)


@router.delete("/cart", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(store: CartStore = Depends(get_cart_store)):
    try:
        await store.clear()
    except CartStoreError as e:
        raise _store_error(e)
    logger.info(f"Cart cleared for session {store.session_id}")


@router.post("/cart/validate", response_model=CartValidation)
async def validate_cart(
    store: CartStore = Depends(get_cart_store),
    redis: Redis = Depends(get_redis_client),
):
    """Проверка корзины перед оформлением заказа."""
    return await cart_service.validate_cart(store, redis)
