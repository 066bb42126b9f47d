# storefront/routers/fundraisers.py

import logging
from typing import Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, status
from redis.asyncio import Redis

from storefront.core import locales
from storefront.core.config import settings
from storefront.core.limiter import limiter
from storefront.core.redis import get_redis_client
from storefront.dependencies import get_session_id
from storefront.schemas.fundraiser import (
    FundraiserCartItem, FundraiserCartItemAdd, FundraiserCartItemUpdate,
    FundraiserCartResponse, FundraiserCheckoutRequest, FundraiserDetail, ParticipantUpdate,
)
from storefront.schemas.order import FundraiserOrderResponse
from storefront.services import order as order_service
from storefront.services.cart import CartStoreError
from storefront.services.fundraiser_cart import FundraiserCartStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_fundraiser(redis: Redis, slug: str) -> FundraiserDetail:
    fundraiser = await order_service.get_fundraiser(redis, slug)
    if not fundraiser:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_FUNDRAISER_NOT_FOUND)
    return fundraiser


async def get_fundraiser_cart(
    slug: str,
    session_id: str = Depends(get_session_id),
    redis: Redis = Depends(get_redis_client),
) -> Tuple[FundraiserDetail, FundraiserCartStore]:
    """Сбор средств и корзина этой сессии для него (загруженная из Redis)."""
    fundraiser = await _require_fundraiser(redis, slug)
    store = FundraiserCartStore(redis, session_id, slug)
    try:
        await store.load(fundraiser_id=fundraiser.fundraiser.id)
    except CartStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return fundraiser, store


def _cart_response(store: FundraiserCartStore) -> FundraiserCartResponse:
    return FundraiserCartResponse(
        state=store.state, item_count=store.item_count, subtotal_cents=store.subtotal_cents
    )


async def _commit(action) -> bool:
    try:
        return await action
    except CartStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("/fundraisers/{slug}", response_model=FundraiserDetail)
async def get_fundraiser(slug: str, redis: Redis = Depends(get_redis_client)):
    """Сбор средств с товарами и участниками."""
    return await _require_fundraiser(redis, slug)


@router.get("/fundraisers/{slug}/cart", response_model=FundraiserCartResponse)
async def get_cart(context=Depends(get_fundraiser_cart)):
    _, store = context
    return _cart_response(store)


@router.post("/fundraisers/{slug}/cart/items", response_model=FundraiserCartResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def add_cart_item(
    request: Request,
    item_data: FundraiserCartItemAdd,
    context=Depends(get_fundraiser_cart),
):
    """
    Добавление товара сбора в корзину. Количество по умолчанию - минимальное
    для товара; если вместе с уже добавленным оно превысит максимум, корзина
    не меняется (409).
    """
    fundraiser, store = context
    product = next((p for p in fundraiser.products if p.id == item_data.fundraiser_product_id), None)
    variant = None
    if product:
        variant = next((v for v in product.variants if v.id == item_data.variant_id), None)
    if product is None or variant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_FUNDRAISER_ITEM_NOT_FOUND)
    if not (product.in_stock and variant.in_stock):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=locales.ERROR_CART_ITEM_OUT_OF_STOCK.format(name=product.name))

    quantity = item_data.quantity or product.min_quantity or 1
    out_of_range = HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=locales.ERROR_QUANTITY_OUT_OF_RANGE.format(
            name=product.name,
            min_quantity=product.min_quantity,
            max_quantity=product.max_quantity or settings.UNTRACKED_MAX_QUANTITY,
        ),
    )
    if quantity < product.min_quantity or (product.max_quantity and quantity > product.max_quantity):
        raise out_of_range

    item = FundraiserCartItem(
        fundraiser_product_id=product.id,
        variant_id=variant.id,
        quantity=quantity,
        name=product.name,
        variant_name=variant.display_name,
        price_cents=product.price_cents,
        image_url=product.image_url,
        min_quantity=product.min_quantity,
        max_quantity=product.max_quantity,
    )
    if not await _commit(store.add_item(item)):
        raise out_of_range
    return _cart_response(store)


@router.put(
    "/fundraisers/{slug}/cart/items/{fundraiser_product_id}/{variant_id}",
    response_model=FundraiserCartResponse,
)
@limiter.limit(settings.CART_RATE_LIMIT)
async def update_cart_item(
    request: Request,
    fundraiser_product_id: int,
    variant_id: int,
    item_data: FundraiserCartItemUpdate,
    context=Depends(get_fundraiser_cart),
):
    """Количество приводится к min/max товара сбора."""
    _, store = context
    if not any(
        i.fundraiser_product_id == fundraiser_product_id and i.variant_id == variant_id
        for i in store.state.items
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)
    await _commit(store.update_quantity(fundraiser_product_id, variant_id, item_data.quantity))
    return _cart_response(store)


@router.delete(
    "/fundraisers/{slug}/cart/items/{fundraiser_product_id}/{variant_id}",
    response_model=FundraiserCartResponse,
)
@limiter.limit(settings.CART_RATE_LIMIT)
async def remove_cart_item(
    request: Request,
    fundraiser_product_id: int,
    variant_id: int,
    context=Depends(get_fundraiser_cart),
):
    _, store = context
    await _commit(store.remove_item(fundraiser_product_id, variant_id))
    return _cart_response(store)


@router.put("/fundraisers/{slug}/cart/participant", response_model=FundraiserCartResponse)
async def set_participant(participant: ParticipantUpdate, context=Depends(get_fundraiser_cart)):
    """
    Привязка заказа к участнику сбора по коду. Пустой код снимает привязку.
    Если имя не передано, берется имя участника из сбора.
    """
    fundraiser, store = context
    name = participant.name
    if participant.code:
        found = next((p for p in fundraiser.participants if p.code == participant.code), None)
        if found is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PARTICIPANT_NOT_FOUND)
        name = name or found.display_name or found.name
    await _commit(store.set_participant(participant.code, name))
    return _cart_response(store)


@router.delete("/fundraisers/{slug}/cart", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(context=Depends(get_fundraiser_cart)):
    _, store = context
    await _commit(store.clear())


@router.post("/fundraisers/{slug}/orders", response_model=FundraiserOrderResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def create_fundraiser_order(
    request: Request,
    order_data: FundraiserCheckoutRequest,
    context=Depends(get_fundraiser_cart),
):
    """Оформление заказа из корзины сбора; после успеха корзина очищается."""
    fundraiser, store = context
    try:
        return await order_service.create_fundraiser_order(store, fundraiser, order_data)
    except CartStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
