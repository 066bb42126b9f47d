# storefront/routers/catalog.py

import logging
from fastapi import APIRouter, Depends, Query, HTTPException, Request, status
from redis.asyncio import Redis
from typing import Optional

from storefront.core import locales
from storefront.core.config import settings
from storefront.core.limiter import limiter
from storefront.core.redis import get_redis_client
from storefront.dependencies import get_cart_store
from storefront.schemas.product import (
    CollectionDetail, HomepageSections, PaginatedCollections, PaginatedProducts, ProductFull,
)
from storefront.schemas.selection import (
    AddSelectionToCartRequest, AddSelectionToCartResponse, ProductSelectionView,
    SelectionRequest, SelectOptionRequest,
)
from storefront.services import catalog as catalog_service
from storefront.services.cart import CartStore
from storefront.services.product_page import ProductPage
from storefront.services.quantity import AddToCartRejected
from storefront.services.selection import InvalidSelectionError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/products", response_model=PaginatedProducts)
async def get_all_products(
    # Параметры пагинации
    page: int = Query(1, ge=1, description="Номер страницы"),
    per_page: int = Query(24, ge=1, le=100, description="Количество товаров на странице"),

    # Параметры фильтрации
    collection: Optional[str] = Query(None, description="Slug коллекции"),
    product_type: Optional[str] = Query(None, description="Тип товара"),
    featured: Optional[bool] = Query(None, description="Только рекомендуемые товары"),
    search: Optional[str] = Query(None, description="Поисковый запрос"),
    min_price: Optional[int] = Query(None, ge=0, description="Минимальная цена в центах"),
    max_price: Optional[int] = Query(None, ge=0, description="Максимальная цена в центах"),
    sort: Optional[str] = Query(None, description="Сортировка: newest, price_asc, price_desc, name"),
    location_id: Optional[int] = Query(None, description="Точка продаж"),

    redis: Redis = Depends(get_redis_client),
):
    """Список товаров с пагинацией, фильтрами и сортировкой."""
    return await catalog_service.get_products(
        redis=redis,
        page=page,
        per_page=per_page,
        collection=collection,
        product_type=product_type,
        featured=featured,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        location_id=location_id,
    )


@router.get("/products/{slug}", response_model=ProductFull)
async def get_single_product(slug: str, redis: Redis = Depends(get_redis_client)):
    """Детальная информация о товаре со всеми вариантами."""
    product = await catalog_service.get_product(redis, slug)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)
    return product


# --- Выбор варианта ---

async def _open_page(redis: Redis, slug: str, body: SelectionRequest) -> ProductPage:
    page = ProductPage(redis)
    if await page.open(slug) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=page.error or locales.ERROR_PRODUCT_NOT_FOUND)
    try:
        page.restore(body.selection, body.variant_id, body.quantity)
    except InvalidSelectionError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    return page


@router.post("/products/{slug}/selection", response_model=ProductSelectionView)
async def get_selection_view(
    slug: str,
    body: SelectionRequest,
    redis: Redis = Depends(get_redis_client),
):
    """
    Состояние выбора для товара: измерения опций, доступные значения,
    найденный вариант, цена и лимит количества. Пустой выбор засеивается
    первым доступным вариантом.
    """
    async with await _open_page(redis, slug, body) as page:
        return page.view()


@router.post("/products/{slug}/selection/select", response_model=ProductSelectionView)
async def select_option(
    slug: str,
    body: SelectOptionRequest,
    redis: Redis = Depends(get_redis_client),
):
    """Выбор значения одного измерения; остальные измерения не меняются."""
    async with await _open_page(redis, slug, body) as page:
        try:
            return page.select(body.dimension, body.value)
        except InvalidSelectionError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)


@router.post("/products/{slug}/cart", response_model=AddSelectionToCartResponse)
@limiter.limit(settings.CART_RATE_LIMIT)
async def add_selection_to_cart(
    request: Request,
    slug: str,
    body: AddSelectionToCartRequest,
    redis: Redis = Depends(get_redis_client),
    store: CartStore = Depends(get_cart_store),
):
    """
    Добавляет выбранный вариант в корзину сессии. Количество не подгоняется:
    если оно вне [1, max] или выбор не завершен, запрос отклоняется (409).
    """
    async with await _open_page(redis, slug, body) as page:
        try:
            added = await page.add_to_cart(store, quantity=body.quantity)
        except AddToCartRejected as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

        if not added:
            status_code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if page.error == locales.ERROR_CART_UNAVAILABLE
                else status.HTTP_409_CONFLICT
            )
            raise HTTPException(status_code=status_code, detail=page.error)

        return AddSelectionToCartResponse(
            message=locales.SUCCESS_ADDED_TO_CART,
            view=page.view(),
            item_count=store.item_count,
        )


# --- Коллекции и главная ---

@router.get("/collections", response_model=PaginatedCollections)
async def get_collections(
    page: int = Query(1, ge=1),
    per_page: int = Query(24, ge=1, le=100),
    search: Optional[str] = Query(None),
    redis: Redis = Depends(get_redis_client),
):
    return await catalog_service.get_collections(redis, page=page, per_page=per_page, search=search)


@router.get("/collections/{slug}", response_model=CollectionDetail)
async def get_collection(
    slug: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(24, ge=1, le=100),
    redis: Redis = Depends(get_redis_client),
):
    collection = await catalog_service.get_collection(redis, slug, page=page, per_page=per_page)
    if not collection:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")
    return collection


@router.get("/homepage_sections", response_model=HomepageSections)
async def get_homepage_sections(redis: Redis = Depends(get_redis_client)):
    return await catalog_service.get_homepage_sections(redis)
