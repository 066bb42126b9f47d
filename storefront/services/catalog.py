# storefront/services/catalog.py

import json
import logging
from typing import Optional

import httpx
from fastapi import HTTPException, status
from redis.asyncio import Redis

from storefront.clients.storefront_api import api_client
from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.product import (
    CollectionDetail, HomepageSections, PaginatedCollections,
    PaginatedProducts, PaginationMeta, ProductFull,
)

logger = logging.getLogger(__name__)

PRODUCT_CACHE_TTL_SECONDS = settings.PRODUCT_CACHE_TTL_SECONDS
CATALOG_CACHE_TTL_SECONDS = settings.CATALOG_CACHE_TTL_SECONDS


def _cache_key(prefix: str, params: dict) -> str:
    # Ключ кеша списка строится из непустых параметров в стабильном порядке
    parts = [f"{key}={value}" for key, value in sorted(params.items()) if value is not None]
    return ":".join([prefix, *parts])


def _upstream_unavailable() -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=locales.ERROR_UPSTREAM_UNAVAILABLE)


async def get_product(redis: Redis, slug: str) -> Optional[ProductFull]:
    """
    Получает товар со списком вариантов по slug (или id). Если товар не найден (404),
    возвращает None и кеширует "ненайденность". Прочие ошибки бэкенда - 502.
    """
    cache_key = f"product:{slug}"

    cached_product = await redis.get(cache_key)
    if cached_product:
        if cached_product == "null":
            return None
        return ProductFull.model_validate(json.loads(cached_product))

    try:
        response = await api_client.get(f"products/{slug}")
        product = ProductFull.model_validate(response.json())
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            logger.warning(f"Product '{slug}' not found in catalog API (404).")
            await redis.set(cache_key, "null", ex=PRODUCT_CACHE_TTL_SECONDS)
            return None
        logger.error(f"HTTP error fetching product '{slug}': {e.response.status_code}")
        raise _upstream_unavailable()
    except httpx.RequestError:
        raise _upstream_unavailable()

    await redis.set(cache_key, product.model_dump_json(), ex=PRODUCT_CACHE_TTL_SECONDS)
    return product


async def get_products(
    redis: Redis,
    page: int = 1,
    per_page: int = 24,
    collection: Optional[str] = None,
    product_type: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    sort: Optional[str] = None,
    location_id: Optional[int] = None,
) -> PaginatedProducts:
    """
    Список товаров с фильтрами. При ошибке бэкенда возвращает пустую страницу,
    чтобы каталог не "падал" целиком.
    """
    params = {
        "page": page, "per_page": per_page, "collection": collection,
        "product_type": product_type, "featured": featured, "search": search,
        "min_price": min_price, "max_price": max_price, "sort": sort,
        "location_id": location_id,
    }
    cache_key = _cache_key("products", params)

    cached_products = await redis.get(cache_key)
    if cached_products:
        logger.info(f"Serving products from cache for key: {cache_key}")
        return PaginatedProducts.model_validate(json.loads(cached_products))

    try:
        response = await api_client.get(
            "products", params={k: v for k, v in params.items() if v is not None}
        )
        data = response.json()
    except (httpx.HTTPStatusError, httpx.RequestError):
        logger.error(f"Failed to fetch products with params: {params}")
        return PaginatedProducts(items=[], meta=PaginationMeta(page=page, per_page=per_page, total=0))

    result = PaginatedProducts(
        items=data.get("products", []),
        meta=data.get("meta") or PaginationMeta(page=page, per_page=per_page),
    )
    await redis.set(cache_key, result.model_dump_json(), ex=CATALOG_CACHE_TTL_SECONDS)
    return result


async def get_collections(
    redis: Redis, page: int = 1, per_page: int = 24, search: Optional[str] = None
) -> PaginatedCollections:
    params = {"page": page, "per_page": per_page, "search": search}
    cache_key = _cache_key("collections", params)

    cached = await redis.get(cache_key)
    if cached:
        return PaginatedCollections.model_validate(json.loads(cached))

    try:
        response = await api_client.get(
            "collections", params={k: v for k, v in params.items() if v is not None}
        )
        data = response.json()
    except (httpx.HTTPStatusError, httpx.RequestError):
        logger.error("Failed to fetch collections list.")
        return PaginatedCollections(items=[], meta=PaginationMeta(page=page, per_page=per_page))

    result = PaginatedCollections(
        items=data.get("collections", []),
        meta=data.get("meta") or PaginationMeta(page=page, per_page=per_page),
    )
    await redis.set(cache_key, result.model_dump_json(), ex=CATALOG_CACHE_TTL_SECONDS)
    return result


async def get_collection(
    redis: Redis, slug: str, page: int = 1, per_page: int = 24
) -> Optional[CollectionDetail]:
    cache_key = _cache_key(f"collection:{slug}", {"page": page, "per_page": per_page})

    cached = await redis.get(cache_key)
    if cached:
        return CollectionDetail.model_validate(json.loads(cached))

    try:
        response = await api_client.get(f"collections/{slug}", params={"page": page, "per_page": per_page})
        result = CollectionDetail.model_validate(response.json())
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return None
        raise _upstream_unavailable()
    except httpx.RequestError:
        raise _upstream_unavailable()

    await redis.set(cache_key, result.model_dump_json(), ex=CATALOG_CACHE_TTL_SECONDS)
    return result


async def get_homepage_sections(redis: Redis) -> HomepageSections:
    cache_key = "homepage_sections"

    cached = await redis.get(cache_key)
    if cached:
        logger.info("Serving homepage sections from cache.")
        return HomepageSections.model_validate(json.loads(cached))

    try:
        response = await api_client.get("homepage_sections")
        result = HomepageSections.model_validate(response.json())
    except (httpx.HTTPStatusError, httpx.RequestError):
        logger.error("Failed to fetch homepage sections.")
        return HomepageSections(sections=[], grouped={})

    await redis.set(cache_key, result.model_dump_json(), ex=CATALOG_CACHE_TTL_SECONDS)
    return result
