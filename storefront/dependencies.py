# storefront/dependencies.py

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis

from storefront.core import locales
from storefront.core.redis import get_redis_client
from storefront.services.cart import CartStore, CartStoreError

# --- Инициализация логгера ---
logger = logging.getLogger(__name__)

# --- Схемы аутентификации ---
# Токен не проверяется здесь: он только пробрасывается во внешний API
optional_bearer_scheme = HTTPBearer(auto_error=False)


def get_session_id(x_session_id: Optional[str] = Header(None)) -> str:
    """
    ОБЯЗАТЕЛЬНАЯ зависимость для корзин и оформления заказа.
    Сессия покупателя задается заголовком X-Session-ID; без него - 400.
    """
    if not x_session_id or not x_session_id.strip():
        logger.debug("Request without X-Session-ID header rejected.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_SESSION_REQUIRED)
    return x_session_id.strip()


def get_optional_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
) -> Optional[str]:
    """ОПЦИОНАЛЬНАЯ зависимость: Bearer-токен покупателя, если он есть."""
    return credentials.credentials if credentials else None


async def get_cart_store(
    session_id: str = Depends(get_session_id),
    redis: Redis = Depends(get_redis_client),
) -> CartStore:
    """Корзина текущей сессии, уже загруженная из Redis."""
    store = CartStore(redis, session_id)
    try:
        await store.load()
    except CartStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return store
