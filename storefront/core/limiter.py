# storefront/core/limiter.py

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront.core.config import settings

logger = logging.getLogger(__name__)

# --- Функция-ключ для идентификации запросов ---

def key_func(request: Request) -> str:
    """
    Определяет, как идентифицировать запрос для применения лимита.
    Приоритет: ID сессии корзины (заголовок X-Session-ID) -> IP-адрес.
    """
    session_id = request.headers.get("X-Session-ID")
    if session_id:
        return f"session:{session_id}"

    return get_remote_address(request)

# --- Создание и конфигурация лимитера ---

# Хранилище счетчиков берется из настроек: в проде это Redis ("async+redis://..."),
# локально и в тестах достаточно памяти процесса.
limiter = Limiter(
    key_func=key_func,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="moving-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
