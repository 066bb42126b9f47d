# storefront/clients/storefront_api.py

import httpx
from storefront.core.config import settings
import logging

logger = logging.getLogger(__name__)

class StorefrontApiClient:
    """
    Асинхронный клиент для REST API каталога и заказов (внешний бэкенд магазина).
    Сессия покупателя передается заголовком X-Session-ID, токен пользователя -
    как Bearer в Authorization, ровно так же, как это делает веб-клиент.
    """
    def __init__(self, base_url: str, connect_timeout: float, read_timeout: float):
        self.base_url = base_url
        timeouts = httpx.Timeout(connect_timeout, read=read_timeout)
        self.async_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeouts,
            headers={"Content-Type": "application/json"},
        )

    @staticmethod
    def _build_headers(session_id: str | None = None, token: str | None = None) -> dict:
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if session_id:
            headers["X-Session-ID"] = session_id
        return headers

    async def get(
        self,
        endpoint: str,
        params: dict = None,
        session_id: str | None = None,
        token: str | None = None,
    ) -> httpx.Response:
        """
        Выполняет GET-запрос. В случае успеха возвращает объект Response.
        В случае HTTP-ошибки (4xx/5xx) выбрасывает исключение.
        """
        try:
            response = await self.async_client.get(
                endpoint, params=params, headers=self._build_headers(session_id, token)
            )
            response.raise_for_status()
            return response
        except httpx.RequestError as e:
            logger.error(f"Network error during GET request to {e.request.url!r}.", exc_info=True)
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during GET request to {e.request.url!r}: {e.response.text}", exc_info=True)
            raise

    async def post(
        self,
        endpoint: str,
        json: dict,
        session_id: str | None = None,
        token: str | None = None,
    ) -> dict:
        """
        Выполняет POST-запрос. В случае успеха возвращает JSON-ответ (dict).
        В случае HTTP-ошибки (4xx/5xx) выбрасывает исключение.
        """
        try:
            response = await self.async_client.post(
                endpoint, json=json, headers=self._build_headers(session_id, token)
            )
            response.raise_for_status()
            return response.json()
        except httpx.RequestError as e:
            logger.error(f"Network error during POST request to {e.request.url!r}.", exc_info=True)
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during POST request to {e.request.url!r}: {e.response.text}", exc_info=True)
            raise

    async def aclose(self):
        await self.async_client.aclose()

# Создаем синглтон
api_client = StorefrontApiClient(
    base_url=settings.API_URL,
    connect_timeout=settings.API_CONNECT_TIMEOUT,
    read_timeout=settings.API_READ_TIMEOUT,
)
