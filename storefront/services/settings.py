# storefront/services/settings.py

import json
import logging

import httpx
from pydantic import ValidationError
from redis.asyncio import Redis

from storefront.clients.storefront_api import api_client
from storefront.core.config import settings as app_settings
from storefront.schemas.settings import AppConfig, FeatureFlags

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = app_settings.CONFIG_CACHE_TTL_SECONDS


def _fallback_config() -> AppConfig:
    # Оплата и доставка выключены, пока настоящая конфигурация недоступна
    return AppConfig(
        app_mode="test",
        stripe_enabled=False,
        features=FeatureFlags(payments=False, shipping=False),
    )


async def get_app_config(redis: Redis) -> AppConfig:
    """
    Получает конфигурацию витрины из внешнего API с кешированием в Redis.
    При ошибке возвращает безопасные значения по умолчанию и не кеширует их.
    """
    cache_key = "app_config"

    cached_config = await redis.get(cache_key)
    if cached_config:
        try:
            return AppConfig.model_validate(json.loads(cached_config))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Failed to validate cached app config: {e}. Fetching fresh config.")

    logger.info("Fetching fresh app config from storefront API.")
    try:
        response = await api_client.get("config")
        config = AppConfig.model_validate(response.json())
    except (httpx.HTTPStatusError, httpx.RequestError, ValueError, ValidationError):
        logger.error("CRITICAL: Failed to fetch or parse app config.", exc_info=True)
        return _fallback_config()

    await redis.set(cache_key, config.model_dump_json(), ex=CACHE_TTL_SECONDS)
    return config
