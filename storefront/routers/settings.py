# storefront/routers/settings.py
from fastapi import APIRouter, Depends
from redis.asyncio import Redis

from storefront.core.redis import get_redis_client
from storefront.schemas.settings import AppConfig
from storefront.services import settings as settings_service

router = APIRouter()

@router.get("/config", response_model=AppConfig)
async def get_config(redis: Redis = Depends(get_redis_client)):
    """Публичная конфигурация витрины (режим, оплата, доставка, объявление)."""
    return await settings_service.get_app_config(redis)
