from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Внешний API каталога и заказов
    API_BASE_URL: str = "http://localhost:3000"
    API_CONNECT_TIMEOUT: float = 10.0
    API_READ_TIMEOUT: float = 30.0

    # Настройки Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Время жизни кешей и корзин
    PRODUCT_CACHE_TTL_SECONDS: int = 300
    CATALOG_CACHE_TTL_SECONDS: int = 600
    CONFIG_CACHE_TTL_SECONDS: int = 3600
    CART_TTL_SECONDS: int = 60 * 60 * 24 * 30 # 30 дней

    # Количество для товаров без учета остатков ("без ограничений")
    UNTRACKED_MAX_QUANTITY: int = 999
    LOW_STOCK_THRESHOLD: int = 5

    # Ограничение частоты запросов на изменение корзины
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    CART_RATE_LIMIT: str = "60/minute"

    FRONTEND_URL: str = "http://localhost:5173"
    EXTRA_CORS_ORIGINS_STR: str = Field(default="", alias="EXTRA_CORS_ORIGINS")

    @property
    def EXTRA_CORS_ORIGINS(self) -> List[str]:
        return [origin.strip() for origin in self.EXTRA_CORS_ORIGINS_STR.split(',') if origin.strip()]

    @property
    def API_URL(self) -> str:
        # Все публичные эндпоинты бэкенда живут под /api/v1
        return f"{self.API_BASE_URL.rstrip('/')}/api/v1"

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, extra="ignore")

settings = Settings()
