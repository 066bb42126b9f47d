# storefront/main.py

import logging
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Конфигурация и ядро
from storefront.core.config import settings as config
from storefront.core.limiter import limiter
from storefront.core.logging_config import setup_logging
from storefront.core.redis import redis_client
from storefront.clients.storefront_api import api_client

# Роутеры FastAPI
from storefront.routers import (
    catalog, cart, fundraisers, order, settings as settings_router
)

# --- Инициализация ---
logger = logging.getLogger(__name__)


# --- Обработчик критических ошибок ---
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всех необработанных исключений.
    Логирует ошибку с трассировкой и отдает клиенту обезличенный ответ.
    """
    client = f"{request.client.host}:{request.client.port}" if request.client else "unknown"
    logger.critical(
        f"Unhandled exception for request: {request.method} {request.url} (client {client})",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error."},
    )


# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Application lifespan startup. Storefront API: {config.API_URL}")

    yield

    logger.info("Application shutting down...")
    await api_client.aclose()
    await redis_client.aclose()
    logger.info("HTTP client and Redis connection closed.")


# --- Создание FastAPI приложения ---
app = FastAPI(
    title="Storefront BFF",
    description="Backend for Frontend service for the storefront: variant selection, carts, checkout",
    version="0.1.0",
    lifespan=lifespan
)

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173", # для Vite
    config.FRONTEND_URL,
    *config.EXTRA_CORS_ORIGINS,
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Лимитер запросов ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Регистрация обработчика исключений ---
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Подключение роутеров FastAPI ---
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(cart.router, tags=["Cart"])
api_router.include_router(fundraisers.router, tags=["Fundraisers"])
api_router.include_router(order.router, tags=["Orders"])
api_router.include_router(settings_router.router, tags=["Settings"])

app.include_router(api_router)


@app.get("/health", include_in_schema=False)
async def health_check():
    return {"status": "ok"}
