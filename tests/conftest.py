# tests/conftest.py
import pytest
import pytest_asyncio
import httpx
from httpx import ASGITransport, AsyncClient
from unittest.mock import AsyncMock, MagicMock

from storefront.core.limiter import limiter
from storefront.core.redis import get_redis_client
from storefront.main import app
from storefront.schemas.product import ProductFull

SESSION_ID = "test-session-1"


class FakeRedis:
    """
    Минимальный асинхронный двойник Redis: только те команды, что нужны
    кешу каталога и корзинам. Можно "сломать", чтобы проверить обработку ошибок.
    """

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.fail_with = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None, nx=False):
        self._check()
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed


@pytest.fixture
def redis():
    return FakeRedis()


# --- Ответы внешнего API ---

def _request(method="GET", url="http://api.test/api/v1/x"):
    return httpx.Request(method, url)


@pytest.fixture
def api_response():
    """Фабрика успешного httpx.Response с JSON-телом."""
    def _make(data, status_code=200):
        return httpx.Response(status_code, json=data, request=_request())
    return _make


@pytest.fixture
def api_error():
    """Фабрика HTTPStatusError, как ее выбрасывает клиент после raise_for_status()."""
    def _make(status_code, data=None):
        request = _request()
        response = httpx.Response(status_code, json=data or {}, request=request)
        return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)
    return _make


@pytest.fixture
def mock_api_client(mocker):
    """Подменяет синглтон клиента внешнего API во всех сервисах."""
    mock_client = MagicMock()
    mock_client.get = AsyncMock()
    mock_client.post = AsyncMock()
    for module in (
        "storefront.services.catalog",
        "storefront.services.settings",
        "storefront.services.order",
    ):
        mocker.patch(f"{module}.api_client", mock_client)
    return mock_client


# --- Тестовые товары ---

def make_variant(variant_id, options=None, stock=5, price_cents=2500, available=None, **extra):
    data = {
        "id": variant_id,
        "sku": f"SKU-{variant_id}",
        "display_name": " / ".join(options.values()) if options else f"Variant {variant_id}",
        "options": options,
        "price_cents": price_cents,
        "stock_quantity": stock,
        "in_stock": stock > 0,
    }
    if available is not None:
        data["actually_available"] = available
    data.update(extra)
    return data


def make_product_data(variants, inventory_level="variant", **extra):
    data = {
        "id": 1,
        "name": "Island Tee",
        "slug": "island-tee",
        "base_price_cents": 2500,
        "inventory_level": inventory_level,
        "in_stock": True,
        "variants": variants,
    }
    data.update(extra)
    return data


@pytest.fixture
def variant_data():
    return make_variant


@pytest.fixture
def build_product():
    def _build(variants, **extra):
        return ProductFull.model_validate(make_product_data(variants, **extra))
    return _build


@pytest.fixture
def tee_data():
    """Футболка: размеры S/M/L x цвета Red/Blue, у всех вариантов остаток 5."""
    variants = []
    variant_id = 100
    for size in ("S", "M", "L"):
        for color in ("Red", "Blue"):
            variant_id += 1
            variants.append(make_variant(variant_id, {"Size": size, "Color": color}))
    return make_product_data(variants)


@pytest.fixture
def tee(tee_data):
    return ProductFull.model_validate(tee_data)


@pytest.fixture
def sparse_tee(tee_data):
    """Та же футболка, но варианта (L, Red) не существует."""
    variants = [
        v for v in tee_data["variants"]
        if v["options"] != {"Size": "L", "Color": "Red"}
    ]
    return ProductFull.model_validate(make_product_data(variants))


@pytest.fixture
def legacy_product():
    variants = [
        make_variant(11, None, stock=0, available=False, size="S", display_name="Small"),
        make_variant(12, None, stock=3, size="M", display_name="Medium"),
        make_variant(13, None, stock=10, size="L", display_name="Large"),
    ]
    return ProductFull.model_validate(make_product_data(variants, slug="legacy-tee"))


# --- HTTP-клиент приложения ---

@pytest_asyncio.fixture
async def client(redis):
    app.dependency_overrides[get_redis_client] = lambda: redis
    limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def session_headers():
    return {"X-Session-ID": SESSION_ID}
