# storefront/schemas/product.py
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, Generic, List, Optional, TypeVar


class InventoryLevel(str, Enum):
    """Где ведется учет остатков товара."""
    NONE = "none"
    PRODUCT = "product"
    VARIANT = "variant"


class ProductImage(BaseModel):
    id: int
    url: str
    alt_text: str | None = None
    position: int = 0
    primary: bool = False


class Collection(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    featured: bool = False
    product_count: int = 0


class ProductVariant(BaseModel):
    id: int
    sku: str | None = ""
    display_name: str = ""
    # Гибкие опции (новая схема), например {"Size": "M", "Color": "Red"}
    options: Dict[str, str] | None = None
    # Устаревшие плоские поля, остались для обратной совместимости
    size: str | None = None
    color: str | None = None
    price_cents: int = 0
    stock_quantity: int = 0
    in_stock: bool = True
    actually_available: bool | None = None
    weight_oz: float | None = None

    @field_validator('options', mode='before')
    @classmethod
    def validate_options(cls, v):
        # Бэкенд иногда отдает пустой список вместо пустого объекта,
        # а значения опций могут прийти числами ("Size": 10).
        if not v:
            return None
        if isinstance(v, dict):
            # Пустое значение равносильно отсутствию ключа
            options = {
                str(key): str(value) for key, value in v.items()
                if value is not None and str(value) != ""
            }
            return options or None
        return v

    @property
    def is_available(self) -> bool:
        # Отсутствие флага означает "доступен"
        return self.actually_available is not False


class Product(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None = ""
    base_price_cents: int = 0
    sale_price_cents: int | None = None
    new_product: bool = False
    featured: bool = False
    product_type: str | None = None
    inventory_level: InventoryLevel = InventoryLevel.NONE
    product_stock_quantity: int | None = None
    in_stock: bool = True
    actually_available: bool | None = None
    primary_image_url: str | None = None
    collections: List[Collection] = []
    variant_count: int = 0

    @field_validator('inventory_level', mode='before')
    @classmethod
    def validate_inventory_level(cls, v):
        # Старые товары приходят без inventory_level - это "без учета"
        return v or InventoryLevel.NONE

    class Config:
        from_attributes = True


class ProductFull(Product):
    vendor: str | None = None
    weight_oz: float | None = None
    variants: List[ProductVariant] = []
    images: List[ProductImage] = []
    meta_title: str | None = None
    meta_description: str | None = None
    updated_at: datetime | None = None


class PaginationMeta(BaseModel):
    page: int = 1
    per_page: int = 0
    total: int = 0


# --- Универсальная обертка для списков с пагинацией ---

DataType = TypeVar('DataType')

class PaginatedResponse(BaseModel, Generic[DataType]):
    items: List[DataType]
    meta: PaginationMeta = Field(default_factory=PaginationMeta)


class PaginatedProducts(PaginatedResponse[Product]):
    pass

class PaginatedCollections(PaginatedResponse[Collection]):
    pass


class CollectionDetail(BaseModel):
    collection: Collection
    products: List[Product]
    meta: PaginationMeta = Field(default_factory=PaginationMeta)


class HomepageSection(BaseModel):
    id: int
    section_type: str
    position: int = 0
    title: str | None = None
    subtitle: str | None = None
    button_text: str | None = None
    button_link: str | None = None
    image_url: str | None = None
    background_image_url: str | None = None
    settings: Dict[str, Any] = {}
    active: bool = True


class HomepageSections(BaseModel):
    sections: List[HomepageSection]
    grouped: Dict[str, List[HomepageSection]] = {}
