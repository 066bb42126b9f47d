# storefront/schemas/cart.py
from pydantic import BaseModel, Field
from typing import List, Literal

from .product import InventoryLevel


# Одна позиция корзины в хранилище: товар + вариант (None для товаров без вариантов)
class CartLineItem(BaseModel):
    product_id: int
    product_slug: str
    variant_id: int | None = None
    quantity: int = Field(1, gt=0)


# Снимок корзины, который лежит в Redis
class CartSnapshot(BaseModel):
    session_id: str
    items: List[CartLineItem] = []


# Схема для добавления товара в корзину
class CartItemAdd(BaseModel):
    product_slug: str
    variant_id: int | None = None
    quantity: int = Field(1, gt=0) # Количество должно быть больше 0

# Схема для изменения количества
class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemAvailability(BaseModel):
    available: bool
    quantity_exceeds_stock: bool = False
    available_quantity: int
    max_available: int


# Позиция корзины в ответе, обогащенная данными каталога
class CartItemResponse(BaseModel):
    product_id: int
    product_slug: str
    product_name: str
    variant_id: int | None = None
    variant_name: str | None = None
    sku: str | None = None
    options: dict[str, str] | None = None
    inventory_level: InventoryLevel = InventoryLevel.NONE
    image_url: str | None = None
    quantity: int
    price_cents: int
    subtotal_cents: int
    availability: CartItemAvailability


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    subtotal_cents: int
    item_count: int


class CartValidationIssue(BaseModel):
    product_id: int
    variant_id: int | None = None
    type: Literal["unavailable", "out_of_stock", "quantity_reduced"]
    message: str
    item_name: str
    available: int | None = None
    requested: int | None = None
    action: Literal["remove", "reduce"]


class CartValidation(BaseModel):
    valid: bool
    issues: List[CartValidationIssue]
    cart: CartResponse
