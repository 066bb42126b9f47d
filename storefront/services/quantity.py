# storefront/services/quantity.py

import logging
from typing import Optional

from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.product import InventoryLevel, ProductFull, ProductVariant

logger = logging.getLogger(__name__)


class AddToCartRejected(Exception):
    """Предусловие "В корзину" не выполнено. В message - текст для покупателя."""

    def __init__(self, message: str, max_quantity: int | None = None):
        super().__init__(message)
        self.message = message
        self.max_quantity = max_quantity


def max_quantity(product: ProductFull, variant: Optional[ProductVariant]) -> int:
    """
    Максимальное количество к заказу по уровню учета остатков:
    none -> "без ограничений" (большое число-заглушка),
    product -> остаток товара, variant -> остаток выбранного варианта (0 без варианта).
    """
    if product.inventory_level == InventoryLevel.PRODUCT:
        return product.product_stock_quantity or 0
    if product.inventory_level == InventoryLevel.VARIANT:
        return (variant.stock_quantity or 0) if variant else 0
    return settings.UNTRACKED_MAX_QUANTITY


def clamp_quantity(quantity: int, max_qty: int) -> int:
    """Приводит количество к диапазону [1, max_qty]; при нулевом остатке остается 1."""
    upper = max(1, max_qty)
    return max(1, min(quantity, upper))


def is_product_available(product: ProductFull) -> bool:
    return product.actually_available is not False and product.in_stock


def can_add_to_cart(product: ProductFull, variant: Optional[ProductVariant], quantity: int) -> bool:
    try:
        check_add_to_cart(product, variant, quantity)
    except AddToCartRejected:
        return False
    return True


def check_add_to_cart(product: ProductFull, variant: Optional[ProductVariant], quantity: int) -> int:
    """
    Проверяет предусловие "В корзину" и возвращает максимальное количество.
    Товар доступен И (вариантов нет ИЛИ выбран доступный вариант) И 1 <= quantity <= max.
    """
    if not is_product_available(product):
        raise AddToCartRejected(locales.ERROR_PRODUCT_UNAVAILABLE)

    if product.variants:
        if variant is None:
            raise AddToCartRejected(locales.ERROR_NO_VARIANT_SELECTED)
        if not variant.is_available:
            raise AddToCartRejected(locales.ERROR_COMBINATION_OUT_OF_STOCK)

    max_qty = max_quantity(product, variant)
    if max_qty < 1:
        raise AddToCartRejected(locales.ERROR_PRODUCT_UNAVAILABLE, max_quantity=max_qty)
    if quantity < 1 or quantity > max_qty:
        raise AddToCartRejected(
            locales.ERROR_INVALID_QUANTITY.format(max_quantity=max_qty), max_quantity=max_qty
        )
    return max_qty
