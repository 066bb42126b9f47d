# storefront/services/cart.py

import logging
from typing import List, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.cart import (
    CartItemAvailability, CartItemResponse, CartLineItem, CartResponse,
    CartSnapshot, CartValidation, CartValidationIssue,
)
from storefront.services import catalog as catalog_service
from storefront.services import quantity as quantity_service

logger = logging.getLogger(__name__)


class CartStoreError(Exception):
    """Корзину не удалось изменить. Состояние корзины при этом не меняется."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CartStore:
    """
    Корзина покупателя, привязанная к сессии (X-Session-ID).

    Хранится в Redis одним JSON-снимком под ключом cart:{session_id}.
    Жизненный цикл явный: load() читает снимок, каждая мутация сохраняет его
    обратно; объект живет в пределах одного запроса.
    """

    def __init__(self, redis: Redis, session_id: str):
        self.redis = redis
        self.session_id = session_id
        self.items: List[CartLineItem] = []
        self._loaded = False

    @property
    def storage_key(self) -> str:
        return f"cart:{self.session_id}"

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    async def load(self) -> "CartStore":
        try:
            raw = await self.redis.get(self.storage_key)
        except RedisError:
            logger.error(f"Failed to read cart for session {self.session_id}", exc_info=True)
            raise CartStoreError(locales.ERROR_CART_UNAVAILABLE)

        self.items = []
        if raw:
            try:
                snapshot = CartSnapshot.model_validate_json(raw)
            except ValidationError:
                logger.warning(f"Discarding corrupted cart snapshot for session {self.session_id}")
                snapshot = None
            # Снимку доверяем, только если он принадлежит этой же сессии
            if snapshot and snapshot.session_id == self.session_id:
                self.items = snapshot.items
        self._loaded = True
        return self

    async def _save(self, items: List[CartLineItem]):
        snapshot = CartSnapshot(session_id=self.session_id, items=items)
        try:
            await self.redis.set(self.storage_key, snapshot.model_dump_json(), ex=settings.CART_TTL_SECONDS)
        except RedisError:
            logger.error(f"Failed to save cart for session {self.session_id}", exc_info=True)
            raise CartStoreError(locales.ERROR_CART_UNAVAILABLE)
        self.items = items

    async def ensure_loaded(self):
        if not self._loaded:
            await self.load()

    def find_item(self, product_id: int, variant_id: Optional[int]) -> Optional[CartLineItem]:
        for item in self.items:
            if item.product_id == product_id and item.variant_id == variant_id:
                return item
        return None

    async def add_item(
        self,
        product_id: int,
        product_slug: str,
        variant_id: Optional[int],
        quantity: int,
        max_quantity: Optional[int] = None,
    ) -> CartLineItem:
        """
        Добавляет позицию или увеличивает количество существующей.
        Если итог превышает max_quantity, корзина не меняется и выбрасывается CartStoreError.
        """
        await self.ensure_loaded()
        if quantity < 1:
            raise CartStoreError(locales.ERROR_INVALID_QUANTITY.format(max_quantity=max_quantity or 1))

        existing = self.find_item(product_id, variant_id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if max_quantity is not None and new_quantity > max_quantity:
            raise CartStoreError(locales.ERROR_NOT_ENOUGH_STOCK.format(available_quantity=max_quantity))

        new_item = CartLineItem(
            product_id=product_id, product_slug=product_slug,
            variant_id=variant_id, quantity=new_quantity,
        )
        if existing:
            items = [new_item if item is existing else item for item in self.items]
        else:
            items = [*self.items, new_item]
        await self._save(items)
        logger.info(
            f"Cart {self.session_id}: product {product_id} variant {variant_id} -> qty {new_quantity}"
        )
        return new_item

    async def update_quantity(self, product_id: int, variant_id: Optional[int], quantity: int) -> CartLineItem:
        await self.ensure_loaded()
        existing = self.find_item(product_id, variant_id)
        if existing is None:
            raise KeyError((product_id, variant_id))
        if quantity < 1:
            raise CartStoreError(locales.ERROR_INVALID_QUANTITY.format(max_quantity=existing.quantity))
        updated = existing.model_copy(update={"quantity": quantity})
        await self._save([updated if item is existing else item for item in self.items])
        return updated

    async def remove_item(self, product_id: int, variant_id: Optional[int]) -> bool:
        await self.ensure_loaded()
        existing = self.find_item(product_id, variant_id)
        if existing is None:
            return False
        await self._save([item for item in self.items if item is not existing])
        return True

    async def clear(self):
        try:
            await self.redis.delete(self.storage_key)
        except RedisError:
            logger.error(f"Failed to clear cart for session {self.session_id}", exc_info=True)
            raise CartStoreError(locales.ERROR_CART_UNAVAILABLE)
        self.items = []
        self._loaded = True


# --- Представление корзины и проверка актуальности ---

async def _describe_items(store: CartStore, redis: Redis):
    """
    Обогащает позиции данными каталога и попутно собирает проблемы:
    товар/вариант пропал, закончился или остатка меньше, чем в корзине.
    """
    await store.ensure_loaded()
    response_items: List[CartItemResponse] = []
    issues: List[CartValidationIssue] = []

    for item in store.items:
        product = await catalog_service.get_product(redis, item.product_slug)
        variant = None
        if product and item.variant_id is not None:
            variant = next((v for v in product.variants if v.id == item.variant_id), None)

        if product is None or (item.variant_id is not None and variant is None):
            issues.append(CartValidationIssue(
                product_id=item.product_id, variant_id=item.variant_id, type="unavailable",
                message=locales.ERROR_CART_ITEM_UNAVAILABLE.format(name=item.product_slug),
                item_name=item.product_slug, action="remove",
            ))
            continue

        name = product.name
        max_available = quantity_service.max_quantity(product, variant)
        available = quantity_service.is_product_available(product) and (variant is None or variant.is_available)
        if not available or max_available < 1:
            issues.append(CartValidationIssue(
                product_id=item.product_id, variant_id=item.variant_id, type="out_of_stock",
                message=locales.ERROR_CART_ITEM_OUT_OF_STOCK.format(name=name),
                item_name=name, available=0, requested=item.quantity, action="remove",
            ))
        elif item.quantity > max_available:
            issues.append(CartValidationIssue(
                product_id=item.product_id, variant_id=item.variant_id, type="quantity_reduced",
                message=locales.ERROR_CART_ITEM_QUANTITY_REDUCED.format(
                    name=name, available=max_available, requested=item.quantity
                ),
                item_name=name, available=max_available, requested=item.quantity, action="reduce",
            ))

        price_cents = variant.price_cents if variant else product.base_price_cents
        response_items.append(CartItemResponse(
            product_id=product.id,
            product_slug=product.slug,
            product_name=name,
            variant_id=variant.id if variant else None,
            variant_name=variant.display_name if variant else None,
            sku=variant.sku if variant else None,
            options=variant.options if variant else None,
            inventory_level=product.inventory_level,
            image_url=product.primary_image_url,
            quantity=item.quantity,
            price_cents=price_cents,
            subtotal_cents=price_cents * item.quantity,
            availability=CartItemAvailability(
                available=available,
                quantity_exceeds_stock=item.quantity > max_available,
                available_quantity=max(max_available, 0),
                max_available=max(max_available, 0),
            ),
        ))

    cart = CartResponse(
        items=response_items,
        subtotal_cents=sum(i.subtotal_cents for i in response_items),
        item_count=sum(i.quantity for i in response_items),
    )
    return cart, issues


async def get_cart(store: CartStore, redis: Redis) -> CartResponse:
    cart, _ = await _describe_items(store, redis)
    return cart


async def validate_cart(store: CartStore, redis: Redis) -> CartValidation:
    """Проверка корзины перед оформлением: список проблем и текущее содержимое."""
    cart, issues = await _describe_items(store, redis)
    if issues:
        logger.info(f"Cart {store.session_id} has {len(issues)} validation issue(s).")
    return CartValidation(valid=not issues, issues=issues, cart=cart)
