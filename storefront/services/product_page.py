# storefront/services/product_page.py

import logging
from typing import Awaitable, Callable, Dict, Mapping, Optional

from redis.asyncio import Redis

from storefront.core import locales
from storefront.schemas.product import ProductFull
from storefront.schemas.selection import ProductSelectionView
from storefront.services import catalog as catalog_service
from storefront.services import quantity as quantity_service
from storefront.services.cart import CartStore, CartStoreError
from storefront.services.selection import (
    InvalidSelectionError, build_selection_view, select_option, validate_selection,
)
from storefront.services.variants import extract_option_dimensions, is_legacy_mode

logger = logging.getLogger(__name__)

ProductLoader = Callable[[Redis, str], Awaitable[Optional[ProductFull]]]


class ProductPage:
    """
    Состояние страницы товара: загруженный товар, выбор, количество.

    Время жизни задается явно: open(slug) ... close() или `async with`.
    Каждый open() увеличивает номер поколения; результат загрузки применяется,
    только если страница все еще открыта на том же поколении. Так ответ,
    пришедший после ухода со страницы (или после перехода на другой товар),
    отбрасывается и не затирает актуальное состояние.
    """

    def __init__(self, redis: Redis, loader: Optional[ProductLoader] = None):
        self.redis = redis
        self._loader = loader or catalog_service.get_product
        self._generation = 0
        self._open = False

        self.slug: Optional[str] = None
        self.product: Optional[ProductFull] = None
        self.selection: Dict[str, str] = {}
        self.variant_id: Optional[int] = None
        self.quantity = 1
        self.adding = False
        self.error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self, slug: str) -> Optional[ProductSelectionView]:
        """
        Открывает страницу товара. Возвращает начальное представление или None,
        если товар не найден либо результат загрузки устарел.
        """
        self._generation += 1
        generation = self._generation
        self._open = True
        self.slug = slug
        self._reset()

        product = await self._loader(self.redis, slug)

        if not self._open or generation != self._generation:
            logger.debug(f"Discarding stale product fetch for '{slug}' (generation {generation}).")
            return None

        if product is None:
            self.error = locales.ERROR_PRODUCT_NOT_FOUND
            return None

        self.product = product
        return self.view()

    def close(self):
        self._open = False
        self._generation += 1
        self.product = None
        self._reset()

    async def __aenter__(self) -> "ProductPage":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def _reset(self):
        self.product = None
        self.selection = {}
        self.variant_id = None
        self.quantity = 1
        self.adding = False
        self.error = None

    def _require_product(self) -> ProductFull:
        if self.product is None:
            raise InvalidSelectionError(locales.ERROR_PRODUCT_NOT_FOUND)
        return self.product

    # --- Переходы ---

    def view(self) -> ProductSelectionView:
        product = self._require_product()
        result = build_selection_view(
            product, self.selection, self.quantity, selected_variant_id=self.variant_id
        )
        # Засеянный выбор и приведенное количество становятся состоянием страницы
        self.selection = dict(result.selection)
        self.quantity = result.quantity
        if result.legacy_mode and result.matched_variant is not None:
            self.variant_id = result.matched_variant.id
        return result

    def restore(
        self,
        selection: Optional[Mapping[str, str]] = None,
        variant_id: Optional[int] = None,
        quantity: int = 1,
    ) -> ProductSelectionView:
        """Восстанавливает состояние, присланное клиентом (выбор хранится на его стороне)."""
        product = self._require_product()
        if is_legacy_mode(product.variants):
            self.selection = {}
        else:
            self.selection = validate_selection(
                selection or {}, extract_option_dimensions(product.variants)
            )
        self.variant_id = variant_id
        self.quantity = quantity
        return self.view()

    def select(self, dimension: str, value: str) -> ProductSelectionView:
        product = self._require_product()
        dimensions = extract_option_dimensions(product.variants)
        self.selection = select_option(self.selection, dimensions, dimension, value)
        self.quantity = 1
        return self.view()

    def select_variant(self, variant_id: int) -> ProductSelectionView:
        product = self._require_product()
        if not any(v.id == variant_id for v in product.variants):
            raise InvalidSelectionError(locales.ERROR_NO_VARIANT_SELECTED)
        self.variant_id = variant_id
        self.quantity = 1
        return self.view()

    def set_quantity(self, quantity: int) -> ProductSelectionView:
        self.quantity = quantity
        return self.view()

    # --- В корзину ---

    async def add_to_cart(self, cart_store: CartStore, quantity: Optional[int] = None) -> bool:
        """
        Передает {product_id, variant_id, quantity} в корзину.

        Предусловие проверяется строго: неверное количество не приводится к
        допустимому, а отклоняется (AddToCartRejected). Если корзина не смогла
        сохранить позицию, выбор и количество остаются прежними, текст ошибки
        сохраняется в self.error, метод возвращает False.
        """
        product = self._require_product()
        current = self.view()
        requested = self.quantity if quantity is None else quantity
        variant = current.matched_variant

        max_qty = quantity_service.check_add_to_cart(product, variant, requested)

        self.adding = True
        self.error = None
        try:
            await cart_store.add_item(
                product_id=product.id,
                product_slug=product.slug,
                variant_id=variant.id if variant else None,
                quantity=requested,
                max_quantity=max_qty,
            )
        except CartStoreError as e:
            logger.warning(f"Failed to add product '{product.slug}' to cart: {e.message}")
            self.error = e.message
            return False
        finally:
            self.adding = False

        self.quantity = 1
        return True
