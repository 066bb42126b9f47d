# storefront/services/fundraiser_cart.py

import logging
from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.fundraiser import FundraiserCartItem, FundraiserCartState
from storefront.services.cart import CartStoreError

logger = logging.getLogger(__name__)


# --- Переходы состояния (чистые функции: старое состояние -> новое) ---

def _same_line(item: FundraiserCartItem, fundraiser_product_id: int, variant_id: int) -> bool:
    return item.fundraiser_product_id == fundraiser_product_id and item.variant_id == variant_id


def set_fundraiser(state: FundraiserCartState, slug: str, fundraiser_id: int) -> FundraiserCartState:
    # Переход на другой сбор очищает корзину
    if state.fundraiser_slug and state.fundraiser_slug != slug:
        return FundraiserCartState(fundraiser_slug=slug, fundraiser_id=fundraiser_id)
    return state.model_copy(update={"fundraiser_slug": slug, "fundraiser_id": fundraiser_id})


def set_participant(state: FundraiserCartState, code: Optional[str], name: Optional[str]) -> FundraiserCartState:
    # Участник задается только парой код + имя, иначе сбрасывается
    if not (code and name):
        code, name = None, None
    return state.model_copy(update={"participant_code": code, "participant_name": name})


def add_item(state: FundraiserCartState, item: FundraiserCartItem) -> FundraiserCartState:
    """
    Добавляет позицию или увеличивает количество. Если итог превысит
    max_quantity позиции, состояние возвращается без изменений.
    """
    existing = next(
        (i for i in state.items if _same_line(i, item.fundraiser_product_id, item.variant_id)), None
    )
    if existing is None:
        return state.model_copy(update={"items": [*state.items, item]})

    new_quantity = existing.quantity + item.quantity
    if item.max_quantity and new_quantity > item.max_quantity:
        return state
    items = [
        i.model_copy(update={"quantity": new_quantity}) if i is existing else i
        for i in state.items
    ]
    return state.model_copy(update={"items": items})


def remove_item(state: FundraiserCartState, fundraiser_product_id: int, variant_id: int) -> FundraiserCartState:
    items = [i for i in state.items if not _same_line(i, fundraiser_product_id, variant_id)]
    return state.model_copy(update={"items": items})


def update_quantity(
    state: FundraiserCartState, fundraiser_product_id: int, variant_id: int, quantity: int
) -> FundraiserCartState:
    """Меняет количество, приводя его к min/max позиции."""
    existing = next(
        (i for i in state.items if _same_line(i, fundraiser_product_id, variant_id)), None
    )
    if existing is None:
        return state

    new_quantity = max(quantity, existing.min_quantity)
    if existing.max_quantity and new_quantity > existing.max_quantity:
        new_quantity = existing.max_quantity
    items = [
        i.model_copy(update={"quantity": new_quantity}) if i is existing else i
        for i in state.items
    ]
    return state.model_copy(update={"items": items})


def clear_items(state: FundraiserCartState) -> FundraiserCartState:
    return state.model_copy(update={"items": []})


# --- Хранилище ---

class FundraiserCartStore:
    """
    Корзина отдельного сбора средств. Хранится в Redis под ключом,
    квалифицированным slug сбора; сохраненный снимок принимается, только если
    его fundraiser_slug совпадает с запрошенным.
    """

    def __init__(self, redis: Redis, session_id: str, fundraiser_slug: str):
        self.redis = redis
        self.session_id = session_id
        self.fundraiser_slug = fundraiser_slug
        self.state = FundraiserCartState()

    def storage_key(self, slug: str) -> str:
        return f"fundraiser_cart:{self.session_id}:{slug}"

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.state.items)

    @property
    def subtotal_cents(self) -> int:
        return sum(item.price_cents * item.quantity for item in self.state.items)

    async def load(self, fundraiser_id: int = 0) -> "FundraiserCartStore":
        try:
            raw = await self.redis.get(self.storage_key(self.fundraiser_slug))
        except RedisError:
            logger.error(f"Failed to read fundraiser cart '{self.fundraiser_slug}'", exc_info=True)
            raise CartStoreError(locales.ERROR_CART_UNAVAILABLE)

        if raw:
            try:
                parsed = FundraiserCartState.model_validate_json(raw)
            except ValidationError:
                logger.warning(f"Failed to parse saved fundraiser cart '{self.fundraiser_slug}'")
                parsed = None
            if parsed and parsed.fundraiser_slug == self.fundraiser_slug:
                self.state = parsed
                if fundraiser_id and parsed.fundraiser_id != fundraiser_id:
                    self.state = set_fundraiser(self.state, self.fundraiser_slug, fundraiser_id)
                return self

        # Сохраненной корзины нет или она от другого сбора
        self.state = set_fundraiser(FundraiserCartState(), self.fundraiser_slug, fundraiser_id)
        return self

    async def _commit(self, new_state: FundraiserCartState) -> bool:
        if new_state is self.state:
            return False
        if new_state.fundraiser_slug:
            try:
                await self.redis.set(
                    self.storage_key(new_state.fundraiser_slug),
                    new_state.model_dump_json(),
                    ex=settings.CART_TTL_SECONDS,
                )
            except RedisError:
                logger.error(f"Failed to save fundraiser cart '{new_state.fundraiser_slug}'", exc_info=True)
                raise CartStoreError(locales.ERROR_CART_UNAVAILABLE)
        self.state = new_state
        return True

    async def set_fundraiser(self, slug: str, fundraiser_id: int) -> bool:
        changed = await self._commit(set_fundraiser(self.state, slug, fundraiser_id))
        self.fundraiser_slug = self.state.fundraiser_slug or slug
        return changed

    async def set_participant(self, code: Optional[str], name: Optional[str]) -> bool:
        return await self._commit(set_participant(self.state, code, name))

    async def add_item(self, item: FundraiserCartItem) -> bool:
        """Возвращает False, если позиция не добавлена (превышен максимум)."""
        return await self._commit(add_item(self.state, item))

    async def remove_item(self, fundraiser_product_id: int, variant_id: int) -> bool:
        return await self._commit(remove_item(self.state, fundraiser_product_id, variant_id))

    async def update_quantity(self, fundraiser_product_id: int, variant_id: int, quantity: int) -> bool:
        return await self._commit(update_quantity(self.state, fundraiser_product_id, variant_id, quantity))

    async def clear(self):
        self.state = clear_items(self.state)
        if self.state.fundraiser_slug:
            try:
                await self.redis.delete(self.storage_key(self.state.fundraiser_slug))
            except RedisError:
                logger.error(f"Failed to clear fundraiser cart '{self.state.fundraiser_slug}'", exc_info=True)
                raise CartStoreError(locales.ERROR_CART_UNAVAILABLE)
