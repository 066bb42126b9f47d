# storefront/schemas/selection.py
from enum import Enum
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from .product import ProductVariant


class SelectionStatus(str, Enum):
    EMPTY = "empty"
    PARTIAL = "partial"
    MATCHED = "matched"
    UNMATCHED = "unmatched"


class Swatch(BaseModel):
    hex: str | None = None
    badge: str | None = None


class OptionValueState(BaseModel):
    value: str
    selected: bool = False
    selectable: bool        # проходит перекрестный фильтр
    in_stock: bool          # есть доступный вариант с этим значением
    variant_id: int | None = None
    stock_quantity: int | None = None
    price_delta_cents: int | None = None
    swatch: Swatch | None = None


class OptionDimensionView(BaseModel):
    name: str
    is_color: bool = False
    values: List[OptionValueState]


class LegacyVariantOption(BaseModel):
    """Вариант в старом плоском режиме: выбор по id, без фильтрации."""
    id: int
    display_name: str
    selected: bool = False
    available: bool
    stock_warning: str | None = None


class ProductSelectionView(BaseModel):
    product_id: int
    product_slug: str
    legacy_mode: bool = False
    dimensions: List[OptionDimensionView] = []
    legacy_variants: List[LegacyVariantOption] = []
    selection: Dict[str, str] = {}
    status: SelectionStatus
    matched_variant: Optional[ProductVariant] = None
    display_price_cents: int
    quantity: int = 1
    max_quantity: int
    can_add_to_cart: bool
    message: str | None = None


# --- Запросы ---

class SelectionRequest(BaseModel):
    # Пустой выбор означает "открыть страницу": выбор засеивается автоматически
    selection: Dict[str, str] = Field(default_factory=dict)
    variant_id: int | None = None   # только для плоского режима
    quantity: int = 1


class SelectOptionRequest(SelectionRequest):
    dimension: str
    value: str


class AddSelectionToCartRequest(SelectionRequest):
    pass


class AddSelectionToCartResponse(BaseModel):
    message: str
    view: ProductSelectionView
    item_count: int
