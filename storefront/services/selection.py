# storefront/services/selection.py

import logging
from typing import Dict, Mapping, Optional, Sequence

from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.product import InventoryLevel, ProductFull, ProductVariant
from storefront.schemas.selection import (
    LegacyVariantOption, OptionDimensionView, OptionValueState,
    ProductSelectionView, SelectionStatus, Swatch,
)
from storefront.services import quantity as quantity_service
from storefront.services import swatches
from storefront.services.variants import (
    OptionDimensions, describe_option_values, extract_option_dimensions,
    find_matching_variant, is_legacy_mode, is_selection_complete,
)

logger = logging.getLogger(__name__)


class InvalidSelectionError(ValueError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Переходы состояния выбора ---

def _first_available(variants: Sequence[ProductVariant]) -> Optional[ProductVariant]:
    # Предпочитаем доступный вариант; если таких нет - просто первый
    for variant in variants:
        if variant.is_available:
            return variant
    return variants[0] if variants else None


def seed_selection(variants: Sequence[ProductVariant], dimensions: OptionDimensions) -> Dict[str, str]:
    """
    Начальный выбор при открытии товара: все измерения берутся из первого
    доступного варианта, а если доступных нет - из первого варианта вообще.
    """
    if not dimensions:
        return {}
    seed = _first_available([v for v in variants if v.options])
    if seed is None:
        return {}
    return {key: value for key, value in seed.options.items() if key in dimensions}


def seed_variant_id(variants: Sequence[ProductVariant]) -> Optional[int]:
    """То же правило для плоского режима: id первого доступного варианта."""
    seed = _first_available(variants)
    return seed.id if seed else None


def validate_selection(selection: Mapping[str, str], dimensions: OptionDimensions) -> Dict[str, str]:
    """
    Проверяет выбор, пришедший от клиента. Пустые значения отбрасываются
    (измерение считается не выбранным), неизвестные измерения и значения - ошибка.
    """
    cleaned = {}
    for dimension, value in selection.items():
        if not value:
            continue
        if dimension not in dimensions:
            raise InvalidSelectionError(locales.ERROR_UNKNOWN_OPTION.format(dimension=dimension))
        if value not in dimensions[dimension]:
            raise InvalidSelectionError(
                locales.ERROR_UNKNOWN_OPTION_VALUE.format(dimension=dimension, value=value)
            )
        cleaned[dimension] = value
    return cleaned


def select_option(
    selection: Mapping[str, str],
    dimensions: OptionDimensions,
    dimension: str,
    value: str,
) -> Dict[str, str]:
    """
    Единственный переход: значение измерения перезаписывается, остальные
    измерения не меняются. Снять выбор нельзя - только заменить.
    """
    validate_selection({dimension: value}, dimensions)
    if not value:
        raise InvalidSelectionError(locales.ERROR_UNKNOWN_OPTION_VALUE.format(dimension=dimension, value=value))
    return {**selection, dimension: value}


def selection_status(
    selection: Mapping[str, str],
    dimension_keys: Sequence[str],
    matched: Optional[ProductVariant],
) -> SelectionStatus:
    if not any(selection.values()):
        return SelectionStatus.EMPTY
    if not is_selection_complete(selection, dimension_keys):
        return SelectionStatus.PARTIAL
    return SelectionStatus.MATCHED if matched else SelectionStatus.UNMATCHED


# --- Сборка представления ---

def _legacy_variants(product: ProductFull, selected_id: Optional[int]) -> list[LegacyVariantOption]:
    items = []
    for variant in product.variants:
        warning = None
        if not variant.is_available:
            warning = locales.LABEL_OUT_OF_STOCK
        elif (
            product.inventory_level == InventoryLevel.VARIANT
            and 0 < variant.stock_quantity <= settings.LOW_STOCK_THRESHOLD
        ):
            warning = locales.LABEL_LOW_STOCK.format(stock_quantity=variant.stock_quantity)
        display_name = variant.display_name or " / ".join(
            part for part in (variant.size, variant.color) if part
        )
        items.append(LegacyVariantOption(
            id=variant.id,
            display_name=display_name,
            selected=variant.id == selected_id,
            available=variant.is_available,
            stock_warning=warning,
        ))
    return items


def _dimension_views(
    product: ProductFull,
    dimensions: OptionDimensions,
    selection: Mapping[str, str],
) -> list[OptionDimensionView]:
    described = describe_option_values(
        product.variants, dimensions, selection, product.base_price_cents
    )
    views = []
    for dimension, states in described.items():
        is_color = swatches.is_color_dimension(dimension)
        values = []
        for state in states:
            swatch = Swatch(**swatches.get_swatch(state["value"])) if is_color else None
            values.append(OptionValueState(**state, swatch=swatch))
        views.append(OptionDimensionView(name=dimension, is_color=is_color, values=values))
    return views


def _status_message(
    product: ProductFull,
    status: SelectionStatus,
    active: Optional[ProductVariant],
) -> Optional[str]:
    if not quantity_service.is_product_available(product):
        return locales.ERROR_PRODUCT_UNAVAILABLE
    if status == SelectionStatus.PARTIAL:
        return locales.ERROR_SELECT_ALL_OPTIONS
    if status == SelectionStatus.UNMATCHED:
        return locales.ERROR_COMBINATION_NOT_AVAILABLE
    if status == SelectionStatus.MATCHED and active is not None and not active.is_available:
        return locales.ERROR_COMBINATION_OUT_OF_STOCK
    return None


def build_selection_view(
    product: ProductFull,
    selection: Mapping[str, str] | None = None,
    quantity: int = 1,
    selected_variant_id: int | None = None,
) -> ProductSelectionView:
    """
    Единый конвейер (варианты, выбор) -> (измерения, доступность, вариант, цена,
    лимит количества, можно ли в корзину). Считается заново на каждое изменение,
    промежуточного состояния между шагами нет.
    """
    variants = product.variants
    legacy = is_legacy_mode(variants)
    dimensions: OptionDimensions = {} if legacy else extract_option_dimensions(variants)

    current: Dict[str, str] = {}
    active: Optional[ProductVariant] = None
    dimension_views: list[OptionDimensionView] = []
    legacy_views: list[LegacyVariantOption] = []

    if legacy:
        variant_id = selected_variant_id if selected_variant_id is not None else seed_variant_id(variants)
        active = next((v for v in variants if v.id == variant_id), None)
        if active is None:
            raise InvalidSelectionError(locales.ERROR_NO_VARIANT_SELECTED)
        status = SelectionStatus.MATCHED
        legacy_views = _legacy_variants(product, active.id)
    elif dimensions:
        current = validate_selection(selection or {}, dimensions)
        if not current:
            current = seed_selection(variants, dimensions)
        matched = find_matching_variant(variants, list(dimensions), current)
        status = selection_status(current, list(dimensions), matched)
        # Активный вариант (цена, SKU, остаток) есть только при полном совпадении
        active = matched if status == SelectionStatus.MATCHED else None
        dimension_views = _dimension_views(product, dimensions, current)
    else:
        # Товар без вариантов: выбирать нечего
        status = SelectionStatus.EMPTY

    max_qty = quantity_service.max_quantity(product, active)
    clamped = quantity_service.clamp_quantity(quantity, max_qty)
    if legacy:
        message = None if active.is_available else locales.ERROR_VARIANT_OUT_OF_STOCK
        if not quantity_service.is_product_available(product):
            message = locales.ERROR_PRODUCT_UNAVAILABLE
    else:
        message = _status_message(product, status, active)

    return ProductSelectionView(
        product_id=product.id,
        product_slug=product.slug,
        legacy_mode=legacy,
        dimensions=dimension_views,
        legacy_variants=legacy_views,
        selection=current,
        status=status,
        matched_variant=active,
        display_price_cents=active.price_cents if active else product.base_price_cents,
        quantity=clamped,
        max_quantity=max_qty,
        can_add_to_cart=quantity_service.can_add_to_cart(product, active, clamped),
        message=message,
    )
