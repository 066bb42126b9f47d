# storefront/services/variants.py

"""
Разбор гибких вариантов товара: измерения опций, перекрестная фильтрация
доступных значений и сопоставление выбора с конкретным вариантом.

Все функции чистые: результат зависит только от списка вариантов и
текущего выбора, поэтому их безопасно вызывать на каждом запросе.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Set

from storefront.schemas.product import ProductVariant

logger = logging.getLogger(__name__)

# Измерение -> упорядоченный список наблюдаемых значений
OptionDimensions = Dict[str, List[str]]
Selection = Mapping[str, str]


def variant_has_options(variant: ProductVariant) -> bool:
    return bool(variant.options)


def is_legacy_mode(variants: Sequence[ProductVariant]) -> bool:
    """
    Товар работает в старом "плоском" режиме, если варианты есть,
    но ни у одного нет непустой карты options.
    """
    return bool(variants) and not any(variant_has_options(v) for v in variants)


def extract_option_dimensions(variants: Sequence[ProductVariant]) -> OptionDimensions:
    """
    Собирает измерения опций и их значения по всем вариантам.

    Порядок измерений и значений - порядок первого появления (не сортировка),
    поэтому два вызова с одним и тем же списком дают одинаковый результат.
    Устаревшие поля size/color в измерения не превращаются.
    """
    dimensions: OptionDimensions = {}
    for variant in variants:
        if not variant.options:
            continue
        for key, value in variant.options.items():
            values = dimensions.setdefault(key, [])
            if value not in values:
                values.append(value)
    return dimensions


def is_selection_complete(selection: Selection, dimension_keys: Sequence[str]) -> bool:
    """Выбор полный, если для каждого измерения есть непустое значение."""
    if not dimension_keys:
        return False
    return all(selection.get(key) for key in dimension_keys)


def variant_agrees(variant: ProductVariant, selection: Selection) -> bool:
    """Вариант согласуется с выбором, если совпадает по каждому выбранному измерению."""
    options = variant.options or {}
    return all(options.get(key) == value for key, value in selection.items())


def compute_available_values(
    variants: Sequence[ProductVariant],
    dimensions: OptionDimensions,
    selection: Selection,
) -> Dict[str, Set[str]]:
    """
    Перекрестная фильтрация: для каждого измерения D возвращает значения,
    которые еще можно выбрать при остальных текущих выборах.

    Значение V доступно, если существует вариант, который согласуется со всеми
    выборами, кроме самого D, и у которого options[D] == V. Наличие на складе
    здесь не учитывается - это отдельный признак (см. describe_option_values).
    """
    available: Dict[str, Set[str]] = {}
    for dimension in dimensions:
        other_selections = {
            key: value for key, value in selection.items()
            if key != dimension and value
        }
        values: Set[str] = set()
        for variant in variants:
            options = variant.options or {}
            if dimension not in options:
                continue
            if variant_agrees(variant, other_selections):
                values.add(options[dimension])
        available[dimension] = values
    return available


def find_matching_variant(
    variants: Sequence[ProductVariant],
    dimension_keys: Sequence[str],
    selection: Selection,
) -> Optional[ProductVariant]:
    """
    Находит вариант для полного выбора.

    Возвращает None, пока выбор неполный. Лишние ключи в options варианта
    игнорируются. Если под выбор подходит несколько вариантов (нарушена
    уникальность на бэкенде), берется первый по порядку и пишется предупреждение.
    """
    if not is_selection_complete(selection, dimension_keys):
        return None

    matches = [
        variant for variant in variants
        if variant.options
        and all(variant.options.get(key) == selection[key] for key in dimension_keys)
    ]
    if not matches:
        return None

    if len(matches) > 1:
        logger.warning(
            f"Data integrity: {len(matches)} variants share options {dict(selection)} "
            f"(ids: {[v.id for v in matches]}). Using variant {matches[0].id}."
        )
    return matches[0]


def find_variant_for_option(
    variants: Sequence[ProductVariant],
    dimension_keys: Sequence[str],
    selection: Selection,
    dimension: str,
    value: str,
) -> Optional[ProductVariant]:
    """
    Какой вариант получится, если поменять только измерение `dimension` на `value`,
    оставив остальные выборы как есть. None, если гипотетический выбор неполный.
    """
    hypothetical = {**selection, dimension: value}
    return find_matching_variant(variants, dimension_keys, hypothetical)


def describe_option_values(
    variants: Sequence[ProductVariant],
    dimensions: OptionDimensions,
    selection: Selection,
    base_price_cents: int,
) -> Dict[str, List[dict]]:
    """
    Состояние каждого значения каждого измерения для отрисовки селекторов:

    - selectable: значение проходит перекрестный фильтр;
    - in_stock: среди согласованных вариантов с этим значением есть доступный
      (значение может быть selectable, но зачеркнуто как "нет в наличии");
    - variant_id / stock_quantity / price_delta_cents: по варианту, который
      получится при выборе этого значения (если выбор станет полным).
    """
    available = compute_available_values(variants, dimensions, selection)
    dimension_keys = list(dimensions)
    described: Dict[str, List[dict]] = {}

    for dimension, values in dimensions.items():
        other_selections = {
            key: val for key, val in selection.items()
            if key != dimension and val
        }
        states = []
        for value in values:
            candidates = [
                v for v in variants
                if (v.options or {}).get(dimension) == value and variant_agrees(v, other_selections)
            ]
            target = find_variant_for_option(variants, dimension_keys, selection, dimension, value)
            states.append({
                "value": value,
                "selected": selection.get(dimension) == value,
                "selectable": value in available[dimension],
                "in_stock": any(v.is_available for v in candidates),
                "variant_id": target.id if target else None,
                "stock_quantity": target.stock_quantity if target else None,
                "price_delta_cents": (target.price_cents - base_price_cents) if target else None,
            })
        described[dimension] = states

    return described
