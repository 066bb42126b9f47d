# storefront/services/swatches.py

"""Подбор образца цвета по свободному названию цвета ("Heather Navy Blue")."""

from typing import Dict, Optional

# Порядок важен: более специфичные названия идут раньше общих
# ("navy" раньше "blue", "light blue" раньше "blue").
COLOR_PALETTE: Dict[str, str] = {
    "black": "#000000",
    "white": "#FFFFFF",
    "charcoal": "#36454F",
    "heather gray": "#B6B6B4",
    "heather grey": "#B6B6B4",
    "gray": "#808080",
    "grey": "#808080",
    "silver": "#C0C0C0",
    "navy": "#1F2A44",
    "royal": "#4169E1",
    "light blue": "#ADD8E6",
    "sky": "#87CEEB",
    "teal": "#008080",
    "turquoise": "#40E0D0",
    "blue": "#0000FF",
    "maroon": "#800000",
    "burgundy": "#800020",
    "red": "#D62828",
    "pink": "#FFC0CB",
    "coral": "#FF7F50",
    "orange": "#FFA500",
    "gold": "#FFD700",
    "yellow": "#FFFF00",
    "olive": "#808000",
    "forest": "#228B22",
    "mint": "#98FF98",
    "green": "#008000",
    "purple": "#800080",
    "lavender": "#E6E6FA",
    "brown": "#8B4513",
    "tan": "#D2B48C",
    "khaki": "#C3B091",
    "cream": "#FFFDD0",
    "natural": "#F5F5DC",
    "sand": "#C2B280",
}

# Измерения, значения которых рисуются как цветные кружки
COLOR_DIMENSION_NAMES = {"color", "colour"}


def is_color_dimension(dimension: str) -> bool:
    return dimension.strip().lower() in COLOR_DIMENSION_NAMES


def find_swatch_hex(color_name: str) -> Optional[str]:
    """Ищет цвет палитры, название которого входит в строку (без учета регистра)."""
    normalized = " ".join(color_name.lower().replace("-", " ").split())
    if not normalized:
        return None
    for name, hex_code in COLOR_PALETTE.items():
        if name in normalized:
            return hex_code
    return None


def get_swatch(color_name: str) -> dict:
    """
    Образец для значения цвета. Если в палитре ничего не нашлось,
    возвращается бейдж с первой буквой названия.
    """
    hex_code = find_swatch_hex(color_name)
    if hex_code:
        return {"hex": hex_code, "badge": None}
    stripped = color_name.strip()
    return {"hex": None, "badge": stripped[0].upper() if stripped else "?"}
