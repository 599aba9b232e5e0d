import math
import re
from typing import Any, List, Optional, Tuple

from .models import IngredientLine

# every precomposed vulgar fraction in Latin-1 and Number Forms, except ⅐ ⅑ ⅒ ↉
VULGAR_FRACTIONS = {
    "½": 1 / 2,
    "⅓": 1 / 3,
    "⅔": 2 / 3,
    "¼": 1 / 4,
    "¾": 3 / 4,
    "⅕": 1 / 5,
    "⅖": 2 / 5,
    "⅗": 3 / 5,
    "⅘": 4 / 5,
    "⅙": 1 / 6,
    "⅚": 5 / 6,
    "⅛": 1 / 8,
    "⅜": 3 / 8,
    "⅝": 5 / 8,
    "⅞": 7 / 8,
}

_GLYPH_RE = re.compile(r"^(?:(\d+)\s*)?([" + "".join(VULGAR_FRACTIONS) + r"])")
_MIXED_RE = re.compile(r"^(\d+)\s+(\d+)/(\d+)")
_FRACTION_RE = re.compile(r"^(\d+)/(\d+)")
_NUMBER_RE = re.compile(r"^(?:\d+(?:\.\d+)?|\.\d+)")


def match_quantity(token: Any) -> Optional[Tuple[float, int, int]]:
    """Find the leading quantity of `token`.

    Returns (value, start, end) where token[start:end] is the matched text,
    or None when the token does not start with a number. Forms are tried in
    order: vulgar fraction glyph (optionally after an integer), mixed
    fraction, simple fraction, then a plain decimal whose trailing text is
    ignored ("10-12" reads as 10).
    """
    if not isinstance(token, str):
        return None
    stripped = token.lstrip()
    start = len(token) - len(stripped)

    m = _GLYPH_RE.match(stripped)
    if m:
        whole = int(m.group(1)) if m.group(1) else 0
        return whole + VULGAR_FRACTIONS[m.group(2)], start, start + m.end()

    m = _MIXED_RE.match(stripped)
    if m and int(m.group(3)) != 0:
        value = int(m.group(1)) + int(m.group(2)) / int(m.group(3))
        return value, start, start + m.end()

    m = _FRACTION_RE.match(stripped)
    if m and int(m.group(2)) != 0:
        return int(m.group(1)) / int(m.group(2)), start, start + m.end()

    m = _NUMBER_RE.match(stripped)
    if m:
        return float(m.group(0)), start, start + m.end()

    return None


def parse_quantity(token: Any) -> Optional[float]:
    found = match_quantity(token)
    return found[0] if found else None


def format_quantity(value: Optional[float]) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    nearest = round(value)
    if abs(value - nearest) < 0.01:
        return str(int(nearest))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _rescale(value: float, original_servings: float, target_servings: float) -> float:
    # Divide first, then multiply; keeps results identical to the web client.
    return (value / original_servings) * target_servings


def _scale_text(text: str, original_servings: float, target_servings: float) -> str:
    found = match_quantity(text)
    if not found:
        return text
    value, start, end = found
    scaled = format_quantity(_rescale(value, original_servings, target_servings))
    return text[:start] + scaled + text[end:]


def _scale_amount(amount: Any, original_servings: float, target_servings: float) -> Any:
    if isinstance(amount, bool):
        return amount
    if isinstance(amount, (int, float)):
        return format_quantity(_rescale(float(amount), original_servings, target_servings))
    if isinstance(amount, str):
        return _scale_text(amount, original_servings, target_servings)
    return amount


def scale_ingredient(ingredient: Any, original_servings: Any, target_servings: Any) -> Any:
    """Rescale one ingredient from `original_servings` to `target_servings`.

    Strings keep everything after the leading quantity verbatim. Structured
    ingredients ({"amount", "item"} dicts or IngredientLine) get a new amount
    and keep their other fields. Anything without a leading quantity comes
    back untouched, and so does everything when the servings are equal or
    missing.
    """
    if not original_servings or not target_servings or original_servings == target_servings:
        return ingredient

    if isinstance(ingredient, str):
        return _scale_text(ingredient, original_servings, target_servings)

    if isinstance(ingredient, IngredientLine):
        amount = _scale_amount(ingredient.amount, original_servings, target_servings)
        if amount == ingredient.amount:
            return ingredient
        return ingredient.model_copy(update={"amount": amount})

    if isinstance(ingredient, dict) and "amount" in ingredient:
        amount = _scale_amount(ingredient["amount"], original_servings, target_servings)
        if amount == ingredient["amount"]:
            return ingredient
        return {**ingredient, "amount": amount}

    return ingredient


def scale_ingredients(ingredients: List[Any], original_servings: Any, target_servings: Any) -> List[Any]:
    if not original_servings or not target_servings or original_servings == target_servings:
        return ingredients
    return [scale_ingredient(x, original_servings, target_servings) for x in ingredients]
