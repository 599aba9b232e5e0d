import json
import logging
import re
from html import unescape
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from .models import Recipe

logger = logging.getLogger(__name__)

_BLOCK_TAGS = [
    "p", "div", "li", "ul", "ol", "tr", "table", "section", "article", "header",
    "footer", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre", "dt", "dd",
]


def _clean_lines(lines: List[Any]) -> List[str]:
    out = []
    for line in lines or []:
        if not line:
            continue
        s = unescape(str(line))
        s = re.sub(r"<[^>]+>", " ", s)
        s = re.sub(r"\s+", " ", s).strip()
        if s:
            out.append(s)
    return out


def _iso8601_duration_to_minutes(val: Any) -> int:
    if not val or not isinstance(val, str):
        return 0
    pattern = r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:\d+(?:\.\d+)?S)?)?$"
    m = re.match(pattern, val.strip().upper())
    if not m:
        return 0
    days = int(m.group(1)) if m.group(1) else 0
    hours = int(m.group(2)) if m.group(2) else 0
    mins = int(m.group(3)) if m.group(3) else 0
    return days * 24 * 60 + hours * 60 + mins


def _text_duration_to_minutes(val: str) -> int:
    if not val:
        return 0
    if val.strip().upper().startswith("P"):
        return _iso8601_duration_to_minutes(val)
    hours = re.search(r"(\d+)\s*(?:hours?|hrs?|h)\b", val, re.IGNORECASE)
    mins = re.search(r"(\d+)\s*(?:minutes?|mins?|m)\b", val, re.IGNORECASE)
    total = 0
    if hours:
        total += int(hours.group(1)) * 60
    if mins:
        total += int(mins.group(1))
    return total


def _yield_to_servings(val: Any) -> int:
    if isinstance(val, bool) or val is None:
        return 0
    if isinstance(val, (int, float)):
        return max(0, int(val))
    if isinstance(val, list):
        for item in val:
            n = _yield_to_servings(item)
            if n:
                return n
        return 0
    m = re.search(r"\d+", str(val))
    return int(m.group(0)) if m else 0


def _is_recipe_type(t: Any) -> bool:
    return t == "Recipe" or (isinstance(t, list) and "Recipe" in t)


def find_recipe_node(data: Any) -> Optional[Dict[str, Any]]:
    """Depth-first search for the Recipe object in a JSON-LD payload."""
    if not data:
        return None
    if isinstance(data, list):
        for item in data:
            found = find_recipe_node(item)
            if found:
                return found
        return None
    if not isinstance(data, dict):
        return None
    if "@graph" in data:
        return find_recipe_node(data["@graph"])
    if _is_recipe_type(data.get("@type")):
        return data
    return None


def _instruction_steps(raw: Any) -> List[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return raw.split("\n")
    if isinstance(raw, list):
        steps: List[str] = []
        for item in raw:
            steps.extend(_instruction_steps(item))
        return steps
    if isinstance(raw, dict):
        # HowToSection wraps its steps in itemListElement
        if raw.get("itemListElement"):
            return _instruction_steps(raw["itemListElement"])
        text = raw.get("text") or raw.get("name")
        return [text] if isinstance(text, str) else []
    return []


def recipe_from_jsonld(node: Dict[str, Any]) -> Recipe:
    ingredients = node.get("recipeIngredient") or node.get("ingredients") or []
    if isinstance(ingredients, str):
        ingredients = [ingredients]

    category = node.get("recipeCategory") or []
    if isinstance(category, str):
        category = [category]

    return Recipe(
        title=unescape(str(node.get("name") or "")),
        prep_time=_iso8601_duration_to_minutes(node.get("prepTime")),
        cook_time=_iso8601_duration_to_minutes(node.get("cookTime")),
        servings=_yield_to_servings(node.get("recipeYield")),
        ingredients=_clean_lines(ingredients if isinstance(ingredients, list) else []),
        instructions=_clean_lines(_instruction_steps(node.get("recipeInstructions"))),
        tags=_clean_lines(category if isinstance(category, list) else []),
    )


def _jsonld_payloads(soup: BeautifulSoup) -> List[Any]:
    payloads = []
    for sc in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = sc.string or sc.get_text()
        if not raw or not raw.strip():
            continue
        try:
            # strict=False lets raw newlines inside strings through
            payloads.append(json.loads(raw, strict=False))
        except ValueError as e:
            logger.debug("skipping unparseable JSON-LD block: %s", e)
    return payloads


def _microdata_value(el) -> str:
    if el is None:
        return ""
    for attr in ("content", "datetime"):
        if el.get(attr):
            return str(el.get(attr)).strip()
    return re.sub(r"\s+", " ", el.get_text(" ")).strip()


def _recipe_from_microdata(soup: BeautifulSoup) -> Optional[Recipe]:
    scope = soup.select_one('[itemtype*="schema.org/Recipe"]')
    if scope is None:
        return None

    def prop(name: str) -> str:
        return _microdata_value(scope.select_one(f'[itemprop="{name}"]'))

    def props(name: str) -> List[str]:
        return [_microdata_value(el) for el in scope.select(f'[itemprop="{name}"]')]

    ingredients = props("recipeIngredient") or props("ingredients")
    steps = []
    for el in scope.select('[itemprop="recipeInstructions"]'):
        steps.extend(el.get_text("\n").split("\n"))

    return Recipe(
        title=prop("name"),
        prep_time=_text_duration_to_minutes(prop("prepTime")),
        cook_time=_text_duration_to_minutes(prop("cookTime")),
        servings=_yield_to_servings(prop("recipeYield")),
        ingredients=_clean_lines(ingredients),
        instructions=_clean_lines(steps),
        tags=_clean_lines(props("recipeCategory")),
    )


def extract_structured_recipe(html: str) -> Optional[Recipe]:
    """Read the schema.org Recipe embedded in a page.

    JSON-LD blocks are tried in document order and the first Recipe wins;
    pages without one fall back to microdata. None means the page carries
    no structured recipe, which is not an error.
    """
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")

    for payload in _jsonld_payloads(soup):
        node = find_recipe_node(payload)
        if node:
            return recipe_from_jsonld(node)

    recipe = _recipe_from_microdata(soup)
    if recipe is not None:
        logger.info("no JSON-LD recipe, using microdata")
    return recipe


def html_to_text(html: str) -> str:
    """Visible page text with one line per block element."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript", "template", "svg"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_after("\n")

    lines = []
    for line in soup.get_text().split("\n"):
        s = re.sub(r"\s+", " ", line).strip()
        if s:
            lines.append(s)
    return "\n".join(lines)
