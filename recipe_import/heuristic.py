"""Section-keyword parsing for recipes that arrive as plain text.

Used when a page has no structured data, when AI is off, and when the AI
call fails. English and Greek headers are recognised.
"""

import re
import unicodedata
from typing import List, Optional, Tuple

from .errors import HeuristicExtractionEmpty
from .models import ExtractionAttempt, Recipe

# Keywords are matched against lowercased, accent-stripped lines.
INGREDIENT_KEYWORDS = (
    "ingredients",
    "ingredient",
    "you will need",
    "υλικα",
    "συστατικα",
)

INSTRUCTION_KEYWORDS = (
    "instructions",
    "directions",
    "method",
    "preparation",
    "steps",
    "how to make",
    "οδηγιες",
    "εκτελεση",
    "παρασκευη",
    "διαδικασια",
    "τροπος παρασκευης",
)

METADATA_KEYWORDS = (
    "prep",
    "cook",
    "time",
    "total",
    "serves",
    "servings",
    "yield",
    "portions",
    "people",
    "minutes",
    "mins",
    "min",
    "hour",
    "hours",
    "χρονος",
    "προετοιμασια",
    "ψησιμο",
    "μαγειρεμα",
    "μεριδες",
    "ατομα",
    "λεπτα",
    "ωρα",
    "ωρες",
)

PREP_LABEL_RE = re.compile(
    r"prep(?:aration)?\s*time|prep\s*:|χρονος\s+προετοιμασιας|προετοιμασια\s*:"
)
COOK_LABEL_RE = re.compile(
    r"cook(?:ing)?\s*time|bak(?:e|ing)\s*time|cook\s*:"
    r"|χρονος\s+(?:ψησιματος|μαγειρεματος)|ψησιμο\s*:|μαγειρεμα\s*:"
)
HOUR_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:hours?|hrs?|h|ωρες|ωρα)(?![a-zα-ω])")
MINUTE_RE = re.compile(r"(\d+)\s*(?:minutes?|mins?|m|λεπτα|λεπτο|λ)(?![a-zα-ω])")
SERVINGS_RE = re.compile(r"(\d+)\s*(?:servings|people|portions|μεριδες|ατομα)")

TIME_WINDOW = 20
BULLET_RE = re.compile(r"^[•\-\*]\s*")


def _fold(s: str) -> str:
    decomposed = unicodedata.normalize("NFD", s.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _is_header(line: str, keywords: Tuple[str, ...]) -> bool:
    folded = _fold(line).lstrip("#*•- ").strip()
    for kw in keywords:
        if folded == kw:
            return True
        # "Preparation time: 10 min" is metadata, not a section header
        if re.match(re.escape(kw) + r"(?!\w)(?!\s*(?:time|χρονος))", folded):
            return True
    return False


def _find_header(lines: List[str], keywords: Tuple[str, ...]) -> Optional[int]:
    for i, line in enumerate(lines):
        if _is_header(line, keywords):
            return i
    return None


def _is_metadata(line: str) -> bool:
    folded = _fold(line)
    if not re.search(r"\d", folded):
        return False
    return any(re.search(r"(?<!\w)" + re.escape(kw) + r"(?!\w)", folded) for kw in METADATA_KEYWORDS)


def _minutes_after(label_re, folded_text: str) -> int:
    m = label_re.search(folded_text)
    if not m:
        return 0
    window = folded_text[m.end():m.end() + TIME_WINDOW]
    total = 0.0
    hours = HOUR_RE.search(window)
    if hours:
        total += float(hours.group(1).replace(",", ".")) * 60
    mins = MINUTE_RE.search(window)
    if mins:
        total += int(mins.group(1))
    return int(round(total))


def _servings(folded_text: str) -> int:
    m = SERVINGS_RE.search(folded_text)
    return int(m.group(1)) if m else 0


def _strip_bullet(line: str) -> str:
    return BULLET_RE.sub("", line) or line


def _pick_title(lines: List[str], limit: int, skip: Tuple[Optional[int], ...]) -> Optional[int]:
    for i in range(limit):
        if i in skip or _is_metadata(lines[i]):
            continue
        return i
    return None


def _sections(lines: List[str], ing_idx: Optional[int], ins_idx: Optional[int]) -> Tuple[List[str], List[str]]:
    ingredients: List[str] = []
    instructions: List[str] = []

    if ing_idx is not None:
        end = ins_idx if ins_idx is not None and ins_idx > ing_idx else len(lines)
        ingredients = [_strip_bullet(x) for x in lines[ing_idx + 1:end]]

    if ins_idx is not None:
        if ing_idx is not None and ins_idx < ing_idx:
            instructions = lines[ins_idx + 1:ing_idx]
        else:
            instructions = lines[ins_idx + 1:]

    return ingredients, instructions


def attempt_from_text(text: str) -> ExtractionAttempt:
    """Split raw text into title, ingredients and instructions.

    When neither section header exists the lines after the title are cut in
    half: first half ingredients, second half instructions. That split is a
    guess and is reported with low confidence.
    """
    lines = [line.strip() for line in (text or "").split("\n") if line.strip()]
    if not lines:
        raise HeuristicExtractionEmpty()

    ing_idx = _find_header(lines, INGREDIENT_KEYWORDS)
    ins_idx = _find_header(lines, INSTRUCTION_KEYWORDS)

    if ing_idx is not None:
        limit = ing_idx
    elif ins_idx is not None:
        limit = ins_idx
    else:
        limit = len(lines)
    title_idx = _pick_title(lines, limit, (ing_idx, ins_idx))

    folded_text = _fold(text)
    confidence = 1.0

    if ing_idx is None and ins_idx is None:
        if len(lines) > 2:
            body = [x for i, x in enumerate(lines) if i != (title_idx if title_idx is not None else 0)]
            mid = (len(body) + 1) // 2
            ingredients = [_strip_bullet(x) for x in body[:mid]]
            instructions = body[mid:]
        else:
            ingredients, instructions = [], []
        confidence = 0.3
    else:
        ingredients, instructions = _sections(lines, ing_idx, ins_idx)

    recipe = Recipe(
        title=lines[title_idx] if title_idx is not None else "",
        prep_time=_minutes_after(PREP_LABEL_RE, folded_text),
        cook_time=_minutes_after(COOK_LABEL_RE, folded_text),
        servings=_servings(folded_text),
        ingredients=ingredients,
        instructions=instructions,
    )
    if recipe.is_empty():
        raise HeuristicExtractionEmpty()
    return ExtractionAttempt(strategy="heuristic", recipe=recipe, confidence=confidence)


def extract_from_text(text: str) -> Recipe:
    return attempt_from_text(text).recipe
