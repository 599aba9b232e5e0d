import json
import re
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config
from .errors import RecipeImportError
from .lists import format_ingredient, format_instruction, format_tool, parse_smart_list, split_csv, to_lines

Mode = Literal["extract", "create", "improve", "translate"]

# Both sections must render longer than this for an attempt to count as good.
MIN_SECTION_CHARS = 20

_URL_RE = re.compile(r"^https?://[^ \"]+$", re.IGNORECASE)

_INGREDIENT_KEYS = ("amount", "qty", "item", "name", "ingredient")


def _to_whole_number(v: Any) -> int:
    if v is None or isinstance(v, bool):
        return 0
    if isinstance(v, (int, float)):
        return max(0, int(v)) if v == v else 0  # NaN check
    m = re.search(r"\d+", str(v))
    return int(m.group(0)) if m else 0


class IngredientLine(BaseModel):
    amount: str = ""
    item: str = ""

    @field_validator("amount", "item", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            return json.dumps(v, ensure_ascii=False)
        return str(v).strip()


def _to_ingredient(item: Any) -> Union[IngredientLine, str, None]:
    if isinstance(item, IngredientLine):
        return item
    if isinstance(item, dict) and any(k in item for k in _INGREDIENT_KEYS):
        amount = item.get("amount")
        if amount in (None, ""):
            amount = item.get("qty")
        name = item.get("item") or item.get("name") or item.get("ingredient")
        return IngredientLine(amount=amount, item=name)
    s = format_ingredient(item).strip()
    return s or None


class Recipe(BaseModel):
    """Canonical recipe.

    Ingredients and instructions arrive as newline-joined strings, JSON
    strings or lists of strings/objects; validators turn them into ordered
    line items so nothing past this model branches on shape.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    prep_time: int = Field(default=0, ge=0, alias="prepTime")
    cook_time: int = Field(default=0, ge=0, alias="cookTime")
    servings: int = Field(default=0, ge=0)
    ingredients: List[Union[IngredientLine, str]] = []
    instructions: List[str] = []
    tags: List[str] = []
    tools: List[str] = []
    detected_language: Optional[str] = Field(default=None, alias="detectedLanguage")

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, v: Any) -> str:
        return re.sub(r"\s+", " ", str(v or "")).strip()

    @field_validator("prep_time", "cook_time", "servings", mode="before")
    @classmethod
    def _whole_number(cls, v: Any) -> int:
        return _to_whole_number(v)

    @field_validator("ingredients", mode="before")
    @classmethod
    def _ingredient_lines(cls, v: Any) -> list:
        out = []
        for item in parse_smart_list(v):
            line = _to_ingredient(item)
            if line is not None:
                out.append(line)
        return out

    @field_validator("instructions", mode="before")
    @classmethod
    def _instruction_lines(cls, v: Any) -> List[str]:
        return to_lines(v, format_instruction)

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_list(cls, v: Any) -> List[str]:
        return split_csv(v, format_tool)

    @field_validator("tools", mode="before")
    @classmethod
    def _tool_list(cls, v: Any) -> List[str]:
        return split_csv(v, format_tool)

    @field_validator("detected_language", mode="before")
    @classmethod
    def _language(cls, v: Any) -> Optional[str]:
        s = str(v or "").strip().lower()
        return s or None

    def ingredient_text(self) -> str:
        return "\n".join(format_ingredient(x) for x in self.ingredients)

    def instruction_text(self) -> str:
        return "\n".join(self.instructions)

    def is_empty(self) -> bool:
        return not (self.title or self.ingredients or self.instructions)

    def to_wire(self, joined: bool = False) -> dict:
        out = self.model_dump(by_alias=True, exclude_none=True)
        if joined:
            out["ingredients"] = self.ingredient_text()
            out["instructions"] = self.instruction_text()
        return out


class ImportOptions(BaseModel):
    mode: Mode = "extract"
    target_language: str = Field(default_factory=lambda: config.RECIPE_DEFAULT_LANGUAGE)
    ai_enabled: bool = Field(default_factory=lambda: config.RECIPE_AI_ENABLED)


class ImportSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    url: Optional[str] = None
    image_base64: Optional[str] = Field(default=None, alias="imageBase64")
    image_type: Optional[str] = Field(default=None, alias="imageType")
    # existing recipe for improve/translate
    recipe: Optional[Recipe] = None

    def source_text(self) -> str:
        text = (self.text or "").strip()
        if text:
            return text
        if self.recipe is not None and not self.recipe.is_empty():
            return json.dumps(self.recipe.to_wire(joined=True), ensure_ascii=False, indent=2)
        return ""

    def kind(self) -> str:
        if self.image_base64:
            return "image"
        if self.url and self.url.strip():
            return "url"
        text = self.source_text()
        if not text:
            return "empty"
        if _URL_RE.match(text):
            return "url"
        return "text"

    def page_url(self) -> Optional[str]:
        if self.url and self.url.strip():
            return self.url.strip()
        text = (self.text or "").strip()
        return text if _URL_RE.match(text) else None


@dataclass
class ExtractionAttempt:
    """One strategy's outcome; drives the importer's fallback decision."""

    strategy: Literal["structured", "heuristic", "ai", "failed"]
    recipe: Optional[Recipe] = None
    confidence: float = 0.0
    error: Optional[RecipeImportError] = None

    @property
    def is_good(self) -> bool:
        if self.recipe is None:
            return False
        return (
            len(self.recipe.ingredient_text()) > MIN_SECTION_CHARS
            and len(self.recipe.instruction_text()) > MIN_SECTION_CHARS
        )

    @property
    def usable(self) -> bool:
        return self.recipe is not None and not self.recipe.is_empty()
