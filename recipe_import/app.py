import logging
from functools import lru_cache
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field, HttpUrl

from . import config
from .errors import (
    ExtractionFailed,
    HeuristicExtractionEmpty,
    InvalidInput,
    RecipeImportError,
)
from .lists import parse_smart_list
from .models import ImportOptions, ImportSource, Mode
from .pipeline import RecipeImporter
from .quantity import scale_ingredients
from .structured import extract_structured_recipe

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Recipe Import", version="1.0")


@lru_cache
def get_importer() -> RecipeImporter:
    return RecipeImporter()


def _status_for(err: RecipeImportError) -> int:
    if isinstance(err, InvalidInput):
        return 400
    if isinstance(err, (HeuristicExtractionEmpty, ExtractionFailed)):
        return 422
    return 502


class ImportRequest(ImportSource):
    mode: Mode = "extract"
    target_language: Optional[str] = Field(default=None, alias="targetLanguage")
    ai_enabled: Optional[bool] = Field(default=None, alias="aiEnabled")

    def options(self) -> ImportOptions:
        overrides = {"mode": self.mode}
        if self.target_language:
            overrides["target_language"] = self.target_language
        if self.ai_enabled is not None:
            overrides["ai_enabled"] = self.ai_enabled
        return ImportOptions(**overrides)


class ScrapeRequest(BaseModel):
    url: HttpUrl


class ScaleRequest(BaseModel):
    ingredients: Any = []
    original_servings: float = Field(gt=0, alias="originalServings")
    target_servings: float = Field(gt=0, alias="targetServings")


class ScaleOut(BaseModel):
    ingredients: List[Any]
    servings: float


@app.get("/api/health")
def health():
    return {"ok": True}


@app.post("/api/import")
async def import_recipe(req: ImportRequest, importer: RecipeImporter = Depends(get_importer)):
    try:
        recipe = await importer.import_recipe(req, req.options())
    except RecipeImportError as e:
        logger.warning("import failed at %s: %s", e.stage, e)
        raise HTTPException(status_code=_status_for(e), detail=e.to_detail())
    return recipe.to_wire()


@app.post("/api/scrape")
async def scrape(req: ScrapeRequest, importer: RecipeImporter = Depends(get_importer)):
    try:
        html = await importer.fetcher.fetch(str(req.url))
    except RecipeImportError as e:
        raise HTTPException(status_code=502, detail=e.to_detail())

    recipe = extract_structured_recipe(html)
    if recipe is None:
        raise HTTPException(
            status_code=404,
            detail={"stage": "structured", "error": "No structured recipe data found on this page"},
        )
    return recipe.to_wire()


@app.post("/api/scale", response_model=ScaleOut)
def scale(req: ScaleRequest):
    items = parse_smart_list(req.ingredients)
    return ScaleOut(
        ingredients=scale_ingredients(items, req.original_servings, req.target_servings),
        servings=req.target_servings,
    )
