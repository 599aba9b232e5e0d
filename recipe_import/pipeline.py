import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .ai import AIClient
from .errors import AIFailure, ExtractionFailed, FetchFailure, HeuristicExtractionEmpty, InvalidInput
from .fetch import PageFetcher
from .heuristic import attempt_from_text, extract_from_text
from .models import ExtractionAttempt, ImportOptions, ImportSource, Recipe
from .ocr import OCRClient
from .structured import extract_structured_recipe, html_to_text

logger = logging.getLogger(__name__)

CREATE_PREFIX = "Create a recipe for: "
IMAGE_PROMPT = "Extract recipe from this image"


def _decode_image(data: str) -> bytes:
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("Image data is not valid base64.") from e


class RecipeImporter:
    """Turns text, a URL, an image or a dish description into a Recipe.

    Routing:
      create / improve / translate -> AI only, errors propagate
      image                        -> AI, or OCR + text heuristics when AI is off
      URL                          -> structured data; AI only if that is poor;
                                      poor result kept as the last resort
      text                         -> AI with text heuristics as fallback

    Collaborator calls are awaited one after another; nothing is kept on the
    instance between calls.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        ai: Optional[AIClient] = None,
        ocr: Optional[OCRClient] = None,
    ):
        self.fetcher = fetcher or PageFetcher()
        self.ai = ai or AIClient()
        self.ocr = ocr or OCRClient()

    async def import_recipe(self, source: ImportSource, options: Optional[ImportOptions] = None) -> Recipe:
        options = options or ImportOptions()
        kind = source.kind()

        if options.mode == "create":
            prompt = source.source_text()
            if not prompt:
                raise InvalidInput("Please describe the dish you want to create.")
            return await self._call_ai(self._payload(options, text=CREATE_PREFIX + prompt))

        if kind == "empty":
            raise InvalidInput("Please provide some recipe text, a URL, or an image.")

        if options.mode in ("improve", "translate"):
            return await self._call_ai(self._payload(options, text=source.source_text()))

        if kind == "image":
            return await self._from_image(source, options)
        if kind == "url":
            return await self._from_url(source.page_url(), options)
        return await self._from_text(source.source_text(), options)

    def _payload(self, options: ImportOptions, **fields: Any) -> Dict[str, Any]:
        payload = {k: v for k, v in fields.items() if v}
        payload["targetLanguage"] = options.target_language
        payload["mode"] = options.mode
        return payload

    async def _call_ai(self, payload: Dict[str, Any]) -> Recipe:
        data = await self.ai.extract(payload)
        try:
            recipe = Recipe.model_validate(data)
        except ValidationError as e:
            raise AIFailure(f"AI returned an invalid recipe: {e}") from e
        logger.info("AI %s succeeded", payload.get("mode"))
        return recipe

    async def _from_image(self, source: ImportSource, options: ImportOptions) -> Recipe:
        extra_text = (source.text or "").strip()
        if options.ai_enabled:
            return await self._call_ai(
                self._payload(
                    options,
                    text=extra_text or IMAGE_PROMPT,
                    imageBase64=source.image_base64,
                    imageType=source.image_type or "image/jpeg",
                )
            )

        image_bytes = _decode_image(source.image_base64)
        ocr_text = await self.ocr.recognize(image_bytes)
        combined = "\n\n".join(t for t in (extra_text, ocr_text) if t)
        return extract_from_text(combined)

    async def _from_text(self, text: str, options: ImportOptions) -> Recipe:
        if options.ai_enabled:
            try:
                return await self._call_ai(self._payload(options, text=text))
            except AIFailure as e:
                logger.warning("AI extraction failed (%s), falling back to text heuristics", e)
        return extract_from_text(text)

    async def _from_url(self, url: str, options: ImportOptions) -> Recipe:
        attempts: List[ExtractionAttempt] = []
        page_text = ""

        try:
            html = await self.fetcher.fetch(url)
        except FetchFailure as e:
            logger.warning("fetch failed for %s: %s", url, e)
            attempts.append(ExtractionAttempt(strategy="failed", error=e))
            html = ""

        if html:
            structured = extract_structured_recipe(html)
            if structured is not None:
                attempt = ExtractionAttempt(strategy="structured", recipe=structured, confidence=1.0)
                if attempt.is_good:
                    logger.info("structured data found for %s", url)
                    return structured
                attempts.append(attempt)

            page_text = html_to_text(html)
            if not any(a.usable for a in attempts):
                try:
                    attempts.append(attempt_from_text(page_text))
                except HeuristicExtractionEmpty as e:
                    attempts.append(ExtractionAttempt(strategy="failed", error=e))

        best = next((a for a in attempts if a.usable), None)

        # the AI reads fetched page text only, it never fetches the URL itself
        if options.ai_enabled and page_text:
            try:
                return await self._call_ai(self._payload(options, url=url, pageText=page_text))
            except AIFailure as e:
                if best is None:
                    raise
                logger.warning("AI extraction failed (%s), using %s result", e, best.strategy)
                return best.recipe
        elif options.ai_enabled:
            logger.info("no page text for %s, skipping AI", url)

        if best is not None:
            return best.recipe

        fetch_errors = [a.error for a in attempts if isinstance(a.error, FetchFailure)]
        if fetch_errors:
            raise ExtractionFailed(f"Could not extract a recipe: {fetch_errors[0].message}", stage="fetch")
        raise ExtractionFailed("Could not extract a recipe from this page.", stage="structured")
