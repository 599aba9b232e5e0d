import json
import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from . import config
from .errors import AIFailure

logger = logging.getLogger(__name__)

JSON_SHAPE = """{
  "title": "Recipe title",
  "prepTime": 0,
  "cookTime": 0,
  "servings": 0,
  "ingredients": "Ingredient 1\\nIngredient 2",
  "instructions": "1. Step one.\\n2. Step two.",
  "tags": ["tag1", "tag2"],
  "tools": ["tool1"],
  "detectedLanguage": "en"
}"""

LANGUAGE_RULE = """LANGUAGE:
- Source is Greek -> output Greek.
- Source is English -> output English.
- Source is any other language -> translate to {language}.
- Set "detectedLanguage" to the ISO 639-1 code of the source."""

PROMPTS = {
    "extract": """You are a PRECISE DATA EXTRACTOR. Extract the recipe exactly as it appears in the source, formatted correctly.

RULES:
1. Do not change ingredient names or quantities. Do not add ingredients that are not listed. Do not invent steps.
2. Fix broken layout: split a block of instructions into numbered steps, split comma-separated ingredients into lines, fix capitalization and spacing.
3. Times are whole minutes. Use 0 when the source does not say.
4. If the input contains no recipe, return {{"error": "No recipe content found"}}.

{language_rule}""",
    "create": """You are an experienced chef. Write a complete, realistic recipe for the dish the user describes.

RULES:
1. Use common ingredients with precise quantities and units.
2. Instructions are short numbered steps.
3. Give realistic prep and cook times in minutes and a serving count.
4. Write the recipe in {language}. Set "detectedLanguage" to "{language}".""",
    "improve": """You are a recipe editor. The user gives you an existing recipe as JSON.

RULES:
1. Keep the dish the same: same ingredients and quantities unless one is clearly a typo.
2. Rewrite the instructions into clear numbered steps, fill in missing prep/cook times, servings, tags and tools.
3. Keep the recipe's language.

{language_rule}""",
    "translate": """You are a culinary translator. The user gives you an existing recipe as JSON.

RULES:
1. Translate the title, every ingredient, every instruction, tags and tools into {language}.
2. Keep quantities and units exactly as they are; translate unit words only.
3. Set "detectedLanguage" to the ISO 639-1 code of the ORIGINAL recipe's language.""",
}

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def build_system_prompt(mode: str, language: str) -> str:
    template = PROMPTS.get(mode, PROMPTS["extract"])
    rule = LANGUAGE_RULE.format(language=language)
    prompt = template.format(language=language, language_rule=rule)
    return f"{prompt}\n\nReturn ONLY valid JSON. No markdown, no extra text. Use this exact structure:\n{JSON_SHAPE}"


def parse_ai_json(text: str) -> Dict[str, Any]:
    """Pull the recipe object out of the model's reply (first { to last })."""
    m = _JSON_OBJECT_RE.search(text or "")
    if not m:
        raise AIFailure(f"AI response did not contain JSON. Raw output: {(text or '')[:500]}")
    try:
        data = json.loads(m.group(0))
    except ValueError as e:
        raise AIFailure(f"Failed to parse AI response as JSON. Raw output: {m.group(0)[:500]}") from e
    if not isinstance(data, dict):
        raise AIFailure("AI response was not a JSON object")
    if data.get("error"):
        raise AIFailure(str(data["error"]))
    if not data.get("title"):
        raise AIFailure("AI response missing title")
    return data


class AIClient:
    """Recipe extraction/generation through the OpenAI Responses API.

    `extract` takes the same payload the web client used to send to the
    edge function: text, imageBase64/imageType, url (+ the fetched pageText),
    targetLanguage and mode.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key or config.OPENAI_API_KEY
        self.model = model or config.OPENAI_MODEL
        self.timeout = timeout if timeout is not None else config.AI_TIMEOUT
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise AIFailure("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def _user_content(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        text = (payload.get("text") or "").strip()
        image = payload.get("imageBase64")
        url = payload.get("url")

        if len(text) < 10 and not image and not url:
            raise AIFailure("Please provide recipe text, an image, or a URL.")

        content: List[Dict[str, Any]] = []
        if text:
            content.append({"type": "input_text", "text": text})

        if url:
            page_text = (payload.get("pageText") or "").strip()
            # Models invent recipes when handed an empty or blocked page
            if len(page_text) < config.MIN_PAGE_CHARS:
                raise AIFailure(
                    "Could not read recipe content (page blocked or empty). "
                    "Try pasting the recipe text instead."
                )
            page_text = page_text[: config.MAX_PAGE_CHARS]
            content.append({"type": "input_text", "text": f"Source URL: {url}\n\n{page_text}"})

        if image:
            image_type = payload.get("imageType") or "image/jpeg"
            content.append({"type": "input_image", "image_url": f"data:{image_type};base64,{image}"})

        return content

    async def extract(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        mode = payload.get("mode") or "extract"
        language = payload.get("targetLanguage") or config.RECIPE_DEFAULT_LANGUAGE
        content = self._user_content(payload)
        client = self._get_client()

        logger.info("AI %s request (model=%s, parts=%d)", mode, self.model, len(content))
        try:
            resp = await client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": build_system_prompt(mode, language)},
                    {"role": "user", "content": content},
                ],
                temperature=0.1,
            )
        except OpenAIError as e:
            raise AIFailure(f"AI request failed: {e}") from e

        return parse_ai_json(resp.output_text or "")
