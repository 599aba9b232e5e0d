import io
import logging
from typing import Optional

import pytesseract
from fastapi.concurrency import run_in_threadpool
from PIL import Image

from . import config
from .errors import OCRFailure

logger = logging.getLogger(__name__)


class OCRClient:
    """Tesseract OCR, English + Greek by default."""

    def __init__(self, languages: Optional[str] = None):
        self.languages = languages or config.OCR_LANGUAGES

    def _recognize(self, image_bytes: bytes) -> str:
        with Image.open(io.BytesIO(image_bytes)) as image:
            return pytesseract.image_to_string(image.convert("RGB"), lang=self.languages)

    async def recognize(self, image_bytes: bytes) -> str:
        try:
            text = await run_in_threadpool(self._recognize, image_bytes)
        except Exception as e:
            logger.warning("OCR failed: %s", e)
            raise OCRFailure() from e
        return text.strip()
