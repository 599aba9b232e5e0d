import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")

RECIPE_AI_ENABLED = _env_flag("RECIPE_AI_ENABLED", True)
RECIPE_DEFAULT_LANGUAGE = os.getenv("RECIPE_DEFAULT_LANGUAGE", "en")

# Optional second-tier fetch service, e.g. "http://page-proxy:8030/fetch"
PAGE_PROXY_URL = (os.getenv("PAGE_PROXY_URL") or "").rstrip("/") or None

FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "20"))
AI_TIMEOUT = float(os.getenv("AI_TIMEOUT", "60"))

OCR_LANGUAGES = os.getenv("OCR_LANGUAGES", "eng+ell")

MAX_PAGE_CHARS = int(os.getenv("MAX_PAGE_CHARS", "30000"))
MIN_PAGE_CHARS = int(os.getenv("MIN_PAGE_CHARS", "500"))

USER_AGENT = os.getenv(
    "RECIPE_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
