import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent / "locales"
LANGUAGES = ("zh", "en")
DEFAULT_LANGUAGE = "zh"
LANGUAGE_NAMES = {"zh": "中文", "en": "English"}

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

Translator = Callable[..., str]


def normalize_language(language: Optional[str]) -> str:
    lang = (language or "").strip().lower()
    return lang if lang in LANGUAGES else DEFAULT_LANGUAGE


def detect_language(accept_language: Optional[str]) -> str:
    return "en" if (accept_language or "").strip().lower().startswith("en") else DEFAULT_LANGUAGE


@lru_cache(maxsize=None)
def load_translations(language: str) -> Dict[str, Any]:
    path = LOCALES_DIR / f"{language}.json"
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load translations for %s: %s", language, e)
        return {}


def _lookup(table: Mapping[str, Any], key: str) -> Optional[str]:
    value: Any = table
    for part in key.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value if isinstance(value, str) else None


def _interpolate(text: str, params: Mapping[str, Any]) -> str:
    def repl(m: "re.Match[str]") -> str:
        name = m.group(1)
        return str(params[name]) if name in params else m.group(0)

    return _PLACEHOLDER_RE.sub(repl, text)


def translate(key: str, language: str = DEFAULT_LANGUAGE, params: Optional[Mapping[str, Any]] = None) -> str:
    """Resolve a dotted key, falling back to Chinese and then to the key's last segment."""
    lang = normalize_language(language)
    text = _lookup(load_translations(lang), key)
    if text is None and lang != DEFAULT_LANGUAGE:
        text = _lookup(load_translations(DEFAULT_LANGUAGE), key)
        if text is not None:
            logger.debug("Using fallback translation for key: %s (%s -> zh)", key, lang)
    if text is None:
        logger.debug("Translation missing for key: %s in language: %s", key, lang)
        return key.split(".")[-1]
    return _interpolate(text, params) if params else text


def get_translator(language: Optional[str]) -> Translator:
    lang = normalize_language(language)

    def t(key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return translate(key, lang, params)

    return t
