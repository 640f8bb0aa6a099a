import json
import logging
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import ResponseFormatError
from .json_repair import extract_json_text, repair_truncated_json
from .models import GiftRecommendation, GiftResponse

logger = logging.getLogger(__name__)

MAX_BLESSING_LENGTH = 200
DEFAULT_EMOJI = " 🎂"

PLACEHOLDERS = {
    "zh": {"giftName": "精美礼品", "reason": "精心挑选的礼物", "estimatedPrice": "价格面议"},
    "en": {"giftName": "Thoughtful gift", "reason": "A carefully chosen gift", "estimatedPrice": "Price on request"},
}

FILLERS = {
    "zh": {"giftName": "个性化定制礼品", "reason": "根据您的需求精心挑选", "estimatedPrice": "价格面议"},
    "en": {"giftName": "Personalized custom gift", "reason": "Carefully picked for your needs",
           "estimatedPrice": "Price on request"},
}

_EMOJI_RE = re.compile("[\U0001F300-\U0001FAFF\u2600-\u27BF\u2B50]")
_WS_RE = re.compile(r"\s+")
FIELDS = ("giftName", "reason", "estimatedPrice")


# ---------------- schema ----------------
class RawRecommendation(BaseModel):
    giftName: Optional[str] = None
    reason: Optional[str] = None
    estimatedPrice: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _bare_name(cls, data: Any) -> Any:
        # Some models answer with plain strings instead of objects
        if isinstance(data, str):
            return {"giftName": data}
        if not isinstance(data, dict):
            return {}
        return data

    @field_validator("giftName", "reason", "estimatedPrice", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            return None
        return value.strip() or None


class RawGiftPayload(BaseModel):
    recommendations: List[RawRecommendation]
    blessing: str

    @field_validator("blessing")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("blessing must not be empty")
        return value


# ---------------- text helpers ----------------
def clean_text(text: str) -> str:
    text = _WS_RE.sub(" ", text).strip()
    return text.replace("“", '"').replace("”", '"').replace("‘", "'").replace("’", "'")


def has_emoji(text: str) -> bool:
    return bool(_EMOJI_RE.search(text))


def decorate_blessing(blessing: str) -> str:
    blessing = clean_text(blessing)
    if len(blessing) > MAX_BLESSING_LENGTH:
        blessing = blessing[:MAX_BLESSING_LENGTH - 3] + "..."
    if not has_emoji(blessing):
        blessing += DEFAULT_EMOJI
    return blessing


# ---------------- normalization ----------------
def parse_payload(raw_text: str) -> RawGiftPayload:
    text = extract_json_text(raw_text)
    repaired = repair_truncated_json(text)
    if repaired != text:
        logger.info("Repaired truncated JSON response (%d -> %d chars)", len(text), len(repaired))
    try:
        data = json.loads(repaired)
    except ValueError as e:
        raise ResponseFormatError(f"Invalid JSON: {e}") from e
    try:
        return RawGiftPayload.model_validate(data)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected response shape: {e.error_count()} error(s)") from e


def _strict_recommendations(payload: RawGiftPayload) -> List[GiftRecommendation]:
    if len(payload.recommendations) != 3:
        raise ResponseFormatError(f"Expected 3 recommendations, got {len(payload.recommendations)}")
    recs = []
    for i, rec in enumerate(payload.recommendations, start=1):
        missing = [name for name in FIELDS if not getattr(rec, name)]
        if missing:
            raise ResponseFormatError(f"Recommendation {i} is missing {', '.join(missing)}")
        recs.append(GiftRecommendation(**rec.model_dump()))
    return recs


def _lenient_recommendations(payload: RawGiftPayload, language: str,
                             budget: Optional[str]) -> List[GiftRecommendation]:
    placeholder = PLACEHOLDERS.get(language, PLACEHOLDERS["zh"])
    recs = [
        GiftRecommendation(**{name: getattr(rec, name) or placeholder[name] for name in FIELDS})
        for rec in payload.recommendations[:3]
    ]
    filler = dict(FILLERS.get(language, FILLERS["zh"]))
    if budget:
        filler["estimatedPrice"] = budget
    while len(recs) < 3:
        recs.append(GiftRecommendation(**filler))
    return recs


def normalize_response(raw_text: str, strict: bool = False, language: str = "zh",
                       budget: Optional[str] = None, decorate: bool = False) -> GiftResponse:
    """Turn raw model output into a GiftResponse or raise ResponseFormatError.

    strict=True rejects anything but exactly three complete recommendations;
    strict=False keeps the first three, fills gaps and pads short lists.
    An empty recommendations array is rejected in both modes.
    """
    payload = parse_payload(raw_text)
    if not payload.recommendations:
        raise ResponseFormatError("recommendations is empty")

    if strict:
        recs = _strict_recommendations(payload)
    else:
        recs = _lenient_recommendations(payload, language, budget)

    blessing = payload.blessing
    if decorate:
        recs = [GiftRecommendation(**{name: clean_text(getattr(rec, name)) for name in FIELDS}) for rec in recs]
        blessing = decorate_blessing(blessing)
    return GiftResponse(recommendations=recs, blessing=blessing)


def summarize_response(response: GiftResponse) -> str:
    names = " | ".join(rec.giftName for rec in response.recommendations)
    return f"{len(response.recommendations)} recs: {names}; blessing {len(response.blessing)} chars"
