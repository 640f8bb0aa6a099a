from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictInt

Gender = Literal["male", "female", "other"]
Language = Literal["zh", "en"]


class GiftRequest(BaseModel):
    """Questionnaire answers about the gift recipient.

    Only types are decoded here; ranges and formats are checked by
    ``giftgen.validation`` so the UI and the API report the same messages.
    """

    gender: Gender
    age: StrictInt
    interests: List[str]
    pastGifts: List[str] = Field(default_factory=list)
    budget: str
    birthdayDate: Optional[str] = None
    mbti: Optional[str] = None
    language: Language = "zh"


class GiftRecommendation(BaseModel):
    giftName: str
    reason: str
    estimatedPrice: str


class GiftResponse(BaseModel):
    recommendations: List[GiftRecommendation] = Field(min_length=3, max_length=3)
    blessing: str = Field(min_length=1)


class ApiError(BaseModel):
    error: str
    details: Optional[str] = None
    error_code: Optional[str] = None
    fields: Optional[Dict[str, str]] = None

    def body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
