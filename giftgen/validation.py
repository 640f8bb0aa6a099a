"""Declarative field rules for the gift questionnaire.

The same rules run in the Streamlit form (before anything is sent) and in
the API. Validation never raises: it returns a ``{field: message}`` map and
an empty map means the request is valid.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Pattern, Sequence

from .i18n import Translator
from .options import GENDERS, MBTI_TYPES

BUDGET_PATTERN = re.compile(r"^\d+-\d+元$|^\d+元以上$|^\d+元以下$|^\$\d+-\d+$|^\$\d+\+$")
BIRTHDAY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")

# Built-in Chinese messages, used when no translator is supplied
DEFAULT_MESSAGES = {
    "validation.required": "此字段为必填项",
    "validation.minValue": "值不能小于 {min}",
    "validation.maxValue": "值不能大于 {max}",
    "validation.minLength": "至少需要 {min} 个项目",
    "validation.maxLength": "最多只能有 {max} 个项目",
    "validation.invalidFormat": "格式不正确",
    "validation.invalidChoice": "请选择有效的选项",
}


@dataclass(frozen=True)
class FieldRule:
    required: bool = False
    kind: str = "string"  # string | number | list
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern[str]] = None
    choices: Optional[Sequence[str]] = None


GIFT_REQUEST_RULES: Dict[str, FieldRule] = {
    "gender": FieldRule(required=True, choices=GENDERS),
    "age": FieldRule(required=True, kind="number", min=1, max=120),
    "interests": FieldRule(required=True, kind="list", min_length=1, max_length=10),
    "pastGifts": FieldRule(kind="list", max_length=20),
    "budget": FieldRule(required=True, pattern=BUDGET_PATTERN),
    "birthdayDate": FieldRule(pattern=BIRTHDAY_PATTERN),
    "mbti": FieldRule(choices=MBTI_TYPES),
}


def _default_message(key: str, params: Optional[Mapping[str, Any]] = None) -> str:
    return DEFAULT_MESSAGES[key].format(**(params or {}))


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _matches_kind(kind: str, value: Any) -> bool:
    if kind == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == "list":
        return isinstance(value, (list, tuple))
    return isinstance(value, str)


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def validate_field(name: str, value: Any, t: Optional[Translator] = None) -> Optional[str]:
    rule = GIFT_REQUEST_RULES.get(name)
    if rule is None:
        return None
    message = t or _default_message

    if _is_empty(value):
        return message("validation.required") if rule.required else None

    if not _matches_kind(rule.kind, value):
        return message("validation.invalidFormat")

    if rule.kind == "number":
        if rule.min is not None and value < rule.min:
            return message("validation.minValue", {"min": _fmt(rule.min)})
        if rule.max is not None and value > rule.max:
            return message("validation.maxValue", {"max": _fmt(rule.max)})

    if rule.kind == "list":
        if rule.min_length is not None and len(value) < rule.min_length:
            return message("validation.minLength", {"min": str(rule.min_length)})
        if rule.max_length is not None and len(value) > rule.max_length:
            return message("validation.maxLength", {"max": str(rule.max_length)})

    if rule.choices is not None and value not in rule.choices:
        return message("validation.invalidChoice")

    if rule.pattern is not None and not rule.pattern.match(value):
        return message("validation.invalidFormat")

    return None


def validate_request(data: Mapping[str, Any], t: Optional[Translator] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for name in GIFT_REQUEST_RULES:
        error = validate_field(name, data.get(name), t)
        if error:
            errors[name] = error
    return errors
