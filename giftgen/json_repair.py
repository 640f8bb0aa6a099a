"""Recovery of JSON objects that a model cut off mid-answer.

Chat completions hit ``max_tokens`` regularly, which leaves a payload such as
``{"recommendations": [{"giftName": "A", "reason": "Goo`` behind. The repair
keeps everything up to the last complete value, drops the cut-off string (and
a dangling object key, if any) and closes the open containers in nesting order.
The result is always checked with ``json.loads``; anything that still does not
parse raises ``JsonRepairError`` instead of being returned.
"""

import json
import re
from typing import List, Tuple

from .errors import JsonRepairError

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_SCALAR_END = set(",:]} \t\r\n")
_CLOSERS = {"{": "}", "[": "]"}


def extract_json_text(raw: str) -> str:
    """Strip Markdown fences and any prose before the first ``{``."""
    text = _FENCE_RE.sub("", (raw or "").strip())
    start = text.find("{")
    if start > 0:
        text = text[start:]
    return text.strip()


def _closers(stack: List[List]) -> str:
    return "".join(_CLOSERS[frame[0]] for frame in reversed(stack))


def _scan(text: str) -> Tuple[List[Tuple[int, str]], int]:
    """Return (cut points, end of top-level value or -1).

    A cut point is ``(index, closers)``: ``text[:index] + closers`` is valid
    JSON, provided the content before ``index`` was.
    """
    cuts: List[Tuple[int, str]] = []
    # frame = [opener, expecting_key]
    stack: List[List] = []
    in_string = escaped = in_scalar = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                top = stack[-1] if stack else None
                if top is not None and top[0] == "{" and top[1]:
                    continue  # object key, value still missing
                cuts.append((i + 1, _closers(stack)))
            continue

        if in_scalar:
            if ch not in _SCALAR_END:
                continue
            in_scalar = False
            cuts.append((i, _closers(stack)))

        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append([ch, ch == "{"])
            cuts.append((i + 1, _closers(stack)))
        elif ch in "}]":
            if not stack:
                break
            stack.pop()
            if not stack:
                return cuts, i + 1
            cuts.append((i + 1, _closers(stack)))
        elif ch == ":":
            if stack:
                stack[-1][1] = False
        elif ch == ",":
            if stack and stack[-1][0] == "{":
                stack[-1][1] = True
        elif not ch.isspace() and stack:
            in_scalar = True

    return cuts, -1


def _parses(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except ValueError:
        return False
    return True


def repair_truncated_json(text: str) -> str:
    text = (text or "").strip()
    if not text:
        raise JsonRepairError("empty response text")
    if text.endswith("}") and _parses(text):
        return text
    if not text.startswith(("{", "[")):
        raise JsonRepairError("response does not start with a JSON object")

    cuts, end = _scan(text)
    if end > 0:
        # Complete value followed by trailing prose
        candidate = text[:end]
        if _parses(candidate):
            return candidate
        raise JsonRepairError("complete JSON value does not parse")

    for index, closers in reversed(cuts):
        candidate = text[:index].rstrip() + closers
        if _parses(candidate):
            return candidate
    raise JsonRepairError(f"could not recover truncated JSON ({len(text)} chars)")
