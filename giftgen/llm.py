import logging
import time
from typing import Any, Dict, Optional

import requests

from .config import Settings
from .errors import (
    EmptyResponseError,
    ProviderConfigError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ResponseFormatError,
)
from .models import GiftRequest, GiftResponse
from .normalizer import normalize_response, summarize_response
from .prompts import build_messages

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7


class ChatCompletionProvider:
    """One OpenAI-compatible chat-completion endpoint (Doubao/Ark or OpenAI).

    Calls are synchronous ``requests`` posts; the dispatcher runs them in
    worker threads and owns the per-tier timeout. ``http_timeout`` only guards
    against sockets hanging forever.
    """

    def __init__(self, name: str, url: str, api_key: str, model: str,
                 max_tokens: int = 1000, fast_max_tokens: int = 800,
                 temperature: float = TEMPERATURE, http_timeout: float = 60.0,
                 session: Any = None):
        self.name = name
        self.url = url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.fast_max_tokens = fast_max_tokens
        self.temperature = temperature
        self.http_timeout = http_timeout
        self.session = session if session is not None else requests

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.model)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ProviderConfigError(self.name, "API key missing")
        if not self.model:
            raise ProviderConfigError(self.name, "model name missing")
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def _post(self, payload: Dict[str, Any]):
        headers = self._headers()
        try:
            return self.session.post(self.url, headers=headers, json=payload, timeout=self.http_timeout)
        except requests.Timeout as e:
            raise ProviderTimeoutError(self.name, f"HTTP timeout after {self.http_timeout}s") from e
        except requests.RequestException as e:
            raise ProviderUnavailableError(self.name, f"{type(e).__name__}: {e}") from e

    def complete(self, system: str, user: str, max_tokens: Optional[int] = None,
                 json_mode: bool = True) -> str:
        """POST one chat completion and return the raw message content."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        logger.info("Calling %s (model=%s, key length=%d, max_tokens=%d)",
                    self.name, self.model, len(self.api_key), payload["max_tokens"])
        start = time.monotonic()
        resp = self._post(payload)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        if resp.status_code != 200:
            logger.warning("%s returned HTTP %s after %dms", self.name, resp.status_code, elapsed_ms)
            raise ProviderHTTPError(self.name, resp.status_code, resp.text[:300])
        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderResponseError(self.name, "response body is not JSON") from e

        content = None
        if isinstance(data, dict):
            choices = data.get("choices") or []
            if choices and isinstance(choices[0], dict):
                content = (choices[0].get("message") or {}).get("content")
        if not isinstance(content, str) or not content.strip():
            raise EmptyResponseError(self.name, "no message content in response")
        logger.info("%s answered in %dms (%d chars)", self.name, elapsed_ms, len(content))
        return content

    def generate(self, request: GiftRequest, language: str = "zh", strict: bool = False) -> GiftResponse:
        # strict tiers belong to the full path: long prompt and decorated output
        system, user = build_messages(request, language, fast=not strict)
        content = self.complete(system, user, self.max_tokens if strict else self.fast_max_tokens)
        try:
            response = normalize_response(content, strict=strict, language=language,
                                          budget=request.budget, decorate=strict)
        except ResponseFormatError as e:
            raise ProviderResponseError(self.name, str(e)) from e
        logger.info("%s -> %s", self.name, summarize_response(response))
        return response

    def ping(self) -> Dict[str, Any]:
        """Round-trip a trivial prompt. Configuration errors propagate."""
        self._headers()
        start = time.monotonic()
        try:
            content = self.complete("", "Hello", max_tokens=5, json_mode=False)
        except ProviderHTTPError as e:
            return {"success": False, "status": e.status_code, "error": e.body,
                    "elapsedMs": int((time.monotonic() - start) * 1000)}
        except (ProviderTimeoutError, ProviderUnavailableError,
                EmptyResponseError, ProviderResponseError) as e:
            return {"success": False, "status": None, "error": str(e),
                    "elapsedMs": int((time.monotonic() - start) * 1000)}
        return {"success": True, "status": 200, "response": content,
                "elapsedMs": int((time.monotonic() - start) * 1000)}


def build_providers(settings: Settings, session: Any = None) -> Dict[str, ChatCompletionProvider]:
    return {
        "doubao": ChatCompletionProvider(
            "doubao", settings.doubao_url, settings.ark_api_key, settings.doubao_model,
            max_tokens=1000, fast_max_tokens=800, session=session,
        ),
        "openai": ChatCompletionProvider(
            "openai", settings.openai_url, settings.openai_api_key, settings.openai_model,
            max_tokens=1000, fast_max_tokens=400, session=session,
        ),
    }
