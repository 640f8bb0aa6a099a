import logging
import time
from typing import Any, Callable, Dict, MutableMapping, Optional

import requests

from .models import GiftRequest, GiftResponse

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "full": "/api/generate-gift",
    "fast": "/api/fast-gift",
    "doubao": "/api/fast-doubao",
    "offline": "/api/quick-gift",
}

REQUEST_KEY = "giftRequest"
RESPONSE_KEY = "giftRecommendations"


class GiftApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, details: str = "",
                 fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details
        self.fields = fields or {}


class GiftApiClient:
    """HTTP client used by the Streamlit UI.

    Failed attempts are retried with exponential backoff (1s, 2s with the
    defaults). Client errors (4xx) are raised immediately.
    """

    def __init__(self, base_url: str, timeout: float = 60.0, max_retries: int = 2,
                 session: Any = None, sleep: Callable[[float], None] = time.sleep):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session if session is not None else requests
        self.sleep = sleep

    def _post_once(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise GiftApiError("Request timed out", details=str(e)) from e
        except requests.RequestException as e:
            raise GiftApiError("Network error", details=str(e)) from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if r.status_code != 200:
            data = data if isinstance(data, dict) else {}
            raise GiftApiError(
                data.get("error") or f"API error: {r.status_code}",
                status_code=r.status_code,
                details=data.get("details") or r.text[:200],
                fields=data.get("fields"),
            )
        if not isinstance(data, dict):
            raise GiftApiError("Unexpected response", status_code=r.status_code)
        return data

    def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        attempt = 0
        while True:
            try:
                return self._post_once(path, payload)
            except GiftApiError as e:
                client_error = e.status_code is not None and 400 <= e.status_code < 500
                if client_error or attempt >= self.max_retries:
                    raise
                delay = 2 ** attempt
                logger.warning("Attempt %d to %s failed (%s), retrying in %ss", attempt + 1, path, e, delay)
                self.sleep(delay)
                attempt += 1

    def recommend(self, request: GiftRequest, mode: str = "full") -> GiftResponse:
        data = self.post(ENDPOINTS[mode], request.model_dump())
        return GiftResponse.model_validate(data)


class SessionStore:
    """Last request and response kept as JSON strings in a session mapping."""

    def __init__(self, storage: MutableMapping[str, Any]):
        self.storage = storage

    def save(self, request: GiftRequest, response: GiftResponse) -> None:
        self.storage[REQUEST_KEY] = request.model_dump_json()
        self.storage[RESPONSE_KEY] = response.model_dump_json()

    def load_request(self) -> Optional[GiftRequest]:
        raw = self.storage.get(REQUEST_KEY)
        if not raw:
            return None
        return GiftRequest.model_validate_json(raw)

    def load_response(self) -> Optional[GiftResponse]:
        """Stored response, or None when missing. Corrupt data raises ValueError."""
        raw = self.storage.get(RESPONSE_KEY)
        if not raw:
            return None
        try:
            return GiftResponse.model_validate_json(raw)
        except ValueError as e:
            logger.warning("Stored gift response is corrupt: %s", e)
            raise

    def clear(self) -> None:
        for key in (REQUEST_KEY, RESPONSE_KEY):
            if key in self.storage:
                del self.storage[key]
