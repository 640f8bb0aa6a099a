class GiftGenError(Exception):
    """Base class for every error raised by the gift generator."""


class ProviderError(GiftGenError):
    """An AI provider tier could not produce a usable answer."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderConfigError(ProviderError):
    """API key or model name missing for a provider."""


class ProviderHTTPError(ProviderError):
    def __init__(self, provider: str, status_code: int, body: str = ""):
        super().__init__(provider, f"HTTP {status_code} {body}".strip())
        self.status_code = status_code
        self.body = body


class ProviderTimeoutError(ProviderError):
    pass


class ProviderUnavailableError(ProviderError):
    """Connection level failure (DNS, refused, reset)."""


class EmptyResponseError(ProviderError):
    pass


class ProviderResponseError(ProviderError):
    """The provider answered but the content could not be normalized."""


class ResponseFormatError(GiftGenError):
    """Raw model output does not have the GiftResponse shape."""


class JsonRepairError(ResponseFormatError):
    """Truncated JSON could not be recovered."""
