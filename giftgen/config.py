import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

DOUBAO_URL = "https://ark.cn-beijing.volces.com/api/v3/chat/completions"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_API_URL = "http://127.0.0.1:8000"


def load_env_files() -> None:
    # Process variables win over both files; .env.local wins over .env
    load_dotenv(".env.local", override=False)
    load_dotenv(override=False)


def _mask(value: str) -> str:
    return f"{value[:4]}..." if value else ""


@dataclass(frozen=True)
class Settings:
    ark_api_key: str = ""
    doubao_model: str = ""
    doubao_url: str = DOUBAO_URL
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_url: str = OPENAI_URL
    app_env: str = "development"
    log_level: str = "INFO"
    api_url: str = DEFAULT_API_URL

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def doubao_configured(self) -> bool:
        return bool(self.ark_api_key and self.doubao_model)

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    def provider_status(self) -> Dict[str, Dict[str, object]]:
        """Configuration presence per provider, safe to expose to operators."""
        return {
            "doubao": {
                "configured": self.doubao_configured,
                "hasApiKey": bool(self.ark_api_key),
                "apiKeyLength": len(self.ark_api_key),
                "apiKeyPrefix": _mask(self.ark_api_key),
                "hasModelName": bool(self.doubao_model),
                "modelName": self.doubao_model or "not configured",
            },
            "openai": {
                "configured": self.openai_configured,
                "hasApiKey": bool(self.openai_api_key),
                "apiKeyLength": len(self.openai_api_key),
                "apiKeyPrefix": _mask(self.openai_api_key),
                "hasModelName": True,
                "modelName": self.openai_model,
            },
        }


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build the process-wide settings. Reads .env files only when no mapping is given."""
    if environ is None:
        load_env_files()
        environ = os.environ

    def get(name: str, default: str = "") -> str:
        return (environ.get(name) or default).strip()

    app_env = get("APP_ENV") or get("NODE_ENV") or "development"
    return Settings(
        ark_api_key=get("ARK_API_KEY"),
        doubao_model=get("DOUBAO_MODEL_NAME"),
        doubao_url=get("DOUBAO_API_URL", DOUBAO_URL),
        openai_api_key=get("OPENAI_API_KEY"),
        openai_model=get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        openai_url=get("OPENAI_API_URL", OPENAI_URL),
        app_env=app_env.lower(),
        log_level=get("LOG_LEVEL", "INFO").upper(),
        api_url=get("GIFT_API_URL", DEFAULT_API_URL).rstrip("/"),
    )
