# api.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from giftgen.config import Settings, load_settings
from giftgen.dispatcher import (
    DOUBAO_ONLY_POLICY,
    FAST_POLICY,
    FULL_POLICY,
    MOCK_SOURCE,
    FallbackPolicy,
    GiftDispatcher,
)
from giftgen.errors import ProviderConfigError, ProviderError, ProviderTimeoutError
from giftgen.i18n import detect_language, get_translator, normalize_language
from giftgen.llm import build_providers
from giftgen.mock import MockGenerator
from giftgen.models import ApiError, GiftRequest, GiftResponse
from giftgen.validation import validate_request

logger = logging.getLogger("giftgen.api")

SOURCE_HEADER = "X-Gift-Source"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


# ---------------- helpers ----------------
def _request_language(request: Request, body: Any = None) -> str:
    if isinstance(body, dict) and body.get("language"):
        return normalize_language(str(body["language"]))
    lang = getattr(request.state, "language", None)
    if lang:
        return lang
    return detect_language(request.headers.get("accept-language"))


def _error(status_code: int, error: str, details: Optional[str] = None, error_code: Optional[str] = None,
           fields: Optional[Dict[str, str]] = None, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    body = ApiError(error=error, details=details, error_code=error_code, fields=fields).body()
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _fields_from_errors(errors: List[Dict[str, Any]], body: Any, t) -> Dict[str, str]:
    fields = validate_request(body, t) if isinstance(body, dict) else {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        name = loc[1] if len(loc) > 1 and loc[0] == "body" else (loc[-1] if loc else "body")
        key = "validation.required" if err.get("type") == "missing" else "validation.invalidFormat"
        fields.setdefault(name, t(key))
    return fields


def _validation_failure(fields: Dict[str, str], t) -> HTTPException:
    details = "; ".join(f"{name}: {msg}" for name, msg in fields.items())
    body = ApiError(error=t("errors.invalidRequest"), details=details,
                    error_code="validation_error", fields=fields).body()
    return HTTPException(status_code=400, detail=body)


# ---------------- app ----------------
def create_app(settings: Settings, providers: Optional[Dict[str, Any]] = None,
               mock: Optional[MockGenerator] = None) -> FastAPI:
    providers = providers if providers is not None else build_providers(settings)
    dispatcher = GiftDispatcher(providers, mock or MockGenerator())

    app = FastAPI(title="Birthday Gift Recommender")
    app.state.settings = settings
    app.state.dispatcher = dispatcher
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[SOURCE_HEADER],
    )

    # ---------- error envelope ----------
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            return JSONResponse(status_code=exc.status_code, content=exc.detail)
        t = get_translator(_request_language(request))
        known = {
            404: ("errors.notFound", "not_found"),
            405: ("errors.methodNotAllowed", "method_not_allowed"),
        }
        key, code = known.get(exc.status_code, ("errors.internal", "http_error"))
        return _error(exc.status_code, t(key), str(exc.detail), code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        errors = list(exc.errors())
        t = get_translator(_request_language(request, exc.body))
        if any(err.get("type") == "json_invalid" for err in errors):
            return _error(400, t("errors.invalidJson"), "request body is not valid JSON", "invalid_json")
        fields = _fields_from_errors(errors, exc.body, t)
        details = "; ".join(f"{name}: {msg}" for name, msg in fields.items())
        return _error(400, t("errors.invalidRequest"), details, "validation_error", fields)

    @app.exception_handler(ProviderError)
    async def provider_exc_handler(request: Request, exc: ProviderError):
        t = get_translator(_request_language(request))
        if isinstance(exc, ProviderConfigError):
            logger.error("Provider configuration error: %s", exc)
            return _error(500, t("errors.configError"), str(exc), "config_error")
        key = "errors.timeout" if isinstance(exc, ProviderTimeoutError) else "errors.providerError"
        return _error(502, t(key), str(exc), "provider_error")

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        t = get_translator(_request_language(request))
        return _error(500, t("errors.internal"), type(exc).__name__, "internal_error")

    # ---------- dependencies ----------
    def validated_request(gift: GiftRequest, request: Request) -> GiftRequest:
        request.state.language = gift.language
        t = get_translator(gift.language)
        fields = validate_request(gift.model_dump(), t)
        if fields:
            logger.info("Rejected request on %s: %s", request.url.path, sorted(fields))
            raise _validation_failure(fields, t)
        return gift

    def dev_only() -> None:
        if settings.is_production:
            raise HTTPException(status_code=404, detail="Not Found")

    async def _serve(gift: GiftRequest, policy: FallbackPolicy, response: Response) -> GiftResponse:
        logger.info("%s request: age=%s interests=%d budget=%s mbti=%s lang=%s", policy.name, gift.age,
                    len(gift.interests), gift.budget, gift.mbti or "-", gift.language)
        result = await dispatcher.dispatch(gift, policy)
        response.headers[SOURCE_HEADER] = result.source
        return result.response

    # ---------- routes ----------
    @app.get("/")
    def root():
        return {
            "message": "Birthday gift API is running",
            "status": "ok",
            "environment": settings.app_env,
            "endpoints": ["/api/generate-gift", "/api/fast-gift", "/api/fast-doubao", "/api/quick-gift"],
        }

    @app.post("/api/generate-gift", response_model=GiftResponse)
    async def generate_gift(response: Response, gift: GiftRequest = Depends(validated_request)):
        return await _serve(gift, FULL_POLICY, response)

    @app.post("/api/fast-gift", response_model=GiftResponse)
    async def fast_gift(response: Response, gift: GiftRequest = Depends(validated_request)):
        return await _serve(gift, FAST_POLICY, response)

    @app.post("/api/fast-doubao", response_model=GiftResponse)
    async def fast_doubao(response: Response, gift: GiftRequest = Depends(validated_request)):
        return await _serve(gift, DOUBAO_ONLY_POLICY, response)

    @app.post("/api/quick-gift", response_model=GiftResponse)
    def quick_gift(response: Response, gift: GiftRequest = Depends(validated_request)):
        response.headers[SOURCE_HEADER] = MOCK_SOURCE
        return dispatcher.mock.generate(gift)

    @app.get("/api/debug/config", dependencies=[Depends(dev_only)])
    def debug_config():
        return {
            "environment": settings.app_env,
            "providers": settings.provider_status(),
            "doubaoUrl": settings.doubao_url,
            "openaiUrl": settings.openai_url,
        }

    @app.post("/api/debug/ping/{provider}", dependencies=[Depends(dev_only)])
    async def debug_ping(provider: str):
        target = providers.get(provider)
        if target is None:
            raise HTTPException(status_code=404, detail=f"Unknown provider: {provider}")
        result = await asyncio.to_thread(target.ping)
        return {"provider": provider, **result}

    return app


settings = load_settings()
logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
app = create_app(settings)
