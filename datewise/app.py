from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from dataclasses import asdict
from datetime import datetime
import logging

try:
    from .errors import (
        InterpretationCancelled,
        InterpreterError,
        InvalidConfigurationError,
        ProviderNotReadyError,
        ProviderUnavailableError,
        UnknownProviderError,
    )
    from .fallback import fallback_interpreter
    from .interpreter import DateInterpreter
    from .providers.ollama import OllamaProvider
    from .providers.registry import ProviderRegistry
    from .settings import APP_VERSION, configure_logging, get_settings
    from .utils import parse_instant
except ImportError:  # fallback for running app.py directly from the package folder
    from datewise.errors import (
        InterpretationCancelled,
        InterpreterError,
        InvalidConfigurationError,
        ProviderNotReadyError,
        ProviderUnavailableError,
        UnknownProviderError,
    )
    from datewise.fallback import fallback_interpreter
    from datewise.interpreter import DateInterpreter
    from datewise.providers.ollama import OllamaProvider
    from datewise.providers.registry import ProviderRegistry
    from datewise.settings import APP_VERSION, configure_logging, get_settings
    from datewise.utils import parse_instant

configure_logging()
logger = logging.getLogger(__name__)


class Health(BaseModel):
    status: str


class VersionInfo(BaseModel):
    version: str
    default_provider: str
    configured_providers: list[str]


class ProviderInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    short_name: str = Field(serialization_alias="shortName")
    description: str
    docs_url: Optional[str] = Field(default=None, serialization_alias="docsUrl")
    available: bool
    configured: bool
    default_config: Dict[str, Any] = Field(serialization_alias="defaultConfig")


class InterpretBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    provider_id: Optional[str] = Field(default=None, alias="providerId")
    config: Optional[Dict[str, Any]] = None
    locale: Optional[str] = None
    timezone: Optional[str] = None
    now: Optional[datetime] = None


app = FastAPI(title="datewise", version=APP_VERSION)

# CORS for local dev (date picker front-ends)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.providers = ProviderRegistry()
app.state.interpreter = DateInterpreter(app.state.providers.as_mapping(), fallback=fallback_interpreter)


def _status_for(err: InterpreterError) -> int:
    if isinstance(err, UnknownProviderError):
        return 404
    if isinstance(err, InvalidConfigurationError):
        return 422
    if isinstance(err, ProviderNotReadyError):
        return 503
    if isinstance(err, ProviderUnavailableError):
        return 501
    if isinstance(err, InterpretationCancelled):
        return 499
    # transport and normalization failures
    return 502


@app.get("/health", response_model=Health)
async def health():
    return Health(status="ok")


@app.get("/version", response_model=VersionInfo)
async def version():
    s = get_settings()
    reg: ProviderRegistry = app.state.providers
    return VersionInfo(
        version=APP_VERSION,
        default_provider=s["DEFAULT_PROVIDER"],
        configured_providers=[p.id.value for p in reg.list() if reg.is_configured(p)],
    )


@app.get("/providers", response_model=list[ProviderInfo], response_model_by_alias=True)
async def list_providers():
    reg: ProviderRegistry = app.state.providers
    return [
        ProviderInfo(
            id=p.id.value,
            name=p.name,
            short_name=p.short_name,
            description=p.description,
            docs_url=p.docs_url,
            available=p.available,
            configured=reg.is_configured(p),
            default_config=p.default_config.model_dump(by_alias=True, exclude_none=True),
        )
        for p in reg.list()
    ]


@app.get("/providers/ollama/models")
async def ollama_models(base_url: Optional[str] = None, refresh: bool = False):
    provider = app.state.providers.get("ollama")
    if not isinstance(provider, OllamaProvider):
        raise HTTPException(status_code=404, detail="Ollama provider is not registered")
    models = await provider.list_models(base_url, refresh=refresh)
    return {"models": [asdict(m) for m in models]}


@app.post("/interpret")
async def interpret(body: InterpretBody):
    provider_id = body.provider_id or get_settings()["DEFAULT_PROVIDER"]
    interpreter: DateInterpreter = app.state.interpreter
    try:
        provider = interpreter.resolve(provider_id)
        config = body.config if body.config is not None else provider.default_config
        result = await interpreter.interpret_date(
            provider_id,
            config,
            body.prompt,
            locale=body.locale,
            timezone=body.timezone,
            now=body.now,
        )
    except InterpreterError as e:
        detail: Any = str(e)
        if isinstance(e, InvalidConfigurationError):
            detail = {"message": str(e), "errors": e.errors}
        raise HTTPException(status_code=_status_for(e), detail=detail)

    instant = parse_instant(result.value)
    if instant is None:
        logger.error("Failed to parse date from %s response: %r", result.provider_id.value, result.value)
        raise HTTPException(status_code=502, detail=f"Invalid date returned by {result.provider_id.value}: {result.value}")

    out = result.to_dict(include_raw=False)
    out["instant"] = instant.isoformat()
    return out
