from __future__ import annotations
import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Dict, Optional, Type, TypeVar

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ..errors import InterpretationCancelled, InvalidConfigurationError, MissingISOValueError
from ..schemas import SchemaValidator
from ..system_prompt import RESPONSE_SCHEMA, build_system_prompt
from .types import DateInterpretation, ProviderId

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HTTP_URL = TypeAdapter(AnyHttpUrl)
_response_validator: SchemaValidator | None = None


class HttpProviderConfig(BaseModel):
    """Configuration shared in shape (not in identity) by the local HTTP servers."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: str = Field(alias="baseUrl")
    model: Optional[str] = None

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Base URL is required")
        try:
            _HTTP_URL.validate_python(v)
        except ValidationError:
            raise ValueError("Must be a valid URL") from None
        return v.rstrip("/")


def format_validation_error(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ())) or "config"
        parts.append(f"{loc}: {e.get('msg')}")
    return "; ".join(parts)


async def await_with_signal(aw: Awaitable[T], signal: Optional[asyncio.Event], provider_id: str) -> T:
    """Await ``aw`` unless ``signal`` fires first.

    When the signal wins, the in-flight call is cancelled and
    InterpretationCancelled is raised instead of whatever the call would have produced.
    """
    if signal is None:
        return await aw
    task = asyncio.ensure_future(aw)
    if signal.is_set():
        task.cancel()
        raise InterpretationCancelled(provider_id)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
    if task not in done:
        raise InterpretationCancelled(provider_id)
    return task.result()


class BaseDateProvider:
    id: ProviderId
    name: str
    short_name: str
    description: str
    docs_url: Optional[str] = None
    config_schema: Type[BaseModel]
    default_config: BaseModel
    available: bool = True

    def get_system_prompt(self, *, timezone: Optional[str], now: datetime) -> str:
        return build_system_prompt(timezone=timezone, now=now)

    def get_response_schema(self) -> Dict[str, Any]:
        return RESPONSE_SCHEMA

    def validate_config(self, config: Any) -> Any:
        if isinstance(config, self.config_schema):
            config = config.model_dump()
        try:
            return self.config_schema.model_validate(config)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid config: {format_validation_error(e)}",
                errors=e.errors(include_url=False, include_context=False),
            ) from e

    def parse_response(self, candidate: Any, raw_response: Any) -> DateInterpretation:
        parsed = self.safe_validate(candidate)
        value = parsed.get("value") if parsed is not None else None

        if not value or not isinstance(value, str):
            logger.error("LLM response missing ISO value")
            logger.error("Provider: %s", self.id.value)
            logger.error("Candidate: %r", candidate)
            logger.error("Raw response: %r", raw_response)
            raise MissingISOValueError(self.id.value, candidate, raw_response)

        _log_schema_deviations(self.id, parsed)

        confidence = parsed.get("confidence")
        return DateInterpretation(
            value=value,
            provider_id=self.id,
            timezone=parsed["timezone"] if isinstance(parsed.get("timezone"), str) else None,
            confidence=confidence if isinstance(confidence, (int, float)) and not isinstance(confidence, bool) else None,
            reasoning=parsed["reasoning"] if isinstance(parsed.get("reasoning"), str) else None,
            raw_response=raw_response,
        )

    @staticmethod
    def safe_validate(candidate: Any) -> Optional[Dict[str, Any]]:
        if isinstance(candidate, str):
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                return None
            return data if isinstance(data, dict) else None
        if isinstance(candidate, dict):
            return candidate
        return None


def _log_schema_deviations(provider_id: ProviderId, parsed: Dict[str, Any]) -> None:
    global _response_validator
    if _response_validator is None:
        _response_validator = SchemaValidator()
    errs = _response_validator.validate("date_interpretation", parsed)
    if errs:
        logger.warning("%s response deviates from schema: %s", provider_id.value, "; ".join(errs))
