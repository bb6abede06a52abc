from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from .errors import InvalidConfigurationError, UnknownProviderError
from .fallback import FallbackInterpreter
from .providers.base import format_validation_error
from .providers.types import DateInterpretation, DateProvider, InterpretDateRequest, ProviderId

logger = logging.getLogger(__name__)


class DateInterpreter:
    """Routes a request to its provider, or to the offline fallback when the
    provider's configuration does not validate.

    Provider failures are never papered over with the fallback: only a bad or
    missing configuration is recovered.
    """

    def __init__(
        self,
        providers: Mapping[ProviderId, DateProvider],
        fallback: Optional[FallbackInterpreter] = None,
    ) -> None:
        self.providers = providers
        self.fallback = fallback

    def resolve(self, provider_id: str | ProviderId) -> DateProvider:
        try:
            key = ProviderId(provider_id)
        except ValueError:
            raise UnknownProviderError(str(provider_id)) from None
        provider = self.providers.get(key)
        if provider is None:
            raise UnknownProviderError(key.value)
        return provider

    async def interpret_date(
        self,
        provider_id: str | ProviderId,
        config: Any,
        prompt: str,
        *,
        locale: Optional[str] = None,
        timezone: Optional[str] = None,
        now: Optional[datetime] = None,
        signal: Optional[asyncio.Event] = None,
    ) -> DateInterpretation:
        provider = self.resolve(provider_id)

        raw = config.model_dump() if isinstance(config, BaseModel) else config
        try:
            validated = provider.config_schema.model_validate(raw)
        except ValidationError as e:
            detail = format_validation_error(e)
            logger.info("%s config invalid (%s); trying fallback parser", provider.id.value, detail)
            result = self._run_fallback(prompt=prompt, locale=locale, timezone=timezone, now=now)
            if result is None:
                raise InvalidConfigurationError(
                    f"Invalid configuration: {detail}", errors=e.errors(include_url=False, include_context=False)
                ) from e
            return result

        logger.debug("dispatching to %s", provider.id.value)
        request = InterpretDateRequest(
            prompt=prompt,
            config=validated,
            locale=locale,
            timezone=timezone,
            now=now,
            signal=signal,
        )
        return await provider.interpret_date(request)

    async def interpret(self, provider_id: str | ProviderId, request: InterpretDateRequest) -> DateInterpretation:
        """Same as interpret_date, taking a prebuilt request."""
        return await self.interpret_date(
            provider_id,
            request.config,
            request.prompt,
            locale=request.locale,
            timezone=request.timezone,
            now=request.now,
            signal=request.signal,
        )

    def _run_fallback(self, **payload: Any) -> Optional[DateInterpretation]:
        if self.fallback is None:
            return None
        return self.fallback(**payload)
