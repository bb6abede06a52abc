from __future__ import annotations
import logging
from datetime import datetime, timezone as dt_timezone
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InterpreterError, ProviderNotReadyError, ProviderRequestError
from ..system_prompt import JSON_FORMAT_INSTRUCTION
from .base import BaseDateProvider, await_with_signal
from .types import DateInterpretation, InterpretDateRequest, ProviderId

logger = logging.getLogger(__name__)

READY = "readily"


class LanguageModelSession(Protocol):
    async def prompt(self, text: str) -> str:
        ...

    def destroy(self) -> None:
        ...


class LanguageModel(Protocol):
    """In-process model runtime: an availability probe plus a session factory."""

    async def availability(self) -> str:
        """One of "readily", "after-download" or "no"."""
        ...

    async def create(
        self,
        *,
        system_prompt: str,
        temperature: Optional[float] = None,
        top_k: Optional[int] = None,
    ) -> LanguageModelSession:
        ...


class OnDeviceConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    temperature: Optional[float] = Field(default=None, ge=0, le=1)
    top_k: Optional[int] = Field(default=None, ge=1, le=8, alias="topK")


class OnDeviceProvider(BaseDateProvider):
    id = ProviderId.ON_DEVICE
    name = "On-device model"
    short_name = "On-device"
    description = "Run a small model inside this process (local)"
    docs_url = None
    config_schema = OnDeviceConfig

    def __init__(self, language_model: Optional[LanguageModel] = None) -> None:
        self.language_model = language_model
        self.default_config = OnDeviceConfig(temperature=0.8, top_k=3)

    async def interpret_date(self, request: InterpretDateRequest) -> DateInterpretation:
        lm = self.language_model
        if lm is None:
            raise ProviderNotReadyError(
                "On-device model is not available. Install and register a local model runtime first."
            )

        status = await lm.availability()
        if status != READY:
            raise ProviderNotReadyError(f"On-device model is not ready (status: {status}).")

        cfg = self.validate_config(request.config)
        now = request.now or datetime.now(dt_timezone.utc)
        system_prompt = self.get_system_prompt(timezone=request.timezone, now=now)

        session: Optional[LanguageModelSession] = None
        try:
            session = await lm.create(system_prompt=system_prompt, temperature=cfg.temperature, top_k=cfg.top_k)
            # no constrained decoding here, so the JSON shape is spelled out in the prompt
            full_prompt = f"{request.prompt}\n\n{JSON_FORMAT_INSTRUCTION}"
            text = await await_with_signal(session.prompt(full_prompt), request.signal, self.id.value)
            return self.parse_response(text, {"rawResponse": text})
        except InterpreterError:
            raise
        except Exception as e:
            raise ProviderRequestError(f"On-device request failed: {e}") from e
        finally:
            if session is not None:
                session.destroy()
                logger.debug("on-device session destroyed")
