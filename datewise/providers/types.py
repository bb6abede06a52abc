from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Type, runtime_checkable

from pydantic import BaseModel


class ProviderId(str, Enum):
    OLLAMA = "ollama"
    LMSTUDIO = "lmstudio"
    ON_DEVICE = "on-device"
    CLOUD = "cloud"
    # reserved for results produced by the offline parser
    FALLBACK = "fallback"


@dataclass(frozen=True)
class InterpretDateRequest:
    prompt: str
    config: Any = None
    locale: Optional[str] = None
    timezone: Optional[str] = None  # IANA name
    now: Optional[datetime] = None
    signal: Optional[asyncio.Event] = field(default=None, compare=False)


@dataclass(frozen=True)
class DateInterpretation:
    value: str
    provider_id: ProviderId
    timezone: Optional[str] = None
    confidence: Optional[float] = None
    reasoning: Optional[str] = None
    raw_response: Any = None

    def to_dict(self, include_raw: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {"value": self.value, "providerId": self.provider_id.value}
        if self.timezone is not None:
            out["timezone"] = self.timezone
        if self.confidence is not None:
            out["confidence"] = self.confidence
        if self.reasoning is not None:
            out["reasoning"] = self.reasoning
        if include_raw and self.raw_response is not None:
            out["rawResponse"] = self.raw_response
        return out


@runtime_checkable
class DateProvider(Protocol):
    """Capability every backend exposes to the dispatcher."""

    id: ProviderId
    name: str
    short_name: str
    description: str
    docs_url: Optional[str]
    config_schema: Type[BaseModel]
    default_config: BaseModel
    available: bool

    async def interpret_date(self, request: InterpretDateRequest) -> DateInterpretation:
        ...
