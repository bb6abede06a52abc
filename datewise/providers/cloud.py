from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ProviderUnavailableError
from .base import BaseDateProvider
from .types import DateInterpretation, InterpretDateRequest, ProviderId


class CloudConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # waitlist contact only; no credentials are collected yet
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CloudProvider(BaseDateProvider):
    id = ProviderId.CLOUD
    name = "Cloud"
    short_name = "Cloud"
    description = "Access all major LLM providers"
    docs_url = None
    config_schema = CloudConfig
    available = False

    def __init__(self) -> None:
        self.default_config = CloudConfig()

    async def interpret_date(self, request: InterpretDateRequest) -> DateInterpretation:
        raise ProviderUnavailableError("Cloud providers are not yet available. Please join the waitlist.")
