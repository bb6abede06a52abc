from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from ..errors import UnknownProviderError
from ..settings import get_settings
from .cloud import CloudProvider
from .lmstudio import LMStudioProvider
from .ollama import OllamaProvider
from .on_device import LanguageModel, OnDeviceProvider
from .types import DateProvider, ProviderId


class ProviderRegistry:
    """Provider instances keyed by id, assembled once at startup."""

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        *,
        language_model: Optional[LanguageModel] = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        s = settings or get_settings()
        timeout = float(s["TIMEOUT"])
        providers: List[DateProvider] = [
            CloudProvider(),
            LMStudioProvider(s["LMSTUDIO_BASE_URL"], s["LMSTUDIO_MODEL"], timeout=timeout, transport=transport),
            OllamaProvider(s["OLLAMA_HOST"], s["OLLAMA_MODEL"], timeout=timeout, transport=transport),
            OnDeviceProvider(language_model),
        ]
        self._providers: Dict[ProviderId, DateProvider] = {p.id: p for p in providers}

    def get(self, provider_id: str | ProviderId) -> DateProvider:
        try:
            return self._providers[ProviderId(provider_id)]
        except (ValueError, KeyError):
            raise UnknownProviderError(str(getattr(provider_id, "value", provider_id))) from None

    def as_mapping(self) -> Mapping[ProviderId, DateProvider]:
        return dict(self._providers)

    def list(self) -> List[DateProvider]:
        return list(self._providers.values())

    def is_configured(self, provider: DateProvider) -> bool:
        """True when the provider's default config passes its own schema and,
        for the on-device provider, a model runtime is registered."""
        if isinstance(provider, OnDeviceProvider) and provider.language_model is None:
            return False
        cfg = provider.default_config
        try:
            provider.config_schema.model_validate(cfg.model_dump())
        except ValidationError:
            return False
        return True
