from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ProviderRequestError
from .base import BaseDateProvider, HttpProviderConfig, await_with_signal
from .types import DateInterpretation, InterpretDateRequest, ProviderId

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.2:3b"


class OllamaConfig(HttpProviderConfig):
    pass


@dataclass(frozen=True)
class OllamaModel:
    name: str
    modified_at: Optional[str] = None
    size: Optional[int] = None


class OllamaProvider(BaseDateProvider):
    id = ProviderId.OLLAMA
    name = "Ollama"
    short_name = "Ollama"
    description = "Run LLMs locally with Ollama"
    docs_url = "https://ollama.com"
    config_schema = OllamaConfig

    def __init__(
        self,
        host: str = "",
        model: str = DEFAULT_MODEL,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.default_config = OllamaConfig.model_construct(base_url=host.rstrip("/"), model=model)
        self.timeout = timeout
        self._transport = transport
        # base_url -> models; filled by list_models
        self._models_cache: Dict[str, List[OllamaModel]] = {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def interpret_date(self, request: InterpretDateRequest) -> DateInterpretation:
        cfg = self.validate_config(request.config)
        now = request.now or datetime.now(dt_timezone.utc)
        schema = self.get_response_schema()
        payload: Dict[str, Any] = {
            "model": cfg.model or self.default_config.model or DEFAULT_MODEL,
            "format": schema["schema"],
            "response_format": {"type": "json_schema", "json_schema": schema},
            "messages": [
                {"role": "system", "content": self.get_system_prompt(timezone=request.timezone, now=now)},
                {"role": "user", "content": request.prompt},
            ],
            "stream": False,
        }
        url = f"{cfg.base_url}/api/chat"
        async with self._client() as client:
            try:
                r = await await_with_signal(client.post(url, json=payload), request.signal, self.id.value)
            except httpx.HTTPError as e:
                raise ProviderRequestError(f"Ollama request failed: {e}") from e
            if not r.is_success:
                raise ProviderRequestError(
                    f"Ollama request failed: {r.status_code} {r.reason_phrase}\n{r.text}",
                    status_code=r.status_code,
                    reason=r.reason_phrase,
                    body=r.text,
                )
            try:
                data = r.json()
            except ValueError:
                data = r.text
        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        return self.parse_response(content, data)

    async def list_models(self, base_url: Optional[str] = None, *, refresh: bool = False) -> List[OllamaModel]:
        """Enumerate models installed on the Ollama server.

        Only used to populate configuration choices: any failure is logged and an
        empty list is returned.
        """
        base = (base_url or self.default_config.base_url or "").rstrip("/")
        if not base:
            logger.warning("Cannot list Ollama models: base URL is not set")
            return []
        if not refresh and base in self._models_cache:
            return self._models_cache[base]
        async with self._client() as client:
            try:
                r = await client.get(f"{base}/api/tags")
                r.raise_for_status()
                data = r.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Failed to fetch Ollama models from %s: %s", base, e)
                return []
        if not isinstance(data, dict):
            data = {}
        models = [
            OllamaModel(name=m["name"], modified_at=m.get("modified_at"), size=m.get("size"))
            for m in (data.get("models") or [])
            if isinstance(m, dict) and m.get("name")
        ]
        self._models_cache[base] = models
        return models
