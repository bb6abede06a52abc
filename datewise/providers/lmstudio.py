from __future__ import annotations
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict

import httpx

from ..errors import ProviderRequestError
from .base import BaseDateProvider, HttpProviderConfig, await_with_signal
from .types import DateInterpretation, InterpretDateRequest, ProviderId

DEFAULT_MODEL = "openai/gpt-oss-20b"


class LMStudioConfig(HttpProviderConfig):
    pass


class LMStudioProvider(BaseDateProvider):
    """LM Studio (or any server speaking the OpenAI chat completions API)."""

    id = ProviderId.LMSTUDIO
    name = "LMStudio"
    short_name = "LMStudio"
    description = "Self-hosted inference with OpenAI-compatible APIs."
    docs_url = "https://lmstudio.ai"
    config_schema = LMStudioConfig

    def __init__(
        self,
        base_url: str = "",
        model: str = DEFAULT_MODEL,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.default_config = LMStudioConfig.model_construct(base_url=base_url.rstrip("/"), model=model)
        self.timeout = timeout
        self._transport = transport

    async def interpret_date(self, request: InterpretDateRequest) -> DateInterpretation:
        cfg = self.validate_config(request.config)
        now = request.now or datetime.now(dt_timezone.utc)
        payload: Dict[str, Any] = {
            "model": cfg.model or self.default_config.model or DEFAULT_MODEL,
            "response_format": {"type": "json_schema", "json_schema": self.get_response_schema()},
            "messages": [
                {"role": "system", "content": self.get_system_prompt(timezone=request.timezone, now=now)},
                {"role": "user", "content": request.prompt},
            ],
        }
        headers = {
            "Content-Type": "application/json",
        }
        url = f"{cfg.base_url}/chat/completions"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                r = await await_with_signal(
                    client.post(url, json=payload, headers=headers), request.signal, self.id.value
                )
            except httpx.HTTPError as e:
                raise ProviderRequestError(f"LMStudio request failed: {e}") from e
            if not r.is_success:
                raise ProviderRequestError(
                    f"LMStudio request failed: {r.status_code} {r.reason_phrase}",
                    status_code=r.status_code,
                    reason=r.reason_phrase,
                )
            try:
                data = r.json()
            except ValueError:
                data = r.text
        content = None
        choices = data.get("choices") if isinstance(data, dict) else None
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        if isinstance(message, dict):
            content = message.get("content")
        return self.parse_response(content, data)
