from datetime import datetime, timezone

import pytest
from pydantic import BaseModel

from datewise.errors import InvalidConfigurationError, ProviderRequestError, UnknownProviderError
from datewise.fallback import fallback_interpreter
from datewise.interpreter import DateInterpreter
from datewise.providers.types import DateInterpretation, InterpretDateRequest, ProviderId


class StubConfig(BaseModel):
    base_url: str
    model: str = "stub-model"


class StubProvider:
    """Pure function of its input; records what it was called with."""

    name = "Stub"
    short_name = "Stub"
    description = "stub"
    docs_url = None
    config_schema = StubConfig
    available = True

    def __init__(self, provider_id=ProviderId.OLLAMA, error=None):
        self.id = provider_id
        self.default_config = StubConfig(base_url="http://stub")
        self.error = error
        self.requests = []

    async def interpret_date(self, request: InterpretDateRequest) -> DateInterpretation:
        self.requests.append(request)
        if self.error:
            raise self.error
        return DateInterpretation(
            value="2025-01-02T15:00:00+00:00",
            provider_id=self.id,
            confidence=0.9,
            reasoning=f"{request.prompt} via {request.config.model}",
            raw_response={"prompt": request.prompt},
        )


class FallbackSpy:
    def __init__(self, result=None):
        self.result = result
        self.calls = []

    def __call__(self, **payload):
        self.calls.append(payload)
        return self.result


FALLBACK_RESULT = DateInterpretation(
    value="2025-01-02T15:00:00+00:00",
    provider_id=ProviderId.FALLBACK,
    confidence=0.2,
    reasoning="Fallback parser with dateparser",
)
NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_valid_config_goes_to_provider_with_coerced_config():
    stub = StubProvider()
    spy = FallbackSpy(FALLBACK_RESULT)
    interp = DateInterpreter({ProviderId.OLLAMA: stub}, fallback=spy)
    res = await interp.interpret_date("ollama", {"base_url": "http://x", "extra": 1}, "tomorrow", now=NOW, timezone="UTC")
    assert res.provider_id == ProviderId.OLLAMA
    assert spy.calls == []
    req = stub.requests[0]
    assert isinstance(req.config, StubConfig)
    assert req.config.model == "stub-model"
    assert req.now == NOW
    assert req.timezone == "UTC"


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_id", [ProviderId.OLLAMA, ProviderId.LMSTUDIO, ProviderId.ON_DEVICE, ProviderId.CLOUD])
async def test_invalid_config_uses_fallback(provider_id):
    stub = StubProvider(provider_id)
    spy = FallbackSpy(FALLBACK_RESULT)
    interp = DateInterpreter({provider_id: stub}, fallback=spy)
    res = await interp.interpret_date(provider_id, {"model": "no url"}, "tomorrow 3pm", locale="en-US", now=NOW)
    assert res.provider_id == ProviderId.FALLBACK
    assert stub.requests == []
    # config is dropped on the way to the fallback
    assert spy.calls == [{"prompt": "tomorrow 3pm", "locale": "en-US", "timezone": None, "now": NOW}]


@pytest.mark.asyncio
async def test_invalid_config_and_no_fallback_match_fails():
    interp = DateInterpreter({ProviderId.OLLAMA: StubProvider()}, fallback=FallbackSpy(None))
    with pytest.raises(InvalidConfigurationError, match="Invalid configuration") as ei:
        await interp.interpret_date("ollama", None, "gibberish")
    assert ei.value.errors

    interp = DateInterpreter({ProviderId.OLLAMA: StubProvider()})
    with pytest.raises(InvalidConfigurationError):
        await interp.interpret_date("ollama", {}, "tomorrow")


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", ["do it", "on it"])
async def test_invalid_config_with_non_date_text_fails(prompt):
    interp = DateInterpreter({ProviderId.OLLAMA: StubProvider()}, fallback=fallback_interpreter)
    with pytest.raises(InvalidConfigurationError):
        await interp.interpret_date("ollama", {"model": "no url"}, prompt, timezone="UTC", now=NOW)


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_id", ["gemini", "lmstudio", "fallback"])
async def test_unknown_provider_never_falls_back(provider_id):
    spy = FallbackSpy(FALLBACK_RESULT)
    interp = DateInterpreter({ProviderId.OLLAMA: StubProvider()}, fallback=spy)
    with pytest.raises(UnknownProviderError):
        await interp.interpret_date(provider_id, {"base_url": "http://x"}, "tomorrow")
    assert spy.calls == []


@pytest.mark.asyncio
async def test_provider_failure_propagates_without_fallback():
    err = ProviderRequestError("Ollama request failed: 500", status_code=500)
    spy = FallbackSpy(FALLBACK_RESULT)
    interp = DateInterpreter({ProviderId.OLLAMA: StubProvider(error=err)}, fallback=spy)
    with pytest.raises(ProviderRequestError) as ei:
        await interp.interpret_date("ollama", {"base_url": "http://x"}, "tomorrow")
    assert ei.value is err
    assert spy.calls == []


@pytest.mark.asyncio
async def test_identical_requests_give_identical_results():
    interp = DateInterpreter({ProviderId.OLLAMA: StubProvider()}, fallback=FallbackSpy(None))
    a = await interp.interpret_date("ollama", {"base_url": "http://x"}, "tomorrow 3pm", now=NOW)
    b = await interp.interpret_date("ollama", {"base_url": "http://x"}, "tomorrow 3pm", now=NOW)
    assert a == b
    assert a.to_dict() == b.to_dict()


@pytest.mark.asyncio
async def test_model_instance_config_is_revalidated():
    stub = StubProvider()
    interp = DateInterpreter({ProviderId.OLLAMA: stub})
    await interp.interpret(ProviderId.OLLAMA, InterpretDateRequest(prompt="x", config=StubConfig(base_url="http://y")))
    assert stub.requests[0].config.base_url == "http://y"
