from __future__ import annotations

import asyncio

import pytest

from instantcoder.core.providers import dispatcher as dispatcher_module
from instantcoder.core.providers.base import GenerationRequest, ProviderId, TransportReply
from instantcoder.core.providers.dispatcher import Dispatcher, generate
from instantcoder.core.runtime.errors import Cancelled, InvalidRequest, TransportError

OK_BODIES = {
    ProviderId.OPENAI: {"choices": [{"message": {"content": "print('hi')"}}]},
    ProviderId.MISTRAL: {"choices": [{"message": {"content": "print('hi')"}}]},
    ProviderId.XAI: {"choices": [{"message": {"content": "print('hi')"}}]},
    ProviderId.GUIJI: {"choices": [{"message": {"content": "print('hi')"}}]},
    ProviderId.GEMINI: {"candidates": [{"content": {"parts": [{"text": "print('hi')"}]}}]},
    ProviderId.CLAUDE: {"content": [{"text": "print('hi')"}]},
    ProviderId.COHERE: {"generations": [{"text": "print('hi')"}]},
    ProviderId.OLLAMA: {"response": "print('hi')"},
}


class StubTransport:
    def __init__(self, reply: TransportReply) -> None:
        self.reply = reply
        self.calls: list[tuple[str, str, dict[str, str], bytes, float | None]] = []

    async def send(self, method, url, headers, body, *, timeout=None):
        self.calls.append((method, url, headers, body, timeout))
        return self.reply


class FailingTransport:
    def __init__(self) -> None:
        self.calls = 0

    async def send(self, method, url, headers, body, *, timeout=None):
        self.calls += 1
        raise ConnectionError("connection refused")


class HangingTransport:
    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.was_cancelled = False

    async def send(self, method, url, headers, body, *, timeout=None):
        self.started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.was_cancelled = True
            raise
        return TransportReply(status=200, body={"response": "late"})


def _request(provider: ProviderId = ProviderId.OPENAI, **overrides) -> GenerationRequest:
    fields = {"provider": provider, "model": "m", "prompt": "hello", "api_key": "k", "base_url": ""}
    fields.update(overrides)
    return GenerationRequest(**fields)


@pytest.mark.asyncio
@pytest.mark.parametrize("provider", list(ProviderId))
async def test_generate_returns_extracted_text(provider):
    transport = StubTransport(TransportReply(status=200, reason="OK", body=OK_BODIES[provider]))
    result = await Dispatcher(transport).generate(_request(provider))

    assert result.ok
    assert result.text == "print('hi')"
    assert result.provider == provider.value
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_profile_default_base_url_used_when_empty():
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.CLAUDE]))
    await Dispatcher(transport).generate(_request(ProviderId.CLAUDE))
    assert transport.calls[0][1] == "https://api.anthropic.com/v1/messages"


@pytest.mark.asyncio
async def test_explicit_base_url_wins():
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OLLAMA]))
    await Dispatcher(transport).generate(_request(ProviderId.OLLAMA, base_url="http://gpu-box:11434/"))
    assert transport.calls[0][1] == "http://gpu-box:11434/api/generate"


@pytest.mark.asyncio
@pytest.mark.parametrize("provider", list(ProviderId))
async def test_http_401_is_transport_error_without_extraction(provider, monkeypatch):
    def _boom(*_args, **_kwargs):
        raise AssertionError("extractor must not run on a failed status")

    monkeypatch.setattr(dispatcher_module, "EXTRACTORS", {family: _boom for family in dispatcher_module.EXTRACTORS})
    transport = StubTransport(TransportReply(status=401, reason="Unauthorized", body={"error": "bad key"}))

    result = await Dispatcher(transport).generate(_request(provider))

    assert not result.ok
    assert result.error.kind == TransportError.kind
    assert result.error.http_status == 401
    assert result.error.provider == provider.value
    assert "Unauthorized" in result.error.message
    assert result.error.retryable is False


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    transport = FailingTransport()
    result = await Dispatcher(transport).generate(_request(ProviderId.MISTRAL))

    assert result.error.kind == "transport_error"
    assert result.error.http_status is None
    assert result.error.retryable is True
    assert result.error.message.startswith("Mistral AI API error: ConnectionError")
    assert transport.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides,field", [({"model": ""}, "model"), ({"prompt": ""}, "prompt"), ({"prompt": "   "}, "prompt")])
async def test_blank_model_or_prompt_is_invalid_without_transport(overrides, field):
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OPENAI]))
    result = await Dispatcher(transport).generate(_request(**overrides))

    assert result.error.kind == InvalidRequest.kind
    assert result.error.field_path == field
    assert transport.calls == []


@pytest.mark.asyncio
async def test_missing_key_only_rejected_where_required():
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OLLAMA]))
    dispatcher = Dispatcher(transport)

    rejected = await dispatcher.generate(_request(ProviderId.GEMINI, api_key=""))
    accepted = await dispatcher.generate(_request(ProviderId.OLLAMA, api_key=""))

    assert rejected.error.kind == "invalid_request"
    assert rejected.error.field_path == "api_key"
    assert accepted.ok
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_malformed_base_url_is_invalid():
    transport = StubTransport(TransportReply(status=200, body={}))
    result = await Dispatcher(transport).generate(_request(base_url="not a url"))
    assert result.error.field_path == "base_url"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_unsupported_provider_from_untyped_input():
    transport = StubTransport(TransportReply(status=200, body={}))
    result = await Dispatcher(transport).generate(_request(provider="bard"))  # type: ignore[arg-type]
    assert result.error.kind == "unsupported_provider"
    assert result.error.message == "Unsupported provider: bard"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_malformed_body_on_success_status():
    transport = StubTransport(TransportReply(status=200, body={"choices": []}))
    result = await Dispatcher(transport).generate(_request(ProviderId.XAI))
    assert result.error.kind == "malformed_response"
    assert result.error.provider == "xai"
    assert result.error.field_path == "choices[0].message.content"


@pytest.mark.asyncio
async def test_identical_calls_give_identical_results():
    ok = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.COHERE]))
    bad = StubTransport(TransportReply(status=500, reason="Internal Server Error"))

    first = await Dispatcher(ok).generate(_request(ProviderId.COHERE))
    second = await Dispatcher(ok).generate(_request(ProviderId.COHERE))
    assert first == second

    dispatcher = Dispatcher(bad)
    assert await dispatcher.generate(_request()) == await dispatcher.generate(_request())


@pytest.mark.asyncio
async def test_concurrent_calls_do_not_share_state():
    ok = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OPENAI]))
    dispatcher = Dispatcher(ok)
    results = await asyncio.gather(
        dispatcher.generate(_request(ProviderId.OPENAI)),
        dispatcher.generate(_request(ProviderId.OPENAI, model="")),
        dispatcher.generate(_request(ProviderId.MISTRAL)),
    )
    assert [r.ok for r in results] == [True, False, True]
    assert [r.provider for r in results] == ["openai", "openai", "mistral"]


@pytest.mark.asyncio
async def test_cancel_before_transport_settles_yields_cancelled():
    transport = HangingTransport()
    cancel = asyncio.Event()
    pending = asyncio.create_task(
        Dispatcher(transport).generate(_request(ProviderId.OLLAMA, api_key=""), cancel=cancel)
    )
    await asyncio.wait_for(transport.started.wait(), timeout=1)
    cancel.set()
    result = await asyncio.wait_for(pending, timeout=1)

    assert result.error.kind == Cancelled.kind
    assert result.text is None
    assert transport.was_cancelled is True


@pytest.mark.asyncio
async def test_cancel_already_set_skips_transport():
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OPENAI]))
    cancel = asyncio.Event()
    cancel.set()
    result = await Dispatcher(transport).generate(_request(), cancel=cancel)
    assert result.error.kind == "cancelled"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_timeout_is_passed_through_to_transport():
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OPENAI]))
    await Dispatcher(transport).generate(_request(), timeout=12.5)
    assert transport.calls[0][4] == 12.5


@pytest.mark.asyncio
async def test_functional_generate_and_raise_for_error():
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.GEMINI]))
    result = await generate("gemini", "gemini-pro", "AI-key", "hello", transport=transport)
    assert result.raise_for_error() == "print('hi')"
    assert transport.calls[0][1] == (
        "https://generativelanguage.googleapis.com/v1/models/gemini-pro:generateContent?key=AI-key"
    )

    failed = await generate("gemini", "", "AI-key", "hello", transport=transport)
    with pytest.raises(InvalidRequest):
        failed.raise_for_error()

    unknown = await generate("nope", "m", "k", "hello", transport=transport)
    assert unknown.error.kind == "unsupported_provider"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides,field", [({"model": 5}, "model"), ({"prompt": ["hi"]}, "prompt"), ({"api_key": 123}, "api_key")])
async def test_non_string_fields_are_invalid_without_transport(overrides, field):
    transport = StubTransport(TransportReply(status=200, body=OK_BODIES[ProviderId.OPENAI]))
    result = await Dispatcher(transport).generate(_request(**overrides))

    assert result.error.kind == InvalidRequest.kind
    assert result.error.field_path == field
    assert "must be a string" in result.error.message
    assert transport.calls == []
