import asyncio
import json

import httpx
import pytest
from tenacity import wait_none

from slidegen.core.errors import ErrorKind, PipelineError, classify_exception
from slidegen.plugins.slides_generate import prompts, repair
from slidegen.services.llm import LLMClient
from fakes import OUTLINE


def _client(handler):
    return LLMClient(api_key="sk-test", base_url="https://llm.example.com/v1",
                     model="test-model", transport=httpx.MockTransport(handler))


def _gen(client, **kw):
    return asyncio.run(client.generate([{"role": "user", "content": "hi"}],
                                       max_tokens=kw.get("max_tokens", 100),
                                       temperature=kw.get("temperature", 0.0)))


def test_chat_completion_payload_and_text():
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "hello"}}]})

    assert _gen(_client(handler), max_tokens=1000, temperature=0.3) == "hello"
    assert sent == [{"model": "test-model", "messages": [{"role": "user", "content": "hi"}],
                     "max_tokens": 1000, "temperature": 0.3}]


def test_rate_limit_is_classified_and_not_retried():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(429, json={"error": {"message": "quota"}})

    with pytest.raises(PipelineError) as e:
        _gen(_client(handler))
    assert e.value.kind is ErrorKind.RATE_LIMITED
    assert e.value.status == 429
    assert len(calls) == 1


def test_server_error_is_internal():
    with pytest.raises(PipelineError) as e:
        _gen(_client(lambda r: httpx.Response(503, text="unavailable")))
    assert e.value.kind is ErrorKind.INTERNAL_ERROR
    assert e.value.raw == "unavailable"


@pytest.fixture
def no_backoff(monkeypatch):
    monkeypatch.setattr(LLMClient._post.retry, "wait", wait_none())


def test_transport_errors_are_retried(no_backoff):
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "hello"}}]})

    assert _gen(_client(handler)) == "hello"
    assert len(calls) == 3


def test_persistent_transport_error_is_internal(no_backoff):
    calls = []

    def handler(request):
        calls.append(1)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PipelineError) as e:
        _gen(_client(handler))
    assert e.value.kind is ErrorKind.INTERNAL_ERROR
    assert len(calls) == 3


def test_null_content_is_empty_text():
    reply = {"choices": [{"message": {"role": "assistant", "content": None}}]}
    assert _gen(_client(lambda r: httpx.Response(200, json=reply))) == ""


def test_classify_exception():
    assert classify_exception(RuntimeError("Resource exhausted")).kind is ErrorKind.RATE_LIMITED
    assert classify_exception(ValueError("bad")).kind is ErrorKind.INTERNAL_ERROR
    err = PipelineError(ErrorKind.NOT_FOUND, "gone")
    assert classify_exception(err) is err


# --------------------------- offline mode ---------------------------

def test_offline_outline_round_trips_through_repair():
    llm = LLMClient(api_key="")
    assert llm.offline
    raw = asyncio.run(llm.generate(prompts.outline_messages("Coral reefs"), max_tokens=1000, temperature=0.0))
    assert raw.startswith("```json")
    outline = repair.parse_outline(raw)
    assert len(outline.outlines) >= 6
    assert "Coral reefs" in outline.outlines[0]


def test_offline_layouts_one_slide_per_point():
    llm = LLMClient(api_key="")
    raw = asyncio.run(llm.generate(prompts.layout_messages(OUTLINE), max_tokens=8192, temperature=0.7))
    slides = repair.parse_layouts(raw)
    assert len(slides) == len(OUTLINE)
    assert all(s.content.type == "column" for s in slides)


def test_offline_alt_text_uses_hint():
    llm = LLMClient(api_key="")
    text = asyncio.run(llm.generate(prompts.alt_text_messages("a coral reef"), max_tokens=200, temperature=0.4))
    assert "a coral reef" in text
