import json

import httpx
import pytest

from llm.client import LLMClient
from llm.parser import (
    normalize_comparison,
    normalize_recommendations,
    parse_llm_json,
    strip_code_fence,
)


def _reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence("<p>x</p>") == "<p>x</p>"


@pytest.mark.parametrize(
    "content",
    [
        '{"summary": "ok"}',
        '```json\n{"summary": "ok"}\n```',
        'Here is the analysis:\n{"summary": "ok"}\nHope that helps!',
    ],
)
def test_parse_object_variants(content):
    assert parse_llm_json(content) == {"summary": "ok"}


def test_parse_array_with_preamble():
    content = 'Sure! [{"title": "Defer JS"}] -- let me know'
    assert parse_llm_json(content, expect=list) == [{"title": "Defer JS"}]


def test_parse_rejects_wrong_type_and_garbage():
    with pytest.raises(ValueError):
        parse_llm_json('{"title": "x"}', expect=list)
    with pytest.raises(ValueError):
        parse_llm_json("no json here")
    with pytest.raises(ValueError):
        parse_llm_json("   ")


def test_normalize_recommendations_filters_and_coerces():
    raw = {
        "recommendations": [
            {"title": "Lazy-load embeds", "priority": "high", "options": ["lazyLoadEmbeds"]},
            {"description": "missing title"},
            "not an object",
            {"title": "Odd priority", "priority": "urgent"},
        ]
    }
    items = normalize_recommendations(raw)
    assert [item.title for item in items] == ["Lazy-load embeds", "Odd priority"]
    assert items[0].priority == "High"
    assert items[0].options == ["lazyLoadEmbeds"]
    assert items[1].priority is None
    assert normalize_recommendations("nope") == []


def test_normalize_comparison():
    analysis = normalize_comparison(
        {"summary": "Faster", "improvements": ["LCP"], "finalRecommendations": [{"title": "CDN"}]}
    )
    assert analysis.summary == "Faster"
    assert analysis.final_recommendations[0].title == "CDN"
    assert normalize_comparison({"improvements": []}) is None
    assert normalize_comparison(["summary"]) is None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


def test_client_posts_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("hello"))

    client = LLMClient(
        api_key="sk-test",
        base_url="https://llm.example.com/v1/",
        model="gpt-4o-mini",
        transport=httpx.MockTransport(handler),
    )
    text = client.complete([{"role": "user", "content": "hi"}], json_mode=True, max_tokens=50)
    client.close()

    assert text == "hello"
    assert seen["url"] == "https://llm.example.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["max_tokens"] == 50
    assert seen["body"]["response_format"] == {"type": "json_object"}


def test_gpt5_models_use_completion_token_limit():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("ok"))

    client = LLMClient(api_key="k", model="gpt-5-mini", transport=httpx.MockTransport(handler))
    client.complete([{"role": "user", "content": "hi"}])
    assert seen["body"]["max_completion_tokens"] == 2000
    assert "temperature" not in seen["body"]


def test_client_retries_transient_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 2:
            return httpx.Response(503, json={"error": "busy"})
        return httpx.Response(200, json=_reply("done"))

    client = LLMClient(api_key="k", transport=httpx.MockTransport(handler))
    assert client.complete([{"role": "user", "content": "hi"}]) == "done"
    assert len(calls) == 2


def test_client_does_not_retry_client_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"error": "bad"})

    client = LLMClient(api_key="k", transport=httpx.MockTransport(handler))
    with pytest.raises(httpx.HTTPStatusError):
        client.complete([{"role": "user", "content": "hi"}])
    assert len(calls) == 1


def test_missing_content_is_a_value_error():
    client = LLMClient(
        api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []}))
    )
    with pytest.raises(ValueError):
        client.complete([{"role": "user", "content": "hi"}])


def test_configured_reflects_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert LLMClient().configured is False
    assert LLMClient(api_key="k").configured is True
