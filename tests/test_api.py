import inspect

import httpx
import pytest
from fastapi.testclient import TestClient

import main
from llm.client import LLMClient
from pagespeed.client import PageSpeedClient


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "_llm_client", LLMClient(api_key=""))
    monkeypatch.setattr(main, "_pagespeed_client", PageSpeedClient(api_key=""))
    return TestClient(main.app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


def test_clean_uses_wire_names(client):
    resp = client.post(
        "/clean",
        json={
            "html": "<!-- x --><p>  hi  </p>",
            "options": {"stripComments": True, "collapseWhitespace": True, "lazyLoadEmbeds": False},
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["cleanedHtml"] == "<p> hi </p>"
    assert body["summary"]["bytesSaved"] > 0
    assert body["summary"]["estimatedSpeedGain"].endswith("%")
    assert body["effectiveOptions"]["lazyLoadEmbeds"] is False


def test_clean_applies_recommendation_keys(client):
    resp = client.post(
        "/clean",
        json={
            "html": '<script src="https://cdn.example.com/a.js"></script>',
            "options": {"deferScripts": False},
            "recommendations": [{"title": "Defer JS", "options": ["deferScripts"]}],
        },
    )
    body = resp.json()
    assert body["effectiveOptions"]["deferScripts"] is True
    assert "defer" in body["cleanedHtml"]


def test_clean_rejects_unknown_fields(client):
    assert client.post("/clean", json={"html": "<p/>", "speed": 11}).status_code == 422
    assert client.post("/clean", json={"html": "<p/>", "options": {"turbo": True}}).status_code == 422


def test_plan_without_key_explains_itself(client):
    resp = client.post("/plan", json={"report": {}})
    assert resp.status_code == 200
    assert resp.json()["recommendations"][0]["title"] == "Missing API Key"


def test_compare_without_key_is_null(client):
    resp = client.post("/compare", json={"before": {}, "after": {}})
    assert resp.status_code == 200
    assert resp.json() is None


def test_report_errors_map_to_bad_gateway(client):
    resp = client.post("/report", json={"url": "https://example.com"})
    assert resp.status_code == 502
    assert "API key" in resp.json()["detail"]


def test_report_success(client, monkeypatch):
    payload = {"lighthouseResult": {"categories": {"performance": {"score": 0.8}}}}
    transport = httpx.MockTransport(lambda r: httpx.Response(200, json=payload))
    monkeypatch.setattr(main, "_pagespeed_client", PageSpeedClient(api_key="k", transport=transport))
    resp = client.post("/report", json={"url": "https://example.com"})
    assert resp.status_code == 200
    assert resp.json()["scores"]["desktop"]["performance"] == 80


def test_blocking_routes_run_in_the_threadpool():
    for route in (main.clean, main.plan, main.compare, main.report):
        assert not inspect.iscoroutinefunction(route)
