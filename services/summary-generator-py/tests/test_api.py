"""HTTP surface tests: routing, status codes and full wiring with mocked network."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from summary_generator.coordinator import RequestCoordinator
from summary_generator.main import build_coordinator, create_app
from summary_generator.model_client import HttpInvokeBackend


@pytest.fixture
def fakes(logger):
    extractor = AsyncMock()
    extractor.extract = AsyncMock(return_value="page text")
    generator = AsyncMock()
    generator.summarize = AsyncMock(return_value="A summary.")
    return RequestCoordinator(extractor, generator, logger), extractor, generator


@pytest.fixture
def client(fakes):
    coordinator, _, _ = fakes
    return TestClient(create_app(coordinator=coordinator))


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "summary-generator"


def test_post_returns_summary(client):
    resp = client.post("/api/summary/", json={"url": "https://example.com/post"})
    assert resp.status_code == 200
    assert resp.json() == {"summary": "A summary.", "url": "https://example.com/post"}


def test_post_without_trailing_slash(client):
    resp = client.post("/api/summary", json={"url": "https://example.com/post"})
    assert resp.status_code == 200


def test_get_is_405_and_does_no_work(client, fakes):
    _, extractor, generator = fakes
    resp = client.get("/api/summary/")
    assert resp.status_code == 405
    assert resp.json() == {"message": "Method not allowed"}
    extractor.extract.assert_not_awaited()
    generator.summarize.assert_not_awaited()


def test_empty_object_is_500_and_does_no_work(client, fakes):
    _, extractor, _ = fakes
    resp = client.post("/api/summary/", json={})
    assert resp.status_code == 500
    assert resp.json() == {"message": "Failed to process content"}
    extractor.extract.assert_not_awaited()


def test_non_json_body_is_500(client):
    resp = client.post("/api/summary/", content=b"url=https://example.com", headers={"content-type": "text/plain"})
    assert resp.status_code == 500
    assert resp.json() == {"message": "Failed to process content"}


def test_full_pipeline_with_mocked_network(cfg, logger):
    page = "<html><body><nav>Menu</nav><main><h1>Launch</h1> <p>Feature X lets you Y.</p></main></body></html>"
    invoked = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "blog.example.com":
            return httpx.Response(200, headers={"content-type": "text/html"}, content=page.encode())
        invoked["path"] = request.url.path
        invoked["body"] = json.loads(request.content)
        return httpx.Response(200, json={"inputTextTokenCount": 12, "results": [{"outputText": " X now does Y. "}]})

    transport = httpx.MockTransport(handler)
    fetch_client = httpx.AsyncClient(transport=transport, follow_redirects=True)
    backend = HttpInvokeBackend(httpx.AsyncClient(transport=transport), cfg.llm_api_base, cfg.llm_api_key)
    coordinator = build_coordinator(cfg, logger, fetch_client, backend)

    resp = TestClient(create_app(coordinator=coordinator)).post(
        "/api/summary/", json={"url": "https://blog.example.com/launch"}
    )

    assert resp.status_code == 200
    assert resp.json() == {"summary": "X now does Y.", "url": "https://blog.example.com/launch"}
    assert invoked["path"] == "/model/amazon.titan-text-express-v1/invoke"
    assert invoked["body"]["inputText"].endswith("Launch Feature X lets you Y.")
    assert "Menu" not in invoked["body"]["inputText"]

    events = logger.events()
    assert events.index("extract.fetch.done") < events.index("generate.start")


def test_full_pipeline_fetch_failure_never_invokes_model(cfg, logger):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        if request.url.host == "blog.example.com":
            return httpx.Response(404)
        return httpx.Response(200, json={"results": [{"outputText": "unused"}]})

    transport = httpx.MockTransport(handler)
    coordinator = build_coordinator(
        cfg,
        logger,
        httpx.AsyncClient(transport=transport, follow_redirects=True),
        HttpInvokeBackend(httpx.AsyncClient(transport=transport), cfg.llm_api_base, cfg.llm_api_key),
    )

    resp = TestClient(create_app(coordinator=coordinator)).post(
        "/api/summary/", json={"url": "https://blog.example.com/gone"}
    )

    assert resp.status_code == 500
    assert resp.json() == {"message": "Failed to process content"}
    assert calls == ["blog.example.com"]


def test_lifespan_builds_coordinator_from_config(cfg):
    app = create_app(cfg)
    with TestClient(app) as client:
        assert isinstance(app.state.coordinator, RequestCoordinator)
        assert client.get("/healthz").status_code == 200


@pytest.mark.parametrize("method", ["TRACE", "PROPFIND"])
def test_any_other_method_is_405_with_message(client, fakes, method):
    _, extractor, generator = fakes
    resp = client.request(method, "/api/summary/")
    assert resp.status_code == 405
    assert resp.json() == {"message": "Method not allowed"}
    extractor.extract.assert_not_awaited()
    generator.summarize.assert_not_awaited()


def test_head_is_405_and_does_no_work(client, fakes):
    _, extractor, _ = fakes
    resp = client.head("/api/summary/")
    assert resp.status_code == 405
    extractor.extract.assert_not_awaited()


def test_wrong_method_on_other_routes_keeps_message_body(client):
    resp = client.post("/healthz")
    assert resp.status_code == 405
    assert resp.json() == {"message": "Method not allowed"}


def test_unknown_path_keeps_default_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not Found"}
