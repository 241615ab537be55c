"""HTTP boundary tests for POST /api/analyze."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from growth_pilot import main
from growth_pilot.main import create_app
from growth_pilot.routers.analyze import get_analyzer
from growth_pilot.services.analyzer import ChannelAnalyzer
from growth_pilot.services.errors import NotFoundError, UpstreamUnavailableError
from growth_pilot.tests.fakes import FakeDirectory, FakeSource


def _client(analyzer: ChannelAnalyzer) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_analyzer] = lambda: analyzer
    return TestClient(app)


@pytest.fixture
def client() -> TestClient:
    return _client(ChannelAnalyzer(FakeDirectory(), FakeSource()))


def test_analyze_returns_report_shape(client: TestClient) -> None:
    response = client.post("/api/analyze", json={"query": "@examplechannel"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"channel", "latestUploads", "uploadCadence", "keywordInsights", "actions", "playbook"}
    assert body["channel"]["handle"] == "@examplechannel"
    assert body["uploadCadence"]["summary"] == "Weekly"
    assert body["uploadCadence"]["last30Days"] == 5
    assert body["latestUploads"][0]["views"] is None
    assert "publishedAt" in body["latestUploads"][0]
    assert set(body["playbook"]) == {"narrativeHook", "cadenceFocus", "packagingTips", "collaborationIdeas"}


@pytest.mark.parametrize("payload", [{"query": ""}, {"query": "   "}, {}])
def test_analyze_rejects_blank_query(client: TestClient, payload: dict) -> None:
    response = client.post("/api/analyze", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Provide a YouTube channel URL, handle, or ID"}


def test_analyze_missing_body_is_blank_query(client: TestClient) -> None:
    response = client.post("/api/analyze")

    assert response.status_code == 400
    assert response.json() == {"error": "Provide a YouTube channel URL, handle, or ID"}


def test_analyze_malformed_body_is_server_error(client: TestClient) -> None:
    response = client.post("/api/analyze", content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 500
    assert response.json()["error"].startswith("Invalid request body")


def test_analyze_non_string_query_reports_real_problem(client: TestClient) -> None:
    response = client.post("/api/analyze", json={"query": 123})

    assert response.status_code == 500
    error = response.json()["error"]
    assert "query" in error
    assert error != "Provide a YouTube channel URL, handle, or ID"


@pytest.mark.parametrize(
    ("query", "message"),
    [
        ("https://vimeo.com/@someone", "Only youtube.com channel links are supported"),
        ("https://youtu.be/@examplechannel", "That is a video link, not a channel link"),
        ("not a handle!!", "'not a handle!!' is not a valid YouTube handle"),
    ],
)
def test_analyze_unusable_query_is_server_error(client: TestClient, query: str, message: str) -> None:
    response = client.post("/api/analyze", json={"query": query})

    assert response.status_code == 500
    assert response.json() == {"error": message}


def test_analyze_not_found_message_is_verbatim() -> None:
    error = NotFoundError("No YouTube channel found for @ghost")
    client = _client(ChannelAnalyzer(FakeDirectory(error=error), FakeSource()))

    response = client.post("/api/analyze", json={"query": "@ghost"})

    assert response.status_code == 500
    assert response.json() == {"error": "No YouTube channel found for @ghost"}


def test_analyze_timeout_returns_generic_message() -> None:
    client = _client(ChannelAnalyzer(FakeDirectory(), FakeSource(delay=1), timeout_seconds=0.01))

    response = client.post("/api/analyze", json={"query": "@examplechannel"})

    assert response.status_code == 500
    assert response.json() == {"error": UpstreamUnavailableError.public_message}
    assert "timed out" not in response.json()["error"]


def test_analyze_unexpected_failure_is_generic() -> None:
    client = _client(ChannelAnalyzer(FakeDirectory(error=RuntimeError("socket exploded")), FakeSource()))

    response = client.post("/api/analyze", json={"query": "@examplechannel"})

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to analyze channel"}


def test_healthcheck(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_run_serves_app_with_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.run()

    assert calls == [("growth_pilot.main:app", {"host": main.settings.host, "port": main.settings.port})]
