import pytest
from fastapi.testclient import TestClient

from rizz import generate_api
from rizz.completion import (
    CompletionConfig,
    ConfigurationError,
    MalformedUpstreamResponse,
    TransportTimeout,
    UpstreamError,
)
from rizz.fallback import FALLBACK_CATALOG, FALLBACK_NOTE
from rizz.main import app
from rizz.pickup import RawCompletion
from rizz.settings import Settings


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def configured(monkeypatch):
    cfg = CompletionConfig(api_key="sk-or-v1-test")
    monkeypatch.setattr(generate_api, "get_completion_config", lambda: cfg)
    return cfg


def fake_completion(monkeypatch, text=None, error=None):
    calls = []

    async def _fake(cfg, req, **kw):
        calls.append(req)
        if error is not None:
            raise error
        return RawCompletion(text=text)

    monkeypatch.setattr(generate_api, "request_completion", _fake)
    return calls


# =========================
# /api/generate-pickup-lines
# =========================
def test_generate_returns_normalized_lines(client, configured, monkeypatch):
    fake_completion(
        monkeypatch,
        text='```json\n[{"tagalog": "Uno", "translation": "One"}, {"tagalog": "Dos", "translation": "Two"}]\n```',
    )
    r = client.post("/api/generate-pickup-lines", json={"count": 2, "category": "romantic"})

    assert r.status_code == 200
    assert r.json() == {
        "lines": [
            {"tagalog": "Uno", "translation": "One"},
            {"tagalog": "Dos", "translation": "Two"},
        ]
    }


def test_generate_defaults(client, configured, monkeypatch):
    calls = fake_completion(monkeypatch, text="Ikaw ba ay kape?")
    r = client.post("/api/generate-pickup-lines", json={})

    assert r.status_code == 200
    assert r.json()["lines"] == [{"tagalog": "Ikaw ba ay kape?", "translation": ""}]
    req = calls[0]
    assert req.requested_count == 1
    assert req.category == "none"
    assert req.include_translations is True
    assert "pick up line" in req.scenario


def test_generate_without_translations(client, configured, monkeypatch):
    calls = fake_completion(monkeypatch, text="1. Hello\n2. World")
    r = client.post(
        "/api/generate-pickup-lines",
        json={"count": 2, "includeTranslations": False, "scenario": "Sa library"},
    )

    assert [line["tagalog"] for line in r.json()["lines"]] == ["Hello", "World"]
    assert calls[0].include_translations is False
    assert calls[0].scenario == "Sa library"


@pytest.mark.parametrize("count, expected", [(21, 20), (500, 20), (0, 1), (-3, 1), (None, 1)])
def test_generate_clamps_count(client, configured, monkeypatch, count, expected):
    calls = fake_completion(monkeypatch, text="x")
    r = client.post("/api/generate-pickup-lines", json={"count": count})

    assert r.status_code == 200
    assert calls[0].requested_count == expected


@pytest.mark.parametrize("category, expected", [("any", "none"), (None, "none"), ("Funny", "funny")])
def test_generate_maps_category(client, configured, monkeypatch, category, expected):
    calls = fake_completion(monkeypatch, text="x")
    client.post("/api/generate-pickup-lines", json={"category": category})
    assert calls[0].category == expected


@pytest.mark.parametrize(
    "body",
    [
        {"category": "spicy"},
        {"count": "lots"},
        {"count": 2.5},
    ],
)
def test_generate_rejects_invalid_input(client, configured, monkeypatch, body):
    calls = fake_completion(monkeypatch, text="x")
    r = client.post("/api/generate-pickup-lines", json=body)

    assert r.status_code == 400
    assert r.json()["error"]
    assert calls == []


def test_generate_rejects_non_json_body(client, configured):
    r = client.post(
        "/api/generate-pickup-lines",
        content="not json",
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.parametrize(
    "error",
    [
        TransportTimeout("timed out"),
        UpstreamError(502, '{"error": "unknown error"}'),
        UpstreamError(429, "rate limited"),
        MalformedUpstreamResponse("Invalid response format from API"),
    ],
)
def test_generate_absorbs_upstream_failures(client, configured, monkeypatch, error):
    fake_completion(monkeypatch, error=error)
    r = client.post("/api/generate-pickup-lines", json={"count": 3})

    assert r.status_code == 200
    body = r.json()
    assert body["note"] == FALLBACK_NOTE
    assert body["lines"] == [i.to_wire() for i in FALLBACK_CATALOG[:3]]


def test_generate_fallback_covers_max_count(client, configured, monkeypatch):
    fake_completion(monkeypatch, error=TransportTimeout("timed out"))
    r = client.post("/api/generate-pickup-lines", json={"count": 20})

    assert len(r.json()["lines"]) == 20


def test_generate_blank_completion_uses_fallback(client, configured, monkeypatch):
    fake_completion(monkeypatch, text="   ")
    r = client.post("/api/generate-pickup-lines", json={"count": 2})

    assert r.json()["note"] == FALLBACK_NOTE
    assert len(r.json()["lines"]) == 2


def test_generate_configuration_error_is_500(client, monkeypatch):
    calls = fake_completion(monkeypatch, text="x")
    monkeypatch.setattr(generate_api, "settings", Settings(OPENROUTER_API_KEY=""))
    generate_api.get_completion_config.cache_clear()
    try:
        r = client.post("/api/generate-pickup-lines", json={"count": 2})
    finally:
        generate_api.get_completion_config.cache_clear()

    assert r.status_code == 500
    assert r.json() == {"error": "OPENROUTER_API_KEY is not set"}
    assert calls == []


def test_netlify_function_path_is_an_alias(client, configured, monkeypatch):
    fake_completion(monkeypatch, text="1. Uno")
    r = client.post("/.netlify/functions/generate-pickup-line", json={"includeTranslations": False})

    assert r.status_code == 200
    assert r.json()["lines"] == [{"tagalog": "Uno", "translation": ""}]


def test_generate_rejects_get(client):
    assert client.get("/api/generate-pickup-lines").status_code == 405


# =========================
# /api/generate
# =========================
def test_single_line(client, configured, monkeypatch):
    prompts = []

    async def _complete(cfg, instruction, **kw):
        prompts.append(instruction)
        return RawCompletion(text="  Kape ka ba?  ")

    monkeypatch.setattr(generate_api, "complete", _complete)
    r = client.post("/api/generate", json={"prompt": "coffee"})

    assert r.status_code == 200
    assert r.json() == {"text": "Kape ka ba?"}
    assert "about: coffee." in prompts[0]


def test_single_line_requires_prompt(client, configured):
    r = client.post("/api/generate", json={"prompt": "  "})
    assert r.status_code == 400
    assert r.json() == {"error": "Prompt is required"}


def test_single_line_falls_back(client, configured, monkeypatch):
    async def _complete(cfg, instruction, **kw):
        raise UpstreamError(500, "boom")

    monkeypatch.setattr(generate_api, "complete", _complete)
    r = client.post("/api/generate", json={"prompt": "coffee"})

    assert r.status_code == 200
    assert r.json() == {"text": FALLBACK_CATALOG[0].text, "note": FALLBACK_NOTE}


def test_single_line_configuration_error(client, monkeypatch):
    def _broken():
        raise ConfigurationError("OPENROUTER_API_KEY is not set")

    monkeypatch.setattr(generate_api, "get_completion_config", _broken)
    r = client.post("/api/generate", json={"prompt": "coffee"})
    assert r.status_code == 500


# =========================
# /healthz
# =========================
def test_healthz(client, configured, monkeypatch):
    from rizz import main

    monkeypatch.setattr(main, "get_completion_config", lambda: configured)
    r = client.get("/healthz")

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert "/api/generate-pickup-lines" in body["routes"]
    assert "/api/favorites" in body["routes"]
    assert body["meta"]["completion_configured"] is True


def test_run_serves_app_on_configured_port(monkeypatch):
    from rizz import main

    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda target, **kw: calls.append((target, kw)))
    monkeypatch.setattr(main, "settings", Settings(PORT=9123))
    main.run()

    assert calls == [("rizz.main:app", {"host": "0.0.0.0", "port": 9123})]
