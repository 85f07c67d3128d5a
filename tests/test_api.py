"""Integration-style tests for the Gemini proxy endpoints."""

from __future__ import annotations

import base64
from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from growthpath.main import app  # noqa: E402
from growthpath.services import ProviderInvocationError, SpeechResult  # noqa: E402
from growthpath.services.gemini_client import parse_sample_rate  # noqa: E402


class FakeGeminiClient:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_with: str | None = None
        self.roadmap: dict = {
            "executiveSummary": "Automate follow-ups first.",
            "steps": [
                {"title": "Audit", "goal": "map the funnel"},
                {"title": "Automate", "goal": "wire the CRM"},
                {"title": "Scale", "goal": "add channels"},
            ],
        }

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise ProviderInvocationError(self.fail_with)

    async def generate_roadmap(self, prompt):
        self.calls.append(("roadmap", prompt))
        self._maybe_fail()
        return self.roadmap

    async def generate_step(self, prompt):
        self.calls.append(("step", prompt))
        self._maybe_fail()
        return "Welcome to phase one."

    async def generate_audio(self, text, voice_name):
        self.calls.append(("audio", text, voice_name))
        self._maybe_fail()
        return SpeechResult(
            audio_bytes=b"\x01\x00\x02\x00",
            mime_type="audio/L16;codec=pcm;rate=24000",
            sample_rate=24000,
        )


@pytest.fixture
def gemini(monkeypatch: pytest.MonkeyPatch) -> FakeGeminiClient:
    """Replace the module-level Gemini client used by the controllers."""

    fake = FakeGeminiClient()
    monkeypatch.setattr("growthpath.controllers.generation._gemini_client", fake)
    return fake


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_health_reports_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["timestamp"]


def test_generate_roadmap_returns_outline(client, gemini):
    response = client.post(
        "/api/generate-roadmap",
        json={"prompt": "Plan for Acme", "totalSteps": 3},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["executiveSummary"] == "Automate follow-ups first."
    assert [step["title"] for step in payload["steps"]] == ["Audit", "Automate", "Scale"]
    assert gemini.calls == [("roadmap", "Plan for Acme")]


def test_generate_roadmap_requires_prompt_and_total(client, gemini):
    response = client.post("/api/generate-roadmap", json={"prompt": "Plan for Acme"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: prompt, totalSteps"}
    assert gemini.calls == []


def test_generate_roadmap_provider_failure(client, gemini):
    gemini.fail_with = "quota exceeded"

    response = client.post(
        "/api/generate-roadmap",
        json={"prompt": "Plan for Acme", "totalSteps": 3},
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate roadmap",
        "message": "quota exceeded",
    }


def test_generate_roadmap_rejects_malformed_model_output(client, gemini):
    gemini.roadmap = {"steps": []}

    response = client.post(
        "/api/generate-roadmap",
        json={"prompt": "Plan for Acme", "totalSteps": 3},
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate roadmap"


def test_generate_step_returns_text(client, gemini):
    response = client.post("/api/generate-step", json={"prompt": "Write step 1"})

    assert response.status_code == 200
    assert response.json() == {"text": "Welcome to phase one."}


def test_generate_step_requires_prompt(client, gemini):
    response = client.post("/api/generate-step", json={"prompt": ""})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: prompt"}


def test_generate_step_provider_failure(client, gemini):
    gemini.fail_with = "model overloaded"

    response = client.post("/api/generate-step", json={"prompt": "Write step 1"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate step content",
        "message": "model overloaded",
    }


def test_generate_audio_returns_base64_pcm(client, gemini):
    response = client.post(
        "/api/generate-audio",
        json={"text": "Welcome to phase one.", "voiceName": "Kore"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert base64.b64decode(payload["audioData"]) == b"\x01\x00\x02\x00"
    assert payload["mimeType"] == "audio/L16;codec=pcm;rate=24000"
    assert payload["sampleRate"] == 24000
    assert gemini.calls == [("audio", "Welcome to phase one.", "Kore")]


def test_generate_audio_defaults_voice(client, gemini):
    client.post("/api/generate-audio", json={"text": "Hello"})

    assert gemini.calls == [("audio", "Hello", "Zephyr")]


def test_generate_audio_requires_text(client, gemini):
    response = client.post("/api/generate-audio", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: text"}


def test_generate_audio_provider_failure(client, gemini):
    gemini.fail_with = "No audio data received from Gemini API"

    response = client.post("/api/generate-audio", json={"text": "Hello"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate audio",
        "message": "No audio data received from Gemini API",
    }


def test_unparseable_body_uses_error_envelope(client, gemini):
    response = client.post(
        "/api/generate-step",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_responses_carry_request_id(client):
    generated = client.get("/health")
    echoed = client.get("/health", headers={"X-Request-ID": "abc123"})

    assert len(generated.headers["x-request-id"]) == 32
    assert echoed.headers["x-request-id"] == "abc123"


def test_metrics_exposes_request_counters(client, gemini):
    client.post("/api/generate-step", json={"prompt": "Write step 1"})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "growthpath_http_requests_total" in response.text


@pytest.mark.parametrize(
    ("mime_type", "expected"),
    [
        ("audio/L16;codec=pcm;rate=24000", 24000),
        ("audio/pcm;rate=16000", 16000),
        ("audio/pcm", 24000),
        (None, 24000),
        ("audio/pcm;rate=0", 24000),
    ],
)
def test_parse_sample_rate(mime_type, expected):
    assert parse_sample_rate(mime_type, 24000) == expected
