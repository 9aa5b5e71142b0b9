"""
Tests for the speech-to-speech gateway endpoint.
Driven through FastAPI's TestClient; lifespan is not run.
"""

import pytest
from fastapi.testclient import TestClient

PATH = "/functions/v1/speech-to-speech"


@pytest.fixture
def client(app):
    return TestClient(app)


def _post(client, **fields):
    files = {}
    if "audio" in fields:
        files["audio"] = ("clip.wav", fields.pop("audio"), "audio/wav")
    return client.post(PATH, data=fields, files=files or None)


def test_success_shape(client):
    resp = _post(client, audio=b"RIFF....", model="moshi", language="en")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["model"] == "moshi"
    assert body["language"] == "en"
    assert body["transcript"].startswith("Hello!")
    assert body["audioUrl"].startswith("https://mock-audio-storage.com/moshi/en/")
    assert isinstance(body["latency"], int)
    assert resp.headers["access-control-allow-origin"] == "*"


def test_language_fallback(client):
    body = _post(client, audio=b"x", model="spirit_lm", language="jp").json()
    assert body["success"] is True
    assert body["transcript"].startswith("Spirit LM speaking!")
    assert body["language"] == "jp"


@pytest.mark.parametrize("missing", ["audio", "model", "language"])
def test_missing_parameter(client, missing):
    fields = {"audio": b"x", "model": "moshi", "language": "en"}
    fields.pop(missing)
    resp = _post(client, **fields)
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Missing required parameters: audio, model, or language"


def test_unsupported_model(client):
    resp = _post(client, audio=b"x", model="bark", language="en")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Unsupported model: bark", "success": False}


def test_missing_parameter_checked_before_model(client):
    """An unknown model without audio still reports the missing field."""
    resp = _post(client, model="bark", language="en")
    assert "Missing required parameters" in resp.json()["error"]


def test_preflight(client):
    resp = client.options(PATH)
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "content-type" in resp.headers["access-control-allow-headers"]


def test_backend_failure_is_500(client, router):
    async def boom(audio, language):
        raise RuntimeError("GPU on fire")

    router.backends["ultravox"].synthesize = boom
    resp = _post(client, audio=b"x", model="ultravox", language="en")
    assert resp.status_code == 500
    assert resp.json() == {"error": "GPU on fire", "success": False}
