"""Unit tests for the Ollama HTTP client."""
import json
from io import BytesIO
from urllib.error import HTTPError, URLError

import pytest

from f1chat.ollama_client import NO_RESPONSE_TEXT, InferenceError, OllamaClient


class FakeResponse:
    def __init__(self, body: bytes):
        self._body = BytesIO(body)

    def read(self):
        return self._body.read()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


@pytest.fixture
def captured(monkeypatch):
    """Patch urlopen and record the outgoing request."""
    calls = {}

    def install(body=None, error=None):
        def fake_urlopen(request, timeout):
            calls["url"] = request.full_url
            calls["method"] = request.get_method()
            calls["body"] = json.loads(request.data.decode("utf-8"))
            calls["timeout"] = timeout
            if error is not None:
                raise error
            return FakeResponse(body)

        monkeypatch.setattr("f1chat.ollama_client.urlopen", fake_urlopen)
        return calls

    return install


class TestChat:
    """Tests for OllamaClient.chat."""

    def test_request_shape(self, captured):
        calls = captured(body=json.dumps({"message": {"content": "ok"}}).encode("utf-8"))
        client = OllamaClient("http://localhost:11434/", timeout=5)

        assert client.chat("Who won in 2021?", "llama3") == "ok"
        assert calls["url"] == "http://localhost:11434/api/chat"
        assert calls["method"] == "POST"
        assert calls["timeout"] == 5
        assert calls["body"] == {
            "model": "llama3",
            "messages": [{"role": "user", "content": "Who won in 2021?"}],
            "stream": False,
        }

    @pytest.mark.parametrize(
        "payload",
        [{}, {"message": {}}, {"message": {"content": ""}}, {"message": "text"}, []],
    )
    def test_missing_content_yields_placeholder_text(self, captured, payload):
        captured(body=json.dumps(payload).encode("utf-8"))
        assert OllamaClient().chat("hi", "mistral") == NO_RESPONSE_TEXT

    def test_http_error_raises_with_status_and_body(self, captured):
        error = HTTPError(
            "http://localhost:11434/api/chat", 404, "Not Found", {}, BytesIO(b'{"error":"model not found"}')
        )
        captured(error=error)

        with pytest.raises(InferenceError, match="Ollama error 404: .*model not found"):
            OllamaClient().chat("hi", "missing-model")

    def test_connection_error_raises(self, captured):
        captured(error=URLError("Connection refused"))

        with pytest.raises(InferenceError, match="Connection refused"):
            OllamaClient().chat("hi", "mistral")

    def test_malformed_body_raises(self, captured):
        captured(body=b"<html>oops</html>")

        with pytest.raises(InferenceError, match="Malformed response"):
            OllamaClient().chat("hi", "mistral")


class TestGenerateReply:
    """Tests for the never-raising wrapper."""

    def test_success_passes_content_through(self, captured):
        captured(body=json.dumps({"message": {"content": "**Hamilton**"}}).encode("utf-8"))
        assert OllamaClient().generate_reply("hi", "mistral") == "**Hamilton**"

    def test_failure_becomes_error_text(self, captured):
        captured(error=URLError("Connection refused"))

        reply = OllamaClient().generate_reply("hi", "mistral")

        assert reply.startswith("Error: ")
        assert "Connection refused" in reply

    def test_timeout_becomes_error_text(self, captured):
        captured(error=TimeoutError("timed out"))
        assert OllamaClient().generate_reply("hi", "mistral") == "Error: Ollama connection failed: timed out"
