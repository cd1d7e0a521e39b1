from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"
NO_RESPONSE_TEXT = "⚠️ No response from model"


class InferenceError(RuntimeError):
    """Raised when the inference server cannot produce a reply."""


class OllamaClient:
    """Minimal client for the Ollama ``/api/chat`` endpoint (non-streaming)."""

    def __init__(self, base_url: str = DEFAULT_OLLAMA_URL, timeout: float = 120.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def chat_url(self) -> str:
        return f"{self._base_url}/api/chat"

    def chat(self, message: str, model: str) -> str:
        """
        Send a single user message and return the reply text.

        Raises InferenceError for connection failures, non-2xx statuses and
        bodies that are not JSON.
        """

        body = {
            "model": model,
            "messages": [{"role": "user", "content": message}],
            "stream": False,
        }
        payload = _post_json(self.chat_url, body, self._timeout)
        content = _extract_content(payload)
        return content or NO_RESPONSE_TEXT

    def generate_reply(self, message: str, model: str) -> str:
        """Like :meth:`chat`, but failures come back as displayable text."""

        try:
            return self.chat(message, model)
        except InferenceError as exc:
            logger.error("Ollama request failed: %s", exc)
            return f"Error: {exc}"


def _extract_content(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _post_json(url: str, body: dict, timeout: float) -> Any:
    request = Request(
        url,
        data=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urlopen(request, timeout=timeout) as response:
            raw = response.read()
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp else exc.reason
        raise InferenceError(f"Ollama error {exc.code}: {detail}") from exc
    except URLError as exc:
        raise InferenceError(f"Ollama connection failed: {exc.reason}") from exc
    except OSError as exc:
        # socket.timeout など
        raise InferenceError(f"Ollama connection failed: {exc}") from exc

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InferenceError(f"Malformed response from Ollama: {exc}") from exc
