"""Pytest configuration and shared fixtures."""
import json

import pytest

from f1chat.models import Document
from f1chat.persistence import PersistenceGateway
from f1chat.store import ConversationStore


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> None:
        self.now += ms


class MemoryGateway:
    """In-memory stand-in for PersistenceGateway that records every save."""

    def __init__(self, document: Document | None = None):
        self._stored = json.dumps(document.to_dict()) if document is not None else None
        self.save_count = 0

    def load(self):
        if self._stored is None:
            return None
        return Document.from_dict(json.loads(self._stored))

    def save(self, document: Document) -> bool:
        self._stored = json.dumps(document.to_dict())
        self.save_count += 1
        return True

    @property
    def stored(self) -> dict | None:
        return json.loads(self._stored) if self._stored is not None else None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_gateway():
    return MemoryGateway()


@pytest.fixture
def store(memory_gateway, clock):
    """An initialized store backed by the in-memory gateway."""
    conversation_store = ConversationStore(memory_gateway, default_model="mistral", clock=clock)
    conversation_store.initialize()
    return conversation_store


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "f1-ai-data.json"


@pytest.fixture
def gateway(data_file):
    return PersistenceGateway(data_file)


@pytest.fixture
def sample_document_payload():
    """A persisted document covering every optional field."""
    return {
        "chats": [
            {
                "id": 1700000000200,
                "name": "Tyre strategy for Monza",
                "messages": [
                    {
                        "id": 1700000000201,
                        "role": "user",
                        "content": "Tyre strategy for Monza",
                        "timestamp": 1700000000201,
                    },
                    {
                        "id": 1700000000203,
                        "role": "assistant",
                        "content": "A **one-stop** medium/hard is typical.",
                        "timestamp": 1700000000203,
                        "model": "mistral",
                    },
                ],
                "timestamp": 1700000000203,
                "model": "mistral",
            },
            {
                "id": 1700000000100,
                "name": "Conversation 1",
                "messages": [],
                "timestamp": 1700000000100,
                "model": "llama3",
            },
        ],
        "projects": [{"name": "season-2024", "files": ["calendar.txt"]}],
    }
