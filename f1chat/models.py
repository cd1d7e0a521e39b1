from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

ChatRole = Literal["user", "assistant"]

NAME_MAX_LENGTH = 50
NAME_ELLIPSIS = "..."
TYPING_CONTENT = "🫥 Thinking...."


def now_ms() -> int:
    # JSON 上の id / timestamp はミリ秒の整数で扱う
    return int(time.time() * 1000)


def derive_name(text: str) -> str:
    clean = text.strip()
    if len(clean) > NAME_MAX_LENGTH:
        return clean[:NAME_MAX_LENGTH] + NAME_ELLIPSIS
    return clean


@dataclass
class Message:
    id: int
    role: ChatRole
    content: str
    timestamp: int
    is_typing: bool = False
    model: str | None = None

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.is_typing:
            payload["isTyping"] = True
        if self.model is not None:
            payload["model"] = self.model
        return payload

    @classmethod
    def from_dict(cls, payload: dict) -> "Message":
        payload = _require_mapping(payload, "message")
        role = payload.get("role")
        if role not in ("user", "assistant"):
            raise ValueError(f"Unknown message role: {role!r}")
        content = payload.get("content", "")
        if not isinstance(content, str):
            raise ValueError("Message content must be a string")
        # "model": null は未設定と同じ扱い (書き戻すときはキーごと省く)
        model = payload.get("model")
        if model is not None and not isinstance(model, str):
            raise ValueError("Message model must be a string")
        return cls(
            id=int(payload["id"]),
            role=role,
            content=content,
            timestamp=int(payload.get("timestamp", payload["id"])),
            is_typing=bool(payload.get("isTyping", False)),
            model=model,
        )


@dataclass
class Conversation:
    id: int
    name: str
    timestamp: int
    model: str
    messages: list[Message] = field(default_factory=list)

    @property
    def visible_messages(self) -> list[Message]:
        return [message for message in self.messages if not message.is_typing]

    def find_message(self, message_id: int) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def remove_message(self, message_id: int) -> bool:
        remaining = [message for message in self.messages if message.id != message_id]
        removed = len(remaining) != len(self.messages)
        self.messages = remaining
        return removed

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "messages": [message.to_dict() for message in self.messages],
            "timestamp": self.timestamp,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Conversation":
        payload = _require_mapping(payload, "conversation")
        messages = [Message.from_dict(m) for m in _require_list(payload.get("messages", []), "messages")]
        name = payload.get("name", "")
        model = payload.get("model", "")
        if not isinstance(name, str) or not isinstance(model, str):
            raise ValueError("Conversation name and model must be strings")
        return cls(
            id=int(payload["id"]),
            name=name,
            timestamp=int(payload.get("timestamp", payload["id"])),
            model=model,
            messages=messages,
        )


@dataclass
class Document:
    """The persisted unit: every conversation plus the opaque project list."""

    chats: list[Conversation] = field(default_factory=list)
    # Project の中身は定義されていないので、読み込んだ値をそのまま持ち回す
    projects: list[Any] = field(default_factory=list)

    def find_conversation(self, conversation_id: int) -> Conversation | None:
        for conversation in self.chats:
            if conversation.id == conversation_id:
                return conversation
        return None

    def to_dict(self) -> dict:
        return {
            "chats": [chat.to_dict() for chat in self.chats],
            "projects": list(self.projects),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Document":
        """Build a document from parsed JSON; raises ValueError on a malformed shape."""

        payload = _require_mapping(payload, "document")
        chats = _require_list(payload.get("chats") or [], "chats")
        projects = _require_list(payload.get("projects") or [], "projects")
        return cls(
            chats=[Conversation.from_dict(c) for c in chats],
            projects=list(projects),
        )


def _require_mapping(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"Expected an object for {what}, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"Expected a list for {what}, got {type(value).__name__}")
    return value
