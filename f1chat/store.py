from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .models import TYPING_CONTENT, Conversation, Document, Message, derive_name, now_ms
from .persistence import PersistenceGateway

logger = logging.getLogger(__name__)


class ReplyState(str, Enum):
    SENT = "sent"
    AWAITING_REPLY = "awaiting_reply"
    RESOLVED = "resolved"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[ReplyState, set[ReplyState]] = {
    ReplyState.SENT: {ReplyState.AWAITING_REPLY},
    ReplyState.AWAITING_REPLY: {ReplyState.RESOLVED, ReplyState.FAILED},
    ReplyState.RESOLVED: set(),
    ReplyState.FAILED: set(),
}


@dataclass
class PendingReply:
    """One in-flight inference request and the placeholder standing in for it."""

    conversation_id: int
    placeholder_id: int
    state: ReplyState = ReplyState.SENT

    def advance(self, state: ReplyState) -> None:
        if state not in _ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f"Invalid reply transition: {self.state.value} -> {state.value}")
        self.state = state

    @property
    def is_settled(self) -> bool:
        return self.state in (ReplyState.RESOLVED, ReplyState.FAILED)


class ConversationStore:
    """
    In-memory owner of the conversation document and the current selection.

    Every mutating operation writes the whole document back through the
    persistence gateway. Rejected operations (deleting the last conversation,
    sending blank text) leave the state untouched and do not save.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        default_model: str = "mistral",
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._document = Document()
        self._current_chat_id: int | None = None
        self._last_id = 0
        self._pending: dict[int, PendingReply] = {}
        self.current_model = default_model
        self.context_data = ""

    # Properties ---------------------------------------------------------
    @property
    def document(self) -> Document:
        return self._document

    @property
    def conversations(self) -> list[Conversation]:
        return list(self._document.chats)

    @property
    def current_chat_id(self) -> int | None:
        return self._current_chat_id

    @property
    def pending_replies(self) -> list[PendingReply]:
        return list(self._pending.values())

    # Lifecycle ----------------------------------------------------------
    def initialize(self) -> None:
        document = self._gateway.load()
        if document is not None:
            self._document = document
            self._drop_stale_placeholders()
        if not self._document.chats:
            self.create_conversation()
        else:
            self._current_chat_id = self._document.chats[0].id

    # Conversations ------------------------------------------------------
    def create_conversation(self) -> Conversation:
        timestamp = self._clock()
        conversation = Conversation(
            id=self._next_id(),
            name=f"Conversation {len(self._document.chats) + 1}",
            timestamp=timestamp,
            model=self.current_model,
        )
        self._document.chats.insert(0, conversation)
        self._current_chat_id = conversation.id
        self._save()
        return conversation

    def delete_conversation(self, conversation_id: int) -> bool:
        if len(self._document.chats) <= 1:
            return False
        before = len(self._document.chats)
        self._document.chats = [c for c in self._document.chats if c.id != conversation_id]
        if self._current_chat_id == conversation_id:
            self._current_chat_id = self._document.chats[0].id
        self._save()
        return len(self._document.chats) != before

    def select_conversation(self, conversation_id: int) -> bool:
        if self._document.find_conversation(conversation_id) is None:
            logger.warning("Ignoring selection of unknown conversation %s", conversation_id)
            return False
        self._current_chat_id = conversation_id
        return True

    def current_conversation(self) -> Conversation | None:
        if self._current_chat_id is None:
            return None
        return self._document.find_conversation(self._current_chat_id)

    def message_count(self, conversation: Conversation | None = None) -> int:
        target = conversation or self.current_conversation()
        if target is None:
            return 0
        return len(target.visible_messages)

    # Messages -----------------------------------------------------------
    def append_user_message(self, text: str) -> Message | None:
        content = text.strip()
        if not content:
            return None
        conversation = self._require_current()
        timestamp = self._clock()
        message = Message(id=self._next_id(), role="user", content=content, timestamp=timestamp)
        conversation.messages.append(message)
        if len(conversation.messages) == 1:
            # 最初の発話を会話名にする
            conversation.name = derive_name(content)
        conversation.timestamp = timestamp
        self._save()
        return message

    def append_placeholder(self) -> PendingReply:
        conversation = self._require_current()
        placeholder = Message(
            id=self._next_id(),
            role="assistant",
            content=TYPING_CONTENT,
            timestamp=self._clock(),
            is_typing=True,
        )
        conversation.messages.append(placeholder)
        # 送信時点の会話 id を控えておき、応答は必ずその会話に戻す
        pending = PendingReply(conversation_id=conversation.id, placeholder_id=placeholder.id)
        pending.advance(ReplyState.AWAITING_REPLY)
        self._pending[placeholder.id] = pending
        return pending

    def resolve_placeholder(self, placeholder_id: int, final_text: str, model_name: str | None) -> Message | None:
        return self._settle(placeholder_id, final_text, model_name, ReplyState.RESOLVED)

    def fail_placeholder(self, placeholder_id: int, error_text: str, model_name: str | None) -> Message | None:
        return self._settle(placeholder_id, error_text, model_name, ReplyState.FAILED)

    # Model / context ----------------------------------------------------
    def set_model(self, model_name: str) -> None:
        self.current_model = model_name

    def import_context(self, text: str) -> None:
        self.context_data = text

    def clear_context(self) -> None:
        self.context_data = ""

    # Internal helpers ---------------------------------------------------
    def _settle(
        self,
        placeholder_id: int,
        content: str,
        model_name: str | None,
        outcome: ReplyState,
    ) -> Message | None:
        pending = self._pending.pop(placeholder_id, None)
        if pending is None:
            logger.warning("No pending reply for placeholder %s", placeholder_id)
            return None

        conversation = self._document.find_conversation(pending.conversation_id)
        if conversation is None:
            pending.advance(ReplyState.FAILED)
            logger.warning(
                "Dropping reply for deleted conversation %s", pending.conversation_id
            )
            return None

        conversation.remove_message(placeholder_id)
        timestamp = self._clock()
        message = Message(
            id=self._next_id(),
            role="assistant",
            content=content,
            timestamp=timestamp,
            model=model_name,
        )
        conversation.messages.append(message)
        conversation.timestamp = timestamp
        pending.advance(outcome)
        self._save()
        return message

    def _require_current(self) -> Conversation:
        conversation = self.current_conversation()
        if conversation is None:
            raise RuntimeError("No conversation is selected; call initialize() first.")
        return conversation

    def _next_id(self) -> int:
        # 同じミリ秒内で連続生成しても id が重ならないよう単調増加させる
        candidate = self._clock()
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def _drop_stale_placeholders(self) -> None:
        for conversation in self._document.chats:
            stale = [m for m in conversation.messages if m.is_typing]
            if stale:
                logger.info(
                    "Discarding %d stale placeholder(s) in conversation %s",
                    len(stale),
                    conversation.id,
                )
                conversation.messages = [m for m in conversation.messages if not m.is_typing]

    def _save(self) -> bool:
        return self._gateway.save(self._document)
