from __future__ import annotations

from typing import Iterable

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..models import Conversation
from ..rendering import format_time


class HistoryPanel(QWidget):
    conversation_selected = Signal(object)
    new_conversation_requested = Signal()
    delete_requested = Signal(object)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._conversations: list[Conversation] = []

        self._header_label = QLabel("Chats", self)
        self._header_label.setStyleSheet("font-weight: 600; font-size: 14px;")

        self._list = QListWidget(self)
        self._list.itemSelectionChanged.connect(self._on_selection_changed)

        self._new_button = QPushButton("+ New chat", self)
        self._new_button.clicked.connect(self.new_conversation_requested.emit)

        self._delete_button = QPushButton("Delete chat", self)
        self._delete_button.clicked.connect(self._on_delete_clicked)
        self._delete_button.setEnabled(False)

        layout = QVBoxLayout()
        layout.addWidget(self._header_label)
        layout.addWidget(self._new_button)
        layout.addWidget(self._list, stretch=1)
        layout.addWidget(self._delete_button)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(8)
        self.setLayout(layout)

    def set_conversations(self, conversations: Iterable[Conversation], current_id: int | None) -> None:
        self._conversations = list(conversations)
        # 再構築中は選択シグナルを止めて store との往復を防ぐ
        self._list.blockSignals(True)
        self._list.clear()
        for conversation in self._conversations:
            item = QListWidgetItem(self._format_title(conversation))
            item.setData(Qt.UserRole, conversation.id)
            self._list.addItem(item)
            if conversation.id == current_id:
                self._list.setCurrentItem(item)
        self._list.blockSignals(False)
        self._update_button_states()

    @property
    def current_conversation_id(self) -> int | None:
        item = self._list.currentItem()
        if not item:
            return None
        return item.data(Qt.UserRole)

    def _format_title(self, conversation: Conversation) -> str:
        return f"{conversation.name}\n{format_time(conversation.timestamp)}"

    def _on_selection_changed(self) -> None:
        conversation_id = self.current_conversation_id
        self._update_button_states()
        if conversation_id is not None:
            self.conversation_selected.emit(conversation_id)

    def _on_delete_clicked(self) -> None:
        conversation_id = self.current_conversation_id
        if conversation_id is not None:
            self.delete_requested.emit(conversation_id)

    def _update_button_states(self) -> None:
        # 最後の1件は削除できない
        can_delete = self.current_conversation_id is not None and len(self._conversations) > 1
        self._delete_button.setEnabled(can_delete)
